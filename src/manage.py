"""Marketplace database management CLI.

Provides commands to create and drop the marketplace database schema.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_databases():
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    marketplace.init()
    setup_db(marketplace)


def drop_databases():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    marketplace.init()
    drop_db(marketplace)


def main():
    from marketplace.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="Marketplace database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()
    configure_logging()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
