"""Marketplace domain API package."""

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import cart_router, checkout_router, inventory_router

__all__ = ["cart_router", "checkout_router", "inventory_router", "register_error_handlers"]
