"""Marketplace bounded context: quoting, cart persistence, checkout and inventory.

Buyers quote a multi-vendor cart, and checkout splits the persisted cart into
one order per vendor inside a single unit of work. Inventory is reserved in
the same transaction and an OrderCreated event is written to the outbox
alongside the business rows.
"""

from protean.domain import Domain

marketplace = Domain(name="marketplace")
