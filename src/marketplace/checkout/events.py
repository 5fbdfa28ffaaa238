"""Domain events for the CheckoutGroup aggregate."""

from protean.fields import DateTime, Identifier, List, String

from marketplace.domain import marketplace


@marketplace.event(part_of="CheckoutGroup")
class OrderCreated:
    """A cart was checked out and split into one order per vendor.

    ``vendor_order_ids`` lists every created vendor order in creation order.
    """

    __version__ = 1

    checkout_group_id = Identifier(required=True)
    buyer_store_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    vendor_order_ids = List(content_type=String(max_length=50))
    occurred_at = DateTime(required=True)
