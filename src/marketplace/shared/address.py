"""Shipping address captured on carts and vendor orders."""

from protean.fields import String

from marketplace.domain import marketplace


@marketplace.value_object
class ShippingAddress:
    """An address snapshot.

    Copied from the buyer store at quote time and frozen onto each vendor
    order at checkout, so later changes to the store never rewrite history.
    """

    line1 = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="US")

    @classmethod
    def from_store_address(cls, address) -> "ShippingAddress | None":
        if address is None:
            return None
        return cls(
            line1=address.line1,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        )
