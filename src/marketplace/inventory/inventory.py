"""InventoryItem aggregate (CQRS): per-product stock shared by every checkout.

Stock model:
    available_qty  units that can still be promised to a buyer
    reserved_qty   units promised to checkouts that are awaiting fulfilment

A reservation moves units from available to reserved in one step, and only
when enough are available. Both counters stay non-negative. Reservations are
not released here; a failed checkout undoes them by rolling back its unit of
work.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.aggregate
class InventoryItem:
    product_id = Identifier(identifier=True)
    available_qty = Integer(default=0, min_value=0)
    reserved_qty = Integer(default=0, min_value=0)
    updated_at = DateTime()

    @invariant.post
    def quantities_must_not_be_negative(self):
        if self.available_qty is not None and self.available_qty < 0:
            raise ValidationError({"available_qty": ["Available quantity cannot be negative"]})
        if self.reserved_qty is not None and self.reserved_qty < 0:
            raise ValidationError({"reserved_qty": ["Reserved quantity cannot be negative"]})

    @classmethod
    def stock(cls, product_id, available_qty):
        return cls(
            product_id=product_id,
            available_qty=available_qty,
            reserved_qty=0,
            updated_at=datetime.now(UTC),
        )

    def restock(self, available_qty):
        if available_qty < 0:
            raise ValidationError({"available_qty": ["Available quantity cannot be negative"]})
        self.available_qty = available_qty
        self.updated_at = datetime.now(UTC)

    def can_reserve(self, quantity) -> bool:
        return quantity > 0 and self.available_qty >= quantity

    def reserve(self, quantity) -> bool:
        """Move ``quantity`` units from available to reserved.

        Returns False, leaving the item untouched, when stock is short.
        """
        if quantity <= 0:
            raise ValidationError({"quantity": ["Reservation quantity must be positive"]})
        if not self.can_reserve(quantity):
            return False

        with atomic_change(self):
            self.available_qty -= quantity
            self.reserved_qty += quantity
            self.updated_at = datetime.now(UTC)
        return True
