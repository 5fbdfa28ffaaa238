"""Cart aggregate (CQRS): the buyer's authoritative, re-quotable cart snapshot.

A buyer owns at most one Active cart. Every quote replaces the cart's items
and vendor groups wholesale instead of merging them, refreshes the TTL and
recomputes totals. Checkout converts the cart; a Converted cart is never
quoted again.

Items and vendor groups carry a ``position`` so that reads come back in the
order the quote produced them.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.shared.address import ShippingAddress


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CartStatus(Enum):
    ACTIVE = "Active"
    CONVERTED = "Converted"


class CartItemStatus(Enum):
    OK = "OK"
    INVALID = "Invalid"
    NOT_AVAILABLE = "NotAvailable"


class VendorGroupStatus(Enum):
    OK = "OK"
    INVALID = "Invalid"


class CartItemWarningType(Enum):
    CLAMPED_TO_MOQ = "clamped_to_moq"
    CLAMPED_TO_MAX = "clamped_to_max"
    PRICE_CHANGED = "price_changed"
    NOT_AVAILABLE = "not_available"
    VENDOR_INVALID = "vendor_invalid"
    VENDOR_MISMATCH = "vendor_mismatch"


class VendorGroupWarningType(Enum):
    VENDOR_INVALID = "vendor_invalid"
    INVALID_PROMO = "invalid_promo"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Cart")
class AppliedVolumeDiscount:
    """The volume tier that priced a line, and what it saved against list price."""

    label = String(required=True, max_length=50)
    amount_cents = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Cart")
class CartItem:
    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    vendor_store_id = Identifier(required=True)
    product_name = String(max_length=255)
    sku = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    moq = Integer(default=1, min_value=0)
    max_qty = Integer()  # None means unlimited
    unit_price_cents = Integer(required=True, min_value=0)
    applied_volume_discount = ValueObject(AppliedVolumeDiscount)
    line_subtotal_cents = Integer(default=0, min_value=0)
    status = String(choices=CartItemStatus, default=CartItemStatus.OK.value)
    warnings = List(content_type=dict)  # [{"type": ..., "message": ...}]

    @property
    def is_orderable(self) -> bool:
        return self.status == CartItemStatus.OK.value

    @property
    def warning_types(self) -> list[str]:
        return [w["type"] for w in self.warnings or []]


@marketplace.entity(part_of="Cart")
class CartVendorGroup:
    position = Integer(required=True, min_value=0)
    vendor_store_id = Identifier(required=True)
    status = String(choices=VendorGroupStatus, default=VendorGroupStatus.OK.value)
    promo_code = String(max_length=50)
    subtotal_cents = Integer(default=0, min_value=0)
    discounts_cents = Integer(default=0, min_value=0)
    total_cents = Integer(default=0, min_value=0)
    warnings = List(content_type=dict)

    @property
    def warning_types(self) -> list[str]:
        return [w["type"] for w in self.warnings or []]


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Cart:
    buyer_store_id = Identifier(required=True)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    currency = String(max_length=3, default="USD")
    shipping_address = ValueObject(ShippingAddress)
    valid_until = DateTime()
    subtotal_cents = Integer(default=0)
    discounts_cents = Integer(default=0)
    total_cents = Integer(default=0)
    ad_tokens = List(content_type=String(max_length=255))
    payment_method = String(max_length=20)
    checkout_group_id = Identifier()
    converted_at = DateTime()
    items = HasMany(CartItem)
    vendor_groups = HasMany(CartVendorGroup)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def totals_must_be_consistent(self):
        if self.subtotal_cents < 0 or self.discounts_cents < 0 or self.total_cents < 0:
            raise ValidationError({"totals": ["Cart totals must be non-negative"]})
        if self.discounts_cents > self.subtotal_cents:
            raise ValidationError({"discounts_cents": ["Discounts cannot exceed the subtotal"]})
        if self.total_cents != self.subtotal_cents - self.discounts_cents:
            raise ValidationError({"total_cents": ["Total must equal subtotal minus discounts"]})

    @invariant.post
    def converted_cart_must_reference_checkout(self):
        if self.status == CartStatus.CONVERTED.value and not self.checkout_group_id:
            raise ValidationError({"checkout_group_id": ["A converted cart must reference its checkout group"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, buyer_store_id, currency="USD"):
        now = datetime.now(UTC)
        return cls(
            buyer_store_id=buyer_store_id,
            status=CartStatus.ACTIVE.value,
            currency=currency,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Ordered views
    # -------------------------------------------------------------------
    @property
    def ordered_items(self) -> list[CartItem]:
        return sorted(self.items, key=lambda item: item.position)

    @property
    def ordered_vendor_groups(self) -> list[CartVendorGroup]:
        return sorted(self.vendor_groups, key=lambda group: group.position)

    def unit_prices(self) -> dict[str, int]:
        """Unit price per ``product_id:vendor_store_id`` for price-change detection."""
        return {f"{item.product_id}:{item.vendor_store_id}": item.unit_price_cents for item in self.items}

    # -------------------------------------------------------------------
    # Quote replacement
    # -------------------------------------------------------------------
    def replace_contents(
        self,
        items,
        vendor_groups,
        subtotal_cents,
        discounts_cents,
        total_cents,
        valid_until,
        shipping_address=None,
        ad_tokens=None,
    ):
        """Swap in a fresh quote: drop every existing child, insert the new ones."""
        if self.status != CartStatus.ACTIVE.value:
            raise ValidationError({"status": ["Only active carts can be re-quoted"]})

        with atomic_change(self):
            if self.items:
                self.remove_items(list(self.items))
            if self.vendor_groups:
                self.remove_vendor_groups(list(self.vendor_groups))
            if items:
                self.add_items(list(items))
            if vendor_groups:
                self.add_vendor_groups(list(vendor_groups))

            self.subtotal_cents = subtotal_cents
            self.discounts_cents = discounts_cents
            self.total_cents = total_cents
            self.valid_until = valid_until
            self.shipping_address = shipping_address
            self.ad_tokens = list(ad_tokens or [])
            self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_converted(self, checkout_group_id, payment_method, shipping_address=None):
        if self.status != CartStatus.ACTIVE.value:
            raise ValidationError({"status": ["Only active carts can be converted"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = CartStatus.CONVERTED.value
            self.checkout_group_id = checkout_group_id
            self.payment_method = payment_method
            if shipping_address is not None:
                self.shipping_address = shipping_address
            self.converted_at = now
            self.updated_at = now
