"""CheckoutGroup aggregate (CQRS): the buyer-facing result of one checkout.

A checkout splits a cart into one VendorOrder per vendor. Each vendor order
owns its line items and a single payment intent. The whole graph is written
once, in the checkout's unit of work, and is not modified afterwards.

Line item status mirrors the reservation outcome for that line:
    Pending   stock was reserved
    Rejected  stock was short; ``notes`` carries the reason

A vendor order none of whose lines were reserved is Rejected with nothing
left to pay.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    HasOne,
    Identifier,
    Integer,
    List,
    Reference,
    String,
    Text,
    ValueObject,
)

from marketplace.checkout.events import OrderCreated
from marketplace.domain import marketplace
from marketplace.outbox import emit
from marketplace.shared.address import ShippingAddress


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class VendorOrderStatus(Enum):
    CREATED_PENDING = "Created_Pending"
    REJECTED = "Rejected"


class LineItemStatus(Enum):
    PENDING = "Pending"
    REJECTED = "Rejected"


class PaymentStatus(Enum):
    UNPAID = "Unpaid"


class PaymentMethod(Enum):
    CASH = "cash"
    ACH = "ach"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="CheckoutGroup")
class OrderLineItem:
    vendor_order = Reference("VendorOrder")
    position = Integer(required=True, min_value=0)
    cart_item_id = Identifier()
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)
    line_subtotal_cents = Integer(default=0, min_value=0)
    discount_cents = Integer(default=0, min_value=0)
    status = String(choices=LineItemStatus, default=LineItemStatus.PENDING.value)
    notes = Text()

    @property
    def is_reserved(self) -> bool:
        return self.status == LineItemStatus.PENDING.value


@marketplace.entity(part_of="CheckoutGroup")
class PaymentIntent:
    vendor_order = Reference("VendorOrder")
    method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    amount_cents = Integer(default=0, min_value=0)


@marketplace.entity(part_of="CheckoutGroup")
class VendorOrder:
    position = Integer(required=True, min_value=0)
    vendor_store_id = Identifier(required=True)
    currency = String(max_length=3, default="USD")
    shipping_address = ValueObject(ShippingAddress)
    subtotal_cents = Integer(default=0, min_value=0)
    discounts_cents = Integer(default=0, min_value=0)
    total_cents = Integer(default=0, min_value=0)
    balance_due_cents = Integer(default=0, min_value=0)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    promo_code = String(max_length=50)
    status = String(choices=VendorOrderStatus, default=VendorOrderStatus.CREATED_PENDING.value)
    warnings = List(content_type=dict)
    line_items = HasMany(OrderLineItem)
    payment_intent = HasOne(PaymentIntent)

    @property
    def ordered_line_items(self) -> list[OrderLineItem]:
        return sorted(self.line_items, key=lambda line: line.position)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@marketplace.aggregate(stream_category="checkout_group")
class CheckoutGroup:
    buyer_store_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    currency = String(max_length=3, default="USD")
    vendor_orders = HasMany(VendorOrder)
    created_at = DateTime()

    @invariant.post
    def vendor_orders_must_be_unique_per_vendor(self):
        vendor_ids = [str(order.vendor_store_id) for order in self.vendor_orders]
        if len(vendor_ids) != len(set(vendor_ids)):
            raise ValidationError({"vendor_orders": ["A checkout group holds one order per vendor"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, buyer_store_id, cart_id, currency="USD"):
        return cls(
            buyer_store_id=buyer_store_id,
            cart_id=cart_id,
            currency=currency,
            created_at=datetime.now(UTC),
        )

    @property
    def ordered_vendor_orders(self) -> list[VendorOrder]:
        return sorted(self.vendor_orders, key=lambda order: order.position)

    # -------------------------------------------------------------------
    # Building the order graph
    # -------------------------------------------------------------------
    def place_vendor_order(
        self,
        vendor_store_id,
        lines,
        subtotal_cents,
        discounts_cents,
        total_cents,
        payment_method,
        shipping_address=None,
        promo_code=None,
        warnings=None,
    ) -> VendorOrder:
        """Add one vendor's order with its line items and payment intent.

        ``lines`` are OrderLineItem instances already marked Pending or
        Rejected from the reservation outcome.
        """
        if not lines:
            raise ValidationError({"line_items": ["A vendor order needs at least one line item"]})

        any_reserved = any(line.is_reserved for line in lines)
        order = VendorOrder(
            position=len(self.vendor_orders),
            vendor_store_id=vendor_store_id,
            currency=self.currency,
            shipping_address=shipping_address,
            subtotal_cents=subtotal_cents,
            discounts_cents=discounts_cents,
            total_cents=total_cents,
            balance_due_cents=total_cents if any_reserved else 0,
            payment_method=payment_method,
            promo_code=promo_code,
            status=VendorOrderStatus.CREATED_PENDING.value if any_reserved else VendorOrderStatus.REJECTED.value,
            warnings=list(warnings or []),
        )
        order.add_line_items(list(lines))
        order.payment_intent = PaymentIntent(
            method=payment_method,
            status=PaymentStatus.UNPAID.value,
            amount_cents=total_cents,
        )
        self.add_vendor_orders(order)
        return order

    def record_created(self):
        """Stage the OrderCreated event for the outbox."""
        emit(
            self,
            OrderCreated(
                checkout_group_id=str(self.id),
                buyer_store_id=str(self.buyer_store_id),
                cart_id=str(self.cart_id),
                vendor_order_ids=[str(order.id) for order in self.ordered_vendor_orders],
                occurred_at=datetime.now(UTC),
            ),
        )
