"""Checkout execution: turn the buyer's Active cart into a CheckoutGroup.

Everything happens in the command handler's single unit of work:

    1. load and check the cart, re-validate the buyer and every vendor
    2. reserve stock for all orderable lines in one batch
    3. create the checkout group with one vendor order per vendor
    4. convert the cart
    5. stage OrderCreated for the outbox

Any exception rolls the whole unit back, so a caller sees either a complete
checkout group or an error. Lines that could not be reserved are not errors:
they become Rejected line items.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, ValueObject
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart, CartStatus
from marketplace.checkout.checkout_group import (
    CheckoutGroup,
    LineItemStatus,
    OrderLineItem,
    PaymentMethod,
)
from marketplace.config import default_payment_method
from marketplace.domain import marketplace
from marketplace.errors import Conflict, Forbidden, InvalidRequest, MarketplaceError, NotFound, StateConflict
from marketplace.inventory.reservation import ReservationRequest, reserve_inventory
from marketplace.lookup.visibility import VendorResolver, load_buyer
from marketplace.shared.address import ShippingAddress

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------
@marketplace.command(part_of="CheckoutGroup")
class ExecuteCheckout:
    """Check out the buyer's cart: reserve stock and create vendor orders."""

    buyer_store_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    payment_method = String(max_length=20)  # Defaults to the configured method
    shipping_address = ValueObject(ShippingAddress)  # Defaults to the cart's address


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_cart_for_checkout(buyer_store_id, cart_id) -> Cart:
    cart = current_domain.repository_for(Cart).get_or_none(cart_id)
    if cart is None:
        raise NotFound("cart not found")
    if str(cart.buyer_store_id) != str(buyer_store_id):
        raise Forbidden("cart does not belong to buyer store")
    if cart.status != CartStatus.ACTIVE.value:
        raise Conflict("cart must be active")
    if not any(item.is_orderable for item in cart.items):
        raise Conflict("cart contains no orderable items")
    return cart


def validate_moq(items) -> None:
    """Raise StateConflict listing every line whose quantity is below its MOQ."""
    violations = [
        {
            "product_id": str(item.product_id),
            "product_name": item.product_name or "",
            "required_qty": item.moq,
            "requested_qty": item.quantity,
        }
        for item in items
        if item.moq and item.moq > 1 and item.quantity < item.moq
    ]
    if violations:
        raise StateConflict(
            f"minimum order quantity not met for {len(violations)} item(s)",
            violations=violations,
        )


def resolve_payment_method(requested) -> str:
    method = (requested or default_payment_method()).strip().lower()
    if method not in {m.value for m in PaymentMethod}:
        raise InvalidRequest(f"unsupported payment method: {method}")
    return method


def group_items_by_vendor(items) -> dict[str, list]:
    grouped: dict[str, list] = {}
    for item in items:
        grouped.setdefault(str(item.vendor_store_id), []).append(item)
    return grouped


def build_line_item(position, cart_item, result) -> OrderLineItem:
    discount = cart_item.applied_volume_discount
    return OrderLineItem(
        position=position,
        cart_item_id=str(cart_item.id),
        product_id=str(cart_item.product_id),
        product_name=cart_item.product_name or str(cart_item.product_id),
        quantity=cart_item.quantity,
        unit_price_cents=cart_item.unit_price_cents,
        line_subtotal_cents=cart_item.line_subtotal_cents,
        discount_cents=discount.amount_cents if discount is not None else 0,
        status=LineItemStatus.PENDING.value if result.reserved else LineItemStatus.REJECTED.value,
        notes=None if result.reserved else result.reason,
    )


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------
@marketplace.command_handler(part_of=CheckoutGroup)
class CheckoutHandler:
    @handle(ExecuteCheckout)
    def execute_checkout(self, command):
        cart = load_cart_for_checkout(command.buyer_store_id, command.cart_id)
        _, buyer_state = load_buyer(str(command.buyer_store_id))

        orderable = [item for item in cart.ordered_items if item.is_orderable]
        validate_moq(orderable)
        payment_method = resolve_payment_method(command.payment_method)
        shipping_address = command.shipping_address or cart.shipping_address

        items_by_vendor = group_items_by_vendor(orderable)
        vendor_groups = [
            group for group in cart.ordered_vendor_groups if str(group.vendor_store_id) in items_by_vendor
        ]
        missing = set(items_by_vendor) - {str(group.vendor_store_id) for group in vendor_groups}
        if missing:
            raise MarketplaceError(f"missing vendor group for vendor {sorted(missing)[0]}")

        resolver = VendorResolver(buyer_state)
        for group in vendor_groups:
            resolver.resolve(str(group.vendor_store_id))

        results = reserve_inventory(
            [ReservationRequest(str(item.id), str(item.product_id), item.quantity) for item in orderable]
        )
        result_by_item = {result.cart_item_id: result for result in results}

        checkout_group = CheckoutGroup.open(
            buyer_store_id=str(command.buyer_store_id),
            cart_id=str(cart.id),
            currency=cart.currency,
        )
        for group in vendor_groups:
            vendor_items = items_by_vendor[str(group.vendor_store_id)]
            checkout_group.place_vendor_order(
                vendor_store_id=str(group.vendor_store_id),
                lines=[
                    build_line_item(position, item, result_by_item[str(item.id)])
                    for position, item in enumerate(vendor_items)
                ],
                subtotal_cents=group.subtotal_cents,
                discounts_cents=group.discounts_cents,
                total_cents=group.total_cents,
                payment_method=payment_method,
                shipping_address=shipping_address,
                promo_code=group.promo_code,
                warnings=group.warnings,
            )
        current_domain.repository_for(CheckoutGroup).add(checkout_group)

        cart.mark_converted(
            checkout_group_id=str(checkout_group.id),
            payment_method=payment_method,
            shipping_address=shipping_address,
        )
        current_domain.repository_for(Cart).add(cart)

        checkout_group.record_created()

        logger.info(
            "checkout.executed",
            checkout_group_id=str(checkout_group.id),
            cart_id=str(cart.id),
            buyer_store_id=str(command.buyer_store_id),
            vendor_orders=len(vendor_groups),
            rejected_lines=sum(1 for result in results if not result.reserved),
        )
        return str(checkout_group.id)


def execute_checkout(buyer_store_id, cart_id, payment_method=None, shipping_address=None) -> CheckoutGroup:
    if not buyer_store_id:
        raise InvalidRequest("buyer store id is required")
    if not cart_id:
        raise InvalidRequest("cart id is required")
    group_id = current_domain.process(
        ExecuteCheckout(
            buyer_store_id=buyer_store_id,
            cart_id=cart_id,
            payment_method=payment_method,
            shipping_address=shipping_address,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(CheckoutGroup).get(group_id)
