"""Cart persistence: load the buyer's Active cart and replace its snapshot.

The upsert is authoritative. It never merges a quote into the previous one:
items and vendor groups are deleted and re-inserted, and the TTL restarts.
The cart row and both replacements commit in one unit of work, which joins
the caller's when one is already in progress.
"""

from datetime import UTC, datetime

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from marketplace.cart.cart import AppliedVolumeDiscount, Cart, CartItem, CartStatus, CartVendorGroup
from marketplace.cart.pricing import CartTotals, QuotedLine, QuotedVendorGroup
from marketplace.config import cart_ttl, default_currency

logger = structlog.get_logger(__name__)


def find_active_cart(buyer_store_id) -> Cart | None:
    repo = current_domain.repository_for(Cart)
    records = repo._dao.query.filter(buyer_store_id=str(buyer_store_id), status=CartStatus.ACTIVE.value).all().items
    if not records:
        return None
    if len(records) > 1:
        logger.warning("cart.multiple_active", buyer_store_id=str(buyer_store_id), count=len(records))
    newest = max(records, key=lambda cart: cart.updated_at or cart.created_at or datetime.min.replace(tzinfo=UTC))
    return repo.get(newest.id)


def _cart_item(position: int, line: QuotedLine) -> CartItem:
    discount = None
    if line.tier is not None:
        discount = AppliedVolumeDiscount(label=line.volume_discount_label, amount_cents=line.volume_discount_cents)
    return CartItem(
        position=position,
        product_id=line.product_id,
        vendor_store_id=line.vendor_store_id,
        product_name=line.product_name,
        sku=line.sku,
        quantity=line.quantity,
        moq=line.moq,
        max_qty=line.max_qty,
        unit_price_cents=line.unit_price_cents,
        applied_volume_discount=discount,
        line_subtotal_cents=line.line_subtotal_cents,
        status=line.status,
        warnings=list(line.warnings),
    )


def _vendor_group(position: int, group: QuotedVendorGroup) -> CartVendorGroup:
    return CartVendorGroup(
        position=position,
        vendor_store_id=group.vendor_store_id,
        status=group.status,
        promo_code=group.promo_code,
        subtotal_cents=group.subtotal_cents,
        discounts_cents=group.discounts_cents,
        total_cents=group.total_cents,
        warnings=list(group.warnings),
    )


def upsert_active_cart(
    buyer_store_id,
    lines: list[QuotedLine],
    groups: list[QuotedVendorGroup],
    totals: CartTotals,
    shipping_address=None,
    ad_tokens=None,
) -> Cart:
    """Create or fully replace the buyer's Active cart. Returns the saved cart."""
    repo = current_domain.repository_for(Cart)

    with UnitOfWork():
        cart = find_active_cart(buyer_store_id)
        created = cart is None
        if created:
            cart = Cart.create(buyer_store_id=str(buyer_store_id), currency=default_currency())

        cart.replace_contents(
            items=[_cart_item(position, line) for position, line in enumerate(lines)],
            vendor_groups=[_vendor_group(position, group) for position, group in enumerate(groups)],
            subtotal_cents=totals.subtotal_cents,
            discounts_cents=totals.discounts_cents,
            total_cents=totals.total_cents,
            valid_until=datetime.now(UTC) + cart_ttl(),
            shipping_address=shipping_address,
            ad_tokens=ad_tokens,
        )
        repo.add(cart)

    logger.info(
        "cart.upserted",
        cart_id=str(cart.id),
        buyer_store_id=str(buyer_store_id),
        created=created,
        items=len(lines),
        vendor_groups=len(groups),
        total_cents=totals.total_cents,
    )
    return cart
