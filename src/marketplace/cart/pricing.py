"""Pure pricing rules used by the quote pipeline.

Nothing here touches a repository or a collaborator: quantities, tiers,
line statuses and vendor-group totals are computed from plain inputs so the
rules can be exercised directly.
"""

from dataclasses import dataclass, field

from marketplace.cart.cart import (
    CartItemStatus,
    CartItemWarningType,
    VendorGroupStatus,
    VendorGroupWarningType,
)
from marketplace.lookup.port import ProductDetail, VolumeTier

INVALID_PROMO_MESSAGE = "Promo code is not valid for this vendor"
NO_VALID_ITEMS_MESSAGE = "no valid items for vendor"
VENDOR_MISMATCH_MESSAGE = "product does not belong to the requested vendor"


def warning(warning_type, message: str) -> dict:
    return {"type": warning_type.value, "message": message}


@dataclass
class QuotedLine:
    """One priced line of a quote, before it becomes a CartItem."""

    product_id: str
    vendor_store_id: str
    product_name: str
    sku: str
    quantity: int
    moq: int
    max_qty: int | None
    base_price_cents: int
    unit_price_cents: int
    line_subtotal_cents: int
    status: str
    warnings: list[dict] = field(default_factory=list)
    tier: VolumeTier | None = None
    volume_discount_cents: int = 0

    @property
    def is_ok(self) -> bool:
        return self.status == CartItemStatus.OK.value

    @property
    def volume_discount_label(self) -> str | None:
        if self.tier is None:
            return None
        return f"volume tier {self.tier.min_qty}+"


@dataclass
class QuotedVendorGroup:
    vendor_store_id: str
    status: str
    subtotal_cents: int = 0
    discounts_cents: int = 0
    total_cents: int = 0
    promo_code: str | None = None
    warnings: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class CartTotals:
    subtotal_cents: int
    discounts_cents: int
    total_cents: int


# ---------------------------------------------------------------------------
# Line-level rules
# ---------------------------------------------------------------------------
def normalize_quantity(requested: int, moq: int, max_qty: int | None = None) -> tuple[int, list[dict]]:
    """Clamp ``requested`` into ``[moq, max_qty]``, warning once per clamp that changed it."""
    normalized = requested
    warnings = []

    if normalized < moq:
        warnings.append(warning(CartItemWarningType.CLAMPED_TO_MOQ, f"quantity raised to MOQ ({moq})"))
        normalized = moq

    if max_qty is not None and normalized > max_qty:
        warnings.append(
            warning(CartItemWarningType.CLAMPED_TO_MAX, f"quantity reduced to max allowed ({max_qty})")
        )
        normalized = max_qty

    return normalized, warnings


def select_volume_tier(quantity: int, tiers) -> VolumeTier | None:
    """The qualifying tier with the largest ``min_qty``, or None."""
    qualifying = [tier for tier in tiers or () if tier.min_qty <= quantity]
    if not qualifying:
        return None
    return max(qualifying, key=lambda tier: tier.min_qty)


def availability_problem(product: ProductDetail, quantity: int) -> str | None:
    if not product.is_active:
        return "product is not active"
    if product.available_qty < quantity:
        return f"product inventory ({product.available_qty}) is below requested quantity ({quantity})"
    return None


def price_line(
    product: ProductDetail,
    vendor_store_id: str,
    requested_qty: int,
    previous_prices: dict[str, int] | None = None,
    vendor_failure: str | None = None,
) -> QuotedLine:
    """Resolve one requested item into a priced, warned line.

    Status priority is Invalid > NotAvailable > OK. A line for a vendor the
    buyer cannot see is Invalid with the visibility failure as its warning.
    """
    moq = max(product.moq or 0, 1)
    quantity, warnings = normalize_quantity(requested_qty, moq, product.max_qty)
    status = CartItemStatus.OK.value

    if vendor_failure is not None:
        status = CartItemStatus.INVALID.value
        warnings.append(warning(CartItemWarningType.VENDOR_INVALID, vendor_failure))
    elif product.vendor_store_id != vendor_store_id:
        status = CartItemStatus.INVALID.value
        warnings.append(warning(CartItemWarningType.VENDOR_MISMATCH, VENDOR_MISMATCH_MESSAGE))
    else:
        problem = availability_problem(product, quantity)
        if problem is not None:
            status = CartItemStatus.NOT_AVAILABLE.value
            warnings.append(warning(CartItemWarningType.NOT_AVAILABLE, problem))

    base_price = max(product.price_cents, 0)
    tier = select_volume_tier(quantity, product.volume_tiers)
    unit_price = max(tier.unit_price_cents, 0) if tier is not None else base_price

    key = f"{product.id}:{vendor_store_id}"
    previous = (previous_prices or {}).get(key)
    if previous is not None and previous != unit_price:
        warnings.append(
            warning(CartItemWarningType.PRICE_CHANGED, f"price changed from {previous} to {unit_price}")
        )

    return QuotedLine(
        product_id=product.id,
        vendor_store_id=vendor_store_id,
        product_name=product.title,
        sku=product.sku,
        quantity=quantity,
        moq=moq,
        max_qty=product.max_qty,
        base_price_cents=base_price,
        unit_price_cents=unit_price,
        line_subtotal_cents=unit_price * quantity,
        status=status,
        warnings=warnings,
        tier=tier,
        volume_discount_cents=max(base_price - unit_price, 0) * quantity if tier is not None else 0,
    )


# ---------------------------------------------------------------------------
# Vendor groups and cart totals
# ---------------------------------------------------------------------------
def aggregate_vendor_groups(
    lines: list[QuotedLine],
    vendor_warnings: dict[str, list[dict]] | None = None,
    promo_amounts: dict[str, tuple[str, int]] | None = None,
) -> list[QuotedVendorGroup]:
    """Fold lines into one group per vendor, in order of first appearance.

    Only OK lines count towards a group's subtotal. ``promo_amounts`` maps a
    vendor to ``(code, amount_cents)``; the discount is capped at the subtotal.
    """
    vendor_warnings = vendor_warnings or {}
    promo_amounts = promo_amounts or {}

    grouped: dict[str, list[QuotedLine]] = {}
    for line in lines:
        grouped.setdefault(line.vendor_store_id, []).append(line)

    groups = []
    for vendor_store_id, vendor_lines in grouped.items():
        ok_lines = [line for line in vendor_lines if line.is_ok]
        subtotal = max(sum(line.line_subtotal_cents for line in ok_lines), 0)
        warnings = list(vendor_warnings.get(vendor_store_id, []))

        if ok_lines:
            status = VendorGroupStatus.OK.value
        else:
            status = VendorGroupStatus.INVALID.value
            warnings.append(warning(VendorGroupWarningType.VENDOR_INVALID, NO_VALID_ITEMS_MESSAGE))

        promo_code = None
        discounts = 0
        if vendor_store_id in promo_amounts:
            promo_code, amount = promo_amounts[vendor_store_id]
            discounts = min(max(amount, 0), subtotal)

        groups.append(
            QuotedVendorGroup(
                vendor_store_id=vendor_store_id,
                status=status,
                subtotal_cents=subtotal,
                discounts_cents=discounts,
                total_cents=subtotal - discounts,
                promo_code=promo_code,
                warnings=warnings,
            )
        )
    return groups


def cart_totals(groups: list[QuotedVendorGroup]) -> CartTotals:
    subtotal = max(sum(group.subtotal_cents for group in groups), 0)
    discounts = min(max(sum(group.discounts_cents for group in groups), 0), subtotal)
    return CartTotals(
        subtotal_cents=subtotal,
        discounts_cents=discounts,
        total_cents=max(subtotal - discounts, 0),
    )
