"""Cart quoting: resolve raw item requests into a priced, vendor-grouped cart.

Quoting is advisory. Inventory is never reserved, and an item that cannot be
bought right now (wrong vendor, invisible vendor, short stock) is kept with
a non-OK status and warnings rather than failing the quote. Only malformed
requests, an ineligible buyer and unknown products abort. Every successful
quote is persisted as the buyer's Active cart.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, List, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart, VendorGroupWarningType
from marketplace.cart.persistence import find_active_cart, upsert_active_cart
from marketplace.cart.pricing import (
    INVALID_PROMO_MESSAGE,
    aggregate_vendor_groups,
    cart_totals,
    price_line,
    warning,
)
from marketplace.domain import marketplace
from marketplace.errors import InvalidRequest, NotFound
from marketplace.lookup import get_lookups
from marketplace.lookup.visibility import VendorResolver, guarded, load_buyer
from marketplace.shared.address import ShippingAddress

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ItemRequest:
    product_id: str
    vendor_store_id: str
    quantity: int


def parse_item_requests(items) -> list[ItemRequest]:
    """Validate request shape before any collaborator is consulted."""
    if not items:
        raise InvalidRequest("cart must contain at least one item")

    requests = []
    for raw in items:
        product_id = raw.get("product_id")
        vendor_store_id = raw.get("vendor_store_id")
        if not product_id or not vendor_store_id:
            raise InvalidRequest("item product_id and vendor_store_id are required")
        try:
            quantity = int(raw.get("quantity", 0))
        except (TypeError, ValueError):
            raise InvalidRequest("item quantity must be an integer") from None
        if quantity <= 0:
            raise InvalidRequest("item quantity must be positive")
        requests.append(ItemRequest(str(product_id), str(vendor_store_id), quantity))
    return requests


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------
@marketplace.command(part_of="Cart")
class QuoteCart:
    """Quote the buyer's items and replace the Active cart with the result."""

    buyer_store_id = Identifier(required=True)
    items = List(content_type=dict)  # [{product_id, vendor_store_id, quantity}]
    vendor_promos = List(content_type=dict)  # [{vendor_store_id, code}]
    ad_tokens = List(content_type=String(max_length=255))


@marketplace.command_handler(part_of=Cart)
class QuoteCartHandler:
    @handle(QuoteCart)
    def quote_cart(self, command):
        requests = parse_item_requests(command.items)
        buyer, buyer_state = load_buyer(str(command.buyer_store_id))

        existing = find_active_cart(command.buyer_store_id)
        previous_prices = existing.unit_prices() if existing is not None else {}

        # Each distinct vendor is resolved exactly once, in first-seen order
        vendor_ids = list(dict.fromkeys(request.vendor_store_id for request in requests))
        resolver = VendorResolver(buyer_state)
        vendor_failures = {}
        for vendor_id in vendor_ids:
            failure = resolver.failure_for(vendor_id)
            if failure is not None:
                vendor_failures[vendor_id] = failure.message

        vendor_warnings, promo_amounts = self._resolve_promos(command.vendor_promos, vendor_ids, vendor_failures)

        lines = []
        for request in requests:
            product = guarded("load product", get_lookups().products.get_product_detail, request.product_id)
            lines.append(
                price_line(
                    product,
                    request.vendor_store_id,
                    request.quantity,
                    previous_prices=previous_prices,
                    vendor_failure=vendor_failures.get(request.vendor_store_id),
                )
            )

        groups = aggregate_vendor_groups(lines, vendor_warnings, promo_amounts)
        totals = cart_totals(groups)

        cart = upsert_active_cart(
            command.buyer_store_id,
            lines,
            groups,
            totals,
            shipping_address=ShippingAddress.from_store_address(buyer.address),
            ad_tokens=command.ad_tokens,
        )

        logger.info(
            "cart.quoted",
            cart_id=str(cart.id),
            buyer_store_id=str(command.buyer_store_id),
            vendors=len(groups),
            invalid_vendors=len(vendor_failures),
            subtotal_cents=totals.subtotal_cents,
            discounts_cents=totals.discounts_cents,
        )
        return str(cart.id)

    @staticmethod
    def _resolve_promos(vendor_promos, vendor_ids, vendor_failures):
        """Look up requested promos for visible vendors referenced by the items."""
        now = datetime.now(UTC)
        vendor_warnings: dict[str, list[dict]] = {}
        promo_amounts: dict[str, tuple[str, int]] = {}

        requested = {}
        for promo in vendor_promos or []:
            vendor_id = str(promo.get("vendor_store_id") or "")
            code = promo.get("code")
            if vendor_id in vendor_ids and code:
                requested[vendor_id] = code

        for vendor_id, code in requested.items():
            if vendor_id in vendor_failures:
                continue
            record = guarded("load vendor promo", get_lookups().promos.get_vendor_promo, vendor_id, code)
            if record is None or record.vendor_store_id != vendor_id or not record.is_valid(now):
                vendor_warnings.setdefault(vendor_id, []).append(
                    warning(VendorGroupWarningType.INVALID_PROMO, INVALID_PROMO_MESSAGE)
                )
                continue
            promo_amounts[vendor_id] = (record.code, max(record.amount_cents, 0))

        return vendor_warnings, promo_amounts


# ---------------------------------------------------------------------------
# Service entry points
# ---------------------------------------------------------------------------
def quote_cart(buyer_store_id, items, vendor_promos=None, ad_tokens=None) -> Cart:
    if not buyer_store_id:
        raise InvalidRequest("buyer store id is required")
    cart_id = current_domain.process(
        QuoteCart(
            buyer_store_id=buyer_store_id,
            items=list(items or []),
            vendor_promos=list(vendor_promos or []),
            ad_tokens=list(ad_tokens or []),
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Cart).get(cart_id)


def get_active_cart(buyer_store_id) -> Cart:
    load_buyer(str(buyer_store_id) if buyer_store_id else "")
    cart = find_active_cart(buyer_store_id)
    if cart is None:
        raise NotFound("active cart not found")
    return cart
