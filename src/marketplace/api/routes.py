"""FastAPI routes for the Marketplace domain: carts, checkout and inventory.

The acting store is identified by the ``X-Store-Id`` header.
"""

from fastapi import APIRouter, Header
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddressSchema,
    CartItemResponse,
    CartResponse,
    CartVendorGroupResponse,
    CheckoutGroupResponse,
    CheckoutRequest,
    InventoryResponse,
    OrderLineItemResponse,
    PaymentIntentResponse,
    QuoteCartRequest,
    StockInventoryRequest,
    VendorOrderResponse,
    VolumeDiscountSchema,
)
from marketplace.cart.quoting import get_active_cart, quote_cart
from marketplace.checkout.execution import execute_checkout
from marketplace.inventory.inventory import InventoryItem
from marketplace.inventory.stocking import StockInventory
from marketplace.shared.address import ShippingAddress


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------
def _address(address) -> AddressSchema | None:
    if address is None:
        return None
    return AddressSchema(
        line1=address.line1,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country or "US",
    )


def _cart_response(cart) -> CartResponse:
    items = []
    for item in cart.ordered_items:
        discount = item.applied_volume_discount
        items.append(
            CartItemResponse(
                id=str(item.id),
                product_id=str(item.product_id),
                vendor_store_id=str(item.vendor_store_id),
                product_name=item.product_name,
                quantity=item.quantity,
                moq=item.moq,
                max_qty=item.max_qty,
                unit_price_cents=item.unit_price_cents,
                line_subtotal_cents=item.line_subtotal_cents,
                applied_volume_discount=(
                    VolumeDiscountSchema(label=discount.label, amount_cents=discount.amount_cents)
                    if discount is not None
                    else None
                ),
                status=item.status,
                warnings=item.warnings or [],
            )
        )

    groups = [
        CartVendorGroupResponse(
            vendor_store_id=str(group.vendor_store_id),
            status=group.status,
            promo_code=group.promo_code,
            subtotal_cents=group.subtotal_cents,
            discounts_cents=group.discounts_cents,
            total_cents=group.total_cents,
            warnings=group.warnings or [],
        )
        for group in cart.ordered_vendor_groups
    ]

    return CartResponse(
        id=str(cart.id),
        buyer_store_id=str(cart.buyer_store_id),
        status=cart.status,
        currency=cart.currency,
        valid_until=cart.valid_until,
        shipping_address=_address(cart.shipping_address),
        subtotal_cents=cart.subtotal_cents,
        discounts_cents=cart.discounts_cents,
        total_cents=cart.total_cents,
        ad_tokens=list(cart.ad_tokens or []),
        items=items,
        vendor_groups=groups,
    )


def _checkout_response(group) -> CheckoutGroupResponse:
    orders = []
    for order in group.ordered_vendor_orders:
        intent = order.payment_intent
        orders.append(
            VendorOrderResponse(
                id=str(order.id),
                vendor_store_id=str(order.vendor_store_id),
                status=order.status,
                subtotal_cents=order.subtotal_cents,
                discounts_cents=order.discounts_cents,
                total_cents=order.total_cents,
                balance_due_cents=order.balance_due_cents,
                payment_method=order.payment_method,
                line_items=[
                    OrderLineItemResponse(
                        id=str(line.id),
                        product_id=str(line.product_id),
                        product_name=line.product_name,
                        quantity=line.quantity,
                        unit_price_cents=line.unit_price_cents,
                        line_subtotal_cents=line.line_subtotal_cents,
                        discount_cents=line.discount_cents,
                        status=line.status,
                        notes=line.notes,
                    )
                    for line in order.ordered_line_items
                ],
                payment_intent=(
                    PaymentIntentResponse(
                        method=intent.method,
                        status=intent.status,
                        amount_cents=intent.amount_cents,
                    )
                    if intent is not None
                    else None
                ),
            )
        )
    return CheckoutGroupResponse(
        id=str(group.id),
        buyer_store_id=str(group.buyer_store_id),
        cart_id=str(group.cart_id),
        vendor_orders=orders,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("/quote", response_model=CartResponse)
async def quote(body: QuoteCartRequest, x_store_id: str | None = Header(None, alias="X-Store-Id")) -> CartResponse:
    cart = quote_cart(
        buyer_store_id=x_store_id,
        items=[item.model_dump() for item in body.items],
        vendor_promos=[promo.model_dump() for promo in body.vendor_promos],
        ad_tokens=body.ad_tokens,
    )
    return _cart_response(cart)


@cart_router.get("/active", response_model=CartResponse)
async def active_cart(x_store_id: str | None = Header(None, alias="X-Store-Id")) -> CartResponse:
    return _cart_response(get_active_cart(x_store_id))


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutGroupResponse)
async def checkout(
    body: CheckoutRequest, x_store_id: str | None = Header(None, alias="X-Store-Id")
) -> CheckoutGroupResponse:
    shipping_address = (
        ShippingAddress(**body.shipping_address.model_dump()) if body.shipping_address is not None else None
    )
    group = execute_checkout(
        buyer_store_id=x_store_id,
        cart_id=body.cart_id,
        payment_method=body.payment_method,
        shipping_address=shipping_address,
    )
    return _checkout_response(group)


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


def _inventory_response(item) -> InventoryResponse:
    return InventoryResponse(
        product_id=str(item.product_id),
        available_qty=item.available_qty,
        reserved_qty=item.reserved_qty,
    )


@inventory_router.post("", status_code=201, response_model=InventoryResponse)
async def stock_inventory(body: StockInventoryRequest) -> InventoryResponse:
    command = StockInventory(product_id=body.product_id, available_qty=body.available_qty)
    product_id = current_domain.process(command, asynchronous=False)
    return _inventory_response(current_domain.repository_for(InventoryItem).get(product_id))


@inventory_router.get("/{product_id}", response_model=InventoryResponse)
async def get_inventory(product_id: str) -> InventoryResponse:
    return _inventory_response(current_domain.repository_for(InventoryItem).get(product_id))
