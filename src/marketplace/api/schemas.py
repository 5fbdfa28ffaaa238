"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands and aggregates.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    line1: str
    city: str
    state: str
    postal_code: str
    country: str = "US"


class WarningSchema(BaseModel):
    type: str
    message: str


class VolumeDiscountSchema(BaseModel):
    label: str
    amount_cents: int


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class QuoteItemRequest(BaseModel):
    product_id: str
    vendor_store_id: str
    quantity: int


class VendorPromoRequest(BaseModel):
    vendor_store_id: str
    code: str


class QuoteCartRequest(BaseModel):
    items: list[QuoteItemRequest]
    vendor_promos: list[VendorPromoRequest] = Field(default_factory=list)
    ad_tokens: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"product_id": "prod-001", "vendor_store_id": "vendor-001", "quantity": 12},
                    ],
                    "vendor_promos": [{"vendor_store_id": "vendor-001", "code": "SPRING10"}],
                    "ad_tokens": [],
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartItemResponse(BaseModel):
    id: str
    product_id: str
    vendor_store_id: str
    product_name: str | None = None
    quantity: int
    moq: int
    max_qty: int | None = None
    unit_price_cents: int
    line_subtotal_cents: int
    applied_volume_discount: VolumeDiscountSchema | None = None
    status: str
    warnings: list[WarningSchema] = Field(default_factory=list)


class CartVendorGroupResponse(BaseModel):
    vendor_store_id: str
    status: str
    promo_code: str | None = None
    subtotal_cents: int
    discounts_cents: int
    total_cents: int
    warnings: list[WarningSchema] = Field(default_factory=list)


class CartResponse(BaseModel):
    id: str
    buyer_store_id: str
    status: str
    currency: str
    valid_until: datetime | None = None
    shipping_address: AddressSchema | None = None
    subtotal_cents: int
    discounts_cents: int
    total_cents: int
    ad_tokens: list[str] = Field(default_factory=list)
    items: list[CartItemResponse]
    vendor_groups: list[CartVendorGroupResponse]


# ---------------------------------------------------------------------------
# Checkout Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    cart_id: str
    payment_method: str | None = None
    shipping_address: AddressSchema | None = None


class PaymentIntentResponse(BaseModel):
    method: str
    status: str
    amount_cents: int


class OrderLineItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price_cents: int
    line_subtotal_cents: int
    discount_cents: int
    status: str
    notes: str | None = None


class VendorOrderResponse(BaseModel):
    id: str
    vendor_store_id: str
    status: str
    subtotal_cents: int
    discounts_cents: int
    total_cents: int
    balance_due_cents: int
    payment_method: str
    line_items: list[OrderLineItemResponse]
    payment_intent: PaymentIntentResponse | None = None


class CheckoutGroupResponse(BaseModel):
    id: str
    buyer_store_id: str
    cart_id: str
    vendor_orders: list[VendorOrderResponse]


# ---------------------------------------------------------------------------
# Inventory Schemas
# ---------------------------------------------------------------------------
class StockInventoryRequest(BaseModel):
    product_id: str
    available_qty: int = Field(ge=0)


class InventoryResponse(BaseModel):
    product_id: str
    available_qty: int
    reserved_qty: int


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict | list | None = None
