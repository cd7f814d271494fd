"""Pydantic request/response schemas for the Storefront API."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Linen Shirt",
                    "description": "Relaxed-fit linen shirt.",
                    "base_price": 299000,
                    "image": "https://cdn.example.com/linen-shirt.jpg",
                }
            ]
        }
    }

    name: str = Field(..., max_length=255)
    description: str | None = None
    base_price: float = Field(..., ge=0)
    image: str | None = Field(None, max_length=500)


class AddVariantRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sku": "LINEN-WHT-M",
                    "size": "M",
                    "color": "White",
                    "price": 299000,
                    "stock": 25,
                    "weight": 250,
                }
            ]
        }
    }

    sku: str = Field(..., max_length=50)
    size: str | None = Field(None, max_length=20)
    color: str | None = Field(None, max_length=50)
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    weight: int = Field(0, ge=0, description="Grams")
    image: str | None = Field(None, max_length=500)


class RestockRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class VariantResponse(BaseModel):
    variant_id: str
    sku: str
    size: str | None = None
    color: str | None = None
    price: float
    stock: int
    weight: int
    is_active: bool


class ProductResponse(BaseModel):
    product_id: str
    name: str
    description: str | None = None
    base_price: float
    image: str | None = None
    is_active: bool
    variants: list[VariantResponse]


class ProductIdResponse(BaseModel):
    product_id: str


class VariantIdResponse(BaseModel):
    variant_id: str


class StockResponse(BaseModel):
    sku: str
    stock: int


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class AddToCartRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "sku": "LINEN-WHT-M",
                    "quantity": 2,
                }
            ]
        }
    }

    product_id: str
    sku: str = Field(..., max_length=50)
    quantity: int = Field(1, ge=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItemResponse(BaseModel):
    item_id: str
    product_id: str
    sku: str
    quantity: int
    unit_price: float


class CartResponse(BaseModel):
    customer_id: str
    items: list[CartItemResponse]
    total_items: int
    total_amount: float


class ItemIdResponse(BaseModel):
    item_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class ShippingAddressSchema(BaseModel):
    recipient_name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=20)
    street: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    postal_code: str = Field(..., max_length=10)
    country: str = Field("Indonesia", max_length=100)


class CheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "recipient_name": "Sari Wulandari",
                        "phone": "+62812000111",
                        "street": "Jl. Merdeka 10",
                        "city": "Bandung",
                        "state": "Jawa Barat",
                        "postal_code": "40111",
                        "country": "Indonesia",
                    },
                    "shipping_method": "regular",
                    "payment_method": "bank_transfer",
                    "notes": "Leave at the front desk",
                }
            ]
        }
    }

    shipping_address: ShippingAddressSchema
    shipping_method: str = Field("regular", max_length=20)
    payment_method: str = Field(..., max_length=20)
    notes: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class UpdateOrderStatusRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "shipped",
                    "tracking_number": "JNE-0012345",
                    "estimated_delivery": "2026-03-14",
                }
            ]
        }
    }

    status: str
    tracking_number: str | None = Field(None, max_length=255)
    estimated_delivery: date | None = None
    reason: str | None = Field(None, max_length=500)


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str
    payment_id: str | None = Field(None, max_length=255)


class OrderItemResponse(BaseModel):
    product_id: str
    sku: str
    product_name: str
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: float
    weight: int
    image: str | None = None


class PricingResponse(BaseModel):
    subtotal: float
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    total_amount: float


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    shipping_method: str
    items: list[OrderItemResponse]
    pricing: PricingResponse
    shipping_address: ShippingAddressSchema
    payment_id: str | None = None
    paid_at: datetime | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None
    notes: str | None = None
    cancel_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderSummaryResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    item_count: int
    total_amount: float
    created_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderSummaryResponse]
    total: int
    page: int
    pages: int


class OrderStatsResponse(BaseModel):
    total_orders: int
    by_status: dict[str, int]
    by_payment_status: dict[str, int]
    total_revenue: float


class DailyStatsResponse(BaseModel):
    date: str
    orders_placed: int
    orders_cancelled: int
    payments_captured: int
    payments_refunded: int
    revenue: float
    refunds: float


class StatusResponse(BaseModel):
    status: str = "ok"
