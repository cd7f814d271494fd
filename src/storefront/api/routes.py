"""FastAPI routes for the storefront: catalogue, cart, orders and admin.

Customer-facing routes identify the caller with the ``X-Customer-Id`` header;
authentication happens in front of this service.
"""

from datetime import datetime

from fastapi import APIRouter, Header
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddToCartRequest,
    AddVariantRequest,
    CancelOrderRequest,
    CartItemResponse,
    CartResponse,
    CheckoutRequest,
    CreateProductRequest,
    DailyStatsResponse,
    ItemIdResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    OrderSummaryResponse,
    PricingResponse,
    ProductIdResponse,
    ProductResponse,
    RestockRequest,
    ShippingAddressSchema,
    StatusResponse,
    StockResponse,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
    VariantIdResponse,
    VariantResponse,
)
from storefront.cart.cart import Cart
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from storefront.catalogue.ledger import StockLedger
from storefront.catalogue.management import (
    ActivateProduct,
    AddVariant,
    CreateProduct,
    DeactivateProduct,
)
from storefront.catalogue.product import Product, normalize_sku
from storefront.checkout.workflow import CheckoutWorkflow
from storefront.order import queries
from storefront.order.lifecycle import OrderLifecycle
from storefront.order.order import Order


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------
def _product_response(product) -> ProductResponse:
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        description=product.description,
        base_price=product.base_price,
        image=product.image,
        is_active=product.is_active,
        variants=[
            VariantResponse(
                variant_id=str(v.id),
                sku=v.sku,
                size=v.size,
                color=v.color,
                price=v.price,
                stock=v.stock,
                weight=v.weight or 0,
                is_active=v.is_active,
            )
            for v in product.variants
        ],
    )


def _cart_response(customer_id, cart) -> CartResponse:
    if cart is None:
        return CartResponse(customer_id=customer_id, items=[], total_items=0, total_amount=0.0)
    return CartResponse(
        customer_id=str(cart.customer_id),
        items=[
            CartItemResponse(
                item_id=str(i.id),
                product_id=str(i.product_id),
                sku=i.sku,
                quantity=i.quantity,
                unit_price=i.unit_price,
            )
            for i in cart.items
        ],
        total_items=cart.total_items,
        total_amount=cart.total_amount,
    )


def _order_response(order) -> OrderResponse:
    address = order.shipping_address
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        shipping_method=order.shipping_method,
        items=[
            OrderItemResponse(
                product_id=str(i.product_id),
                sku=i.sku,
                product_name=i.product_name,
                size=i.size,
                color=i.color,
                quantity=i.quantity,
                unit_price=i.unit_price,
                weight=i.weight or 0,
                image=i.image,
            )
            for i in order.items
        ],
        pricing=PricingResponse(
            subtotal=order.pricing.subtotal,
            shipping_cost=order.pricing.shipping_cost,
            tax_amount=order.pricing.tax_amount,
            discount_amount=order.pricing.discount_amount,
            total_amount=order.pricing.total_amount,
        ),
        shipping_address=ShippingAddressSchema(
            recipient_name=address.recipient_name,
            phone=address.phone,
            street=address.street,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        ),
        payment_id=order.payment_id,
        paid_at=order.paid_at,
        tracking_number=order.tracking_number,
        estimated_delivery=order.estimated_delivery,
        notes=order.notes,
        cancel_reason=order.cancel_reason,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _order_list_response(result) -> OrderListResponse:
    return OrderListResponse(
        orders=[
            OrderSummaryResponse(
                order_id=str(s.order_id),
                order_number=s.order_number,
                customer_id=str(s.customer_id),
                status=s.status,
                payment_status=s.payment_status,
                item_count=s.item_count or 0,
                total_amount=s.total_amount or 0.0,
                created_at=s.created_at,
            )
            for s in result["orders"]
        ],
        total=result["total"],
        page=result["page"],
        pages=result["pages"],
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest) -> ProductIdResponse:
    command = CreateProduct(
        name=body.name,
        description=body.description,
        base_price=body.base_price,
        image=body.image,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = current_domain.repository_for(Product).get(product_id)
    return _product_response(product)


@product_router.post("/{product_id}/variants", status_code=201, response_model=VariantIdResponse)
async def add_variant(product_id: str, body: AddVariantRequest) -> VariantIdResponse:
    command = AddVariant(
        product_id=product_id,
        sku=body.sku,
        size=body.size,
        color=body.color,
        price=body.price,
        stock=body.stock,
        weight=body.weight,
        image=body.image,
    )
    result = current_domain.process(command, asynchronous=False)
    return VariantIdResponse(variant_id=result)


@product_router.put("/{product_id}/activate", response_model=StatusResponse)
async def activate_product(product_id: str) -> StatusResponse:
    current_domain.process(ActivateProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/deactivate", response_model=StatusResponse)
async def deactivate_product(product_id: str) -> StatusResponse:
    current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


@product_router.put("/{product_id}/variants/{sku}/restock", response_model=StockResponse)
async def restock_variant(product_id: str, sku: str, body: RestockRequest) -> StockResponse:
    stock = StockLedger().restock(sku, body.quantity, product_id=product_id)
    return StockResponse(sku=normalize_sku(sku), stock=stock)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(x_customer_id: str = Header(...)) -> CartResponse:
    cart = current_domain.repository_for(Cart).for_customer(x_customer_id)
    return _cart_response(x_customer_id, cart)


@cart_router.post("/items", status_code=201, response_model=ItemIdResponse)
async def add_cart_item(body: AddToCartRequest, x_customer_id: str = Header(...)) -> ItemIdResponse:
    command = AddToCart(
        customer_id=x_customer_id,
        product_id=body.product_id,
        sku=body.sku,
        quantity=body.quantity,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=result)


@cart_router.put("/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(
    item_id: str, body: UpdateCartQuantityRequest, x_customer_id: str = Header(...)
) -> StatusResponse:
    command = UpdateCartQuantity(
        customer_id=x_customer_id,
        item_id=item_id,
        new_quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(item_id: str, x_customer_id: str = Header(...)) -> StatusResponse:
    current_domain.process(RemoveFromCart(customer_id=x_customer_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(x_customer_id: str = Header(...)) -> StatusResponse:
    current_domain.process(ClearCart(customer_id=x_customer_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest, x_customer_id: str = Header(...)) -> OrderResponse:
    order = CheckoutWorkflow().checkout(
        customer_id=x_customer_id,
        shipping_address=body.shipping_address.model_dump(),
        shipping_method=body.shipping_method,
        payment_method=body.payment_method,
        notes=body.notes,
    )
    return _order_response(order)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
    x_customer_id: str = Header(...),
) -> OrderListResponse:
    result = queries.customer_orders(x_customer_id, status=status, page=page, limit=limit)
    return _order_list_response(result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, x_customer_id: str = Header(...)) -> OrderResponse:
    return _order_response(queries.customer_order(x_customer_id, order_id))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest | None = None, x_customer_id: str = Header(...)
) -> OrderResponse:
    reason = body.reason if body else None
    order = OrderLifecycle().cancel_order(x_customer_id, order_id, reason=reason)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_router.get("", response_model=OrderListResponse)
async def admin_list_orders(
    status: str | None = None,
    payment_status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> OrderListResponse:
    result = queries.admin_orders(
        status=status,
        payment_status=payment_status,
        search=search,
        page=page,
        limit=limit,
    )
    return _order_list_response(result)


@admin_router.get("/stats", response_model=OrderStatsResponse)
async def admin_order_stats(start: datetime | None = None, end: datetime | None = None) -> OrderStatsResponse:
    return OrderStatsResponse(**queries.order_stats(start=start, end=end))


@admin_router.get("/stats/daily", response_model=list[DailyStatsResponse])
async def admin_daily_stats(start_date: str | None = None, end_date: str | None = None) -> list[DailyStatsResponse]:
    return [
        DailyStatsResponse(
            date=row.date,
            orders_placed=row.orders_placed or 0,
            orders_cancelled=row.orders_cancelled or 0,
            payments_captured=row.payments_captured or 0,
            payments_refunded=row.payments_refunded or 0,
            revenue=row.revenue or 0.0,
            refunds=row.refunds or 0.0,
        )
        for row in queries.daily_stats(start_date=start_date, end_date=end_date)
    ]


@admin_router.get("/{order_id}", response_model=OrderResponse)
async def admin_get_order(order_id: str) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).get(order_id))


@admin_router.put("/{order_id}/status", response_model=OrderResponse)
async def admin_update_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    order = OrderLifecycle().update_status(
        order_id,
        body.status,
        tracking_number=body.tracking_number,
        estimated_delivery=body.estimated_delivery,
        reason=body.reason,
    )
    return _order_response(order)


@admin_router.put("/{order_id}/payment", response_model=OrderResponse)
async def admin_update_payment(order_id: str, body: UpdatePaymentStatusRequest) -> OrderResponse:
    order = OrderLifecycle().update_payment_status(order_id, body.payment_status, payment_id=body.payment_id)
    return _order_response(order)
