"""Order summary: one row per order for listings, searches and stats."""

import json

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderReturned,
    OrderShipped,
    PaymentConfirmed,
    PaymentFailed,
    PaymentRefunded,
    PaymentVoided,
)
from storefront.order.order import Order, OrderStatus, PaymentStatus


@storefront.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(required=True, max_length=30)
    customer_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    payment_status = String(required=True, max_length=20)
    payment_method = String(max_length=20)
    shipping_method = String(max_length=20)
    item_count = Integer(default=0)
    total_quantity = Integer(default=0)
    total_amount = Float(default=0.0)
    tracking_number = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()


@storefront.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        items = json.loads(event.items) if isinstance(event.items, str) else []
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                order_number=event.order_number,
                customer_id=event.customer_id,
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                payment_method=event.payment_method,
                shipping_method=event.shipping_method,
                item_count=len(items),
                total_quantity=sum(item["quantity"] for item in items),
                total_amount=event.total_amount,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update(self, order_id, updated_at=None, **changes):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(order_id)
        for field, value in changes.items():
            setattr(summary, field, value)
        if updated_at:
            summary.updated_at = updated_at
        repo.add(summary)

    @on(OrderConfirmed)
    def on_order_confirmed(self, event):
        self._update(event.order_id, event.confirmed_at, status=OrderStatus.CONFIRMED.value)

    @on(OrderProcessing)
    def on_order_processing(self, event):
        self._update(event.order_id, event.started_at, status=OrderStatus.PROCESSING.value)

    @on(OrderShipped)
    def on_order_shipped(self, event):
        self._update(
            event.order_id,
            event.shipped_at,
            status=OrderStatus.SHIPPED.value,
            tracking_number=event.tracking_number,
        )

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update(event.order_id, event.delivered_at, status=OrderStatus.DELIVERED.value)

    @on(OrderReturned)
    def on_order_returned(self, event):
        self._update(event.order_id, event.returned_at, status=OrderStatus.RETURNED.value)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update(event.order_id, event.cancelled_at, status=OrderStatus.CANCELLED.value)

    @on(PaymentConfirmed)
    def on_payment_confirmed(self, event):
        self._update(event.order_id, event.paid_at, payment_status=PaymentStatus.PAID.value)

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        self._update(event.order_id, event.failed_at, payment_status=PaymentStatus.FAILED.value)

    @on(PaymentRefunded)
    def on_payment_refunded(self, event):
        self._update(event.order_id, event.refunded_at, payment_status=PaymentStatus.REFUNDED.value)

    @on(PaymentVoided)
    def on_payment_voided(self, event):
        self._update(event.order_id, event.voided_at, payment_status=PaymentStatus.CANCELLED.value)
