"""Daily order stats projection: counts and revenue per calendar day (YYYY-MM-DD).

Revenue is booked on the day a payment is captured and taken back on the day
it is refunded.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    PaymentConfirmed,
    PaymentRefunded,
)
from storefront.order.order import Order


@storefront.projection
class DailyOrderStats:
    date = String(identifier=True, required=True, max_length=10)  # YYYY-MM-DD
    orders_placed = Integer(default=0)
    orders_cancelled = Integer(default=0)
    payments_captured = Integer(default=0)
    payments_refunded = Integer(default=0)
    revenue = Float(default=0.0)
    refunds = Float(default=0.0)


def _get_or_create(date_key):
    repo = current_domain.repository_for(DailyOrderStats)
    try:
        return repo.get(date_key)
    except ObjectNotFoundError:
        return DailyOrderStats(
            date=date_key,
            orders_placed=0,
            orders_cancelled=0,
            payments_captured=0,
            payments_refunded=0,
            revenue=0.0,
            refunds=0.0,
        )


@storefront.projector(projector_for=DailyOrderStats, aggregates=[Order])
class DailyOrderStatsProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        record = _get_or_create(event.placed_at.date().isoformat())
        record.orders_placed = (record.orders_placed or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        record = _get_or_create(event.cancelled_at.date().isoformat())
        record.orders_cancelled = (record.orders_cancelled or 0) + 1
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(PaymentConfirmed)
    def on_payment_confirmed(self, event):
        record = _get_or_create(event.paid_at.date().isoformat())
        record.payments_captured = (record.payments_captured or 0) + 1
        record.revenue = (record.revenue or 0.0) + (event.amount or 0.0)
        current_domain.repository_for(DailyOrderStats).add(record)

    @on(PaymentRefunded)
    def on_payment_refunded(self, event):
        record = _get_or_create(event.refunded_at.date().isoformat())
        record.payments_refunded = (record.payments_refunded or 0) + 1
        record.refunds = (record.refunds or 0.0) + (event.amount or 0.0)
        current_domain.repository_for(DailyOrderStats).add(record)
