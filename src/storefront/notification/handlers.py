"""Order notifications: reacts to order events and tells the customer.

Delivery is best-effort: a failing gateway is logged and the event is
considered handled. Nothing here can undo or fail the change that raised the
event.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.errors import NotificationError
from storefront.notification import get_gateway
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

logger = structlog.get_logger(__name__)


def _load_order(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id)
    except Exception as exc:
        logger.error("Failed to load order for notification", order_id=str(order_id), error=str(exc))
        return None


def _deliver(kind, order_id, send):
    order = _load_order(order_id)
    if order is None:
        return

    try:
        send(get_gateway(), order)
    except NotificationError as exc:
        logger.warning("Notification not delivered", kind=kind, order_id=str(order_id), error=str(exc))
    except Exception as exc:
        logger.error("Notification gateway error", kind=kind, order_id=str(order_id), error=str(exc))


@storefront.event_handler(part_of=Order)
class OrderNotificationHandler:
    """Sends order confirmations, status changes and payment changes."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        _deliver(
            "order_confirmation",
            event.order_id,
            lambda gateway, order: gateway.send_order_confirmation(order, str(order.customer_id)),
        )

    def _status_changed(self, event, new_status):
        _deliver(
            "status_change",
            event.order_id,
            lambda gateway, order: gateway.send_status_change(
                order, str(order.customer_id), event.previous_status, new_status.value
            ),
        )

    def _payment_changed(self, event, new_status):
        _deliver(
            "payment_change",
            event.order_id,
            lambda gateway, order: gateway.send_payment_change(
                order, str(order.customer_id), event.previous_payment_status, new_status.value
            ),
        )

    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        self._status_changed(event, OrderStatus.CONFIRMED)

    @handle(OrderProcessing)
    def on_order_processing(self, event: OrderProcessing) -> None:
        self._status_changed(event, OrderStatus.PROCESSING)

    @handle(OrderShipped)
    def on_order_shipped(self, event: OrderShipped) -> None:
        self._status_changed(event, OrderStatus.SHIPPED)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        self._status_changed(event, OrderStatus.DELIVERED)

    @handle(OrderReturned)
    def on_order_returned(self, event: OrderReturned) -> None:
        self._status_changed(event, OrderStatus.RETURNED)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        self._status_changed(event, OrderStatus.CANCELLED)

    @handle(PaymentConfirmed)
    def on_payment_confirmed(self, event: PaymentConfirmed) -> None:
        self._payment_changed(event, PaymentStatus.PAID)

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        self._payment_changed(event, PaymentStatus.FAILED)

    @handle(PaymentRefunded)
    def on_payment_refunded(self, event: PaymentRefunded) -> None:
        self._payment_changed(event, PaymentStatus.REFUNDED)

    @handle(PaymentVoided)
    def on_payment_voided(self, event: PaymentVoided) -> None:
        self._payment_changed(event, PaymentStatus.CANCELLED)
