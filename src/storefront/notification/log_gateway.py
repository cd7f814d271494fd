"""Notification gateway that only writes log records. Used until a mail provider is wired in."""

import structlog

from storefront.notification.gateway import NotificationGateway

logger = structlog.get_logger(__name__)


class LogNotificationGateway(NotificationGateway):
    def send_order_confirmation(self, order, customer_id: str) -> None:
        logger.info(
            "Order confirmation",
            customer_id=customer_id,
            order_number=order.order_number,
            total_amount=order.pricing.total_amount,
        )

    def send_status_change(self, order, customer_id: str, previous_status: str, new_status: str) -> None:
        logger.info(
            "Order status change",
            customer_id=customer_id,
            order_number=order.order_number,
            previous_status=previous_status,
            new_status=new_status,
            tracking_number=order.tracking_number,
        )

    def send_payment_change(self, order, customer_id: str, previous_status: str, new_status: str) -> None:
        logger.info(
            "Order payment change",
            customer_id=customer_id,
            order_number=order.order_number,
            previous_status=previous_status,
            new_status=new_status,
        )
