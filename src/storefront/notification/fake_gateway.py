"""Fake notification gateway: records messages in memory for test assertions."""

from storefront.errors import NotificationError
from storefront.notification.gateway import NotificationGateway


class FakeNotificationGateway(NotificationGateway):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake gateway behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _record(self, kind, order, customer_id, **details):
        if not self.should_succeed:
            raise NotificationError(self.failure_reason)

        self.sent.append(
            {
                "kind": kind,
                "order_id": str(order.id),
                "order_number": order.order_number,
                "customer_id": customer_id,
                **details,
            }
        )

    def send_order_confirmation(self, order, customer_id: str) -> None:
        self._record("order_confirmation", order, customer_id)

    def send_status_change(self, order, customer_id: str, previous_status: str, new_status: str) -> None:
        self._record("status_change", order, customer_id, previous=previous_status, new=new_status)

    def send_payment_change(self, order, customer_id: str, previous_status: str, new_status: str) -> None:
        self._record("payment_change", order, customer_id, previous=previous_status, new=new_status)

    def of_kind(self, kind):
        return [message for message in self.sent if message["kind"] == kind]

    def reset(self):
        """Clear recorded messages (useful between tests)."""
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
