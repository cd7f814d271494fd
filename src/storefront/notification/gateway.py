"""Notification gateway port: how the storefront tells customers about their orders."""

from abc import ABC, abstractmethod


class NotificationGateway(ABC):
    """Abstract interface for customer notification adapters.

    Implementations raise `storefront.errors.NotificationError` when a
    message cannot be delivered.
    """

    @abstractmethod
    def send_order_confirmation(self, order, customer_id: str) -> None:
        """Tell the customer their order was placed."""
        ...

    @abstractmethod
    def send_status_change(self, order, customer_id: str, previous_status: str, new_status: str) -> None:
        """Tell the customer their order moved to a new fulfilment status."""
        ...

    @abstractmethod
    def send_payment_change(self, order, customer_id: str, previous_status: str, new_status: str) -> None:
        """Tell the customer their payment status changed."""
        ...
