"""Typed errors raised by checkout, the stock ledger and the order lifecycle.

User-correctable failures extend Protean's ``ValidationError`` so they carry a
``messages`` dict and map to HTTP 400 through the standard exception
handlers. Every one of them means nothing was changed and the call is safe to
retry.
"""

from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class EmptyCartError(ValidationError):
    def __init__(self, customer_id):
        self.customer_id = customer_id
        super().__init__({"cart": ["Cart is empty"]})


class ProductUnavailableError(ValidationError):
    """The product or SKU is missing or no longer active."""

    def __init__(self, sku, product_id=None, reason="Product is not available"):
        self.sku = sku
        self.product_id = product_id
        super().__init__({"sku": [f"{reason}: {sku}"]})


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the stock currently on hand."""

    def __init__(self, sku, requested, available, product_name=None):
        self.sku = sku
        self.requested = requested
        self.available = available
        self.product_name = product_name

        label = f"{product_name} ({sku})" if product_name else sku
        super().__init__({"stock": [f"Insufficient stock for {label}: {available} available, {requested} requested"]})


class InvalidOrderStateError(ValidationError):
    """A status or payment-status transition that the state machine does not allow."""

    def __init__(self, current, requested, field="status"):
        self.current = current
        self.requested = requested
        self.field = field
        super().__init__({field: [f"Cannot transition from {current} to {requested}"]})


class PersistenceError(Exception):
    """The store failed; any stock already reserved has been released again."""


class CheckoutTimeoutError(PersistenceError):
    """Checkout ran past its deadline and was rolled back."""


class StockReconciliationError(PersistenceError):
    """A failed cancellation could not take back all of the stock it had released.

    ``shortfall`` lists ``(sku, quantity)`` pairs that the catalogue now holds
    in excess of what the still-active order accounts for.
    """

    def __init__(self, order_id, shortfall):
        self.order_id = order_id
        self.shortfall = list(shortfall)
        skus = ", ".join(f"{sku} x{quantity}" for sku, quantity in self.shortfall)
        super().__init__(f"Stock for order {order_id} needs reconciliation: {skus}")


@contextmanager
def store_errors(action):
    """Re-raise anything the store throws as `PersistenceError`.

    Domain errors and missing objects pass through untouched.
    """
    try:
        yield
    except (ValidationError, ObjectNotFoundError, PersistenceError):
        raise
    except Exception as exc:
        logger.error("Store failure", action=action, error=str(exc))
        raise PersistenceError(f"Could not {action}") from exc


class NotificationError(Exception):
    """A notification could not be delivered. Logged, never surfaced."""
