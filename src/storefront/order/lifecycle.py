"""Order lifecycle: customer cancellation and the two admin transitions.

Cancelling, whoever asks for it, hands every item's stock back to the
catalogue before the new status is saved. If saving then fails, the stock is
taken again so the catalogue and the order never disagree. Units sold in the
meantime cannot be taken again; that case raises `StockReconciliationError`
naming the SKUs involved.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.ledger import StockLedger
from storefront.errors import PersistenceError, StockReconciliationError, store_errors
from storefront.order.order import Order, OrderStatus
from storefront.utils.locks import order_locks

logger = structlog.get_logger(__name__)


class OrderLifecycle:
    def __init__(self, ledger=None):
        self.ledger = ledger or StockLedger()

    # -------------------------------------------------------------------
    # Persistence seams
    # -------------------------------------------------------------------
    def _load(self, order_id) -> Order:
        return current_domain.repository_for(Order).get(order_id)

    def _load_order(self, order_id) -> Order:
        with store_errors(f"load order {order_id}"):
            return self._load(order_id)

    def _save(self, order) -> None:
        current_domain.repository_for(Order).add(order)

    # -------------------------------------------------------------------
    # Stock movements for cancellation
    # -------------------------------------------------------------------
    def _release_stock(self, order):
        """Give back every item's stock. On failure, take back what was already given."""
        released = []
        try:
            for item in order.items:
                self.ledger.increment(item.sku, item.quantity, product_id=item.product_id)
                released.append(item)
        except Exception as exc:
            logger.error(
                "Stock release failed during cancellation",
                order_id=str(order.id),
                released=len(released),
                error=str(exc),
            )
            self._retake_or_raise(order, released, exc)
            raise PersistenceError(f"Could not release stock for order {order.id}") from exc

    def _retake_stock(self, order, items):
        """Reserve ``items`` again. Returns the ``(sku, quantity)`` lines that could not be."""
        shortfall = []
        for item in items:
            try:
                taken = self.ledger.try_decrement(item.sku, item.quantity, product_id=item.product_id, require_active=False)
            except Exception as exc:
                logger.error("Stock re-reservation failed", order_id=str(order.id), sku=item.sku, error=str(exc))
                taken = False
            if not taken:
                logger.error(
                    "Could not re-reserve stock after a failed cancellation",
                    order_id=str(order.id),
                    sku=item.sku,
                    quantity=item.quantity,
                )
                shortfall.append((item.sku, item.quantity))
        return shortfall

    def _retake_or_raise(self, order, items, cause):
        shortfall = self._retake_stock(order, items)
        if shortfall:
            raise StockReconciliationError(str(order.id), shortfall) from cause

    def _cancel(self, order, reason, cancelled_by):
        order.cancel(reason=reason, cancelled_by=cancelled_by)
        self._release_stock(order)

        try:
            self._save(order)
        except Exception as exc:
            logger.error("Failed to save cancelled order", order_id=str(order.id), error=str(exc))
            self._retake_or_raise(order, order.items, exc)
            raise PersistenceError(f"Could not cancel order {order.id}") from exc

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            cancelled_by=cancelled_by,
        )
        return order

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def cancel_order(self, customer_id, order_id, reason=None) -> Order:
        """Cancel an order on behalf of the customer who placed it.

        Orders belonging to somebody else are reported as not found.
        """
        with order_locks.hold(order_id):
            order = self._load_order(order_id)
            if str(order.customer_id) != str(customer_id):
                raise ObjectNotFoundError(f"Order with id {order_id} does not exist")
            return self._cancel(order, reason=reason, cancelled_by="customer")

    def update_status(self, order_id, new_status, tracking_number=None, estimated_delivery=None, reason=None) -> Order:
        """Admin fulfilment update. Cancelling through here restores stock too."""
        with order_locks.hold(order_id):
            order = self._load_order(order_id)
            previous = order.status

            if new_status in (OrderStatus.CANCELLED, OrderStatus.CANCELLED.value):
                return self._cancel(order, reason=reason, cancelled_by="admin")

            order.update_status(new_status, tracking_number=tracking_number, estimated_delivery=estimated_delivery)
            self._persist(order)

            logger.info("Order status updated", order_id=str(order.id), previous=previous, status=order.status)
            return order

    def update_payment_status(self, order_id, new_payment_status, payment_id=None) -> Order:
        """Admin payment update. Marking a pending order paid also confirms it."""
        with order_locks.hold(order_id):
            order = self._load_order(order_id)
            previous = order.payment_status

            order.update_payment_status(new_payment_status, payment_id=payment_id)
            self._persist(order)

            logger.info(
                "Order payment status updated",
                order_id=str(order.id),
                previous=previous,
                payment_status=order.payment_status,
                status=order.status,
            )
            return order

    def _persist(self, order):
        try:
            self._save(order)
        except Exception as exc:
            logger.error("Failed to save order", order_id=str(order.id), error=str(exc))
            raise PersistenceError(f"Could not save order {order.id}") from exc
