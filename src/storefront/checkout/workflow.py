"""Checkout: turns a customer's cart into an order without overselling stock.

Steps, in order:

1. Validate the payment method and shipping address.
2. Load the cart; an empty or missing cart is an `EmptyCartError`.
3. Re-read every product and SKU from the catalogue and check stock.
4. Snapshot the lines, price the order and build it in memory.
5. Reserve stock line by line through the ledger.
6. Clear the cart, then save the order.

A store failure before step 5 surfaces as `PersistenceError` with nothing
to undo. Anything that goes wrong once step 5 has started is undone before the error
leaves this module: reserved stock is released, and if the order could not
be saved the cart gets its lines back. A caller that sees an error can
always retry.

Confirmation e-mails are not sent from here; they follow from the
OrderPlaced event.
"""

import time

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.ledger import StockLedger
from storefront.checkout.pricing import price_order, snapshot_item
from storefront.checkout.shipping import calculate_shipping_cost
from storefront.config import setting
from storefront.errors import (
    CheckoutTimeoutError,
    EmptyCartError,
    InsufficientStockError,
    PersistenceError,
    store_errors,
)
from storefront.order.numbering import next_order_number
from storefront.order.order import Order, PaymentMethod, ShippingAddress
from storefront.utils.locks import customer_locks

logger = structlog.get_logger(__name__)


class CheckoutWorkflow:
    def __init__(self, ledger=None, shipping_cost=calculate_shipping_cost, clock=time.monotonic, deadline_seconds=None):
        self.ledger = ledger or StockLedger()
        self.shipping_cost = shipping_cost
        self.clock = clock
        self.deadline_seconds = deadline_seconds

    def checkout(self, customer_id, shipping_address, shipping_method, payment_method, notes=None) -> Order:
        """Place an order for everything in the customer's cart.

        Checkouts for the same customer run one at a time, so one cart can
        only ever become one order.
        """
        with customer_locks.hold(customer_id):
            return self._checkout(str(customer_id), shipping_address, shipping_method, payment_method, notes)

    def _checkout(self, customer_id, shipping_address, shipping_method, payment_method, notes):
        log = logger.bind(customer_id=customer_id)
        deadline = self.clock() + float(self.deadline_seconds or setting("CHECKOUT_DEADLINE_SECONDS"))

        self._validate_request(shipping_address, shipping_method, payment_method)

        with store_errors("load the cart"):
            cart = self._load_cart(customer_id)
        if cart is None or not cart.items:
            raise EmptyCartError(customer_id)

        with store_errors("read the catalogue"):
            items = self._validate_lines(cart)
        pricing = price_order(items, shipping_method, shipping_cost=self.shipping_cost)
        with store_errors("allocate an order number"):
            order_number = next_order_number()
        order = Order.place(
            customer_id=customer_id,
            order_number=order_number,
            items=items,
            shipping_address=shipping_address,
            shipping_method=shipping_method,
            payment_method=payment_method,
            pricing=pricing,
            notes=notes,
        )

        reserved = []
        try:
            for item in items:
                self._check_deadline(deadline)
                if not self.ledger.try_decrement(item["sku"], item["quantity"], product_id=item["product_id"]):
                    raise InsufficientStockError(
                        sku=item["sku"],
                        requested=item["quantity"],
                        available=self.ledger.available(item["sku"], item["product_id"]),
                        product_name=item["product_name"],
                    )
                reserved.append(item)

            self._check_deadline(deadline)
            self._commit(cart, order)
        except Exception as exc:
            self._release(reserved, log)
            if isinstance(exc, ValidationError | PersistenceError):
                raise
            log.error("Checkout failed while saving", error=str(exc))
            raise PersistenceError("Checkout could not be completed") from exc

        log.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            items=len(items),
            total_amount=order.pricing.total_amount,
        )
        return order

    # -------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------
    def _validate_request(self, shipping_address, shipping_method, payment_method):
        if not shipping_method:
            raise ValidationError({"shipping_method": ["Shipping method is required"]})
        if payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {payment_method}"]})
        if not isinstance(shipping_address, dict):
            raise ValidationError({"shipping_address": ["Shipping address is required"]})
        ShippingAddress(**shipping_address)

    def _validate_lines(self, cart):
        """Check every cart line against the live catalogue and snapshot it."""
        items = []
        for line in cart.items:
            product, variant = self.ledger.get_product_and_sku(line.product_id, line.sku)
            if variant.stock < line.quantity:
                raise InsufficientStockError(
                    sku=variant.sku,
                    requested=line.quantity,
                    available=variant.stock,
                    product_name=product.name,
                )
            items.append(snapshot_item(product, variant, line.quantity))
        return items

    def _check_deadline(self, deadline):
        if self.clock() > deadline:
            raise CheckoutTimeoutError("Checkout deadline exceeded")

    # -------------------------------------------------------------------
    # Persistence seams
    # -------------------------------------------------------------------
    def _load_cart(self, customer_id):
        return current_domain.repository_for(Cart).for_customer(customer_id)

    def _save_cart(self, cart):
        current_domain.repository_for(Cart).add(cart)

    def _save_order(self, order):
        current_domain.repository_for(Order).add(order)

    def _commit(self, cart, order):
        lines = cart.clear()
        self._save_cart(cart)

        try:
            self._save_order(order)
        except Exception:
            self._restore_cart(cart.customer_id, lines)
            raise

    # -------------------------------------------------------------------
    # Compensation
    # -------------------------------------------------------------------
    def _release(self, reserved, log):
        for item in reserved:
            try:
                self.ledger.increment(item["sku"], item["quantity"], product_id=item["product_id"])
            except Exception as exc:
                log.error(
                    "Failed to release reserved stock",
                    sku=item["sku"],
                    quantity=item["quantity"],
                    error=str(exc),
                )
        if reserved:
            log.warning("Released stock reserved by a failed checkout", lines=len(reserved))

    def _restore_cart(self, customer_id, lines):
        repo = current_domain.repository_for(Cart)
        try:
            cart = repo.get_or_create(customer_id)
            cart.restore(lines)
            repo.add(cart)
        except Exception as exc:
            logger.error("Failed to restore cart after checkout failure", customer_id=str(customer_id), error=str(exc))
