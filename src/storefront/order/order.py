"""Order aggregate (Event Sourced): the record of what a customer bought.

Every change is captured as a domain event and the current state is rebuilt
by replaying events through the @apply handlers below. An order walks two
independent state machines, both validated here before any event is raised,
so a rejected transition never leaves a trace.

Fulfilment:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED → RETURNED
    CANCELLED (from PENDING or CONFIRMED)

Payment:
    PENDING → PAID → REFUNDED
    PENDING → FAILED
    PENDING → CANCELLED
"""

import json
from datetime import UTC, date, datetime
from enum import Enum
from uuid import uuid4

from protean import apply, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import InvalidOrderStateError
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


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    MIDTRANS = "midtrans"
    BANK_TRANSFER = "bank_transfer"
    COD = "cod"


# State machine transition maps
_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.CANCELLED: set(),
}


def allowed_status_transitions(status):
    return _STATUS_TRANSITIONS[OrderStatus(status)]


def allowed_payment_transitions(payment_status):
    return _PAYMENT_TRANSITIONS[PaymentStatus(payment_status)]


def parse_choice(enum_cls, value, field):
    try:
        return value if isinstance(value, enum_cls) else enum_cls(value)
    except ValueError:
        raise ValidationError({field: [f"Unknown {field.replace('_', ' ')}: {value}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes, frozen at checkout time."""

    recipient_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=10)
    country = String(max_length=100, default="Indonesia")


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Price breakdown locked at checkout. The total is always derived from its parts."""

    subtotal = Float(required=True, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)

    @invariant.post
    def total_must_equal_sum_of_components(self):
        expected = self.subtotal + self.shipping_cost + self.tax_amount - self.discount_amount
        if round(self.total_amount - expected, 2) != 0:
            raise ValidationError(
                {"total_amount": [f"Total {self.total_amount} does not match components (expected {expected})"]}
            )

    @classmethod
    def compute(cls, subtotal, shipping_cost=0.0, tax_amount=0.0, discount_amount=0.0):
        return cls(
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=subtotal + shipping_cost + tax_amount - discount_amount,
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """Snapshot of a purchased SKU. Never changes after the order is placed."""

    product_id = Identifier(required=True)
    sku = String(required=True, max_length=50)
    product_name = String(required=True, max_length=255)
    size = String(max_length=20)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    weight = Integer(default=0)  # grams
    image = String(max_length=500)

    @property
    def line_total(self):
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@storefront.aggregate(is_event_sourced=True)
class Order:
    order_number = String(max_length=30)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    shipping_address = ValueObject(ShippingAddress)
    shipping_method = String(max_length=20)
    payment_method = String(choices=PaymentMethod, max_length=20)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_id = String(max_length=255)
    paid_at = DateTime()
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date
    notes = Text()
    cancel_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        order_number,
        items,
        shipping_address,
        shipping_method,
        payment_method,
        pricing,
        notes=None,
    ):
        """Record a new order.

        Uses _create_new() to get a blank aggregate with a generated identity;
        all state is established by the OrderPlaced event's @apply handler.

        Args:
            items: List of dicts with product_id, sku, product_name, size,
                   color, quantity, unit_price, weight, image.
            shipping_address: Dict of ShippingAddress fields.
            pricing: An OrderPricing value object.
        """
        if not items:
            raise ValidationError({"items": ["An order needs at least one item"]})

        method = parse_choice(PaymentMethod, payment_method, "payment_method")
        address = ShippingAddress(**shipping_address)

        now = datetime.now(UTC)
        items_with_ids = [{**item, "id": str(uuid4())} for item in items]

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                items=json.dumps(items_with_ids),
                shipping_address=json.dumps(address.to_dict()),
                shipping_method=shipping_method,
                payment_method=method.value,
                notes=notes,
                subtotal=pricing.subtotal,
                shipping_cost=pricing.shipping_cost,
                tax_amount=pricing.tax_amount,
                discount_amount=pricing.discount_amount,
                total_amount=pricing.total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target):
        current = OrderStatus(self.status)
        if target not in _STATUS_TRANSITIONS[current]:
            raise InvalidOrderStateError(current.value, target.value, field="status")

    def _assert_payment_can_transition(self, target):
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise InvalidOrderStateError(current.value, target.value, field="payment_status")

    @property
    def is_cancellable(self):
        return OrderStatus.CANCELLED in _STATUS_TRANSITIONS[OrderStatus(self.status)]

    # -------------------------------------------------------------------
    # Fulfilment transitions
    # -------------------------------------------------------------------
    def confirm(self):
        self._assert_can_transition(OrderStatus.CONFIRMED)
        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                previous_status=self.status,
                confirmed_at=datetime.now(UTC),
            )
        )

    def mark_processing(self):
        self._assert_can_transition(OrderStatus.PROCESSING)
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                previous_status=self.status,
                started_at=datetime.now(UTC),
            )
        )

    def ship(self, tracking_number, estimated_delivery=None):
        """Hand the order to the carrier. A tracking number is mandatory."""
        self._assert_can_transition(OrderStatus.SHIPPED)
        if not tracking_number:
            raise ValidationError({"tracking_number": ["Tracking number is required to ship an order"]})

        if isinstance(estimated_delivery, datetime | date):
            estimated_delivery = estimated_delivery.isoformat()[:10]

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                previous_status=self.status,
                tracking_number=tracking_number,
                estimated_delivery=estimated_delivery,
                shipped_at=datetime.now(UTC),
            )
        )

    def deliver(self):
        self._assert_can_transition(OrderStatus.DELIVERED)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                previous_status=self.status,
                delivered_at=datetime.now(UTC),
            )
        )

    def mark_returned(self):
        self._assert_can_transition(OrderStatus.RETURNED)
        self.raise_(
            OrderReturned(
                order_id=str(self.id),
                previous_status=self.status,
                returned_at=datetime.now(UTC),
            )
        )

    def cancel(self, reason=None, cancelled_by="customer"):
        """Cancel the order. A payment that was never captured is voided with it.

        Restoring stock is the caller's job, before the order is saved.
        """
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=self.status,
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )

        if PaymentStatus(self.payment_status) == PaymentStatus.PENDING:
            self.raise_(
                PaymentVoided(
                    order_id=str(self.id),
                    previous_payment_status=self.payment_status,
                    voided_at=now,
                )
            )

    def update_status(self, new_status, tracking_number=None, estimated_delivery=None, reason=None, cancelled_by="admin"):
        """Move the fulfilment status to ``new_status`` through the matching transition."""
        target = parse_choice(OrderStatus, new_status, "status")
        transitions = {
            OrderStatus.CONFIRMED: self.confirm,
            OrderStatus.PROCESSING: self.mark_processing,
            OrderStatus.SHIPPED: lambda: self.ship(tracking_number, estimated_delivery),
            OrderStatus.DELIVERED: self.deliver,
            OrderStatus.RETURNED: self.mark_returned,
            OrderStatus.CANCELLED: lambda: self.cancel(reason=reason, cancelled_by=cancelled_by),
        }
        transition = transitions.get(target)
        if transition is None:
            raise InvalidOrderStateError(self.status, target.value, field="status")
        transition()

    # -------------------------------------------------------------------
    # Payment transitions
    # -------------------------------------------------------------------
    def record_payment(self, payment_id=None):
        """Mark the payment as captured. A pending order is confirmed along with it."""
        self._assert_payment_can_transition(PaymentStatus.PAID)
        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                previous_payment_status=self.payment_status,
                payment_id=payment_id,
                amount=self.pricing.total_amount,
                paid_at=datetime.now(UTC),
            )
        )

        if OrderStatus(self.status) == OrderStatus.PENDING:
            self.confirm()

    def fail_payment(self, payment_id=None):
        self._assert_payment_can_transition(PaymentStatus.FAILED)
        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                previous_payment_status=self.payment_status,
                payment_id=payment_id,
                failed_at=datetime.now(UTC),
            )
        )

    def refund_payment(self):
        self._assert_payment_can_transition(PaymentStatus.REFUNDED)
        self.raise_(
            PaymentRefunded(
                order_id=str(self.id),
                previous_payment_status=self.payment_status,
                amount=self.pricing.total_amount,
                refunded_at=datetime.now(UTC),
            )
        )

    def void_payment(self):
        self._assert_payment_can_transition(PaymentStatus.CANCELLED)
        self.raise_(
            PaymentVoided(
                order_id=str(self.id),
                previous_payment_status=self.payment_status,
                voided_at=datetime.now(UTC),
            )
        )

    def update_payment_status(self, new_payment_status, payment_id=None):
        target = parse_choice(PaymentStatus, new_payment_status, "payment_status")
        transitions = {
            PaymentStatus.PAID: lambda: self.record_payment(payment_id),
            PaymentStatus.FAILED: lambda: self.fail_payment(payment_id),
            PaymentStatus.REFUNDED: self.refund_payment,
            PaymentStatus.CANCELLED: self.void_payment,
        }
        transition = transitions.get(target)
        if transition is None:
            raise InvalidOrderStateError(self.payment_status, target.value, field="payment_status")
        transition()

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.order_number = event.order_number
        self.customer_id = event.customer_id
        self.status = OrderStatus.PENDING.value
        self.payment_status = PaymentStatus.PENDING.value
        self.shipping_method = event.shipping_method
        self.payment_method = event.payment_method
        self.notes = event.notes
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderItem(**item_data) for item_data in items_data]

        address_data = json.loads(event.shipping_address) if isinstance(event.shipping_address, str) else {}
        if address_data:
            self.shipping_address = ShippingAddress(**address_data)

        self.pricing = OrderPricing(
            subtotal=event.subtotal,
            shipping_cost=event.shipping_cost,
            tax_amount=event.tax_amount,
            discount_amount=event.discount_amount,
            total_amount=event.total_amount,
        )

    @apply
    def _on_order_confirmed(self, event: OrderConfirmed):
        self.status = OrderStatus.CONFIRMED.value
        self.updated_at = event.confirmed_at

    @apply
    def _on_order_processing(self, event: OrderProcessing):
        self.status = OrderStatus.PROCESSING.value
        self.updated_at = event.started_at

    @apply
    def _on_order_shipped(self, event: OrderShipped):
        self.status = OrderStatus.SHIPPED.value
        self.tracking_number = event.tracking_number
        if event.estimated_delivery:
            self.estimated_delivery = event.estimated_delivery
        self.updated_at = event.shipped_at

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        self.status = OrderStatus.DELIVERED.value
        self.updated_at = event.delivered_at

    @apply
    def _on_order_returned(self, event: OrderReturned):
        self.status = OrderStatus.RETURNED.value
        self.updated_at = event.returned_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.status = OrderStatus.CANCELLED.value
        self.cancel_reason = event.reason
        self.cancelled_by = event.cancelled_by
        self.updated_at = event.cancelled_at

    @apply
    def _on_payment_confirmed(self, event: PaymentConfirmed):
        self.payment_status = PaymentStatus.PAID.value
        if event.payment_id:
            self.payment_id = event.payment_id
        self.paid_at = event.paid_at
        self.updated_at = event.paid_at

    @apply
    def _on_payment_failed(self, event: PaymentFailed):
        self.payment_status = PaymentStatus.FAILED.value
        if event.payment_id:
            self.payment_id = event.payment_id
        self.updated_at = event.failed_at

    @apply
    def _on_payment_refunded(self, event: PaymentRefunded):
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = event.refunded_at

    @apply
    def _on_payment_voided(self, event: PaymentVoided):
        self.payment_status = PaymentStatus.CANCELLED.value
        self.updated_at = event.voided_at
