"""Domain events for the Order aggregate.

Orders are event sourced: these events are the order's state, replayed
through the aggregate's @apply handlers. Transition events carry the status
they left so that projections and notifications do not need to reload the
order.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer's cart was turned into an order and its stock reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item snapshots
    shipping_address = Text(required=True)  # JSON: address dict
    shipping_method = String(required=True)
    payment_method = String(required=True)
    notes = Text()
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    tax_amount = Float(required=True)
    discount_amount = Float(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderProcessing:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    started_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse with a tracking number."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    tracking_number = String(required=True)
    estimated_delivery = String(max_length=10)  # ISO date
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderReturned:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    returned_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled and its stock handed back to the catalogue."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(max_length=500)
    cancelled_by = String(required=True, max_length=50)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    payment_id = String(max_length=255)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    payment_id = String(max_length=255)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentVoided:
    """A payment that was never captured was called off."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    voided_at = DateTime(required=True)
