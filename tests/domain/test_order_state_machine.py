"""Tests for the Order aggregate's fulfilment and payment state machines."""

import pytest
from protean.exceptions import ValidationError
from storefront.errors import InvalidOrderStateError
from storefront.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPlaced,
    OrderShipped,
    PaymentConfirmed,
    PaymentVoided,
)
from storefront.order.order import (
    Order,
    OrderPricing,
    OrderStatus,
    PaymentStatus,
    allowed_payment_transitions,
    allowed_status_transitions,
)

ITEMS = [
    {
        "product_id": "prod-1",
        "sku": "SKU-A",
        "product_name": "Linen Shirt",
        "size": "M",
        "color": "White",
        "quantity": 2,
        "unit_price": 299000.0,
        "weight": 250,
        "image": None,
    }
]

ADDRESS = {
    "recipient_name": "Sari",
    "phone": "+62812000111",
    "street": "Jl. Merdeka 10",
    "city": "Bandung",
    "state": "Jawa Barat",
    "postal_code": "40111",
}


def _place(payment_method="bank_transfer"):
    return Order.place(
        customer_id="cust-001",
        order_number="ARC-20260101-AAAAA",
        items=ITEMS,
        shipping_address=ADDRESS,
        shipping_method="regular",
        payment_method=payment_method,
        pricing=OrderPricing.compute(subtotal=598000.0, shipping_cost=15000.0),
        notes="Ring the bell",
    )


def _advance(order, *steps):
    for step in steps:
        step(order)
    return order


class TestPlacement:
    def test_place_starts_pending(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value

    def test_place_snapshots_items_and_pricing(self):
        order = _place()
        assert len(order.items) == 1
        assert order.items[0].line_total == 598000.0
        assert order.pricing.total_amount == 613000.0
        assert order.shipping_address.country == "Indonesia"
        assert order.notes == "Ring the bell"

    def test_place_raises_order_placed(self):
        order = _place()
        assert isinstance(order._events[0], OrderPlaced)
        assert order._events[0].order_number == "ARC-20260101-AAAAA"

    def test_place_without_items_rejected(self):
        with pytest.raises(ValidationError):
            Order.place(
                customer_id="cust-001",
                order_number="ARC-20260101-AAAAA",
                items=[],
                shipping_address=ADDRESS,
                shipping_method="regular",
                payment_method="cod",
                pricing=OrderPricing.compute(subtotal=100.0),
            )

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _place(payment_method="barter")
        assert "payment_method" in exc.value.messages


class TestFulfilmentTransitions:
    def test_full_happy_path(self):
        order = _place()
        order.confirm()
        order.mark_processing()
        order.ship("JNE-001", estimated_delivery="2026-03-14")
        order.deliver()
        order.mark_returned()
        assert order.status == OrderStatus.RETURNED.value
        assert order.tracking_number == "JNE-001"
        assert order.estimated_delivery == "2026-03-14"

    def test_confirm_records_previous_status(self):
        order = _place()
        order.confirm()
        event = order._events[-1]
        assert isinstance(event, OrderConfirmed)
        assert event.previous_status == OrderStatus.PENDING.value

    def test_pending_to_delivered_rejected(self):
        order = _place()
        with pytest.raises(InvalidOrderStateError) as exc:
            order.update_status("delivered")
        assert exc.value.current == "pending"
        assert exc.value.requested == "delivered"
        assert order.status == OrderStatus.PENDING.value

    def test_rejected_transition_raises_no_event(self):
        order = _place()
        events_before = len(order._events)
        with pytest.raises(InvalidOrderStateError):
            order.deliver()
        assert len(order._events) == events_before

    def test_ship_requires_tracking_number(self):
        order = _advance(_place(), Order.confirm, Order.mark_processing)
        with pytest.raises(ValidationError) as exc:
            order.ship(None)
        assert "tracking_number" in exc.value.messages

    def test_ship_accepts_date_for_estimated_delivery(self):
        from datetime import date

        order = _advance(_place(), Order.confirm, Order.mark_processing)
        order.ship("JNE-002", estimated_delivery=date(2026, 3, 14))
        assert isinstance(order._events[-1], OrderShipped)
        assert order.estimated_delivery == "2026-03-14"

    def test_unknown_status_rejected(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.update_status("teleported")
        assert "status" in exc.value.messages

    def test_update_to_pending_rejected(self):
        order = _place()
        with pytest.raises(InvalidOrderStateError):
            order.update_status("pending")

    def test_transition_maps(self):
        assert allowed_status_transitions("pending") == {OrderStatus.CONFIRMED, OrderStatus.CANCELLED}
        assert allowed_status_transitions("cancelled") == set()
        assert allowed_payment_transitions("paid") == {PaymentStatus.REFUNDED}


class TestCancellation:
    def test_cancel_pending_order_voids_payment(self):
        order = _place()
        order.cancel(reason="Changed my mind")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.CANCELLED.value
        assert order.cancel_reason == "Changed my mind"
        assert isinstance(order._events[-2], OrderCancelled)
        assert isinstance(order._events[-1], PaymentVoided)

    def test_cancel_confirmed_order(self):
        order = _advance(_place(), Order.confirm)
        assert order.is_cancellable
        order.cancel(cancelled_by="admin")
        assert order.cancelled_by == "admin"

    def test_cancel_paid_order_keeps_payment_status(self):
        order = _place()
        order.record_payment("pay-001")
        order.cancel()
        assert order.payment_status == PaymentStatus.PAID.value

    def test_cannot_cancel_processing_order(self):
        order = _advance(_place(), Order.confirm, Order.mark_processing)
        assert not order.is_cancellable
        with pytest.raises(InvalidOrderStateError):
            order.cancel()

    def test_cannot_cancel_twice(self):
        order = _place()
        order.cancel()
        with pytest.raises(InvalidOrderStateError):
            order.cancel()


class TestPaymentTransitions:
    def test_record_payment_confirms_pending_order(self):
        order = _place()
        order.record_payment("pay-001")
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.payment_id == "pay-001"
        assert order.paid_at is not None

    def test_record_payment_captures_total(self):
        order = _place()
        order.update_payment_status("paid", payment_id="pay-001")
        captured = [e for e in order._events if isinstance(e, PaymentConfirmed)]
        assert captured[0].amount == 613000.0

    def test_record_payment_on_confirmed_order_keeps_status(self):
        order = _advance(_place(), Order.confirm)
        order.record_payment("pay-001")
        assert order.status == OrderStatus.CONFIRMED.value

    def test_refund_after_payment(self):
        order = _place()
        order.record_payment("pay-001")
        order.update_payment_status("refunded")
        assert order.payment_status == PaymentStatus.REFUNDED.value

    def test_refund_unpaid_order_rejected(self):
        order = _place()
        with pytest.raises(InvalidOrderStateError) as exc:
            order.update_payment_status("refunded")
        assert exc.value.field == "payment_status"

    def test_failed_payment_is_terminal(self):
        order = _place()
        order.update_payment_status("failed")
        with pytest.raises(InvalidOrderStateError):
            order.update_payment_status("paid")

    def test_unknown_payment_status_rejected(self):
        order = _place()
        with pytest.raises(ValidationError):
            order.update_payment_status("bitcoin")
