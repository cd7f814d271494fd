"""Tests for the Cart aggregate and its lines."""

import pytest
from protean.exceptions import ValidationError
from storefront.cart.cart import Cart
from storefront.cart.events import CartCleared, CartItemAdded, CartRestored


class TestCartCreation:
    def test_create_with_customer_id(self):
        cart = Cart.create(customer_id="cust-001")
        assert str(cart.customer_id) == "cust-001"
        assert len(cart.items) == 0

    def test_empty_cart_totals(self):
        cart = Cart.create(customer_id="cust-001")
        assert cart.total_items == 0
        assert cart.total_amount == 0


class TestCartItems:
    def test_add_item(self):
        cart = Cart.create(customer_id="cust-001")
        item_id = cart.add_item(product_id="prod-1", sku="SKU-A", quantity=2, unit_price=100.0)
        assert item_id == str(cart.items[0].id)
        assert cart.total_items == 2
        assert cart.total_amount == 200.0

    def test_add_same_sku_merges_into_one_line(self):
        cart = Cart.create(customer_id="cust-001")
        first = cart.add_item(product_id="prod-1", sku="SKU-A", quantity=1, unit_price=100.0)
        second = cart.add_item(product_id="prod-1", sku="SKU-A", quantity=2, unit_price=100.0)
        assert first == second
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_different_skus_are_separate_lines(self):
        cart = Cart.create(customer_id="cust-001")
        cart.add_item(product_id="prod-1", sku="SKU-A", quantity=1, unit_price=100.0)
        cart.add_item(product_id="prod-1", sku="SKU-B", quantity=1, unit_price=50.0)
        assert len(cart.items) == 2
        assert cart.total_amount == 150.0

    def test_add_raises_event(self):
        cart = Cart.create(customer_id="cust-001")
        cart.add_item(product_id="prod-1", sku="SKU-A", quantity=1, unit_price=100.0)
        assert isinstance(cart._events[-1], CartItemAdded)

    def test_update_quantity(self):
        cart = Cart.create(customer_id="cust-001")
        item_id = cart.add_item(product_id="prod-1", sku="SKU-A", quantity=1, unit_price=100.0)
        cart.update_item_quantity(item_id, 4)
        assert cart.items[0].quantity == 4

    def test_update_quantity_below_one_rejected(self):
        cart = Cart.create(customer_id="cust-001")
        item_id = cart.add_item(product_id="prod-1", sku="SKU-A", quantity=1, unit_price=100.0)
        with pytest.raises(ValidationError):
            cart.update_item_quantity(item_id, 0)

    def test_update_unknown_item_rejected(self):
        cart = Cart.create(customer_id="cust-001")
        with pytest.raises(ValidationError) as exc:
            cart.update_item_quantity("missing", 2)
        assert "item_id" in exc.value.messages

    def test_remove_item(self):
        cart = Cart.create(customer_id="cust-001")
        item_id = cart.add_item(product_id="prod-1", sku="SKU-A", quantity=1, unit_price=100.0)
        cart.remove_item(item_id)
        assert len(cart.items) == 0


class TestClearAndRestore:
    def test_clear_returns_removed_lines(self):
        cart = Cart.create(customer_id="cust-001")
        cart.add_item(product_id="prod-1", sku="SKU-A", quantity=2, unit_price=100.0)
        lines = cart.clear()
        assert len(cart.items) == 0
        assert lines[0]["sku"] == "SKU-A"
        assert lines[0]["quantity"] == 2
        assert isinstance(cart._events[-1], CartCleared)

    def test_clear_empty_cart_is_noop(self):
        cart = Cart.create(customer_id="cust-001")
        assert cart.clear() == []
        assert not any(isinstance(e, CartCleared) for e in cart._events)

    def test_restore_puts_lines_back(self):
        cart = Cart.create(customer_id="cust-001")
        cart.add_item(product_id="prod-1", sku="SKU-A", quantity=2, unit_price=100.0)
        cart.add_item(product_id="prod-2", sku="SKU-B", quantity=1, unit_price=40.0)
        lines = cart.clear()

        cart.restore(lines)

        assert cart.total_items == 3
        assert cart.total_amount == 240.0
        assert isinstance(cart._events[-1], CartRestored)
