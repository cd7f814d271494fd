"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from storefront.cart.cart import Cart
from storefront.catalogue.ledger import StockLedger
from storefront.errors import InvalidOrderStateError
from storefront.order.order import Order


@pytest.fixture()
def catalogue():
    """SKU code to owning product id, filled by Given steps."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the result or error of the When step."""
    return {"order": None, "exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" with SKU "{sku}" priced {price:d} and {stock:d} in stock'))
def _(make_product, catalogue, name, sku, price, stock):
    catalogue[sku] = make_product(
        name=name,
        base_price=float(price),
        variants=[{"sku": sku, "price": float(price), "stock": stock}],
    )


@given(parsers.cfparse('customer "{customer_id}" has {quantity:d} of "{sku}" in the cart'))
def _(add_to_cart, catalogue, customer_id, quantity, sku):
    add_to_cart(customer_id, catalogue[sku], sku, quantity)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{sku}" has {stock:d} in stock'))
def _(catalogue, sku, stock):
    assert StockLedger().available(sku, catalogue[sku]) == stock


@then(parsers.cfparse('the order status is "{status}"'))
def _(outcome, status):
    order = current_domain.repository_for(Order).get(outcome["order"].id)
    assert order.status == status


@then(parsers.cfparse('the order payment status is "{payment_status}"'))
def _(outcome, payment_status):
    order = current_domain.repository_for(Order).get(outcome["order"].id)
    assert order.payment_status == payment_status


@then("the change is rejected as an invalid transition")
def _(outcome):
    assert isinstance(outcome["exc"], InvalidOrderStateError)


@then(parsers.cfparse('the cart of customer "{customer_id}" still holds {count:d} items'))
def _(customer_id, count):
    cart = current_domain.repository_for(Cart).for_customer(customer_id)
    assert cart.total_items == count


@then(parsers.cfparse('the cart of customer "{customer_id}" is empty'))
def _(customer_id):
    cart = current_domain.repository_for(Cart).for_customer(customer_id)
    assert cart is None or cart.total_items == 0
