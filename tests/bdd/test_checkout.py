"""BDD tests for checkout."""

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.catalogue.ledger import StockLedger
from storefront.catalogue.management import AddVariant
from storefront.checkout.workflow import CheckoutWorkflow
from storefront.errors import EmptyCartError, InsufficientStockError

scenarios("features/checkout.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the product also has SKU "{sku}" priced {price:d} and {stock:d} in stock'))
def _(catalogue, sku, price, stock):
    product_id = next(iter(catalogue.values()))
    current_domain.process(
        AddVariant(product_id=product_id, sku=sku, price=float(price), stock=stock),
        asynchronous=False,
    )
    catalogue[sku] = product_id


@given(parsers.cfparse('someone else buys the last "{sku}"'))
def _(catalogue, sku):
    assert StockLedger().try_decrement(sku, 1, product_id=catalogue[sku])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('customer "{customer_id}" checks out paying by "{payment_method}"'))
def _(outcome, shipping_address, customer_id, payment_method):
    try:
        outcome["order"] = CheckoutWorkflow().checkout(
            customer_id=customer_id,
            shipping_address=shipping_address,
            shipping_method="regular",
            payment_method=payment_method,
        )
    except ValidationError as exc:
        outcome["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("an order is placed with total {total:d}"))
def _(outcome, total):
    assert outcome["exc"] is None
    assert outcome["order"].pricing.total_amount == total


@then("an order confirmation is sent")
def _(gateway, outcome):
    sent = gateway.of_kind("order_confirmation")
    assert [m["order_id"] for m in sent] == [str(outcome["order"].id)]


@then("the checkout is refused because the cart is empty")
def _(outcome):
    assert isinstance(outcome["exc"], EmptyCartError)
    assert outcome["order"] is None


@then(parsers.cfparse('the checkout is refused for insufficient stock of "{sku}"'))
def _(outcome, sku):
    assert isinstance(outcome["exc"], InsufficientStockError)
    assert outcome["exc"].sku == sku
