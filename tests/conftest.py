import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the config overlay before the domain is imported and initialized.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(storefront_bed):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    from protean import current_domain
    from storefront.notification import reset_gateway, set_gateway
    from storefront.notification.fake_gateway import FakeNotificationGateway
    from storefront.utils.locks import reset_locks

    set_gateway(FakeNotificationGateway())

    with storefront_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_locks()


@pytest.fixture()
def gateway():
    """The fake notification gateway installed for the current test."""
    from storefront.notification import get_gateway

    return get_gateway()


# ---------------------------------------------------------------------------
# Catalogue and cart helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def shipping_address():
    return {
        "recipient_name": "Sari Wulandari",
        "phone": "+62812000111",
        "street": "Jl. Merdeka 10",
        "city": "Bandung",
        "state": "Jawa Barat",
        "postal_code": "40111",
        "country": "Indonesia",
    }


@pytest.fixture()
def make_product():
    """Create an active product with the given variants and return its id.

    Each variant is a dict of AddVariant fields; ``sku`` and ``price`` are
    required, ``stock`` defaults to 0.
    """
    from protean import current_domain
    from storefront.catalogue.management import AddVariant, CreateProduct

    def _make(name="Linen Shirt", base_price=299000.0, variants=()):
        product_id = current_domain.process(
            CreateProduct(name=name, base_price=base_price),
            asynchronous=False,
        )
        for variant in variants:
            current_domain.process(AddVariant(product_id=product_id, **variant), asynchronous=False)
        return product_id

    return _make


@pytest.fixture()
def add_to_cart():
    from protean import current_domain
    from storefront.cart.items import AddToCart

    def _add(customer_id, product_id, sku, quantity=1):
        return current_domain.process(
            AddToCart(customer_id=customer_id, product_id=product_id, sku=sku, quantity=quantity),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def stock_of():
    from storefront.catalogue.ledger import StockLedger

    def _stock(product_id, sku):
        return StockLedger().available(sku, product_id)

    return _stock


@pytest.fixture()
def place_order(add_to_cart, shipping_address):
    """Put ``quantity`` units of one SKU in the customer's cart and check out."""
    from storefront.checkout.workflow import CheckoutWorkflow

    def _place(customer_id, product_id, sku, quantity=1, payment_method="bank_transfer", shipping_method="regular"):
        add_to_cart(customer_id, product_id, sku, quantity)
        return CheckoutWorkflow().checkout(
            customer_id=customer_id,
            shipping_address=shipping_address,
            shipping_method=shipping_method,
            payment_method=payment_method,
        )

    return _place
