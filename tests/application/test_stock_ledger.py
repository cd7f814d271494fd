"""Application tests for the stock ledger, including concurrent reservations."""

import threading

import pytest
from protean import current_domain
from storefront.catalogue.ledger import StockLedger
from storefront.catalogue.management import DeactivateProduct
from storefront.domain import storefront
from storefront.errors import ProductUnavailableError


@pytest.fixture()
def product_id(make_product):
    return make_product(variants=[{"sku": "SKU-A", "price": 100.0, "stock": 10}])


class TestTryDecrement:
    def test_decrement_within_stock(self, product_id, stock_of):
        assert StockLedger().try_decrement("SKU-A", 4, product_id=product_id) is True
        assert stock_of(product_id, "SKU-A") == 6

    def test_decrement_resolves_product_from_sku(self, product_id, stock_of):
        assert StockLedger().try_decrement("sku-a", 1) is True
        assert stock_of(product_id, "SKU-A") == 9

    def test_decrement_all_remaining(self, product_id, stock_of):
        assert StockLedger().try_decrement("SKU-A", 10, product_id=product_id) is True
        assert stock_of(product_id, "SKU-A") == 0

    def test_decrement_beyond_stock_refused(self, product_id, stock_of):
        assert StockLedger().try_decrement("SKU-A", 11, product_id=product_id) is False
        assert stock_of(product_id, "SKU-A") == 10

    def test_decrement_unknown_sku(self):
        with pytest.raises(ProductUnavailableError):
            StockLedger().try_decrement("SKU-Z", 1)

    def test_decrement_of_deactivated_product_refused(self, product_id, stock_of):
        current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
        with pytest.raises(ProductUnavailableError):
            StockLedger().try_decrement("SKU-A", 1, product_id=product_id)
        assert stock_of(product_id, "SKU-A") == 10

    def test_decrement_of_deactivated_product_when_activity_not_required(self, product_id, stock_of):
        current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
        assert StockLedger().try_decrement("SKU-A", 1, product_id=product_id, require_active=False) is True
        assert stock_of(product_id, "SKU-A") == 9


class TestIncrementAndRestock:
    def test_increment_after_decrement(self, product_id, stock_of):
        ledger = StockLedger()
        ledger.try_decrement("SKU-A", 3, product_id=product_id)
        ledger.increment("SKU-A", 3, product_id=product_id)
        assert stock_of(product_id, "SKU-A") == 10

    def test_restock_returns_new_level(self, product_id):
        assert StockLedger().restock("SKU-A", 5, product_id=product_id) == 15

    def test_restock_requires_positive_quantity(self, product_id):
        from protean.exceptions import ValidationError

        with pytest.raises(ValidationError):
            StockLedger().restock("SKU-A", 0, product_id=product_id)


class TestConcurrentReservations:
    def test_never_oversells(self, product_id, stock_of):
        threads_count = 25
        barrier = threading.Barrier(threads_count)
        results = []
        results_lock = threading.Lock()

        def reserve():
            with storefront.domain_context():
                barrier.wait()
                outcome = StockLedger().try_decrement("SKU-A", 1, product_id=product_id)
                with results_lock:
                    results.append(outcome)

        threads = [threading.Thread(target=reserve) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert len(results) == threads_count
        assert results.count(True) == 10
        assert stock_of(product_id, "SKU-A") == 0

    def test_product_locks_released_afterwards(self, product_id):
        from storefront.utils.locks import product_locks

        ledger = StockLedger()
        ledger.try_decrement("SKU-A", 2, product_id=product_id)
        ledger.increment("SKU-A", 2, product_id=product_id)
        assert len(product_locks) == 0
