"""Tests for the Product aggregate, its variants and stock movements."""

import pytest
from protean.exceptions import ValidationError
from storefront.catalogue.events import StockReceived, StockReserved, StockRestored, VariantAdded
from storefront.catalogue.product import Product, normalize_sku
from storefront.errors import InsufficientStockError, ProductUnavailableError


def _product(stock=5):
    product = Product.create(name="Linen Shirt", base_price=299000.0)
    product.add_variant(sku="linen-wht-m", price=299000.0, stock=stock, size="M", color="White", weight=250)
    return product


class TestProductCreation:
    def test_create_is_active_by_default(self):
        product = Product.create(name="Linen Shirt", base_price=299000.0)
        assert product.is_active is True
        assert len(product.variants) == 0

    def test_create_sets_timestamps(self):
        product = Product.create(name="Linen Shirt", base_price=299000.0)
        assert product.created_at is not None
        assert product.updated_at is not None


class TestVariants:
    def test_sku_is_normalized(self):
        product = _product()
        assert product.variants[0].sku == "LINEN-WHT-M"
        assert normalize_sku("  abc-1 ") == "ABC-1"

    def test_find_variant_ignores_case(self):
        product = _product()
        assert product.find_variant("linen-wht-m") is product.variants[0]
        assert product.find_variant("NOPE") is None

    def test_add_variant_raises_event(self):
        product = _product()
        added = [e for e in product._events if isinstance(e, VariantAdded)]
        assert len(added) == 1
        assert added[0].sku == "LINEN-WHT-M"
        assert added[0].stock == 5

    def test_duplicate_sku_rejected(self):
        product = _product()
        with pytest.raises(ValidationError) as exc:
            product.add_variant(sku="LINEN-WHT-M", price=1.0)
        assert "sku" in exc.value.messages

    def test_negative_initial_stock_rejected(self):
        product = Product.create(name="Linen Shirt", base_price=299000.0)
        with pytest.raises(ValidationError):
            product.add_variant(sku="NEG-1", price=1.0, stock=-1)


class TestActivation:
    def test_deactivate_then_activate(self):
        product = _product()
        product.deactivate()
        assert product.is_active is False
        product.activate()
        assert product.is_active is True

    def test_activate_active_product_rejected(self):
        product = _product()
        with pytest.raises(ValidationError):
            product.activate()

    def test_deactivate_inactive_product_rejected(self):
        product = _product()
        product.deactivate()
        with pytest.raises(ValidationError):
            product.deactivate()


class TestStockMovements:
    def test_reserve_decrements(self):
        product = _product(stock=5)
        product.reserve_stock("LINEN-WHT-M", 3)
        assert product.find_variant("LINEN-WHT-M").stock == 2

    def test_reserve_exact_remaining_stock(self):
        product = _product(stock=2)
        product.reserve_stock("LINEN-WHT-M", 2)
        assert product.find_variant("LINEN-WHT-M").stock == 0

    def test_reserve_more_than_available_leaves_stock_untouched(self):
        product = _product(stock=2)
        with pytest.raises(InsufficientStockError) as exc:
            product.reserve_stock("LINEN-WHT-M", 3)
        assert exc.value.available == 2
        assert exc.value.requested == 3
        assert product.find_variant("LINEN-WHT-M").stock == 2

    def test_reserve_raises_event(self):
        product = _product(stock=5)
        product.reserve_stock("LINEN-WHT-M", 1)
        reserved = [e for e in product._events if isinstance(e, StockReserved)]
        assert reserved[-1].remaining == 4

    def test_reserve_zero_rejected(self):
        product = _product()
        with pytest.raises(ValidationError):
            product.reserve_stock("LINEN-WHT-M", 0)

    def test_reserve_unknown_sku(self):
        product = _product()
        with pytest.raises(ProductUnavailableError):
            product.reserve_stock("UNKNOWN", 1)

    def test_reserve_from_inactive_product_rejected(self):
        product = _product(stock=5)
        product.deactivate()
        with pytest.raises(ProductUnavailableError):
            product.reserve_stock("LINEN-WHT-M", 1)
        assert product.find_variant("LINEN-WHT-M").stock == 5

    def test_reserve_from_inactive_sku_rejected(self):
        product = _product(stock=5)
        product.find_variant("LINEN-WHT-M").is_active = False
        with pytest.raises(ProductUnavailableError):
            product.reserve_stock("LINEN-WHT-M", 1)

    def test_reserve_from_inactive_product_when_activity_not_required(self):
        product = _product(stock=5)
        product.deactivate()
        product.reserve_stock("LINEN-WHT-M", 1, require_active=False)
        assert product.find_variant("LINEN-WHT-M").stock == 4

    def test_restore_increments(self):
        product = _product(stock=1)
        product.restore_stock("LINEN-WHT-M", 2)
        assert product.find_variant("LINEN-WHT-M").stock == 3
        assert any(isinstance(e, StockRestored) for e in product._events)

    def test_receive_increments(self):
        product = _product(stock=0)
        product.receive_stock("LINEN-WHT-M", 10)
        assert product.find_variant("LINEN-WHT-M").stock == 10
        assert any(isinstance(e, StockReceived) for e in product._events)
