"""Stock ledger: the only path through which variant stock changes.

Each movement loads the owning product, changes the counter and commits in
its own unit of work while holding that product's lock, so the check and the
write happen as one step and the commit is visible before the next caller
gets in. Call the ledger outside of any active unit of work: a surrounding
one would delay the commit past the lock.
"""

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product, normalize_sku
from storefront.errors import InsufficientStockError, ProductUnavailableError
from storefront.projections.sku_lookup import SkuLookup
from storefront.utils.locks import product_locks

logger = structlog.get_logger(__name__)


class StockLedger:
    def resolve(self, sku) -> str:
        """Return the id of the product owning ``sku``."""
        code = normalize_sku(sku)
        try:
            entry = current_domain.repository_for(SkuLookup).get(code)
        except ObjectNotFoundError:
            raise ProductUnavailableError(code, reason="SKU not found") from None
        return str(entry.product_id)

    def get_product_and_sku(self, product_id, sku):
        """Load the live product and variant, refusing missing or inactive ones."""
        code = normalize_sku(sku)
        try:
            product = current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError:
            raise ProductUnavailableError(code, product_id=product_id, reason="Product not found") from None

        if not product.is_active:
            raise ProductUnavailableError(code, product_id=product_id, reason="Product is not active")

        variant = product.find_variant(code)
        if variant is None:
            raise ProductUnavailableError(code, product_id=product_id, reason="SKU not found")
        if not variant.is_active:
            raise ProductUnavailableError(code, product_id=product_id, reason="SKU is not active")

        return product, variant

    def available(self, sku, product_id=None) -> int:
        product_id = product_id or self.resolve(sku)
        try:
            product = current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError:
            return 0
        variant = product.find_variant(sku)
        return variant.stock if variant else 0

    def _move(self, product_id, sku, apply_movement):
        with product_locks.hold(product_id):
            with UnitOfWork():
                repo = current_domain.repository_for(Product)
                try:
                    product = repo.get(product_id)
                except ObjectNotFoundError:
                    raise ProductUnavailableError(normalize_sku(sku), product_id=product_id, reason="Product not found") from None
                apply_movement(product)
                repo.add(product)

    def try_decrement(self, sku, quantity, product_id=None, require_active=True) -> bool:
        """Take ``quantity`` units iff that many are in stock. Returns whether it happened.

        Raises `ProductUnavailableError` when the product or SKU was deactivated,
        unless ``require_active`` is off.
        """
        product_id = product_id or self.resolve(sku)
        try:
            self._move(
                product_id,
                sku,
                lambda product: product.reserve_stock(sku, quantity, require_active=require_active),
            )
        except InsufficientStockError as exc:
            logger.info(
                "Stock reservation refused",
                product_id=str(product_id),
                sku=exc.sku,
                requested=quantity,
                available=exc.available,
            )
            return False

        logger.debug("Stock reserved", product_id=str(product_id), sku=normalize_sku(sku), quantity=quantity)
        return True

    def increment(self, sku, quantity, product_id=None) -> None:
        """Put ``quantity`` units back. Callers guarantee this runs once per reservation."""
        product_id = product_id or self.resolve(sku)
        self._move(product_id, sku, lambda product: product.restore_stock(sku, quantity))
        logger.debug("Stock restored", product_id=str(product_id), sku=normalize_sku(sku), quantity=quantity)

    def restock(self, sku, quantity, product_id=None) -> int:
        """Record newly received stock and return the SKU's new level."""
        product_id = product_id or self.resolve(sku)
        self._move(product_id, sku, lambda product: product.receive_stock(sku, quantity))
        logger.info("Stock received", product_id=str(product_id), sku=normalize_sku(sku), quantity=quantity)
        return self.available(sku, product_id)
