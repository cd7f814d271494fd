"""Product aggregate (CQRS) with its SKU variants.

A variant is the unit at which stock is tracked. Outside of variant creation,
stock only changes through `reserve_stock`, `restore_stock` and
`receive_stock`, and callers are expected to go through the stock ledger so
that every change happens under the product's lock.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from storefront.catalogue.events import (
    ProductActivated,
    ProductCreated,
    ProductDeactivated,
    StockReceived,
    StockReserved,
    StockRestored,
    VariantAdded,
)
from storefront.domain import storefront
from storefront.errors import InsufficientStockError, ProductUnavailableError


def normalize_sku(code):
    return code.strip().upper() if code else code


@storefront.entity(part_of="Product")
class Variant:
    """A size/color combination of a product, identified by a catalogue-wide SKU code."""

    sku: String(required=True, max_length=50)
    size: String(max_length=20)
    color: String(max_length=50)
    price: Float(required=True, min_value=0.0)
    stock: Integer(default=0, min_value=0)
    weight: Integer(default=0, min_value=0)  # grams
    image: String(max_length=500)
    is_active: Boolean(default=True)


@storefront.aggregate
class Product:
    """Product aggregate root."""

    name: String(required=True, max_length=255)
    description: Text()
    base_price: Float(required=True, min_value=0.0)
    image: String(max_length=500)
    is_active: Boolean(default=True)
    variants: HasMany(Variant)
    created_at: DateTime(default=lambda: datetime.now(UTC))
    updated_at: DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def sku_codes_must_be_unique(self):
        codes = [v.sku for v in self.variants]
        if len(codes) != len(set(codes)):
            raise ValidationError({"variants": ["SKU codes must be unique"]})

    @invariant.post
    def stock_cannot_be_negative(self):
        for variant in self.variants:
            if variant.stock is not None and variant.stock < 0:
                raise ValidationError({"stock": [f"Stock for {variant.sku} cannot be negative"]})

    @classmethod
    def create(cls, name, base_price, description=None, image=None):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            base_price=base_price,
            description=description,
            image=image,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                name=name,
                base_price=base_price,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Variants
    # -------------------------------------------------------------------
    def find_variant(self, sku):
        code = normalize_sku(sku)
        return next((v for v in self.variants if v.sku == code), None)

    def add_variant(self, sku, price, stock=0, size=None, color=None, weight=0, image=None):
        code = normalize_sku(sku)
        if self.find_variant(code) is not None:
            raise ValidationError({"sku": [f"SKU {code} already exists on this product"]})

        now = datetime.now(UTC)
        variant = Variant(
            sku=code,
            size=size,
            color=color,
            price=price,
            stock=stock,
            weight=weight,
            image=image,
        )
        self.add_variants(variant)
        self.updated_at = now

        self.raise_(
            VariantAdded(
                product_id=self.id,
                variant_id=variant.id,
                sku=code,
                price=price,
                stock=stock,
                created_at=now,
            )
        )
        return variant

    def _variant_or_error(self, sku):
        variant = self.find_variant(sku)
        if variant is None:
            raise ProductUnavailableError(sku, product_id=self.id, reason="SKU not found")
        return variant

    # -------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------
    def activate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Product is already active"]})

        now = datetime.now(UTC)
        self.is_active = True
        self.updated_at = now
        self.raise_(ProductActivated(product_id=self.id, activated_at=now))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Product is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=self.id, deactivated_at=now))

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def reserve_stock(self, sku, quantity, require_active=True):
        """Take ``quantity`` units out of the SKU, refusing to go below zero.

        Inactive products and SKUs are not sold unless ``require_active`` is off.
        """
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        variant = self._variant_or_error(sku)
        if require_active and not self.is_active:
            raise ProductUnavailableError(variant.sku, product_id=self.id, reason="Product is not active")
        if require_active and not variant.is_active:
            raise ProductUnavailableError(variant.sku, product_id=self.id, reason="SKU is not active")
        if variant.stock < quantity:
            raise InsufficientStockError(
                sku=variant.sku,
                requested=quantity,
                available=variant.stock,
                product_name=self.name,
            )

        variant.stock -= quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReserved(
                product_id=self.id,
                variant_id=variant.id,
                sku=variant.sku,
                quantity=quantity,
                remaining=variant.stock,
            )
        )

    def restore_stock(self, sku, quantity):
        """Give back units taken by `reserve_stock`."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        variant = self._variant_or_error(sku)
        variant.stock += quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockRestored(
                product_id=self.id,
                variant_id=variant.id,
                sku=variant.sku,
                quantity=quantity,
                remaining=variant.stock,
            )
        )

    def receive_stock(self, sku, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        variant = self._variant_or_error(sku)
        now = datetime.now(UTC)
        variant.stock += quantity
        self.updated_at = now

        self.raise_(
            StockReceived(
                product_id=self.id,
                variant_id=variant.id,
                sku=variant.sku,
                quantity=quantity,
                remaining=variant.stock,
                received_at=now,
            )
        )
