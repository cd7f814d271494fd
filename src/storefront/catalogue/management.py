"""Catalogue management: commands and handler for products and their variants."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product, normalize_sku
from storefront.domain import storefront
from storefront.projections.sku_lookup import SkuLookup


@storefront.command(part_of="Product")
class CreateProduct:
    name: String(required=True, max_length=255)
    description: Text()
    base_price: Float(required=True, min_value=0.0)
    image: String(max_length=500)


@storefront.command(part_of="Product")
class AddVariant:
    product_id: Identifier(required=True)
    sku: String(required=True, max_length=50)
    size: String(max_length=20)
    color: String(max_length=50)
    price: Float(required=True, min_value=0.0)
    stock: Integer(default=0, min_value=0)
    weight: Integer(default=0, min_value=0)
    image: String(max_length=500)


@storefront.command(part_of="Product")
class ActivateProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id: Identifier(required=True)


def _sku_taken(code):
    try:
        current_domain.repository_for(SkuLookup).get(code)
    except ObjectNotFoundError:
        return False
    return True


@storefront.command_handler(part_of=Product)
class ManageCatalogueHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        product = Product.create(
            name=command.name,
            base_price=command.base_price,
            description=command.description,
            image=command.image,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(AddVariant)
    def add_variant(self, command):
        code = normalize_sku(command.sku)
        if _sku_taken(code):
            raise ValidationError({"sku": [f"SKU {code} already exists in the catalogue"]})

        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        variant = product.add_variant(
            sku=code,
            price=command.price,
            stock=command.stock or 0,
            size=command.size,
            color=command.color,
            weight=command.weight or 0,
            image=command.image,
        )
        repo.add(product)
        return str(variant.id)

    @handle(ActivateProduct)
    def activate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.activate()
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)
