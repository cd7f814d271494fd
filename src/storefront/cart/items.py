"""Cart item management: commands and handler.

Additions and quantity changes are checked against the live catalogue when
they are written; checkout checks again because stock moves in between.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.ledger import StockLedger
from storefront.catalogue.product import normalize_sku
from storefront.domain import storefront
from storefront.errors import InsufficientStockError


@storefront.command(part_of="Cart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    sku = String(required=True, max_length=50)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    customer_id = Identifier(required=True)


def _ensure_in_stock(product, variant, quantity):
    if variant.stock < quantity:
        raise InsufficientStockError(
            sku=variant.sku,
            requested=quantity,
            available=variant.stock,
            product_name=product.name,
        )


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        sku = normalize_sku(command.sku)
        product, variant = StockLedger().get_product_and_sku(command.product_id, sku)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.customer_id)

        existing = cart.find_line(command.product_id, sku)
        requested = command.quantity + (existing.quantity if existing else 0)
        _ensure_in_stock(product, variant, requested)

        item_id = cart.add_item(
            product_id=command.product_id,
            sku=sku,
            quantity=command.quantity,
            unit_price=variant.price,
        )
        repo.add(cart)
        return item_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        item = next((i for i in cart.items if str(i.id) == str(command.item_id)), None)
        if item is not None:
            product, variant = StockLedger().get_product_and_sku(item.product_id, item.sku)
            _ensure_in_stock(product, variant, command.new_quantity)

        cart.update_item_quantity(item_id=command.item_id, new_quantity=command.new_quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        cart.remove_item(item_id=command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            return
        cart.clear()
        repo.add(cart)
