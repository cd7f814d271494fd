"""Cart aggregate (CQRS): one per customer, created on first access.

Lines remember the unit price seen when they were added; checkout ignores it
and re-reads the catalogue.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartRestored,
)
from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    sku = String(required=True, max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    customer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product_and_sku(self):
        keys = [(str(i.product_id), i.sku) for i in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product and SKU can only appear once in the cart"]})

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    @property
    def total_items(self):
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self):
        return sum(item.unit_price * item.quantity for item in self.items)

    def find_line(self, product_id, sku):
        return next(
            (i for i in self.items if str(i.product_id) == str(product_id) and i.sku == sku),
            None,
        )

    def _item_or_error(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, sku, quantity, unit_price):
        """Add a line, or top up the quantity of the existing line for the same SKU."""
        now = datetime.now(UTC)
        existing = self.find_line(product_id, sku)

        if existing:
            existing.quantity += quantity
            existing.unit_price = unit_price
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                sku=sku,
                quantity=quantity,
                unit_price=unit_price,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                item_id=item_id,
                product_id=str(product_id),
                sku=sku,
                quantity=quantity,
                unit_price=unit_price,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self._item_or_error(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._item_or_error(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    # -------------------------------------------------------------------
    # Clearing
    # -------------------------------------------------------------------
    def snapshot(self):
        return [
            {
                "product_id": str(item.product_id),
                "sku": item.sku,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "added_at": item.added_at,
            }
            for item in self.items
        ]

    def clear(self):
        """Remove every line and return what was removed. Clearing an empty cart is a no-op."""
        lines = self.snapshot()
        if not lines:
            return lines

        for item in list(self.items):
            self.remove_items(item)

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                items_removed=len(lines),
                cleared_at=now,
            )
        )
        return lines

    def restore(self, lines):
        """Put back lines returned by `clear`."""
        for line in lines:
            existing = self.find_line(line["product_id"], line["sku"])
            if existing:
                existing.quantity += line["quantity"]
            else:
                self.add_items(CartItem(**line))

        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartRestored(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                items_restored=len(lines),
            )
        )


@storefront.repository(part_of=Cart)
class CartRepository:
    """Carts are looked up by customer rather than by cart id."""

    def for_customer(self, customer_id) -> Cart | None:
        try:
            return self._dao.find_by(customer_id=str(customer_id))
        except ObjectNotFoundError:
            return None

    def get_or_create(self, customer_id) -> Cart:
        cart = self.for_customer(customer_id)
        if cart is None:
            cart = Cart.create(customer_id=str(customer_id))
        return cart
