"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    base_price = Float(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class VariantAdded:
    """A purchasable SKU was added to a product."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    sku = String(required=True)
    price = Float(required=True)
    stock = Integer(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductActivated:
    __version__ = 1

    product_id = Identifier(required=True)
    activated_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductDeactivated:
    __version__ = 1

    product_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockReserved:
    """Stock was taken out of a SKU for an order being placed."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    sku = String(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="Product")
class StockRestored:
    """Previously reserved stock was returned to a SKU (cancellation or rollback)."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    sku = String(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="Product")
class StockReceived:
    """New stock arrived for a SKU."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    sku = String(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    received_at = DateTime(required=True)
