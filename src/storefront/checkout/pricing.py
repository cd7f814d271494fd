"""Order line snapshots and the price breakdown built from them."""

from storefront.checkout.shipping import calculate_shipping_cost
from storefront.order.order import OrderPricing


def snapshot_item(product, variant, quantity):
    """Copy the live catalogue values an order keeps for good."""
    return {
        "product_id": str(product.id),
        "sku": variant.sku,
        "product_name": product.name,
        "size": variant.size,
        "color": variant.color,
        "quantity": quantity,
        "unit_price": variant.price,
        "weight": variant.weight or 0,
        "image": variant.image or product.image,
    }


def subtotal(items):
    return sum(item["unit_price"] * item["quantity"] for item in items)


def total_weight(items):
    return sum((item["weight"] or 0) * item["quantity"] for item in items)


def price_order(items, shipping_method, shipping_cost=calculate_shipping_cost, tax_amount=0.0, discount_amount=0.0):
    """Build the order's OrderPricing. Tax and discount stay at zero until something supplies them."""
    return OrderPricing.compute(
        subtotal=subtotal(items),
        shipping_cost=shipping_cost(shipping_method, total_weight(items)),
        tax_amount=tax_amount,
        discount_amount=discount_amount,
    )
