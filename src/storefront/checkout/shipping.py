"""Shipping cost by method and parcel weight (grams)."""

DEFAULT_SHIPPING_COST = 15000

_RATES = {
    # method: (minimum charge, cost per gram)
    "regular": (15000, 0.01),
    "express": (25000, 0.02),
    "same_day": (50000, 0.03),
}

SHIPPING_METHODS = tuple(_RATES)


def calculate_shipping_cost(method, total_weight_grams):
    """Unknown methods fall back to the flat default charge."""
    rate = _RATES.get(method)
    if rate is None:
        return DEFAULT_SHIPPING_COST

    minimum, per_gram = rate
    return max(minimum, round(total_weight_grams * per_gram))
