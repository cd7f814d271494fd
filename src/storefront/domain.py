"""Storefront bounded context: catalogue stock, shopping carts, checkout and orders.

Products (CQRS) own their SKU variants and the stock counters behind them,
carts (CQRS) hold a customer's pending selection, and orders (event sourced)
record what was bought and walk through the fulfilment and payment state
machines. Checkout converts a cart into an order while reserving stock.
"""

import logging

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging(log_file_prefix="storefront")
logging.getLogger("protean").setLevel(logging.WARNING)

logger = get_logger(__name__)

storefront = Domain(name="storefront")
