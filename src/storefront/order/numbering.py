"""Human-readable order numbers: ``<PREFIX>-YYYYMMDD-XXXXX``."""

import secrets
import string
from datetime import UTC, datetime

from protean.utils.globals import current_domain

from storefront.config import setting
from storefront.errors import PersistenceError
from storefront.projections.order_summary import OrderSummary

_ALPHABET = string.ascii_uppercase + string.digits
MAX_ATTEMPTS = 5


def generate_order_number(prefix=None, today=None):
    prefix = prefix or setting("ORDER_NUMBER_PREFIX")
    today = today or datetime.now(UTC)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(5))
    return f"{prefix}-{today:%Y%m%d}-{suffix}"


def order_number_taken(order_number) -> bool:
    results = current_domain.repository_for(OrderSummary)._dao.query.filter(order_number=order_number).all()
    return results.total > 0


def next_order_number(prefix=None) -> str:
    """Generate an order number not used by any existing order."""
    for _ in range(MAX_ATTEMPTS):
        candidate = generate_order_number(prefix)
        if not order_number_taken(candidate):
            return candidate
    raise PersistenceError("Could not allocate a unique order number")
