"""Read-side queries over the order projections: listings, search and stats."""

from math import ceil

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order, OrderStatus, PaymentStatus, parse_choice
from storefront.projections.daily_order_stats import DailyOrderStats
from storefront.projections.order_summary import OrderSummary

_BATCH_SIZE = 100


def _summaries(filters=None):
    query = current_domain.repository_for(OrderSummary)._dao.query
    return query.filter(**filters) if filters else query


def _date_filters(start=None, end=None):
    filters = {}
    if start is not None:
        filters["created_at__gte"] = start
    if end is not None:
        filters["created_at__lte"] = end
    return filters


def _page(filters, page, limit):
    page = max(int(page or 1), 1)
    limit = max(int(limit or 10), 1)

    results = _summaries(filters).order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "orders": results.items,
        "total": results.total,
        "page": page,
        "pages": ceil(results.total / limit) if results.total else 0,
    }


def _each(filters):
    """Iterate every matching summary, a batch at a time."""
    offset = 0
    while True:
        results = _summaries(filters).order_by("created_at").offset(offset).limit(_BATCH_SIZE).all()
        yield from results.items
        offset += _BATCH_SIZE
        if not results.items or offset >= results.total:
            break


def _count(filters):
    return _summaries(filters).all().total


def customer_orders(customer_id, status=None, page=1, limit=10):
    """A customer's orders, newest first."""
    filters = {"customer_id": str(customer_id)}
    if status:
        filters["status"] = parse_choice(OrderStatus, status, "status").value
    return _page(filters, page, limit)


def customer_order(customer_id, order_id) -> Order:
    """Load one of the customer's orders. Other customers' orders do not exist for them."""
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.customer_id) != str(customer_id):
        raise ObjectNotFoundError(f"Order with id {order_id} does not exist")
    return order


def admin_orders(status=None, payment_status=None, search=None, page=1, limit=20):
    """All orders, filterable by both statuses and by order number."""
    filters = {}
    if status:
        filters["status"] = parse_choice(OrderStatus, status, "status").value
    if payment_status:
        filters["payment_status"] = parse_choice(PaymentStatus, payment_status, "payment_status").value
    if search:
        filters["order_number__contains"] = search.strip().upper()
    return _page(filters, page, limit)


def order_stats(start=None, end=None):
    """Order counts per status and per payment status, with revenue from paid orders."""
    date_filters = _date_filters(start, end)

    by_status = {status.value: _count({"status": status.value, **date_filters}) for status in OrderStatus}
    by_payment_status = {
        status.value: _count({"payment_status": status.value, **date_filters}) for status in PaymentStatus
    }
    revenue = sum(
        summary.total_amount or 0.0 for summary in _each({"payment_status": PaymentStatus.PAID.value, **date_filters})
    )

    return {
        "total_orders": _count(date_filters),
        "by_status": by_status,
        "by_payment_status": by_payment_status,
        "total_revenue": revenue,
    }


def daily_stats(start_date=None, end_date=None):
    """Daily rows between two ISO dates (inclusive), oldest first."""
    filters = {}
    if start_date:
        filters["date__gte"] = start_date
    if end_date:
        filters["date__lte"] = end_date
    query = current_domain.repository_for(DailyOrderStats)._dao.query
    if filters:
        query = query.filter(**filters)
    results = query.order_by("date").all()
    return results.items
