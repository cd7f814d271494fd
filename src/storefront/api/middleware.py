"""Per-request log context."""

from fastapi import Request

from storefront.utils.logging import add_context, clear_context


async def log_context_middleware(request: Request, call_next):
    """Bind the request method, path and customer id to every log line it emits."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    customer_id = request.headers.get("x-customer-id")
    if customer_id:
        add_context(customer_id=customer_id)

    try:
        return await call_next(request)
    finally:
        clear_context()
