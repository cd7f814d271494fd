"""HTTP mapping for storefront errors on top of Protean's defaults.

Protean answers ValidationError with 400 and ObjectNotFoundError with 404.
Illegal order transitions are a conflict with the order's current state, and
storage failures mean the request can be retried later.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import InvalidOrderStateError, PersistenceError

logger = structlog.get_logger(__name__)


async def _invalid_order_state(request: Request, exc: InvalidOrderStateError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": exc.messages})


async def _persistence_failure(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Request failed to persist", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"error": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(InvalidOrderStateError, _invalid_order_state)
    app.add_exception_handler(PersistenceError, _persistence_failure)
