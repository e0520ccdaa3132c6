"""Error rendering and store-failure translation for the HTTP boundary.

Every DealboardError becomes a JSON response {"error": message} with the
error's status code. Store exceptions are converted per operation by the
store_operation context manager, which logs the original exception and
raises StoreFailure with the operation's fixed message.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.dealboard.deals.exceptions import DealboardError, StoreFailure

logger = structlog.get_logger(__name__)


async def dealboard_error_handler(request: Request, exc: DealboardError) -> JSONResponse:
    """Render a DealboardError as {"error": message}."""
    if exc.status_code >= 500:
        log_method = logger.error
    else:
        log_method = logger.info
    log_method(
        "api.request_rejected",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@contextmanager
def store_operation(failure_message: str, **context: Any) -> Iterator[None]:
    """Translate store exceptions raised inside the block into StoreFailure.

    Usage:
        with store_operation("Failed to fetch deals"):
            deals = await repo.list_deals()
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("api.store_operation_failed", failure=failure_message, **context)
        raise StoreFailure(failure_message) from exc


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500 for exceptions no route translated."""
    logger.exception(
        "api.unhandled_error",
        method=request.method,
        path=request.url.path,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
