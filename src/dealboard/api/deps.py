"""FastAPI dependency injection for pipeline services and raw request bodies.

Services are created once by the application factory and stored on
app.state; these dependencies fetch them per request.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import HTTPException, Request, status

from src.dealboard.deals.cascade import CascadeDeleter
from src.dealboard.deals.exceptions import RequestValidationFailed
from src.dealboard.deals.repository import DealRepository


def get_deal_repository(request: Request) -> DealRepository:
    """Retrieve DealRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "deal_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Deal pipeline not initialized",
        )
    return repo


def get_cascade_deleter(request: Request) -> CascadeDeleter:
    """Retrieve CascadeDeleter from app.state, 503 if not available."""
    deleter = getattr(request.app.state, "cascade_deleter", None)
    if deleter is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Deal pipeline not initialized",
        )
    return deleter


async def read_json_body(request: Request) -> Any:
    """Decode the request body as JSON; an empty body decodes to {}.

    The decoded value is returned as-is so each endpoint's validator can
    report its own field-specific errors.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise RequestValidationFailed("Request body must be a JSON object") from None
