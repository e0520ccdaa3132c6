"""REST API endpoints for deals.

CRUD plus single-step stage transitions:
- POST /deals/{id}/advance moves the deal one stage forward
- POST /deals/{id}/revert moves the deal one stage back

Transitions go through the normal update path, so only status and
updated_at change.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Response, status

from src.dealboard.api.deps import get_deal_repository, read_json_body
from src.dealboard.api.errors import store_operation
from src.dealboard.core.monitoring import deal_stage_transitions_total
from src.dealboard.deals.exceptions import EntityNotFound, RequestValidationFailed
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import DealRead
from src.dealboard.deals.stages import step_stage
from src.dealboard.deals.validation import (
    parse_identifier,
    validate_deal_create,
    validate_deal_update,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/deals", tags=["deals"])


async def _require_account(repo: DealRepository, account_id: int) -> None:
    with store_operation("Failed to fetch account", account_id=account_id):
        account = await repo.get_account(account_id)
    if account is None:
        raise RequestValidationFailed("Account ID does not reference an existing account")


async def _load_deal(repo: DealRepository, deal_id: int) -> DealRead:
    with store_operation("Failed to fetch deal", deal_id=deal_id):
        deal = await repo.get_deal(deal_id)
    if deal is None:
        raise EntityNotFound("Deal not found")
    return deal


@router.get("", response_model=list[DealRead])
async def list_deals(
    repo: DealRepository = Depends(get_deal_repository),
) -> list[DealRead]:
    """List all deals."""
    with store_operation("Failed to fetch deals"):
        return await repo.list_deals()


@router.get("/{deal_id}", response_model=DealRead)
async def get_deal(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    """Get a single deal by ID."""
    return await _load_deal(repo, parse_identifier(deal_id, "deal"))


@router.post("", response_model=DealRead, status_code=status.HTTP_201_CREATED)
async def create_deal(
    body: Any = Depends(read_json_body),
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    """Create a deal under an existing account."""
    data = validate_deal_create(body)
    await _require_account(repo, data.account_id)
    with store_operation("Failed to create deal"):
        return await repo.create_deal(data)


@router.put("/{deal_id}", response_model=DealRead)
async def update_deal(
    deal_id: str,
    body: Any = Depends(read_json_body),
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    """Partially update a deal; only supplied fields change."""
    d_id = parse_identifier(deal_id, "deal")
    data = validate_deal_update(body)
    if data.account_id is not None:
        await _require_account(repo, data.account_id)
    with store_operation("Failed to update deal", deal_id=d_id):
        deal = await repo.update_deal(d_id, data)
    if deal is None:
        raise EntityNotFound("Deal not found")
    return deal


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> Response:
    """Delete a deal."""
    d_id = parse_identifier(deal_id, "deal")
    with store_operation("Failed to delete deal", deal_id=d_id):
        deleted = await repo.delete_deal(d_id)
    if not deleted:
        raise EntityNotFound("Deal not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Stage Transitions ───────────────────────────────────────────────────────


async def _step(repo: DealRepository, deal_id: str, direction: str) -> DealRead:
    d_id = parse_identifier(deal_id, "deal")
    deal = await _load_deal(repo, d_id)
    target = step_stage(deal.status, direction)

    with store_operation("Failed to update deal", deal_id=d_id):
        updated = await repo.set_deal_status(d_id, target)
    if updated is None:
        raise EntityNotFound("Deal not found")

    deal_stage_transitions_total.labels(direction=direction).inc()
    logger.info(
        "deals.stage_changed",
        deal_id=d_id,
        from_stage=deal.status.value,
        to_stage=target.value,
    )
    return updated


@router.post("/{deal_id}/advance", response_model=DealRead)
async def advance_deal(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    """Move a deal to the next pipeline stage."""
    return await _step(repo, deal_id, "advance")


@router.post("/{deal_id}/revert", response_model=DealRead)
async def revert_deal(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    """Move a deal back to the previous pipeline stage."""
    return await _step(repo, deal_id, "revert")
