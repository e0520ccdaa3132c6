"""Pipeline view endpoint.

GET /pipeline?organization_id=&stage=&year= returns the organization's
deals, the filtered subset, per-stage buckets and summary bands. Without an
organization the view is empty and the store is not queried.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from src.dealboard.api.deps import get_deal_repository
from src.dealboard.api.errors import store_operation
from src.dealboard.deals.pipeline import build_pipeline_view
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import PipelineView
from src.dealboard.deals.validation import validate_pipeline_filter

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("", response_model=PipelineView)
async def get_pipeline(
    organization_id: str | None = Query(default=None),
    stage: str | None = Query(default=None),
    year: str | None = Query(default=None),
    repo: DealRepository = Depends(get_deal_repository),
) -> PipelineView:
    filters = validate_pipeline_filter(organization_id, stage, year)
    if filters.organization_id is None:
        return build_pipeline_view([], [], filters)

    with store_operation("Failed to fetch accounts", organization_id=filters.organization_id):
        accounts = await repo.list_accounts(organization_id=filters.organization_id)
    with store_operation("Failed to fetch deals", organization_id=filters.organization_id):
        deals = await repo.list_deals(account_ids={a.id for a in accounts})

    return build_pipeline_view(deals, accounts, filters)
