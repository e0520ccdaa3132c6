"""Pipeline filter and aggregation engine.

Composes an organization scope, a stage filter and a year filter over the
full deal and account collections:

1. organization deals -- deals whose account belongs to the selected
   organization. Summary totals are computed over this set and ignore the
   stage/year filters.
2. visible deals -- organization deals narrowed by stage and year.
3. per-stage buckets -- one bucket per pipeline stage, empty ones included.
4. summary bands -- potential, actual and unavailable value.

Organization selection is a hard gate: without one, every list is empty and
every count and total is zero. All functions are pure so the dashboard
client and the HTTP endpoint share them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from src.dealboard.deals.schemas import (
    ALL,
    AccountRead,
    DealRead,
    PipelineFilter,
    PipelineSummary,
    PipelineView,
    StageBucket,
)
from src.dealboard.deals.stages import (
    ACTUAL_STAGES,
    POTENTIAL_STAGES,
    STAGES,
    UNAVAILABLE_STAGES,
    stage_label,
)


def organization_account_ids(
    accounts: Iterable[AccountRead], organization_id: int | None
) -> set[int]:
    """Ids of accounts owned by the organization (empty when none is selected)."""
    if organization_id is None:
        return set()
    return {a.id for a in accounts if a.organization_id == organization_id}


def organization_deals(
    deals: Iterable[DealRead],
    accounts: Iterable[AccountRead],
    organization_id: int | None,
) -> list[DealRead]:
    """Deals whose owning account belongs to the organization."""
    account_ids = organization_account_ids(accounts, organization_id)
    if not account_ids:
        return []
    return [d for d in deals if d.account_id in account_ids]


def apply_filters(deals: Iterable[DealRead], filters: PipelineFilter) -> list[DealRead]:
    """Narrow deals by stage and year; "all" skips that filter."""
    result = list(deals)
    if filters.stage != ALL:
        result = [d for d in result if d.status == filters.stage]
    if filters.year != ALL:
        result = [d for d in result if d.year_of_creation == filters.year]
    return result


def bucket_by_stage(deals: Iterable[DealRead]) -> list[StageBucket]:
    """Partition deals into one bucket per stage, in pipeline order."""
    buckets = {
        stage: StageBucket(stage=stage, label=stage_label(stage)) for stage in STAGES
    }
    for deal in deals:
        bucket = buckets[deal.status]
        bucket.deals.append(deal)
        bucket.count += 1
        bucket.total_value += deal.value
    return [buckets[stage] for stage in STAGES]


def summarize(deals: Iterable[DealRead]) -> PipelineSummary:
    """Sum deal values into the potential / actual / unavailable bands."""
    summary = PipelineSummary()
    for deal in deals:
        if deal.status in POTENTIAL_STAGES:
            summary.potential += deal.value
        elif deal.status in ACTUAL_STAGES:
            summary.actual += deal.value
        elif deal.status in UNAVAILABLE_STAGES:
            summary.unavailable += deal.value
    return summary


def available_years(deals: Iterable[DealRead]) -> list[int]:
    """Distinct years of creation, newest first."""
    return sorted({d.year_of_creation for d in deals}, reverse=True)


def build_pipeline_view(
    deals: Sequence[DealRead],
    accounts: Sequence[AccountRead],
    filters: PipelineFilter,
) -> PipelineView:
    """Compute the full dashboard view for one filter selection.

    Args:
        deals: Every deal in the store.
        accounts: Every account in the store.
        filters: Organization scope plus stage and year filters.

    Returns:
        PipelineView with organization and visible deal sets, per-stage
        buckets for both, summary bands and the year filter options.
    """
    scoped = organization_deals(deals, accounts, filters.organization_id)
    visible = apply_filters(scoped, filters)
    return PipelineView(
        filters=filters,
        organization_deals=scoped,
        visible_deals=visible,
        visible_buckets=bucket_by_stage(visible),
        organization_buckets=bucket_by_stage(scoped),
        summary=summarize(scoped),
        available_years=available_years(scoped),
    )
