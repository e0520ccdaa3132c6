"""Pydantic schemas for the deal pipeline -- records, commands, and pipeline views.

Defines all structured types crossing the repository and HTTP boundaries:
- Enums: DealStage
- Records: OrganizationRead, AccountRead, DealRead
- Commands (validated request bodies): OrganizationCreate/Update,
  AccountCreate/Update, DealCreate/Update
- Pipeline views: PipelineFilter, StageBucket, PipelineSummary, PipelineView
- Cascade: CascadeDeleteResult

Update commands only carry the fields the caller supplied; repositories
read them with model_dump(exclude_unset=True).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

ALL = "all"


# ── Enums ───────────────────────────────────────────────────────────────────


class DealStage(str, Enum):
    """Sales pipeline stage for a deal, in pipeline order."""

    BUILD_PROPOSAL = "build_proposal"
    PITCH_PROPOSAL = "pitch_proposal"
    NEGOTIATION = "negotiation"
    AWAITING_SIGNOFF = "awaiting_signoff"
    SIGNED = "signed"
    CANCELLED = "cancelled"
    LOST = "lost"


# ── Records ─────────────────────────────────────────────────────────────────


class OrganizationRead(BaseModel):
    """Persisted organization."""

    id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AccountRead(BaseModel):
    """Persisted account."""

    id: int
    name: str
    organization_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DealRead(BaseModel):
    """Persisted deal."""

    id: int
    account_id: int
    value: float
    status: DealStage
    year_of_creation: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ── Commands ────────────────────────────────────────────────────────────────


class OrganizationCreate(BaseModel):
    name: str


class OrganizationUpdate(BaseModel):
    name: str


class AccountCreate(BaseModel):
    name: str
    organization_id: int


class AccountUpdate(BaseModel):
    """Partial account update; unset fields are left untouched."""

    name: str | None = None
    organization_id: int | None = None


class DealCreate(BaseModel):
    account_id: int
    value: float = Field(ge=0)
    status: DealStage
    year_of_creation: int | None = None


class DealUpdate(BaseModel):
    """Partial deal update; unset fields are left untouched."""

    account_id: int | None = None
    value: float | None = Field(default=None, ge=0)
    status: DealStage | None = None
    year_of_creation: int | None = None


# ── Pipeline Views ──────────────────────────────────────────────────────────


class PipelineFilter(BaseModel):
    """Organization scope plus stage and year filters.

    organization_id=None means no organization is selected, which zeroes
    every count and total.
    """

    organization_id: int | None = None
    stage: DealStage | Literal["all"] = ALL
    year: int | Literal["all"] = ALL


class StageBucket(BaseModel):
    """Deals of one stage with their count and summed value."""

    stage: DealStage
    label: str
    count: int = 0
    total_value: float = 0.0
    deals: list[DealRead] = Field(default_factory=list)


class PipelineSummary(BaseModel):
    """Summary bands over an organization's deals."""

    potential: float = 0.0
    actual: float = 0.0
    unavailable: float = 0.0


class PipelineView(BaseModel):
    """Everything the dashboard renders for one filter selection."""

    filters: PipelineFilter
    organization_deals: list[DealRead] = Field(default_factory=list)
    visible_deals: list[DealRead] = Field(default_factory=list)
    visible_buckets: list[StageBucket] = Field(default_factory=list)
    organization_buckets: list[StageBucket] = Field(default_factory=list)
    summary: PipelineSummary = Field(default_factory=PipelineSummary)
    available_years: list[int] = Field(default_factory=list)


# ── Cascade ─────────────────────────────────────────────────────────────────


class CascadeDeleteResult(BaseModel):
    """Identifiers removed by an organization cascade delete."""

    organization_id: int
    account_ids: list[int] = Field(default_factory=list)
    deal_ids: list[int] = Field(default_factory=list)
