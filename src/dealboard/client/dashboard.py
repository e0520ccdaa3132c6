"""Dashboard controller -- user intents to API calls and store actions.

Each operation calls the API first and dispatches an action only after
the server confirmed success. A failed call is logged, raised to the user
as a transient alert in state, and leaves the data untouched.
"""

from __future__ import annotations

from typing import Literal

import structlog

from src.dealboard.client.http import DealboardAPIError, DealboardClient
from src.dealboard.client.state import (
    AccountAdded,
    AlertDismissed,
    AlertRaised,
    DashboardState,
    DashboardStore,
    DataLoaded,
    DealAdded,
    DealUpdated,
    OrganizationAdded,
    OrganizationRemoved,
    OrganizationSelected,
    StageFilterChanged,
    YearFilterChanged,
)
from src.dealboard.deals.pipeline import build_pipeline_view
from src.dealboard.deals.schemas import (
    ALL,
    AccountRead,
    DealRead,
    DealStage,
    OrganizationRead,
    PipelineView,
)

logger = structlog.get_logger(__name__)


class DashboardController:
    """Drives a DashboardStore from user actions.

    Args:
        client: API client.
        store: State store the controller dispatches into.
    """

    def __init__(self, client: DealboardClient, store: DashboardStore) -> None:
        self._client = client
        self._store = store

    @property
    def state(self) -> DashboardState:
        return self._store.state

    @property
    def view(self) -> PipelineView:
        """Filtered deals, stage buckets and summary for the current selection."""
        state = self._store.state
        return build_pipeline_view(state.deals, state.accounts, state.filters)

    def _fail(self, operation: str, exc: DealboardAPIError) -> None:
        logger.warning(
            "dashboard.operation_failed",
            operation=operation,
            status_code=exc.status_code,
            error=exc.message,
        )
        self._store.dispatch(AlertRaised(message=f"Error {operation}: {exc.message}"))

    # ── Loading & Selection ─────────────────────────────────────────────────

    async def load(self) -> bool:
        """Fetch organizations, accounts and deals into state."""
        try:
            organizations = await self._client.list_organizations()
            accounts = await self._client.list_accounts()
            deals = await self._client.list_deals()
        except DealboardAPIError as exc:
            self._fail("fetching data", exc)
            return False
        self._store.dispatch(
            DataLoaded(organizations=organizations, accounts=accounts, deals=deals)
        )
        return True

    def select_organization(self, organization_id: int | None) -> None:
        self._store.dispatch(OrganizationSelected(organization_id=organization_id))

    def set_stage_filter(self, stage: DealStage | Literal["all"]) -> None:
        self._store.dispatch(
            StageFilterChanged(stage=ALL if stage == ALL else DealStage(stage))
        )

    def set_year_filter(self, year: int | Literal["all"]) -> None:
        self._store.dispatch(YearFilterChanged(year=year))

    def dismiss_alert(self) -> None:
        self._store.dispatch(AlertDismissed())

    # ── Stage Controls ──────────────────────────────────────────────────────

    async def advance_deal(self, deal_id: int) -> DealRead | None:
        try:
            deal = await self._client.advance_deal(deal_id)
        except DealboardAPIError as exc:
            self._fail("advancing deal", exc)
            return None
        self._store.dispatch(DealUpdated(deal=deal))
        return deal

    async def revert_deal(self, deal_id: int) -> DealRead | None:
        try:
            deal = await self._client.revert_deal(deal_id)
        except DealboardAPIError as exc:
            self._fail("reverting deal", exc)
            return None
        self._store.dispatch(DealUpdated(deal=deal))
        return deal

    # ── Creation ────────────────────────────────────────────────────────────

    async def create_organization(self, name: str) -> OrganizationRead | None:
        name = name.strip()
        if not name:
            return None
        try:
            organization = await self._client.create_organization(name)
        except DealboardAPIError as exc:
            self._fail("creating organization", exc)
            return None
        self._store.dispatch(OrganizationAdded(organization=organization))
        return organization

    async def create_account(
        self, name: str, organization_id: int | None = None
    ) -> AccountRead | None:
        """Create an account, by default under the selected organization."""
        if organization_id is None:
            organization_id = self._store.state.selected_organization_id
        if organization_id is None:
            self._store.dispatch(AlertRaised(message="Select an organization first"))
            return None
        try:
            account = await self._client.create_account(name, organization_id)
        except DealboardAPIError as exc:
            self._fail("creating account", exc)
            return None
        self._store.dispatch(AccountAdded(account=account))
        return account

    async def create_deal(
        self,
        account_id: int,
        value: float,
        status: DealStage = DealStage.BUILD_PROPOSAL,
        year_of_creation: int | None = None,
    ) -> DealRead | None:
        try:
            deal = await self._client.create_deal(
                account_id, value, status, year_of_creation=year_of_creation
            )
        except DealboardAPIError as exc:
            self._fail("creating deal", exc)
            return None
        self._store.dispatch(DealAdded(deal=deal))
        return deal

    # ── Deletion ────────────────────────────────────────────────────────────

    async def delete_organization(self, organization_id: int | None = None) -> bool:
        """Delete an organization (the selected one by default) and refresh listings."""
        if organization_id is None:
            organization_id = self._store.state.selected_organization_id
        if organization_id is None:
            return False
        try:
            await self._client.delete_organization(organization_id)
        except DealboardAPIError as exc:
            self._fail("deleting organization", exc)
            return False
        self._store.dispatch(OrganizationRemoved(organization_id=organization_id))
        logger.info("dashboard.organization_deleted", organization_id=organization_id)
        await self.load()
        return True
