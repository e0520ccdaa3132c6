"""Dashboard application state with unidirectional data flow.

State lives in one immutable DashboardState. Changes are described by
action models and applied by the pure reduce() function; DashboardStore
holds the current state, notifies subscribers, and keeps the persisted
"last selected organization" key in step with the state:

- load-on-init: the persisted id becomes the initial selection
- save-on-change: every selection change is written through
- clear-on-delete: removing the selected organization clears the key
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict

from src.dealboard.client.storage import SELECTED_ORGANIZATION_KEY, KeyValueStore
from src.dealboard.deals.schemas import (
    ALL,
    AccountRead,
    DealRead,
    DealStage,
    OrganizationRead,
    PipelineFilter,
)

logger = structlog.get_logger(__name__)


class DashboardState(BaseModel):
    """Everything the dashboard renders from."""

    model_config = ConfigDict(frozen=True)

    organizations: tuple[OrganizationRead, ...] = ()
    accounts: tuple[AccountRead, ...] = ()
    deals: tuple[DealRead, ...] = ()
    selected_organization_id: int | None = None
    stage_filter: DealStage | Literal["all"] = ALL
    year_filter: int | Literal["all"] = ALL
    alert: str | None = None

    @property
    def filters(self) -> PipelineFilter:
        return PipelineFilter(
            organization_id=self.selected_organization_id,
            stage=self.stage_filter,
            year=self.year_filter,
        )


# ── Actions ─────────────────────────────────────────────────────────────────


class DataLoaded(BaseModel):
    organizations: list[OrganizationRead]
    accounts: list[AccountRead]
    deals: list[DealRead]


class OrganizationSelected(BaseModel):
    organization_id: int | None


class StageFilterChanged(BaseModel):
    stage: DealStage | Literal["all"]


class YearFilterChanged(BaseModel):
    year: int | Literal["all"]


class OrganizationAdded(BaseModel):
    organization: OrganizationRead


class AccountAdded(BaseModel):
    account: AccountRead


class DealAdded(BaseModel):
    deal: DealRead


class DealUpdated(BaseModel):
    deal: DealRead


class OrganizationRemoved(BaseModel):
    organization_id: int


class AlertRaised(BaseModel):
    message: str


class AlertDismissed(BaseModel):
    pass


Action = (
    DataLoaded
    | OrganizationSelected
    | StageFilterChanged
    | YearFilterChanged
    | OrganizationAdded
    | AccountAdded
    | DealAdded
    | DealUpdated
    | OrganizationRemoved
    | AlertRaised
    | AlertDismissed
)


# ── Reducer ─────────────────────────────────────────────────────────────────


def _sorted_organizations(
    organizations: list[OrganizationRead] | tuple[OrganizationRead, ...],
) -> tuple[OrganizationRead, ...]:
    return tuple(sorted(organizations, key=lambda o: (o.name.casefold(), o.id)))


def reduce(state: DashboardState, action: Action) -> DashboardState:
    """Return the state after applying one action.

    Unknown actions leave the state unchanged.
    """
    if isinstance(action, DataLoaded):
        organizations = _sorted_organizations(action.organizations)
        selected = state.selected_organization_id
        if selected is not None and all(o.id != selected for o in organizations):
            selected = None
        return state.model_copy(
            update={
                "organizations": organizations,
                "accounts": tuple(action.accounts),
                "deals": tuple(action.deals),
                "selected_organization_id": selected,
            }
        )

    if isinstance(action, OrganizationSelected):
        # Year options depend on the organization, so the year filter resets.
        return state.model_copy(
            update={
                "selected_organization_id": action.organization_id,
                "year_filter": ALL,
                "alert": None,
            }
        )

    if isinstance(action, StageFilterChanged):
        return state.model_copy(update={"stage_filter": action.stage})

    if isinstance(action, YearFilterChanged):
        return state.model_copy(update={"year_filter": action.year})

    if isinstance(action, OrganizationAdded):
        organizations = _sorted_organizations(
            [o for o in state.organizations if o.id != action.organization.id]
            + [action.organization]
        )
        return state.model_copy(update={"organizations": organizations})

    if isinstance(action, AccountAdded):
        return state.model_copy(update={"accounts": state.accounts + (action.account,)})

    if isinstance(action, DealAdded):
        return state.model_copy(update={"deals": state.deals + (action.deal,)})

    if isinstance(action, DealUpdated):
        deals = tuple(
            action.deal if d.id == action.deal.id else d for d in state.deals
        )
        return state.model_copy(update={"deals": deals})

    if isinstance(action, OrganizationRemoved):
        removed_accounts = {
            a.id for a in state.accounts if a.organization_id == action.organization_id
        }
        selected = state.selected_organization_id
        if selected == action.organization_id:
            selected = None
        return state.model_copy(
            update={
                "organizations": tuple(
                    o for o in state.organizations if o.id != action.organization_id
                ),
                "accounts": tuple(a for a in state.accounts if a.id not in removed_accounts),
                "deals": tuple(d for d in state.deals if d.account_id not in removed_accounts),
                "selected_organization_id": selected,
            }
        )

    if isinstance(action, AlertRaised):
        return state.model_copy(update={"alert": action.message})

    if isinstance(action, AlertDismissed):
        return state.model_copy(update={"alert": None})

    return state


# ── Store ───────────────────────────────────────────────────────────────────

Listener = Callable[[DashboardState], None]


def _persisted_selection(storage: KeyValueStore) -> int | None:
    value = storage.get(SELECTED_ORGANIZATION_KEY)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class DashboardStore:
    """Holds the current DashboardState and the persisted selection key.

    Args:
        storage: Durable key-value store for the selected organization id.
        initial: Starting state; its selection is replaced by the persisted one.
    """

    def __init__(self, storage: KeyValueStore, initial: DashboardState | None = None) -> None:
        self._storage = storage
        self._listeners: list[Listener] = []
        base = initial or DashboardState()
        self._state = base.model_copy(
            update={"selected_organization_id": _persisted_selection(storage)}
        )

    @property
    def state(self) -> DashboardState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new state; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> DashboardState:
        previous = self._state
        state = reduce(previous, action)
        if state is previous:
            return state

        self._state = state
        if state.selected_organization_id != previous.selected_organization_id:
            self._persist_selection(state.selected_organization_id)
        for listener in list(self._listeners):
            listener(state)
        return state

    def _persist_selection(self, organization_id: int | None) -> None:
        if organization_id is None:
            self._storage.delete(SELECTED_ORGANIZATION_KEY)
        else:
            self._storage.set(SELECTED_ORGANIZATION_KEY, organization_id)
        logger.debug("dashboard.selection_persisted", organization_id=organization_id)
