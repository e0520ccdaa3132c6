"""Deal pipeline repository -- async CRUD for organizations, accounts, and deals.

Provides DealRepository with the session_factory callable pattern: every
method opens its own session from the factory, so one request maps to one
short unit of work. Handles conversion between SQLAlchemy models and the
Pydantic read schemas.

Updates are partial: only fields set on the command change, and updated_at
is refreshed on every successful update. Existence is checked before an
update is applied, so an update against a missing id returns None while an
update that changes nothing still succeeds.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.dealboard.core.database import session_scope
from src.dealboard.deals.models import AccountModel, DealModel, OrganizationModel
from src.dealboard.deals.schemas import (
    AccountCreate,
    AccountRead,
    AccountUpdate,
    DealCreate,
    DealRead,
    DealStage,
    DealUpdate,
    OrganizationCreate,
    OrganizationRead,
    OrganizationUpdate,
)

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_organization(model: OrganizationModel) -> OrganizationRead:
    """Convert OrganizationModel to OrganizationRead schema."""
    return OrganizationRead(
        id=model.id,
        name=model.name,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _model_to_account(model: AccountModel) -> AccountRead:
    """Convert AccountModel to AccountRead schema."""
    return AccountRead(
        id=model.id,
        name=model.name,
        organization_id=model.organization_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _model_to_deal(model: DealModel) -> DealRead:
    """Convert DealModel to DealRead schema."""
    return DealRead(
        id=model.id,
        account_id=model.account_id,
        value=model.value,
        status=DealStage(model.status),
        year_of_creation=model.year_of_creation,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


# ── Repository ──────────────────────────────────────────────────────────────


class DealRepository:
    """Async CRUD operations for all deal pipeline entities.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with session_scope(self._session_factory) as session:
            yield session

    # ── Organizations ───────────────────────────────────────────────────────

    async def list_organizations(self) -> list[OrganizationRead]:
        async with self._session() as session:
            result = await session.execute(
                select(OrganizationModel).order_by(OrganizationModel.id)
            )
            return [_model_to_organization(m) for m in result.scalars().all()]

    async def get_organization(self, organization_id: int) -> OrganizationRead | None:
        async with self._session() as session:
            model = await session.get(OrganizationModel, organization_id)
            if model is None:
                return None
            return _model_to_organization(model)

    async def create_organization(self, data: OrganizationCreate) -> OrganizationRead:
        async with self._session() as session:
            now = _now()
            model = OrganizationModel(name=data.name, created_at=now, updated_at=now)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("repository.organization_created", organization_id=model.id)
            return _model_to_organization(model)

    async def update_organization(
        self, organization_id: int, data: OrganizationUpdate
    ) -> OrganizationRead | None:
        """Rename an organization.

        Returns:
            Updated OrganizationRead, or None if the id does not exist.
        """
        async with self._session() as session:
            model = await session.get(OrganizationModel, organization_id)
            if model is None:
                return None
            model.name = data.name
            model.updated_at = _now()
            await session.commit()
            await session.refresh(model)
            return _model_to_organization(model)

    # ── Accounts ────────────────────────────────────────────────────────────

    async def list_accounts(self, organization_id: int | None = None) -> list[AccountRead]:
        """List accounts, optionally only those of one organization."""
        async with self._session() as session:
            stmt = select(AccountModel).order_by(AccountModel.id)
            if organization_id is not None:
                stmt = stmt.where(AccountModel.organization_id == organization_id)
            result = await session.execute(stmt)
            return [_model_to_account(m) for m in result.scalars().all()]

    async def get_account(self, account_id: int) -> AccountRead | None:
        async with self._session() as session:
            model = await session.get(AccountModel, account_id)
            if model is None:
                return None
            return _model_to_account(model)

    async def create_account(self, data: AccountCreate) -> AccountRead:
        async with self._session() as session:
            now = _now()
            model = AccountModel(
                name=data.name,
                organization_id=data.organization_id,
                created_at=now,
                updated_at=now,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info(
                "repository.account_created",
                account_id=model.id,
                organization_id=model.organization_id,
            )
            return _model_to_account(model)

    async def update_account(
        self, account_id: int, data: AccountUpdate
    ) -> AccountRead | None:
        """Apply a partial account update.

        Returns:
            Updated AccountRead, or None if the id does not exist.
        """
        async with self._session() as session:
            model = await session.get(AccountModel, account_id)
            if model is None:
                return None
            for key, value in data.model_dump(exclude_unset=True).items():
                setattr(model, key, value)
            model.updated_at = _now()
            await session.commit()
            await session.refresh(model)
            return _model_to_account(model)

    async def delete_account(self, account_id: int) -> bool:
        """Delete one account row; its deals are left in place.

        Only organization deletes cascade, see CascadeDeleter.
        """
        async with self._session() as session:
            result = await session.execute(
                delete(AccountModel).where(AccountModel.id == account_id)
            )
            await session.commit()
            return result.rowcount > 0

    # ── Deals ───────────────────────────────────────────────────────────────

    async def list_deals(self, account_ids: set[int] | None = None) -> list[DealRead]:
        """List deals, optionally restricted to a set of owning accounts."""
        async with self._session() as session:
            stmt = select(DealModel).order_by(DealModel.id)
            if account_ids is not None:
                stmt = stmt.where(DealModel.account_id.in_(account_ids))
            result = await session.execute(stmt)
            return [_model_to_deal(m) for m in result.scalars().all()]

    async def get_deal(self, deal_id: int) -> DealRead | None:
        async with self._session() as session:
            model = await session.get(DealModel, deal_id)
            if model is None:
                return None
            return _model_to_deal(model)

    async def create_deal(self, data: DealCreate) -> DealRead:
        """Create a deal; a missing year_of_creation defaults to the current UTC year."""
        async with self._session() as session:
            now = _now()
            model = DealModel(
                account_id=data.account_id,
                value=data.value,
                status=DealStage(data.status).value,
                year_of_creation=(
                    data.year_of_creation
                    if data.year_of_creation is not None
                    else now.year
                ),
                created_at=now,
                updated_at=now,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info(
                "repository.deal_created",
                deal_id=model.id,
                account_id=model.account_id,
                status=model.status,
            )
            return _model_to_deal(model)

    async def update_deal(self, deal_id: int, data: DealUpdate) -> DealRead | None:
        """Apply a partial deal update.

        Only fields set on the command change; updated_at always refreshes.

        Returns:
            Updated DealRead, or None if the id does not exist.
        """
        async with self._session() as session:
            model = await session.get(DealModel, deal_id)
            if model is None:
                return None
            for key, value in data.model_dump(exclude_unset=True).items():
                if key == "status":
                    value = DealStage(value).value
                setattr(model, key, value)
            model.updated_at = _now()
            await session.commit()
            await session.refresh(model)
            return _model_to_deal(model)

    async def set_deal_status(self, deal_id: int, status: DealStage) -> DealRead | None:
        """Persist a new status, leaving every other field untouched."""
        return await self.update_deal(deal_id, DealUpdate(status=status))

    async def delete_deal(self, deal_id: int) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(DealModel).where(DealModel.id == deal_id))
            await session.commit()
            return result.rowcount > 0
