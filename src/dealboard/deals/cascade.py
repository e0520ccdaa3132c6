"""Organization cascade delete.

Removes an organization and every record that depends on it, in dependency
order, inside one storage transaction:

1. collect the organization's accounts
2. collect the deals owned by those accounts
3. delete each deal
4. delete each account
5. delete the organization

A failure at any step rolls the whole transaction back, so either the
complete subtree is removed or nothing is. The store has no foreign key
cascade; this class is the only place dependents are removed.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.dealboard.core.database import session_scope
from src.dealboard.core.monitoring import cascade_deletes_total
from src.dealboard.deals.exceptions import EntityNotFound
from src.dealboard.deals.models import AccountModel, DealModel, OrganizationModel
from src.dealboard.deals.schemas import CascadeDeleteResult

logger = structlog.get_logger(__name__)


class CascadeDeleter:
    """Transactional organization -> accounts -> deals removal.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def delete_organization(self, organization_id: int) -> CascadeDeleteResult:
        """Delete an organization together with its accounts and their deals.

        Args:
            organization_id: Organization to remove.

        Returns:
            CascadeDeleteResult listing the removed account and deal ids.

        Raises:
            EntityNotFound: If the organization does not exist (nothing is deleted).
            SQLAlchemyError: If any store call fails (the transaction is rolled back).
        """
        try:
            async with session_scope(self._session_factory) as session:
                async with session.begin():
                    organization = await session.get(OrganizationModel, organization_id)
                    if organization is None:
                        raise EntityNotFound("Organization not found")

                    account_ids = await self._collect_account_ids(session, organization_id)
                    deal_ids = await self._collect_deal_ids(session, account_ids)

                    for deal_id in deal_ids:
                        await self._delete_deal(session, deal_id)
                    for account_id in account_ids:
                        await self._delete_account(session, account_id)
                    await self._delete_organization(session, organization_id)
        except EntityNotFound:
            cascade_deletes_total.labels(outcome="not_found").inc()
            raise
        except Exception:
            cascade_deletes_total.labels(outcome="rolled_back").inc()
            logger.warning(
                "cascade.rolled_back",
                organization_id=organization_id,
                exc_info=True,
            )
            raise

        cascade_deletes_total.labels(outcome="deleted").inc()
        logger.info(
            "cascade.organization_deleted",
            organization_id=organization_id,
            account_count=len(account_ids),
            deal_count=len(deal_ids),
        )
        return CascadeDeleteResult(
            organization_id=organization_id,
            account_ids=account_ids,
            deal_ids=deal_ids,
        )

    # ── Steps ───────────────────────────────────────────────────────────────

    async def _collect_account_ids(
        self, session: AsyncSession, organization_id: int
    ) -> list[int]:
        result = await session.execute(
            select(AccountModel.id)
            .where(AccountModel.organization_id == organization_id)
            .order_by(AccountModel.id)
        )
        return list(result.scalars().all())

    async def _collect_deal_ids(
        self, session: AsyncSession, account_ids: list[int]
    ) -> list[int]:
        if not account_ids:
            return []
        result = await session.execute(
            select(DealModel.id)
            .where(DealModel.account_id.in_(account_ids))
            .order_by(DealModel.id)
        )
        return list(result.scalars().all())

    async def _delete_deal(self, session: AsyncSession, deal_id: int) -> None:
        await session.execute(delete(DealModel).where(DealModel.id == deal_id))

    async def _delete_account(self, session: AsyncSession, account_id: int) -> None:
        await session.execute(delete(AccountModel).where(AccountModel.id == account_id))

    async def _delete_organization(self, session: AsyncSession, organization_id: int) -> None:
        await session.execute(
            delete(OrganizationModel).where(OrganizationModel.id == organization_id)
        )
