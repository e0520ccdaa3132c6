"""Tests for DealRepository against an in-memory SQLite database."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.dealboard.deals import repository as repository_module
from src.dealboard.deals.schemas import (
    AccountCreate,
    AccountUpdate,
    DealCreate,
    DealStage,
    DealUpdate,
    OrganizationCreate,
    OrganizationUpdate,
)


def _naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


@pytest.fixture
def clock(monkeypatch):
    """Controllable replacement for the repository's timestamp source."""
    times = {"now": datetime(2023, 3, 1, 9, 0, tzinfo=timezone.utc)}
    monkeypatch.setattr(repository_module, "_now", lambda: times["now"])
    return times


async def _seed(repo):
    org = await repo.create_organization(OrganizationCreate(name="Acme"))
    account = await repo.create_account(AccountCreate(name="Globex", organization_id=org.id))
    deal = await repo.create_deal(
        DealCreate(
            account_id=account.id,
            value=500,
            status=DealStage.NEGOTIATION,
            year_of_creation=2021,
        )
    )
    return org, account, deal


class TestOrganizations:
    @pytest.mark.asyncio
    async def test_create_assigns_integer_id(self, repo):
        org = await repo.create_organization(OrganizationCreate(name="Acme"))
        assert isinstance(org.id, int)
        assert org.name == "Acme"
        assert org.created_at is not None

    @pytest.mark.asyncio
    async def test_list_and_get(self, repo):
        first = await repo.create_organization(OrganizationCreate(name="Acme"))
        second = await repo.create_organization(OrganizationCreate(name="Umbrella"))
        listed = await repo.list_organizations()
        assert [o.id for o in listed] == [first.id, second.id]
        assert (await repo.get_organization(second.id)).name == "Umbrella"
        assert await repo.get_organization(9999) is None

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, repo):
        assert await repo.update_organization(9999, OrganizationUpdate(name="X")) is None

    @pytest.mark.asyncio
    async def test_noop_update_still_succeeds(self, repo):
        org = await repo.create_organization(OrganizationCreate(name="Acme"))
        updated = await repo.update_organization(org.id, OrganizationUpdate(name="Acme"))
        assert updated is not None
        assert updated.name == "Acme"


class TestAccounts:
    @pytest.mark.asyncio
    async def test_list_by_organization(self, repo):
        acme = await repo.create_organization(OrganizationCreate(name="Acme"))
        other = await repo.create_organization(OrganizationCreate(name="Other"))
        await repo.create_account(AccountCreate(name="A1", organization_id=acme.id))
        await repo.create_account(AccountCreate(name="B1", organization_id=other.id))

        scoped = await repo.list_accounts(organization_id=acme.id)
        assert [a.name for a in scoped] == ["A1"]
        assert len(await repo.list_accounts()) == 2

    @pytest.mark.asyncio
    async def test_partial_update(self, repo, clock):
        org = await repo.create_organization(OrganizationCreate(name="Acme"))
        account = await repo.create_account(AccountCreate(name="Globex", organization_id=org.id))

        clock["now"] = datetime(2023, 4, 1, 9, 0, tzinfo=timezone.utc)
        updated = await repo.update_account(account.id, AccountUpdate(name="Globex Corp"))

        assert updated.name == "Globex Corp"
        assert updated.organization_id == org.id
        assert _naive(updated.updated_at) == datetime(2023, 4, 1, 9, 0)
        assert _naive(updated.created_at) == datetime(2023, 3, 1, 9, 0)

    @pytest.mark.asyncio
    async def test_delete(self, repo):
        org = await repo.create_organization(OrganizationCreate(name="Acme"))
        account = await repo.create_account(AccountCreate(name="Globex", organization_id=org.id))
        assert await repo.delete_account(account.id) is True
        assert await repo.delete_account(account.id) is False
        assert await repo.get_account(account.id) is None


class TestDeals:
    @pytest.mark.asyncio
    async def test_year_defaults_to_current_year(self, repo, clock):
        org = await repo.create_organization(OrganizationCreate(name="Acme"))
        account = await repo.create_account(AccountCreate(name="Globex", organization_id=org.id))
        deal = await repo.create_deal(
            DealCreate(account_id=account.id, value=10, status=DealStage.BUILD_PROPOSAL)
        )
        assert deal.year_of_creation == 2023

    @pytest.mark.asyncio
    async def test_status_only_update_leaves_other_fields(self, repo, clock):
        _, account, deal = await _seed(repo)

        clock["now"] = datetime(2023, 9, 1, 9, 0, tzinfo=timezone.utc)
        updated = await repo.update_deal(deal.id, DealUpdate(status=DealStage.SIGNED))

        assert updated.status == DealStage.SIGNED
        assert updated.value == deal.value
        assert updated.account_id == account.id
        assert updated.year_of_creation == 2021
        assert updated.updated_at != deal.updated_at
        assert _naive(updated.updated_at) == datetime(2023, 9, 1, 9, 0)

    @pytest.mark.asyncio
    async def test_set_deal_status(self, repo):
        _, _, deal = await _seed(repo)
        updated = await repo.set_deal_status(deal.id, DealStage.AWAITING_SIGNOFF)
        assert updated.status == DealStage.AWAITING_SIGNOFF
        assert (await repo.get_deal(deal.id)).status == DealStage.AWAITING_SIGNOFF

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, repo):
        assert await repo.update_deal(9999, DealUpdate(value=1)) is None

    @pytest.mark.asyncio
    async def test_list_by_accounts(self, repo):
        org, account, deal = await _seed(repo)
        other = await repo.create_account(AccountCreate(name="Other", organization_id=org.id))
        await repo.create_deal(
            DealCreate(account_id=other.id, value=1, status=DealStage.LOST, year_of_creation=2020)
        )

        assert [d.id for d in await repo.list_deals(account_ids={account.id})] == [deal.id]
        assert len(await repo.list_deals()) == 2
        assert await repo.list_deals(account_ids=set()) == []

    @pytest.mark.asyncio
    async def test_delete(self, repo):
        _, _, deal = await _seed(repo)
        assert await repo.delete_deal(deal.id) is True
        assert await repo.get_deal(deal.id) is None
