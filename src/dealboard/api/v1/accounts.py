"""REST API endpoints for accounts."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from src.dealboard.api.deps import get_deal_repository, read_json_body
from src.dealboard.api.errors import store_operation
from src.dealboard.deals.exceptions import EntityNotFound, RequestValidationFailed
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import AccountRead
from src.dealboard.deals.validation import (
    parse_identifier,
    validate_account_create,
    validate_account_update,
)

router = APIRouter(prefix="/accounts", tags=["accounts"])


async def _require_organization(repo: DealRepository, organization_id: int) -> None:
    """Reject account writes that point at a missing organization."""
    with store_operation("Failed to fetch organization", organization_id=organization_id):
        organization = await repo.get_organization(organization_id)
    if organization is None:
        raise RequestValidationFailed(
            "Organization ID does not reference an existing organization"
        )


@router.get("", response_model=list[AccountRead])
async def list_accounts(
    repo: DealRepository = Depends(get_deal_repository),
) -> list[AccountRead]:
    """List all accounts."""
    with store_operation("Failed to fetch accounts"):
        return await repo.list_accounts()


@router.get("/{account_id}", response_model=AccountRead)
async def get_account(
    account_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> AccountRead:
    """Get a single account by ID."""
    acc_id = parse_identifier(account_id, "account")
    with store_operation("Failed to fetch account", account_id=acc_id):
        account = await repo.get_account(acc_id)
    if account is None:
        raise EntityNotFound("Account not found")
    return account


@router.post("", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
async def create_account(
    body: Any = Depends(read_json_body),
    repo: DealRepository = Depends(get_deal_repository),
) -> AccountRead:
    """Create a new account under an existing organization."""
    data = validate_account_create(body)
    await _require_organization(repo, data.organization_id)
    with store_operation("Failed to create account"):
        return await repo.create_account(data)


@router.put("/{account_id}", response_model=AccountRead)
async def update_account(
    account_id: str,
    body: Any = Depends(read_json_body),
    repo: DealRepository = Depends(get_deal_repository),
) -> AccountRead:
    """Partially update an account (name and/or organization_id)."""
    acc_id = parse_identifier(account_id, "account")
    data = validate_account_update(body)
    if data.organization_id is not None:
        await _require_organization(repo, data.organization_id)
    with store_operation("Failed to update account", account_id=acc_id):
        account = await repo.update_account(acc_id, data)
    if account is None:
        raise EntityNotFound("Account not found")
    return account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> Response:
    """Delete an account."""
    acc_id = parse_identifier(account_id, "account")
    with store_operation("Failed to delete account", account_id=acc_id):
        deleted = await repo.delete_account(acc_id)
    if not deleted:
        raise EntityNotFound("Account not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
