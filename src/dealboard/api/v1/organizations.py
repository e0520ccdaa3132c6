"""REST API endpoints for organizations.

List, get, create, rename, and cascade delete. Deleting an organization
also removes its accounts and their deals in one transaction.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Response, status

from src.dealboard.api.deps import get_cascade_deleter, get_deal_repository, read_json_body
from src.dealboard.api.errors import store_operation
from src.dealboard.deals.cascade import CascadeDeleter
from src.dealboard.deals.exceptions import EntityNotFound
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import OrganizationRead
from src.dealboard.deals.validation import (
    parse_identifier,
    validate_organization_create,
    validate_organization_update,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("", response_model=list[OrganizationRead])
async def list_organizations(
    repo: DealRepository = Depends(get_deal_repository),
) -> list[OrganizationRead]:
    """List all organizations."""
    with store_operation("Failed to fetch organizations"):
        return await repo.list_organizations()


@router.get("/{organization_id}", response_model=OrganizationRead)
async def get_organization(
    organization_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> OrganizationRead:
    """Get a single organization by ID."""
    org_id = parse_identifier(organization_id, "organization")
    with store_operation("Failed to fetch organization", organization_id=org_id):
        organization = await repo.get_organization(org_id)
    if organization is None:
        raise EntityNotFound("Organization not found")
    return organization


@router.post("", response_model=OrganizationRead, status_code=status.HTTP_201_CREATED)
async def create_organization(
    body: Any = Depends(read_json_body),
    repo: DealRepository = Depends(get_deal_repository),
) -> OrganizationRead:
    """Create a new organization."""
    data = validate_organization_create(body)
    with store_operation("Failed to create organization"):
        return await repo.create_organization(data)


@router.put("/{organization_id}", response_model=OrganizationRead)
async def update_organization(
    organization_id: str,
    body: Any = Depends(read_json_body),
    repo: DealRepository = Depends(get_deal_repository),
) -> OrganizationRead:
    """Rename an organization."""
    org_id = parse_identifier(organization_id, "organization")
    data = validate_organization_update(body)
    with store_operation("Failed to update organization", organization_id=org_id):
        organization = await repo.update_organization(org_id, data)
    if organization is None:
        raise EntityNotFound("Organization not found")
    return organization


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    organization_id: str,
    deleter: CascadeDeleter = Depends(get_cascade_deleter),
) -> Response:
    """Delete an organization with all of its accounts and their deals."""
    org_id = parse_identifier(organization_id, "organization")
    with store_operation("Failed to delete organization", organization_id=org_id):
        result = await deleter.delete_organization(org_id)
    logger.info(
        "organizations.deleted",
        organization_id=org_id,
        account_ids=result.account_ids,
        deal_ids=result.deal_ids,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
