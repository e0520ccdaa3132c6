"""Boundary validation -- raw request bodies into typed commands.

Request bodies arrive as decoded JSON. Each endpoint has one validator that
checks fields in a fixed order and either returns a command model or raises
RequestValidationFailed with the message for the first violation. A single
bad field rejects the whole request; nothing is partially applied.

JSON booleans are not numbers here even though bool subclasses int.
"""

from __future__ import annotations

import math
import re
from typing import Any

from src.dealboard.deals.exceptions import EntityNotFound, RequestValidationFailed
from src.dealboard.deals.schemas import (
    ALL,
    AccountCreate,
    AccountUpdate,
    DealCreate,
    DealStage,
    DealUpdate,
    OrganizationCreate,
    OrganizationUpdate,
    PipelineFilter,
)
from src.dealboard.deals.stages import allowed_statuses_message

_MISSING = object()
_INTEGER_TEXT = re.compile(r"-?[0-9]+")

# Identifiers and years are stored as signed 64-bit integers.
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _in_int64_range(value: int) -> bool:
    return _INT64_MIN <= value <= _INT64_MAX


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return _in_int64_range(value)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _is_stage(value: Any) -> bool:
    return isinstance(value, str) and value in DealStage._value2member_map_


def _require_object(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise RequestValidationFailed("Request body must be a JSON object")
    return body


def parse_identifier(raw: str, entity: str) -> int:
    """Parse a path identifier as a base-10 integer.

    Args:
        raw: Identifier exactly as it appeared in the route.
        entity: Lowercase entity name used in the message ("deal").

    Raises:
        RequestValidationFailed: "Invalid <entity> ID" if parsing fails.
        EntityNotFound: the number is outside the storable range, so no
            row can carry it.
    """
    text = raw.strip()
    if not _INTEGER_TEXT.fullmatch(text):
        raise RequestValidationFailed(f"Invalid {entity} ID")
    identifier = int(text)
    if not _in_int64_range(identifier):
        raise EntityNotFound(f"{entity.capitalize()} not found")
    return identifier


# ── Organizations ───────────────────────────────────────────────────────────


def validate_organization_create(body: Any) -> OrganizationCreate:
    data = _require_object(body)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise RequestValidationFailed("Organization name is required")
    return OrganizationCreate(name=name)


def validate_organization_update(body: Any) -> OrganizationUpdate:
    data = _require_object(body)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise RequestValidationFailed("Organization name is required for update")
    return OrganizationUpdate(name=name)


# ── Accounts ────────────────────────────────────────────────────────────────


def validate_account_create(body: Any) -> AccountCreate:
    data = _require_object(body)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise RequestValidationFailed("Account name is required")
    organization_id = data.get("organization_id")
    if not _is_integer(organization_id):
        raise RequestValidationFailed("Organization ID is required and must be a number")
    return AccountCreate(name=name, organization_id=organization_id)


def validate_account_update(body: Any) -> AccountUpdate:
    data = _require_object(body)
    name = data.get("name", _MISSING)
    organization_id = data.get("organization_id", _MISSING)

    if name is _MISSING and organization_id is _MISSING:
        raise RequestValidationFailed(
            "At least one field (name or organization_id) is required for update"
        )
    if organization_id is not _MISSING and not _is_integer(organization_id):
        raise RequestValidationFailed("Organization ID must be a number")
    if name is not _MISSING and not isinstance(name, str):
        raise RequestValidationFailed("Account name must be a string")

    fields: dict[str, Any] = {}
    if name is not _MISSING:
        fields["name"] = name
    if organization_id is not _MISSING:
        fields["organization_id"] = organization_id
    return AccountUpdate(**fields)


# ── Deals ───────────────────────────────────────────────────────────────────


def _check_year(data: dict[str, Any]) -> Any:
    year = data.get("year_of_creation", _MISSING)
    if year is not _MISSING and not _is_integer(year):
        raise RequestValidationFailed("Year of creation must be an integer")
    return year


def validate_deal_create(body: Any) -> DealCreate:
    data = _require_object(body)

    account_id = data.get("account_id")
    if not _is_integer(account_id):
        raise RequestValidationFailed("Account ID is required and must be a number")

    value = data.get("value")
    if not _is_number(value):
        raise RequestValidationFailed("Deal value is required and must be a number")
    if value < 0:
        raise RequestValidationFailed("Deal value must not be negative")

    status = data.get("status")
    if not _is_stage(status):
        raise RequestValidationFailed(
            f"Deal status is required and must be one of: {allowed_statuses_message()}"
        )

    year = _check_year(data)
    return DealCreate(
        account_id=account_id,
        value=value,
        status=DealStage(status),
        year_of_creation=None if year is _MISSING else year,
    )


def validate_deal_update(body: Any) -> DealUpdate:
    data = _require_object(body)
    account_id = data.get("account_id", _MISSING)
    value = data.get("value", _MISSING)
    status = data.get("status", _MISSING)

    if account_id is _MISSING and value is _MISSING and status is _MISSING:
        raise RequestValidationFailed(
            "At least one field (account_id, value, or status) is required for update"
        )
    if account_id is not _MISSING and not _is_integer(account_id):
        raise RequestValidationFailed("Account ID must be a number")
    if value is not _MISSING:
        if not _is_number(value):
            raise RequestValidationFailed("Deal value must be a number")
        if value < 0:
            raise RequestValidationFailed("Deal value must not be negative")
    if status is not _MISSING and not _is_stage(status):
        raise RequestValidationFailed(
            f"Deal status must be one of: {allowed_statuses_message()}"
        )
    year = _check_year(data)

    fields: dict[str, Any] = {}
    if account_id is not _MISSING:
        fields["account_id"] = account_id
    if value is not _MISSING:
        fields["value"] = value
    if status is not _MISSING:
        fields["status"] = DealStage(status)
    if year is not _MISSING:
        fields["year_of_creation"] = year
    return DealUpdate(**fields)


# ── Pipeline Query ──────────────────────────────────────────────────────────


def validate_pipeline_filter(
    organization_id: str | None,
    stage: str | None,
    year: str | None,
) -> PipelineFilter:
    """Validate pipeline query parameters (all arrive as strings)."""
    org_id = None
    if organization_id not in (None, ""):
        text = organization_id.strip()
        if not _INTEGER_TEXT.fullmatch(text) or not _in_int64_range(int(text)):
            raise RequestValidationFailed("Invalid organization ID")
        org_id = int(text)

    stage_filter: DealStage | str = ALL
    if stage not in (None, "", ALL):
        if not _is_stage(stage):
            raise RequestValidationFailed(
                f"Stage filter must be 'all' or one of: {allowed_statuses_message()}"
            )
        stage_filter = DealStage(stage)

    year_filter: int | str = ALL
    if year not in (None, "", ALL):
        text = year.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            raise RequestValidationFailed("Year filter must be 'all' or an integer")
        year_filter = int(text)

    return PipelineFilter(organization_id=org_id, stage=stage_filter, year=year_filter)
