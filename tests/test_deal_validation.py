"""Unit tests for boundary validation of request bodies and query parameters."""

from __future__ import annotations

import pytest

from src.dealboard.deals.exceptions import EntityNotFound, RequestValidationFailed
from src.dealboard.deals.schemas import ALL, DealStage
from src.dealboard.deals.validation import (
    parse_identifier,
    validate_account_create,
    validate_account_update,
    validate_deal_create,
    validate_deal_update,
    validate_organization_create,
    validate_organization_update,
    validate_pipeline_filter,
)

ALLOWED = (
    "build_proposal, pitch_proposal, negotiation, awaiting_signoff, signed, cancelled, lost"
)


def _message(fn, *args) -> str:
    with pytest.raises(RequestValidationFailed) as exc_info:
        fn(*args)
    return exc_info.value.message


class TestParseIdentifier:
    @pytest.mark.parametrize("raw,expected", [("1", 1), ("42", 42), (" 7 ", 7), ("-3", -3)])
    def test_valid(self, raw, expected):
        assert parse_identifier(raw, "deal") == expected

    @pytest.mark.parametrize("raw", ["abc", "", "1.5", "--5", "1e3", "0x10", "²"])
    def test_invalid(self, raw):
        assert _message(parse_identifier, raw, "deal") == "Invalid deal ID"

    def test_entity_name_in_message(self):
        assert _message(parse_identifier, "x", "organization") == "Invalid organization ID"

    def test_int64_bounds_parse(self):
        assert parse_identifier(str(2**63 - 1), "deal") == 2**63 - 1
        assert parse_identifier(str(-(2**63)), "deal") == -(2**63)

    @pytest.mark.parametrize("raw", [str(2**63), "99999999999999999999", str(-(2**63) - 1)])
    def test_out_of_range_is_not_found(self, raw):
        with pytest.raises(EntityNotFound) as exc_info:
            parse_identifier(raw, "organization")
        assert exc_info.value.message == "Organization not found"


class TestOrganizationValidation:
    def test_create(self):
        assert validate_organization_create({"name": "Acme"}).name == "Acme"

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": 5}, {"name": None}])
    def test_create_requires_name(self, body):
        assert _message(validate_organization_create, body) == "Organization name is required"

    def test_update_requires_name(self):
        assert (
            _message(validate_organization_update, {})
            == "Organization name is required for update"
        )

    @pytest.mark.parametrize("body", [[], "Acme", 3, None])
    def test_body_must_be_object(self, body):
        assert _message(validate_organization_create, body) == "Request body must be a JSON object"


class TestAccountValidation:
    def test_create(self):
        cmd = validate_account_create({"name": "Globex", "organization_id": 3})
        assert cmd.name == "Globex"
        assert cmd.organization_id == 3

    def test_create_requires_name_first(self):
        assert _message(validate_account_create, {}) == "Account name is required"

    @pytest.mark.parametrize("org_id", [2**63, 2**70, -(2**63) - 1])
    def test_create_rejects_out_of_range_organization(self, org_id):
        assert (
            _message(validate_account_create, {"name": "Globex", "organization_id": org_id})
            == "Organization ID is required and must be a number"
        )

    def test_update_rejects_out_of_range_organization(self):
        assert (
            _message(validate_account_update, {"organization_id": 2**64})
            == "Organization ID must be a number"
        )

    @pytest.mark.parametrize("org_id", [None, "3", 3.5, True])
    def test_create_requires_integer_organization(self, org_id):
        body = {"name": "Globex", "organization_id": org_id}
        assert (
            _message(validate_account_create, body)
            == "Organization ID is required and must be a number"
        )

    def test_update_empty_body(self):
        assert (
            _message(validate_account_update, {})
            == "At least one field (name or organization_id) is required for update"
        )

    def test_update_bad_organization(self):
        assert (
            _message(validate_account_update, {"organization_id": "x"})
            == "Organization ID must be a number"
        )

    def test_update_bad_name(self):
        assert _message(validate_account_update, {"name": 12}) == "Account name must be a string"

    def test_update_keeps_only_supplied_fields(self):
        cmd = validate_account_update({"name": "Renamed"})
        assert cmd.model_dump(exclude_unset=True) == {"name": "Renamed"}


class TestDealValidation:
    def test_create(self):
        cmd = validate_deal_create(
            {"account_id": 1, "value": 250.5, "status": "negotiation", "year_of_creation": 2022}
        )
        assert cmd.account_id == 1
        assert cmd.value == 250.5
        assert cmd.status == DealStage.NEGOTIATION
        assert cmd.year_of_creation == 2022

    def test_create_without_year(self):
        cmd = validate_deal_create({"account_id": 1, "value": 0, "status": "signed"})
        assert cmd.year_of_creation is None
        assert cmd.value == 0

    def test_create_unknown_status(self):
        body = {"account_id": 1, "value": 10, "status": "pending"}
        assert (
            _message(validate_deal_create, body)
            == f"Deal status is required and must be one of: {ALLOWED}"
        )

    def test_create_checks_account_before_value(self):
        assert (
            _message(validate_deal_create, {"value": "x"})
            == "Account ID is required and must be a number"
        )

    @pytest.mark.parametrize("value", [None, "100", True, float("nan"), float("inf")])
    def test_create_value_must_be_number(self, value):
        body = {"account_id": 1, "value": value, "status": "signed"}
        assert (
            _message(validate_deal_create, body) == "Deal value is required and must be a number"
        )

    def test_create_value_too_large_for_float(self):
        body = {"account_id": 1, "value": 10**400, "status": "signed"}
        assert (
            _message(validate_deal_create, body) == "Deal value is required and must be a number"
        )

    def test_create_accepts_large_integer_value(self):
        body = {"account_id": 1, "value": 10**15, "status": "signed"}
        assert validate_deal_create(body).value == 1e15

    def test_create_rejects_out_of_range_account(self):
        body = {"account_id": 2**70, "value": 1, "status": "signed"}
        assert (
            _message(validate_deal_create, body) == "Account ID is required and must be a number"
        )

    def test_create_rejects_out_of_range_year(self):
        body = {"account_id": 1, "value": 1, "status": "signed", "year_of_creation": 2**63}
        assert _message(validate_deal_create, body) == "Year of creation must be an integer"

    def test_create_negative_value(self):
        body = {"account_id": 1, "value": -1, "status": "signed"}
        assert _message(validate_deal_create, body) == "Deal value must not be negative"

    def test_create_year_must_be_integer(self):
        body = {"account_id": 1, "value": 1, "status": "signed", "year_of_creation": "2020"}
        assert _message(validate_deal_create, body) == "Year of creation must be an integer"

    def test_update_empty_body(self):
        assert (
            _message(validate_deal_update, {})
            == "At least one field (account_id, value, or status) is required for update"
        )

    def test_update_year_alone_is_not_enough(self):
        assert _message(validate_deal_update, {"year_of_creation": 2020}).startswith(
            "At least one field"
        )

    def test_update_bad_status(self):
        assert (
            _message(validate_deal_update, {"status": "won"})
            == f"Deal status must be one of: {ALLOWED}"
        )

    def test_update_bad_account(self):
        assert _message(validate_deal_update, {"account_id": "1"}) == "Account ID must be a number"

    def test_update_bad_value(self):
        assert _message(validate_deal_update, {"value": "1"}) == "Deal value must be a number"

    def test_update_value_too_large_for_float(self):
        assert _message(validate_deal_update, {"value": 10**400}) == "Deal value must be a number"

    def test_update_rejects_out_of_range_account(self):
        assert _message(validate_deal_update, {"account_id": -(2**63) - 1}) == (
            "Account ID must be a number"
        )

    def test_one_bad_field_rejects_whole_update(self):
        with pytest.raises(RequestValidationFailed):
            validate_deal_update({"value": 10, "status": "nope"})

    def test_update_keeps_only_supplied_fields(self):
        cmd = validate_deal_update({"status": "signed"})
        assert cmd.model_dump(exclude_unset=True) == {"status": DealStage.SIGNED}


class TestPipelineFilterValidation:
    def test_defaults_to_all(self):
        filters = validate_pipeline_filter(None, None, None)
        assert filters.organization_id is None
        assert filters.stage == ALL
        assert filters.year == ALL

    def test_concrete_values(self):
        filters = validate_pipeline_filter("4", "signed", "2021")
        assert filters.organization_id == 4
        assert filters.stage == DealStage.SIGNED
        assert filters.year == 2021

    def test_bad_stage(self):
        assert _message(validate_pipeline_filter, "1", "pending", None) == (
            f"Stage filter must be 'all' or one of: {ALLOWED}"
        )

    def test_bad_year(self):
        assert (
            _message(validate_pipeline_filter, "1", "all", "last")
            == "Year filter must be 'all' or an integer"
        )

    def test_bad_organization(self):
        assert (
            _message(validate_pipeline_filter, "acme", None, None) == "Invalid organization ID"
        )

    def test_out_of_range_organization(self):
        assert (
            _message(validate_pipeline_filter, str(2**63), None, None)
            == "Invalid organization ID"
        )
