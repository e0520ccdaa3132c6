"""Integration tests for the /deals endpoints, stage steps, and /pipeline."""

from __future__ import annotations

import pytest

ALLOWED = (
    "build_proposal, pitch_proposal, negotiation, awaiting_signoff, signed, cancelled, lost"
)


@pytest.fixture
def account_factory(make_organization, make_account):
    async def _make() -> dict:
        org = await make_organization()
        return await make_account(org["id"])

    return _make


# ── CRUD ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_deal(client, account_factory):
    account = await account_factory()

    response = await client.post(
        "/deals",
        json={
            "account_id": account["id"],
            "value": 1500.5,
            "status": "negotiation",
            "year_of_creation": 2022,
        },
    )
    assert response.status_code == 201
    deal = response.json()
    assert isinstance(deal["id"], int)
    assert deal["account_id"] == account["id"]
    assert deal["value"] == 1500.5
    assert deal["status"] == "negotiation"
    assert deal["year_of_creation"] == 2022


@pytest.mark.asyncio
async def test_create_rejects_unknown_status(client, account_factory):
    account = await account_factory()

    response = await client.post(
        "/deals", json={"account_id": account["id"], "value": 10, "status": "pending"}
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": f"Deal status is required and must be one of: {ALLOWED}"
    }


@pytest.mark.asyncio
async def test_create_requires_existing_account(client):
    response = await client.post(
        "/deals", json={"account_id": 9999, "value": 10, "status": "signed"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Account ID does not reference an existing account"}


@pytest.mark.asyncio
async def test_create_rejects_negative_value(client, account_factory):
    account = await account_factory()
    response = await client.post(
        "/deals", json={"account_id": account["id"], "value": -5, "status": "signed"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Deal value must not be negative"}


@pytest.mark.asyncio
async def test_status_only_update_keeps_other_fields(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"], value=800, status="pitch_proposal", year_of_creation=2020)

    response = await client.put(f"/deals/{deal['id']}", json={"status": "signed"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "signed"
    assert updated["value"] == 800
    assert updated["account_id"] == account["id"]
    assert updated["year_of_creation"] == 2020


@pytest.mark.asyncio
async def test_update_rejects_whole_request_on_one_bad_field(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"], value=800)

    response = await client.put(f"/deals/{deal['id']}", json={"value": 5, "status": "won"})
    assert response.status_code == 400
    assert response.json() == {"error": f"Deal status must be one of: {ALLOWED}"}

    response = await client.get(f"/deals/{deal['id']}")
    assert response.json()["value"] == 800


@pytest.mark.asyncio
async def test_update_empty_body(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"])
    response = await client.put(f"/deals/{deal['id']}", json={})
    assert response.status_code == 400
    assert response.json() == {
        "error": "At least one field (account_id, value, or status) is required for update"
    }


@pytest.mark.asyncio
async def test_update_missing_deal(client):
    response = await client.put("/deals/9999", json={"value": 1})
    assert response.status_code == 404
    assert response.json() == {"error": "Deal not found"}


@pytest.mark.asyncio
async def test_delete_deal(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"])

    assert (await client.delete(f"/deals/{deal['id']}")).status_code == 204
    response = await client.get(f"/deals/{deal['id']}")
    assert response.status_code == 404
    assert response.json() == {"error": "Deal not found"}


@pytest.mark.asyncio
async def test_invalid_deal_id(client):
    response = await client.get("/deals/seven")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid deal ID"}


@pytest.mark.asyncio
async def test_out_of_range_deal_id_is_not_found(client):
    response = await client.get("/deals/99999999999999999999")
    assert response.status_code == 404
    assert response.json() == {"error": "Deal not found"}

    response = await client.post(f"/deals/{2**63}/advance")
    assert response.status_code == 404
    assert response.json() == {"error": "Deal not found"}


@pytest.mark.asyncio
async def test_create_rejects_overflowing_value(client, account_factory):
    account = await account_factory()
    response = await client.post(
        "/deals",
        json={"account_id": account["id"], "value": 10**400, "status": "signed"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Deal value is required and must be a number"}


@pytest.mark.asyncio
async def test_create_rejects_out_of_range_account(client):
    response = await client.post(
        "/deals", json={"account_id": 2**70, "value": 1, "status": "signed"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Account ID is required and must be a number"}


@pytest.mark.asyncio
async def test_list_deals(client, account_factory, make_deal):
    account = await account_factory()
    await make_deal(account["id"], value=1)
    await make_deal(account["id"], value=2)

    response = await client.get("/deals")
    assert response.status_code == 200
    assert [d["value"] for d in response.json()] == [1, 2]


# ── Stage Steps ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_advance_and_revert(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"], status="awaiting_signoff", value=300)

    response = await client.post(f"/deals/{deal['id']}/advance")
    assert response.status_code == 200
    assert response.json()["status"] == "signed"
    assert response.json()["value"] == 300

    response = await client.post(f"/deals/{deal['id']}/advance")
    assert response.json()["status"] == "cancelled"

    response = await client.post(f"/deals/{deal['id']}/revert")
    assert response.json()["status"] == "signed"


@pytest.mark.asyncio
async def test_advance_past_last_stage(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"], status="lost")

    response = await client.post(f"/deals/{deal['id']}/advance")
    assert response.status_code == 400
    assert response.json() == {"error": "Deal is already at the last stage"}


@pytest.mark.asyncio
async def test_revert_before_first_stage(client, account_factory, make_deal):
    account = await account_factory()
    deal = await make_deal(account["id"], status="build_proposal")

    response = await client.post(f"/deals/{deal['id']}/revert")
    assert response.status_code == 400
    assert response.json() == {"error": "Deal is already at the first stage"}


@pytest.mark.asyncio
async def test_advance_missing_deal(client):
    response = await client.post("/deals/9999/advance")
    assert response.status_code == 404


# ── Pipeline View ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pipeline_view(client, make_organization, make_account, make_deal):
    org = await make_organization("Acme")
    other = await make_organization("Other")
    account = await make_account(org["id"])
    foreign = await make_account(other["id"])
    await make_deal(account["id"], value=100, status="build_proposal", year_of_creation=2020)
    await make_deal(account["id"], value=200, status="signed", year_of_creation=2021)
    await make_deal(account["id"], value=50, status="lost", year_of_creation=2022)
    await make_deal(foreign["id"], value=999, status="signed", year_of_creation=2021)

    response = await client.get(
        "/pipeline", params={"organization_id": org["id"], "year": "2021"}
    )
    assert response.status_code == 200
    view = response.json()
    assert [d["value"] for d in view["visible_deals"]] == [200]
    assert len(view["organization_deals"]) == 3
    assert view["summary"] == {"potential": 100, "actual": 200, "unavailable": 50}
    assert view["available_years"] == [2022, 2021, 2020]
    assert [b["stage"] for b in view["visible_buckets"]][0] == "build_proposal"
    assert len(view["visible_buckets"]) == 7


@pytest.mark.asyncio
async def test_pipeline_without_organization_is_empty(client, account_factory, make_deal):
    account = await account_factory()
    await make_deal(account["id"], value=100)

    response = await client.get("/pipeline")
    assert response.status_code == 200
    view = response.json()
    assert view["organization_deals"] == []
    assert view["summary"] == {"potential": 0, "actual": 0, "unavailable": 0}
    assert all(b["count"] == 0 for b in view["organization_buckets"])


@pytest.mark.asyncio
async def test_pipeline_rejects_unknown_stage(client):
    response = await client.get("/pipeline", params={"organization_id": "1", "stage": "won"})
    assert response.status_code == 400
    assert response.json() == {"error": f"Stage filter must be 'all' or one of: {ALLOWED}"}


@pytest.mark.asyncio
async def test_pipeline_rejects_out_of_range_organization(client):
    response = await client.get("/pipeline", params={"organization_id": str(2**63)})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid organization ID"}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    await client.get("/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
