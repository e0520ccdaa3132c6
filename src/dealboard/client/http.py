"""Async HTTP client for the dealboard REST API.

Wraps every resource endpoint in a typed coroutine returning the read
schemas. Error responses carry {"error": message}; those become
DealboardAPIError with the status code and message. Transport failures are
wrapped the same way with status_code None. Nothing is retried.

The httpx transport is injectable so tests can drive the ASGI app in
process with httpx.ASGITransport.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.dealboard.deals.schemas import (
    ALL,
    AccountRead,
    DealRead,
    DealStage,
    OrganizationRead,
    PipelineView,
)

logger = structlog.get_logger(__name__)


class DealboardAPIError(Exception):
    """A failed API call.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        message: The server's {"error": ...} text, or a transport description.
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class DealboardClient:
    """Async client for the organizations, accounts, deals and pipeline endpoints.

    Args:
        base_url: API root, e.g. http://localhost:8000.
        transport: Optional httpx transport (ASGITransport in tests).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            transport=self._transport,
            timeout=self._timeout,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("client.transport_failed", method=method, path=path, error=str(exc))
            raise DealboardAPIError(None, str(exc)) from exc

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = (
                payload.get("error") if isinstance(payload, dict) else None
            ) or response.text
            logger.warning(
                "client.request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise DealboardAPIError(response.status_code, message)

        if response.status_code == httpx.codes.NO_CONTENT:
            return None
        return response.json()

    # ── Organizations ───────────────────────────────────────────────────────

    async def list_organizations(self) -> list[OrganizationRead]:
        data = await self._request("GET", "/organizations")
        return [OrganizationRead.model_validate(item) for item in data]

    async def get_organization(self, organization_id: int) -> OrganizationRead:
        data = await self._request("GET", f"/organizations/{organization_id}")
        return OrganizationRead.model_validate(data)

    async def create_organization(self, name: str) -> OrganizationRead:
        data = await self._request("POST", "/organizations", json={"name": name})
        return OrganizationRead.model_validate(data)

    async def update_organization(self, organization_id: int, name: str) -> OrganizationRead:
        data = await self._request(
            "PUT", f"/organizations/{organization_id}", json={"name": name}
        )
        return OrganizationRead.model_validate(data)

    async def delete_organization(self, organization_id: int) -> None:
        """Delete an organization; the server also removes its accounts and deals."""
        await self._request("DELETE", f"/organizations/{organization_id}")

    # ── Accounts ────────────────────────────────────────────────────────────

    async def list_accounts(self) -> list[AccountRead]:
        data = await self._request("GET", "/accounts")
        return [AccountRead.model_validate(item) for item in data]

    async def get_account(self, account_id: int) -> AccountRead:
        data = await self._request("GET", f"/accounts/{account_id}")
        return AccountRead.model_validate(data)

    async def create_account(self, name: str, organization_id: int) -> AccountRead:
        data = await self._request(
            "POST",
            "/accounts",
            json={"name": name, "organization_id": organization_id},
        )
        return AccountRead.model_validate(data)

    async def update_account(self, account_id: int, **fields: Any) -> AccountRead:
        data = await self._request("PUT", f"/accounts/{account_id}", json=fields)
        return AccountRead.model_validate(data)

    async def delete_account(self, account_id: int) -> None:
        await self._request("DELETE", f"/accounts/{account_id}")

    # ── Deals ───────────────────────────────────────────────────────────────

    async def list_deals(self) -> list[DealRead]:
        data = await self._request("GET", "/deals")
        return [DealRead.model_validate(item) for item in data]

    async def get_deal(self, deal_id: int) -> DealRead:
        data = await self._request("GET", f"/deals/{deal_id}")
        return DealRead.model_validate(data)

    async def create_deal(
        self,
        account_id: int,
        value: float,
        status: DealStage,
        year_of_creation: int | None = None,
    ) -> DealRead:
        body: dict[str, Any] = {
            "account_id": account_id,
            "value": value,
            "status": DealStage(status).value,
        }
        if year_of_creation is not None:
            body["year_of_creation"] = year_of_creation
        data = await self._request("POST", "/deals", json=body)
        return DealRead.model_validate(data)

    async def update_deal(self, deal_id: int, **fields: Any) -> DealRead:
        if "status" in fields:
            fields["status"] = DealStage(fields["status"]).value
        data = await self._request("PUT", f"/deals/{deal_id}", json=fields)
        return DealRead.model_validate(data)

    async def delete_deal(self, deal_id: int) -> None:
        await self._request("DELETE", f"/deals/{deal_id}")

    async def advance_deal(self, deal_id: int) -> DealRead:
        data = await self._request("POST", f"/deals/{deal_id}/advance")
        return DealRead.model_validate(data)

    async def revert_deal(self, deal_id: int) -> DealRead:
        data = await self._request("POST", f"/deals/{deal_id}/revert")
        return DealRead.model_validate(data)

    # ── Pipeline ────────────────────────────────────────────────────────────

    async def get_pipeline(
        self,
        organization_id: int | None,
        stage: DealStage | str = ALL,
        year: int | str = ALL,
    ) -> PipelineView:
        """Fetch the server-side pipeline view for one filter selection."""
        params: dict[str, Any] = {
            "stage": stage.value if isinstance(stage, DealStage) else stage,
            "year": str(year),
        }
        if organization_id is not None:
            params["organization_id"] = str(organization_id)
        data = await self._request("GET", "/pipeline", params=params)
        return PipelineView.model_validate(data)
