"""Async HTTP client for the payout API contract"""

import httpx
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from payout_gateway.domain.exceptions import DomainException
from payout_gateway.config import settings


class PayoutClientTimeout(DomainException):
    """The caller's own timeout elapsed before the API answered"""

    pass


class PayoutApiUnavailable(DomainException):
    """The API could not be reached or did not return an envelope"""

    pass


@dataclass
class ApiResult:
    """Decoded response envelope plus its HTTP status"""

    status_code: int
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def error(self) -> Optional[str]:
        return self.data.get("error")


class PayoutClient:
    """Client for the payout gateway HTTP API

    A transport timeout raises PayoutClientTimeout. A 504 from the API is a
    simulated gateway timeout and comes back as an ordinary ApiResult with
    error GATEWAY_TIMEOUT.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        api_prefix: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.payout_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.api_prefix = settings.api_prefix if api_prefix is None else api_prefix
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=transport)

    async def __aenter__(self) -> "PayoutClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        timeout: float | None = None,
    ) -> ApiResult:
        """
        Send one request and decode the envelope.

        Raises:
            PayoutClientTimeout: The per-call (or client) timeout elapsed
            PayoutApiUnavailable: Network failure or a non-envelope body
        """
        kwargs: Dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self._client.request(method, path, **kwargs)
            body = response.json()
            return ApiResult(
                status_code=response.status_code,
                success=bool(body["success"]),
                message=body.get("message", ""),
                data=body.get("data") or {},
                headers=dict(response.headers),
            )

        except httpx.TimeoutException as e:
            raise PayoutClientTimeout(f"{method} {path} timed out after {timeout or self.timeout}s") from e
        except httpx.RequestError as e:
            raise PayoutApiUnavailable(f"{method} {path} failed: {e}") from e
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise PayoutApiUnavailable(f"Invalid response envelope from {path}: {e}") from e

    async def health(self) -> ApiResult:
        return await self._request("GET", "/health")

    async def create_payout(
        self,
        gamertag: str,
        amount: Any,
        project_id: str,
        idempotency_key: str | None = None,
        internal_id: str | None = None,
        description: str | None = None,
        callback_url: str | None = None,
        expires_in: int | None = None,
        timeout: float | None = None,
    ) -> ApiResult:
        payload = {
            "gamertag": gamertag,
            "amount": amount,
            "projectId": project_id,
            "idempotencyKey": idempotency_key,
            "internalId": internal_id,
            "description": description,
            "callbackUrl": callback_url,
            "expiresIn": expires_in,
        }
        payload = {key: value for key, value in payload.items() if value is not None}
        return await self._request("POST", f"{self.api_prefix}/payouts", json=payload, timeout=timeout)

    async def get_payout(self, payout_id: str) -> ApiResult:
        return await self._request("GET", f"{self.api_prefix}/payouts/{payout_id}")

    async def get_payout_by_internal_id(self, internal_id: str) -> ApiResult:
        return await self._request("GET", f"{self.api_prefix}/payouts/by-internal-id/{internal_id}")

    async def update_status(self, payout_id: str, status: str) -> ApiResult:
        return await self._request(
            "PATCH", f"{self.api_prefix}/payouts/{payout_id}/status", json={"status": status}
        )

    async def get_balance(self, project_id: str) -> ApiResult:
        return await self._request("GET", f"{self.api_prefix}/projects/{project_id}/balance")

    async def fund_project(self, project_id: str, amount: int) -> ApiResult:
        return await self._request(
            "POST", f"{self.api_prefix}/projects/{project_id}/fund", json={"amount": amount}
        )

    async def configure_failure_injection(self, **changes: Any) -> ApiResult:
        """Keyword names follow the wire: enabled, timeoutRate, rollbackOnTimeout"""
        return await self._request("POST", f"{self.api_prefix}/test/failure-injection", json=changes)

    async def expire_payout(self, payout_id: str) -> ApiResult:
        return await self._request("POST", f"{self.api_prefix}/test/expire/{payout_id}")

    async def callbacks(self) -> ApiResult:
        return await self._request("GET", f"{self.api_prefix}/test/callbacks")

    async def reset(self) -> ApiResult:
        return await self._request("DELETE", f"{self.api_prefix}/test/reset")
