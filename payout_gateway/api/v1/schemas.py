"""Pydantic schemas for API request/response validation"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from payout_gateway.domain.models import PayoutRequest


class ApiResponse(BaseModel):
    """Envelope wrapping every response body"""

    success: bool
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


def envelope(
    data: Optional[Dict[str, Any]] = None,
    message: str = "",
    status_code: int = 200,
    success: bool = True,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Render an ApiResponse with an explicit HTTP status"""
    body = ApiResponse(success=success, message=message, data=data or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PayoutCreateRequest(_CamelRequest):
    """Request body for POST /payouts

    Every field is optional here so the ledger can tell an omitted amount
    from an amount of zero; the ledger owns the validation order.
    """

    gamertag: Optional[str] = None
    amount: Any = None
    project_id: Optional[str] = Field(default=None, alias="projectId")
    idempotency_key: Optional[str] = Field(default=None, alias="idempotencyKey")
    callback_url: Optional[str] = Field(default=None, alias="callbackUrl")
    expires_in: Any = Field(default=None, alias="expiresIn")
    description: Optional[str] = None
    internal_id: Optional[str] = Field(default=None, alias="internalId")

    def to_domain(self) -> PayoutRequest:
        return PayoutRequest(
            gamertag=self.gamertag,
            amount=self.amount,
            project_id=self.project_id,
            idempotency_key=self.idempotency_key,
            callback_url=self.callback_url,
            description=self.description,
            expires_in=self.expires_in,
            internal_id=self.internal_id,
        )


class StatusUpdateRequest(_CamelRequest):
    """Request body for PATCH /payouts/{id}/status"""

    status: Any = None


class FundRequest(_CamelRequest):
    """Request body for POST /projects/{id}/fund"""

    amount: Any = None


class FailureInjectionRequest(_CamelRequest):
    """Request body for POST /test/failure-injection (all fields optional)"""

    enabled: Any = None
    timeout_rate: Any = Field(default=None, alias="timeoutRate")
    rollback_on_timeout: Any = Field(default=None, alias="rollbackOnTimeout")
