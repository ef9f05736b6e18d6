"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class PayoutStatus(str, Enum):
    """All possible payout states, in display order"""

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"
    ERROR = "error"


STATUS_DESCRIPTIONS = {
    PayoutStatus.PENDING: "Payment initiated, awaiting confirmation",
    PayoutStatus.COMPLETED: "Payment successfully delivered",
    PayoutStatus.EXPIRED: "Payment window expired (not claimed)",
    PayoutStatus.ERROR: "Payment failed due to error",
}

VALID_STATUSES = [status.value for status in PayoutStatus]


def isoformat(moment: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with millisecond precision and a Z suffix"""
    if moment is None:
        return None
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class PayoutRequest:
    """Raw create-payout input; fields stay None when the caller omitted them"""

    gamertag: Optional[str] = None
    amount: Optional[Any] = None
    project_id: Optional[str] = None
    idempotency_key: Optional[str] = None
    callback_url: Optional[str] = None
    description: Optional[str] = None
    expires_in: Optional[int] = None
    internal_id: Optional[str] = None


@dataclass
class Project:
    """Balance-holding account"""

    project_id: str
    balance: int = 0


@dataclass
class Payout:
    """Attempted transfer from a project to a gamertag"""

    id: str
    gamertag: str
    amount: int
    fee: int
    total_cost: int
    project_id: str
    status: PayoutStatus
    expires_in: int
    created_at: datetime
    expires_at: datetime
    idempotency_key: Optional[str] = None
    internal_id: Optional[str] = None
    description: Optional[str] = None
    callback_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys)"""
        return {
            "id": self.id,
            "internalId": self.internal_id,
            "gamertag": self.gamertag,
            "amount": self.amount,
            "fee": self.fee,
            "totalCost": self.total_cost,
            "projectId": self.project_id,
            "idempotencyKey": self.idempotency_key,
            "description": self.description,
            "callbackUrl": self.callback_url,
            "status": self.status.value,
            "expiresIn": self.expires_in,
            "expiresAt": isoformat(self.expires_at),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass
class FailureInjectionConfig:
    """Chaos settings read on every payout attempt"""

    enabled: bool = False
    timeout_rate: float = 0.05
    rollback_on_timeout: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "timeoutRate": self.timeout_rate,
            "rollbackOnTimeout": self.rollback_on_timeout,
        }


@dataclass
class CallbackEntry:
    """One simulated webhook delivery"""

    url: str
    payload: Dict[str, Any]
    sent_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "payload": self.payload, "sentAt": isoformat(self.sent_at)}


@dataclass
class PayoutResult:
    """Outcome of CreatePayout: the payout plus whether it was a replay"""

    payout: Payout
    duplicate: bool = False


@dataclass
class FundResult:
    project_id: str
    previous_balance: int
    added_amount: int
    new_balance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "previousBalance": self.previous_balance,
            "addedAmount": self.added_amount,
            "newBalance": self.new_balance,
        }


@dataclass
class LedgerPolicy:
    """Tunable rules of the ledger engine"""

    service_fee_rate: float = 0.02
    min_amount: int = 1
    max_amount: int = 100_000
    max_description_length: int = 144
    default_expiry_seconds: int = 300
    rate_limit_max: int = 10
    rate_limit_window_seconds: int = 3600
    settlement_delay_ms: Tuple[int, int] = (50, 150)
    gateway_timeout_seconds: float = 2.0
    seed_project_id: Optional[str] = "project_test_001"
    seed_project_balance: int = 100_000
    strict_status_transitions: bool = False
    legacy_global_idempotency: bool = False
    legacy_unknown_project_zero_balance: bool = False
