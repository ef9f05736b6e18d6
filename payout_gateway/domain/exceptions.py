"""Domain-specific exceptions"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class LedgerInvariantError(DomainException):
    """Ledger state broke an invariant (a defect, never an API error)"""

    pass


class PayoutError(DomainException):
    """Expected, caller-recoverable failure with a wire code and HTTP status"""

    code = "PAYOUT_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_data(self) -> Dict[str, Any]:
        """Error payload placed under `data` in the response envelope"""
        return {"error": self.code, **self.details}


class ValidationError(PayoutError):
    """Required field missing or malformed request"""

    code = "VALIDATION_ERROR"


class InvalidAmount(PayoutError):
    """Amount outside the accepted range"""

    code = "INVALID_AMOUNT"


class DescriptionTooLong(PayoutError):
    """Description exceeds the maximum length"""

    code = "DESCRIPTION_TOO_LONG"


class InvalidCallbackUrl(PayoutError):
    """Callback URL is not http(s)"""

    code = "INVALID_CALLBACK_URL"


class InvalidStatus(PayoutError):
    """Status is not one of the known payout statuses"""

    code = "INVALID_STATUS"


class InsufficientBalance(PayoutError):
    """Project balance cannot cover amount plus fee"""

    code = "INSUFFICIENT_BALANCE"
    status_code = 402


class ProjectNotFound(PayoutError):
    """Project has never been funded"""

    code = "PROJECT_NOT_FOUND"
    status_code = 404


class PayoutNotFound(PayoutError):
    """No payout matches the id or internal id"""

    code = "PAYOUT_NOT_FOUND"
    status_code = 404


class InvalidStatusTransition(PayoutError):
    """Status change not allowed when strict transitions are enabled"""

    code = "INVALID_STATUS_TRANSITION"
    status_code = 409


class RateLimitExceeded(PayoutError):
    """Gamertag already received the maximum payouts in the window"""

    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    @property
    def retry_after(self) -> int:
        return int(self.details.get("retryAfter", 0))


class GatewayTimeout(PayoutError):
    """Simulated settlement network timeout after the balance was charged"""

    code = "GATEWAY_TIMEOUT"
    status_code = 504
