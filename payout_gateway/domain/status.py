"""Payout status rules"""

from typing import Optional

from payout_gateway.domain.exceptions import InvalidStatus, InvalidStatusTransition
from payout_gateway.domain.models import VALID_STATUSES, PayoutStatus

# Monotonic machine used only when strict transitions are enabled
ALLOWED = {
    PayoutStatus.PENDING: {PayoutStatus.COMPLETED, PayoutStatus.EXPIRED, PayoutStatus.ERROR},
    PayoutStatus.COMPLETED: set(),
    PayoutStatus.EXPIRED: set(),
    PayoutStatus.ERROR: set(),
}


def parse_status(value: Optional[object]) -> PayoutStatus:
    """Map a raw wire value onto PayoutStatus or raise InvalidStatus"""
    if isinstance(value, str) and value in VALID_STATUSES:
        return PayoutStatus(value)
    raise InvalidStatus(
        f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}",
        {"validStatuses": list(VALID_STATUSES)},
    )


def assert_transition(old: PayoutStatus, new: PayoutStatus) -> None:
    if old == new:
        return
    if new not in ALLOWED[old]:
        raise InvalidStatusTransition(
            f"Illegal payout transition: {old.value} -> {new.value}",
            {"from": old.value, "to": new.value},
        )
