"""Service fee calculation for payouts"""

import math
from decimal import Decimal
from typing import Tuple


def calculate_fee(amount_sats: int, fee_rate: float = 0.02) -> int:
    """
    Service fee charged to the project on top of the payout amount.

    Requirements:
    - fee = ceiling(amount × rate), in whole sats
    - Any non-zero amount pays at least 1 sat

    The rate goes through Decimal(str(...)) so that 0.02 is exact and
    products like 150 × 0.02 never round up to 4 through float error.

    Example:
        1 sat      → fee 1   (0.02 rounds up)
        150 sats   → fee 3
        100000 sats → fee 2000
    """
    if amount_sats <= 0:
        return 0
    return math.ceil(Decimal(amount_sats) * Decimal(str(fee_rate)))


def calculate_total_cost(amount_sats: int, fee_rate: float = 0.02) -> Tuple[int, int]:
    """Return (fee, amount + fee)"""
    fee = calculate_fee(amount_sats, fee_rate)
    return fee, amount_sats + fee
