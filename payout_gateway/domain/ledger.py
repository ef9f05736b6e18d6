"""Payout ledger engine - balances, idempotency, rate limits and failure injection"""

import asyncio
import logging
import random
import re
import time
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from payout_gateway.domain.exceptions import (
    DescriptionTooLong,
    GatewayTimeout,
    InsufficientBalance,
    InvalidAmount,
    InvalidCallbackUrl,
    LedgerInvariantError,
    PayoutNotFound,
    ProjectNotFound,
    RateLimitExceeded,
    ValidationError,
)
from payout_gateway.domain.fees import calculate_total_cost
from payout_gateway.domain.models import (
    CallbackEntry,
    FailureInjectionConfig,
    FundResult,
    LedgerPolicy,
    Payout,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
    Project,
)
from payout_gateway.domain.rate_limit import SlidingWindowRateLimiter
from payout_gateway.domain.status import assert_transition, parse_status
from payout_gateway.infrastructure.callbacks import CallbackLog

logger = logging.getLogger(__name__)

CALLBACK_URL_PATTERN = re.compile(r"^https?://.+")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _blank(value: Optional[str]) -> bool:
    return value is None or value == ""


class PayoutLedger:
    """
    In-memory payout engine owning every piece of mutable state.

    Concurrency model (single asyncio event loop):
    - Balance read-modify-write always happens under the project's lock.
    - Idempotency lookup and payout commit share that lock, so two requests
      with the same (project, key) can never both create a payout.
    - Rate-limit slots are reserved atomically and released when the payout
      does not commit.
    """

    def __init__(
        self,
        policy: Optional[LedgerPolicy] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.policy = policy or LedgerPolicy()
        self._clock = clock
        self._rng = rng or random.Random()
        self._sleep = sleep

        self._projects: Dict[str, Project] = {}
        self._payouts: Dict[str, Payout] = {}
        self._internal_ids: Dict[str, str] = {}
        self._idempotency: Dict[Tuple[str, str], str] = {}
        self._idempotency_any_project: Dict[str, str] = {}
        self._project_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        self.rate_limiter = SlidingWindowRateLimiter(
            limit=self.policy.rate_limit_max,
            window_seconds=self.policy.rate_limit_window_seconds,
            clock=clock,
        )
        self.callbacks = CallbackLog(self.now)
        self.failure_injection = FailureInjectionConfig()

        self._seed()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _seed(self) -> None:
        if self.policy.seed_project_id:
            self._projects[self.policy.seed_project_id] = Project(
                project_id=self.policy.seed_project_id,
                balance=self.policy.seed_project_balance,
            )

    def _generate_id(self) -> str:
        millis = int(self._clock() * 1000)
        while True:
            payout_id = f"payout_{millis}_{uuid.uuid4().hex[:9]}"
            if payout_id not in self._payouts:
                return payout_id

    async def _network_delay(self) -> None:
        low, high = self.policy.settlement_delay_ms
        if high <= 0:
            return
        await self._sleep(self._rng.uniform(low, high) / 1000)

    def _apply_delta(self, project: Project, delta: int) -> None:
        new_balance = project.balance + delta
        if new_balance < 0:
            raise LedgerInvariantError(
                f"Balance of {project.project_id} would become negative ({new_balance})"
            )
        project.balance = new_balance

    def _emit_callback(self, payout: Payout) -> None:
        if payout.callback_url:
            self.callbacks.send(payout.callback_url, payout)

    def _find_idempotent(self, project_id: str, key: Optional[str]) -> Optional[Payout]:
        if _blank(key):
            return None
        if self.policy.legacy_global_idempotency:
            payout_id = self._idempotency_any_project.get(key)
        else:
            payout_id = self._idempotency.get((project_id, key))
        return self._payouts.get(payout_id) if payout_id else None

    def _refresh_expiry(self, payout: Payout) -> Payout:
        now = self.now()
        if payout.status == PayoutStatus.PENDING and payout.is_expired(now):
            payout.status = PayoutStatus.EXPIRED
            payout.updated_at = now
            logger.info("Payout expired on read", extra={"payout_id": payout.id})
            self._emit_callback(payout)
        return payout

    def _replay(self, existing: Payout, project_id: str) -> PayoutResult:
        logger.info(
            "Idempotent payout replay",
            extra={"payout_id": existing.id, "project_id": project_id},
        )
        return PayoutResult(payout=existing, duplicate=True)

    def _rate_limited(self, gamertag: str) -> RateLimitExceeded:
        return RateLimitExceeded(
            f"Maximum {self.policy.rate_limit_max} payouts per gamertag per hour",
            {"retryAfter": self.rate_limiter.retry_after(gamertag)},
        )

    def _get(self, payout_id: str) -> Payout:
        payout = self._payouts.get(payout_id)
        if payout is None:
            raise PayoutNotFound("Payout not found")
        return payout

    # ------------------------------------------------------------------
    # Validation (steps 1-4, no state touched)
    # ------------------------------------------------------------------
    def _validate(self, request: PayoutRequest) -> Tuple[int, Optional[int]]:
        policy = self.policy

        if _blank(request.gamertag) or request.amount is None or _blank(request.project_id):
            raise ValidationError("Missing required fields: gamertag, amount, projectId")

        amount = request.amount
        if isinstance(amount, float) and amount.is_integer():
            amount = int(amount)
        if not _is_int(amount):
            if isinstance(amount, float):
                raise InvalidAmount(
                    f"Amount must be a whole number of sats between {policy.min_amount:,} "
                    f"and {policy.max_amount:,}"
                )
            raise ValidationError("Amount must be a number")
        if amount < policy.min_amount or amount > policy.max_amount:
            raise InvalidAmount(
                f"Amount must be between {policy.min_amount:,} and {policy.max_amount:,} sats"
            )

        expires_in = request.expires_in
        if isinstance(expires_in, float) and expires_in.is_integer():
            expires_in = int(expires_in)
        if expires_in is not None and (not _is_int(expires_in) or expires_in < 0):
            raise ValidationError("expiresIn must be a non-negative number of seconds")

        if request.description and len(request.description) > policy.max_description_length:
            raise DescriptionTooLong(
                f"Description exceeds maximum length of {policy.max_description_length} characters",
                {"maxLength": policy.max_description_length},
            )

        if request.callback_url and not CALLBACK_URL_PATTERN.match(request.callback_url):
            raise InvalidCallbackUrl(
                "Invalid callback URL format. Must start with http:// or https://"
            )

        return amount, expires_in

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def create_payout(self, request: PayoutRequest) -> PayoutResult:
        await self._network_delay()

        amount, expires_in = self._validate(request)
        project_id = request.project_id
        gamertag = request.gamertag

        if project_id not in self._projects and not self.policy.legacy_unknown_project_zero_balance:
            # Same step order as below, but no lock is created for ids that were never funded
            existing = self._find_idempotent(project_id, request.idempotency_key)
            if existing is not None:
                return self._replay(existing, project_id)
            if self.rate_limiter.is_full(gamertag):
                raise self._rate_limited(gamertag)
            raise ProjectNotFound(f"Project {project_id} not found", {"projectId": project_id})

        async with self._project_locks[project_id]:
            existing = self._find_idempotent(project_id, request.idempotency_key)
            if existing is not None:
                return self._replay(existing, project_id)

            slot = self.rate_limiter.reserve(gamertag)
            if slot is None:
                raise self._rate_limited(gamertag)

            committed = False
            try:
                payout = await self._settle(request, amount, expires_in)
                committed = True
            finally:
                if not committed:
                    self.rate_limiter.release(gamertag, slot)

        return PayoutResult(payout=payout)

    async def _settle(self, request: PayoutRequest, amount: int, expires_in: Optional[int]) -> Payout:
        """Steps 7-8: balance check, deduction, failure injection, commit"""
        project_id = request.project_id
        project = self._projects.get(project_id)
        if project is None and not self.policy.legacy_unknown_project_zero_balance:
            raise ProjectNotFound(f"Project {project_id} not found", {"projectId": project_id})
        balance = project.balance if project is not None else 0

        fee, total_cost = calculate_total_cost(amount, self.policy.service_fee_rate)
        if balance < total_cost:
            raise InsufficientBalance(
                f"Project balance ({balance} sats) insufficient for payout "
                f"({amount} sats + {fee} sats fee = {total_cost} sats total)",
                {
                    "requiredAmount": amount,
                    "fee": fee,
                    "totalCost": total_cost,
                    "currentBalance": balance,
                },
            )

        now = self.now()
        expires_in = expires_in or self.policy.default_expiry_seconds
        payout = Payout(
            id=self._generate_id(),
            gamertag=request.gamertag,
            amount=amount,
            fee=fee,
            total_cost=total_cost,
            project_id=project_id,
            status=PayoutStatus.COMPLETED,
            expires_in=expires_in,
            created_at=now,
            expires_at=now + timedelta(seconds=expires_in),
            idempotency_key=request.idempotency_key or None,
            internal_id=request.internal_id or None,
            description=request.description or None,
            callback_url=request.callback_url or None,
        )

        self._apply_delta(project, -total_cost)

        injection = self.failure_injection
        if injection.enabled and self._rng.random() < injection.timeout_rate:
            rolled_back = injection.rollback_on_timeout
            try:
                await self._sleep(self.policy.gateway_timeout_seconds)
            finally:
                if rolled_back:
                    self._apply_delta(project, total_cost)
            logger.warning(
                "Simulated gateway timeout",
                extra={
                    "project_id": project_id,
                    "charged_amount": total_cost,
                    "balance_rolled_back": rolled_back,
                },
            )
            raise GatewayTimeout(
                "Payment gateway timeout - Lightning Network unavailable",
                {"chargedAmount": total_cost, "balanceRolledBack": rolled_back},
            )

        self._payouts[payout.id] = payout
        if payout.idempotency_key:
            self._idempotency[(project_id, payout.idempotency_key)] = payout.id
            self._idempotency_any_project.setdefault(payout.idempotency_key, payout.id)
        if payout.internal_id:
            self._internal_ids.setdefault(payout.internal_id, payout.id)
        self._emit_callback(payout)

        logger.info(
            "Payout created",
            extra={
                "payout_id": payout.id,
                "project_id": project_id,
                "gamertag": payout.gamertag,
                "amount": amount,
                "fee": fee,
                "balance": project.balance,
            },
        )
        return payout

    async def get_payout(self, payout_id: str) -> Payout:
        await self._network_delay()
        return self._refresh_expiry(self._get(payout_id))

    async def get_payout_by_internal_id(self, internal_id: str) -> Payout:
        await self._network_delay()
        payout_id = self._internal_ids.get(internal_id)
        if payout_id is None:
            raise PayoutNotFound("Payout not found")
        return self._refresh_expiry(self._get(payout_id))

    def update_status(self, payout_id: str, status: Any) -> Payout:
        payout = self._get(payout_id)
        new_status = parse_status(status)
        if self.policy.strict_status_transitions:
            assert_transition(payout.status, new_status)

        payout.status = new_status
        payout.updated_at = self.now()
        self._emit_callback(payout)
        logger.info(
            "Payout status updated",
            extra={"payout_id": payout_id, "status": new_status.value},
        )
        return payout

    def expire_payout(self, payout_id: str) -> Payout:
        payout = self._get(payout_id)
        now = self.now()
        payout.expires_at = now - timedelta(seconds=1)
        payout.status = PayoutStatus.EXPIRED
        payout.updated_at = now
        self._emit_callback(payout)
        return payout

    async def fund_project(self, project_id: str, amount: Any) -> FundResult:
        if not _is_int(amount) or amount < 1:
            raise InvalidAmount("Amount must be positive")

        async with self._project_locks[project_id]:
            project = self._projects.get(project_id)
            if project is None:
                project = Project(project_id=project_id)
                self._projects[project_id] = project
            previous = project.balance
            self._apply_delta(project, amount)

        logger.info(
            "Project funded",
            extra={"project_id": project_id, "amount": amount, "balance": project.balance},
        )
        return FundResult(
            project_id=project_id,
            previous_balance=previous,
            added_amount=amount,
            new_balance=project.balance,
        )

    async def get_balance(self, project_id: str) -> int:
        await self._network_delay()
        project = self._projects.get(project_id)
        if project is None:
            raise ProjectNotFound("Project not found", {"projectId": project_id})
        return project.balance

    def balances(self) -> Dict[str, int]:
        return {pid: project.balance for pid, project in self._projects.items()}

    def payouts(self) -> List[Payout]:
        return list(self._payouts.values())

    def configure_failure_injection(
        self,
        enabled: Any = None,
        timeout_rate: Any = None,
        rollback_on_timeout: Any = None,
    ) -> FailureInjectionConfig:
        """Partial update; values of the wrong type are ignored"""
        config = self.failure_injection
        if isinstance(enabled, bool):
            config.enabled = enabled
        if isinstance(timeout_rate, (int, float)) and not isinstance(timeout_rate, bool):
            config.timeout_rate = max(0.0, min(1.0, float(timeout_rate)))
        if isinstance(rollback_on_timeout, bool):
            config.rollback_on_timeout = rollback_on_timeout
        logger.info("Failure injection updated", extra=config.to_dict())
        return config

    def list_callbacks(self) -> List[CallbackEntry]:
        return self.callbacks.entries()

    def reset(self) -> None:
        self._projects.clear()
        self._payouts.clear()
        self._internal_ids.clear()
        self._idempotency.clear()
        self._idempotency_any_project.clear()
        self.rate_limiter.clear()
        self.callbacks.clear()
        # Held locks stay so an in-flight payout keeps exclusive access
        for project_id in [pid for pid, lock in self._project_locks.items() if not lock.locked()]:
            del self._project_locks[project_id]
        self.failure_injection = FailureInjectionConfig()
        self._seed()
        logger.info("Ledger reset")


def policy_from_settings(settings: Any) -> LedgerPolicy:
    return LedgerPolicy(
        service_fee_rate=settings.service_fee_rate,
        min_amount=settings.min_payout_sats,
        max_amount=settings.max_payout_sats,
        max_description_length=settings.max_description_length,
        default_expiry_seconds=settings.default_expiry_seconds,
        rate_limit_max=settings.rate_limit_max_payouts,
        rate_limit_window_seconds=settings.rate_limit_window_seconds,
        settlement_delay_ms=(settings.settlement_delay_min_ms, settings.settlement_delay_max_ms),
        gateway_timeout_seconds=settings.gateway_timeout_seconds,
        seed_project_id=settings.seed_project_id,
        seed_project_balance=settings.seed_project_balance,
        strict_status_transitions=settings.strict_status_transitions,
        legacy_global_idempotency=settings.legacy_global_idempotency,
        legacy_unknown_project_zero_balance=settings.legacy_unknown_project_zero_balance,
    )
