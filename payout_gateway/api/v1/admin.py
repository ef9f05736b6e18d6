"""Test-only endpoints for chaos testing and state inspection

Mounted under /test and only when enable_test_endpoints is set.
"""

from typing import Optional
from fastapi import APIRouter, Depends

from payout_gateway.api.v1.schemas import FailureInjectionRequest, envelope
from payout_gateway.api.dependencies import get_ledger
from payout_gateway.domain.ledger import PayoutLedger

router = APIRouter(prefix="/test")


@router.post("/failure-injection")
def configure_failure_injection(
    request_body: Optional[FailureInjectionRequest] = None,
    ledger: PayoutLedger = Depends(get_ledger),
):
    """
    Enable/disable failure injection.

    Body:
    - enabled: boolean
    - timeoutRate: fraction of payouts that time out after charging (0.0-1.0)
    - rollbackOnTimeout: restore the balance on timeout; false reproduces the
      "charged but not paid" bug
    """
    body = request_body or FailureInjectionRequest()
    config = ledger.configure_failure_injection(
        enabled=body.enabled,
        timeout_rate=body.timeout_rate,
        rollback_on_timeout=body.rollback_on_timeout,
    )
    return envelope(config.to_dict(), "Failure injection settings updated")


@router.get("/failure-injection")
def get_failure_injection(ledger: PayoutLedger = Depends(get_ledger)):
    return envelope(ledger.failure_injection.to_dict(), "Failure injection settings retrieved")


@router.post("/expire/{payout_id}")
def expire_payout(payout_id: str, ledger: PayoutLedger = Depends(get_ledger)):
    payout = ledger.expire_payout(payout_id)
    return envelope(payout.to_dict(), "Payout expired")


@router.get("/callbacks")
def list_callbacks(ledger: PayoutLedger = Depends(get_ledger)):
    callbacks = [entry.to_dict() for entry in ledger.list_callbacks()]
    return envelope({"callbacks": callbacks, "count": len(callbacks)}, "Callback log retrieved")


@router.delete("/reset")
def reset(ledger: PayoutLedger = Depends(get_ledger)):
    ledger.reset()
    return envelope({}, "All data reset")
