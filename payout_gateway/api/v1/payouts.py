"""Payout endpoints - create, look up and update payouts"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request

from payout_gateway.api.v1.schemas import PayoutCreateRequest, StatusUpdateRequest, envelope
from payout_gateway.api.dependencies import get_ledger, get_request_id
from payout_gateway.domain.exceptions import GatewayTimeout, PayoutError
from payout_gateway.domain.ledger import PayoutLedger
from payout_gateway.domain.models import STATUS_DESCRIPTIONS, VALID_STATUSES
from payout_gateway.infrastructure.observability.metrics import record_gateway_timeout, record_payout
from payout_gateway.infrastructure.observability.logging import log_payout_outcome

router = APIRouter()


@router.post("/payouts")
async def create_payout(
    request_body: PayoutCreateRequest,
    request: Request,
    ledger: PayoutLedger = Depends(get_ledger),
):
    """
    Create a payout from a project to a gamertag.

    Flow:
    1. Validate fields (presence, amount range, description, callback URL)
    2. Replay an earlier payout if the idempotency key was already used
    3. Enforce the per-gamertag hourly rate limit
    4. Check the project balance covers amount + 2% fee
    5. Deduct, record and return the payout (201)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = await ledger.create_payout(request_body.to_domain())

    except GatewayTimeout as e:
        record_gateway_timeout(e.details["balanceRolledBack"])
        record_payout("gateway_timeout")
        log_payout_outcome(
            request_id,
            request_body.project_id,
            request_body.gamertag,
            "gateway_timeout",
            (time.time() - start_time) * 1000,
        )
        raise

    except PayoutError as e:
        record_payout(e.code.lower())
        logging.info(
            f"Payout rejected: {e.message}",
            extra={"request_id": request_id, "error": e.code},
        )
        raise

    payout = result.payout
    outcome = "duplicate" if result.duplicate else "created"
    record_payout(outcome, payout.fee)
    log_payout_outcome(
        request_id,
        payout.project_id,
        payout.gamertag,
        outcome,
        (time.time() - start_time) * 1000,
        amount=payout.amount,
        fee=payout.fee,
        payout_id=payout.id,
    )

    if result.duplicate:
        return envelope(payout.to_dict(), "Payout already processed (duplicate request)")
    return envelope(payout.to_dict(), "Payout created successfully", status_code=201)


@router.get("/payouts/by-internal-id/{internal_id}")
async def get_payout_by_internal_id(internal_id: str, ledger: PayoutLedger = Depends(get_ledger)):
    payout = await ledger.get_payout_by_internal_id(internal_id)
    return envelope(payout.to_dict(), "Payout retrieved")


@router.get("/payouts/{payout_id}")
async def get_payout(payout_id: str, ledger: PayoutLedger = Depends(get_ledger)):
    """
    Retrieve a payout.

    A pending payout past its expiry flips to expired on this read.
    """
    payout = await ledger.get_payout(payout_id)
    return envelope(payout.to_dict(), "Payout retrieved")


@router.patch("/payouts/{payout_id}/status")
async def update_payout_status(
    payout_id: str,
    request_body: Optional[StatusUpdateRequest] = None,
    ledger: PayoutLedger = Depends(get_ledger),
):
    body = request_body or StatusUpdateRequest()
    payout = ledger.update_status(payout_id, body.status)
    return envelope(payout.to_dict(), f"Payout status updated to {payout.status.value}")


@router.get("/statuses")
def list_statuses():
    """Valid payout status values with descriptions"""
    return envelope(
        {
            "statuses": VALID_STATUSES,
            "descriptions": {status.value: text for status, text in STATUS_DESCRIPTIONS.items()},
        },
        "Valid payout statuses",
    )
