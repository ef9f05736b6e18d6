"""Project balance endpoints"""

from typing import Optional
from fastapi import APIRouter, Depends

from payout_gateway.api.v1.schemas import FundRequest, envelope
from payout_gateway.api.dependencies import get_ledger
from payout_gateway.domain.ledger import PayoutLedger

router = APIRouter()


@router.get("/projects/{project_id}/balance")
async def get_balance(project_id: str, ledger: PayoutLedger = Depends(get_ledger)):
    balance = await ledger.get_balance(project_id)
    return envelope(
        {"projectId": project_id, "balance": balance, "currency": "sats"},
        "Balance retrieved",
    )


@router.post("/projects/{project_id}/fund")
async def fund_project(
    project_id: str,
    request_body: Optional[FundRequest] = None,
    ledger: PayoutLedger = Depends(get_ledger),
):
    """
    Add funds to a project.

    Unknown projects are created on first funding.
    """
    body = request_body or FundRequest()
    result = await ledger.fund_project(project_id, body.amount)
    return envelope(result.to_dict(), "Funds added successfully")
