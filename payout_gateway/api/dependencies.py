"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from payout_gateway.domain.ledger import PayoutLedger


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger(request: Request) -> PayoutLedger:
    """Provide the application's single ledger instance"""
    return request.app.state.ledger
