"""Render domain errors into the response envelope"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from payout_gateway.api.dependencies import get_request_id
from payout_gateway.api.v1.schemas import envelope
from payout_gateway.domain.exceptions import LedgerInvariantError, PayoutError, RateLimitExceeded

HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PayoutError)
    async def payout_error_handler(request: Request, exc: PayoutError) -> JSONResponse:
        headers = None
        if isinstance(exc, RateLimitExceeded):
            headers = {"Retry-After": str(exc.retry_after)}
        return envelope(
            exc.to_data(),
            exc.message,
            status_code=exc.status_code,
            success=False,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return envelope(
            {"error": "VALIDATION_ERROR", "fields": fields},
            "Invalid request body",
            status_code=400,
            success=False,
        )

    @app.exception_handler(LedgerInvariantError)
    async def invariant_handler(request: Request, exc: LedgerInvariantError) -> JSONResponse:
        logging.error(
            f"Ledger invariant violated: {exc}",
            extra={"request_id": get_request_id(request)},
        )
        return envelope(
            {"error": "INTERNAL_ERROR"},
            "Internal server error",
            status_code=500,
            success=False,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Unmatched routes and methods still answer with the envelope"""
        return envelope(
            {"error": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")},
            str(exc.detail),
            status_code=exc.status_code,
            success=False,
            headers=getattr(exc, "headers", None),
        )
