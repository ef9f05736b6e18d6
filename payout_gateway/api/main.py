"""FastAPI application factory"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from payout_gateway.api.exceptions import register_exception_handlers
from payout_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from payout_gateway.api.v1 import admin, payouts, projects
from payout_gateway.api.v1.schemas import envelope
from payout_gateway.domain.ledger import PayoutLedger, policy_from_settings
from payout_gateway.domain.models import isoformat
from payout_gateway.infrastructure.observability.logging import setup_logging
from payout_gateway.config import Settings, settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app(app_settings: Optional[Settings] = None, ledger: Optional[PayoutLedger] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app_settings = app_settings or settings

    app = FastAPI(
        title="Sats Payout Gateway",
        description="Mock rewards payout API with idempotency, rate limits and failure injection",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = app_settings
    app.state.ledger = ledger or PayoutLedger(policy_from_settings(app_settings))

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return envelope(
            {
                "status": "healthy",
                "service": app_settings.service_name,
                "timestamp": isoformat(datetime.now(timezone.utc)),
            },
            "API is healthy",
        )

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(payouts.router, prefix=app_settings.api_prefix, tags=["payouts"])
    app.include_router(projects.router, prefix=app_settings.api_prefix, tags=["projects"])
    if app_settings.enable_test_endpoints:
        app.include_router(admin.router, prefix=app_settings.api_prefix, tags=["test"])

    return app


app = create_app()
