"""Pytest fixtures for testing"""

import random
import pytest
import httpx
from typing import AsyncGenerator
from fastapi.testclient import TestClient
from payout_gateway.api.main import create_app
from payout_gateway.config import Settings
from payout_gateway.domain.ledger import PayoutLedger, policy_from_settings

SEED_PROJECT = "project_test_001"


class FakeClock:
    """Controllable replacement for time.time"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the simulated network delays switched off"""
    return Settings(
        settlement_delay_min_ms=0,
        settlement_delay_max_ms=0,
        gateway_timeout_seconds=0,
    )


@pytest.fixture
def ledger(test_settings: Settings, clock: FakeClock) -> PayoutLedger:
    """Ledger seeded with project_test_001 (100,000 sats) and a fake clock"""
    return PayoutLedger(policy_from_settings(test_settings), clock=clock, rng=random.Random(1234))


@pytest.fixture
def client(test_settings: Settings, ledger: PayoutLedger) -> TestClient:
    """Create FastAPI test client sharing the ledger fixture"""
    app = create_app(test_settings, ledger)
    return TestClient(app)


@pytest.fixture
async def async_client(test_settings: Settings, ledger: PayoutLedger) -> AsyncGenerator[httpx.AsyncClient, None]:
    """In-process async client for concurrent requests against one app"""
    app = create_app(test_settings, ledger)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
