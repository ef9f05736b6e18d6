"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PAYOUT_",
        extra="ignore",
    )

    # Service
    service_name: str = "payout-gateway"
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    # Payout rules
    service_fee_rate: float = 0.02
    min_payout_sats: int = 1
    max_payout_sats: int = 100_000
    max_description_length: int = 144
    default_expiry_seconds: int = 300

    # Rate limiting (per gamertag)
    rate_limit_max_payouts: int = 10
    rate_limit_window_seconds: int = 3600

    # Simulated settlement network
    settlement_delay_min_ms: int = 50
    settlement_delay_max_ms: int = 150
    gateway_timeout_seconds: float = 2.0

    # Seed data restored on reset
    seed_project_id: str = "project_test_001"
    seed_project_balance: int = 100_000

    # Admin surface and behaviour switches
    enable_test_endpoints: bool = True
    strict_status_transitions: bool = False
    legacy_global_idempotency: bool = False
    legacy_unknown_project_zero_balance: bool = False

    # HTTP Client
    payout_api_base: str = "http://localhost:8000"
    http_timeout_seconds: float = 5.0


settings = Settings()
