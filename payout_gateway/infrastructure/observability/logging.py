"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger.json import JsonFormatter


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "payout-gateway", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "payout-gateway") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payout_outcome(
    request_id: str,
    project_id: Optional[str],
    gamertag: Optional[str],
    outcome: str,
    duration_ms: float,
    amount: Optional[int] = None,
    fee: Optional[int] = None,
    payout_id: Optional[str] = None,
) -> None:
    """Log structured payout outcome for analysis"""
    level = logging.WARNING if outcome == "gateway_timeout" else logging.INFO
    logging.log(
        level,
        "Payout request completed",
        extra={
            "request_id": request_id,
            "project_id": project_id,
            "gamertag": gamertag,
            "step": "payout_complete",
            "outcome": outcome,
            "amount": amount,
            "fee": fee,
            "payout_id": payout_id,
            "duration_ms": duration_ms,
        },
    )
