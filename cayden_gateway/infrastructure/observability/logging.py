"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from cayden_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ledger_operation(
    operation: str,
    committed: bool,
    duration_ms: float,
    error: str | None = None,
) -> None:
    """Log structured ledger outcome; rollbacks are warnings, not errors"""
    fields = {
        "step": "ledger_transaction",
        "operation": operation,
        "outcome": "committed" if committed else "rolled_back",
        "duration_ms": duration_ms,
    }
    if committed:
        logging.info("Ledger transaction committed", extra=fields)
    else:
        fields["error"] = error
        logging.warning("Ledger transaction rolled back", extra=fields)


def log_advance(
    user_id: str,
    advance_id: str,
    status: str,
    amount_cents: int,
    score: int,
) -> None:
    """Log structured advance outcome for analysis"""
    logging.info(
        "Advance requested",
        extra={
            "user_id": user_id,
            "advance_id": advance_id,
            "step": "advance_requested",
            "status": status,
            "amount_cents": amount_cents,
            "eligibility_score": score,
        },
    )
