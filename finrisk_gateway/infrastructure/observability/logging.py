"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from finrisk_gateway.config import settings


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


def log_scoring(
    request_id: str,
    application_id: str,
    score: int,
    category: str,
    flag_codes: list[str],
) -> None:
    """Log structured scoring outcome for analysis"""
    logging.info(
        "Scoring completed",
        extra={
            "request_id": request_id,
            "application_id": application_id,
            "step": "scoring_complete",
            "score": score,
            "risk_category": category,
            "risk_flags": flag_codes,
        },
    )


def log_transition(
    request_id: str,
    application_id: str,
    action: str,
    actor: str,
    status: str,
    duration_ms: float,
) -> None:
    """Log one audited state change"""
    logging.info(
        "Transition recorded",
        extra={
            "request_id": request_id,
            "application_id": application_id,
            "step": "transition",
            "action": action,
            "actor": actor,
            "status": status,
            "duration_ms": duration_ms,
        },
    )
