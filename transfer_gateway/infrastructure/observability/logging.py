"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger.json import JsonFormatter
from transfer_gateway.config import settings


class CustomJsonFormatter(JsonFormatter):
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


def log_transfer(
    mode: str,
    sender_id: int,
    amount_cents: int,
    outgoing_id: int,
    incoming_id: Optional[int],
    request_id: Optional[str] = None,
) -> None:
    """Log structured transfer outcome for audit"""
    logging.getLogger("transfer_gateway.transfers").info(
        "Transfer executed",
        extra={
            "request_id": request_id,
            "step": "transfer_complete",
            "mode": mode,
            "sender_id": sender_id,
            "amount_cents": amount_cents,
            "outgoing_record_id": outgoing_id,
            "incoming_record_id": incoming_id,
            "paired": incoming_id is not None,
        },
    )


def log_scheduler_run(cutoff: str, counts: Dict[str, int], duration_ms: float) -> None:
    """Log summary of one scheduler run"""
    logging.getLogger("transfer_gateway.scheduler").info(
        "Scheduler run completed",
        extra={"step": "scheduler_run_complete", "cutoff": cutoff, "duration_ms": duration_ms, **counts},
    )
