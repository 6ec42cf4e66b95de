"""
Structured Logging & Observability
Logging that's both human-readable and machine-parseable.
"""
import sys
from loguru import logger
from typing import Any
from mongo_queue.config import get_settings


def configure_logging():
    """
    Configure loguru for the queue process.

    In development: Human-readable colorized output
    In production: Structured JSON logs for ingestion (ELK, Datadog, etc.)
    """
    settings = get_settings()

    # Remove default handler
    logger.remove()

    if not settings.enable_structured_logging:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # Output as JSON
        )

    logger.info(f"Logging configured: level={settings.log_level}, structured={settings.enable_structured_logging}")


def log_queue_event(
    event_type: str,
    record_id: str,
    level: str = "INFO",
    **details: Any
):
    """
    Log a record lifecycle transition.

    Args:
        event_type: Transition name (e.g., "processed", "failed", "notified")
        record_id: The record's generated id
        level: loguru level name
        **details: Event-specific data (collection, retry_count, delay_ms...)

    Example:
        >>> log_queue_event(
        ...     "failed",
        ...     record_id="4f1c...",
        ...     collection="uploads",
        ...     retry_count=2,
        ...     delay_ms=282.8
        ... )
    """
    log_data = {
        "event_type": event_type,
        "record_id": record_id,
        **details
    }

    logger.bind(**log_data).log(level, f"Queue Event: {event_type} | {record_id}")
