"""
Centralized structured logging for the verification service.

This module sets up structured logging with:
- Settings-driven configuration (dev vs production)
- JSON formatting for production, pretty console for development
- IP hashing for privacy in production
- Redaction of API keys, session tokens and secrets
- Sampling rate configuration for high-frequency events

``setup_logging()`` is called once from ``create_app()``; modules obtain
loggers through ``get_logger(__name__)`` at import time and log with
snake_case event names plus keyword context.
"""

from __future__ import annotations

import hashlib
import logging
import random
import sys
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

# Updated by setup_logging(); module-level so hash_ip() needs no settings handle
_state: dict[str, Any] = {"production": False}

# Sampling rates for high-frequency events
SAMPLING_RATES: dict[str, float] = {
    "verification_completed": 1.0,
    "stats_query": 0.20,
}

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "token",
    "api_key",
    "apikey",
    "key_value",
    "authorization",
    "cookie",
    "access_token",
    "session",
    "secret",
    "code",
}

_PRESERVED_FIELDS = {"level", "event", "timestamp", "logger", "error_code"}


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash IP address for privacy in production.

    In production, returns SHA-256 hash (first 16 chars).
    In development, returns the original IP for easier debugging.
    """
    if ip_address is None:
        return None
    if _state["production"] and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _PRESERVED_FIELDS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in ("token", "secret", "api_key")
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route standard library logging to stdout and quiet chatty libraries."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(settings: Any = None, *, production: bool = False) -> None:
    """
    Initialize logging for the application.

    Accepts a LoggingSettings instance (from config.py); ``None`` uses the
    development defaults.
    """
    log_level = getattr(settings, "log_level", "INFO")
    log_format = getattr(settings, "log_format", "console")
    _state["production"] = production

    if settings is not None:
        SAMPLING_RATES["verification_completed"] = settings.sample_rate_verify
        SAMPLING_RATES["stats_query"] = settings.sample_rate_stats

    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    get_logger(__name__).info(
        "logging_initialized",
        log_level=log_level,
        log_format=log_format,
        production=production,
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("api_key_created", key_id="...", environment="production")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """Return True if an event of *event_type* should be logged this time."""
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)
    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False
    return random.random() < sample_rate


def log_with_context(logger: BoundLogger, **context: Any) -> BoundLogger:
    """Bind context to a logger for all subsequent log calls."""
    return logger.bind(**context)


__all__ = [
    "get_logger",
    "hash_ip",
    "log_with_context",
    "should_sample",
    "SAMPLING_RATES",
    "configure_structlog",
    "setup_logging",
]
