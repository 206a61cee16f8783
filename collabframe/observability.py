"""Logging setup for collabframe.

Provides:
- Text or JSON structured logging to stderr
- Per-command correlation IDs
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import uuid

from collabframe.config import LoggingConfig

LOGGER_NAME = "collabframe"


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return str(uuid.uuid4())[:8]  # Short form for readability


class JsonLogFormatter(logging.Formatter):
    """JSON structured log formatter."""

    EXTRA_FIELDS = ("correlation_id", "session", "tool", "latency_ms", "state", "error")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for name in self.EXTRA_FIELDS:
            if hasattr(record, name):
                log_data["cid" if name == "correlation_id" else name] = getattr(record, name)

        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data, separators=(",", ":"), default=str)


def setup_logging(config: LoggingConfig, logger_name: str = LOGGER_NAME) -> logging.Logger:
    """Configure logging based on settings.

    Args:
        config: Logging configuration
        logger_name: Name of logger to configure

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Clear existing handlers
    logger.handlers.clear()

    level = getattr(logging, config.level.upper(), logging.INFO)
    logger.setLevel(level)

    # Create stderr handler
    handler = logging.StreamHandler()
    handler.setLevel(level)

    if config.format == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))

    logger.addHandler(handler)

    return logger
