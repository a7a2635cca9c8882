"""Logging configuration for telemock.

Supports two formats:
- text: Human-readable for local runs
- json: Structured logging for CI log collection
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import json as jsonlogger

from telemock.config import LoggingConfig


class TelemockJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with standard fields for log aggregation.

    Adds:
    - timestamp: ISO 8601 format with timezone
    - level: Log level name
    - logger: Logger name
    - service: Service identifier
    - pid: Process ID
    """

    def __init__(self, config: LoggingConfig, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = config.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = self._service
        log_record["pid"] = record.process

        # Source location for debugging
        log_record["filename"] = record.filename
        log_record["lineno"] = record.lineno

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging for a test run.

    Args:
        config: Logging configuration settings.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    if config.format == "json":
        formatter: logging.Formatter = TelemockJsonFormatter(config)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Suppress verbose HTTP client logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
