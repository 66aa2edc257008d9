"""Logging setup: TRACE level, text or structured JSON output."""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

from cleanflow.config import settings

# Custom TRACE level
logging.TRACE = 5
logging.addLevelName(logging.TRACE, "TRACE")


def trace_method(self, msg, *args, **kwargs):
    if self.isEnabledFor(logging.TRACE):
        self._log(logging.TRACE, msg, args, **kwargs)


logging.Logger.trace = trace_method

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'

# Fields the sync pipeline attaches through ``extra=``
STRUCTURED_FIELDS = ("sync_id", "trigger", "stats", "duration_ms", "external_code", "errors")


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Emits timestamp, level, logger and message, plus any of the structured
    sync fields present on the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def _resolve_level(level_name: str) -> int:
    level_name = level_name.upper()
    if level_name == "TRACE":
        return logging.TRACE
    if level_name == "VERBOSE":
        return logging.DEBUG
    return getattr(logging, level_name, logging.INFO)


def configure_logging() -> None:
    """Configure the root logger once; later calls are no-ops."""
    root = logging.getLogger()
    if root.hasHandlers():
        return

    level_str = settings.log_level.upper()
    level = _resolve_level(level_str)
    formatter = JSONFormatter() if settings.log_format.lower() == "json" else logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if settings.log_file:
        file_handler = RotatingFileHandler(settings.log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(level)

    # Driver chatter stays quiet unless explicitly requested
    driver_level = level if level_str in ("TRACE", "VERBOSE") else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(driver_level)
    logging.getLogger("apscheduler").setLevel(driver_level if level_str == "TRACE" else logging.INFO)
    logging.getLogger("cleanflow.connectors").setLevel(logging.TRACE if level_str == "TRACE" else level)

    if level_str == "TRACE":
        root.trace("Trace logging enabled at startup (verbose details).")
    else:
        root.debug("Debug logging enabled at startup.")
