"""Logging setup: one stdout handler on the root logger, JSON or plain text.

Every record gets the current request id. Upload-specific attributes passed
through ``extra=`` (outcome, final name, sizes) are carried into JSON output.
"""

import logging
import json
import sys
from datetime import datetime, timezone

from .request_id import get_request_id

# Record attributes copied into JSON output when a call passes them via extra=
EXTRA_FIELDS = (
    "method",
    "path",
    "client_ip",
    "content_length",
    "status_code",
    "duration_ms",
    "error_type",
    "upload_outcome",
    "final_name",
)

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"

# Server loggers routed through the root handler instead of their own
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class RequestIDFilter(logging.Filter):
    """Stamp request_id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "no-request-id"),
            "message": record.getMessage(),
        }
        log_data.update(
            {name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)}
        )

        if record.exc_info:
            log_data["error"] = str(record.exc_info[1])
            log_data["traceback"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def build_handler(level: int, json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    handler.addFilter(RequestIDFilter())
    return handler


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure application-wide logging.

    Replaces any handlers on the root logger, so calling it twice is safe.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines if True, otherwise PLAIN_FORMAT
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(build_handler(numeric_level, json_format))

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    # Request logging already comes from RequestIDMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically for __name__)."""
    return logging.getLogger(name)
