"""Observability module for the upload service.

Provides structured logging, metrics and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    uploads_total,
    upload_size_bytes,
    upload_duration_seconds,
    record_upload,
)
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "uploads_total",
    "upload_size_bytes",
    "upload_duration_seconds",
    "record_upload",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
