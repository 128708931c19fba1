"""Request correlation middleware.

Every response carries X-Request-ID. Upload traffic is logged with its
declared body size; monitoring paths (/health, /metrics) are only logged when
they fail.
"""

import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import accept_client_request_id, reset_request_id, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health", "/metrics"})


def declared_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    return int(value) if value and value.isdigit() else None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the context and echo it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = accept_client_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = set_request_id(request_id)
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        try:
            if not quiet:
                logger.info(
                    f"{request.method} {request.url.path}",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "client_ip": request.client.host if request.client else None,
                        "content_length": declared_length(request),
                    },
                )

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"Request failed: {type(e).__name__}",
                    extra={
                        "error_type": type(e).__name__,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                    exc_info=True,
                )
                raise

            if not quiet or response.status_code >= 500:
                logger.info(
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={
                        "status_code": response.status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            reset_request_id(token)
