"""Request ID management for request correlation.

The id lives in a ContextVar, so log records emitted from threadpool work
(staging, storing) carry the id of the request that started it.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Longest client-supplied X-Request-ID accepted verbatim
MAX_REQUEST_ID_LENGTH = 128


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside a request."""
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> Token:
    """Set request ID in current context; returns the token for reset_request_id."""
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)


def accept_client_request_id(header_value: Optional[str]) -> str:
    """Reuse a sane client X-Request-ID, otherwise generate one.

    Example:
        >>> accept_client_request_id("abc-123")
        'abc-123'
    """
    if header_value and len(header_value) <= MAX_REQUEST_ID_LENGTH and header_value.isprintable():
        return header_value
    return generate_request_id()
