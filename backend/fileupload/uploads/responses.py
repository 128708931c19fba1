"""Response rendering for the upload endpoints (JSON or HTML status pages)."""

from html import escape
from typing import Optional
from urllib.parse import quote

from fastapi import Response
from fastapi.responses import HTMLResponse, JSONResponse

from ..domain.uploads.errors import TooLarge, UploadError
from ..domain.uploads.models import StoredFile
from .schemas import UploadErrorResponse, UploadResponse

SUCCESS_MESSAGE = "File uploaded successfully!"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <link rel="stylesheet" href="/style.css">
</head>
<body>
  <main class="status {css_class}">
    <h1>{title}</h1>
    <p>{body}</p>
    <a href="/upload">Upload another file</a>
  </main>
</body>
</html>
"""


def success_body(stored: StoredFile) -> UploadResponse:
    return UploadResponse(
        message=SUCCESS_MESSAGE,
        filename=stored.final_name,
        size_bytes=stored.size_bytes,
    )


def error_body(exc: UploadError) -> UploadErrorResponse:
    return UploadErrorResponse(
        error=exc.code,
        message=exc.message,
        max_size_bytes=exc.max_size_bytes if isinstance(exc, TooLarge) else None,
    )


def render_success_page(stored: StoredFile, url_prefix: Optional[str] = "/uploads") -> HTMLResponse:
    """Confirmation page; links the file when uploads are publicly served (url_prefix not None)."""
    name = escape(stored.final_name)
    if url_prefix is None:
        body = f'Stored as {name} ({stored.size_bytes} bytes).'
    else:
        href = escape(f"{url_prefix}/{quote(stored.final_name)}")
        body = f'Stored as <a href="{href}">{name}</a> ({stored.size_bytes} bytes).'
    return HTMLResponse(
        _PAGE.format(title=escape(SUCCESS_MESSAGE), css_class="success", body=body),
        status_code=200,
    )


def render_error_page(exc: UploadError) -> HTMLResponse:
    return HTMLResponse(
        _PAGE.format(title="Upload failed", css_class="error", body=escape(exc.message)),
        status_code=exc.status_code,
    )


def error_response(exc: UploadError, response_format: str) -> Response:
    """Render an UploadError in the configured response format."""
    if response_format == "html":
        return render_error_page(exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc).model_dump(exclude_none=True),
    )


def internal_error_response(response_format: str) -> Response:
    """Generic 500 for unexpected exceptions; no details leave the server."""
    if response_format == "html":
        return HTMLResponse(
            _PAGE.format(title="Upload failed", css_class="error", body=escape(INTERNAL_ERROR_MESSAGE)),
            status_code=500,
        )
    return JSONResponse(
        status_code=500,
        content=UploadErrorResponse(error="internal_error", message=INTERNAL_ERROR_MESSAGE).model_dump(exclude_none=True),
    )
