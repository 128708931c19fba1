"""Global FastAPI dependencies.

The application factory stores its Settings and the UploadAcceptor built from
them on app.state; these dependencies hand them to route handlers, so each
app instance (one per test, typically) carries its own configuration.
"""

from fastapi import Request

from .config import Settings
from .domain.uploads.acceptor import UploadAcceptor


def get_app_settings(request: Request) -> Settings:
    """Settings of the application serving this request."""
    return request.app.state.settings


def get_acceptor(request: Request) -> UploadAcceptor:
    """UploadAcceptor configured for the application serving this request.

    Example:
        @router.post("/upload")
        async def upload_file(acceptor: UploadAcceptor = Depends(get_acceptor)):
            stored = acceptor.accept(incoming)
    """
    return request.app.state.acceptor
