"""Upload API endpoints

GET /upload serves the upload form. POST /upload accepts one file per
multipart request: the body is streamed into a staging file (stopping at the
size limit), handed to the UploadAcceptor, and the outcome is reported as
JSON (or an HTML status page when RESPONSE_FORMAT=html).

Rejections propagate as UploadError; the application's exception handler
turns them into 4xx/5xx responses.
"""

import logging
import time
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from ..config import Settings
from ..dependencies import get_acceptor, get_app_settings
from ..domain.uploads.acceptor import UploadAcceptor, discard_staged
from ..domain.uploads.errors import UploadError
from ..observability.metrics import record_upload
from .responses import render_success_page, success_body
from .schemas import UploadErrorResponse, UploadResponse
from .staging import MultipartStager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])

UPLOAD_FORM_PATH = Path(__file__).resolve().parent.parent / "templates" / "upload.html"


@router.get("/upload", include_in_schema=False)
async def upload_form() -> FileResponse:
    """Serve the static upload form."""
    return FileResponse(UPLOAD_FORM_PATH, media_type="text/html")


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": UploadErrorResponse, "description": "No file, bad filename, type not allowed or malformed body"},
        413: {"model": UploadErrorResponse, "description": "File exceeds the size limit"},
        500: {"model": UploadErrorResponse, "description": "File could not be stored"},
    },
)
async def upload_file(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    acceptor: Annotated[UploadAcceptor, Depends(get_acceptor)],
):
    """Upload a single file

    Accepts multipart/form-data with one file in the UPLOAD_FIELD_NAME field
    (default "uploadedFile"). Allowed types and the size limit come from the
    application settings (default: PNG, JPG, GIF, PDF, DOC, DOCX up to 10 MiB).

    Returns:
        UploadResponse: message, final stored filename and size

    Example:
        curl -X POST http://localhost:3000/upload \\
             -F "uploadedFile=@cat.png;type=image/png"
    """
    start_time = time.time()
    stager = MultipartStager(settings.UPLOAD_FIELD_NAME, settings.STAGING_DIR, settings.max_size_bytes)
    incoming = None

    try:
        incoming = await stager.stage(request.headers, request.stream())
        stored = await run_in_threadpool(acceptor.accept, incoming)
    except UploadError as e:
        record_upload(e.code, time.time() - start_time)
        raise
    finally:
        # No-op after a successful move; covers errors and cancellation otherwise
        if incoming is not None:
            discard_staged(incoming.temp_path)

    record_upload("accepted", time.time() - start_time, stored.size_bytes)
    logger.info(f"File uploaded successfully: {stored.final_path}")

    if settings.RESPONSE_FORMAT == "html":
        return render_success_page(stored, settings.upload_url_prefix)
    return success_body(stored)
