"""Staging of in-flight uploads.

The request body is fed chunk by chunk through python-multipart's parser and
the file part is written straight into a temp file under the staging
directory. Nothing else buffers the body, so the size limit is enforced while
the bytes arrive:

- a declared Content-Length above the limit is refused before reading
- reading stops as soon as the file part (or the whole body) passes the limit

Any failure removes the temp file before the error propagates.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import AsyncIterator, List, Optional, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.requests import ClientDisconnect

from ..domain.uploads.acceptor import discard_staged
from ..domain.uploads.errors import MalformedRequest, NoFileProvided, StorageFailure, TooLarge
from ..domain.uploads.models import IncomingFile

logger = logging.getLogger(__name__)

# Allowance on top of the file limit for boundaries, part headers and text fields
MULTIPART_OVERHEAD_BYTES = 16 * 1024

MAX_FILES = 1


def _decode(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


def _too_large(max_size_bytes: int) -> TooLarge:
    return TooLarge(
        f"File exceeds maximum size of {max_size_bytes} bytes",
        max_size_bytes=max_size_bytes,
    )


def open_staging_file(staging_dir: Path):
    """Create an empty temp file in staging_dir (created if missing).

    Raises:
        StorageFailure: If the directory or file cannot be created
    """
    try:
        staging_dir.mkdir(parents=True, exist_ok=True)
        return tempfile.NamedTemporaryFile(
            dir=staging_dir, prefix="upload-", suffix=".part", delete=False
        )
    except OSError as e:
        logger.error(f"Cannot create staging file in {staging_dir}: {e}", exc_info=True)
        raise StorageFailure() from e


class MultipartStager:
    """Stream one multipart/form-data body into a staging file.

    Only the part named field_name that carries a filename is kept; other
    text fields are parsed and dropped. A second file part makes the request
    malformed.

    Example:
        stager = MultipartStager("uploadedFile", Path(".staging"), 10 * 1024 * 1024)
        incoming = await stager.stage(request.headers, request.stream())
    """

    def __init__(self, field_name: str, staging_dir: Path, max_size_bytes: Optional[int] = None):
        self.field_name = field_name
        self.staging_dir = staging_dir
        self.max_size_bytes = max_size_bytes
        self.body_limit = None if max_size_bytes is None else max_size_bytes + MULTIPART_OVERHEAD_BYTES

        self._headers: List[Tuple[bytes, bytes]] = []
        self._header_field = b""
        self._header_value = b""
        self._in_target = False
        self._files_seen = 0
        self._pending: List[bytes] = []
        self._temp = None
        self._temp_path: Optional[Path] = None
        self._original_name = ""
        self._declared_mime_type = ""
        self._size_bytes = 0
        self._body_complete = False

    async def stage(self, headers: Headers, body: AsyncIterator[bytes]) -> IncomingFile:
        """Parse the body and stage the upload.

        Args:
            headers: Request headers (Content-Type, Content-Length)
            body: The request body as it arrives, e.g. request.stream()

        Returns:
            IncomingFile: Staged file with the client-supplied metadata

        Raises:
            NoFileProvided: Not multipart, or no file in field_name
            MalformedRequest: Undecodable body, disconnect, or several files
            TooLarge: File or body above the limit
            StorageFailure: Temp file cannot be created or written
        """
        media_type, params = parse_options_header(headers.get("content-type", ""))
        if media_type.lower() != b"multipart/form-data":
            raise NoFileProvided()
        boundary = params.get(b"boundary")
        if not boundary:
            raise MalformedRequest("Malformed upload request: missing multipart boundary")

        declared_length = headers.get("content-length", "")
        if self.body_limit is not None and declared_length.isdigit() and int(declared_length) > self.body_limit:
            logger.info(f"Refusing upload before reading: Content-Length {declared_length} > {self.body_limit}")
            raise _too_large(self.max_size_bytes)

        parser = MultipartParser(boundary, callbacks={
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_end": self.on_end,
        })

        received = 0
        try:
            try:
                async for chunk in body:
                    received += len(chunk)
                    if self.body_limit is not None and received > self.body_limit:
                        raise _too_large(self.max_size_bytes)
                    parser.write(chunk)
                    if self._pending:
                        await run_in_threadpool(self._write_pending)
                parser.finalize()
            except MultipartParseError as e:
                raise MalformedRequest(f"Malformed upload request: {e}") from e
            except ClientDisconnect as e:
                raise MalformedRequest("Malformed upload request: client disconnected") from e

            if not self._body_complete:
                raise MalformedRequest("Malformed upload request: body ended before the closing boundary")
            if self._temp is None:
                raise NoFileProvided()

            await run_in_threadpool(self._commit)
        except BaseException:
            self._discard()
            raise

        logger.debug(f"Staged upload: temp_path={self._temp_path}, size={self._size_bytes}")
        return IncomingFile(
            original_name=self._original_name,
            declared_mime_type=self._declared_mime_type,
            temp_path=self._temp_path,
            size_bytes=self._size_bytes,
        )

    # python-multipart callbacks

    def on_part_begin(self) -> None:
        self._headers = []

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers.append((self._header_field.lower(), self._header_value))
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        part_headers = dict(self._headers)
        _, options = parse_options_header(part_headers.get(b"content-disposition", b""))
        if b"filename" not in options:
            return

        self._files_seen += 1
        if self._files_seen > MAX_FILES:
            raise MalformedRequest(
                f"Malformed upload request: too many files, maximum is {MAX_FILES}"
            )

        filename = _decode(options[b"filename"])
        if _decode(options.get(b"name", b"")) != self.field_name or not filename:
            return

        self._original_name = filename
        self._declared_mime_type = _decode(part_headers.get(b"content-type", b""))
        self._temp = open_staging_file(self.staging_dir)
        self._temp_path = Path(self._temp.name)
        self._in_target = True

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if not self._in_target:
            return
        self._size_bytes += end - start
        if self.max_size_bytes is not None and self._size_bytes > self.max_size_bytes:
            logger.info(
                f"Upload exceeds {self.max_size_bytes} bytes, stopped staging "
                f"{self._original_name!r} after {self._size_bytes} bytes"
            )
            raise _too_large(self.max_size_bytes)
        self._pending.append(data[start:end])

    def on_part_end(self) -> None:
        self._in_target = False

    def on_end(self) -> None:
        self._body_complete = True

    # file handling, run in the threadpool

    def _write_pending(self) -> None:
        chunks, self._pending = self._pending, []
        try:
            for chunk in chunks:
                self._temp.write(chunk)
        except OSError as e:
            logger.error(f"Failed to stage upload {self._original_name!r}: {e}", exc_info=True)
            raise StorageFailure() from e

    def _commit(self) -> None:
        self._write_pending()
        try:
            self._temp.flush()
            os.fsync(self._temp.fileno())
            self._temp.close()
        except OSError as e:
            logger.error(f"Failed to stage upload {self._original_name!r}: {e}", exc_info=True)
            raise StorageFailure() from e

    def _discard(self) -> None:
        if self._temp is None:
            return
        try:
            self._temp.close()
        except OSError as e:
            logger.warning(f"Could not close staged file {self._temp_path}: {e}")
        discard_staged(self._temp_path)
