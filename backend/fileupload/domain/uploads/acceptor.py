"""Upload Acceptor - validates one staged upload and places it in storage.

accept() either returns a StoredFile or raises an UploadError subclass; the
caller hears about the outcome exactly once. Whatever the outcome, the staged
temp file is gone afterwards: moved into the upload directory on success,
deleted on every rejection path.
"""

import logging
import secrets
import time
from pathlib import Path
from typing import Callable, Optional

from .errors import (
    InvalidFilename,
    InvalidType,
    StorageFailure,
    TooLarge,
    UploadError,
)
from .models import IncomingFile, StoredFile, UploadPolicy
from .ports.file_storage_port import FileStoragePort
from .upload_status import UploadLifecycle, UploadStatus
from .validation import (
    MAX_FILENAME_LENGTH,
    normalize_mime_type,
    sanitize_filename,
    validate_file_size,
    validate_file_type,
    validate_filename,
)

logger = logging.getLogger(__name__)


def default_token(clock: Callable[[], float] = time.time) -> str:
    """Uniqueness token: epoch milliseconds plus a random suffix below 10^9."""
    return f"{int(clock() * 1000)}-{secrets.randbelow(10**9)}"


def discard_staged(path: Optional[Path]) -> None:
    """Best-effort removal of a staging temp file."""
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove staged file {path}: {e}")


class UploadAcceptor:
    """Applies an UploadPolicy to incoming files.

    Holds no per-request state, so one instance serves concurrent requests.

    Example:
        acceptor = UploadAcceptor(policy, LocalDiskStorageAdapter(policy.upload_dir))
        try:
            stored = acceptor.accept(incoming)
        except UploadError as e:
            ...
    """

    MAX_NAME_ATTEMPTS = 5

    def __init__(
        self,
        policy: UploadPolicy,
        storage: FileStoragePort,
        token_factory: Callable[[], str] = default_token,
    ):
        self.policy = policy
        self.storage = storage
        self._token_factory = token_factory

    def accept(self, incoming: IncomingFile) -> StoredFile:
        """Validate and store one staged file.

        Args:
            incoming: Staged file with its client-supplied metadata

        Returns:
            StoredFile: Where the bytes now live

        Raises:
            InvalidFilename: If the client filename is unusable
            TooLarge: If size exceeds policy.max_size_bytes
            InvalidType: If MIME type or extension is not allowed
            StorageFailure: If the file could not be moved into place
        """
        lifecycle = UploadLifecycle()
        lifecycle.advance(UploadStatus.RECEIVING)

        try:
            lifecycle.advance(UploadStatus.VALIDATING)
            safe_name = self._check_filename(incoming.original_name)
            self._check_size(incoming.size_bytes)
            mime_type = self._check_type(incoming.declared_mime_type, safe_name)
            stored = self._place(incoming.temp_path, safe_name, mime_type)
        except UploadError as e:
            lifecycle.advance(UploadStatus.REJECTED)
            discard_staged(incoming.temp_path)
            log = logger.warning if e.is_client_error else logger.error
            log(
                f"Upload rejected: code={e.code}, original_name={incoming.original_name!r}, "
                f"size={incoming.size_bytes}, reason={e.message}",
                extra={"upload_outcome": e.code},
            )
            raise
        except Exception:
            lifecycle.advance(UploadStatus.REJECTED)
            discard_staged(incoming.temp_path)
            logger.exception(f"Upload failed unexpectedly: original_name={incoming.original_name!r}")
            raise

        lifecycle.advance(UploadStatus.ACCEPTED)
        logger.info(
            f"Upload accepted: final_name={stored.final_name}, size={stored.size_bytes}, "
            f"mime_type={stored.mime_type}",
            extra={"upload_outcome": "accepted", "final_name": stored.final_name},
        )
        return stored

    def final_name_for(self, safe_name: str) -> str:
        """Build a final name: '{token}-{safe_name}', fitting in 255 chars."""
        prefix = f"{self._token_factory()}-"
        return prefix + sanitize_filename(safe_name, MAX_FILENAME_LENGTH - len(prefix))

    def _check_filename(self, original_name: str) -> str:
        is_valid, error_msg = validate_filename(original_name)
        if not is_valid:
            raise InvalidFilename(error_msg)

        safe_name = sanitize_filename(original_name)
        if not safe_name:
            raise InvalidFilename("Filename has no usable characters")
        return safe_name

    def _check_size(self, size_bytes: int) -> None:
        is_valid, error_msg = validate_file_size(size_bytes, self.policy.max_size_bytes)
        if not is_valid:
            raise TooLarge(error_msg, max_size_bytes=self.policy.max_size_bytes)

    def _check_type(self, declared_mime_type: str, safe_name: str) -> str:
        is_valid, error_msg = validate_file_type(
            declared_mime_type, safe_name, self.policy.allowed_types
        )
        if not is_valid:
            raise InvalidType(error_msg)
        return normalize_mime_type(declared_mime_type)

    def _place(self, source: Path, safe_name: str, mime_type: str) -> StoredFile:
        for attempt in range(1, self.MAX_NAME_ATTEMPTS + 1):
            final_name = self.final_name_for(safe_name)
            try:
                return self.storage.store(source, final_name, mime_type)
            except FileExistsError:
                logger.info(f"Final name taken, drawing a new token: {final_name} (attempt {attempt})")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to store {final_name}: {e}", exc_info=True)
                raise StorageFailure() from e

        raise StorageFailure("Could not allocate a unique file name. Please try again.")
