"""Uploads domain module - validation policy, acceptance, storage placement"""

from .acceptor import UploadAcceptor, discard_staged
from .errors import (
    UploadError,
    NoFileProvided,
    InvalidFilename,
    InvalidType,
    TooLarge,
    MalformedRequest,
    StorageFailure,
)
from .models import (
    IncomingFile,
    StoredFile,
    UploadPolicy,
    DEFAULT_ALLOWED_TYPES,
    DEFAULT_MAX_SIZE_BYTES,
)
from .upload_status import UploadStatus, UploadLifecycle, can_transition, ALLOWED_TRANSITIONS
from .validation import (
    is_allowed_type,
    normalize_mime_type,
    sanitize_filename,
    validate_file_size,
    validate_file_type,
    validate_filename,
)

__all__ = [
    "UploadAcceptor",
    "discard_staged",
    "UploadError",
    "NoFileProvided",
    "InvalidFilename",
    "InvalidType",
    "TooLarge",
    "MalformedRequest",
    "StorageFailure",
    "IncomingFile",
    "StoredFile",
    "UploadPolicy",
    "DEFAULT_ALLOWED_TYPES",
    "DEFAULT_MAX_SIZE_BYTES",
    "UploadStatus",
    "UploadLifecycle",
    "can_transition",
    "ALLOWED_TRANSITIONS",
    "is_allowed_type",
    "normalize_mime_type",
    "sanitize_filename",
    "validate_file_size",
    "validate_file_type",
    "validate_filename",
]
