"""Upload error taxonomy.

Every rejection of an upload is raised as a subclass of UploadError. Each
carries a stable machine-readable code and the HTTP status the API answers
with. Client faults map to 4xx, storage faults to 5xx. None are retried.
"""

from typing import Optional


class UploadError(Exception):
    """Base exception for a rejected upload."""

    code = "upload_error"
    status_code = 400
    default_message = "Upload failed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class NoFileProvided(UploadError):
    """The request carried no file part, or one with an empty filename."""

    code = "no_file_provided"
    default_message = "No file was uploaded."


class InvalidFilename(UploadError):
    """The client filename is unusable (empty, too long, null bytes, ...)."""

    code = "invalid_filename"
    default_message = "Invalid filename."


class InvalidType(UploadError):
    """MIME type or extension is not in the allow-list."""

    code = "invalid_type"
    default_message = "Invalid file type."


class TooLarge(UploadError):
    """The file exceeds the configured maximum size."""

    code = "too_large"
    status_code = 413
    default_message = "File is too large."

    def __init__(self, message: Optional[str] = None, max_size_bytes: Optional[int] = None):
        super().__init__(message)
        self.max_size_bytes = max_size_bytes


class MalformedRequest(UploadError):
    """The multipart body could not be decoded."""

    code = "malformed_request"
    default_message = "Malformed upload request."


class StorageFailure(UploadError):
    """Writing or moving the file into the upload directory failed."""

    code = "storage_failure"
    status_code = 500
    default_message = "The file could not be stored. Please try again later."
