"""Upload domain models: incoming files, stored files and the upload policy."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple


# MIME type -> extensions permitted for it
DEFAULT_ALLOWED_TYPES: Mapping[str, Tuple[str, ...]] = {
    'image/png': ('.png',),
    'image/jpeg': ('.jpg', '.jpeg'),
    'image/gif': ('.gif',),
    'application/pdf': ('.pdf',),
    'application/msword': ('.doc',),
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': ('.docx',),
}

DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024  # 10 MiB


@dataclass(frozen=True)
class IncomingFile:
    """A file received in one request, staged on disk and not yet validated.

    Attributes:
        original_name: Client-supplied filename (untrusted)
        declared_mime_type: Client-supplied Content-Type of the part (untrusted)
        temp_path: Server-assigned staging location
        size_bytes: Number of bytes staged
    """
    original_name: str
    declared_mime_type: str
    temp_path: Path
    size_bytes: int


@dataclass(frozen=True)
class StoredFile:
    """A file accepted and persisted under the upload directory.

    Attributes:
        final_name: Server-assigned name ({millis}-{random}-{sanitized original})
        final_path: Absolute path inside the upload directory
        size_bytes: File size in bytes
        mime_type: Normalized MIME type the file was accepted as
    """
    final_name: str
    final_path: Path
    size_bytes: int
    mime_type: str


@dataclass(frozen=True)
class UploadPolicy:
    """Validation and placement policy handed to the upload acceptor.

    Attributes:
        upload_dir: Directory that receives stored files
        allowed_types: MIME type -> extensions allowed for it
        max_size_bytes: Largest accepted size, None for unbounded
    """
    upload_dir: Path
    allowed_types: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_ALLOWED_TYPES)
    )
    max_size_bytes: Optional[int] = DEFAULT_MAX_SIZE_BYTES

    @property
    def allowed_extensions(self) -> Tuple[str, ...]:
        """All extensions permitted by any allowed MIME type, sorted."""
        return tuple(sorted({ext for exts in self.allowed_types.values() for ext in exts}))

    def describe_allowed(self) -> str:
        """Human-readable list of allowed extensions, e.g. 'PNG, JPG, PDF'."""
        return ", ".join(ext.lstrip('.').upper() for ext in self.allowed_extensions)
