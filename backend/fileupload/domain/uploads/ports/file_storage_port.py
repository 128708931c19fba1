"""File Storage Port - Domain interface for placing accepted uploads.

Adapters must implement this interface to move a staged file to its final
name. Architecture: Hexagonal - Port interface in domain layer.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from ..models import StoredFile


class FileStoragePort(ABC):
    """Port interface for the upload directory.

    Key Design Principles:
    - store() never overwrites: an existing final name raises FileExistsError
    - every final path resolves inside the storage root
    - the staged source is moved, not copied, so no duplicate bytes remain

    Example Usage:
        storage = LocalDiskStorageAdapter(Path('public/uploads'))
        stored = storage.store(
            source=Path('.staging/tmpab12'),
            final_name='1700000000000-123456789-cat.png',
            mime_type='image/png',
        )
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Resolved directory that holds stored files."""

    @abstractmethod
    def store(self, source: Path, final_name: str, mime_type: str) -> StoredFile:
        """Move a staged file to final_name under the storage root.

        Args:
            source: Staged file to move (removed on success)
            final_name: Bare file name, no directory components
            mime_type: MIME type recorded on the StoredFile

        Returns:
            StoredFile: Metadata about the stored file

        Raises:
            FileExistsError: If final_name is already taken (nothing changed)
            ValueError: If final_name would resolve outside the storage root
            OSError: If the move fails (disk full, permission denied, ...)
        """

    @abstractmethod
    def delete(self, final_name: str) -> bool:
        """Delete a stored file.

        Returns:
            bool: True if the file was deleted, False if it didn't exist
        """

    @abstractmethod
    def exists(self, final_name: str) -> bool:
        """Check whether final_name is present under the storage root."""
