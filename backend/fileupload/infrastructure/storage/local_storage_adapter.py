"""Local Disk Storage Adapter - Implementation of FileStoragePort on a directory.

Moves staged uploads into a flat upload directory. Final files are created
with no-overwrite primitives only: a hard link when staging and upload
directories share a filesystem, an exclusive-create copy otherwise.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import errno
import logging
import os
import shutil
from pathlib import Path

from ...domain.uploads.models import StoredFile
from ...domain.uploads.ports.file_storage_port import FileStoragePort

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 64 * 1024

# os.link failures that mean "hard links not possible here", not "write failed"
_LINK_UNSUPPORTED = {errno.EXDEV, errno.EPERM, errno.EMLINK, errno.ENOTSUP, errno.EOPNOTSUPP}


class LocalDiskStorageAdapter(FileStoragePort):
    """Local filesystem storage adapter.

    Example:
        storage = LocalDiskStorageAdapter(Path('public/uploads'))
        storage.ensure_root()
        stored = storage.store(staged_path, '1700000000000-42-cat.png', 'image/png')
    """

    def __init__(self, root: Path):
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> None:
        """Create the storage root (and parents) if missing."""
        self._root.mkdir(parents=True, exist_ok=True)

    def store(self, source: Path, final_name: str, mime_type: str) -> StoredFile:
        target = self._resolve(final_name)
        # Sized before placement: once target exists, nothing may fail the store
        size_bytes = source.stat().st_size

        try:
            os.link(source, target)
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno not in _LINK_UNSUPPORTED:
                raise
            logger.debug(f"Hard link unavailable ({e.strerror}), copying {source} -> {target}")
            self._copy_exclusive(source, target)

        try:
            source.unlink()
        except OSError as e:
            logger.warning(f"Stored {final_name} but could not remove staged file {source}: {e}")

        logger.debug(f"Stored file: path={target}, size={size_bytes}, mime_type={mime_type}")

        return StoredFile(
            final_name=final_name,
            final_path=target,
            size_bytes=size_bytes,
            mime_type=mime_type,
        )

    def delete(self, final_name: str) -> bool:
        target = self._resolve(final_name)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Deleted stored file: {final_name}")
        return True

    def exists(self, final_name: str) -> bool:
        return self._resolve(final_name).is_file()

    def _resolve(self, final_name: str) -> Path:
        """Map a bare file name to its path, refusing anything outside the root."""
        if not final_name or final_name in ('.', '..') or os.path.basename(final_name) != final_name \
                or '\\' in final_name or '\x00' in final_name:
            raise ValueError(f"Invalid stored file name: {final_name!r}")

        target = (self._root / final_name).resolve()
        if target.parent != self._root:
            raise ValueError(f"Stored file name escapes upload directory: {final_name!r}")
        return target

    @staticmethod
    def _copy_exclusive(source: Path, target: Path) -> None:
        # "xb" raises FileExistsError rather than truncating someone else's file
        with open(target, "xb") as dst:
            try:
                with open(source, "rb") as src:
                    shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
                dst.flush()
                os.fsync(dst.fileno())
            except BaseException:
                dst.close()
                target.unlink(missing_ok=True)
                raise
