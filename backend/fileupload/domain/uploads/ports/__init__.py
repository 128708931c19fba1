from .file_storage_port import FileStoragePort

__all__ = ["FileStoragePort"]
