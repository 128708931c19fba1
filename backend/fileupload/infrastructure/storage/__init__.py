from .local_storage_adapter import LocalDiskStorageAdapter

__all__ = ["LocalDiskStorageAdapter"]
