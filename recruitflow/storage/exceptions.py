class StorageError(Exception):
    """Raised when the object store rejects a put, get or delete."""


class UnsupportedStorageUrlError(StorageError):
    """Raised when a URL does not belong to the configured store."""
