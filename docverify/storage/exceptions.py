class StorageError(Exception):
    """Raised when an object cannot be read from storage."""


class ObjectNotFoundError(StorageError):
    """Raised when the storage key does not exist."""


class UnsupportedStorageDriverError(StorageError):
    """Raised when settings name an unknown storage driver."""
