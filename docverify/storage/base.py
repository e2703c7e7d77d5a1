from abc import ABC, abstractmethod


class BaseObjectStorage(ABC):
    """Contract for object-storage adapters holding uploaded documents."""

    @abstractmethod
    def download(self, key: str) -> bytes:
        """Read the full object stored under *key*.

        Raises:
            ObjectNotFoundError: if no object exists under *key*.
            StorageError: on any other failure.
        """
