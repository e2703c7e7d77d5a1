from pathlib import Path

from docverify.storage.base import BaseObjectStorage
from docverify.storage.exceptions import ObjectNotFoundError, StorageError


class LocalStorageAdapter(BaseObjectStorage):
    """Reads uploads from a local directory: {files_root}/{storage_key}."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def download(self, key: str) -> bytes:
        """Read object bytes from disk.

        Raises:
            ObjectNotFoundError: if the file does not exist at the resolved path.
            StorageError: if *key* escapes the files root.
        """
        path = self._resolve_path(key)
        if not path.is_file():
            raise ObjectNotFoundError(f"File not found: {path}")
        return path.read_bytes()

    def _resolve_path(self, key: str) -> Path:
        root = self._files_root.resolve()
        path = (root / key.lstrip("/")).resolve()
        if not path.is_relative_to(root):
            raise StorageError(f"Storage key '{key}' resolves outside {root}")
        return path
