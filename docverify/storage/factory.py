from pathlib import Path

from docverify.config.settings import Settings
from docverify.storage.base import BaseObjectStorage
from docverify.storage.exceptions import UnsupportedStorageDriverError
from docverify.storage.local_adapter import LocalStorageAdapter
from docverify.storage.s3_adapter import S3StorageAdapter


class StorageFactory:
    """Creates the object-storage adapter named by settings."""

    DRIVERS = ("s3", "local")

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStorage:
        driver = settings.storage_driver.lower()
        if driver == "s3":
            return S3StorageAdapter(
                bucket=settings.s3_bucket,
                region=settings.s3_region,
                endpoint=settings.s3_endpoint,
                access_key=settings.s3_access_key,
                secret_key=settings.s3_secret_key,
                force_path_style=settings.s3_force_path_style,
            )
        if driver == "local":
            return LocalStorageAdapter(files_root=Path(settings.files_root))
        raise UnsupportedStorageDriverError(
            f"Unknown storage driver '{driver}'. Choose from: {list(cls.DRIVERS)}"
        )
