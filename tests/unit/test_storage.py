import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from docverify.storage.exceptions import (
    ObjectNotFoundError,
    StorageError,
    UnsupportedStorageDriverError,
)
from docverify.storage.factory import StorageFactory
from docverify.storage.local_adapter import LocalStorageAdapter
from docverify.storage.s3_adapter import S3StorageAdapter


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")


class TestLocalStorageAdapter:
    def test_reads_file_under_root(self, tmp_path: Path) -> None:
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "rg.jpg").write_bytes(b"jpeg")
        adapter = LocalStorageAdapter(files_root=tmp_path)
        assert adapter.download("docs/rg.jpg") == b"jpeg"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        adapter = LocalStorageAdapter(files_root=tmp_path)
        with pytest.raises(ObjectNotFoundError):
            adapter.download("missing.jpg")

    def test_key_escaping_root_raises(self, tmp_path: Path) -> None:
        root = tmp_path / "files"
        root.mkdir()
        (tmp_path / "secret.txt").write_bytes(b"x")
        adapter = LocalStorageAdapter(files_root=root)
        with pytest.raises(StorageError):
            adapter.download("../secret.txt")


class TestS3StorageAdapter:
    def _make(self) -> tuple[S3StorageAdapter, MagicMock]:
        client = MagicMock()
        adapter = S3StorageAdapter(bucket="uploads", region="us-east-1", client=client)
        return adapter, client

    def test_downloads_object_body(self) -> None:
        adapter, client = self._make()
        client.get_object.return_value = {"Body": io.BytesIO(b"content")}

        assert adapter.download("docs/rg.jpg") == b"content"
        client.get_object.assert_called_once_with(Bucket="uploads", Key="docs/rg.jpg")

    def test_no_such_key_raises_not_found(self) -> None:
        adapter, client = self._make()
        client.get_object.side_effect = _client_error("NoSuchKey")
        with pytest.raises(ObjectNotFoundError):
            adapter.download("missing")

    def test_other_client_error_raises_storage_error(self) -> None:
        adapter, client = self._make()
        client.get_object.side_effect = _client_error("AccessDenied")
        with pytest.raises(StorageError) as exc_info:
            adapter.download("key")
        assert not isinstance(exc_info.value, ObjectNotFoundError)

    def test_botocore_error_raises_storage_error(self) -> None:
        adapter, client = self._make()
        client.get_object.side_effect = EndpointConnectionError(endpoint_url="http://minio")
        with pytest.raises(StorageError):
            adapter.download("key")

    def test_missing_bucket_raises(self) -> None:
        with pytest.raises(ValueError):
            S3StorageAdapter(bucket="", region="us-east-1", client=MagicMock())

    @pytest.mark.parametrize(("force_path_style", "expected"), [(False, "auto"), (True, "path")])
    def test_addressing_style_follows_flag(self, force_path_style: bool, expected: str) -> None:
        with patch("docverify.storage.s3_adapter.boto3.client") as mock_client:
            S3StorageAdapter(
                bucket="uploads",
                region="us-east-1",
                endpoint="http://minio:9000",
                force_path_style=force_path_style,
            )

        config = mock_client.call_args.kwargs["config"]
        assert config.s3 == {"addressing_style": expected}
        assert mock_client.call_args.kwargs["endpoint_url"] == "http://minio:9000"


class TestStorageFactory:
    def test_creates_local(self, tmp_path: Path) -> None:
        settings = MagicMock(storage_driver="local", files_root=str(tmp_path))
        assert isinstance(StorageFactory.create(settings), LocalStorageAdapter)

    def test_creates_s3(self) -> None:
        settings = MagicMock(
            storage_driver="S3",
            s3_bucket="uploads",
            s3_region="us-east-1",
            s3_endpoint="http://minio:9000",
            s3_access_key="minio",
            s3_secret_key="minio123",
            s3_force_path_style=True,
        )
        assert isinstance(StorageFactory.create(settings), S3StorageAdapter)

    def test_unknown_driver_raises(self) -> None:
        settings = MagicMock(storage_driver="gcs")
        with pytest.raises(UnsupportedStorageDriverError):
            StorageFactory.create(settings)
