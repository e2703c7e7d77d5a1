from typing import Any

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from docverify.storage.base import BaseObjectStorage
from docverify.storage.exceptions import ObjectNotFoundError, StorageError


class S3StorageAdapter(BaseObjectStorage):
    """Reads uploads from an S3-compatible bucket (AWS S3, MinIO)."""

    NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})

    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        force_path_style: bool = False,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("s3_bucket is required for storage_driver=s3")
        self._bucket = bucket
        if client is not None:
            self._client = client
            return

        addressing = "path" if force_path_style else "auto"
        credentials: dict[str, str] = {}
        if access_key and secret_key:
            credentials = {
                "aws_access_key_id": access_key,
                "aws_secret_access_key": secret_key,
            }
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            config=Config(signature_version="s3v4", s3={"addressing_style": addressing}),
            **credentials,
        )

    def download(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            body = response.get("Body")
            if body is None:
                raise StorageError(f"S3 response body is empty for '{key}'")
            return body.read()
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in self.NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"Object not found: {self._bucket}/{key}") from exc
            raise StorageError(f"S3 download failed for '{key}': {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"S3 download failed for '{key}': {exc}") from exc
