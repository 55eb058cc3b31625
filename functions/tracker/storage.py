"""
Blob storage for project images: Firebase Storage, Tencent COS
(S3-compatible) and in-memory testing.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Protocol
from urllib.parse import quote, urlsplit

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions

from tracker.errors import UpstreamStoreError


class BlobStore(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload_bytes(self, path: str, data: bytes, content_type: str | None) -> None:
        ...

    def download_url(self, path: str, expires_at: datetime) -> str:
        """URL stored on the project; must stay valid until `expires_at`."""
        ...


@dataclass
class InMemoryBlobStore:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_bytes(self, path: str, data: bytes, content_type: str | None) -> None:
        self.stored_objects[path] = (bytes(data), content_type)

    def download_url(self, path: str, expires_at: datetime) -> str:
        if path not in self.stored_objects:
            raise UpstreamStoreError(f"No such object: {path}")
        return f"{self.base_url}/{path}?op=get&expires={int(expires_at.timestamp())}"


class FirebaseBlobStore:
    """
    Firebase Storage bucket (a google-cloud-storage bucket handle obtained
    through firebase_admin.storage).
    """

    def __init__(self, bucket: Any):
        self._bucket = bucket

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except (
            google_exceptions.GoogleAPIError,
            google_auth_exceptions.GoogleAuthError,
        ) as exc:
            raise UpstreamStoreError(f"Storage {action} failed: {exc}") from exc

    def upload_bytes(self, path: str, data: bytes, content_type: str | None) -> None:
        with self._guard("upload"):
            self._bucket.blob(path).upload_from_string(data, content_type=content_type)

    def download_url(self, path: str, expires_at: datetime) -> str:
        with self._guard("sign"):
            return self._bucket.blob(path).generate_signed_url(
                expiration=expires_at, method="GET"
            )


@dataclass
class CosBlobStore:
    """
    S3-compatible storage client for Tencent COS.

    Images are uploaded public-read and addressed by their plain object URL;
    SigV4 presigned URLs cannot outlive seven days.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        # Use virtual-hosted style addressing to satisfy COS requirements.
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str | None) -> None:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self._client.put_object(
                Bucket=self.bucket, Key=path, Body=data, ACL="public-read", **extra
            )
        except (BotoCoreError, ClientError) as exc:
            raise UpstreamStoreError(f"COS upload failed: {exc}") from exc

    def download_url(self, path: str, expires_at: datetime) -> str:
        endpoint = urlsplit(self.endpoint)
        return f"{endpoint.scheme}://{self.bucket}.{endpoint.netloc}/{quote(path)}"
