"""S3 bucket adapter issuing presigned URLs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from botocore.exceptions import ClientError

from workitem_runner.domain.errors import (
    ConfigurationError,
    StorageConflictError,
    StorageInvalidError,
    TransportError,
)
from workitem_runner.domain.ports import SignedUrlAccess, StorageProvider

logger = logging.getLogger(__name__)

_DEFAULT_EXPIRES_IN_SECONDS = 3600
_NOT_FOUND_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})
_FORBIDDEN_CODES = frozenset({"403", "AccessDenied", "BucketAlreadyExists"})


class S3Client(Protocol):
    """Subset of S3 client operations used by the storage provider."""

    def head_bucket(self, *, Bucket: str) -> dict[str, Any]:
        """Return bucket metadata."""

    def create_bucket(self, **kwargs: Any) -> dict[str, Any]:
        """Create a bucket."""

    def generate_presigned_url(
        self,
        ClientMethod: str,
        Params: dict[str, Any],
        ExpiresIn: int,
    ) -> str:
        """Return a presigned URL for one client method."""


class S3StorageProvider(StorageProvider):
    """Storage provider backed by one S3 bucket."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        expires_in_seconds: int = _DEFAULT_EXPIRES_IN_SECONDS,
        s3_client_factory: Callable[[str], S3Client] | None = None,
    ) -> None:
        self._bucket = bucket
        self._region = region
        self._expires_in_seconds = max(1, expires_in_seconds)
        self._s3_client_factory = s3_client_factory or self._build_default_s3_client
        self._client: S3Client | None = None

    async def ensure_container(self) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await asyncio.to_thread(client.head_bucket, Bucket=self._bucket)
        except ClientError as exc:
            code = self._error_code(exc)
            if code in _FORBIDDEN_CODES:
                raise StorageInvalidError(
                    f"Bucket '{self._bucket}' is not accessible with these credentials."
                ) from exc
            if code not in _NOT_FOUND_CODES:
                raise TransportError(f"HeadBucket {self._bucket} failed: {exc}") from exc
            return await self._create_bucket(client)
        return {"bucketKey": self._bucket, "region": self._region, **response}

    async def get_signed_url(self, object_name: str, access: SignedUrlAccess) -> str:
        if access is SignedUrlAccess.READWRITE:
            raise ConfigurationError("S3 presigned URLs are issued per access mode.")
        client_method = "get_object" if access is SignedUrlAccess.READ else "put_object"
        client = self._get_client()
        return await asyncio.to_thread(
            client.generate_presigned_url,
            ClientMethod=client_method,
            Params={"Bucket": self._bucket, "Key": object_name},
            ExpiresIn=self._expires_in_seconds,
        )

    async def _create_bucket(self, client: S3Client) -> dict[str, Any]:
        logger.info("Bucket '%s' not found, creating it.", self._bucket)
        kwargs: dict[str, Any] = {"Bucket": self._bucket}
        if self._region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
        try:
            await asyncio.to_thread(client.create_bucket, **kwargs)
        except ClientError as exc:
            code = self._error_code(exc)
            if code == "BucketAlreadyOwnedByYou":
                raise StorageConflictError(f"Bucket '{self._bucket}' already exists.") from exc
            if code == "InvalidBucketName":
                raise StorageInvalidError(
                    f"Bucket name '{self._bucket}' is not a valid S3 bucket name."
                ) from exc
            if code in _FORBIDDEN_CODES:
                raise StorageInvalidError(
                    f"Bucket name '{self._bucket}' is most likely already used by someone else."
                ) from exc
            raise TransportError(f"CreateBucket {self._bucket} failed: {exc}") from exc
        return {"bucketKey": self._bucket, "region": self._region}

    def _get_client(self) -> S3Client:
        if self._client is None:
            self._client = self._s3_client_factory(self._region)
        return self._client

    def _error_code(self, exc: ClientError) -> str:
        return str(exc.response.get("Error", {}).get("Code", ""))

    def _build_default_s3_client(self, region: str) -> S3Client:
        import boto3

        return boto3.client("s3", region_name=region)


__all__ = ["S3Client", "S3StorageProvider"]
