"""Object storage service adapter speaking the OSS v2 REST API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from workitem_runner.domain.errors import (
    StorageConflictError,
    StorageInvalidError,
    TransportError,
)
from workitem_runner.domain.ports import Authenticator, SignedUrlAccess, StorageProvider
from workitem_runner.infrastructure.http import (
    DEFAULT_RETRY_POLICY,
    EXPECT_OK,
    RemoteRequestClient,
    RequestOutcome,
    RetryPolicy,
    ensure_outcome,
    exponential_backoff,
    retry_transient,
)

logger = logging.getLogger(__name__)

_BUCKET_KEY_PATTERN = "[-_.a-z0-9]{3,128}"


class OssStorageProvider(StorageProvider):
    """Bucket bootstrap and signed resource issuance for one bucket."""

    def __init__(
        self,
        bucket_key: str,
        authenticator: Authenticator,
        request_client: RemoteRequestClient,
        base_url: str = "https://developer.api.autodesk.com/oss/v2",
        policy_key: str = "temporary",
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        self._bucket_key = bucket_key
        self._authenticator = authenticator
        self._request_client = request_client
        self._base_url = base_url.strip().rstrip("/")
        self._policy_key = policy_key
        self._retry_policy = retry_policy

    @property
    def bucket_key(self) -> str:
        return self._bucket_key

    async def ensure_container(self) -> dict[str, Any]:
        token = await self._authenticator.get_token()
        outcome = await self._call(
            self._request_client.read,
            self._endpoint(f"/buckets/{quote(self._bucket_key, safe='')}/details"),
            token,
        )
        if outcome.status_code == 404:
            return await self._create_bucket(token)
        if outcome.status_code == 403:
            raise StorageInvalidError(self._unavailable_message())
        return self._json_object(ensure_outcome(outcome, EXPECT_OK))

    async def get_signed_url(self, object_name: str, access: SignedUrlAccess) -> str:
        token = await self._authenticator.get_token()
        bucket = quote(self._bucket_key, safe="")
        name = quote(object_name, safe="")
        url = self._endpoint(f"/buckets/{bucket}/objects/{name}/signed?access={access.value}")
        outcome = await self._call(self._request_client.create, url, token, {})
        payload = self._json_object(ensure_outcome(outcome, EXPECT_OK))
        signed_url = payload.get("signedUrl")
        if not isinstance(signed_url, str) or not signed_url:
            raise TransportError(f"POST {url} returned no signedUrl.")
        return signed_url

    async def _create_bucket(self, token: str) -> dict[str, Any]:
        logger.info("Bucket '%s' not found, creating it.", self._bucket_key)
        outcome = await self._call(
            self._request_client.create,
            self._endpoint("/buckets"),
            token,
            {"bucketKey": self._bucket_key, "policyKey": self._policy_key},
        )
        if outcome.status_code == 409:
            raise StorageConflictError(f"Bucket '{self._bucket_key}' already exists.")
        if outcome.status_code == 400:
            raise StorageInvalidError(
                f"Bucket name '{self._bucket_key}' contains illegal characters. "
                f"Make sure it matches {_BUCKET_KEY_PATTERN}."
            )
        if outcome.status_code == 403:
            raise StorageInvalidError(self._unavailable_message())
        return self._json_object(ensure_outcome(outcome, EXPECT_OK))

    async def _call(self, operation: Any, *args: Any) -> RequestOutcome:
        return await exponential_backoff(
            operation,
            retry_transient,
            *args,
            policy=self._retry_policy,
        )()

    def _unavailable_message(self) -> str:
        return (
            f"Bucket name '{self._bucket_key}' is most likely already used by someone else. "
            "Choose another bucket name and try again."
        )

    def _endpoint(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _json_object(self, outcome: RequestOutcome) -> dict[str, Any]:
        payload = outcome.json()
        if not isinstance(payload, dict):
            raise TransportError(f"{outcome.method} {outcome.url} returned non-object JSON.")
        return payload


__all__ = ["OssStorageProvider"]
