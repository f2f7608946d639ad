"""Bearer token sources."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import httpx

from workitem_runner.domain.errors import ConfigurationError, TransportError
from workitem_runner.domain.ports import Authenticator
from workitem_runner.infrastructure.http import (
    DEFAULT_RETRY_POLICY,
    EXPECT_OK,
    RequestOutcome,
    RetryPolicy,
    ensure_outcome,
    exponential_backoff,
)

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = (
    "code:all",
    "bucket:create",
    "bucket:read",
    "data:read",
    "data:write",
)


class StaticTokenAuthenticator(Authenticator):
    """Serve a pre-issued token."""

    def __init__(self, token: str) -> None:
        if not token.strip():
            raise ConfigurationError("Access token cannot be empty.")
        self._token = token.strip()

    async def get_token(self) -> str:
        return self._token


class TwoLeggedAuthenticator(Authenticator):
    """Client-credentials token flow, cached after the first success."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        scopes: Sequence[str] = DEFAULT_SCOPES,
        timeout_seconds: float = 30.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not client_id or not client_secret:
            raise ConfigurationError("Client id and client secret are required.")
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._scopes = " ".join(scopes)
        self._timeout_seconds = timeout_seconds
        self._retry_policy = retry_policy
        self._transport = transport
        self._token: str | None = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        async with self._lock:
            if self._token is None:
                self._token = await self._fetch_token()
            return self._token

    async def _fetch_token(self) -> str:
        outcome = await exponential_backoff(
            self._request_token,
            EXPECT_OK,
            policy=self._retry_policy,
        )()
        payload = ensure_outcome(outcome, EXPECT_OK).json()
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise TransportError(f"POST {self._token_url} returned no access_token.")
        logger.info("Obtained two-legged access token.")
        return token

    async def _request_token(self) -> RequestOutcome:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as http_client:
                response = await http_client.post(
                    self._token_url,
                    data={"grant_type": "client_credentials", "scope": self._scopes},
                    auth=(self._client_id, self._client_secret),
                )
        except httpx.HTTPError as exc:
            return RequestOutcome(method="POST", url=self._token_url, error=exc)
        return RequestOutcome(method="POST", url=self._token_url, response=response)


__all__ = ["DEFAULT_SCOPES", "StaticTokenAuthenticator", "TwoLeggedAuthenticator"]
