"""Transport shim for the remote execution service."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from workitem_runner.domain.errors import TransportError


@dataclass(slots=True, frozen=True)
class RequestOutcome:
    """Raw result of one HTTP exchange.

    Exactly one of `response` and `error` is set.
    """

    method: str
    url: str
    response: httpx.Response | None = None
    error: httpx.HTTPError | None = None

    @property
    def status_code(self) -> int | None:
        return None if self.response is None else self.response.status_code

    @property
    def body(self) -> str:
        return "" if self.response is None else self.response.text

    def json(self) -> Any:
        """Decode the response body, raising `TransportError` when impossible."""

        if self.response is None:
            raise TransportError(f"{self.method} {self.url} returned no response.")
        try:
            return self.response.json()
        except ValueError as exc:
            raise TransportError(f"{self.method} {self.url} returned invalid JSON.") from exc


OutcomeClassifier = Callable[[RequestOutcome], str | None]


def expect_status(*status_codes: int) -> OutcomeClassifier:
    """Build a classifier accepting only the given status codes."""

    accepted = frozenset(status_codes)

    def classify(outcome: RequestOutcome) -> str | None:
        if outcome.error is not None:
            return str(outcome.error) or type(outcome.error).__name__
        if outcome.status_code not in accepted:
            return f"status code: {outcome.status_code}"
        return None

    return classify


EXPECT_OK = expect_status(200)
EXPECT_DELETED = expect_status(204, 404)


def retry_transient(outcome: RequestOutcome) -> str | None:
    """Reject only transport failures, throttling and server errors."""

    if outcome.error is not None:
        return str(outcome.error) or type(outcome.error).__name__
    status_code = outcome.status_code
    if status_code is not None and (status_code == 429 or status_code >= 500):
        return f"status code: {status_code}"
    return None


def ensure_outcome(outcome: RequestOutcome, classify: OutcomeClassifier) -> RequestOutcome:
    """Raise `TransportError` when the classifier rejects the outcome."""

    error = classify(outcome)
    if error is None:
        return outcome
    detail = _detail_from_response(outcome.response) if outcome.response is not None else None
    message = f"{outcome.method} {outcome.url} failed: {error}"
    if detail:
        message = f"{message} {detail}"
    raise TransportError(message) from outcome.error


def _detail_from_response(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()

    if isinstance(payload, dict):
        for key in ("detail", "diagnostic", "reason"):
            detail = payload.get(key)
            if isinstance(detail, str):
                return detail
    return str(payload)


class RemoteRequestClient:
    """Issue bearer-authenticated create/read/delete calls.

    Transport exceptions are captured in the returned outcome; status codes are
    left to the caller's classifier.
    """

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def create(
        self,
        url: str,
        token: str,
        body: Mapping[str, Any] | str,
    ) -> RequestOutcome:
        """POST a JSON body."""

        if isinstance(body, str):
            return await self._send("POST", url, token, content=body.encode())
        return await self._send("POST", url, token, json=dict(body))

    async def read(self, url: str, token: str) -> RequestOutcome:
        """GET a resource."""

        return await self._send("GET", url, token)

    async def delete(self, url: str, token: str) -> RequestOutcome:
        """DELETE a resource."""

        return await self._send("DELETE", url, token)

    async def _send(self, method: str, url: str, token: str, **kwargs: Any) -> RequestOutcome:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as http_client:
                response = await http_client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            return RequestOutcome(method=method, url=url, error=exc)
        return RequestOutcome(method=method, url=url, response=response)


__all__ = [
    "EXPECT_DELETED",
    "EXPECT_OK",
    "OutcomeClassifier",
    "RemoteRequestClient",
    "RequestOutcome",
    "ensure_outcome",
    "expect_status",
    "retry_transient",
]
