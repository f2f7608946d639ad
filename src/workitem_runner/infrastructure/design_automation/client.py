"""Client for the remote execution service (work items, activities, app bundles)."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar
from urllib.parse import quote

from pydantic import ValidationError

from workitem_runner.domain.errors import TransportError
from workitem_runner.domain.ports import Authenticator
from workitem_runner.domain.work_items import WorkItemCreatedResponse, WorkItemStatusResponse
from workitem_runner.infrastructure.http import (
    DEFAULT_RETRY_POLICY,
    EXPECT_DELETED,
    EXPECT_OK,
    OutcomeClassifier,
    RemoteRequestClient,
    RequestOutcome,
    RetryPolicy,
    ensure_outcome,
    exponential_backoff,
)
from workitem_runner.infrastructure.http.backoff import Sleep

ResponseModelT = TypeVar("ResponseModelT", WorkItemCreatedResponse, WorkItemStatusResponse)


class DesignAutomationClient:
    """Retry-hardened wrapper around the service endpoints the runner uses."""

    def __init__(
        self,
        base_url: str,
        authenticator: Authenticator,
        request_client: RemoteRequestClient,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        retry_sleep: Sleep | None = None,
        nickname: str | None = None,
    ) -> None:
        normalized = base_url.strip().rstrip("/")
        if not normalized:
            raise TransportError("Design automation endpoint cannot be empty.")
        self._base_url = normalized
        self._authenticator = authenticator
        self._request_client = request_client
        self._retry_policy = retry_policy
        self._retry_sleep = retry_sleep
        self._nickname = nickname

    async def get_nickname(self) -> str:
        """Return the account nickname, or the client id when none is set.

        A nickname given at construction is returned without a remote call.
        """

        if self._nickname:
            return self._nickname
        outcome = await self._read("/forgeapps/me")
        nickname = outcome.json()
        if not isinstance(nickname, str) or not nickname:
            raise TransportError(f"GET {outcome.url} returned no nickname.")
        return nickname

    async def create_work_item(self, payload: Mapping[str, Any]) -> str:
        """Submit a work item and return its remote id.

        A retried submission may create the work item more than once.
        """

        outcome = await self._create("/workitems", payload)
        created = self._parse(outcome, WorkItemCreatedResponse)
        return created.id

    async def get_work_item_status(self, work_item_id: str) -> WorkItemStatusResponse:
        outcome = await self._read(f"/workitems/{quote(work_item_id, safe='')}")
        return self._parse(outcome, WorkItemStatusResponse)

    async def delete_activity(self, activity_id: str) -> None:
        """Delete an activity; a missing activity counts as deleted."""

        await self._delete(f"/activities/{quote(activity_id, safe='')}")

    async def create_activity(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._json_object(await self._create("/activities", payload))

    async def create_activity_alias(
        self, activity_id: str, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        outcome = await self._create(
            f"/activities/{quote(activity_id, safe='')}/aliases",
            payload,
        )
        return self._json_object(outcome)

    async def delete_app_bundle(self, app_id: str) -> None:
        """Delete an app bundle; a missing bundle counts as deleted."""

        await self._delete(f"/appbundles/{quote(app_id, safe='')}")

    async def create_app_bundle(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Create an app bundle version and return its `uploadParameters`."""

        body = self._json_object(await self._create("/appbundles", payload))
        upload_parameters = body.get("uploadParameters")
        if not isinstance(upload_parameters, dict):
            raise TransportError("POST /appbundles returned no uploadParameters.")
        return upload_parameters

    async def create_app_bundle_alias(
        self, app_id: str, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        outcome = await self._create(f"/appbundles/{quote(app_id, safe='')}/aliases", payload)
        return self._json_object(outcome)

    async def _read(self, path: str) -> RequestOutcome:
        token = await self._authenticator.get_token()
        return await self._call(self._request_client.read, EXPECT_OK, self._endpoint(path), token)

    async def _create(self, path: str, payload: Mapping[str, Any]) -> RequestOutcome:
        token = await self._authenticator.get_token()
        return await self._call(
            self._request_client.create,
            EXPECT_OK,
            self._endpoint(path),
            token,
            payload,
        )

    async def _delete(self, path: str) -> RequestOutcome:
        token = await self._authenticator.get_token()
        return await self._call(
            self._request_client.delete,
            EXPECT_DELETED,
            self._endpoint(path),
            token,
        )

    async def _call(
        self,
        operation: Callable[..., Awaitable[RequestOutcome]],
        classify: OutcomeClassifier,
        *args: Any,
    ) -> RequestOutcome:
        kwargs: dict[str, Any] = {"policy": self._retry_policy}
        if self._retry_sleep is not None:
            kwargs["sleep"] = self._retry_sleep
        outcome = await exponential_backoff(operation, classify, *args, **kwargs)()
        return ensure_outcome(outcome, classify)

    def _parse(
        self, outcome: RequestOutcome, model: type[ResponseModelT]
    ) -> ResponseModelT:
        try:
            return model.model_validate(outcome.json())
        except ValidationError as exc:
            raise TransportError(
                f"{outcome.method} {outcome.url} returned an unexpected body: {exc}"
            ) from exc

    def _json_object(self, outcome: RequestOutcome) -> dict[str, Any]:
        payload = outcome.json()
        if not isinstance(payload, dict):
            raise TransportError(f"{outcome.method} {outcome.url} returned non-object JSON.")
        return payload

    def _endpoint(self, path: str) -> str:
        return f"{self._base_url}{path}"


__all__ = ["DesignAutomationClient"]
