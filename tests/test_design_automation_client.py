from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from workitem_runner.domain.errors import TransportError
from workitem_runner.domain.work_items import WorkItemStatus
from workitem_runner.infrastructure.auth import StaticTokenAuthenticator
from workitem_runner.infrastructure.design_automation import DesignAutomationClient
from workitem_runner.infrastructure.http import RemoteRequestClient, RetryPolicy

_BASE_URL = "https://developer.api.autodesk.com/da/us-east/v3"


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _client(handler, sleep: RecordingSleep | None = None) -> DesignAutomationClient:
    return DesignAutomationClient(
        base_url=f"{_BASE_URL}/",
        authenticator=StaticTokenAuthenticator("token"),
        request_client=RemoteRequestClient(transport=httpx.MockTransport(handler)),
        retry_policy=RetryPolicy(retries=2, randomize=False),
        retry_sleep=sleep or RecordingSleep(),
    )


def test_client_rejects_empty_base_url() -> None:
    with pytest.raises(TransportError):
        DesignAutomationClient(
            base_url=" ",
            authenticator=StaticTokenAuthenticator("token"),
            request_client=RemoteRequestClient(),
        )


def test_get_nickname_reads_json_string() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert str(request.url) == f"{_BASE_URL}/forgeapps/me"
        return httpx.Response(status_code=200, json="nick")

    assert asyncio.run(_client(handler).get_nickname()) == "nick"


def test_create_work_item_posts_payload_and_returns_id() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code=200, json={"id": "abc123", "status": "pending"})

    payload = {"activityId": "nick.Export+prod", "arguments": {}}
    work_item_id = asyncio.run(_client(handler).create_work_item(payload))

    assert work_item_id == "abc123"
    assert requests[0].method == "POST"
    assert str(requests[0].url) == f"{_BASE_URL}/workitems"
    assert json.loads(requests[0].content.decode()) == payload


def test_get_work_item_status_parses_report_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == f"{_BASE_URL}/workitems/abc123"
        return httpx.Response(
            status_code=200,
            json={
                "id": "abc123",
                "status": "inprogress",
                "reportUrl": "https://reports.example.com/abc123.txt",
                "stats": {"timeQueued": "2026-01-01T00:00:00Z"},
            },
        )

    status = asyncio.run(_client(handler).get_work_item_status("abc123"))

    assert status.status == WorkItemStatus.IN_PROGRESS
    assert status.report_url == "https://reports.example.com/abc123.txt"


def test_get_work_item_status_rejects_unexpected_body() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json={"unexpected": True})

    with pytest.raises(TransportError, match="unexpected body"):
        asyncio.run(_client(handler).get_work_item_status("abc123"))


def test_requests_are_retried_with_backoff_delays() -> None:
    statuses = [503, 502, 200]
    sleep = RecordingSleep()

    def handler(_: httpx.Request) -> httpx.Response:
        status = statuses.pop(0)
        if status != 200:
            return httpx.Response(status_code=status)
        return httpx.Response(status_code=200, json={"id": "abc123", "status": "success"})

    status = asyncio.run(_client(handler, sleep).get_work_item_status("abc123"))

    assert status.status == WorkItemStatus.SUCCESS
    assert sleep.delays == [0.1, 0.2]


def test_exhausted_retries_raise_transport_error_with_detail() -> None:
    calls: list[int] = []

    def handler(_: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(status_code=400, json={"diagnostic": "bad activity id"})

    with pytest.raises(TransportError, match="bad activity id"):
        asyncio.run(_client(handler).create_work_item({"activityId": "x"}))

    assert len(calls) == 3


@pytest.mark.parametrize("status_code", [204, 404])
def test_delete_activity_treats_missing_activity_as_deleted(status_code: int) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code=status_code)

    asyncio.run(_client(handler).delete_activity("ExportToFBXActivity"))

    assert [r.method for r in requests] == ["DELETE"]
    assert str(requests[0].url) == f"{_BASE_URL}/activities/ExportToFBXActivity"


def test_create_app_bundle_returns_upload_parameters() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=200,
            json={
                "id": "nick.ExportToFBXApp",
                "version": 1,
                "uploadParameters": {
                    "endpointURL": "https://uploads.example.com",
                    "formData": {"key": "apps/bundle.zip"},
                },
            },
        )

    upload_parameters = asyncio.run(_client(handler).create_app_bundle({"id": "ExportToFBXApp"}))

    assert upload_parameters["endpointURL"] == "https://uploads.example.com"
    assert upload_parameters["formData"] == {"key": "apps/bundle.zip"}


def test_create_app_bundle_requires_upload_parameters() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json={"id": "nick.ExportToFBXApp"})

    with pytest.raises(TransportError, match="uploadParameters"):
        asyncio.run(_client(handler).create_app_bundle({"id": "ExportToFBXApp"}))


def test_configured_nickname_skips_remote_lookup() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        raise AssertionError("nickname lookup must not reach the service")

    client = DesignAutomationClient(
        base_url=_BASE_URL,
        authenticator=StaticTokenAuthenticator("token"),
        request_client=RemoteRequestClient(transport=httpx.MockTransport(handler)),
        nickname="configured",
    )

    assert asyncio.run(client.get_nickname()) == "configured"
