from __future__ import annotations

import asyncio
import json
import zipfile
from pathlib import Path

import httpx
import pytest

from workitem_runner.application import (
    ActivityDefinition,
    ActivityProvisioner,
    AppBundleDefinition,
    AppBundleProvisioner,
)
from workitem_runner.application.provisioning import zip_directory
from workitem_runner.domain.errors import ProvisioningError, TransportError
from workitem_runner.infrastructure.auth import StaticTokenAuthenticator
from workitem_runner.infrastructure.design_automation import DesignAutomationClient
from workitem_runner.infrastructure.http import RemoteRequestClient, RetryPolicy
from workitem_runner.jobs import render_export_activity_payload

_SERVICE_URL = "https://da.example.com/da/us-east/v3"
_UPLOAD_URL = "https://uploads.example.com/apps-bucket"


def _service(handler) -> DesignAutomationClient:
    return DesignAutomationClient(
        base_url=_SERVICE_URL,
        authenticator=StaticTokenAuthenticator("token"),
        request_client=RemoteRequestClient(transport=httpx.MockTransport(handler)),
        retry_policy=RetryPolicy(retries=0),
    )


def _activity_definition() -> ActivityDefinition:
    return ActivityDefinition(
        activity_id="ExportToFBXActivity",
        activity_alias="prod",
        app_id="ExportToFBXApp",
        app_alias="prod",
        engine_id="Autodesk.3dsMax+2019",
        payload_template=render_export_activity_payload,
    )


def _bundle_dir(tmp_path: Path) -> Path:
    bundle_dir = tmp_path / "exportToFBX.bundle"
    (bundle_dir / "Contents").mkdir(parents=True)
    (bundle_dir / "PackageContents.xml").write_text("<ApplicationPackage/>")
    (bundle_dir / "Contents" / "exportToFBX.ms").write_text("exportFile outputFile")
    return bundle_dir


def test_create_activity_recreates_version_one_and_alias() -> None:
    requests: list[tuple[str, str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode()) if request.content else None
        requests.append((request.method, request.url.path, body))
        if request.url.path.endswith("/forgeapps/me"):
            return httpx.Response(status_code=200, json="nick")
        if request.method == "DELETE":
            return httpx.Response(status_code=404)
        return httpx.Response(status_code=200, json={"id": "ExportToFBXActivity", "version": 1})

    result = asyncio.run(ActivityProvisioner(_service(handler)).create_activity(_activity_definition()))

    assert result.succeeded
    assert result.exit_code == 0
    assert [(method, path) for method, path, _ in requests] == [
        ("GET", "/da/us-east/v3/forgeapps/me"),
        ("DELETE", "/da/us-east/v3/activities/ExportToFBXActivity"),
        ("POST", "/da/us-east/v3/activities"),
        ("POST", "/da/us-east/v3/activities/ExportToFBXActivity/aliases"),
    ]
    activity = requests[2][2]
    assert isinstance(activity, dict)
    assert activity["id"] == "ExportToFBXActivity"
    assert activity["engine"] == "Autodesk.3dsMax+2019"
    assert activity["appbundles"] == ["nick.ExportToFBXApp+prod"]
    assert activity["parameters"]["outputFile"]["verb"] == "put"
    assert "$(args[inputFile].path)" in activity["commandLine"][0]
    assert requests[3][2] == {"id": "prod", "version": 1}


def test_create_activity_failure_aborts_with_provisioning_error() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(f"{request.method} {request.url.path.rsplit('/', 1)[-1]}")
        if request.url.path.endswith("/forgeapps/me"):
            return httpx.Response(status_code=200, json="nick")
        if request.method == "DELETE":
            return httpx.Response(status_code=204)
        return httpx.Response(status_code=400, json={"diagnostic": "engine not found"})

    result = asyncio.run(ActivityProvisioner(_service(handler)).create_activity(_activity_definition()))

    assert result.failed_step == "create_activity"
    assert isinstance(result.error, ProvisioningError)
    assert isinstance(result.error.__cause__, TransportError)
    assert "engine not found" in str(result.error)
    assert result.exit_code == -1
    assert methods == ["GET me", "DELETE ExportToFBXActivity", "POST activities"]


def test_zip_directory_nests_entries_under_folder_name(tmp_path: Path) -> None:
    archive_path = zip_directory(_bundle_dir(tmp_path), tmp_path / "out" / "bundle.zip")

    with zipfile.ZipFile(archive_path) as archive:
        assert sorted(archive.namelist()) == [
            "exportToFBX.bundle/Contents/exportToFBX.ms",
            "exportToFBX.bundle/PackageContents.xml",
        ]


def test_zip_directory_rejects_missing_folder(tmp_path: Path) -> None:
    with pytest.raises(ProvisioningError):
        zip_directory(tmp_path / "missing.bundle", tmp_path / "bundle.zip")


def test_create_app_bundle_uploads_archive_with_form_fields(tmp_path: Path) -> None:
    bundle_dir = _bundle_dir(tmp_path)
    archive_path = tmp_path / "exportToFBX.zip"
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.host == "uploads.example.com":
            return httpx.Response(status_code=200)
        if request.method == "DELETE":
            return httpx.Response(status_code=204)
        if request.url.path.endswith("/appbundles"):
            return httpx.Response(
                status_code=200,
                json={
                    "id": "nick.ExportToFBXApp",
                    "version": 1,
                    "uploadParameters": {
                        "endpointURL": _UPLOAD_URL,
                        "formData": {"key": "apps/nick/ExportToFBXApp/1", "policy": "signed"},
                    },
                },
            )
        return httpx.Response(status_code=200, json={"id": "prod", "version": 1})

    transport = httpx.MockTransport(handler)
    provisioner = AppBundleProvisioner(
        _service(handler),
        retry_policy=RetryPolicy(retries=0),
        transport=transport,
    )
    definition = AppBundleDefinition(
        app_id="ExportToFBXApp",
        app_alias="prod",
        engine_id="Autodesk.3dsMax+2019",
        bundle_dir=bundle_dir,
        archive_path=archive_path,
    )

    result = asyncio.run(provisioner.create_app_bundle(definition))

    assert result.succeeded
    assert archive_path.is_file()
    assert [(r.method, r.url.host, r.url.path) for r in requests] == [
        ("DELETE", "da.example.com", "/da/us-east/v3/appbundles/ExportToFBXApp"),
        ("POST", "da.example.com", "/da/us-east/v3/appbundles"),
        ("POST", "uploads.example.com", "/apps-bucket"),
        ("POST", "da.example.com", "/da/us-east/v3/appbundles/ExportToFBXApp/aliases"),
    ]
    assert json.loads(requests[1].content.decode()) == {
        "id": "ExportToFBXApp",
        "engine": "Autodesk.3dsMax+2019",
    }
    upload = requests[2]
    assert upload.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="key"' in upload.content
    assert b"apps/nick/ExportToFBXApp/1" in upload.content
    assert b'filename="exportToFBX.zip"' in upload.content
    assert json.loads(requests[3].content.decode()) == {"id": "prod", "version": 1}


def test_create_app_bundle_stops_when_bundle_folder_is_missing(tmp_path: Path) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code=200)

    provisioner = AppBundleProvisioner(_service(handler), transport=httpx.MockTransport(handler))
    definition = AppBundleDefinition(
        app_id="ExportToFBXApp",
        app_alias="prod",
        engine_id="Autodesk.3dsMax+2019",
        bundle_dir=tmp_path / "missing.bundle",
        archive_path=tmp_path / "missing.zip",
    )

    result = asyncio.run(provisioner.create_app_bundle(definition))

    assert result.failed_step == "zip_bundle"
    assert isinstance(result.error, ProvisioningError)
    assert result.exit_code == -1
    assert requests == []
