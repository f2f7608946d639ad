"""One-time provisioning of activities and app bundles."""

from __future__ import annotations

import asyncio
import logging
import zipfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from workitem_runner.application.pipeline import Pipeline, PipelineStep, RunResult
from workitem_runner.domain.errors import ProvisioningError
from workitem_runner.domain.payloads import AliasPayload, AppBundlePayload
from workitem_runner.domain.ports import PayloadTemplate
from workitem_runner.infrastructure.design_automation import DesignAutomationClient
from workitem_runner.infrastructure.http import (
    DEFAULT_RETRY_POLICY,
    RequestOutcome,
    RetryPolicy,
    ensure_outcome,
    exponential_backoff,
    expect_status,
)

logger = logging.getLogger(__name__)

_FIRST_VERSION = 1
_EXPECT_UPLOADED = expect_status(200, 201, 204)


@dataclass(slots=True, frozen=True)
class ActivityDefinition:
    """Inputs for creating an activity and its alias."""

    activity_id: str
    activity_alias: str
    app_id: str
    app_alias: str
    engine_id: str
    payload_template: PayloadTemplate


@dataclass(slots=True)
class _ActivityContext:
    nickname: str | None = None


class ActivityProvisioner:
    """Recreate an activity as version 1 and point an alias at it."""

    def __init__(self, service: DesignAutomationClient) -> None:
        self._service = service

    async def create_activity(self, definition: ActivityDefinition) -> RunResult:
        async def get_nickname(context: _ActivityContext) -> None:
            context.nickname = await self._service.get_nickname()

        async def delete_activity(context: _ActivityContext) -> None:
            logger.info("Deleting old activity if it already exists...")
            await self._service.delete_activity(definition.activity_id)

        async def create_version(context: _ActivityContext) -> None:
            logger.info("Creating activity version %s...", _FIRST_VERSION)
            assert context.nickname is not None
            payload = definition.payload_template(
                {
                    "activityId": definition.activity_id,
                    "engineId": definition.engine_id,
                    "nickname": context.nickname,
                    "appId": definition.app_id,
                    "appAlias": definition.app_alias,
                }
            )
            await self._service.create_activity(payload)

        async def create_alias(context: _ActivityContext) -> None:
            logger.info("Creating activity alias '%s'...", definition.activity_alias)
            payload = AliasPayload(id=definition.activity_alias, version=_FIRST_VERSION)
            await self._service.create_activity_alias(definition.activity_id, payload.to_wire())

        pipeline: Pipeline[_ActivityContext] = Pipeline(
            [
                PipelineStep("get_nickname", get_nickname),
                PipelineStep("delete_activity", delete_activity),
                PipelineStep("create_activity", create_version),
                PipelineStep("create_alias", create_alias),
            ]
        )
        result = await pipeline.run(definition.activity_id, _ActivityContext())
        _log_result("activity", result)
        return _as_provisioning_result(result)


@dataclass(slots=True, frozen=True)
class AppBundleDefinition:
    """Inputs for creating an app bundle and its alias."""

    app_id: str
    app_alias: str
    engine_id: str
    bundle_dir: Path
    archive_path: Path
    description: str | None = None


@dataclass(slots=True)
class _AppBundleContext:
    upload_parameters: dict[str, Any] = field(default_factory=dict)


class AppBundleProvisioner:
    """Zip a bundle folder, recreate the app bundle and upload the archive."""

    def __init__(
        self,
        service: DesignAutomationClient,
        timeout_seconds: float = 300.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._service = service
        self._timeout_seconds = timeout_seconds
        self._retry_policy = retry_policy
        self._transport = transport

    async def create_app_bundle(self, definition: AppBundleDefinition) -> RunResult:
        async def zip_bundle(context: _AppBundleContext) -> None:
            logger.info("Zipping app bundle %s...", definition.bundle_dir)
            await asyncio.to_thread(
                zip_directory,
                definition.bundle_dir,
                definition.archive_path,
            )

        async def delete_app_bundle(context: _AppBundleContext) -> None:
            logger.info("Deleting old app bundle if it exists...")
            await self._service.delete_app_bundle(definition.app_id)

        async def create_version(context: _AppBundleContext) -> None:
            logger.info("Creating app bundle version %s...", _FIRST_VERSION)
            payload = AppBundlePayload(
                id=definition.app_id,
                engine=definition.engine_id,
                description=definition.description,
            )
            context.upload_parameters = await self._service.create_app_bundle(payload.to_wire())

        async def upload_archive(context: _AppBundleContext) -> None:
            logger.info("Uploading app bundle package...")
            await self._upload_archive(definition.archive_path, context.upload_parameters)

        async def create_alias(context: _AppBundleContext) -> None:
            logger.info("Creating app bundle alias '%s'...", definition.app_alias)
            payload = AliasPayload(id=definition.app_alias, version=_FIRST_VERSION)
            await self._service.create_app_bundle_alias(definition.app_id, payload.to_wire())

        pipeline: Pipeline[_AppBundleContext] = Pipeline(
            [
                PipelineStep("zip_bundle", zip_bundle),
                PipelineStep("delete_app_bundle", delete_app_bundle),
                PipelineStep("create_app_bundle", create_version),
                PipelineStep("upload_archive", upload_archive),
                PipelineStep("create_alias", create_alias),
            ]
        )
        result = await pipeline.run(definition.app_id, _AppBundleContext())
        _log_result("app bundle", result)
        return _as_provisioning_result(result)

    async def _upload_archive(
        self,
        archive_path: Path,
        upload_parameters: Mapping[str, Any],
    ) -> None:
        endpoint_url = upload_parameters.get("endpointURL")
        if not isinstance(endpoint_url, str) or not endpoint_url:
            raise ProvisioningError("uploadParameters did not include endpointURL.")
        form_data = {
            str(key): str(value)
            for key, value in dict(upload_parameters.get("formData") or {}).items()
        }
        content = await asyncio.to_thread(archive_path.read_bytes)

        async def post_form() -> RequestOutcome:
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout_seconds,
                    transport=self._transport,
                ) as http_client:
                    response = await http_client.post(
                        endpoint_url,
                        data=form_data,
                        files={"file": (archive_path.name, content, "application/zip")},
                    )
            except httpx.HTTPError as exc:
                return RequestOutcome(method="POST", url=endpoint_url, error=exc)
            return RequestOutcome(method="POST", url=endpoint_url, response=response)

        outcome = await exponential_backoff(
            post_form,
            _EXPECT_UPLOADED,
            policy=self._retry_policy,
        )()
        ensure_outcome(outcome, _EXPECT_UPLOADED)


def zip_directory(source_dir: Path, archive_path: Path) -> Path:
    """Write `source_dir` into `archive_path` under a root named after the folder."""

    if not source_dir.is_dir():
        raise ProvisioningError(f"App bundle folder {source_dir} does not exist.")
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(source_dir.rglob("*")):
            if path.is_file():
                arcname = Path(source_dir.name) / path.relative_to(source_dir)
                archive.write(path, arcname.as_posix())
    return archive_path


def _log_result(kind: str, result: RunResult) -> None:
    if result.succeeded:
        logger.info("Finished creating %s '%s'.", kind, result.run_id)
        return
    logger.error(
        "Creating %s '%s' failed in '%s': %s",
        kind,
        result.run_id,
        result.failed_step,
        result.error,
    )


def _as_provisioning_result(result: RunResult) -> RunResult:
    """Provisioning failures always abort with the provisioning exit status."""

    if result.error is None or isinstance(result.error, ProvisioningError):
        return result
    error = ProvisioningError(f"{result.failed_step} failed: {result.error}")
    error.__cause__ = result.error
    return RunResult(
        run_id=result.run_id,
        completed_steps=result.completed_steps,
        failed_step=result.failed_step,
        error=error,
    )


__all__ = [
    "ActivityDefinition",
    "ActivityProvisioner",
    "AppBundleDefinition",
    "AppBundleProvisioner",
    "zip_directory",
]
