"""Scene export job: one input scene in, one exported file out."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from workitem_runner.domain.errors import ConfigurationError
from workitem_runner.domain.payloads import (
    ActivityParameter,
    ActivityPayload,
    qualified_id,
    render_work_item_payload,
)
from workitem_runner.domain.ports import (
    JobCapabilities,
    PayloadTemplate,
    SignedUrlAccess,
    StorageProvider,
    TransferSink,
)
from workitem_runner.domain.transfer_tasks import DownloadTask, UploadTask

logger = logging.getLogger(__name__)

INPUT_OBJECT_PREFIX = "input-"
OUTPUT_OBJECT_PREFIX = "output-"
DEFAULT_BUNDLE_NAME = "exportToFBX.bundle"


def render_export_activity_payload(options: Mapping[str, Any]) -> dict[str, Any]:
    """Activity template running the export script shipped in the app bundle.

    Expects ``activityId``, ``engineId``, ``nickname``, ``appId`` and
    ``appAlias`` options; ``bundleName`` is optional.
    """

    app_id = options["appId"]
    bundle_name = options.get("bundleName", DEFAULT_BUNDLE_NAME)
    command_line = (
        '$(engine.path)\\3dsmaxbatch.exe -sceneFile "$(args[inputFile].path)" '
        f'"$(appbundles[{app_id}].path)\\{bundle_name}\\Contents\\exportToFBX.ms"'
    )
    payload = ActivityPayload(
        id=options["activityId"],
        command_line=[command_line],
        parameters={
            "inputFile": ActivityParameter(
                verb="get",
                local_name="input.max",
                description="Scene to export",
                required=True,
            ),
            "outputFile": ActivityParameter(
                verb="put",
                local_name="output.fbx",
                description="Exported FBX file",
                required=True,
            ),
        },
        engine=options["engineId"],
        appbundles=[qualified_id(options["nickname"], app_id, options["appAlias"])],
        description="Export a scene to FBX",
    )
    return payload.to_wire()


class ExportJob(JobCapabilities):
    """Upload one scene, export it remotely, download the result."""

    def __init__(
        self,
        storage: StorageProvider,
        input_path: Path,
        results_dir: Path,
        activity_id: str,
        activity_alias: str,
        payload_template: PayloadTemplate = render_work_item_payload,
        output_suffix: str = ".fbx",
    ) -> None:
        self._storage = storage
        self._input_path = input_path
        self._results_dir = results_dir
        self._activity_id = activity_id
        self._activity_alias = activity_alias
        self._payload_template = payload_template
        self._output_suffix = output_suffix

    def output_path(self, job_id: str) -> Path:
        return self._results_dir / f"{job_id}{self._output_suffix}"

    async def initialize_storage(self, job_id: str) -> None:
        logger.info("Initializing storage...")
        await self._storage.ensure_container()

    async def queue_uploads(self, job_id: str, uploads: TransferSink) -> None:
        if not self._input_path.is_file():
            raise ConfigurationError(f"Input file {self._input_path} does not exist.")
        url = await self._storage.get_signed_url(
            INPUT_OBJECT_PREFIX + job_id,
            SignedUrlAccess.WRITE,
        )
        uploads.enqueue([UploadTask(url=url, source_path=self._input_path)])

    async def build_work_item_payload(self, job_id: str, nickname: str) -> dict[str, Any]:
        input_url = await self._storage.get_signed_url(
            INPUT_OBJECT_PREFIX + job_id,
            SignedUrlAccess.READ,
        )
        output_url = await self._storage.get_signed_url(
            OUTPUT_OBJECT_PREFIX + job_id,
            SignedUrlAccess.WRITE,
        )
        return self._payload_template(
            {
                "activityId": qualified_id(nickname, self._activity_id, self._activity_alias),
                "inputUrl": input_url,
                "outputUrl": output_url,
            }
        )

    async def queue_downloads(self, job_id: str, downloads: TransferSink) -> None:
        url = await self._storage.get_signed_url(
            OUTPUT_OBJECT_PREFIX + job_id,
            SignedUrlAccess.READ,
        )
        downloads.enqueue([DownloadTask(url=url, destination_path=self.output_path(job_id))])


__all__ = [
    "DEFAULT_BUNDLE_NAME",
    "ExportJob",
    "INPUT_OBJECT_PREFIX",
    "OUTPUT_OBJECT_PREFIX",
    "render_export_activity_payload",
]
