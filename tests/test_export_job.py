from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from workitem_runner.domain.errors import ConfigurationError
from workitem_runner.domain.ports import JobCapabilities, SignedUrlAccess
from workitem_runner.domain.transfer_tasks import DownloadTask, UploadTask
from workitem_runner.jobs import ExportJob


class FakeStorage:
    async def ensure_container(self) -> dict[str, str]:
        return {}

    async def get_signed_url(self, object_name: str, access: SignedUrlAccess) -> str:
        return f"https://storage.example.com/{object_name}?access={access.value}"


class RecordingSink:
    def __init__(self) -> None:
        self.batches: list[list[object]] = []

    def enqueue(self, tasks: list[object]) -> None:
        self.batches.append(list(tasks))


def _job(tmp_path: Path, input_name: str = "scene.max") -> ExportJob:
    return ExportJob(
        storage=FakeStorage(),
        input_path=tmp_path / input_name,
        results_dir=tmp_path / "Results",
        activity_id="ExportToFBXActivity",
        activity_alias="prod",
    )


def test_export_job_satisfies_job_capabilities(tmp_path: Path) -> None:
    assert isinstance(_job(tmp_path), JobCapabilities)


def test_queue_uploads_enqueues_single_upload_with_write_url(tmp_path: Path) -> None:
    (tmp_path / "scene.max").write_bytes(b"max-scene")
    sink = RecordingSink()

    asyncio.run(_job(tmp_path).queue_uploads("job-1", sink))

    assert sink.batches == [
        [
            UploadTask(
                url="https://storage.example.com/input-job-1?access=write",
                source_path=tmp_path / "scene.max",
            )
        ]
    ]


def test_queue_uploads_rejects_missing_input_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        asyncio.run(_job(tmp_path, "missing.max").queue_uploads("job-1", RecordingSink()))


def test_queue_downloads_targets_results_directory(tmp_path: Path) -> None:
    sink = RecordingSink()

    asyncio.run(_job(tmp_path).queue_downloads("job-1", sink))

    assert sink.batches == [
        [
            DownloadTask(
                url="https://storage.example.com/output-job-1?access=read",
                destination_path=tmp_path / "Results" / "job-1.fbx",
            )
        ]
    ]


def test_build_work_item_payload_references_qualified_activity(tmp_path: Path) -> None:
    payload = asyncio.run(_job(tmp_path).build_work_item_payload("job-1", "nick"))

    assert payload["activityId"] == "nick.ExportToFBXActivity+prod"
    assert payload["arguments"]["inputFile"] == {
        "url": "https://storage.example.com/input-job-1?access=read"
    }
    assert payload["arguments"]["outputFile"]["verb"] == "put"
