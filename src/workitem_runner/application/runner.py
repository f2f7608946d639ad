"""Work item lifecycle orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from workitem_runner.application.pipeline import Pipeline, PipelineStep, RunResult
from workitem_runner.application.status_poller import WorkItemStatusPoller
from workitem_runner.domain.errors import StorageConflictError
from workitem_runner.domain.ports import JobCapabilities
from workitem_runner.domain.transfer_tasks import TransferTask
from workitem_runner.domain.work_items import WorkItemStatusResponse
from workitem_runner.infrastructure.design_automation import DesignAutomationClient
from workitem_runner.infrastructure.transfers import TransferQueue

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class JobContext:
    """State accumulated by the phases of one job run."""

    job_id: str
    nickname: str | None = None
    payload: dict[str, Any] | None = None
    work_item_id: str | None = None
    final_status: WorkItemStatusResponse | None = None


class WorkItemRunner:
    """Drive one job: stage inputs, submit, poll, fetch outputs.

    Phases run strictly in order and the first failure ends the run with the
    originating error preserved in the returned `RunResult`. Nothing already
    uploaded is cleaned up.
    """

    def __init__(
        self,
        capabilities: JobCapabilities,
        service: DesignAutomationClient,
        poller: WorkItemStatusPoller,
        upload_queue: TransferQueue[TransferTask],
        download_queue: TransferQueue[TransferTask],
    ) -> None:
        self._capabilities = capabilities
        self._service = service
        self._poller = poller
        self._upload_queue = upload_queue
        self._download_queue = download_queue
        self._pipeline: Pipeline[JobContext] = Pipeline(
            [
                PipelineStep("initialize_storage", self._initialize_storage),
                PipelineStep("queue_uploads", self._queue_uploads),
                PipelineStep("wait_for_uploads", self._wait_for_uploads),
                PipelineStep("resolve_nickname", self._resolve_nickname),
                PipelineStep("build_payload", self._build_payload),
                PipelineStep("submit_work_item", self._submit_work_item),
                PipelineStep("wait_for_work_item", self._wait_for_work_item),
                PipelineStep("queue_downloads", self._queue_downloads),
                PipelineStep("wait_for_downloads", self._wait_for_downloads),
            ]
        )

    @property
    def step_names(self) -> tuple[str, ...]:
        return self._pipeline.step_names

    async def run(self, job_id: str | None = None) -> RunResult:
        """Run the whole lifecycle and log the outcome."""

        resolved_job_id = job_id or str(uuid4())
        logger.info("JOB ID: %s", resolved_job_id)
        result = await self._pipeline.run(resolved_job_id, JobContext(job_id=resolved_job_id))
        if result.succeeded:
            logger.info("Job %s finished.", resolved_job_id)
        else:
            logger.error(
                "Job %s stopped because of error in '%s': %s",
                resolved_job_id,
                result.failed_step,
                result.error,
            )
        return result

    async def _initialize_storage(self, context: JobContext) -> None:
        try:
            await self._capabilities.initialize_storage(context.job_id)
        except StorageConflictError as exc:
            logger.info("Storage already initialized: %s", exc)

    async def _queue_uploads(self, context: JobContext) -> None:
        await self._capabilities.queue_uploads(context.job_id, self._upload_queue)

    async def _wait_for_uploads(self, context: JobContext) -> None:
        await self._upload_queue.wait_settled()

    async def _resolve_nickname(self, context: JobContext) -> None:
        logger.info("Starting workitem ...")
        context.nickname = await self._service.get_nickname()

    async def _build_payload(self, context: JobContext) -> None:
        assert context.nickname is not None
        context.payload = await self._capabilities.build_work_item_payload(
            context.job_id,
            context.nickname,
        )

    async def _submit_work_item(self, context: JobContext) -> None:
        assert context.payload is not None
        context.work_item_id = await self._service.create_work_item(context.payload)
        logger.info("Posted workitem id: %s", context.work_item_id)

    async def _wait_for_work_item(self, context: JobContext) -> None:
        assert context.work_item_id is not None
        context.final_status = await self._poller.wait_for_completion(context.work_item_id)

    async def _queue_downloads(self, context: JobContext) -> None:
        await self._capabilities.queue_downloads(context.job_id, self._download_queue)

    async def _wait_for_downloads(self, context: JobContext) -> None:
        await self._download_queue.wait_settled()


__all__ = ["JobContext", "WorkItemRunner"]
