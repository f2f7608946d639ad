"""Polling state machine driving a submitted work item to a terminal status."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from workitem_runner.domain.errors import WorkItemFailedError
from workitem_runner.domain.work_items import (
    WorkItemStatus,
    WorkItemStatusResponse,
    is_terminal_status,
)
from workitem_runner.infrastructure.http.backoff import Sleep

logger = logging.getLogger(__name__)

StatusReader = Callable[[str], Awaitable[WorkItemStatusResponse]]


class WorkItemStatusPoller:
    """Wait `interval_seconds`, read status, repeat while pending/inprogress.

    Status read failures propagate unchanged and stop polling; they are not
    reported as work item failures.
    """

    def __init__(
        self,
        read_status: StatusReader,
        interval_seconds: float,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._read_status = read_status
        self._interval_seconds = max(0.0, interval_seconds)
        self._sleep = sleep
        self._clock = clock

    async def wait_for_completion(self, work_item_id: str) -> WorkItemStatusResponse:
        """Return the final status, raising `WorkItemFailedError` unless it is success."""

        started = self._clock()
        while True:
            await self._sleep(self._interval_seconds)
            status = await self._read_status(work_item_id)
            elapsed_ms = int((self._clock() - started) * 1000)
            logger.info("Checking status: %s %s ms", status.status, elapsed_ms)
            if status.report_url:
                logger.info("Log file available here: %s", status.report_url)

            if not is_terminal_status(status.status):
                continue
            if status.status != WorkItemStatus.SUCCESS:
                raise WorkItemFailedError(status.status, report_url=status.report_url)
            return status


__all__ = ["StatusReader", "WorkItemStatusPoller"]
