"""Bounded-concurrency FIFO queue with a one-shot settled signal."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from enum import StrEnum
from typing import Generic, TypeVar

from workitem_runner.domain.errors import TransferFailedError

logger = logging.getLogger(__name__)

_DEFAULT_CONCURRENCY = 7

T = TypeVar("T")

TaskWorker = Callable[[T], Awaitable[None]]
TaskErrorHandler = Callable[[T, Exception], None]


class QueueState(StrEnum):
    """Lifecycle of one queue."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    DRAINED = "DRAINED"


class TransferQueue(Generic[T]):
    """Run queued tasks through `worker` with at most `concurrency` in flight.

    Tasks start in enqueue order. A failing task is reported to `on_error` and
    recorded; the remaining tasks still run so the queue always drains. Each
    batch enqueued on an idle or drained queue starts with no failures, and an
    empty batch drains it immediately.
    `wait_settled` returns once nothing is pending or running, including for a
    queue that never received work, and raises `TransferFailedError` when any
    task failed.
    """

    def __init__(
        self,
        worker: TaskWorker[T],
        concurrency: int = _DEFAULT_CONCURRENCY,
        on_error: TaskErrorHandler[T] | None = None,
        name: str = "transfers",
    ) -> None:
        self._worker = worker
        self._concurrency = max(1, concurrency)
        self._on_error = on_error
        self._name = name
        self._pending: deque[T] = deque()
        self._active = 0
        self._running_tasks: set[asyncio.Task[None]] = set()
        self._state = QueueState.IDLE
        self._settled = asyncio.Event()
        self._settled.set()
        self._failures: list[tuple[T, Exception]] = []
        self._drain_count = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of tasks not yet started."""

        return len(self._pending)

    @property
    def running(self) -> int:
        """Number of tasks currently executing."""

        return self._active

    @property
    def drain_count(self) -> int:
        """How many times the queue transitioned to drained."""

        return self._drain_count

    @property
    def failures(self) -> list[tuple[T, Exception]]:
        return list(self._failures)

    def enqueue(self, tasks: Iterable[T]) -> None:
        """Append tasks and start workers up to the concurrency limit.

        Must be called from a running event loop.
        """

        items = list(tasks)
        idle = self._state is not QueueState.RUNNING
        if idle:
            self._failures.clear()
        if not items:
            if idle:
                self._mark_drained()
            return
        self._pending.extend(items)
        self._state = QueueState.RUNNING
        self._settled.clear()
        self._fill_slots()

    async def wait_settled(self) -> None:
        """Wait until the queue is drained and surface the first failure."""

        if not self._settled.is_set():
            logger.info("Waiting for %s to finish ...", self._name)
        await self._settled.wait()
        if self._failures:
            task, exc = self._failures[0]
            if isinstance(exc, TransferFailedError):
                raise exc
            raise TransferFailedError(f"{self._name} task {task!r} failed: {exc}") from exc

    def _fill_slots(self) -> None:
        while self._pending and self._active < self._concurrency:
            task = self._pending.popleft()
            self._active += 1
            running_task = asyncio.create_task(self._execute(task))
            self._running_tasks.add(running_task)
            running_task.add_done_callback(self._running_tasks.discard)

    async def _execute(self, task: T) -> None:
        try:
            await self._worker(task)
        except Exception as exc:
            self._record_failure(task, exc)
        finally:
            self._active -= 1
            self._fill_slots()
            if not self._pending and self._active == 0:
                self._mark_drained()

    def _record_failure(self, task: T, exc: Exception) -> None:
        self._failures.append((task, exc))
        if self._on_error is not None:
            try:
                self._on_error(task, exc)
            except Exception:
                logger.exception("Error handler of %s failed for task %r.", self._name, task)
            return
        logger.error("Error in %s task %r: %s", self._name, task, exc)

    def _mark_drained(self) -> None:
        self._state = QueueState.DRAINED
        self._drain_count += 1
        self._settled.set()


__all__ = ["QueueState", "TaskErrorHandler", "TaskWorker", "TransferQueue"]
