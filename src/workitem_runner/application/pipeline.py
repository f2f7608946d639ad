"""Strictly sequential step pipeline that stops at the first failure."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from workitem_runner.domain.errors import ProvisioningError, TransferFailedError

logger = logging.getLogger(__name__)

ContextT = TypeVar("ContextT")

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_ABORTED = -1


@dataclass(slots=True, frozen=True)
class PipelineStep(Generic[ContextT]):
    """One named phase operating on a shared run context."""

    name: str
    run: Callable[[ContextT], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class RunResult:
    """Outcome of a pipeline run."""

    run_id: str
    completed_steps: tuple[str, ...] = ()
    failed_step: str | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        """Process status: -1 for transfer and provisioning failures, 1 otherwise."""

        if self.error is None:
            return EXIT_SUCCESS
        if isinstance(self.error, (TransferFailedError, ProvisioningError)):
            return EXIT_ABORTED
        return EXIT_FAILURE


class Pipeline(Generic[ContextT]):
    """Run steps in order; later steps never start after a failure."""

    def __init__(self, steps: Sequence[PipelineStep[ContextT]]) -> None:
        self._steps = tuple(steps)

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(step.name for step in self._steps)

    async def run(self, run_id: str, context: ContextT) -> RunResult:
        completed: list[str] = []
        for step in self._steps:
            logger.debug("Run %s: starting step '%s'.", run_id, step.name)
            try:
                await step.run(context)
            except Exception as exc:
                return RunResult(
                    run_id=run_id,
                    completed_steps=tuple(completed),
                    failed_step=step.name,
                    error=exc,
                )
            completed.append(step.name)
        return RunResult(run_id=run_id, completed_steps=tuple(completed))


__all__ = [
    "EXIT_ABORTED",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "Pipeline",
    "PipelineStep",
    "RunResult",
]
