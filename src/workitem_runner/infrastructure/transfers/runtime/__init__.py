"""Shared runtime utilities for transfer execution."""

from workitem_runner.infrastructure.transfers.runtime.transfer_queue import (
    QueueState,
    TaskErrorHandler,
    TaskWorker,
    TransferQueue,
)

__all__ = ["QueueState", "TaskErrorHandler", "TaskWorker", "TransferQueue"]
