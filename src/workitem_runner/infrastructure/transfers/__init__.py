"""Transfer adapter implementations."""

from workitem_runner.infrastructure.transfers.http_transfer_worker import HttpTransferWorker
from workitem_runner.infrastructure.transfers.runtime import QueueState, TransferQueue

__all__ = ["HttpTransferWorker", "QueueState", "TransferQueue"]
