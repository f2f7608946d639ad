"""Infrastructure layer public API."""

from workitem_runner.infrastructure.auth import (
    StaticTokenAuthenticator,
    TwoLeggedAuthenticator,
)
from workitem_runner.infrastructure.design_automation import DesignAutomationClient
from workitem_runner.infrastructure.http import (
    RemoteRequestClient,
    RequestOutcome,
    RetryPolicy,
    exponential_backoff,
)
from workitem_runner.infrastructure.storage import OssStorageProvider, S3StorageProvider
from workitem_runner.infrastructure.transfers import HttpTransferWorker, TransferQueue

__all__ = [
    "DesignAutomationClient",
    "HttpTransferWorker",
    "OssStorageProvider",
    "RemoteRequestClient",
    "RequestOutcome",
    "RetryPolicy",
    "S3StorageProvider",
    "StaticTokenAuthenticator",
    "TransferQueue",
    "TwoLeggedAuthenticator",
    "exponential_backoff",
]
