"""Domain exceptions for work item execution."""

from __future__ import annotations


class WorkItemRunnerError(Exception):
    """Base class for runner errors."""


class ConfigurationError(WorkItemRunnerError):
    """Raised when settings required by an operation are missing."""


class TransportError(WorkItemRunnerError):
    """Raised when a remote call fails after retries are exhausted."""


class WorkItemFailedError(WorkItemRunnerError):
    """Raised when a work item reaches a terminal non-success status."""

    def __init__(self, status: str, report_url: str | None = None) -> None:
        super().__init__(f"Workitem finished with status: {status}")
        self.status = status
        self.report_url = report_url


class StorageConflictError(WorkItemRunnerError):
    """Raised when a storage container already exists."""


class StorageInvalidError(WorkItemRunnerError):
    """Raised when a storage container name is illegal or unavailable."""


class TransferFailedError(WorkItemRunnerError):
    """Raised when an upload or download task fails."""


class ProvisioningError(WorkItemRunnerError):
    """Raised when activity or app bundle provisioning fails."""


__all__ = [
    "ConfigurationError",
    "ProvisioningError",
    "StorageConflictError",
    "StorageInvalidError",
    "TransferFailedError",
    "TransportError",
    "WorkItemFailedError",
    "WorkItemRunnerError",
]
