"""Ports for authentication, storage, payload templates and job types."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from workitem_runner.domain.transfer_tasks import TransferTask


class SignedUrlAccess(StrEnum):
    """Access modes for pre-authorized storage URLs."""

    READ = "read"
    WRITE = "write"
    READWRITE = "readwrite"


PayloadTemplate = Callable[[Mapping[str, Any]], dict[str, Any]]


class Authenticator(Protocol):
    """Bearer token source."""

    async def get_token(self) -> str:
        """Return a bearer token valid for the process lifetime."""


class StorageProvider(Protocol):
    """Storage container management and signed URL issuance."""

    async def ensure_container(self) -> dict[str, Any]:
        """Create the container when missing and return its details.

        Raises `StorageConflictError` when creation races an existing
        container and `StorageInvalidError` when the name cannot be used.
        """

    async def get_signed_url(self, object_name: str, access: SignedUrlAccess) -> str:
        """Return a time-limited URL for one object."""


class TransferSink(Protocol):
    """Destination for transfer tasks produced by job types."""

    def enqueue(self, tasks: Iterable[TransferTask]) -> None:
        """Add tasks for background execution."""


@runtime_checkable
class JobCapabilities(Protocol):
    """Per job type customization points driven by the runner."""

    async def initialize_storage(self, job_id: str) -> None:
        """Make sure storage used by the job exists."""

    async def queue_uploads(self, job_id: str, uploads: TransferSink) -> None:
        """Enqueue input uploads for the job."""

    async def build_work_item_payload(self, job_id: str, nickname: str) -> dict[str, Any]:
        """Return the work item submission body."""

    async def queue_downloads(self, job_id: str, downloads: TransferSink) -> None:
        """Enqueue output downloads for the job."""


__all__ = [
    "Authenticator",
    "JobCapabilities",
    "PayloadTemplate",
    "SignedUrlAccess",
    "StorageProvider",
    "TransferSink",
]
