"""Work item status models returned by the remote execution service."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class WorkItemStatus(StrEnum):
    """Status values the runner recognizes.

    The remote vocabulary is open-ended; anything outside the non-terminal set
    that is not ``success`` counts as a failure.
    """

    PENDING = "pending"
    IN_PROGRESS = "inprogress"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


NON_TERMINAL_STATUSES = frozenset({WorkItemStatus.PENDING, WorkItemStatus.IN_PROGRESS})


def is_terminal_status(status: str) -> bool:
    """Return whether a raw status string ends polling."""

    return status not in NON_TERMINAL_STATUSES


class RemoteModel(BaseModel):
    """Base model for remote service responses."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WorkItemStatusResponse(RemoteModel):
    """Body of a work item status read."""

    id: str | None = None
    status: str
    report_url: str | None = Field(default=None, alias="reportUrl")


class WorkItemCreatedResponse(RemoteModel):
    """Body of a work item submission."""

    id: str
    status: str | None = None


__all__ = [
    "NON_TERMINAL_STATUSES",
    "RemoteModel",
    "WorkItemCreatedResponse",
    "WorkItemStatus",
    "WorkItemStatusResponse",
    "is_terminal_status",
]
