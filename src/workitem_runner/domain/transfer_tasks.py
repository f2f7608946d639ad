"""Transfer task models consumed by transfer queues."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class UploadTask:
    """Upload one local file to a pre-authorized URL."""

    url: str
    source_path: Path


@dataclass(slots=True, frozen=True)
class DownloadTask:
    """Download one pre-authorized URL into a local file."""

    url: str
    destination_path: Path


TransferTask = UploadTask | DownloadTask


__all__ = ["DownloadTask", "TransferTask", "UploadTask"]
