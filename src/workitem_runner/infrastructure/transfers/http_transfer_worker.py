"""Upload and download signed URLs over HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from workitem_runner.domain.errors import TransferFailedError
from workitem_runner.domain.transfer_tasks import DownloadTask, TransferTask, UploadTask

logger = logging.getLogger(__name__)

_DEFAULT_CHUNK_SIZE = 64 * 1024
_PARTIAL_SUFFIX = ".part"


class HttpTransferWorker:
    """Execute one transfer task against a pre-authorized URL.

    - Uploads read the whole source file and PUT it.
    - Downloads create missing parent directories and stream the body to a
      `.part` file renamed over the destination once complete.
    """

    def __init__(
        self,
        timeout_seconds: float = 300.0,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._chunk_size = max(1, chunk_size)
        self._transport = transport

    async def __call__(self, task: TransferTask) -> None:
        if isinstance(task, UploadTask):
            await self.upload(task)
            return
        await self.download(task)

    async def upload(self, task: UploadTask) -> None:
        content = await asyncio.to_thread(task.source_path.read_bytes)
        try:
            async with self._client() as http_client:
                response = await http_client.put(task.url, content=content)
        except httpx.HTTPError as exc:
            raise TransferFailedError(f"Upload of {task.source_path} failed: {exc}") from exc
        if not response.is_success:
            raise TransferFailedError(
                f"Upload of {task.source_path} failed: {response.status_code}"
            )
        logger.info("Uploaded %s (%s bytes).", task.source_path, len(content))

    async def download(self, task: DownloadTask) -> None:
        destination = task.destination_path
        await asyncio.to_thread(destination.parent.mkdir, parents=True, exist_ok=True)
        partial = destination.with_name(f"{destination.name}{_PARTIAL_SUFFIX}")
        try:
            written = await self._stream_to(task.url, partial, destination)
            await asyncio.to_thread(partial.replace, destination)
        except BaseException:
            await asyncio.to_thread(partial.unlink, missing_ok=True)
            raise
        logger.info("Downloaded %s (%s bytes).", destination, written)

    async def _stream_to(self, url: str, partial: Path, destination: Path) -> int:
        """Write the body of `url` to `partial`; `destination` names the target in errors."""

        written = 0
        try:
            async with self._client() as http_client:
                async with http_client.stream("GET", url) as response:
                    if not response.is_success:
                        raise TransferFailedError(
                            f"Download to {destination} failed: {response.status_code}"
                        )
                    output = await asyncio.to_thread(partial.open, "wb")
                    try:
                        async for chunk in response.aiter_bytes(self._chunk_size):
                            await asyncio.to_thread(output.write, chunk)
                            written += len(chunk)
                    finally:
                        await asyncio.to_thread(output.close)
        except httpx.HTTPError as exc:
            raise TransferFailedError(f"Download to {destination} failed: {exc}") from exc
        return written

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        )


__all__ = ["HttpTransferWorker"]
