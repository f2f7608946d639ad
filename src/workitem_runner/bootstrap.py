"""Application bootstrap/wiring."""

import logging
from pathlib import Path

import httpx

from workitem_runner.application import (
    ActivityProvisioner,
    AppBundleProvisioner,
    WorkItemRunner,
    WorkItemStatusPoller,
)
from workitem_runner.config import Settings, StorageBackend
from workitem_runner.domain.errors import ConfigurationError
from workitem_runner.domain.ports import Authenticator, StorageProvider
from workitem_runner.domain.transfer_tasks import TransferTask
from workitem_runner.infrastructure.auth import StaticTokenAuthenticator, TwoLeggedAuthenticator
from workitem_runner.infrastructure.design_automation import DesignAutomationClient
from workitem_runner.infrastructure.http import RemoteRequestClient, RetryPolicy
from workitem_runner.infrastructure.storage import OssStorageProvider, S3StorageProvider
from workitem_runner.infrastructure.transfers import HttpTransferWorker, TransferQueue
from workitem_runner.jobs import ExportJob

logger = logging.getLogger(__name__)


def _build_retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(retries=settings.retry_count)


def build_authenticator(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Authenticator:
    """Prefer a pre-issued token, fall back to the client-credentials flow."""

    if settings.access_token:
        return StaticTokenAuthenticator(settings.access_token)
    if settings.client_id and settings.client_secret:
        return TwoLeggedAuthenticator(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            token_url=settings.auth_token_url,
            scopes=settings.auth_scopes,
            timeout_seconds=settings.request_timeout_seconds,
            retry_policy=_build_retry_policy(settings),
            transport=transport,
        )
    raise ConfigurationError(
        "Set WORKITEM_RUNNER_ACCESS_TOKEN or WORKITEM_RUNNER_CLIENT_ID and "
        "WORKITEM_RUNNER_CLIENT_SECRET."
    )


def build_storage_provider(
    settings: Settings,
    authenticator: Authenticator,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StorageProvider:
    if not settings.bucket_name:
        raise ConfigurationError("WORKITEM_RUNNER_BUCKET_NAME is required to run work items.")
    if settings.storage_backend == StorageBackend.S3:
        return S3StorageProvider(
            bucket=settings.bucket_name,
            region=settings.aws_region,
            expires_in_seconds=settings.signed_url_expires_seconds,
        )
    return OssStorageProvider(
        bucket_key=settings.bucket_name,
        authenticator=authenticator,
        request_client=RemoteRequestClient(
            timeout_seconds=settings.request_timeout_seconds,
            transport=transport,
        ),
        base_url=settings.oss_url,
        retry_policy=_build_retry_policy(settings),
    )


def build_service_client(
    settings: Settings,
    authenticator: Authenticator,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DesignAutomationClient:
    return DesignAutomationClient(
        base_url=settings.design_automation_url,
        authenticator=authenticator,
        request_client=RemoteRequestClient(
            timeout_seconds=settings.request_timeout_seconds,
            transport=transport,
        ),
        retry_policy=_build_retry_policy(settings),
        nickname=settings.nickname,
    )


def _build_transfer_queue(
    settings: Settings,
    worker: HttpTransferWorker,
    name: str,
    error_label: str,
) -> TransferQueue[TransferTask]:
    def on_error(task: TransferTask, exc: Exception) -> None:
        logger.error("ERROR %s: %s", error_label, exc)

    return TransferQueue(
        worker,
        concurrency=settings.transfer_concurrency,
        on_error=on_error,
        name=name,
    )


def build_export_runner(
    settings: Settings,
    input_path: Path,
    authenticator: Authenticator | None = None,
    storage: StorageProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WorkItemRunner:
    """Compose the runner graph for the scene export job."""

    authenticator = authenticator or build_authenticator(settings, transport=transport)
    storage = storage or build_storage_provider(settings, authenticator, transport=transport)
    service = build_service_client(settings, authenticator, transport=transport)
    worker = HttpTransferWorker(
        timeout_seconds=settings.transfer_timeout_seconds,
        transport=transport,
    )
    job = ExportJob(
        storage=storage,
        input_path=input_path,
        results_dir=settings.results_dir,
        activity_id=settings.activity_id,
        activity_alias=settings.activity_alias,
    )
    return WorkItemRunner(
        capabilities=job,
        service=service,
        poller=WorkItemStatusPoller(
            read_status=service.get_work_item_status,
            interval_seconds=settings.time_between_polls_seconds,
        ),
        upload_queue=_build_transfer_queue(settings, worker, "uploads", "UPLOADING INPUT"),
        download_queue=_build_transfer_queue(
            settings, worker, "downloads", "DOWNLOADING OUTPUT"
        ),
    )


def build_activity_provisioner(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ActivityProvisioner:
    authenticator = build_authenticator(settings, transport=transport)
    return ActivityProvisioner(build_service_client(settings, authenticator, transport=transport))


def build_app_bundle_provisioner(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AppBundleProvisioner:
    authenticator = build_authenticator(settings, transport=transport)
    return AppBundleProvisioner(
        build_service_client(settings, authenticator, transport=transport),
        timeout_seconds=settings.transfer_timeout_seconds,
        retry_policy=_build_retry_policy(settings),
        transport=transport,
    )


__all__ = [
    "build_activity_provisioner",
    "build_app_bundle_provisioner",
    "build_authenticator",
    "build_export_runner",
    "build_service_client",
    "build_storage_provider",
]
