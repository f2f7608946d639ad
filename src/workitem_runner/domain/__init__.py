"""Domain public API."""

from workitem_runner.domain.errors import (
    ConfigurationError,
    ProvisioningError,
    StorageConflictError,
    StorageInvalidError,
    TransferFailedError,
    TransportError,
    WorkItemFailedError,
    WorkItemRunnerError,
)
from workitem_runner.domain.payloads import (
    ActivityParameter,
    ActivityPayload,
    AliasPayload,
    AppBundlePayload,
    WorkItemArgument,
    WorkItemPayload,
    qualified_id,
    render_work_item_payload,
)
from workitem_runner.domain.ports import (
    Authenticator,
    JobCapabilities,
    PayloadTemplate,
    SignedUrlAccess,
    StorageProvider,
    TransferSink,
)
from workitem_runner.domain.transfer_tasks import DownloadTask, TransferTask, UploadTask
from workitem_runner.domain.work_items import (
    NON_TERMINAL_STATUSES,
    WorkItemCreatedResponse,
    WorkItemStatus,
    WorkItemStatusResponse,
    is_terminal_status,
)

__all__ = [
    "ActivityParameter",
    "ActivityPayload",
    "AliasPayload",
    "AppBundlePayload",
    "Authenticator",
    "ConfigurationError",
    "DownloadTask",
    "JobCapabilities",
    "NON_TERMINAL_STATUSES",
    "PayloadTemplate",
    "ProvisioningError",
    "SignedUrlAccess",
    "StorageConflictError",
    "StorageInvalidError",
    "StorageProvider",
    "TransferFailedError",
    "TransferSink",
    "TransferTask",
    "TransportError",
    "UploadTask",
    "WorkItemArgument",
    "WorkItemCreatedResponse",
    "WorkItemFailedError",
    "WorkItemPayload",
    "WorkItemRunnerError",
    "WorkItemStatus",
    "WorkItemStatusResponse",
    "is_terminal_status",
    "qualified_id",
    "render_work_item_payload",
]
