"""Storage provider adapters."""

from workitem_runner.infrastructure.storage.oss_storage_provider import OssStorageProvider
from workitem_runner.infrastructure.storage.s3_storage_provider import S3StorageProvider

__all__ = ["OssStorageProvider", "S3StorageProvider"]
