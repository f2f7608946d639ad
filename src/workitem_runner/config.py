"""Application settings."""

from enum import StrEnum
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_DEFAULT_AUTH_SCOPES = ["code:all", "bucket:create", "bucket:read", "data:read", "data:write"]


class StorageBackend(StrEnum):
    """Available storage providers for job artifacts."""

    OSS = "oss"
    S3 = "s3"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables and `.env`."""

    client_id: str | None = None
    client_secret: str | None = None
    access_token: str | None = None
    auth_token_url: str = "https://developer.api.autodesk.com/authentication/v2/token"
    auth_scopes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(_DEFAULT_AUTH_SCOPES)
    )
    design_automation_url: str = "https://developer.api.autodesk.com/da/us-east/v3"
    oss_url: str = "https://developer.api.autodesk.com/oss/v2"
    storage_backend: StorageBackend = StorageBackend.OSS
    bucket_name: str | None = None
    nickname: str | None = None
    aws_region: str = "us-east-1"
    signed_url_expires_seconds: int = 3600
    app_id: str = "ExportToFBXApp"
    app_alias: str = "prod"
    activity_id: str = "ExportToFBXActivity"
    activity_alias: str = "prod"
    engine_id: str = "Autodesk.3dsMax+2019"
    time_between_polls_seconds: float = 2.0
    transfer_concurrency: int = 7
    request_timeout_seconds: float = 30.0
    transfer_timeout_seconds: float = 300.0
    retry_count: int = 5
    results_dir: Path = Path("Results")
    log_level: str = "INFO"

    @field_validator("auth_scopes", mode="before")
    @classmethod
    def parse_csv_list(cls, value: object) -> object:
        """Support space or comma separated env var values in addition to JSON arrays."""

        if not isinstance(value, str):
            return value
        return [item.strip() for item in value.replace(",", " ").split() if item.strip()]

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unsupported log level '{value}'.")
        return normalized

    @model_validator(mode="after")
    def validate_runtime_settings(self) -> "Settings":
        """Ensure numeric limits are usable."""

        if self.time_between_polls_seconds < 0:
            raise ValueError("WORKITEM_RUNNER_TIME_BETWEEN_POLLS_SECONDS must be >= 0.")
        if self.transfer_concurrency < 1:
            raise ValueError("WORKITEM_RUNNER_TRANSFER_CONCURRENCY must be >= 1.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("WORKITEM_RUNNER_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.transfer_timeout_seconds <= 0:
            raise ValueError("WORKITEM_RUNNER_TRANSFER_TIMEOUT_SECONDS must be > 0.")
        if self.retry_count < 0:
            raise ValueError("WORKITEM_RUNNER_RETRY_COUNT must be >= 0.")
        if self.signed_url_expires_seconds < 1:
            raise ValueError("WORKITEM_RUNNER_SIGNED_URL_EXPIRES_SECONDS must be >= 1.")
        if (self.client_id is None) != (self.client_secret is None):
            raise ValueError(
                "WORKITEM_RUNNER_CLIENT_ID and WORKITEM_RUNNER_CLIENT_SECRET must be set together."
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="WORKITEM_RUNNER_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return singleton settings."""

    return Settings()


__all__ = ["Settings", "StorageBackend", "get_settings"]
