"""HTTP request and retry primitives."""

from workitem_runner.infrastructure.http.backoff import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    exponential_backoff,
)
from workitem_runner.infrastructure.http.request_client import (
    EXPECT_DELETED,
    EXPECT_OK,
    OutcomeClassifier,
    RemoteRequestClient,
    RequestOutcome,
    ensure_outcome,
    expect_status,
    retry_transient,
)

__all__ = [
    "DEFAULT_RETRY_POLICY",
    "EXPECT_DELETED",
    "EXPECT_OK",
    "OutcomeClassifier",
    "RemoteRequestClient",
    "RequestOutcome",
    "RetryPolicy",
    "ensure_outcome",
    "exponential_backoff",
    "expect_status",
    "retry_transient",
]
