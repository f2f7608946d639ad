"""Application services."""

from workitem_runner.application.pipeline import (
    EXIT_ABORTED,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    Pipeline,
    PipelineStep,
    RunResult,
)
from workitem_runner.application.provisioning import (
    ActivityDefinition,
    ActivityProvisioner,
    AppBundleDefinition,
    AppBundleProvisioner,
)
from workitem_runner.application.runner import JobContext, WorkItemRunner
from workitem_runner.application.status_poller import WorkItemStatusPoller

__all__ = [
    "ActivityDefinition",
    "ActivityProvisioner",
    "AppBundleDefinition",
    "AppBundleProvisioner",
    "EXIT_ABORTED",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "JobContext",
    "Pipeline",
    "PipelineStep",
    "RunResult",
    "WorkItemRunner",
    "WorkItemStatusPoller",
]
