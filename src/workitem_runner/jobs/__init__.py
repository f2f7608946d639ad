"""Concrete job types."""

from workitem_runner.jobs.export_job import ExportJob, render_export_activity_payload

__all__ = ["ExportJob", "render_export_activity_payload"]
