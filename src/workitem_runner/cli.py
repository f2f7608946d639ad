"""Command line entry points."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from workitem_runner.application import (
    EXIT_FAILURE,
    ActivityDefinition,
    AppBundleDefinition,
)
from workitem_runner.bootstrap import (
    build_activity_provisioner,
    build_app_bundle_provisioner,
    build_export_runner,
)
from workitem_runner.config import Settings, get_settings
from workitem_runner.domain.errors import ConfigurationError
from workitem_runner.jobs import render_export_activity_payload

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format=_LOG_FORMAT)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Run remote work items and provision their activities."""

    settings = get_settings()
    _configure_logging(settings)
    ctx.obj = settings


@cli.command("run")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--job-id", default=None, help="Reuse a job id instead of generating one.")
@click.pass_obj
def run_workitem(settings: Settings, input_path: Path, job_id: str | None) -> None:
    """Upload INPUT_PATH, run the export work item and download the result."""

    try:
        runner = build_export_runner(settings, input_path)
    except ConfigurationError as exc:
        logger.error("Error while initializing the runner: %s", exc)
        sys.exit(EXIT_FAILURE)
    result = asyncio.run(runner.run(job_id))
    sys.exit(result.exit_code)


@cli.command("create-activity")
@click.pass_obj
def create_activity(settings: Settings) -> None:
    """Recreate the configured activity and its alias."""

    try:
        provisioner = build_activity_provisioner(settings)
    except ConfigurationError as exc:
        logger.error("Error while initializing the provisioner: %s", exc)
        sys.exit(EXIT_FAILURE)
    definition = ActivityDefinition(
        activity_id=settings.activity_id,
        activity_alias=settings.activity_alias,
        app_id=settings.app_id,
        app_alias=settings.app_alias,
        engine_id=settings.engine_id,
        payload_template=render_export_activity_payload,
    )
    result = asyncio.run(provisioner.create_activity(definition))
    sys.exit(result.exit_code)


@cli.command("create-app-bundle")
@click.argument("bundle_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--archive-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the zipped bundle (defaults next to BUNDLE_DIR).",
)
@click.pass_obj
def create_app_bundle(settings: Settings, bundle_dir: Path, archive_path: Path | None) -> None:
    """Zip BUNDLE_DIR, recreate the configured app bundle and upload it."""

    try:
        provisioner = build_app_bundle_provisioner(settings)
    except ConfigurationError as exc:
        logger.error("Error while initializing the provisioner: %s", exc)
        sys.exit(EXIT_FAILURE)
    definition = AppBundleDefinition(
        app_id=settings.app_id,
        app_alias=settings.app_alias,
        engine_id=settings.engine_id,
        bundle_dir=bundle_dir,
        archive_path=archive_path or bundle_dir.with_name(f"{bundle_dir.name}.zip"),
    )
    result = asyncio.run(provisioner.create_app_bundle(definition))
    sys.exit(result.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
