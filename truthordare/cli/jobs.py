"""Job commands: list registered jobs and trigger one immediately."""

import asyncio
from pathlib import Path
from typing import Any

import typer

from truthordare.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_info,
    display_success,
    handle_errors,
    load_config,
    open_runtime,
)
from truthordare.models.config import AppConfig
from truthordare.models.scheduler import JobInfo

jobs_app = typer.Typer(help="Inspect and trigger scheduled jobs")


def _format_job(job: JobInfo) -> str:
    status = job.last_status.value
    if job.last_error:
        status = f"{status} ({job.last_error})"
    return (
        f"{job.name:<16} {job.schedule:<12} next={job.next_run_at} "
        f"runs={job.run_count} last={status}"
    )


@jobs_app.command(name="list")
@handle_errors
def jobs_list(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to app config YAML"
    ),
):
    """List registered jobs with their next run time."""
    config = load_config(config_path)
    jobs = asyncio.run(_list_jobs(config))

    if not jobs:
        display_info("No jobs registered (all disabled?)")
        return
    for job in jobs:
        typer.echo(_format_job(job))


async def _list_jobs(config: AppConfig):
    async with open_runtime(config) as runtime:
        return runtime.jobs.scheduler.get_jobs()


@jobs_app.command(name="run")
@handle_errors
def jobs_run(
    name: str = typer.Argument(..., help="Job name, e.g. cleanup or auto-generate"),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to app config YAML"
    ),
):
    """Run a job now and wait for it to finish."""
    config = load_config(config_path)
    result = asyncio.run(_run_job(config, name))

    display_success(f"Job '{name}' completed")
    if result is not None and hasattr(result, "model_dump_json"):
        typer.echo(result.model_dump_json(indent=2))


async def _run_job(config: AppConfig, name: str) -> Any:
    async with open_runtime(config) as runtime:
        return await runtime.jobs.scheduler.run_job_now(name)
