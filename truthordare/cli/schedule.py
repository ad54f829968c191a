"""Schedule commands.

Runs the scheduler daemon together with the health server.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from truthordare.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_error,
    display_success,
    display_warning,
    load_config,
    logger,
    open_runtime,
)
from truthordare.models.config import AppConfig

schedule_app = typer.Typer(help="Run the job scheduler")


@schedule_app.command(name="start")
def schedule_start(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to app config YAML"
    ),
    health_port: int = typer.Option(
        8000, "--health-port", "-p", help="Port for health server"
    ),
    health: bool = typer.Option(
        True, "--health/--no-health", help="Serve health and metrics endpoints"
    ),
):
    """Start the scheduler daemon.

    Press Ctrl+C to stop; running jobs are given the configured shutdown
    timeout to finish.

    Examples:
        python -m truthordare.cli schedule start
        python -m truthordare.cli schedule start --health-port 9000
    """
    config = load_config(config_path)
    try:
        asyncio.run(_run_scheduler(config, health_port if health else None))
    except KeyboardInterrupt:
        display_warning("\nScheduler stopped.")
    except Exception as e:
        logger.exception("scheduler_failed")
        display_error(f"Scheduler failed: {e}")
        raise typer.Exit(code=1)


async def _run_scheduler(config: AppConfig, health_port: Optional[int]) -> None:
    from truthordare.health import HealthChecker, create_health_app, create_health_server

    typer.secho("Starting Truth or Dare job scheduler", fg=typer.colors.CYAN, bold=True)
    if health_port is not None:
        typer.echo(f"  Health endpoint: http://localhost:{health_port}/health")
        typer.echo(f"  Metrics endpoint: http://localhost:{health_port}/metrics")
    typer.echo("\nPress Ctrl+C to stop.\n")

    async with open_runtime(config) as runtime:
        scheduler = runtime.jobs.scheduler

        jobs = scheduler.get_jobs()
        display_success(f"Scheduled {len(jobs)} jobs:")
        for job in jobs:
            typer.echo(f"  - {job.name} ({job.schedule}): next run at {job.next_run_at}")

        if health_port is None:
            await scheduler.serve()
            return

        app = create_health_app(
            HealthChecker(runtime.database, runtime.provider, scheduler)
        )
        server = create_health_server(app, port=health_port, log_level="warning")
        server_task = asyncio.create_task(server.serve())
        try:
            await scheduler.serve()
        finally:
            server.should_exit = True
            await server_task
