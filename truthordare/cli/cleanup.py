"""Cleanup commands."""

import asyncio
from pathlib import Path

import typer

from truthordare.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_info,
    handle_errors,
    load_config,
    open_runtime,
)
from truthordare.models.config import AppConfig
from truthordare.models.content import CleanupPreview

cleanup_app = typer.Typer(help="Retention cleanup")


@cleanup_app.command(name="preview")
@handle_errors
def cleanup_preview(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to app config YAML"
    ),
):
    """Show how many rows the next cleanup run would purge."""
    config = load_config(config_path)
    preview = asyncio.run(_preview(config))

    display_info(
        f"Cutoff: {preview.cutoff_date:%Y-%m-%d %H:%M} UTC "
        f"({preview.retention_months} months retention)"
    )
    typer.echo(f"  Tasks to delete:      {preview.tasks_to_delete}")
    typer.echo(f"  Categories to delete: {preview.categories_to_delete}")


async def _preview(config: AppConfig) -> CleanupPreview:
    async with open_runtime(config) as runtime:
        return await runtime.jobs.cleanup.get_cleanup_preview()
