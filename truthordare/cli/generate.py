"""On-demand content generation command."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from truthordare.cli.utils import (
    DEFAULT_CONFIG_PATH,
    display_success,
    display_warning,
    handle_errors,
    load_config,
    open_runtime,
)
from truthordare.models.config import AppConfig
from truthordare.models.content import OnDemandRequest, OnDemandResult


@handle_errors
def generate_command(
    category: Optional[str] = typer.Option(
        None, "--category", help="Category id (default: all active categories)"
    ),
    age_group: Optional[str] = typer.Option(
        None, "--age-group", help="kids, teen or adults (default: all)"
    ),
    language: Optional[str] = typer.Option(
        None, "--language", help="ISO 639-1 code (default: all supported)"
    ),
    count: int = typer.Option(
        10, "--count", "-n", help="Truths and dares per combination (max 50)"
    ),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to app config YAML"
    ),
):
    """Generate truths and dares now for the selected combinations."""
    config = load_config(config_path)
    request = OnDemandRequest(
        category_id=category, age_group=age_group, language=language, count=count
    )
    result = asyncio.run(_generate(config, request))

    display_success(
        f"Generated {result.total_truths} truths and {result.total_dares} dares "
        f"across {result.combinations_count} combinations"
    )
    typer.echo(f"  Tasks saved: {result.tasks_created}")
    if result.failed_combinations:
        display_warning(f"  Failed combinations: {result.failed_combinations}")


async def _generate(config: AppConfig, request: OnDemandRequest) -> OnDemandResult:
    async with open_runtime(config) as runtime:
        return await runtime.jobs.generation.generate_on_demand(request)
