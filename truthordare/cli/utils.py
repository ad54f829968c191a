"""Shared CLI utilities.

Provides config loading, error handling, console output helpers and the
runtime context that wires database, AI client and jobs together.
"""

import functools
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, TypeVar

import structlog
import typer

from truthordare.models.config import AppConfig
from truthordare.observability.logging import configure_logging
from truthordare.scheduling.setup import ScheduledJobs, build_scheduler
from truthordare.services.ai.client import ChatCompletionClient
from truthordare.services.config_manager import ConfigManager, ConfigValidationError
from truthordare.services.prompts import PromptLoader
from truthordare.storage.database import Database

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable)

DEFAULT_CONFIG_PATH = Path("config/app_config.yaml")


def load_config(config_path: Path) -> AppConfig:
    """Load configuration and configure logging from it.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    config_manager = ConfigManager(config_path=str(config_path))
    try:
        config = config_manager.load_config()
    except ConfigValidationError as e:
        display_error(f"Configuration Error: {e}")
        raise typer.Exit(code=1)

    configure_logging(level=config.logging.level, json_output=config.logging.json_output)
    return config


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN)


@dataclass
class Runtime:
    config: AppConfig
    database: Database
    provider: ChatCompletionClient
    jobs: ScheduledJobs


@asynccontextmanager
async def open_runtime(config: AppConfig) -> AsyncIterator[Runtime]:
    """Open the database and AI client and build the scheduled jobs.

    Everything opened here is closed on exit.
    """
    database = Database(config.database)
    provider = ChatCompletionClient(config.ai)
    try:
        await database.create_all()
        jobs = build_scheduler(config, database, provider, PromptLoader())
        yield Runtime(config=config, database=database, provider=provider, jobs=jobs)
    finally:
        await provider.close()
        await database.dispose()
