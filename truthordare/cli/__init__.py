"""Truth or Dare jobs CLI.

Usage:
    python -m truthordare.cli schedule start
    python -m truthordare.cli jobs list
    python -m truthordare.cli jobs run cleanup
    python -m truthordare.cli cleanup preview
    python -m truthordare.cli generate --language en --count 5
"""

import typer

from truthordare.cli.cleanup import cleanup_app
from truthordare.cli.generate import generate_command
from truthordare.cli.jobs import jobs_app
from truthordare.cli.schedule import schedule_app

app = typer.Typer(help="Truth or Dare background jobs")

app.command(name="generate")(generate_command)

app.add_typer(schedule_app, name="schedule")
app.add_typer(jobs_app, name="jobs")
app.add_typer(cleanup_app, name="cleanup")

__all__ = ["app"]
