"""
CLI entry point using Typer.

Provides commands for mesocycle training:
- init / import-plan: Create the store and load a plan template
- create-mesocycle / start-mesocycle: Schedule a training block
- log-set / skip-set / unlog-set: Record sets
- complete-workout: Finish a session and progress the next week
- history / next-targets: Inspect progress
"""

from typing import Annotated

import typer

from ..logging_config import setup_logging
from .app import app

# Importing the command modules registers their commands on the app
from .commands import analysis, mesocycles, plans, workouts  # noqa: F401


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Strength training log that progresses your weights week to week.
    """
    setup_logging(verbose)


if __name__ == "__main__":
    app()
