"""Shared Typer app object, shared option types, store utility and error mapping."""

from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Iterator, Optional

import typer

from ..core.config import ProgressionSettings
from ..core.engine.config_loader import load_progression_settings
from ..core.errors import NotFoundError, ProgressionError
from ..io.serializers import ValidationError
from ..io.training_store import TrainingStore, get_default_store_path
from . import views

# Exit codes: not found mirrors HTTP 404, everything else is a bad request
EXIT_INVALID = 1
EXIT_NOT_FOUND = 4

# Shared --data-path option type used across all commands
DataPathOption = Annotated[
    Optional[Path],
    typer.Option("--data-path", "-p", help="Path to the training JSON file"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="progressive-overload",
    help="Mesocycle-based strength training log with automatic progressive overload.",
    no_args_is_help=True,
)


def get_store(data_path: Path | None) -> TrainingStore:
    """Get training store from path or default location."""
    if data_path is None:
        data_path = get_default_store_path()
    return TrainingStore(data_path)


def get_settings() -> ProgressionSettings:
    """Engine settings from the bundled YAML plus the user override."""
    return load_progression_settings()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print domain errors and exit with the matching code."""
    try:
        yield
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(EXIT_NOT_FOUND)
    except FileNotFoundError as e:
        views.print_error(str(e))
        views.print_info("Run 'init' first to create the training store.")
        raise typer.Exit(EXIT_INVALID)
    except (ProgressionError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(EXIT_INVALID)
