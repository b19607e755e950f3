"""Plan commands: init, import-plan, list-plans, list-exercises."""

from pathlib import Path
from typing import Annotated

import typer
import yaml

from ...io.serializers import ValidationError
from .. import views
from ..app import EXIT_INVALID, DataPathOption, app, get_store, handle_errors


@app.command()
def init(data_path: DataPathOption = None) -> None:
    """
    Create an empty training store.
    """
    store = get_store(data_path)
    if store.exists():
        views.print_info(f"Training store already exists: {store.path}")
        return
    store.init()
    views.print_success(f"Created training store: {store.path}")


@app.command("import-plan")
def import_plan(
    template: Annotated[Path, typer.Argument(help="YAML plan template")],
    data_path: DataPathOption = None,
) -> None:
    """
    Import a plan (exercises and weekly days) from a YAML template.
    """
    try:
        with open(template, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        views.print_error(f"Cannot read plan template {template}: {e}")
        raise typer.Exit(EXIT_INVALID)

    store = get_store(data_path)
    store.init()
    try:
        plan = store.import_plan_template(data)
    except ValidationError as e:
        views.print_error(f"Invalid plan template: {e}")
        raise typer.Exit(EXIT_INVALID)

    views.print_success(f"Imported plan '{plan.name}' (id {plan.id}, {plan.duration_weeks} weeks)")


@app.command("list-plans")
def list_plans(data_path: DataPathOption = None) -> None:
    """
    List imported plans.
    """
    store = get_store(data_path)
    with handle_errors():
        plans = store.list_plans()
    if not plans:
        views.print_info("No plans yet. Use 'import-plan' to add one.")
        return
    views.console.print(views.format_plans_table(plans))


@app.command("list-exercises")
def list_exercises(data_path: DataPathOption = None) -> None:
    """
    List known exercises and their weight increments.
    """
    store = get_store(data_path)
    with handle_errors():
        exercises = store.list_exercises()
    if not exercises:
        views.print_info("No exercises yet.")
        return
    views.console.print(views.format_exercises_table(exercises))
