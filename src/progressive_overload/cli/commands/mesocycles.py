"""Mesocycle commands: create-mesocycle, start/complete/cancel-mesocycle, status."""

from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.mesocycle import MesocycleService
from .. import views
from ..app import DataPathOption, app, get_settings, get_store, handle_errors


def _service(data_path) -> MesocycleService:
    return MesocycleService(get_store(data_path), get_settings())


@app.command("create-mesocycle")
def create_mesocycle(
    plan_id: Annotated[int, typer.Option("--plan-id", help="Plan to run")],
    start_date: Annotated[
        Optional[str],
        typer.Option("--start-date", "-d", help="First day (YYYY-MM-DD, default: today)"),
    ] = None,
    data_path: DataPathOption = None,
) -> None:
    """
    Create a pending mesocycle for a plan.
    """
    if start_date is None:
        start_date = datetime.now().strftime("%Y-%m-%d")
    with handle_errors():
        meso = _service(data_path).create(plan_id, start_date)
    views.print_success(f"Created mesocycle {meso.id} starting {meso.start_date}")


@app.command("start-mesocycle")
def start_mesocycle(
    mesocycle_id: Annotated[int, typer.Argument(help="Mesocycle ID")],
    data_path: DataPathOption = None,
) -> None:
    """
    Start a mesocycle and schedule all of its workouts.
    """
    service = _service(data_path)
    with handle_errors():
        meso = service.start(mesocycle_id)
        workouts = service.store.find_workouts(meso.id)
    views.print_success(f"Started mesocycle {meso.id}: {len(workouts)} workouts scheduled")


@app.command("complete-mesocycle")
def complete_mesocycle(
    mesocycle_id: Annotated[int, typer.Argument(help="Mesocycle ID")],
    data_path: DataPathOption = None,
) -> None:
    """
    Mark the active mesocycle as completed.
    """
    with handle_errors():
        meso = _service(data_path).complete(mesocycle_id)
    views.print_success(f"Mesocycle {meso.id} completed")


@app.command("cancel-mesocycle")
def cancel_mesocycle(
    mesocycle_id: Annotated[int, typer.Argument(help="Mesocycle ID")],
    data_path: DataPathOption = None,
) -> None:
    """
    Cancel the active mesocycle (logged data is kept).
    """
    with handle_errors():
        meso = _service(data_path).cancel(mesocycle_id)
    views.print_success(f"Mesocycle {meso.id} cancelled")


@app.command()
def status(data_path: DataPathOption = None) -> None:
    """
    Show mesocycles and the active mesocycle's workouts.
    """
    service = _service(data_path)
    with handle_errors():
        mesocycles = service.list()
        active = service.get_active()
        if active is not None:
            workouts = service.store.find_workouts(active.id)
            day_names = {d.id: d.name for d in service.store.find_plan_days(active.plan_id)}

    if not mesocycles:
        views.print_info("No mesocycles yet. Use 'create-mesocycle' to plan one.")
        return

    views.console.print(views.format_mesocycles_table(mesocycles))
    if active is None:
        views.print_info("No active mesocycle.")
        return
    views.console.print(views.format_workouts_table(workouts, day_names))
