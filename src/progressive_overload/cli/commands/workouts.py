"""Workout and set commands: show-workout, log/skip/unlog-set, add/remove-set, start/complete/skip-workout."""

from typing import Annotated

import typer

from ...core.lifecycle import WorkoutService, WorkoutSetService
from ...core.mesocycle import MesocycleService
from ...core.models import SetCountChange
from .. import views
from ..app import DataPathOption, app, get_settings, get_store, handle_errors

SetIdArg = Annotated[int, typer.Argument(help="Set ID (see 'show-workout')")]
WorkoutIdArg = Annotated[int, typer.Argument(help="Workout ID (see 'status')")]
ExerciseIdOption = Annotated[int, typer.Option("--exercise-id", "-e", help="Exercise ID")]


def _exercise_names(store) -> dict[int, str]:
    return {ex.id: ex.name for ex in store.list_exercises()}


def _print_set_count_change(change: SetCountChange, verb: str) -> None:
    views.print_success(f"{verb} set")
    if change.future_workouts_affected:
        views.print_info(
            f"Updated {change.future_sets_modified} sets in "
            f"{change.future_workouts_affected} later workouts"
        )


@app.command("show-workout")
def show_workout(workout_id: WorkoutIdArg, data_path: DataPathOption = None) -> None:
    """
    Show a workout's sets with targets and logged values.
    """
    store = get_store(data_path)
    with handle_errors():
        workout = WorkoutService(store).get(workout_id)
        sets = store.find_sets(workout_id)
        names = _exercise_names(store)
    views.print_workout(workout, sets, names)


@app.command("log-set")
def log_set(
    set_id: SetIdArg,
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps performed")],
    weight: Annotated[float, typer.Option("--weight", "-w", help="Weight used")],
    data_path: DataPathOption = None,
) -> None:
    """
    Log reps and weight for a set (starts the workout if needed).
    """
    with handle_errors():
        ws = WorkoutSetService(get_store(data_path)).log(set_id, reps, weight)
    views.print_success(f"Logged set {ws.id}: {views.fmt_weight(ws.actual_weight)} x {ws.actual_reps}")


@app.command("skip-set")
def skip_set(set_id: SetIdArg, data_path: DataPathOption = None) -> None:
    """
    Skip a pending set.
    """
    with handle_errors():
        ws = WorkoutSetService(get_store(data_path)).skip(set_id)
    views.print_success(f"Skipped set {ws.id}")


@app.command("unlog-set")
def unlog_set(set_id: SetIdArg, data_path: DataPathOption = None) -> None:
    """
    Revert a logged set to pending.
    """
    with handle_errors():
        ws = WorkoutSetService(get_store(data_path)).unlog(set_id)
    views.print_success(f"Set {ws.id} is pending again")


@app.command("add-set")
def add_set(
    workout_id: WorkoutIdArg,
    exercise_id: ExerciseIdOption,
    data_path: DataPathOption = None,
) -> None:
    """
    Add a set to an exercise (also applied to later weeks of the same day).
    """
    store = get_store(data_path)
    with handle_errors():
        change = WorkoutSetService(store, get_settings()).add_set(workout_id, exercise_id)
    _print_set_count_change(change, "Added")


@app.command("remove-set")
def remove_set(
    workout_id: WorkoutIdArg,
    exercise_id: ExerciseIdOption,
    data_path: DataPathOption = None,
) -> None:
    """
    Remove the last pending set of an exercise (also applied to later weeks).
    """
    store = get_store(data_path)
    with handle_errors():
        change = WorkoutSetService(store, get_settings()).remove_set(workout_id, exercise_id)
    _print_set_count_change(change, "Removed")


@app.command("start-workout")
def start_workout(workout_id: WorkoutIdArg, data_path: DataPathOption = None) -> None:
    """
    Start a pending workout.
    """
    with handle_errors():
        workout = WorkoutService(get_store(data_path)).start(workout_id)
    views.print_success(f"Workout {workout.id} started")


@app.command("complete-workout")
def complete_workout(workout_id: WorkoutIdArg, data_path: DataPathOption = None) -> None:
    """
    Complete a workout and write next week's targets for the same day.
    """
    store = get_store(data_path)
    with handle_errors():
        with store.transaction():
            workout = WorkoutService(store).complete(workout_id)
            targets = MesocycleService(store, get_settings()).materialize_next_week(workout_id)
        names = _exercise_names(store)
    views.print_success(f"Workout {workout.id} completed")
    if targets:
        views.print_targets(targets, names)


@app.command("skip-workout")
def skip_workout(workout_id: WorkoutIdArg, data_path: DataPathOption = None) -> None:
    """
    Skip a workout; its pending sets are marked skipped.
    """
    with handle_errors():
        workout = WorkoutService(get_store(data_path)).skip(workout_id)
    views.print_success(f"Workout {workout.id} skipped")
