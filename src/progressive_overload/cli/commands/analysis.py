"""Analysis commands: history, next-targets."""

from typing import Annotated

import typer

from ...core.errors import NotFoundError
from ...core.history import ExerciseHistoryService
from ...core.mesocycle import MesocycleService
from ...io.serializers import exercise_history_to_dict, to_json, week_targets_to_dict
from .. import views
from ..app import DataPathOption, JsonOption, app, get_settings, get_store, handle_errors


@app.command()
def history(
    exercise_id: Annotated[int, typer.Argument(help="Exercise ID (see 'list-exercises')")],
    data_path: DataPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show every session of an exercise and its personal record.
    """
    with handle_errors():
        result = ExerciseHistoryService(get_store(data_path)).get_history(exercise_id)
        if result is None:
            raise NotFoundError("Exercise", exercise_id)

    if json_out:
        print(to_json(exercise_history_to_dict(result)))
        return
    views.print_exercise_history(result)


@app.command("next-targets")
def next_targets(
    workout_id: Annotated[int, typer.Argument(help="Workout ID to progress from")],
    data_path: DataPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Preview next week's targets from a workout's logged sets (nothing is saved).
    """
    store = get_store(data_path)
    with handle_errors():
        targets = MesocycleService(store, get_settings()).preview_next_week(workout_id)
        names = {ex.id: ex.name for ex in store.list_exercises()}

    if json_out:
        print(to_json([week_targets_to_dict(t) for t in targets]))
        return
    views.print_targets(targets, names)
