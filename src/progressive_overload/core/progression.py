"""
Progressive overload: next-week targets from last week's performance.

Two schedules live here:

Dynamic (double progression), used once real performance exists:
- reach max_reps          → add one increment, drop to min_reps
- reach the rep target    → add one rep (capped at max_reps)
- miss target, ≥ min_reps → hold
- below min_reps twice at the same weight → drop one increment
- deload week             → see deload.py

Planned, used to pre-populate every week of a new mesocycle:
week 1 is the baseline; each later week alternates +1 rep and
+1 increment (reps reset to base); an incomplete week repeats its targets;
week plan_weeks + 1 is the deload.
"""

from typing import Sequence

from .config import DEFAULT_SETTINGS, ProgressionSettings
from .deload import calculate_deload_targets, is_deload_week, round_to_nearest
from .models import (
    CompletionStatus,
    ExerciseProgression,
    PreviousWeekPerformance,
    ProgressionReason,
    ProgressionResult,
    WeekTargets,
)


def _weight_grid(exercise: ExerciseProgression, settings: ProgressionSettings) -> float:
    """Rounding step for adjusted weights: the plate step, or a finer exercise increment."""
    return min(settings.weight_rounding_increment, exercise.weight_increment)


def calculate_next_week_targets(
    exercise: ExerciseProgression,
    previous: PreviousWeekPerformance | None,
    is_deload_week: bool,
    settings: ProgressionSettings = DEFAULT_SETTINGS,
) -> ProgressionResult:
    """
    Calculate next week's targets from last week's best set.

    Rules are checked in order; the first match wins.  Every input yields a
    result.

    Args:
        exercise: Exercise progression config
        previous: Last week's performance, None on first exposure
        is_deload_week: Whether the coming week is the deload week
        settings: Engine settings

    Returns:
        ProgressionResult with the reason that fired
    """
    if previous is None:
        return ProgressionResult(
            target_weight=exercise.base_weight,
            target_reps=exercise.base_reps,
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=ProgressionReason.FIRST_WEEK,
        )

    if is_deload_week:
        return calculate_deload_targets(
            exercise, previous.actual_weight, previous.target_reps, settings
        )

    grid = _weight_grid(exercise, settings)
    actual_weight = previous.actual_weight
    actual_reps = previous.actual_reps

    if (
        actual_reps < exercise.min_reps
        and previous.consecutive_failures >= settings.consecutive_failure_threshold
    ):
        regressed = round_to_nearest(actual_weight - exercise.weight_increment, grid)
        return ProgressionResult(
            target_weight=max(exercise.base_weight, regressed),
            target_reps=exercise.min_reps,
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=ProgressionReason.REGRESS,
        )

    if actual_reps >= exercise.max_reps:
        return ProgressionResult(
            target_weight=round_to_nearest(actual_weight + exercise.weight_increment, grid),
            target_reps=exercise.min_reps,
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=ProgressionReason.HIT_MAX_REPS,
        )

    if actual_reps >= previous.target_reps:
        return ProgressionResult(
            target_weight=actual_weight,
            target_reps=min(previous.target_reps + 1, exercise.max_reps),
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=ProgressionReason.HIT_TARGET,
        )

    if actual_reps >= exercise.min_reps:
        return ProgressionResult(
            target_weight=actual_weight,
            target_reps=previous.target_reps,
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=ProgressionReason.HOLD,
        )

    # Below min_reps but the streak is still short: aim for the bottom of the range
    return ProgressionResult(
        target_weight=actual_weight,
        target_reps=exercise.min_reps,
        target_sets=exercise.base_sets,
        is_deload=False,
        reason=ProgressionReason.HOLD,
    )


def to_week_targets(
    exercise: ExerciseProgression,
    result: ProgressionResult,
    week_number: int,
) -> WeekTargets:
    """Attach exercise identity and week number to a progression result."""
    return WeekTargets(
        exercise_id=exercise.exercise_id,
        plan_exercise_id=exercise.plan_exercise_id,
        target_weight=result.target_weight,
        target_reps=result.target_reps,
        target_sets=result.target_sets,
        week_number=week_number,
        is_deload=result.is_deload,
    )


# ---------------------------------------------------------------------------
# Planned schedule
# ---------------------------------------------------------------------------


def _planned_progression(exercise: ExerciseProgression, steps: int) -> tuple[float, int]:
    """
    Weight and reps after a number of completed progression steps.

    Odd steps add a rep; even steps add an increment and reset reps.
    """
    weight_steps = steps // 2
    weight = exercise.base_weight + weight_steps * exercise.weight_increment
    reps = exercise.base_reps + (1 if steps % 2 == 1 else 0)
    return round(weight, 6), reps


def calculate_targets_for_week(
    exercise: ExerciseProgression,
    week_number: int,
    previous_week_completed: bool,
    plan_weeks: int | None = None,
    settings: ProgressionSettings = DEFAULT_SETTINGS,
) -> WeekTargets:
    """
    Planned targets for a week, before any performance is known.

    Args:
        exercise: Exercise progression config
        week_number: 1-indexed week in the mesocycle
        previous_week_completed: Whether every set of the previous week was done
        plan_weeks: Progression weeks in the plan (deload is plan_weeks + 1)
        settings: Engine settings

    Returns:
        WeekTargets for the week
    """
    if plan_weeks is None:
        plan_weeks = settings.default_plan_weeks

    steps = max(0, week_number - 1)
    if not previous_week_completed:
        steps = max(0, steps - 1)

    if week_number > 1 and is_deload_week(week_number, plan_weeks):
        # Deload builds on the last progression week (one step less than a regular week)
        weight, reps = _planned_progression(exercise, max(0, steps - 1))
        result = calculate_deload_targets(exercise, weight, reps, settings)
        return to_week_targets(exercise, result, week_number)

    weight, reps = _planned_progression(exercise, steps)
    return WeekTargets(
        exercise_id=exercise.exercise_id,
        plan_exercise_id=exercise.plan_exercise_id,
        target_weight=weight,
        target_reps=reps,
        target_sets=exercise.base_sets,
        week_number=week_number,
        is_deload=False,
    )


def calculate_progression_history(
    exercise: ExerciseProgression,
    completion_history: Sequence[CompletionStatus],
    plan_weeks: int | None = None,
    settings: ProgressionSettings = DEFAULT_SETTINGS,
) -> list[WeekTargets]:
    """
    Planned targets for week 1 and for the week after each completion record.

    An incomplete week freezes progression: the following week repeats its
    targets instead of advancing.

    Args:
        exercise: Exercise progression config
        completion_history: One record per finished week, oldest first
        plan_weeks: Progression weeks in the plan
        settings: Engine settings

    Returns:
        len(completion_history) + 1 WeekTargets, oldest first
    """
    if plan_weeks is None:
        plan_weeks = settings.default_plan_weeks

    targets = [calculate_targets_for_week(exercise, 1, True, plan_weeks, settings)]
    steps = 0
    for status in sorted(completion_history, key=lambda c: c.week_number):
        week = status.week_number + 1
        if status.all_sets_completed:
            steps += 1
        if is_deload_week(week, plan_weeks):
            weight, reps = _planned_progression(exercise, max(0, steps - 1))
            result = calculate_deload_targets(exercise, weight, reps, settings)
            targets.append(to_week_targets(exercise, result, week))
            continue
        weight, reps = _planned_progression(exercise, steps)
        targets.append(
            WeekTargets(
                exercise_id=exercise.exercise_id,
                plan_exercise_id=exercise.plan_exercise_id,
                target_weight=weight,
                target_reps=reps,
                target_sets=exercise.base_sets,
                week_number=week,
                is_deload=False,
            )
        )
    return targets
