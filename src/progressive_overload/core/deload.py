"""
Deload week rules.

The deload week is the last generated week of a mesocycle (plan duration
+ 1).  It keeps the rep target, drops the load to 85% and halves the sets.
"""

import math

from .config import (
    DEFAULT_SETTINGS,
    DELOAD_MIN_SETS,
    DELOAD_VOLUME_FACTOR,
    DELOAD_WEIGHT_FACTOR,
    ProgressionSettings,
)
from .models import ExerciseProgression, ProgressionReason, ProgressionResult


def round_to_nearest(value: float, increment: float) -> float:
    """
    Round value to the nearest multiple of increment, halves rounding up.

    Args:
        value: Value to round
        increment: Grid step (must be positive)

    Returns:
        Rounded value
    """
    steps = math.floor(value / increment + 0.5)
    # Re-round to drop float noise such as 102.50000000000001
    return round(steps * increment, 6)


def is_deload_week(week_number: int, plan_weeks: int) -> bool:
    """
    Return True if week_number is the deload week of a plan.

    Args:
        week_number: 1-indexed week within the mesocycle
        plan_weeks: Number of progression weeks in the plan

    Returns:
        True for week plan_weeks + 1
    """
    return week_number == plan_weeks + 1


def deload_sets(base_sets: int, settings: ProgressionSettings = DEFAULT_SETTINGS) -> int:
    """Deload set count: half the base sets rounded up, at least one."""
    return max(DELOAD_MIN_SETS, math.ceil(base_sets * settings.deload_volume_factor))


def calculate_deload_targets(
    exercise: ExerciseProgression,
    current_weight: float,
    current_reps: int,
    settings: ProgressionSettings = DEFAULT_SETTINGS,
) -> ProgressionResult:
    """
    Calculate deload targets from the current working weight and reps.

    weight = round(current_weight × 0.85, 2.5)
    sets   = max(1, ceil(base_sets × 0.5))
    reps   = current_reps (carried over)

    Args:
        exercise: Exercise progression config
        current_weight: Working weight of the week before the deload
        current_reps: Rep target carried into the deload week
        settings: Engine settings

    Returns:
        ProgressionResult flagged as deload
    """
    weight = round_to_nearest(
        current_weight * settings.deload_weight_factor,
        settings.weight_rounding_increment,
    )
    return ProgressionResult(
        target_weight=weight,
        target_reps=current_reps,
        target_sets=deload_sets(exercise.base_sets, settings),
        is_deload=True,
        reason=ProgressionReason.DELOAD,
    )


def get_deload_weight_factor() -> float:
    """Return the default deload weight factor (for display)."""
    return DELOAD_WEIGHT_FACTOR


def get_deload_volume_factor() -> float:
    """Return the default deload volume factor (for display)."""
    return DELOAD_VOLUME_FACTOR
