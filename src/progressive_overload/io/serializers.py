"""
JSON serialization for training data models.

Handles conversion between dataclasses and JSON-compatible dicts, and
validation of the YAML plan templates accepted by ``import-plan``.
"""

import json
import re
from dataclasses import asdict
from datetime import datetime
from typing import Any

from ..core.models import (
    Exercise,
    ExerciseHistory,
    Mesocycle,
    Plan,
    PlanDay,
    PlanDayExercise,
    WeekTargets,
    Workout,
    WorkoutSet,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate and normalize date string to ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        Normalized YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is a non-negative number.

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _build(cls, data: dict[str, Any], table: str):
    """Construct a model from a row dict, wrapping constructor errors."""
    try:
        return cls(**data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {table} row {data.get('id', '?')}: {e}") from e


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert any model dataclass to a JSON-compatible dict."""
    return asdict(row)


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    return _build(Exercise, data, "exercise")


def dict_to_plan(data: dict[str, Any]) -> Plan:
    return _build(Plan, data, "plan")


def dict_to_plan_day(data: dict[str, Any]) -> PlanDay:
    return _build(PlanDay, data, "plan_day")


def dict_to_plan_day_exercise(data: dict[str, Any]) -> PlanDayExercise:
    return _build(PlanDayExercise, data, "plan_day_exercise")


def dict_to_mesocycle(data: dict[str, Any]) -> Mesocycle:
    validate_date(data.get("start_date", ""))
    return _build(Mesocycle, data, "mesocycle")


def dict_to_workout(data: dict[str, Any]) -> Workout:
    validate_date(data.get("scheduled_date", ""))
    return _build(Workout, data, "workout")


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    return _build(WorkoutSet, data, "workout_set")


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


def week_targets_to_dict(targets: WeekTargets) -> dict[str, Any]:
    return asdict(targets)


def exercise_history_to_dict(history: ExerciseHistory) -> dict[str, Any]:
    """Convert ExerciseHistory (entries, sets and PR) to nested dicts."""
    return asdict(history)


def to_json(data: Any) -> str:
    """Pretty JSON for CLI output."""
    return json.dumps(data, indent=2)


# ---------------------------------------------------------------------------
# Plan templates
# ---------------------------------------------------------------------------


def validate_plan_template(data: Any) -> dict[str, Any]:
    """
    Validate a plan template document.

    Expected shape::

        name: Upper/Lower
        duration_weeks: 6
        exercises:
          - name: Bench Press
            weight_increment: 5
        days:
          - name: Upper
            day_of_week: 1
            exercises:
              - exercise: Bench Press
                sets: 3
                reps: 8
                weight: 135
                min_reps: 8
                max_reps: 12

    Returns:
        The validated document

    Raises:
        ValidationError: If a required field is missing or invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Plan template must be a mapping")
    if not str(data.get("name", "")).strip():
        raise ValidationError("Plan template needs a name")

    weeks = data.get("duration_weeks", 6)
    if isinstance(weeks, bool) or not isinstance(weeks, int) or weeks < 1:
        raise ValidationError(f"duration_weeks must be a positive integer, got {weeks!r}")

    exercises = data.get("exercises") or []
    known = set()
    for ex in exercises:
        if not isinstance(ex, dict) or not str(ex.get("name", "")).strip():
            raise ValidationError(f"Invalid exercise entry: {ex!r}")
        validate_non_negative(ex.get("weight_increment", 5.0), "weight_increment")
        known.add(ex["name"])

    days = data.get("days") or []
    if not days:
        raise ValidationError("Plan has no workout days configured")
    for day in days:
        if not isinstance(day, dict):
            raise ValidationError(f"Invalid day entry: {day!r}")
        dow = day.get("day_of_week")
        if isinstance(dow, bool) or not isinstance(dow, int) or not 0 <= dow <= 6:
            raise ValidationError(f"day_of_week must be 0-6, got {dow!r}")
        for entry in day.get("exercises") or []:
            if not isinstance(entry, dict):
                raise ValidationError(f"Invalid day exercise entry: {entry!r}")
            name = entry.get("exercise")
            if name not in known:
                raise ValidationError(f"Day '{day.get('name')}' references unknown exercise {name!r}")
            for key in ("sets", "reps", "weight"):
                if key not in entry:
                    raise ValidationError(f"Exercise {name!r} on day '{day.get('name')}' needs {key}")
                validate_non_negative(entry[key], key)
            if int(entry.get("min_reps", 8)) > int(entry.get("max_reps", 12)):
                raise ValidationError(f"Exercise {name!r}: min_reps exceeds max_reps")
    return data
