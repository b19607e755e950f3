"""
Exercise history: all-time completed sets reduced to chart/PR-ready entries.

One entry per session (workout), ordered by session date.  The personal
record is the heaviest session best; on a tie the earliest session wins and
its own reps are reported.
"""

import logging
from typing import Iterable

from .models import (
    CompletedSetRow,
    Exercise,
    ExerciseHistory,
    HistoryEntry,
    HistorySet,
    PersonalRecord,
)

logger = logging.getLogger(__name__)


def session_date(row: CompletedSetRow) -> str:
    """Date of the session a row belongs to: completed_at if set, else scheduled_date."""
    return row.completed_at or row.scheduled_date


def _finalize_entry(entry: HistoryEntry) -> None:
    """Fill best_weight / best_set_reps from the entry's sets."""
    best: HistorySet | None = None
    for s in entry.sets:
        if best is None or s.weight > best.weight:
            best = s
    if best is not None:
        entry.best_weight = best.weight
        entry.best_set_reps = best.reps


def group_sessions(rows: Iterable[CompletedSetRow]) -> list[HistoryEntry]:
    """
    Group completed set rows into one entry per workout, oldest first.

    Args:
        rows: Completed set rows for a single exercise

    Returns:
        HistoryEntry list sorted by session date (stable for equal dates)
    """
    by_workout: dict[int, HistoryEntry] = {}
    for row in rows:
        entry = by_workout.get(row.workout_id)
        if entry is None:
            entry = HistoryEntry(
                workout_id=row.workout_id,
                date=session_date(row),
                week_number=row.week_number,
                mesocycle_id=row.mesocycle_id,
            )
            by_workout[row.workout_id] = entry
        entry.sets.append(
            HistorySet(set_number=row.set_number, weight=row.actual_weight, reps=row.actual_reps)
        )

    entries = list(by_workout.values())
    for entry in entries:
        entry.sets.sort(key=lambda s: s.set_number)
        _finalize_entry(entry)
    entries.sort(key=lambda e: e.date)
    return entries


def find_personal_record(entries: list[HistoryEntry]) -> PersonalRecord | None:
    """
    Heaviest session best across all entries.

    Entries must be in chronological order; a later session only replaces
    the record with a strictly heavier weight.
    """
    record: PersonalRecord | None = None
    for entry in entries:
        if record is None or entry.best_weight > record.weight:
            record = PersonalRecord(
                weight=entry.best_weight,
                reps=entry.best_set_reps,
                date=entry.date,
            )
    return record


def build_exercise_history(
    exercise: Exercise | None,
    rows: Iterable[CompletedSetRow],
) -> ExerciseHistory | None:
    """
    Build the history of one exercise.

    Args:
        exercise: Exercise record, or None if the id is unknown
        rows: All completed set rows for the exercise

    Returns:
        ExerciseHistory, or None for an unknown exercise.  A known exercise
        without sets yields empty entries and no personal record.
    """
    if exercise is None:
        return None

    entries = group_sessions(r for r in rows if r.exercise_id == exercise.id)
    return ExerciseHistory(
        exercise_id=exercise.id,
        exercise_name=exercise.name,
        entries=entries,
        personal_record=find_personal_record(entries),
    )


class ExerciseHistoryService:
    """Reads completed sets from a store and builds exercise histories."""

    def __init__(self, store):
        self.store = store

    def get_history(self, exercise_id: int) -> ExerciseHistory | None:
        """Return the history of an exercise, or None if it does not exist."""
        exercise = self.store.get_exercise(exercise_id)
        if exercise is None:
            logger.debug("History requested for unknown exercise %s", exercise_id)
            return None
        rows = self.store.find_completed_by_exercise_id(exercise_id)
        history = build_exercise_history(exercise, rows)
        logger.debug(
            "Built history for exercise %s: %d sessions", exercise_id, len(history.entries)
        )
        return history
