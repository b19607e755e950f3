"""
Workout and set state machines.

Set:      pending → completed (log) → pending (unlog)
          pending → skipped (skip)
Workout:  pending → in_progress → completed
          pending | in_progress → skipped

Sets of a completed or skipped workout are frozen.  Logging or skipping a
set of a pending workout starts the workout.
"""

import logging
import math
from datetime import datetime

from .config import DEFAULT_SETTINGS, ProgressionSettings
from .deload import deload_sets, is_deload_week
from .errors import (
    InvalidTransitionError,
    InvalidValueError,
    NotFoundError,
    SetNotCompletedError,
    SetNotPendingError,
    WorkoutClosedError,
)
from .models import SetCountChange, Workout, WorkoutSet

logger = logging.getLogger(__name__)

CLOSED_WORKOUT_STATUSES = ("completed", "skipped")


def now_iso() -> str:
    """Current local time as an ISO timestamp (seconds precision)."""
    return datetime.now().isoformat(timespec="seconds")


def _validate_actuals(actual_reps: object, actual_weight: object) -> tuple[int, float]:
    if isinstance(actual_reps, bool) or not isinstance(actual_reps, int) or actual_reps < 0:
        raise InvalidValueError("Reps must be a non-negative integer")
    if (
        isinstance(actual_weight, bool)
        or not isinstance(actual_weight, (int, float))
        or not math.isfinite(actual_weight)
        or actual_weight < 0
    ):
        raise InvalidValueError("Weight must be a non-negative number")
    return actual_reps, float(actual_weight)


class WorkoutSetService:
    """Log, skip, unlog, add and remove sets."""

    def __init__(self, store, settings: ProgressionSettings = DEFAULT_SETTINGS):
        self.store = store
        self.settings = settings

    def _load(self, set_id: int) -> tuple[WorkoutSet, Workout]:
        ws = self.store.get_set(set_id)
        if ws is None:
            raise NotFoundError("WorkoutSet", set_id)
        workout = self.store.get_workout(ws.workout_id)
        if workout is None:
            raise NotFoundError("Workout", ws.workout_id)
        return ws, workout

    def _open_workout(self, workout_id: int, action: str) -> Workout:
        workout = self.store.get_workout(workout_id)
        if workout is None:
            raise NotFoundError("Workout", workout_id)
        self._ensure_open(workout, action)
        return workout

    @staticmethod
    def _ensure_open(workout: Workout, action: str) -> None:
        if workout.status in CLOSED_WORKOUT_STATUSES:
            logger.debug("Rejected %s on %s workout %d", action, workout.status, workout.id)
            raise WorkoutClosedError(workout.id, workout.status, action)

    def _auto_start(self, workout: Workout) -> None:
        if workout.status == "pending":
            workout.status = "in_progress"
            workout.started_at = now_iso()
            self.store.update_workout(workout)
            logger.info("Workout %d started", workout.id)

    def log(self, set_id: int, actual_reps: int, actual_weight: float) -> WorkoutSet:
        """
        Record actual reps and weight for a pending set.

        Raises:
            InvalidValueError: If reps or weight are out of range
            NotFoundError: If the set or its workout does not exist
            WorkoutClosedError: If the workout is completed or skipped
            SetNotPendingError: If the set was already logged or skipped
        """
        with self.store.transaction():
            ws, workout = self._load(set_id)
            reps, weight = _validate_actuals(actual_reps, actual_weight)
            self._ensure_open(workout, "log sets")
            if ws.status != "pending":
                logger.debug("Rejected log on %s set %d", ws.status, set_id)
                raise SetNotPendingError(set_id, ws.status, "log")
            self._auto_start(workout)
            ws.actual_reps = reps
            ws.actual_weight = weight
            ws.status = "completed"
            self.store.update_set(ws)
        logger.info("Set %d logged: %s x %d", set_id, weight, reps)
        return ws

    def skip(self, set_id: int) -> WorkoutSet:
        """
        Mark a pending set as skipped.

        Raises:
            NotFoundError: If the set or its workout does not exist
            WorkoutClosedError: If the workout is completed or skipped
            SetNotPendingError: If the set is not pending
        """
        with self.store.transaction():
            ws, workout = self._load(set_id)
            self._ensure_open(workout, "skip sets")
            if ws.status != "pending":
                logger.debug("Rejected skip on %s set %d", ws.status, set_id)
                raise SetNotPendingError(set_id, ws.status, "skip")
            self._auto_start(workout)
            ws.actual_reps = None
            ws.actual_weight = None
            ws.status = "skipped"
            self.store.update_set(ws)
        logger.info("Set %d skipped", set_id)
        return ws

    def unlog(self, set_id: int) -> WorkoutSet:
        """
        Revert a completed set to pending and clear its actuals.

        Raises:
            NotFoundError: If the set or its workout does not exist
            WorkoutClosedError: If the workout is completed or skipped
            SetNotCompletedError: If the set was never logged
        """
        with self.store.transaction():
            ws, workout = self._load(set_id)
            self._ensure_open(workout, "unlog sets")
            if ws.status != "completed":
                logger.debug("Rejected unlog on %s set %d", ws.status, set_id)
                raise SetNotCompletedError(set_id, ws.status)
            ws.actual_reps = None
            ws.actual_weight = None
            ws.status = "pending"
            self.store.update_set(ws)
        logger.info("Set %d unlogged", set_id)
        return ws

    def add_set(self, workout_id: int, exercise_id: int) -> SetCountChange:
        """
        Append a set copying the last set's targets, then propagate the new
        count to later pending workouts of the same plan day.
        """
        with self.store.transaction():
            workout = self._open_workout(workout_id, "add sets")
            sets = self.store.find_sets(workout_id, exercise_id)
            if not sets:
                raise NotFoundError(f"Sets for exercise {exercise_id} in workout", workout_id)
            last = sets[-1]
            new_set = self.store.add_set(
                workout_id, exercise_id, last.set_number + 1, last.target_reps, last.target_weight
            )
            affected, modified = self._propagate(workout, exercise_id, len(sets) + 1)
        logger.info("Added set %d to exercise %d in workout %d", new_set.set_number, exercise_id, workout_id)
        return SetCountChange(new_set, affected, modified)

    def remove_set(self, workout_id: int, exercise_id: int) -> SetCountChange:
        """
        Delete the highest-numbered pending set, then propagate the new count.

        Raises:
            InvalidTransitionError: If only one set is left or none is pending
        """
        with self.store.transaction():
            workout = self._open_workout(workout_id, "remove sets")
            sets = self.store.find_sets(workout_id, exercise_id)
            if not sets:
                raise NotFoundError(f"Sets for exercise {exercise_id} in workout", workout_id)
            if len(sets) == 1:
                raise InvalidTransitionError("Cannot remove the last set from an exercise")
            pending = [s for s in sets if s.status == "pending"]
            if not pending:
                raise InvalidTransitionError("No pending sets to remove")
            self.store.delete_set(pending[-1].id)
            affected, modified = self._propagate(workout, exercise_id, len(sets) - 1)
        logger.info("Removed set %d from exercise %d in workout %d", pending[-1].set_number, exercise_id, workout_id)
        return SetCountChange(None, affected, modified)

    def _propagate(self, workout: Workout, exercise_id: int, set_count: int) -> tuple[int, int]:
        """Resize pending sets of the same plan day in later weeks."""
        meso = self.store.get_mesocycle(workout.mesocycle_id)
        plan = self.store.get_plan(meso.plan_id) if meso else None
        affected = 0
        modified = 0
        for later in self.store.find_workouts(workout.mesocycle_id):
            if later.plan_day_id != workout.plan_day_id or later.week_number <= workout.week_number:
                continue
            if later.status != "pending":
                continue
            count = set_count
            if plan is not None and is_deload_week(later.week_number, plan.duration_weeks):
                count = deload_sets(set_count, self.settings)
            changed = resize_pending_sets(self.store, later.id, exercise_id, count)
            if changed:
                affected += 1
                modified += changed
        return affected, modified


def resize_pending_sets(store, workout_id: int, exercise_id: int, count: int) -> int:
    """
    Grow or shrink an exercise's sets in a workout to count.

    New sets copy the last set's targets; only pending sets are removed.

    Returns:
        Number of sets added or removed
    """
    sets = store.find_sets(workout_id, exercise_id)
    if not sets:
        return 0
    changed = 0
    last = sets[-1]
    next_number = last.set_number + 1
    while len(sets) + changed < count:
        store.add_set(workout_id, exercise_id, next_number, last.target_reps, last.target_weight)
        next_number += 1
        changed += 1
    pending = [s for s in sets if s.status == "pending"]
    excess = len(sets) - count
    for ws in reversed(pending[-excess:] if excess > 0 else []):
        store.delete_set(ws.id)
        changed += 1
    return changed


class WorkoutService:
    """Start, complete and skip workouts."""

    def __init__(self, store):
        self.store = store

    def get(self, workout_id: int) -> Workout:
        workout = self.store.get_workout(workout_id)
        if workout is None:
            raise NotFoundError("Workout", workout_id)
        return workout

    def start(self, workout_id: int) -> Workout:
        """
        Start a pending workout.

        Raises:
            InvalidTransitionError: If the workout is not pending
        """
        with self.store.transaction():
            workout = self.get(workout_id)
            if workout.status != "pending":
                logger.debug("Rejected start on %s workout %d", workout.status, workout_id)
                raise InvalidTransitionError(f"Cannot start a {workout.status} workout")
            workout.status = "in_progress"
            workout.started_at = now_iso()
            self.store.update_workout(workout)
        logger.info("Workout %d started", workout_id)
        return workout

    def complete(self, workout_id: int) -> Workout:
        """
        Complete an in-progress workout; remaining pending sets become skipped.

        Raises:
            InvalidTransitionError: If the workout is not in progress
        """
        with self.store.transaction():
            workout = self.get(workout_id)
            if workout.status != "in_progress":
                logger.debug("Rejected complete on %s workout %d", workout.status, workout_id)
                raise InvalidTransitionError(f"Cannot complete a {workout.status} workout")
            self._skip_pending_sets(workout_id)
            workout.status = "completed"
            workout.completed_at = now_iso()
            self.store.update_workout(workout)
        logger.info("Workout %d completed", workout_id)
        return workout

    def skip(self, workout_id: int) -> Workout:
        """
        Skip a pending or in-progress workout; its pending sets become skipped.

        Raises:
            InvalidTransitionError: If the workout is already completed or skipped
        """
        with self.store.transaction():
            workout = self.get(workout_id)
            if workout.status in CLOSED_WORKOUT_STATUSES:
                logger.debug("Rejected skip on %s workout %d", workout.status, workout_id)
                raise InvalidTransitionError(f"Cannot skip a {workout.status} workout")
            self._skip_pending_sets(workout_id)
            workout.status = "skipped"
            self.store.update_workout(workout)
        logger.info("Workout %d skipped", workout_id)
        return workout

    def _skip_pending_sets(self, workout_id: int) -> None:
        for ws in self.store.find_sets(workout_id):
            if ws.status == "pending":
                ws.status = "skipped"
                self.store.update_set(ws)
