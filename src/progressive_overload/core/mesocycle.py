"""
Mesocycle orchestration: generating the weekly schedule and feeding logged
performance back into the progression engine.

A mesocycle runs ``plan.duration_weeks`` progression weeks followed by one
deload week.  Starting it writes every workout and set up front using the
planned schedule; after each session ``materialize_next_week`` rewrites the
next week's pending sets from what was actually lifted.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, timedelta

from .config import DEFAULT_SETTINGS, ProgressionSettings
from .deload import deload_sets, is_deload_week
from .errors import (
    ActiveMesocycleExistsError,
    InvalidValueError,
    MesocycleStateError,
    NotFoundError,
)
from .lifecycle import resize_pending_sets
from .models import (
    Exercise,
    ExerciseProgression,
    Mesocycle,
    PlanDay,
    PlanDayExercise,
    PreviousWeekPerformance,
    WeekTargets,
    Workout,
)
from .performance import build_previous_week_performance
from .progression import calculate_next_week_targets, calculate_targets_for_week, to_week_targets

logger = logging.getLogger(__name__)


def to_exercise_progression(entry: PlanDayExercise, exercise: Exercise) -> ExerciseProgression:
    """Combine a plan day entry with its exercise's weight increment."""
    return ExerciseProgression(
        exercise_id=entry.exercise_id,
        plan_exercise_id=entry.id,
        base_weight=entry.weight,
        base_reps=entry.reps,
        base_sets=entry.sets,
        weight_increment=exercise.weight_increment,
        min_reps=entry.min_reps,
        max_reps=entry.max_reps,
    )


def sunday_based_weekday(d: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def scheduled_date(start: date, week_number: int, day_of_week: int) -> date:
    """
    Date of a plan day in a given week.

    Week 1 begins on the start date; a plan day falls on the first matching
    weekday on or after the start of its week.
    """
    offset = (day_of_week - sunday_based_weekday(start)) % 7
    return start + timedelta(days=7 * (week_number - 1) + offset)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise InvalidValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD") from e


class MesocycleService:
    """Create, start, finish and progress mesocycles."""

    def __init__(self, store, settings: ProgressionSettings = DEFAULT_SETTINGS):
        self.store = store
        self.settings = settings

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, mesocycle_id: int) -> Mesocycle:
        meso = self.store.get_mesocycle(mesocycle_id)
        if meso is None:
            raise NotFoundError("Mesocycle", mesocycle_id)
        return meso

    def get_active(self) -> Mesocycle | None:
        active = self.store.find_active_mesocycles()
        return active[0] if active else None

    def list(self) -> list[Mesocycle]:
        return self.store.list_mesocycles()

    def _plan_days(self, plan_id: int) -> list[PlanDay]:
        return self.store.find_plan_days(plan_id)

    def _progressions(self, plan_day_id: int) -> list[ExerciseProgression]:
        result = []
        for entry in self.store.find_plan_day_exercises(plan_day_id):
            exercise = self.store.get_exercise(entry.exercise_id)
            if exercise is None:
                raise NotFoundError("Exercise", entry.exercise_id)
            result.append(to_exercise_progression(entry, exercise))
        return result

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create(self, plan_id: int, start_date: str) -> Mesocycle:
        """
        Create a pending mesocycle for a plan.

        Raises:
            NotFoundError: If the plan does not exist
            InvalidValueError: If the plan has no days or the date is malformed
        """
        parse_date(start_date)
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError("Plan", plan_id)
        if not self._plan_days(plan_id):
            raise InvalidValueError("Plan has no workout days configured")
        meso = self.store.add_mesocycle(plan_id, start_date)
        logger.info("Created mesocycle %d for plan %d starting %s", meso.id, plan_id, start_date)
        return meso

    def start(self, mesocycle_id: int) -> Mesocycle:
        """
        Activate a pending mesocycle and generate all of its workouts.

        Raises:
            MesocycleStateError: If the mesocycle is not pending
            ActiveMesocycleExistsError: If another mesocycle is active
        """
        with self.store.transaction():
            meso = self.get(mesocycle_id)
            if meso.status != "pending":
                logger.debug("Rejected start on %s mesocycle %d", meso.status, mesocycle_id)
                raise MesocycleStateError(f"Cannot start a {meso.status} mesocycle")
            active = self.get_active()
            if active is not None:
                logger.debug("Rejected start of mesocycle %d: %d is active", mesocycle_id, active.id)
                raise ActiveMesocycleExistsError(active.id)

            meso.status = "active"
            meso.current_week = 1
            self.store.update_mesocycle(meso)
            count = self._generate_workouts(meso)
        logger.info("Started mesocycle %d with %d workouts", mesocycle_id, count)
        return meso

    def _generate_workouts(self, meso: Mesocycle) -> int:
        plan = self.store.get_plan(meso.plan_id)
        if plan is None:
            raise NotFoundError("Plan", meso.plan_id)
        start = parse_date(meso.start_date)
        days = self._plan_days(plan.id)
        progressions = {day.id: self._progressions(day.id) for day in days}

        count = 0
        for week in range(1, plan.duration_weeks + 2):
            for day in days:
                when = scheduled_date(start, week, day.day_of_week).isoformat()
                workout = self.store.add_workout(meso.id, day.id, week, when)
                count += 1
                for progression in progressions[day.id]:
                    targets = calculate_targets_for_week(
                        progression, week, True, plan.duration_weeks, self.settings
                    )
                    for n in range(1, targets.target_sets + 1):
                        self.store.add_set(
                            workout.id,
                            progression.exercise_id,
                            n,
                            targets.target_reps,
                            targets.target_weight,
                        )
        return count

    def _finish(self, mesocycle_id: int, status: str, verb: str) -> Mesocycle:
        with self.store.transaction():
            meso = self.get(mesocycle_id)
            if meso.status != "active":
                logger.debug("Rejected %s on %s mesocycle %d", verb, meso.status, mesocycle_id)
                raise MesocycleStateError(f"Cannot {verb} a {meso.status} mesocycle")
            meso.status = status
            self.store.update_mesocycle(meso)
        logger.info("Mesocycle %d %s", mesocycle_id, status)
        return meso

    def complete(self, mesocycle_id: int) -> Mesocycle:
        """Mark an active mesocycle completed.  Workouts and sets are kept."""
        return self._finish(mesocycle_id, "completed", "complete")

    def cancel(self, mesocycle_id: int) -> Mesocycle:
        """Cancel an active mesocycle.  Workouts and sets are kept."""
        return self._finish(mesocycle_id, "cancelled", "cancel")

    # ------------------------------------------------------------------
    # Progression feedback
    # ------------------------------------------------------------------

    def _same_day_workouts(self, workout: Workout) -> list[Workout]:
        return [
            w
            for w in self.store.find_workouts(workout.mesocycle_id)
            if w.plan_day_id == workout.plan_day_id
        ]

    def performance_for_workout(
        self, workout: Workout, exercise_id: int, min_reps: int | None = None
    ) -> PreviousWeekPerformance | None:
        """
        Best-set performance of an exercise in a workout.

        Earlier weeks of the same plan day provide the failure streak.
        min_reps defaults to the exercise's entry on the plan day.

        Returns:
            PreviousWeekPerformance, or None if no set was completed
        """
        if min_reps is None:
            entries = [
                e
                for e in self.store.find_plan_day_exercises(workout.plan_day_id)
                if e.exercise_id == exercise_id
            ]
            if not entries:
                raise NotFoundError(f"Exercise on plan day {workout.plan_day_id}", exercise_id)
            min_reps = entries[0].min_reps

        history: list[PreviousWeekPerformance] = []
        performance = None
        for w in self._same_day_workouts(workout):
            if w.week_number > workout.week_number:
                break
            sets = self.store.find_sets(w.id, exercise_id)
            if not sets:
                continue
            performance = build_previous_week_performance(
                exercise_id,
                w.week_number,
                sets[0].target_weight,
                sets[0].target_reps,
                [s for s in sets if s.status == "completed"],
                min_reps,
                history,
            )
            if w.id == workout.id:
                return performance
            if performance is not None:
                history.insert(0, performance)
        return None

    def preview_next_week(self, workout_id: int) -> list[WeekTargets]:
        """
        Targets for the next week of this workout's plan day.

        Returns:
            One WeekTargets per exercise; empty after the deload week
        """
        workout = self.store.get_workout(workout_id)
        if workout is None:
            raise NotFoundError("Workout", workout_id)
        meso = self.get(workout.mesocycle_id)
        plan = self.store.get_plan(meso.plan_id)
        if plan is None:
            raise NotFoundError("Plan", meso.plan_id)

        next_week = workout.week_number + 1
        if next_week > plan.duration_weeks + 1:
            return []
        deload = is_deload_week(next_week, plan.duration_weeks)

        targets = []
        for progression in self._progressions(workout.plan_day_id):
            performance = self.performance_for_workout(
                workout, progression.exercise_id, progression.min_reps
            )
            result = calculate_next_week_targets(progression, performance, deload, self.settings)
            logger.debug(
                "Exercise %d week %d: %s", progression.exercise_id, next_week, result.reason.code
            )
            targets.append(to_week_targets(progression, result, next_week))
        return targets

    def materialize_next_week(self, workout_id: int) -> list[WeekTargets]:
        """
        Write next week's targets into the pending sets of the following
        workout of the same plan day.

        Set counts changed with add_set/remove_set are kept.  The deload
        week is sized from this workout's set count.

        Returns:
            The targets written; empty if there is no pending next workout
        """
        with self.store.transaction():
            targets = self.preview_next_week(workout_id)
            if not targets:
                return []
            workout = self.store.get_workout(workout_id)
            following = self.store.find_workout(
                workout.mesocycle_id, workout.plan_day_id, workout.week_number + 1
            )
            if following is None or following.status != "pending":
                return []

            written = []
            for t in targets:
                if t.is_deload:
                    current = len(self.store.find_sets(workout.id, t.exercise_id))
                    resize_pending_sets(
                        self.store, following.id, t.exercise_id, deload_sets(current, self.settings)
                    )
                sets = self.store.find_sets(following.id, t.exercise_id)
                for ws in sets:
                    if ws.status != "pending":
                        continue
                    ws.target_weight = t.target_weight
                    ws.target_reps = t.target_reps
                    self.store.update_set(ws)
                written.append(dataclasses.replace(t, target_sets=len(sets)))

            meso = self.get(workout.mesocycle_id)
            if meso.current_week < following.week_number:
                meso.current_week = following.week_number
                self.store.update_mesocycle(meso)
        logger.info("Updated targets for workout %d (week %d)", following.id, following.week_number)
        return written
