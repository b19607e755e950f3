"""
JSON-based storage for plans, mesocycles, workouts and sets.

The whole training log lives in one JSON document (``training.json``) with
one list per table and a counter per table for id assignment.  Every write
rewrites the document atomically; ``transaction()`` batches several reads
and writes into a single load/save.
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from ..core.config import DEFAULT_MAX_REPS, DEFAULT_MIN_REPS, DEFAULT_WEIGHT_INCREMENT
from ..core.engine.config_loader import get_data_dir
from ..core.errors import ActiveMesocycleExistsError
from ..core.models import (
    CompletedSetRow,
    Exercise,
    Mesocycle,
    Plan,
    PlanDay,
    PlanDayExercise,
    Workout,
    WorkoutSet,
)
from .serializers import (
    ValidationError,
    dict_to_exercise,
    dict_to_mesocycle,
    dict_to_plan,
    dict_to_plan_day,
    dict_to_plan_day_exercise,
    dict_to_workout,
    dict_to_workout_set,
    row_to_dict,
    validate_plan_template,
)

logger = logging.getLogger(__name__)

TABLES: tuple[str, ...] = (
    "exercises",
    "plans",
    "plan_days",
    "plan_day_exercises",
    "mesocycles",
    "workouts",
    "workout_sets",
)

SCHEMA_VERSION = 1


def _empty_document() -> dict[str, Any]:
    doc: dict[str, Any] = {"version": SCHEMA_VERSION, "next_ids": {t: 1 for t in TABLES}}
    for t in TABLES:
        doc[t] = []
    return doc


class TrainingStore:
    """
    Manages the training log stored as a single JSON document.

    Rows are stored as plain dicts and converted to model dataclasses on
    read.  Ids are integers assigned per table.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the store.

        Args:
            path: Path to the JSON document
        """
        self.path = Path(path)
        self._doc: dict[str, Any] | None = None  # set while a transaction is open

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self.path.exists()

    def init(self) -> None:
        """
        Create an empty store if it doesn't exist.

        Creates parent directories if needed.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write(_empty_document())
            logger.info("Initialized training store at %s", self.path)

    def _read(self) -> dict[str, Any]:
        if self._doc is not None:
            return self._doc
        if not self.path.exists():
            raise FileNotFoundError(f"Training store not found: {self.path}. Run 'init' first.")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.path}: {e}") from e
        if not isinstance(doc, dict) or doc.get("version") != SCHEMA_VERSION:
            raise ValidationError(f"Unsupported store format in {self.path}")
        for t in TABLES:
            doc.setdefault(t, [])
            doc.setdefault("next_ids", {}).setdefault(t, 1)
        return doc

    def _write(self, doc: dict[str, Any]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".training-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def _commit(self, doc: dict[str, Any]) -> None:
        if self._doc is None:
            self._write(doc)

    @contextmanager
    def transaction(self) -> Iterator["TrainingStore"]:
        """
        Group reads and writes into one load and one atomic save.

        Changes are discarded if the block raises.  Nested use joins the
        outer transaction.
        """
        if self._doc is not None:
            yield self
            return
        doc = self._read()
        self._doc = json.loads(json.dumps(doc))
        try:
            yield self
            self._write(self._doc)
        finally:
            self._doc = None

    # ------------------------------------------------------------------
    # Generic table helpers
    # ------------------------------------------------------------------

    def _insert(self, table: str, row: dict[str, Any]) -> int:
        doc = self._read()
        row_id = doc["next_ids"][table]
        doc["next_ids"][table] = row_id + 1
        row["id"] = row_id
        doc[table].append(row)
        self._commit(doc)
        return row_id

    def _find(self, table: str, row_id: int) -> dict[str, Any] | None:
        for row in self._read()[table]:
            if row["id"] == row_id:
                return row
        return None

    def _select(self, table: str, predicate: Callable[[dict[str, Any]], bool]) -> list[dict[str, Any]]:
        return [row for row in self._read()[table] if predicate(row)]

    def _replace(self, table: str, row: dict[str, Any]) -> None:
        doc = self._read()
        rows = doc[table]
        for i, existing in enumerate(rows):
            if existing["id"] == row["id"]:
                rows[i] = row
                self._commit(doc)
                return
        raise KeyError(f"{table} row {row['id']} does not exist")

    def _delete(self, table: str, row_id: int) -> bool:
        doc = self._read()
        before = len(doc[table])
        doc[table] = [r for r in doc[table] if r["id"] != row_id]
        if len(doc[table]) == before:
            return False
        self._commit(doc)
        return True

    # ------------------------------------------------------------------
    # Exercises and plans
    # ------------------------------------------------------------------

    def add_exercise(self, name: str, weight_increment: float = DEFAULT_WEIGHT_INCREMENT, is_custom: bool = False) -> Exercise:
        exercise = Exercise(id=0, name=name, weight_increment=weight_increment, is_custom=is_custom)
        row = row_to_dict(exercise)
        exercise.id = self._insert("exercises", row)
        return exercise

    def get_exercise(self, exercise_id: int) -> Exercise | None:
        row = self._find("exercises", exercise_id)
        return dict_to_exercise(row) if row else None

    def find_exercise_by_name(self, name: str) -> Exercise | None:
        rows = self._select("exercises", lambda r: r["name"].lower() == name.lower())
        return dict_to_exercise(rows[0]) if rows else None

    def list_exercises(self) -> list[Exercise]:
        return [dict_to_exercise(r) for r in self._read()["exercises"]]

    def add_plan(self, name: str, duration_weeks: int) -> Plan:
        plan = Plan(id=0, name=name, duration_weeks=duration_weeks)
        plan.id = self._insert("plans", row_to_dict(plan))
        return plan

    def get_plan(self, plan_id: int) -> Plan | None:
        row = self._find("plans", plan_id)
        return dict_to_plan(row) if row else None

    def list_plans(self) -> list[Plan]:
        return [dict_to_plan(r) for r in self._read()["plans"]]

    def add_plan_day(self, plan_id: int, day_of_week: int, name: str, sort_order: int = 0) -> PlanDay:
        day = PlanDay(id=0, plan_id=plan_id, day_of_week=day_of_week, name=name, sort_order=sort_order)
        day.id = self._insert("plan_days", row_to_dict(day))
        return day

    def find_plan_days(self, plan_id: int) -> list[PlanDay]:
        days = [dict_to_plan_day(r) for r in self._select("plan_days", lambda r: r["plan_id"] == plan_id)]
        return sorted(days, key=lambda d: (d.sort_order, d.day_of_week, d.id))

    def add_plan_day_exercise(self, entry: PlanDayExercise) -> PlanDayExercise:
        entry.id = self._insert("plan_day_exercises", row_to_dict(entry))
        return entry

    def find_plan_day_exercises(self, plan_day_id: int) -> list[PlanDayExercise]:
        rows = self._select("plan_day_exercises", lambda r: r["plan_day_id"] == plan_day_id)
        return sorted((dict_to_plan_day_exercise(r) for r in rows), key=lambda e: (e.sort_order, e.id))

    def import_plan_template(self, data: dict[str, Any]) -> Plan:
        """
        Create exercises, a plan, and its days from a template document.

        Exercises that already exist (by name) are reused.

        Raises:
            ValidationError: If the template is invalid
        """
        validate_plan_template(data)
        with self.transaction():
            by_name: dict[str, Exercise] = {}
            for ex in data.get("exercises") or []:
                existing = self.find_exercise_by_name(ex["name"])
                if existing is None:
                    existing = self.add_exercise(
                        ex["name"],
                        float(ex.get("weight_increment", DEFAULT_WEIGHT_INCREMENT)),
                        bool(ex.get("is_custom", False)),
                    )
                by_name[ex["name"]] = existing

            plan = self.add_plan(str(data["name"]), int(data.get("duration_weeks", 6)))
            for order, day in enumerate(data["days"]):
                plan_day = self.add_plan_day(plan.id, int(day["day_of_week"]), str(day.get("name", "")), order)
                for ex_order, entry in enumerate(day.get("exercises") or []):
                    self.add_plan_day_exercise(
                        PlanDayExercise(
                            id=0,
                            plan_day_id=plan_day.id,
                            exercise_id=by_name[entry["exercise"]].id,
                            sets=int(entry["sets"]),
                            reps=int(entry["reps"]),
                            weight=float(entry["weight"]),
                            min_reps=int(entry.get("min_reps", DEFAULT_MIN_REPS)),
                            max_reps=int(entry.get("max_reps", DEFAULT_MAX_REPS)),
                            sort_order=ex_order,
                        )
                    )
        logger.info("Imported plan %r (id %d)", plan.name, plan.id)
        return plan

    # ------------------------------------------------------------------
    # Mesocycles
    # ------------------------------------------------------------------

    def add_mesocycle(self, plan_id: int, start_date: str) -> Mesocycle:
        meso = Mesocycle(id=0, plan_id=plan_id, start_date=start_date)
        meso.id = self._insert("mesocycles", row_to_dict(meso))
        return meso

    def get_mesocycle(self, mesocycle_id: int) -> Mesocycle | None:
        row = self._find("mesocycles", mesocycle_id)
        return dict_to_mesocycle(row) if row else None

    def list_mesocycles(self) -> list[Mesocycle]:
        return [dict_to_mesocycle(r) for r in self._read()["mesocycles"]]

    def find_active_mesocycles(self) -> list[Mesocycle]:
        return [dict_to_mesocycle(r) for r in self._select("mesocycles", lambda r: r["status"] == "active")]

    def update_mesocycle(self, meso: Mesocycle) -> Mesocycle:
        """
        Persist a mesocycle.

        Raises:
            ActiveMesocycleExistsError: If another mesocycle is already active
        """
        if meso.status == "active":
            others = [m for m in self.find_active_mesocycles() if m.id != meso.id]
            if others:
                raise ActiveMesocycleExistsError(others[0].id)
        self._replace("mesocycles", row_to_dict(meso))
        return meso

    # ------------------------------------------------------------------
    # Workouts
    # ------------------------------------------------------------------

    def add_workout(self, mesocycle_id: int, plan_day_id: int, week_number: int, scheduled_date: str) -> Workout:
        workout = Workout(
            id=0,
            mesocycle_id=mesocycle_id,
            plan_day_id=plan_day_id,
            week_number=week_number,
            scheduled_date=scheduled_date,
        )
        workout.id = self._insert("workouts", row_to_dict(workout))
        return workout

    def get_workout(self, workout_id: int) -> Workout | None:
        row = self._find("workouts", workout_id)
        return dict_to_workout(row) if row else None

    def find_workouts(self, mesocycle_id: int) -> list[Workout]:
        rows = self._select("workouts", lambda r: r["mesocycle_id"] == mesocycle_id)
        return sorted((dict_to_workout(r) for r in rows), key=lambda w: (w.week_number, w.scheduled_date, w.id))

    def find_workout(self, mesocycle_id: int, plan_day_id: int, week_number: int) -> Workout | None:
        rows = self._select(
            "workouts",
            lambda r: r["mesocycle_id"] == mesocycle_id
            and r["plan_day_id"] == plan_day_id
            and r["week_number"] == week_number,
        )
        return dict_to_workout(rows[0]) if rows else None

    def update_workout(self, workout: Workout) -> Workout:
        self._replace("workouts", row_to_dict(workout))
        return workout

    # ------------------------------------------------------------------
    # Workout sets
    # ------------------------------------------------------------------

    def add_set(
        self,
        workout_id: int,
        exercise_id: int,
        set_number: int,
        target_reps: int,
        target_weight: float,
    ) -> WorkoutSet:
        """
        Add a pending set.

        Raises:
            ValidationError: If set_number is already used for this workout and exercise
        """
        if self._select(
            "workout_sets",
            lambda r: r["workout_id"] == workout_id
            and r["exercise_id"] == exercise_id
            and r["set_number"] == set_number,
        ):
            raise ValidationError(
                f"Set {set_number} already exists for exercise {exercise_id} in workout {workout_id}"
            )
        ws = WorkoutSet(
            id=0,
            workout_id=workout_id,
            exercise_id=exercise_id,
            set_number=set_number,
            target_reps=target_reps,
            target_weight=target_weight,
        )
        ws.id = self._insert("workout_sets", row_to_dict(ws))
        return ws

    def get_set(self, set_id: int) -> WorkoutSet | None:
        row = self._find("workout_sets", set_id)
        return dict_to_workout_set(row) if row else None

    def find_sets(self, workout_id: int, exercise_id: int | None = None) -> list[WorkoutSet]:
        rows = self._select(
            "workout_sets",
            lambda r: r["workout_id"] == workout_id
            and (exercise_id is None or r["exercise_id"] == exercise_id),
        )
        return sorted((dict_to_workout_set(r) for r in rows), key=lambda s: (s.exercise_id, s.set_number))

    def update_set(self, ws: WorkoutSet) -> WorkoutSet:
        self._replace("workout_sets", row_to_dict(ws))
        return ws

    def delete_set(self, set_id: int) -> bool:
        return self._delete("workout_sets", set_id)

    def find_completed_by_exercise_id(self, exercise_id: int) -> list[CompletedSetRow]:
        """
        Completed sets of an exercise joined with workout metadata.

        Returns:
            Rows ordered by session date, then workout id, then set number
        """
        workouts = {w["id"]: w for w in self._read()["workouts"]}
        rows: list[CompletedSetRow] = []
        for s in self._select(
            "workout_sets",
            lambda r: r["exercise_id"] == exercise_id and r["status"] == "completed",
        ):
            w = workouts.get(s["workout_id"])
            if w is None:
                continue
            rows.append(
                CompletedSetRow(
                    workout_id=s["workout_id"],
                    exercise_id=exercise_id,
                    set_number=s["set_number"],
                    actual_weight=float(s["actual_weight"]),
                    actual_reps=int(s["actual_reps"]),
                    scheduled_date=w["scheduled_date"],
                    completed_at=w.get("completed_at"),
                    week_number=w["week_number"],
                    mesocycle_id=w["mesocycle_id"],
                )
            )
        rows.sort(key=lambda r: (r.completed_at or r.scheduled_date, r.workout_id, r.set_number))
        return rows


def get_default_store_path() -> Path:
    """
    Get the default store file path.

    Returns:
        <data dir>/training.json
    """
    return get_data_dir() / "training.json"
