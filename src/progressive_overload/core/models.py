"""
Data models for progressive-overload.

All core dataclasses representing exercise configuration, mesocycles,
workouts, logged sets, and the derived performance/history records the
engine produces.  Status values are plain strings validated on construction.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

MesocycleStatus = Literal["pending", "active", "completed", "cancelled"]
WorkoutStatus = Literal["pending", "in_progress", "completed", "skipped"]
SetStatus = Literal["pending", "completed", "skipped"]

MESOCYCLE_STATUSES: tuple[str, ...] = ("pending", "active", "completed", "cancelled")
WORKOUT_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "skipped")
SET_STATUSES: tuple[str, ...] = ("pending", "completed", "skipped")


class ProgressionReason(Enum):
    """
    Why the engine prescribed a given set of targets.

    Each member carries its wire code and a short explanation for display.
    """

    FIRST_WEEK = ("first_week", "No previous data, using base values")
    HIT_MAX_REPS = ("hit_max_reps", "Hit the top of the rep range: add weight, reset reps")
    HIT_TARGET = ("hit_target", "Hit the rep target: add one rep")
    HOLD = ("hold", "Missed the rep target: hold weight and reps")
    REGRESS = ("regress", "Failed the minimum reps repeatedly at this weight: drop weight")
    DELOAD = ("deload", "Deload week: lighter weight, fewer sets")

    def __init__(self, code: str, description: str) -> None:
        self.code = code
        self.description = description

    @classmethod
    def from_code(cls, code: str) -> "ProgressionReason":
        """Look up a reason by its wire code."""
        for reason in cls:
            if reason.code == code:
                return reason
        raise ValueError(f"Unknown progression reason: {code!r}")

    def __str__(self) -> str:
        return self.code


# ---------------------------------------------------------------------------
# Template / configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExerciseProgression:
    """
    Progression config for one exercise within a plan day.

    Read-only input to the engine.  Base values come from the plan template,
    the increment from the exercise, and the rep range from the plan entry.
    """

    exercise_id: int
    plan_exercise_id: int
    base_weight: float
    base_reps: int
    base_sets: int
    weight_increment: float
    min_reps: int
    max_reps: int

    def __post_init__(self) -> None:
        """Validate progression config."""
        if self.base_weight < 0:
            raise ValueError("base_weight must be non-negative")
        if self.base_reps < 0:
            raise ValueError("base_reps must be non-negative")
        if self.base_sets < 1:
            raise ValueError("base_sets must be at least 1")
        if self.weight_increment <= 0:
            raise ValueError("weight_increment must be positive")
        if self.min_reps < 0:
            raise ValueError("min_reps must be non-negative")
        if self.min_reps > self.max_reps:
            raise ValueError("min_reps must not exceed max_reps")


@dataclass
class Exercise:
    """An exercise from the library."""

    id: int
    name: str
    weight_increment: float = 5.0
    is_custom: bool = False

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Exercise name must not be empty")
        if self.weight_increment <= 0:
            raise ValueError("weight_increment must be positive")


@dataclass
class Plan:
    """A reusable training plan template."""

    id: int
    name: str
    duration_weeks: int = 6

    def __post_init__(self) -> None:
        if self.duration_weeks < 1:
            raise ValueError("duration_weeks must be at least 1")


@dataclass
class PlanDay:
    """One training day of a plan (day_of_week: 0=Sunday .. 6=Saturday)."""

    id: int
    plan_id: int
    day_of_week: int
    name: str
    sort_order: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {self.day_of_week}")


@dataclass
class PlanDayExercise:
    """An exercise prescription on a plan day."""

    id: int
    plan_day_id: int
    exercise_id: int
    sets: int
    reps: int
    weight: float
    min_reps: int = 8
    max_reps: int = 12
    sort_order: int = 0

    def __post_init__(self) -> None:
        if self.sets < 1:
            raise ValueError("sets must be at least 1")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.min_reps > self.max_reps:
            raise ValueError("min_reps must not exceed max_reps")


# ---------------------------------------------------------------------------
# Generated training rows
# ---------------------------------------------------------------------------


@dataclass
class Mesocycle:
    """A generated multi-week training block built from a plan."""

    id: int
    plan_id: int
    start_date: str  # ISO format: YYYY-MM-DD
    current_week: int = 1
    status: MesocycleStatus = "pending"

    def __post_init__(self) -> None:
        if self.status not in MESOCYCLE_STATUSES:
            raise ValueError(f"Invalid mesocycle status: {self.status}")


@dataclass
class Workout:
    """One scheduled session: a (mesocycle, plan day, week) triple."""

    id: int
    mesocycle_id: int
    plan_day_id: int
    week_number: int
    scheduled_date: str  # ISO format: YYYY-MM-DD
    status: WorkoutStatus = "pending"
    started_at: str | None = None
    completed_at: str | None = None

    def __post_init__(self) -> None:
        if self.status not in WORKOUT_STATUSES:
            raise ValueError(f"Invalid workout status: {self.status}")
        if self.week_number < 1:
            raise ValueError("week_number must be positive")


@dataclass
class WorkoutSet:
    """
    A single prescribed set within a workout.

    Targets are always set.  Actuals are recorded only for completed sets:
    completed ⇒ both actuals present, pending/skipped ⇒ both None.
    """

    id: int
    workout_id: int
    exercise_id: int
    set_number: int
    target_reps: int
    target_weight: float
    actual_reps: int | None = None
    actual_weight: float | None = None
    status: SetStatus = "pending"

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.status not in SET_STATUSES:
            raise ValueError(f"Invalid set status: {self.status}")
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.target_weight < 0:
            raise ValueError("target_weight must be non-negative")
        if (self.actual_reps is None) != (self.actual_weight is None):
            raise ValueError("actual_reps and actual_weight must both be set or both be None")
        if self.status == "completed" and self.actual_reps is None:
            raise ValueError("completed sets must record actual reps and weight")
        if self.status != "completed" and self.actual_reps is not None:
            raise ValueError(f"{self.status} sets must not record actual values")


@dataclass(frozen=True)
class SetCountChange:
    """Outcome of adding or removing a set, including propagation to later weeks."""

    workout_set: WorkoutSet | None
    future_workouts_affected: int
    future_sets_modified: int


@dataclass(frozen=True)
class LoggedSet:
    """The (weight, reps) pair of one completed set, used for best-set selection."""

    actual_weight: float
    actual_reps: int


# ---------------------------------------------------------------------------
# Derived engine records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PreviousWeekPerformance:
    """Best-set summary of one exercise in one week, judged against its targets."""

    exercise_id: int
    week_number: int
    target_weight: float
    target_reps: int
    actual_weight: float
    actual_reps: int
    hit_target: bool
    consecutive_failures: int


@dataclass(frozen=True)
class ProgressionResult:
    """Targets for the coming week plus the rule that produced them."""

    target_weight: float
    target_reps: int
    target_sets: int
    is_deload: bool
    reason: ProgressionReason


@dataclass(frozen=True)
class WeekTargets:
    """Targets for one exercise in one week, ready to write into sets."""

    exercise_id: int
    plan_exercise_id: int
    target_weight: float
    target_reps: int
    target_sets: int
    week_number: int
    is_deload: bool


@dataclass(frozen=True)
class CompletionStatus:
    """Whether all prescribed sets of an exercise were completed in a week."""

    exercise_id: int
    week_number: int
    all_sets_completed: bool
    completed_sets: int
    prescribed_sets: int


# ---------------------------------------------------------------------------
# Exercise history
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompletedSetRow:
    """A completed set joined with its workout metadata."""

    workout_id: int
    exercise_id: int
    set_number: int
    actual_weight: float
    actual_reps: int
    scheduled_date: str
    completed_at: str | None
    week_number: int
    mesocycle_id: int


@dataclass(frozen=True)
class HistorySet:
    """One set inside a history entry."""

    set_number: int
    weight: float
    reps: int


@dataclass
class HistoryEntry:
    """All completed sets of one exercise in one session."""

    workout_id: int
    date: str
    week_number: int
    mesocycle_id: int
    sets: list[HistorySet] = field(default_factory=list)
    best_weight: float = 0.0
    best_set_reps: int = 0


@dataclass(frozen=True)
class PersonalRecord:
    """Heaviest weight ever logged, with the reps and date it was first hit."""

    weight: float
    reps: int
    date: str


@dataclass
class ExerciseHistory:
    """Chronological session history plus the all-time personal record."""

    exercise_id: int
    exercise_name: str
    entries: list[HistoryEntry] = field(default_factory=list)
    personal_record: PersonalRecord | None = None
