"""
Integration tests for the training store, set/workout lifecycle and
mesocycle services.

Each test runs against a fresh JSON store in a temporary directory and goes
through the same service calls the CLI makes.

Reference plan (start 2024-01-01, a Monday):
  Upper  (Mon)  Bench Press 3 x 8 @ 100, range 8-12, +5
  Lower  (Thu)  Squat       2 x 10 @ 60, range 8-12, +2.5
  duration 2 weeks → week 3 is the deload week
"""

import json

import pytest

from progressive_overload.core.errors import (
    ActiveMesocycleExistsError,
    InvalidTransitionError,
    InvalidValueError,
    MesocycleStateError,
    NotFoundError,
    SetNotCompletedError,
    SetNotPendingError,
    WorkoutClosedError,
)
from progressive_overload.core.history import ExerciseHistoryService
from progressive_overload.core.lifecycle import WorkoutService, WorkoutSetService
from progressive_overload.core.mesocycle import MesocycleService, scheduled_date
from progressive_overload.io.serializers import ValidationError
from progressive_overload.io.training_store import TrainingStore


# ===========================================================================
# Helpers
# ===========================================================================


def _template(duration_weeks: int = 2, bench_weight: float = 100.0) -> dict:
    return {
        "name": "Upper/Lower",
        "duration_weeks": duration_weeks,
        "exercises": [
            {"name": "Bench Press", "weight_increment": 5},
            {"name": "Squat", "weight_increment": 2.5},
        ],
        "days": [
            {
                "name": "Upper",
                "day_of_week": 1,
                "exercises": [
                    {"exercise": "Bench Press", "sets": 3, "reps": 8, "weight": bench_weight,
                     "min_reps": 8, "max_reps": 12},
                ],
            },
            {
                "name": "Lower",
                "day_of_week": 4,
                "exercises": [
                    {"exercise": "Squat", "sets": 2, "reps": 10, "weight": 60,
                     "min_reps": 8, "max_reps": 12},
                ],
            },
        ],
    }


@pytest.fixture
def store(tmp_path):
    s = TrainingStore(tmp_path / "training.json")
    s.init()
    return s


def _start(store: TrainingStore, template: dict | None = None):
    plan = store.import_plan_template(template or _template())
    service = MesocycleService(store)
    meso = service.create(plan.id, "2024-01-01")
    service.start(meso.id)
    return service, service.get(meso.id)


def _workout(store: TrainingStore, meso_id: int, week: int, day_name: str):
    names = {d.id: d.name for d in store.find_plan_days(store.get_mesocycle(meso_id).plan_id)}
    for w in store.find_workouts(meso_id):
        if w.week_number == week and names[w.plan_day_id] == day_name:
            return w
    raise AssertionError(f"no {day_name} workout in week {week}")


def _bench_id(store: TrainingStore) -> int:
    return store.find_exercise_by_name("Bench Press").id


def _log_all(store: TrainingStore, workout_id: int, exercise_id: int, reps: int, weight: float) -> None:
    sets = WorkoutSetService(store)
    for ws in store.find_sets(workout_id, exercise_id):
        sets.log(ws.id, reps, weight)


# ===========================================================================
# Training store
# ===========================================================================


class TestTrainingStore:
    def test_init_creates_document(self, tmp_path):
        store = TrainingStore(tmp_path / "sub" / "training.json")
        assert not store.exists()
        store.init()
        assert store.exists()
        doc = json.loads(store.path.read_text())
        assert doc["exercises"] == []
        assert doc["next_ids"]["workouts"] == 1

    def test_missing_store_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TrainingStore(tmp_path / "none.json").list_plans()

    def test_corrupt_store_raises_validation_error(self, tmp_path):
        path = tmp_path / "training.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            TrainingStore(path).list_plans()

    def test_ids_increase(self, store):
        a = store.add_exercise("Press")
        b = store.add_exercise("Curl")
        assert (a.id, b.id) == (1, 2)

    def test_transaction_discards_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.add_exercise("Press")
                raise RuntimeError("boom")
        assert store.list_exercises() == []

    def test_transaction_commits(self, store):
        with store.transaction():
            store.add_exercise("Press")
            store.add_exercise("Curl")
        assert [e.name for e in TrainingStore(store.path).list_exercises()] == ["Press", "Curl"]

    def test_import_reuses_exercises_by_name(self, store):
        store.import_plan_template(_template())
        store.import_plan_template(_template())
        assert len(store.list_exercises()) == 2
        assert len(store.list_plans()) == 2

    def test_import_builds_days_in_order(self, store):
        plan = store.import_plan_template(_template())
        days = store.find_plan_days(plan.id)
        assert [d.name for d in days] == ["Upper", "Lower"]
        entries = store.find_plan_day_exercises(days[0].id)
        assert (entries[0].sets, entries[0].reps, entries[0].weight) == (3, 8, 100.0)

    def test_import_rejects_plan_without_days(self, store):
        template = _template()
        template["days"] = []
        with pytest.raises(ValidationError, match="no workout days"):
            store.import_plan_template(template)
        assert store.list_plans() == []

    def test_import_rejects_unknown_exercise(self, store):
        template = _template()
        template["days"][0]["exercises"][0]["exercise"] = "Deadlift"
        with pytest.raises(ValidationError):
            store.import_plan_template(template)

    def test_duplicate_set_number_rejected(self, store):
        store.add_set(1, 1, 1, 8, 100)
        with pytest.raises(ValidationError):
            store.add_set(1, 1, 1, 8, 100)

    def test_single_active_mesocycle_guard(self, store):
        plan = store.import_plan_template(_template())
        first = store.add_mesocycle(plan.id, "2024-01-01")
        second = store.add_mesocycle(plan.id, "2024-02-01")
        first.status = "active"
        store.update_mesocycle(first)
        second.status = "active"
        with pytest.raises(ActiveMesocycleExistsError):
            store.update_mesocycle(second)
        assert [m.id for m in store.find_active_mesocycles()] == [first.id]


# ===========================================================================
# Mesocycle generation
# ===========================================================================


class TestMesocycleStart:
    def test_generates_all_weeks_including_deload(self, store):
        _, meso = _start(store)
        workouts = store.find_workouts(meso.id)
        assert len(workouts) == 6
        assert sorted({w.week_number for w in workouts}) == [1, 2, 3]
        assert all(w.status == "pending" for w in workouts)

    def test_scheduled_dates(self, store):
        _, meso = _start(store)
        assert _workout(store, meso.id, 1, "Upper").scheduled_date == "2024-01-01"
        assert _workout(store, meso.id, 1, "Lower").scheduled_date == "2024-01-04"
        assert _workout(store, meso.id, 2, "Upper").scheduled_date == "2024-01-08"
        assert _workout(store, meso.id, 3, "Lower").scheduled_date == "2024-01-18"

    def test_day_before_start_moves_to_next_week(self):
        from datetime import date

        # 2024-01-03 is a Wednesday; Monday falls five days later
        assert scheduled_date(date(2024, 1, 3), 1, 1) == date(2024, 1, 8)

    def test_planned_targets(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        week1 = store.find_sets(_workout(store, meso.id, 1, "Upper").id, bench)
        week2 = store.find_sets(_workout(store, meso.id, 2, "Upper").id, bench)
        deload = store.find_sets(_workout(store, meso.id, 3, "Upper").id, bench)
        assert [(s.target_weight, s.target_reps) for s in week1] == [(100, 8)] * 3
        assert [(s.target_weight, s.target_reps) for s in week2] == [(100, 9)] * 3
        # deload from week 2 (100 x 9): 85 x 9, half the sets
        assert [(s.target_weight, s.target_reps) for s in deload] == [(85, 9)] * 2

    def test_status_active(self, store):
        service, meso = _start(store)
        assert meso.status == "active"
        assert service.get_active().id == meso.id

    def test_second_active_mesocycle_rejected(self, store):
        service, first = _start(store)
        plan_id = first.plan_id
        second = service.create(plan_id, "2024-03-01")
        with pytest.raises(ActiveMesocycleExistsError):
            service.start(second.id)
        assert service.get(second.id).status == "pending"
        assert store.find_workouts(second.id) == []

    def test_start_requires_pending(self, store):
        service, meso = _start(store)
        with pytest.raises(MesocycleStateError):
            service.start(meso.id)

    def test_create_unknown_plan(self, store):
        with pytest.raises(NotFoundError):
            MesocycleService(store).create(99, "2024-01-01")

    def test_create_plan_without_days(self, store):
        plan = store.add_plan("Empty", 4)
        with pytest.raises(InvalidValueError, match="no workout days"):
            MesocycleService(store).create(plan.id, "2024-01-01")

    def test_create_bad_date(self, store):
        plan = store.import_plan_template(_template())
        with pytest.raises(InvalidValueError):
            MesocycleService(store).create(plan.id, "01/01/2024")

    def test_complete_and_cancel_keep_data(self, store):
        service, meso = _start(store)
        service.complete(meso.id)
        assert service.get(meso.id).status == "completed"
        assert len(store.find_workouts(meso.id)) == 6
        with pytest.raises(MesocycleStateError):
            service.cancel(meso.id)

    def test_cancel_frees_active_slot(self, store):
        service, meso = _start(store)
        service.cancel(meso.id)
        assert service.get_active() is None
        nxt = service.create(meso.plan_id, "2024-02-01")
        service.start(nxt.id)
        assert service.get_active().id == nxt.id


# ===========================================================================
# Set lifecycle
# ===========================================================================


class TestSetLifecycle:
    def _first_set(self, store):
        _, meso = _start(store)
        workout = _workout(store, meso.id, 1, "Upper")
        return workout, store.find_sets(workout.id, _bench_id(store))[0]

    def test_log_completes_set_and_starts_workout(self, store):
        workout, ws = self._first_set(store)
        logged = WorkoutSetService(store).log(ws.id, 8, 100.0)
        assert logged.status == "completed"
        assert (logged.actual_reps, logged.actual_weight) == (8, 100.0)
        started = store.get_workout(workout.id)
        assert started.status == "in_progress"
        assert started.started_at is not None

    def test_log_unlog_round_trip(self, store):
        _, ws = self._first_set(store)
        service = WorkoutSetService(store)
        service.log(ws.id, 8, 100.0)
        reverted = service.unlog(ws.id)
        assert (reverted.actual_reps, reverted.actual_weight, reverted.status) == (None, None, "pending")
        assert store.get_set(ws.id) == reverted

    def test_log_twice_rejected(self, store):
        _, ws = self._first_set(store)
        service = WorkoutSetService(store)
        service.log(ws.id, 8, 100.0)
        with pytest.raises(SetNotPendingError):
            service.log(ws.id, 9, 100.0)

    def test_skip_then_log_rejected(self, store):
        _, ws = self._first_set(store)
        service = WorkoutSetService(store)
        skipped = service.skip(ws.id)
        assert skipped.status == "skipped"
        with pytest.raises(SetNotPendingError):
            service.log(ws.id, 8, 100.0)

    def test_skip_completed_rejected(self, store):
        _, ws = self._first_set(store)
        service = WorkoutSetService(store)
        service.log(ws.id, 8, 100.0)
        with pytest.raises(SetNotPendingError):
            service.skip(ws.id)

    def test_unlog_pending_rejected(self, store):
        _, ws = self._first_set(store)
        with pytest.raises(SetNotCompletedError):
            WorkoutSetService(store).unlog(ws.id)

    def test_unknown_set(self, store):
        with pytest.raises(NotFoundError):
            WorkoutSetService(store).log(999, 8, 100.0)

    def test_unknown_set_checked_before_values(self, store):
        with pytest.raises(NotFoundError):
            WorkoutSetService(store).log(99999, -1, 100.0)

    def test_transition_errors_are_not_not_found(self, store):
        _, ws = self._first_set(store)
        with pytest.raises(InvalidTransitionError) as exc:
            WorkoutSetService(store).unlog(ws.id)
        assert not isinstance(exc.value, NotFoundError)

    @pytest.mark.parametrize(
        "reps,weight",
        [(-1, 100.0), (8, -5.0), (True, 100.0), (8.5, 100.0), (8, float("nan")), (8, float("inf"))],
    )
    def test_invalid_values(self, store, reps, weight):
        _, ws = self._first_set(store)
        with pytest.raises(InvalidValueError):
            WorkoutSetService(store).log(ws.id, reps, weight)
        assert store.get_set(ws.id).status == "pending"

    def test_zero_reps_and_weight_allowed(self, store):
        _, ws = self._first_set(store)
        logged = WorkoutSetService(store).log(ws.id, 0, 0)
        assert (logged.actual_reps, logged.actual_weight) == (0, 0.0)

    def test_closed_workout_frozen(self, store):
        workout, ws = self._first_set(store)
        WorkoutService(store).skip(workout.id)
        service = WorkoutSetService(store)
        with pytest.raises(WorkoutClosedError, match="skipped workout"):
            service.log(ws.id, 8, 100.0)
        with pytest.raises(WorkoutClosedError):
            service.unlog(ws.id)


class TestSetCount:
    def test_add_set_copies_targets_and_propagates(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        change = WorkoutSetService(store).add_set(week1.id, bench)
        assert change.workout_set.set_number == 4
        assert (change.workout_set.target_weight, change.workout_set.target_reps) == (100, 8)
        # week 2 grows to 4; deload stays at ceil(4 / 2) = 2
        assert (change.future_workouts_affected, change.future_sets_modified) == (1, 1)
        assert len(store.find_sets(_workout(store, meso.id, 2, "Upper").id, bench)) == 4
        assert len(store.find_sets(_workout(store, meso.id, 3, "Upper").id, bench)) == 2

    def test_remove_set_propagates(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        change = WorkoutSetService(store).remove_set(week1.id, bench)
        assert change.workout_set is None
        assert len(store.find_sets(week1.id, bench)) == 2
        # week 2: 3 → 2, deload: 2 → 1
        assert (change.future_workouts_affected, change.future_sets_modified) == (2, 2)

    def test_cannot_remove_last_set(self, store):
        _, meso = _start(store)
        squat = store.find_exercise_by_name("Squat").id
        lower = _workout(store, meso.id, 1, "Lower")
        service = WorkoutSetService(store)
        service.remove_set(lower.id, squat)
        with pytest.raises(InvalidTransitionError, match="last set"):
            service.remove_set(lower.id, squat)

    def test_logged_sets_never_removed(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        _log_all(store, week1.id, bench, 8, 100.0)
        with pytest.raises(InvalidTransitionError, match="No pending"):
            WorkoutSetService(store).remove_set(week1.id, bench)

    def test_unknown_exercise_in_workout(self, store):
        _, meso = _start(store)
        with pytest.raises(NotFoundError):
            WorkoutSetService(store).add_set(_workout(store, meso.id, 1, "Upper").id, 999)


# ===========================================================================
# Workout lifecycle
# ===========================================================================


class TestWorkoutLifecycle:
    def test_start_then_complete(self, store):
        _, meso = _start(store)
        workout = _workout(store, meso.id, 1, "Upper")
        service = WorkoutService(store)
        assert service.start(workout.id).status == "in_progress"
        done = service.complete(workout.id)
        assert done.status == "completed"
        assert done.completed_at is not None
        assert {s.status for s in store.find_sets(workout.id)} == {"skipped"}

    def test_complete_keeps_logged_sets(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        workout = _workout(store, meso.id, 1, "Upper")
        first = store.find_sets(workout.id, bench)[0]
        WorkoutSetService(store).log(first.id, 8, 100.0)
        WorkoutService(store).complete(workout.id)
        statuses = [s.status for s in store.find_sets(workout.id, bench)]
        assert statuses == ["completed", "skipped", "skipped"]

    def test_start_requires_pending(self, store):
        _, meso = _start(store)
        workout = _workout(store, meso.id, 1, "Upper")
        service = WorkoutService(store)
        service.start(workout.id)
        with pytest.raises(InvalidTransitionError):
            service.start(workout.id)

    def test_complete_requires_in_progress(self, store):
        _, meso = _start(store)
        with pytest.raises(InvalidTransitionError):
            WorkoutService(store).complete(_workout(store, meso.id, 1, "Upper").id)

    def test_skip_twice_rejected(self, store):
        _, meso = _start(store)
        workout = _workout(store, meso.id, 1, "Upper")
        service = WorkoutService(store)
        service.skip(workout.id)
        with pytest.raises(InvalidTransitionError):
            service.skip(workout.id)

    def test_unknown_workout(self, store):
        with pytest.raises(NotFoundError):
            WorkoutService(store).start(42)


# ===========================================================================
# Progression feedback
# ===========================================================================


class TestNextWeekTargets:
    def test_hit_target_adds_rep(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        _log_all(store, week1.id, bench, 8, 100.0)
        [targets] = service.preview_next_week(week1.id)
        assert (targets.week_number, targets.target_weight, targets.target_reps, targets.target_sets) == (2, 100, 9, 3)

    def test_hit_max_adds_weight(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        _log_all(store, week1.id, bench, 12, 100.0)
        service.materialize_next_week(week1.id)
        week2 = store.find_sets(_workout(store, meso.id, 2, "Upper").id, bench)
        assert [(s.target_weight, s.target_reps) for s in week2] == [(105, 8)] * 3
        assert service.get(meso.id).current_week == 2

    def test_preview_does_not_write(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        _log_all(store, week1.id, bench, 12, 100.0)
        service.preview_next_week(week1.id)
        week2 = store.find_sets(_workout(store, meso.id, 2, "Upper").id, bench)
        assert week2[0].target_weight == 100

    def test_best_set_judges_session(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        sets = store.find_sets(week1.id, bench)
        log = WorkoutSetService(store)
        log.log(sets[0].id, 10, 100.0)
        log.log(sets[1].id, 8, 110.0)
        log.log(sets[2].id, 9, 105.0)
        perf = service.performance_for_workout(week1, bench)
        assert (perf.actual_weight, perf.actual_reps, perf.hit_target) == (110, 8, True)

    def test_no_completed_sets_resets_to_base(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        WorkoutService(store).skip(week1.id)
        assert service.performance_for_workout(week1, bench) is None
        service.materialize_next_week(week1.id)
        week2 = store.find_sets(_workout(store, meso.id, 2, "Upper").id, bench)
        assert [(s.target_weight, s.target_reps) for s in week2] == [(100, 8)] * 3

    def test_deload_week_targets(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week2 = _workout(store, meso.id, 2, "Upper")
        _log_all(store, week2.id, bench, 9, 100.0)
        [targets] = service.materialize_next_week(week2.id)
        assert targets.is_deload
        assert (targets.target_weight, targets.target_reps, targets.target_sets) == (85, 9, 2)
        deload = store.find_sets(_workout(store, meso.id, 3, "Upper").id, bench)
        assert len(deload) == 2

    def test_nothing_after_deload(self, store):
        service, meso = _start(store)
        assert service.preview_next_week(_workout(store, meso.id, 3, "Upper").id) == []

    def test_materialize_keeps_removed_set_count(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        week2 = _workout(store, meso.id, 2, "Upper")
        WorkoutSetService(store).remove_set(week2.id, bench)
        _log_all(store, week1.id, bench, 8, 100.0)
        [targets] = service.materialize_next_week(week1.id)
        assert targets.target_sets == 2
        assert len(store.find_sets(week2.id, bench)) == 2

    def test_added_set_survives_complete_workout(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        week2 = _workout(store, meso.id, 2, "Upper")
        WorkoutSetService(store).add_set(week1.id, bench)
        assert len(store.find_sets(week2.id, bench)) == 4
        _log_all(store, week1.id, bench, 8, 100.0)
        WorkoutService(store).complete(week1.id)
        service.materialize_next_week(week1.id)
        week2_sets = store.find_sets(week2.id, bench)
        assert [(s.target_weight, s.target_reps) for s in week2_sets] == [(100, 9)] * 4

    def test_deload_sized_from_current_set_count(self, store):
        service, meso = _start(store)
        bench = _bench_id(store)
        week2 = _workout(store, meso.id, 2, "Upper")
        sets = WorkoutSetService(store)
        sets.add_set(week2.id, bench)
        sets.add_set(week2.id, bench)
        _log_all(store, week2.id, bench, 9, 100.0)
        [targets] = service.materialize_next_week(week2.id)
        # ceil(5 / 2) = 3
        assert targets.target_sets == 3
        assert len(store.find_sets(_workout(store, meso.id, 3, "Upper").id, bench)) == 3

    def test_two_failures_regress(self, store):
        """7 @ 100 → hold at 8 @ 100; 6 @ 100 → regress to 95 x 8."""
        service, meso = _start(store, _template(duration_weeks=4, bench_weight=80.0))
        bench = _bench_id(store)
        week1 = _workout(store, meso.id, 1, "Upper")
        _log_all(store, week1.id, bench, 7, 100.0)
        [hold] = service.materialize_next_week(week1.id)
        assert (hold.target_weight, hold.target_reps) == (100, 8)

        week2 = _workout(store, meso.id, 2, "Upper")
        _log_all(store, week2.id, bench, 6, 100.0)
        assert service.performance_for_workout(week2, bench).consecutive_failures == 2
        [regress] = service.materialize_next_week(week2.id)
        assert (regress.target_weight, regress.target_reps) == (95, 8)


# ===========================================================================
# Exercise history
# ===========================================================================


class TestExerciseHistoryService:
    def test_sessions_and_record(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        _log_all(store, _workout(store, meso.id, 1, "Upper").id, bench, 8, 130.0)
        _log_all(store, _workout(store, meso.id, 2, "Upper").id, bench, 10, 130.0)

        history = ExerciseHistoryService(store).get_history(bench)
        assert history.exercise_name == "Bench Press"
        assert [e.date for e in history.entries] == ["2024-01-01", "2024-01-08"]
        assert [len(e.sets) for e in history.entries] == [3, 3]
        pr = history.personal_record
        assert (pr.weight, pr.reps, pr.date) == (130, 8, "2024-01-01")

    def test_known_exercise_without_history(self, store):
        store.import_plan_template(_template())
        history = ExerciseHistoryService(store).get_history(_bench_id(store))
        assert history.entries == []
        assert history.personal_record is None

    def test_unknown_exercise(self, store):
        assert ExerciseHistoryService(store).get_history(999) is None

    def test_unlogged_sets_drop_out(self, store):
        _, meso = _start(store)
        bench = _bench_id(store)
        workout = _workout(store, meso.id, 1, "Upper")
        first = store.find_sets(workout.id, bench)[0]
        service = WorkoutSetService(store)
        service.log(first.id, 8, 100.0)
        service.unlog(first.id)
        assert ExerciseHistoryService(store).get_history(bench).entries == []
