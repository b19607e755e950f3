"""
Performance aggregation: best set per session and failure streaks.

A session is judged by its single best set (heaviest weight, ties broken by
reps), never by an average.  Failure streaks only count weeks at the same
load: any weight change resets the streak.
"""

from typing import Iterable, Protocol, Sequence

from .models import PreviousWeekPerformance


class _Logged(Protocol):
    actual_weight: float | None
    actual_reps: int | None


def select_best_set(sets: Iterable[_Logged]) -> _Logged | None:
    """
    Pick the best set: highest actual_weight, ties broken by highest actual_reps.

    Sets without recorded actuals are ignored.  The first set wins an exact tie.

    Args:
        sets: Logged sets (LoggedSet, WorkoutSet, CompletedSetRow, ...)

    Returns:
        The best set, or None if no set has actuals
    """
    best: _Logged | None = None
    for s in sets:
        if s.actual_weight is None or s.actual_reps is None:
            continue
        if best is None:
            best = s
            continue
        if s.actual_weight > best.actual_weight or (
            s.actual_weight == best.actual_weight and s.actual_reps > best.actual_reps
        ):
            best = s
    return best


def calculate_consecutive_failures(
    performance_history: Sequence[PreviousWeekPerformance],
    current_weight: float,
    min_reps: int,
) -> int:
    """
    Count consecutive failed weeks at the current weight.

    Scans newest-first and stops at the first week logged at another weight
    or the first week that reached min_reps.

    Args:
        performance_history: Prior performances, newest first
        current_weight: Weight of the session being judged
        min_reps: Bottom of the rep range

    Returns:
        Number of consecutive failures in the history
    """
    failures = 0
    for perf in performance_history:
        if perf.actual_weight != current_weight:
            break
        if perf.actual_reps >= min_reps:
            break
        failures += 1
    return failures


def build_previous_week_performance(
    exercise_id: int,
    week_number: int,
    target_weight: float,
    target_reps: int,
    completed_sets: Iterable[_Logged],
    min_reps: int,
    performance_history: Sequence[PreviousWeekPerformance] = (),
) -> PreviousWeekPerformance | None:
    """
    Reduce one week's completed sets for an exercise to a performance record.

    Args:
        exercise_id: Exercise the sets belong to
        week_number: Week the sets were logged in
        target_weight: Weight prescribed for that week
        target_reps: Reps prescribed for that week
        completed_sets: Completed sets of that week
        min_reps: Bottom of the rep range (failure threshold)
        performance_history: Earlier performances, newest first

    Returns:
        PreviousWeekPerformance, or None if nothing was completed.  Callers
        treat None like a first exposure, never as a failure.
    """
    best = select_best_set(completed_sets)
    if best is None:
        return None

    actual_weight = float(best.actual_weight)  # type: ignore[arg-type]
    actual_reps = int(best.actual_reps)  # type: ignore[arg-type]

    if actual_reps < min_reps:
        streak = calculate_consecutive_failures(performance_history, actual_weight, min_reps) + 1
    else:
        streak = 0

    return PreviousWeekPerformance(
        exercise_id=exercise_id,
        week_number=week_number,
        target_weight=target_weight,
        target_reps=target_reps,
        actual_weight=actual_weight,
        actual_reps=actual_reps,
        hit_target=actual_reps >= target_reps,
        consecutive_failures=streak,
    )
