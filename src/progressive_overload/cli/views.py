"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of mesocycles, workouts, targets and
exercise history.
"""

from rich.console import Console
from rich.table import Table

from ..core.models import (
    Exercise,
    ExerciseHistory,
    Mesocycle,
    Plan,
    WeekTargets,
    Workout,
    WorkoutSet,
)

console = Console()

STATUS_STYLES = {
    "pending": "dim",
    "active": "bold green",
    "in_progress": "yellow",
    "completed": "green",
    "skipped": "magenta",
    "cancelled": "red",
}


def _status_cell(status: str) -> str:
    style = STATUS_STYLES.get(status, "")
    return f"[{style}]{status}[/{style}]" if style else status


def fmt_weight(weight: float | None) -> str:
    """Format a weight without a trailing .0 for whole numbers."""
    if weight is None:
        return "-"
    return f"{weight:g}"


def format_plans_table(plans: list[Plan]) -> Table:
    table = Table(title="Plans")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Weeks", justify="right")
    for plan in plans:
        table.add_row(str(plan.id), plan.name, str(plan.duration_weeks))
    return table


def format_exercises_table(exercises: list[Exercise]) -> Table:
    table = Table(title="Exercises")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Increment", justify="right")
    table.add_column("Custom")
    for ex in exercises:
        table.add_row(str(ex.id), ex.name, fmt_weight(ex.weight_increment), "yes" if ex.is_custom else "")
    return table


def format_mesocycles_table(mesocycles: list[Mesocycle]) -> Table:
    table = Table(title="Mesocycles")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Plan", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("Week", justify="right")
    table.add_column("Status")
    for m in mesocycles:
        table.add_row(str(m.id), str(m.plan_id), m.start_date, str(m.current_week), _status_cell(m.status))
    return table


def format_workouts_table(workouts: list[Workout], day_names: dict[int, str]) -> Table:
    """
    Create a Rich table of a mesocycle's workouts.

    Args:
        workouts: Workouts ordered by week
        day_names: Plan day id -> display name

    Returns:
        Rich Table object
    """
    table = Table(title="Workouts")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Week", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Status")
    for w in workouts:
        table.add_row(
            str(w.id),
            str(w.week_number),
            w.scheduled_date,
            day_names.get(w.plan_day_id, str(w.plan_day_id)),
            _status_cell(w.status),
        )
    return table


def format_sets_table(sets: list[WorkoutSet], exercise_names: dict[int, str]) -> Table:
    table = Table(title="Sets")
    table.add_column("Set ID", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Actual", justify="right", style="bold")
    table.add_column("Status")
    for s in sets:
        actual = "-" if s.actual_reps is None else f"{fmt_weight(s.actual_weight)} x {s.actual_reps}"
        table.add_row(
            str(s.id),
            exercise_names.get(s.exercise_id, str(s.exercise_id)),
            str(s.set_number),
            f"{fmt_weight(s.target_weight)} x {s.target_reps}",
            actual,
            _status_cell(s.status),
        )
    return table


def format_targets_table(targets: list[WeekTargets], exercise_names: dict[int, str]) -> Table:
    week = targets[0].week_number if targets else "?"
    title = f"Targets for week {week}"
    if targets and targets[0].is_deload:
        title += " (deload)"
    table = Table(title=title)
    table.add_column("Exercise", style="cyan")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("Sets", justify="right")
    for t in targets:
        table.add_row(
            exercise_names.get(t.exercise_id, str(t.exercise_id)),
            fmt_weight(t.target_weight),
            str(t.target_reps),
            str(t.target_sets),
        )
    return table


def print_workout(workout: Workout, sets: list[WorkoutSet], exercise_names: dict[int, str]) -> None:
    console.print(
        f"[bold]Workout {workout.id}[/bold]  week {workout.week_number}  "
        f"{workout.scheduled_date}  {_status_cell(workout.status)}"
    )
    console.print(format_sets_table(sets, exercise_names))


def print_targets(targets: list[WeekTargets], exercise_names: dict[int, str]) -> None:
    if not targets:
        console.print("[yellow]No further weeks in this mesocycle.[/yellow]")
        return
    console.print(format_targets_table(targets, exercise_names))


def print_exercise_history(history: ExerciseHistory) -> None:
    """
    Print an exercise's session history and personal record.

    Args:
        history: ExerciseHistory to display
    """
    if not history.entries:
        console.print(f"[yellow]No completed sets for {history.exercise_name} yet.[/yellow]")
        return

    table = Table(title=f"History: {history.exercise_name}")
    table.add_column("Date", style="cyan")
    table.add_column("Meso", justify="right", style="dim")
    table.add_column("Week", justify="right")
    table.add_column("Best", justify="right", style="bold")
    table.add_column("Sets")
    for entry in history.entries:
        table.add_row(
            entry.date,
            str(entry.mesocycle_id),
            str(entry.week_number),
            f"{fmt_weight(entry.best_weight)} x {entry.best_set_reps}",
            ", ".join(f"{fmt_weight(s.weight)}x{s.reps}" for s in entry.sets),
        )
    console.print(table)

    pr = history.personal_record
    if pr is not None:
        console.print(f"PR: [bold]{fmt_weight(pr.weight)} x {pr.reps}[/bold] on {pr.date}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
