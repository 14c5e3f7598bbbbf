"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of programs, sessions and statistics.
"""

import math
from datetime import datetime

from rich.console import Console
from rich.table import Table

from ..core.analytics import RecentWorkout, WeightPoint, WorkoutStats, ms_to_datetime
from ..core.ascii_plot import create_weekly_frequency_chart, create_weight_plot
from ..core.config import PROGRESS_BAR_WIDTH, WEIGHT_UNIT
from ..core.models import Program, RunInstance
from ..core.progress import average_completed_weight, exercise_progress, session_progress

console = Console()

SHORT_ID = 8


def short_id(ident: str) -> str:
    """Abbreviated id for tables; any unique prefix is accepted back."""
    return ident[:SHORT_ID]


def format_timestamp(ms: int | None) -> str:
    """Epoch ms to 'Mon 03.02 18:30', or '-' when unset."""
    if ms is None:
        return "-"
    return ms_to_datetime(ms).strftime("%a %d.%m %H:%M")


def _fmt_weight(value: float, unit: str = WEIGHT_UNIT) -> str:
    if not math.isfinite(value):
        return "-"
    return f"{value:g} {unit}"


def progress_bar(percent: int, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Text progress bar, e.g. '[████░░░░] 50%'."""
    filled = int(round(width * percent / 100))
    return f"[green]{'█' * filled}[/green][dim]{'░' * (width - filled)}[/dim] {percent}%"


def format_programs_table(programs: list[Program]) -> Table:
    """
    Create a Rich table listing programs.

    Args:
        programs: Programs to display

    Returns:
        Rich Table object
    """
    table = Table(title="Programs")

    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Sections", justify="right")
    table.add_column("Exercises", justify="right")
    table.add_column("Notes")

    for program in programs:
        table.add_row(
            short_id(program.id),
            program.title,
            str(len(program.sections)),
            str(program.exercise_count),
            program.notes or "",
        )

    return table


def print_programs(programs: list[Program]) -> None:
    """Print the program list."""
    if not programs:
        console.print("[yellow]No programs yet. Use 'import-program' to add one.[/yellow]")
        return
    console.print(format_programs_table(programs))


def format_runs_table(runs: list[RunInstance], title: str) -> Table:
    """
    Create a Rich table of sessions with their progress.

    Args:
        runs: Sessions to display
        title: Table title

    Returns:
        Rich Table object
    """
    table = Table(title=title)

    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Started", style="magenta")
    table.add_column("Finished", style="green")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Progress", justify="right", style="bold")

    for run in runs:
        prog = session_progress(run)
        table.add_row(
            short_id(run.id),
            run.title,
            format_timestamp(run.started_at),
            format_timestamp(run.finished_at),
            str(run.exercise_count),
            f"{prog.done_sets}/{prog.total_sets}",
            f"{prog.percent}%",
        )

    return table


def print_runs(runs: list[RunInstance], title: str, empty_message: str) -> None:
    """Print a session list, or a notice if there is none."""
    if not runs:
        console.print(f"[yellow]{empty_message}[/yellow]")
        return
    console.print(format_runs_table(runs, title))


def print_run(run: RunInstance, unit: str = WEIGHT_UNIT) -> None:
    """
    Print one session with every set.

    Args:
        run: Session to display
        unit: Weight label
    """
    prog = session_progress(run)
    state = "[green]Finished[/green]" if run.is_finished else "[yellow]In progress[/yellow]"

    console.print()
    console.print(f"[bold cyan]{run.title}[/bold cyan]  {state}  [dim]{short_id(run.id)}[/dim]")
    console.print(f"Started {format_timestamp(run.started_at)}", end="")
    if run.is_finished:
        console.print(f"  ·  finished {format_timestamp(run.finished_at)}", end="")
    console.print()
    console.print(f"Progress {prog.done_sets}/{prog.total_sets} sets  " + progress_bar(prog.percent))

    for section in run.sections:
        table = Table(title=section.title, title_justify="left", show_header=True)
        table.add_column("ID", style="dim")
        table.add_column("Exercise", style="cyan")
        table.add_column("Sets")
        table.add_column("Done", justify="right")
        table.add_column("Avg done", justify="right", style="bold")

        for record in section.items:
            cells = [
                f"[green]✔ {_fmt_weight(w, unit)}[/green]" if d else f"[dim]{i}: {_fmt_weight(w, unit)}[/dim]"
                for i, (w, d) in enumerate(zip(record.weights, record.done), 1)
            ]
            avg = average_completed_weight(record)
            ep = exercise_progress(record)
            table.add_row(
                short_id(record.id),
                record.title + (f"\n[dim]{record.notes}[/dim]" if record.notes else ""),
                "  ".join(cells),
                f"{ep.done_sets}/{ep.total_sets}",
                _fmt_weight(avg, unit) if avg is not None else "-",
            )

        console.print(table)


def format_stats_display(stats: WorkoutStats, unit: str = WEIGHT_UNIT) -> str:
    """
    Format dashboard statistics as text block.

    Args:
        stats: Computed statistics
        unit: Weight label

    Returns:
        Formatted string
    """
    hours, minutes = divmod(stats.total_minutes, 60)
    return "\n".join([
        "Training summary",
        f"- Workouts:        {stats.total_workouts}",
        f"- This week:       {stats.this_week}",
        f"- Streak:          {stats.streak} day{'s' if stats.streak != 1 else ''}",
        f"- Exercises:       {stats.distinct_exercises}",
        f"- Average weight:  {stats.average_weight:g} {unit}",
        f"- Time trained:    {hours}h{minutes:02d}",
    ])


def print_stats(
    stats: WorkoutStats,
    recent: list[RecentWorkout],
    runs: list[RunInstance],
    now: datetime | None = None,
    unit: str = WEIGHT_UNIT,
) -> None:
    """Print the dashboard: summary, weekly frequency and recent workouts."""
    console.print(format_stats_display(stats, unit))
    console.print()
    console.print(create_weekly_frequency_chart(runs, now=now))

    if not recent:
        return

    console.print()
    table = Table(title="Recent workouts", show_header=True, header_style="dim")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Finished", style="green")
    table.add_column("Exercises", justify="right")
    for w in recent:
        table.add_row(
            short_id(w.id), w.title, w.finished_at.strftime("%a %d.%m %H:%M"), str(w.exercises)
        )
    console.print(table)


def print_weight_history(title: str, points: list[WeightPoint], unit: str = WEIGHT_UNIT) -> None:
    """
    Print the weight series of one exercise as a table and a chart.

    Args:
        title: Exercise title
        points: Chronological weight points
        unit: Weight label
    """
    table = Table(title=f"{title}: average per session", show_header=True)
    table.add_column("Date", style="cyan")
    table.add_column("Avg done", justify="right", style="bold")
    table.add_column("Sets", justify="right")
    for p in points:
        table.add_row(p.date.strftime("%a %d.%m"), _fmt_weight(round(p.weight, 2), unit), str(p.sets))
    console.print(table)
    console.print(create_weight_plot(points, title, unit=unit))
    console.print()


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
