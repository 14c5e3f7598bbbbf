"""
ASCII plotting for exercise weight progress and weekly frequency.

Creates terminal-friendly charts from analytics output.
"""

from datetime import datetime, timedelta

from .analytics import WeightPoint
from .config import PLOT_HEIGHT, PLOT_WIDTH, WEIGHT_UNIT
from .models import RunInstance
from .sessions import to_epoch_ms


def _draw_staircase(
    grid: list[list[str]],
    plot_points: list[tuple[int, int]],
    plot_width: int,
    plot_height: int,
) -> None:
    """Connect consecutive points with staircase segments (╭─╯)."""
    for i in range(len(plot_points) - 1):
        col1, row1 = plot_points[i]
        col2, row2 = plot_points[i + 1]

        n_rows = abs(row2 - row1)
        if n_rows == 0:
            for x in range(col1 + 1, col2):
                if 0 <= x < plot_width and grid[row1][x] == " ":
                    grid[row1][x] = "─"
            continue

        if col1 == col2:
            for r in range(min(row1, row2) + 1, max(row1, row2)):
                if 0 <= col1 < plot_width and 0 <= r < plot_height and grid[r][col1] == " ":
                    grid[r][col1] = "│"
            continue

        row_dir = -1 if row2 < row1 else 1  # -1 = going up (heavier)
        up = row_dir == -1
        corner_exit = "╯" if up else "╮"
        corner_entry = "╭" if up else "╰"

        n_segs = n_rows + 1

        for step in range(n_segs):
            row = row1 + row_dir * step
            pivot_in = col1 + (col2 - col1) * step // n_segs
            pivot_out = col1 + (col2 - col1) * (step + 1) // n_segs

            def _p(x: int, ch: str, r: int = row) -> None:
                if 0 <= x < plot_width and 0 <= r < plot_height and grid[r][x] == " ":
                    grid[r][x] = ch

            if step == 0:
                for x in range(col1 + 1, pivot_out):
                    _p(x, "─")
                _p(pivot_out, corner_exit)
            elif step == n_segs - 1:
                _p(pivot_in, corner_entry)
                for x in range(pivot_in + 1, col2):
                    _p(x, "─")
            else:
                _p(pivot_in, corner_entry)
                for x in range(pivot_in + 1, pivot_out):
                    _p(x, "─")
                _p(pivot_out, corner_exit)


def create_weight_plot(
    points: list[WeightPoint],
    exercise_name: str,
    width: int = PLOT_WIDTH,
    height: int = PLOT_HEIGHT,
    unit: str = WEIGHT_UNIT,
) -> str:
    """
    Create an ASCII plot of an exercise's average completed weight over time.

    Args:
        points: Weight history of one exercise (any order)
        exercise_name: Display name shown in chart title
        width: Plot width in characters
        height: Plot height in lines
        unit: Weight label for the axis

    Returns:
        ASCII art string
    """
    if not points:
        return f"No completed sets recorded for {exercise_name} yet."

    ordered = sorted(points, key=lambda p: p.date)

    min_date = ordered[0].date
    max_date = ordered[-1].date
    span = (max_date - min_date).total_seconds()
    if span <= 0:
        span = 1.0

    w_min = min(p.weight for p in ordered)
    w_max = max(p.weight for p in ordered)
    pad = max(1.0, (w_max - w_min) * 0.1)
    y_min = max(0.0, w_min - pad)
    y_max = w_max + pad
    y_range = y_max - y_min

    plot_width = width - 9  # Leave room for y-axis labels
    plot_height = height - 3  # Leave room for x-axis and title

    grid = [[" " for _ in range(plot_width)] for _ in range(plot_height)]

    plot_points: list[tuple[int, int]] = []
    for p in ordered:
        x = int(((p.date - min_date).total_seconds() / span) * (plot_width - 1))
        y = int(((p.weight - y_min) / y_range) * (plot_height - 1))
        plot_points.append((x, plot_height - 1 - y))

    _draw_staircase(grid, plot_points, plot_width, plot_height)

    for x, y in plot_points:
        if 0 <= x < plot_width and 0 <= y < plot_height:
            grid[y][x] = "●"

    lines = [f"Average completed weight ({exercise_name})", "─" * width]

    for i, row in enumerate(grid):
        y_val = y_max - (i / (plot_height - 1)) * y_range if plot_height > 1 else y_max
        lines.append(f"{y_val:6.1f} ┤" + "".join(row))

    lines.append("─" * width)

    label_line = [" "] * plot_width
    dates_to_show = [(0, min_date)]
    if max_date != min_date:
        dates_to_show.append((plot_width - 6, max_date))
    for x_pos, date in dates_to_show:
        for j, c in enumerate(date.strftime("%b %d")):
            if 0 <= x_pos + j < plot_width:
                label_line[x_pos + j] = c
    lines.append(" " * 8 + "".join(label_line))
    lines.append(f"● avg {unit} per session ({len(ordered)} sessions)")

    return "\n".join(lines)


def create_simple_bar_chart(
    labels: list[str],
    values: list[float],
    width: int = 40,
    title: str = "",
) -> str:
    """
    Create a simple horizontal bar chart.

    Args:
        labels: Labels for each bar
        values: Values for each bar
        width: Maximum bar width
        title: Chart title

    Returns:
        ASCII bar chart string
    """
    if not values:
        return "No data to display."

    max_val = max(values)
    max_label_len = max(len(l) for l in labels) if labels else 0

    lines = []

    if title:
        lines.append(title)
        lines.append("─" * (max_label_len + width + 5))

    for label, value in zip(labels, values):
        bar_len = int((value / max_val) * width) if max_val > 0 else 0
        bar = "█" * bar_len
        lines.append(f"{label:>{max_label_len}} │{bar} {value:.0f}")

    return "\n".join(lines)


def create_weekly_frequency_chart(
    runs: list[RunInstance],
    weeks: int = 4,
    now: datetime | None = None,
) -> str:
    """
    Chart finished sessions per trailing 7-day week.

    Args:
        runs: Session history
        weeks: Number of weeks to show
        now: Reference time (default: now)

    Returns:
        ASCII chart string
    """
    finished = [r.finished_at for r in runs if r.finished_at is not None]
    if not finished:
        return "No finished sessions."

    now_ms = to_epoch_ms(now)
    week_ms = int(timedelta(weeks=1).total_seconds() * 1000)

    counts: dict[int, int] = {}
    for finished_at in finished:
        weeks_ago = (now_ms - finished_at) // week_ms
        if 0 <= weeks_ago < weeks:
            counts[weeks_ago] = counts.get(weeks_ago, 0) + 1

    labels = []
    values = []
    for i in range(weeks - 1, -1, -1):
        if i == 0:
            labels.append("This week")
        elif i == 1:
            labels.append("Last week")
        else:
            labels.append(f"{i} weeks ago")
        values.append(float(counts.get(i, 0)))

    return create_simple_bar_chart(labels, values, title="Weekly Frequency (Sessions)")
