"""Analysis commands: stats, progress."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.analytics import compute_stats, recent_workouts, top_exercises, weight_history
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store, weight_unit


@app.command()
def stats(data_dir: DataDirOption = None, json_out: JsonOption = False) -> None:
    """
    Show training statistics: workouts, weekly count, streak, time trained.
    """
    store = get_store(data_dir)
    runs = store.load_runs()
    now = datetime.now()

    summary = compute_stats(runs, now)
    recent = recent_workouts(runs)

    if json_out:
        print(json.dumps({
            "total_workouts": summary.total_workouts,
            "this_week": summary.this_week,
            "distinct_exercises": summary.distinct_exercises,
            "average_weight": summary.average_weight,
            "streak": summary.streak,
            "total_minutes": summary.total_minutes,
            "recent": [
                {
                    "id": w.id,
                    "title": w.title,
                    "finished_at": w.finished_at.isoformat(timespec="seconds"),
                    "exercises": w.exercises,
                }
                for w in recent
            ],
        }, indent=2))
        return

    views.print_stats(summary, recent, runs, now=now, unit=weight_unit())


@app.command()
def progress(
    exercise: Annotated[
        Optional[str],
        typer.Argument(help="Exercise title (default: most trained exercises)"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the average completed weight per session for an exercise.

    Without an exercise, charts the exercises with the most sessions.
    """
    store = get_store(data_dir)
    runs = store.load_runs()

    if exercise is None:
        series = top_exercises(runs)
        if not series:
            series = weight_history(runs)
    else:
        history = weight_history(runs)
        wanted = exercise.strip().lower()
        series = {t: pts for t, pts in history.items() if t.lower() == wanted}
        if not series:
            views.print_error(f"No completed sets recorded for '{exercise}'")
            raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            title: [
                {"date": p.date.isoformat(timespec="seconds"), "weight": p.weight, "sets": p.sets}
                for p in points
            ]
            for title, points in series.items()
        }, indent=2))
        return

    if not series:
        views.print_info("No completed sets in finished sessions yet.")
        return

    unit = weight_unit()
    for title, points in series.items():
        views.print_weight_history(title, points, unit=unit)
