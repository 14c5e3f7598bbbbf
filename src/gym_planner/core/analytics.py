"""
Training analytics over a session history.

Everything here is a pure function of the (migrated) list of runs and an
optional ``now``; nothing is cached between calls. Unless stated otherwise
only finished runs are counted.

Two weight aggregates coexist on purpose:
- ``average_weight`` in WorkoutStats is the plain mean of every record's
  own mean weight, done or not.
- ``weight_history`` uses the completed-sets-only average per session.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .config import (
    AVERAGE_WEIGHT_DECIMALS,
    MS_PER_MINUTE,
    RECENT_WORKOUTS_LIMIT,
    STREAK_MAX_DAYS,
    TOP_EXERCISES_LIMIT,
    TOP_EXERCISES_MIN_SESSIONS,
    WEEK_WINDOW_HOURS,
)
from .models import ExerciseRecord, RunInstance
from .progress import average_completed_weight
from .sessions import to_epoch_ms


@dataclass(frozen=True)
class WorkoutStats:
    """Dashboard summary of a session history."""

    total_workouts: int
    this_week: int
    distinct_exercises: int
    average_weight: float
    streak: int
    total_minutes: int


@dataclass(frozen=True)
class WeightPoint:
    """Completed-sets average weight of one exercise in one finished session."""

    date: datetime
    weight: float
    sets: int  # completed sets that went into the average
    run_id: str


@dataclass(frozen=True)
class RecentWorkout:
    """Compact view of a finished session."""

    id: str
    title: str
    finished_at: datetime
    exercises: int


def _round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def ms_to_datetime(ms: int) -> datetime:
    """Epoch milliseconds to a local naive datetime."""
    return datetime.fromtimestamp(ms / 1000)


def active_runs(runs: list[RunInstance]) -> list[RunInstance]:
    """Unfinished runs, in stored order."""
    return [r for r in runs if not r.is_finished]


def finished_runs(runs: list[RunInstance]) -> list[RunInstance]:
    """Finished runs, most recently finished first."""
    done = [r for r in runs if r.is_finished]
    done.sort(key=lambda r: r.finished_at, reverse=True)  # type: ignore[arg-type,return-value]
    return done


def count_this_week(runs: list[RunInstance], now: datetime | None = None) -> int:
    """Finished runs whose finish time lies in the trailing 7×24h window."""
    cutoff = to_epoch_ms(now) - WEEK_WINDOW_HOURS * 60 * MS_PER_MINUTE
    return sum(1 for r in runs if r.finished_at is not None and r.finished_at > cutoff)


def distinct_exercise_count(runs: list[RunInstance]) -> int:
    """Distinct exercise titles over all runs, finished or not."""
    return len({rec.title for r in runs for rec in r.iter_exercises()})


def _record_mean_weight(record: ExerciseRecord) -> float | None:
    values = [w for w in record.weights if math.isfinite(w)]
    if not values:
        return None
    return sum(values) / len(values)


def average_weight(runs: list[RunInstance]) -> float:
    """
    Mean of per-record mean weights across finished runs.

    Not restricted to done sets. Records without a finite weight are left
    out. Returns 0.0 when there is nothing to average.
    """
    means: list[float] = []
    for run in runs:
        if not run.is_finished:
            continue
        for record in run.iter_exercises():
            mean = _record_mean_weight(record)
            if mean is not None:
                means.append(mean)

    if not means:
        return 0.0
    return _round_half_up(sum(means) / len(means), AVERAGE_WEIGHT_DECIMALS)


def calculate_streak(runs: list[RunInstance], now: datetime | None = None) -> int:
    """
    Consecutive calendar days, ending today, with at least one finished run.

    Walks backward from today (local time) and stops at the first day
    without a finished run, or after STREAK_MAX_DAYS days.

    Args:
        runs: Session history
        now: Reference time (default: current local time)

    Returns:
        Streak length in days; 0 when nothing was finished today
    """
    workout_days: set[date] = {
        ms_to_datetime(r.finished_at).date() for r in runs if r.finished_at is not None
    }
    if not workout_days:
        return 0

    day = (now or datetime.now()).date()
    streak = 0
    for _ in range(STREAK_MAX_DAYS):
        if day not in workout_days:
            break
        streak += 1
        day -= timedelta(days=1)
    return streak


def total_minutes(runs: list[RunInstance]) -> int:
    """Total duration of finished runs in whole minutes; runs without a usable start count as zero."""
    total_ms = sum(
        r.finished_at - r.started_at
        for r in runs
        if r.finished_at is not None and 0 < r.started_at <= r.finished_at
    )
    return int(_round_half_up(total_ms / MS_PER_MINUTE))


def compute_stats(runs: list[RunInstance], now: datetime | None = None) -> WorkoutStats:
    """
    Compute all dashboard statistics for a history.

    Args:
        runs: Migrated session history
        now: Reference time for the weekly window and the streak

    Returns:
        WorkoutStats
    """
    now = now or datetime.now()
    return WorkoutStats(
        total_workouts=sum(1 for r in runs if r.is_finished),
        this_week=count_this_week(runs, now),
        distinct_exercises=distinct_exercise_count(runs),
        average_weight=average_weight(runs),
        streak=calculate_streak(runs, now),
        total_minutes=total_minutes(runs),
    )


def weight_history(runs: list[RunInstance]) -> dict[str, list[WeightPoint]]:
    """
    Per-exercise weight series over finished runs.

    Exercises are keyed by their stripped title; blank titles are ignored.
    A finished run contributes one point to an exercise when it holds at
    least one completed set of it. If the exercise appears more than once
    in a run, the first occurrence with completed sets gives the value.
    Runs with no completed set for the exercise contribute nothing.

    Args:
        runs: Migrated session history

    Returns:
        Mapping of exercise title to points sorted by finish time.
        Titles are in order of first appearance.
    """
    chronological = sorted(
        (r for r in runs if r.finished_at is not None),
        key=lambda r: r.finished_at,  # type: ignore[arg-type,return-value]
    )

    series: dict[str, list[WeightPoint]] = {}
    for run in chronological:
        seen: set[str] = set()
        for record in run.iter_exercises():
            key = record.title.strip()
            if not key or key in seen:
                continue
            avg = average_completed_weight(record)
            if avg is None:
                continue
            seen.add(key)
            series.setdefault(key, []).append(WeightPoint(
                date=ms_to_datetime(run.finished_at),  # type: ignore[arg-type]
                weight=avg,
                sets=sum(
                    1 for w, d in zip(record.weights, record.done) if d and math.isfinite(w)
                ),
                run_id=run.id,
            ))
    return series


def top_exercises(
    runs: list[RunInstance],
    min_sessions: int = TOP_EXERCISES_MIN_SESSIONS,
    limit: int = TOP_EXERCISES_LIMIT,
) -> dict[str, list[WeightPoint]]:
    """Exercises with the most charted sessions (at least min_sessions), best first."""
    history = weight_history(runs)
    ranked = sorted(
        ((title, points) for title, points in history.items() if len(points) >= min_sessions),
        key=lambda item: len(item[1]),
        reverse=True,
    )
    return dict(ranked[:limit])


def recent_workouts(
    runs: list[RunInstance], limit: int = RECENT_WORKOUTS_LIMIT
) -> list[RecentWorkout]:
    """The latest finished runs, most recent first."""
    return [
        RecentWorkout(
            id=r.id,
            title=r.title,
            finished_at=ms_to_datetime(r.finished_at),  # type: ignore[arg-type]
            exercises=r.exercise_count,
        )
        for r in finished_runs(runs)[:limit]
    ]
