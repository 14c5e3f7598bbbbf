"""
Pure progress computations for a single session or exercise.

Inputs are expected to be normalized (typed records always are).
"""

import math
from dataclasses import dataclass

from .models import ExerciseRecord, RunInstance


@dataclass(frozen=True)
class SessionProgress:
    """Completed sets out of total sets, with a whole-number percentage."""

    done_sets: int
    total_sets: int
    percent: int


def _percent(done: int, total: int) -> int:
    # Half rounds up, matching how the percentage has always been displayed
    if total <= 0:
        return 0
    return math.floor(done / total * 100 + 0.5)


def exercise_progress(record: ExerciseRecord) -> SessionProgress:
    """Progress of a single exercise record."""
    done = record.done_sets
    return SessionProgress(done_sets=done, total_sets=record.reps, percent=_percent(done, record.reps))


def session_progress(run: RunInstance) -> SessionProgress:
    """
    Completion of a whole session.

    total_sets is the sum of reps over all records; done_sets the number of
    True flags. percent is 0 for a session with no sets.

    Args:
        run: Session to measure

    Returns:
        SessionProgress
    """
    total = 0
    done = 0
    for record in run.iter_exercises():
        total += record.reps
        done += record.done_sets
    return SessionProgress(done_sets=done, total_sets=total, percent=_percent(done, total))


def average_completed_weight(record: ExerciseRecord) -> float | None:
    """
    Mean weight over the sets that were actually completed.

    A set counts only when it is marked done and its weight is a finite
    number; NaN or infinite weights are skipped, not treated as zero.

    Args:
        record: Exercise record

    Returns:
        Mean weight, or None when no set qualifies. None is "no data" and
        must not be summed or plotted as zero.
    """
    total = 0.0
    n = 0
    for i in range(record.reps):
        w = record.weights[i]
        if record.done[i] and math.isfinite(w):
            total += w
            n += 1
    if n == 0:
        return None
    return total / n
