"""
Session creation and set-level edits.

A session (RunInstance) is a deep, one-time snapshot of a program. Edits
never touch their input: each returns a new RunInstance with the targeted
exercise rebuilt through ``dataclasses.replace``, which re-runs the
record's length validation.
"""

import math
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import Any

from .config import DEFAULT_WEIGHT
from .models import ExerciseRecord, Program, RunInstance, RunSection


class SessionFinishedError(Exception):
    """Raised when editing or re-finishing a session that is already finished."""

    pass


def new_id() -> str:
    """Return a fresh unique identifier."""
    return uuid.uuid4().hex


def to_epoch_ms(moment: datetime | None = None) -> int:
    """Convert a datetime (default: now) to epoch milliseconds."""
    if moment is None:
        return int(time.time() * 1000)
    return int(moment.timestamp() * 1000)


def coerce_weight(raw: Any) -> float:
    """
    Turn user weight input into a number.

    Non-numeric, empty or non-finite input becomes 0.0 rather than an error.

    Args:
        raw: Value typed by the user (str, int, float or None)

    Returns:
        Finite float weight
    """
    if isinstance(raw, bool):
        return DEFAULT_WEIGHT
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_WEIGHT
    return value if math.isfinite(value) else DEFAULT_WEIGHT


def start_run(program: Program, now: datetime | None = None) -> RunInstance:
    """
    Instantiate a new session from a program.

    Every set of an item starts at the item's default weight and not done.
    Section and exercise copies get fresh ids so the run shares nothing
    with the program.

    Args:
        program: Template to snapshot
        now: Start time (default: current time)

    Returns:
        New active RunInstance
    """
    sections = [
        RunSection(
            id=new_id(),
            title=section.title,
            items=[
                ExerciseRecord(
                    id=new_id(),
                    title=item.title,
                    reps=item.reps,
                    weights=[item.weight] * item.reps,
                    done=[False] * item.reps,
                    notes="",
                    current_weight=item.weight,
                )
                for item in section.items
            ],
        )
        for section in program.sections
    ]

    return RunInstance(
        id=new_id(),
        program_id=program.id,
        started_at=to_epoch_ms(now),
        title=program.title,
        finished_at=None,
        sections=sections,
    )


def find_exercise(run: RunInstance, exercise_id: str) -> ExerciseRecord:
    """
    Look up an exercise record by id.

    Raises:
        KeyError: If the run has no exercise with that id
    """
    for record in run.iter_exercises():
        if record.id == exercise_id:
            return record
    raise KeyError(f"Exercise {exercise_id!r} not found in session {run.id!r}")


def _patch_exercise(
    run: RunInstance,
    exercise_id: str,
    patcher: Callable[[ExerciseRecord], ExerciseRecord],
) -> RunInstance:
    if run.is_finished:
        raise SessionFinishedError(f"Session {run.id!r} is finished and can no longer be edited")

    find_exercise(run, exercise_id)

    return replace(
        run,
        sections=[
            replace(
                section,
                items=[patcher(r) if r.id == exercise_id else r for r in section.items],
            )
            for section in run.sections
        ],
    )


def _check_index(record: ExerciseRecord, set_index: int) -> None:
    if not 0 <= set_index < record.reps:
        raise IndexError(
            f"Set index {set_index} out of range for {record.title!r} (0-{record.reps - 1})"
        )


def toggle_set(run: RunInstance, exercise_id: str, set_index: int) -> RunInstance:
    """
    Flip the done flag of one set.

    Args:
        run: Active session
        exercise_id: Exercise record id
        set_index: 0-based set index

    Returns:
        New RunInstance with the flag flipped

    Raises:
        SessionFinishedError: If the session is finished
        KeyError: If the exercise does not exist
        IndexError: If set_index is out of range
    """
    def patch(record: ExerciseRecord) -> ExerciseRecord:
        _check_index(record, set_index)
        done = list(record.done)
        done[set_index] = not done[set_index]
        return replace(record, done=done)

    return _patch_exercise(run, exercise_id, patch)


def set_weight(run: RunInstance, exercise_id: str, set_index: int, value: Any) -> RunInstance:
    """
    Set the weight of one set. ``value`` is coerced with coerce_weight.

    Raises:
        SessionFinishedError: If the session is finished
        KeyError: If the exercise does not exist
        IndexError: If set_index is out of range
    """
    weight = coerce_weight(value)

    def patch(record: ExerciseRecord) -> ExerciseRecord:
        _check_index(record, set_index)
        weights = list(record.weights)
        weights[set_index] = weight
        return replace(record, weights=weights)

    return _patch_exercise(run, exercise_id, patch)


def update_notes(run: RunInstance, exercise_id: str, notes: str) -> RunInstance:
    """Replace the free-text notes of one exercise."""
    return _patch_exercise(run, exercise_id, lambda r: replace(r, notes=notes or None))


def finish_run(run: RunInstance, now: datetime | None = None) -> RunInstance:
    """
    Mark a session finished.

    Raises:
        SessionFinishedError: If the session already has a finish time
    """
    if run.is_finished:
        raise SessionFinishedError(f"Session {run.id!r} is already finished")
    return replace(run, finished_at=to_epoch_ms(now))
