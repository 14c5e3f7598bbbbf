"""
Schema repair for stored sessions.

Exercise records written by older versions may lack the per-set ``weights``
and ``done`` lists, or carry lists whose length no longer matches ``reps``
(reps edited after sets existed). These functions work on the plain
mappings read from storage and always return a repaired copy; they never
raise and never mutate their input.

Both ``normalize_exercise`` and ``migrate_runs`` are idempotent and are
applied on every load, not once.
"""

import math
from typing import Any

from .config import DEFAULT_REPS, DEFAULT_WEIGHT


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are finite. Bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _resolve_reps(record: dict[str, Any]) -> int:
    reps = record.get("reps")
    if is_finite_number(reps) and reps > 0:
        return max(DEFAULT_REPS, int(reps))

    done = record.get("done")
    if isinstance(done, list) and done:
        return len(done)

    return DEFAULT_REPS


def normalize_exercise(raw: Any) -> dict[str, Any]:
    """
    Repair one exercise record so that ``len(weights) == len(done) == reps``.

    Algorithm:
        1. reps = record reps if a finite positive number, else len(done)
           when done is a non-empty list, else 1
        2. truncate weights to reps
        3. seed = currentWeight if finite, else weights[0] if finite, else 0
        4. pad weights with seed
        5. truncate done to reps, pad with False

    Keys other than reps/weights/done are copied unchanged.

    Args:
        raw: Exercise record mapping (anything else is treated as empty)

    Returns:
        New dict satisfying the length invariant
    """
    record: dict[str, Any] = dict(raw) if isinstance(raw, dict) else {}

    reps = _resolve_reps(record)

    existing = record.get("weights")
    weights = list(existing[:reps]) if isinstance(existing, list) else []

    legacy = record.get("currentWeight")
    if is_finite_number(legacy):
        seed = legacy
    elif weights and is_finite_number(weights[0]):
        seed = weights[0]
    else:
        seed = DEFAULT_WEIGHT

    weights.extend([seed] * (reps - len(weights)))

    existing_done = record.get("done")
    done = list(existing_done[:reps]) if isinstance(existing_done, list) else []
    done.extend([False] * (reps - len(done)))

    record["reps"] = reps
    record["weights"] = weights
    record["done"] = done
    return record


def migrate_run(raw: Any) -> Any:
    """
    Normalize every exercise record of one stored run.

    A value without a ``sections`` list cannot be repaired and is returned
    unchanged. Sections that are not mappings are also left alone.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("sections"), list):
        return raw

    sections = []
    for section in raw["sections"]:
        if not isinstance(section, dict):
            sections.append(section)
            continue
        items = section.get("items")
        sections.append({
            **section,
            "items": [normalize_exercise(i) for i in items] if isinstance(items, list) else [],
        })

    return {**raw, "sections": sections}


def migrate_runs(raw: Any) -> list[Any]:
    """
    Normalize a whole stored run collection.

    Args:
        raw: Decoded run collection; anything but a list or tuple yields []

    Returns:
        New list of migrated runs, same order and length as the input
    """
    if not isinstance(raw, (list, tuple)):
        return []
    return [migrate_run(r) for r in raw]
