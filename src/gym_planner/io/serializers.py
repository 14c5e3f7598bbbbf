"""
JSON serialization for gym-planner data models.

Handles conversion between dataclasses and the JSON-compatible dicts kept
in the key-value store. The wire form keeps the camelCase keys of the
first storage schema (``programId``, ``startedAt``, ``finishedAt``,
``currentWeight``) so existing data stays readable.
"""

import json
import math
from typing import Any

from ..core.models import (
    ExerciseRecord,
    Program,
    ProgramItem,
    ProgramSection,
    RunInstance,
    RunSection,
)
from ..core.normalize import is_finite_number, normalize_exercise
from ..core.sessions import new_id


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_title(value: Any, name: str) -> str:
    """
    Validate that a title is a non-empty string.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The stripped title

    Raises:
        ValidationError: If the value is not a non-empty string
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string, got {value!r}")
    return value.strip()


def validate_positive_int(value: Any, name: str) -> int:
    """
    Validate that a value is a positive whole number.

    Raises:
        ValidationError: If the value is not a positive integer
    """
    if not is_finite_number(value) or value <= 0 or int(value) != value:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


def validate_weight(value: Any, name: str) -> float:
    """
    Validate a numeric weight.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if not is_finite_number(value):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    return float(value)


def _as_float(value: Any) -> float:
    """Stored weight to float; anything non-numeric becomes NaN so averages skip it."""
    return float(value) if is_finite_number(value) or isinstance(value, float) else math.nan


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _as_timestamp(value: Any) -> int | None:
    return int(value) if is_finite_number(value) else None


def _as_done(value: Any) -> bool:
    """Stored set flag to bool; only ``true`` and non-zero numbers count as done."""
    return value is True or (is_finite_number(value) and value != 0)


# =============================================================================
# PROGRAMS
# =============================================================================


def program_to_dict(program: Program) -> dict[str, Any]:
    """
    Convert Program to JSON-compatible dict.

    Args:
        program: Program to convert

    Returns:
        Dict representation
    """
    return {
        "id": program.id,
        "title": program.title,
        "notes": program.notes or "",
        "sections": [
            {
                "id": s.id,
                "title": s.title,
                "items": [
                    {"id": i.id, "title": i.title, "reps": i.reps, "weight": i.weight}
                    for i in s.items
                ],
            }
            for s in program.sections
        ],
    }


def dict_to_program(data: Any) -> Program:
    """
    Convert dict to Program, generating ids where they are missing.

    Used both for stored programs and for program files imported from the
    command line.

    Args:
        data: Dict representation

    Returns:
        Program instance

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Program must be a mapping, got {type(data).__name__}")

    title = validate_title(data.get("title"), "Program title")
    raw_sections = data.get("sections", [])
    if not isinstance(raw_sections, list):
        raise ValidationError("Program sections must be a list")

    sections: list[ProgramSection] = []
    for si, raw_section in enumerate(raw_sections, 1):
        if not isinstance(raw_section, dict):
            raise ValidationError(f"Section {si} must be a mapping")
        raw_items = raw_section.get("items", [])
        if not isinstance(raw_items, list):
            raise ValidationError(f"Section {si} items must be a list")

        items: list[ProgramItem] = []
        for ii, raw_item in enumerate(raw_items, 1):
            if not isinstance(raw_item, dict):
                raise ValidationError(f"Section {si} item {ii} must be a mapping")
            where = f"Section {si} item {ii}"
            items.append(ProgramItem(
                id=str(raw_item.get("id") or new_id()),
                title=validate_title(raw_item.get("title"), f"{where} title"),
                reps=validate_positive_int(raw_item.get("reps"), f"{where} reps"),
                weight=validate_weight(raw_item.get("weight", 0.0), f"{where} weight"),
            ))

        sections.append(ProgramSection(
            id=str(raw_section.get("id") or new_id()),
            title=validate_title(raw_section.get("title"), f"Section {si} title"),
            items=items,
        ))

    notes = data.get("notes")
    return Program(
        id=str(data.get("id") or new_id()),
        title=title,
        notes=notes if isinstance(notes, str) and notes else None,
        sections=sections,
    )


# =============================================================================
# RUNS
# =============================================================================


def exercise_record_to_dict(record: ExerciseRecord) -> dict[str, Any]:
    """Convert ExerciseRecord to JSON-compatible dict."""
    d: dict[str, Any] = {
        "id": record.id,
        "title": record.title,
        "reps": record.reps,
        # JSON has no NaN; unreadable weights go back out as null
        "weights": [w if math.isfinite(w) else None for w in record.weights],
        "done": list(record.done),
        "notes": record.notes or "",
    }
    if record.current_weight is not None:
        d["currentWeight"] = record.current_weight
    return d


def dict_to_exercise_record(data: Any, fallback_id: str) -> ExerciseRecord:
    """
    Convert a stored exercise mapping to ExerciseRecord.

    The mapping is normalized first, so this never fails on malformed
    input. A record without an id gets ``fallback_id``, which callers derive
    from its position so it stays stable across loads.
    """
    fixed = normalize_exercise(data)
    notes = fixed.get("notes")
    legacy = fixed.get("currentWeight")
    return ExerciseRecord(
        id=str(fixed.get("id") or fallback_id),
        title=_as_str(fixed.get("title")),
        reps=fixed["reps"],
        weights=[_as_float(w) for w in fixed["weights"]],
        done=[_as_done(d) for d in fixed["done"]],
        notes=notes if isinstance(notes, str) and notes else None,
        current_weight=float(legacy) if is_finite_number(legacy) else None,
    )


def run_instance_to_dict(run: RunInstance) -> dict[str, Any]:
    """
    Convert RunInstance to JSON-compatible dict.

    Args:
        run: RunInstance to convert

    Returns:
        Dict representation
    """
    d: dict[str, Any] = {
        "id": run.id,
        "programId": run.program_id,
        "startedAt": run.started_at,
        "title": run.title,
        "sections": [
            {
                "id": s.id,
                "title": s.title,
                "items": [exercise_record_to_dict(i) for i in s.items],
            }
            for s in run.sections
        ],
    }
    if run.finished_at is not None:
        d["finishedAt"] = run.finished_at
    return d


def dict_to_run_instance(data: Any, fallback_id: str) -> RunInstance:
    """
    Convert a migrated run mapping to RunInstance.

    Args:
        data: Run mapping that already went through the migrator
        fallback_id: Id used when the stored run has none

    Returns:
        RunInstance instance

    Raises:
        ValidationError: If the value is not a run mapping with a sections list
    """
    if not isinstance(data, dict) or not isinstance(data.get("sections"), list):
        raise ValidationError("Run must be a mapping with a sections list")

    run_id = str(data.get("id") or fallback_id)
    sections: list[RunSection] = []
    for si, raw_section in enumerate(data["sections"]):
        if not isinstance(raw_section, dict):
            continue
        section_id = str(raw_section.get("id") or f"{run_id}-s{si}")
        raw_items = raw_section.get("items")
        items = [
            dict_to_exercise_record(raw_item, f"{section_id}-e{ii}")
            for ii, raw_item in enumerate(raw_items if isinstance(raw_items, list) else [])
        ]
        sections.append(RunSection(
            id=section_id,
            title=_as_str(raw_section.get("title")),
            items=items,
        ))

    finished_at = _as_timestamp(data.get("finishedAt"))
    started_at = _as_timestamp(data.get("startedAt"))
    if started_at is None:
        # Unknown start: a finished run counts as zero minutes long
        started_at = finished_at if finished_at is not None else 0

    return RunInstance(
        id=run_id,
        program_id=_as_str(data.get("programId")),
        started_at=started_at,
        title=_as_str(data.get("title")),
        finished_at=finished_at,
        sections=sections,
    )


def dumps(collection: list[dict[str, Any]]) -> str:
    """
    Encode a collection for the key-value store.

    Raises:
        ValueError: If a non-finite float would end up in the text
    """
    return json.dumps(collection, ensure_ascii=False, allow_nan=False)


def loads(text: str | None) -> Any:
    """
    Decode stored text.

    Bare ``NaN``/``Infinity`` tokens written by older versions decode as
    ``None``, so everything read here can be written back as strict JSON.

    Raises:
        ValidationError: If the text is not valid JSON
    """
    if not text:
        return []
    try:
        return json.loads(text, parse_constant=lambda _token: None)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Stored data is not valid JSON: {e}") from e
