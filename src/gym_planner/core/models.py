"""
Data models for gym-planner.

Programs are reusable templates; run instances are snapshots of a program
executed over time. A run owns its sections and exercise records outright
and never points back into the template except through ``program_id``.
"""

from dataclasses import dataclass, field


@dataclass
class ProgramItem:
    """
    A template exercise: how many sets to do and at what default weight.
    """

    id: str
    title: str
    reps: int
    weight: float = 0.0

    def __post_init__(self) -> None:
        """Validate item data."""
        if self.reps <= 0:
            raise ValueError("reps must be positive")


@dataclass
class ProgramSection:
    """A body-part or category grouping inside a program."""

    id: str
    title: str
    items: list[ProgramItem] = field(default_factory=list)


@dataclass
class Program:
    """
    A reusable workout blueprint.

    Sessions snapshot a program when they start; later edits to the program
    do not reach sessions that already exist.
    """

    id: str
    title: str
    notes: str | None = None
    sections: list[ProgramSection] = field(default_factory=list)

    @property
    def exercise_count(self) -> int:
        """Number of items across all sections."""
        return sum(len(s.items) for s in self.sections)


@dataclass
class ExerciseRecord:
    """
    One exercise inside a running or finished session.

    ``reps`` is the number of sets and is authoritative for the length of
    ``weights`` (one value per set) and ``done`` (one flag per set).
    ``current_weight`` is the scalar weight used by the first storage
    schema, kept so old records can be re-seeded.
    """

    id: str
    title: str
    reps: int
    weights: list[float] = field(default_factory=list)
    done: list[bool] = field(default_factory=list)
    notes: str | None = None
    current_weight: float | None = None

    def __post_init__(self) -> None:
        """Validate the per-set arrays against reps."""
        if self.reps <= 0:
            raise ValueError("reps must be positive")
        if len(self.weights) != self.reps or len(self.done) != self.reps:
            raise ValueError(
                f"Exercise {self.id!r}: weights ({len(self.weights)}) and "
                f"done ({len(self.done)}) must both have {self.reps} entries"
            )

    @property
    def done_sets(self) -> int:
        """Count of sets marked done."""
        return sum(1 for d in self.done if d)


@dataclass
class RunSection:
    """A section of a run, holding exercise records."""

    id: str
    title: str
    items: list[ExerciseRecord] = field(default_factory=list)


@dataclass
class RunInstance:
    """
    A workout session created from a program.

    Timestamps are epoch milliseconds. ``finished_at`` is None while the
    session is active; once set, the session is terminal.
    """

    id: str
    program_id: str
    started_at: int
    title: str
    finished_at: int | None = None
    sections: list[RunSection] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        """True once the session has been finished."""
        return self.finished_at is not None

    @property
    def exercise_count(self) -> int:
        """Number of exercise records across all sections."""
        return sum(len(s.items) for s in self.sections)

    def iter_exercises(self):
        """Yield every exercise record in section order."""
        for section in self.sections:
            yield from section.items
