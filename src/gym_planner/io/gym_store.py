"""
Program and session storage on top of a key-value text store.

Programs live under PROGRAMS_KEY and runs under RUNS_KEY, each as one JSON
array. Runs are always passed through the migrator on load, so callers
only ever see records that satisfy the per-set length invariant.
"""

import logging
from pathlib import Path
from typing import Any, TypeVar

from ..core.config import LEGACY_PROGRAMS_KEY, LEGACY_RUNS_KEY, PROGRAMS_KEY, RUNS_KEY
from ..core.models import Program, RunInstance
from ..core.normalize import migrate_runs
from .kv_store import FileKeyValueStore, KeyValueStore
from .serializers import (
    ValidationError,
    dict_to_program,
    dict_to_run_instance,
    dumps,
    loads,
    program_to_dict,
    run_instance_to_dict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", Program, RunInstance)

# (old key, current key) pairs copied forward on first access
LEGACY_KEY_MAP: tuple[tuple[str, str], ...] = (
    (LEGACY_PROGRAMS_KEY, PROGRAMS_KEY),
    (LEGACY_RUNS_KEY, RUNS_KEY),
)


def migrate_legacy_keys(backend: KeyValueStore) -> list[str]:
    """
    Copy data from the first-schema keys to the current keys.

    A key is copied only when the old key holds text and the current key
    holds nothing. The text is copied verbatim; record-level repair happens
    later, on load.

    Args:
        backend: Key-value store to upgrade

    Returns:
        Current-key names that were populated
    """
    copied: list[str] = []
    for old_key, new_key in LEGACY_KEY_MAP:
        try:
            old_text = backend.load(old_key)
            if old_text and not backend.load(new_key):
                logger.info("Copying legacy data from %s to %s", old_key, new_key)
                backend.save(new_key, old_text)
                copied.append(new_key)
        except OSError as e:
            logger.error("Legacy key migration %s -> %s failed: %s", old_key, new_key, e)
    return copied


def _match(entries: list[T], ident: str, kind: str) -> T:
    """Find an entry by exact id, else by unique id prefix."""
    for entry in entries:
        if entry.id == ident:
            return entry
    hits = [e for e in entries if ident and e.id.startswith(ident)]
    if len(hits) == 1:
        return hits[0]
    if not hits:
        raise KeyError(f"{kind} not found: {ident}")
    raise KeyError(f"{kind} id {ident!r} is ambiguous ({len(hits)} matches)")


class GymStore:
    """
    Manages programs and runs persisted in a key-value store.

    Reads never fail on missing or corrupt data: an unreadable store or
    undecodable text is logged and treated as an empty collection. Writes
    propagate OSError to the caller.
    """

    def __init__(self, backend: KeyValueStore):
        """
        Initialize the store.

        Args:
            backend: Key-value text store
        """
        self.backend = backend
        self._legacy_checked = False
        # (stored index, entry) for runs that cannot be turned into a RunInstance;
        # written back untouched at the same position
        self._opaque_runs: list[tuple[int, Any]] = []

    def _ensure_legacy_migrated(self) -> None:
        if not self._legacy_checked:
            migrate_legacy_keys(self.backend)
            self._legacy_checked = True

    def _read(self, key: str) -> Any:
        self._ensure_legacy_migrated()
        try:
            text = self.backend.load(key)
        except OSError as e:
            logger.warning("Store unavailable, using empty %s: %s", key, e)
            return []
        try:
            return loads(text)
        except ValidationError as e:
            logger.warning("Discarding corrupt data under %s: %s", key, e)
            return []

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------

    def load_programs(self) -> list[Program]:
        """
        Load all programs.

        Entries that fail validation are skipped with a warning.
        """
        raw = self._read(PROGRAMS_KEY)
        if not isinstance(raw, list):
            return []

        programs: list[Program] = []
        for i, entry in enumerate(raw):
            try:
                programs.append(dict_to_program(entry))
            except ValidationError as e:
                logger.warning("Skipping stored program #%d: %s", i, e)
        return programs

    def save_programs(self, programs: list[Program]) -> None:
        """Replace the stored program collection."""
        self.backend.save(PROGRAMS_KEY, dumps([program_to_dict(p) for p in programs]))

    def get_program(self, ident: str) -> Program:
        """
        Look up a program by id or unique id prefix.

        Raises:
            KeyError: If no single program matches
        """
        return _match(self.load_programs(), ident, "Program")

    def save_program(self, program: Program) -> None:
        """Insert a program, or replace the stored one with the same id."""
        programs = self.load_programs()
        for i, existing in enumerate(programs):
            if existing.id == program.id:
                programs[i] = program
                break
        else:
            programs.append(program)
        self.save_programs(programs)

    def delete_program(self, program_id: str) -> None:
        """
        Delete a program. Runs created from it are kept.

        Raises:
            KeyError: If the program does not exist
        """
        programs = self.load_programs()
        remaining = [p for p in programs if p.id != program_id]
        if len(remaining) == len(programs):
            raise KeyError(f"Program not found: {program_id}")
        self.save_programs(remaining)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def load_raw_runs(self) -> list[Any]:
        """Load the stored run collection, migrated but not converted."""
        return migrate_runs(self._read(RUNS_KEY))

    def load_runs(self) -> list[RunInstance]:
        """
        Load all runs in stored order.

        Returns:
            Migrated RunInstances. Stored entries that are not runs at all
            are kept aside and written back unchanged, at their stored
            position, on the next save.
        """
        runs: list[RunInstance] = []
        self._opaque_runs = []
        for i, entry in enumerate(self.load_raw_runs()):
            try:
                runs.append(dict_to_run_instance(entry, fallback_id=f"run-{i}"))
            except ValidationError as e:
                logger.warning("Keeping unreadable stored run #%d as-is: %s", i, e)
                self._opaque_runs.append((i, entry))
        return runs

    def save_runs(self, runs: list[RunInstance]) -> None:
        """Replace the stored run collection."""
        payload: list[Any] = [run_instance_to_dict(r) for r in runs]
        for index, entry in self._opaque_runs:
            payload.insert(min(index, len(payload)), entry)
        self.backend.save(RUNS_KEY, dumps(payload))

    def get_run(self, ident: str) -> RunInstance:
        """
        Look up a run by id or unique id prefix.

        Raises:
            KeyError: If no single run matches
        """
        return _match(self.load_runs(), ident, "Session")

    def save_run(self, run: RunInstance) -> None:
        """Insert a run, or replace the stored one with the same id."""
        runs = self.load_runs()
        for i, existing in enumerate(runs):
            if existing.id == run.id:
                runs[i] = run
                break
        else:
            runs.append(run)
        self.save_runs(runs)

    def delete_run(self, run_id: str) -> None:
        """
        Delete a run wholesale.

        Raises:
            KeyError: If the run does not exist
        """
        runs = self.load_runs()
        remaining = [r for r in runs if r.id != run_id]
        if len(remaining) == len(runs):
            raise KeyError(f"Session not found: {run_id}")
        self.save_runs(remaining)


def get_store(data_dir: str | Path) -> GymStore:
    """
    Get a GymStore backed by JSON files in data_dir.

    Returns:
        GymStore instance
    """
    return GymStore(FileKeyValueStore(data_dir))
