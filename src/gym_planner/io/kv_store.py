"""
Key-value text storage backends.

The planner persists everything as text under a handful of keys. Any
object with ``load(key)`` and ``save(key, text)`` will do; two backends
ship here.
"""

import os
from pathlib import Path
from typing import Protocol


class KeyValueStore(Protocol):
    """Minimal text store: ``load`` returns None for a missing key."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, text: str) -> None: ...


class FileKeyValueStore:
    """
    Stores each key as ``<root>/<key>.json``.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written value behind.
    """

    def __init__(self, root: str | Path):
        """
        Initialize the store.

        Args:
            root: Directory holding one file per key
        """
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        """Return the file backing a key."""
        return self.root / f"{key}.json"

    def load(self, key: str) -> str | None:
        """
        Read the text stored under key.

        Returns:
            Stored text, or None if the key has never been written

        Raises:
            OSError: If the file exists but cannot be read
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, text: str) -> None:
        """
        Write text under key, creating the directory if needed.

        Raises:
            OSError: If the directory or file cannot be written
        """
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)


class MemoryKeyValueStore:
    """In-process store, used by tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.data.get(key)

    def save(self, key: str, text: str) -> None:
        self.data[key] = text
