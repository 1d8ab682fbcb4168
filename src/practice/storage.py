"""
Durable key-value slots used by the progress store.

The engine only needs two slots (progress records and the sequential cursor),
each holding a JSON string. JsonFileStore keeps one file per key in a data
directory; MemoryStore is used for tests and throwaway runs.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """Protocol for durable string slots."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the slot is empty."""
        ...

    def set(self, key: str, value: str) -> None:
        """Overwrite the slot. Must be durable when it returns."""
        ...

    def delete(self, key: str) -> None:
        """Clear the slot if present."""
        ...


class JsonFileStore:
    """
    Stores each key as {key}.json under a data directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a crash never leaves a half-written slot.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        filepath = self._path(key)
        if not filepath.exists():
            return None
        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path(key))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def delete(self, key: str) -> None:
        filepath = self._path(key)
        if filepath.exists():
            filepath.unlink()


class MemoryStore:
    """In-process store. Contents vanish with the object."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.slots: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def set(self, key: str, value: str) -> None:
        self.slots[key] = value

    def delete(self, key: str) -> None:
        self.slots.pop(key, None)
