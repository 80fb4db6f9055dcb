"""Key/value storage for small persistent flags (e.g. onboarding seen)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

__all__ = [
    "WELCOME_SEEN",
    "FlagStore",
    "MemoryFlagStore",
    "JsonFlagStore",
]

WELCOME_SEEN = "welcome-seen"


class FlagStore(Protocol):
    def get(self, key: str) -> bool:
        """Return the stored flag, ``False`` when unset."""

    def set(self, key: str, value: bool = True) -> None:
        """Persist ``value`` under ``key``."""


class MemoryFlagStore:
    """In-process flag store."""

    def __init__(self, initial: dict[str, bool] | None = None) -> None:
        self._flags = dict(initial or {})

    def get(self, key: str) -> bool:
        return bool(self._flags.get(key, False))

    def set(self, key: str, value: bool = True) -> None:
        self._flags[key] = bool(value)


class JsonFlagStore:
    """Flags persisted as a JSON object in a single file.

    An unreadable or corrupt file is treated as empty and rewritten on the
    next ``set``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, bool]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (FileNotFoundError, json.JSONDecodeError, UnicodeDecodeError):
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(key): bool(value) for key, value in raw.items()}

    def get(self, key: str) -> bool:
        return self._read().get(key, False)

    def set(self, key: str, value: bool = True) -> None:
        flags = self._read()
        flags[key] = bool(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(flags, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)
