"""Reading ``quizzer.toml`` style documents into default tables."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = ["TomlConfigError", "load_toml", "merge_defaults"]


class TomlConfigError(RuntimeError):
    """A config file is missing, unparsable or has keys we do not know."""


def load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(f"Could not parse {path.name}: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Copy ``override`` onto the defaults in ``base``.

    ``base`` fixes the allowed shape: every key must already exist there and
    a table stays a table. Errors name the dotted key, e.g.
    ``grading.model``.
    """

    for key, value in override.items():
        dotted = path + key
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        target = base[key]
        if not isinstance(target, MutableMapping):
            base[key] = value
        elif isinstance(value, Mapping):
            merge_defaults(target, value, path=dotted + ".")
        else:
            raise TomlConfigError(
                f"Expected table for '{dotted}', found {type(value).__name__}."
            )
