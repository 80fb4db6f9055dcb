"""Configuration loader for the quiz command."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from anatomy_quiz.core import config as core_config
from anatomy_quiz.core import workspace as workspace_mod
from anatomy_quiz.core.ai import DEFAULT_API_BASE

from .models import DEFAULT_MODEL, Mode, ModelTier

CONFIG_FILENAME = "quizzer.toml"
CONFIG_ENV = "ANATOMY_QUIZ_CONFIG"
ENV_PREFIX = "ANATOMY_QUIZ_"
FLAGS_FILENAME = "flags.json"
LOG_FILENAME = "quizzer.log"

_DEFAULT_LOG_LEVEL = "INFO"


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved configuration for a quiz session."""

    model: ModelTier
    api_base: str
    request_timeout: Optional[float]
    mode: Optional[Mode]
    bank_path: Optional[Path]
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    model: Optional[ModelTier] = None
    mode: Optional[Mode] = None
    bank_path: Optional[Path] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]

    @property
    def flags_path(self) -> Path:
        return self.layout.path_for("state") / FLAGS_FILENAME


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    file_options = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(file_options, parsed)
        except core_config.TomlConfigError as exc:
            raise QuizConfigError(str(exc)) from exc
    elif config_path is not None or _env_string(env_map, "CONFIG"):
        raise QuizConfigError(f"Config file not found: {requested_path}")

    grading = file_options["grading"]
    session = file_options["session"]

    model = _pick_first(
        overrides.model,
        _env_enum(env_map, "MODEL", ModelTier.from_value),
        _file_enum(grading["model"], "grading.model", ModelTier.from_value),
    )
    mode = _pick_first(
        overrides.mode,
        _env_enum(env_map, "MODE", Mode.from_value),
        _file_enum(session["mode"], "session.mode", Mode.from_value),
    )
    api_base = _pick_first(
        _env_string(env_map, "API_BASE"),
        _file_string(grading["api_base"], "grading.api_base"),
    )
    request_timeout = _pick_first(
        _env_timeout(env_map),
        _coerce_timeout(
            grading["request_timeout_seconds"],
            "grading.request_timeout_seconds",
        ),
    )
    bank_path = _resolve_bank_path(
        _pick_first(
            overrides.bank_path,
            _env_path(env_map, "BANK_PATH"),
            _coerce_optional_path(session["bank_path"], "session.bank_path"),
        ),
        layout=layout,
    )
    log_level = _resolve_log_level(
        overrides.log_level,
        _env_string(env_map, "LOG_LEVEL"),
        file_options["logging"]["level"],
    )

    config = QuizConfig(
        model=model or DEFAULT_MODEL,
        api_base=api_base or DEFAULT_API_BASE,
        request_timeout=request_timeout,
        mode=mode,
        bank_path=bank_path,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "grading": {
            "model": DEFAULT_MODEL.value,
            "api_base": None,
            "request_timeout_seconds": None,
        },
        "session": {"mode": None, "bank_path": None},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = _env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _file_enum(value: object, key: str, parse):
    if value is None:
        return None
    if not isinstance(value, str):
        raise QuizConfigError(f"{key} must be a string.")
    if not value.strip():
        return None
    try:
        return parse(value)
    except ValueError as exc:
        raise QuizConfigError(f"{key}: {exc}") from exc


def _file_string(value: object, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise QuizConfigError(f"{key} must be a string.")
    return value.strip() or None


def _coerce_timeout(value: object, key: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizConfigError(f"{key} must be a number.")
    if value <= 0:
        raise QuizConfigError(f"{key} must be greater than zero.")
    return float(value)


def _coerce_optional_path(value: object, key: str) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, str):
        raw = value.strip()
        return Path(raw).expanduser() if raw else None
    raise QuizConfigError(f"{key} must be a string when provided.")


def _resolve_bank_path(
    candidate: Optional[Path], *, layout: workspace_mod.WorkspaceLayout
) -> Optional[Path]:
    if candidate is None:
        return None
    if not candidate.is_absolute():
        return (layout.path_for("banks") / candidate).resolve()
    return candidate


def _resolve_log_level(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
) -> str:
    candidate = _pick_first(override, env_value, file_value)
    if not isinstance(candidate, str):
        raise QuizConfigError("logging.level must be a string.")
    level = candidate.strip()
    if not level:
        raise QuizConfigError("logging.level must be a non-empty string.")
    return level.upper()


def _env_enum(env_map: Mapping[str, str], key: str, parse):
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    try:
        return parse(raw)
    except ValueError as exc:
        raise QuizConfigError(f"{ENV_PREFIX}{key}: {exc}") from exc


def _env_timeout(env_map: Mapping[str, str]) -> Optional[float]:
    raw = _env_string(env_map, "REQUEST_TIMEOUT_SECONDS")
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise QuizConfigError(
            f"{ENV_PREFIX}REQUEST_TIMEOUT_SECONDS must be a number."
        ) from exc
    return _coerce_timeout(value, f"{ENV_PREFIX}REQUEST_TIMEOUT_SECONDS")


def _env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates):
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
