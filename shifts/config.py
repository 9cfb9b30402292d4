"""Engine settings loaded from YAML with environment overrides."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from core.cli_errors import ConfigError
from core.constants import (
    DEFAULT_MAX_HOURS,
    DEFAULT_OVERTIME_THRESHOLD,
    MAX_BULK_WEEKS,
    settings_paths,
)
from core.yamlio import load_config

LOG = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "SHIFTS_INCLUDE_INACTIVE": "include_inactive",
    "SHIFTS_STRICT_BATCH": "strict_batch",
    "SHIFTS_MAX_HOURS": "default_max_hours",
    "SHIFTS_OVERTIME_THRESHOLD": "overtime_threshold",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class EngineSettings:
    # Whether paused records resolve when the caller does not say
    include_inactive: bool = False
    # Abort a whole batch on the first invalid record
    strict_batch: bool = False
    default_max_hours: float = DEFAULT_MAX_HOURS
    overtime_threshold: float = DEFAULT_OVERTIME_THRESHOLD
    max_bulk_weeks: int = MAX_BULK_WEEKS


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _as_number(key: str, value: Any, kind: type) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{key} must be positive, got {value!r}")
    return number


def _coerce(values: Mapping[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(EngineSettings)}
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            raise ConfigError(f"Unknown setting: {key}", hint=f"Known settings: {', '.join(sorted(known))}")
        if key in ("include_inactive", "strict_batch"):
            out[key] = _as_bool(key, value)
        elif key == "max_bulk_weeks":
            out[key] = _as_number(key, value, int)
        else:
            out[key] = _as_number(key, value, float)
    return out


def _settings_file(path: Optional[str]) -> Optional[str]:
    if path:
        if not Path(path).exists():
            raise ConfigError(f"Settings file not found: {path}")
        return path
    for candidate in settings_paths():
        if Path(candidate).exists():
            return candidate
    return None


def load_settings(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """Load settings from YAML, then apply ``SHIFTS_*`` environment overrides.

    The YAML document may hold the keys directly or under a ``shifts:``
    section.

    Raises:
        ConfigError: for unknown keys, malformed values, or a missing
            explicitly requested file.
    """
    env = os.environ if env is None else env
    settings = EngineSettings()

    source = _settings_file(path)
    if source:
        try:
            data = load_config(source)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        section = data.get("shifts", data)
        if not isinstance(section, dict):
            raise ConfigError(f"Invalid settings in {source}: 'shifts' must be a mapping")
        settings = replace(settings, **_coerce(section))
        LOG.debug("Loaded settings from %s", source)

    overrides = {attr: env[var] for var, attr in ENV_OVERRIDES.items() if var in env}
    if overrides:
        settings = replace(settings, **_coerce(overrides))
        LOG.debug("Applied environment overrides: %s", ", ".join(sorted(overrides)))
    return settings
