"""Configuration file management for havn.

Reads and writes ~/.havn/config.json for settings that don't belong in the
journal database (timezone, widget export path, lock state).
"""
from __future__ import annotations

import json
from datetime import tzinfo
from pathlib import Path

from havn.days import resolve_timezone

DEFAULT_CONFIG_PATH: Path = Path.home() / ".havn" / "config.json"
DEFAULT_WIDGET_STATE_PATH: Path = Path.home() / ".havn" / "widget-state.json"

# Keys accepted by `havn config set`, with the type each value is stored as
CONFIG_KEYS: dict[str, type] = {
    "timezone": str,
    "reconcile_window_days": int,
    "widget_state_path": str,
    "use_biometric_lock": bool,
    "log_level": str,
}


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def coerce_value(key: str, raw: str) -> object:
    """Convert a command-line string to the type stored for key.

    Raises ValueError for unknown keys or values of the wrong shape.
    """
    kind = CONFIG_KEYS.get(key)
    if kind is None:
        raise ValueError(f"Unknown config key: {key}")
    if kind is bool:
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{key} expects true or false, got {raw!r}")
    if kind is int:
        value = int(raw)
        if value < 1:
            raise ValueError(f"{key} must be at least 1")
        return value
    if key == "timezone":
        resolve_timezone(raw)
    return raw


def set_config_value(key: str, value: object, config_path: Path | None = None) -> None:
    """Persist one key, preserving the others."""
    config = load_config(config_path)
    config[key] = value
    save_config(config, config_path)


def get_timezone(config_path: Path | None = None) -> tzinfo | None:
    """Return the configured timezone, or None to use the local zone.

    An invalid stored name falls back to the local zone.
    """
    name = load_config(config_path).get("timezone")
    try:
        return resolve_timezone(name)
    except ValueError:
        return None


def get_reconcile_window_days(config_path: Path | None = None) -> int | None:
    """Return how many recent days each reconcile pass covers, or None for all."""
    raw = load_config(config_path).get("reconcile_window_days")
    try:
        days = int(raw)
    except (TypeError, ValueError):
        return None
    return days if days > 0 else None


def get_widget_state_path(config_path: Path | None = None) -> Path:
    """Return where the widget state JSON is written."""
    raw = load_config(config_path).get("widget_state_path")
    if raw:
        return Path(raw).expanduser()
    return DEFAULT_WIDGET_STATE_PATH


def is_biometric_lock_enabled(config_path: Path | None = None) -> bool:
    return bool(load_config(config_path).get("use_biometric_lock", False))


def get_log_level(config_path: Path | None = None) -> str | None:
    raw = load_config(config_path).get("log_level")
    return str(raw).upper() if raw else None
