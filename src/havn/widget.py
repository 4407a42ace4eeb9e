"""Widget state export for havn.

The home-screen widget runs in a separate process and only reads a small JSON
file. This module builds that payload from streak stats, checks its shape on
both sides, and replaces the file atomically so the widget never sees a
half-written state.
"""
from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from havn.streaks import StreakStats

WIDGET_SCHEMA_VERSION = 1

# Payload keys the widget relies on, with their JSON types
WIDGET_FIELDS: dict[str, type] = {
    "schema_version": int,
    "has_entry_today": bool,
    "streak": int,
    "best_streak": int,
    "locked": bool,
    "updated_at": str,
}


def is_valid_widget_state(state: object) -> bool:
    """True if state has every widget field with the right type and sane streaks."""
    if not isinstance(state, dict):
        return False
    if state.get("schema_version") != WIDGET_SCHEMA_VERSION:
        return False
    for key, kind in WIDGET_FIELDS.items():
        value = state.get(key)
        # bool is an int subclass; a streak of True is not a streak
        if kind is int and isinstance(value, bool):
            return False
        if not isinstance(value, kind):
            return False
    return 0 <= state["streak"] <= state["best_streak"]


def build_widget_state(
    stats: StreakStats,
    has_entry_today: bool,
    locked: bool = False,
    now: datetime | None = None,
) -> dict:
    """Widget payload for the given streak stats."""
    now = now or datetime.now(tz=timezone.utc)
    return {
        "schema_version": WIDGET_SCHEMA_VERSION,
        "has_entry_today": has_entry_today,
        "streak": stats.current,
        "best_streak": stats.best,
        "locked": locked,
        "updated_at": now.isoformat(),
    }


def write_widget_state(state: dict, output_path: Path) -> None:
    """Replace the widget file with state.

    Raises ValueError for a payload the widget could not read.
    """
    if not is_valid_widget_state(state):
        raise ValueError(f"Refusing to write malformed widget state: {state!r}")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=output_path.parent, prefix=".widget-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)
            f.write("\n")
        os.replace(tmp_name, output_path)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def publish_widget_state(
    stats: StreakStats,
    has_entry_today: bool,
    output_path: Path,
    locked: bool = False,
    now: datetime | None = None,
) -> dict:
    """Build the payload for stats, write it, and return it."""
    state = build_widget_state(stats, has_entry_today, locked=locked, now=now)
    write_widget_state(state, output_path)
    return state


def read_widget_state(path: Path) -> dict | None:
    """The widget payload at path, or None if it is missing or malformed."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    return data if is_valid_widget_state(data) else None
