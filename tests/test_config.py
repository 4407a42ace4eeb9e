"""Tests for the config module."""
import json
from pathlib import Path

import pytest

from havn.config import (
    DEFAULT_WIDGET_STATE_PATH,
    coerce_value,
    get_log_level,
    get_reconcile_window_days,
    get_timezone,
    get_widget_state_path,
    is_biometric_lock_enabled,
    load_config,
    save_config,
    set_config_value,
)


class TestLoadConfig:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(tmp_path / "nonexistent.json") == {}

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        assert load_config(path) == {}

    def test_non_object_returns_empty(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_config(path) == {}

    def test_loads_valid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"key": "value"}', encoding="utf-8")
        assert load_config(path) == {"key": "value"}


class TestSaveConfig:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "sub" / "dir" / "config.json"
        save_config({"nested": True}, path)
        assert json.loads(path.read_text()) == {"nested": True}

    def test_set_value_preserves_other_keys(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"other_key": "keep_me"}, path)
        set_config_value("timezone", "UTC", path)
        assert load_config(path) == {"other_key": "keep_me", "timezone": "UTC"}


class TestCoerceValue:
    def test_bool_values(self):
        assert coerce_value("use_biometric_lock", "yes") is True
        assert coerce_value("use_biometric_lock", "off") is False

    def test_bad_bool(self):
        with pytest.raises(ValueError, match="true or false"):
            coerce_value("use_biometric_lock", "maybe")

    def test_int_value(self):
        assert coerce_value("reconcile_window_days", "30") == 30

    def test_int_must_be_positive(self):
        with pytest.raises(ValueError):
            coerce_value("reconcile_window_days", "0")

    def test_timezone_validated(self):
        assert coerce_value("timezone", "UTC") == "UTC"
        with pytest.raises(ValueError, match="Unknown timezone"):
            coerce_value("timezone", "Nowhere/Land")

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown config key"):
            coerce_value("colour", "blue")


class TestAccessors:
    def test_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        assert get_timezone(path) is None
        assert get_reconcile_window_days(path) is None
        assert get_widget_state_path(path) == DEFAULT_WIDGET_STATE_PATH
        assert is_biometric_lock_enabled(path) is False
        assert get_log_level(path) is None

    def test_configured_values(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({
            "timezone": "UTC",
            "reconcile_window_days": 14,
            "widget_state_path": str(tmp_path / "w.json"),
            "use_biometric_lock": True,
            "log_level": "debug",
        }, path)
        assert get_timezone(path) is not None
        assert get_reconcile_window_days(path) == 14
        assert get_widget_state_path(path) == tmp_path / "w.json"
        assert is_biometric_lock_enabled(path) is True
        assert get_log_level(path) == "DEBUG"

    def test_invalid_timezone_falls_back_to_local(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"timezone": "Nowhere/Land"}, path)
        assert get_timezone(path) is None

    def test_invalid_window_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"reconcile_window_days": "lots"}, path)
        assert get_reconcile_window_days(path) is None

    def test_widget_path_expands_user(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"widget_state_path": "~/w.json"}, path)
        assert get_widget_state_path(path) == Path.home() / "w.json"
