"""Tests for SettingsStore and the settings defaults."""

import json

import pytest

from renamepad.core.keybindings import RENAME_VARIABLE_ACTION
from renamepad.settings_models import default_settings
from renamepad.settings_store import SettingsStore, SettingsStoreError, deep_merge_defaults, dot_get, dot_set


def test_missing_file_loads_defaults(tmp_path):
    store = SettingsStore(tmp_path / "settings.json", default_settings())
    data = store.load()

    assert data["refactor"]["positions_timeout_ms"] == 5000
    assert store.get("keybindings.general")[RENAME_VARIABLE_ACTION] == ["Ctrl+Alt+R"]
    assert store.last_error is None


def test_user_values_win_over_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"refactor": {"result_timeout_ms": 250}, "extra": 1}), encoding="utf-8")
    store = SettingsStore(path, default_settings())
    store.load()

    assert store.get_int("refactor.result_timeout_ms") == 250
    assert store.get_int("refactor.positions_timeout_ms") == 5000
    assert store.get("extra") == 1


def test_invalid_json_falls_back_unless_strict(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{broken", encoding="utf-8")

    lenient = SettingsStore(path, default_settings())
    assert lenient.load()["refactor"]["enabled"] is True
    assert lenient.last_error

    strict = SettingsStore(path, default_settings(), strict=True)
    with pytest.raises(SettingsStoreError):
        strict.load()


def test_non_object_root_is_an_error(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SettingsStoreError):
        SettingsStore(path, {}, strict=True).load()


def test_set_and_save_round_trip(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = SettingsStore(path, default_settings())
    store.load()

    assert store.set("backend.program", "analysis-server")
    assert not store.set("backend.program", "analysis-server")
    assert store.dirty
    store.save()

    reloaded = SettingsStore(path, default_settings())
    reloaded.load()
    assert reloaded.get("backend.program") == "analysis-server"
    assert not store.dirty


def test_get_int_rejects_bools_and_garbage(tmp_path):
    store = SettingsStore(None, {"a": True, "b": "x", "c": "12"})
    assert store.get_int("a", 3) == 3
    assert store.get_int("b", 4) == 4
    assert store.get_int("c") == 12


def test_dot_helpers():
    data = {}
    dot_set(data, "a.b.c", 1)
    assert data == {"a": {"b": {"c": 1}}}
    assert dot_get(data, "a.b.c") == 1
    assert dot_get(data, "a.x", "fallback") == "fallback"
    with pytest.raises(ValueError):
        dot_set(data, "", 1)


def test_deep_merge_does_not_alias_defaults():
    defaults = {"editor": {"colors": {"rename_main": "#000"}}}
    merged = deep_merge_defaults({"editor": {}}, defaults)
    merged["editor"]["colors"]["rename_main"] = "#fff"
    assert defaults["editor"]["colors"]["rename_main"] == "#000"
