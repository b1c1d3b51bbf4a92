from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import structlog

log = structlog.get_logger(__name__)


class SettingsStoreError(RuntimeError):
    """Raised when a settings file cannot be loaded or saved."""


def deep_merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Merge defaults into data without overwriting explicitly provided values."""
    merged = deepcopy(dict(data))
    for key, default_value in defaults.items():
        if key not in merged:
            merged[key] = deepcopy(default_value)
            continue
        current = merged[key]
        if isinstance(current, dict) and isinstance(default_value, dict):
            merged[key] = deep_merge_defaults(current, default_value)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if not key:
        return data
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def dot_set(data: dict[str, Any], key: str, value: Any) -> None:
    if not key:
        raise ValueError("Key cannot be empty.")
    current: dict[str, Any] = data
    parts = key.split(".")
    for part in parts[:-1]:
        next_value = current.get(part)
        if not isinstance(next_value, dict):
            next_value = {}
            current[part] = next_value
        current = next_value
    current[parts[-1]] = value


class SettingsStore:
    """JSON-backed settings with defaults and dotted-key access.

    A missing file loads as pure defaults. An unreadable or non-object file
    raises :class:`SettingsStoreError` when ``strict`` is set; otherwise the
    defaults are used and the problem is kept in :attr:`last_error`.
    """

    def __init__(self, path: Path | str | None, defaults: Mapping[str, Any], *, strict: bool = False) -> None:
        self.path = Path(path).expanduser() if path else None
        self.defaults: dict[str, Any] = deepcopy(dict(defaults))
        self.data: dict[str, Any] = deepcopy(self.defaults)
        self.strict = bool(strict)
        self.dirty = False
        self.last_error: str | None = None

    def load(self) -> dict[str, Any]:
        self.last_error = None
        if self.path is None or not self.path.exists():
            self.data = deepcopy(self.defaults)
            self.dirty = False
            return self.data

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            return self._load_failed(f"Could not read settings file '{self.path}': {exc}", exc)
        if not isinstance(raw, dict):
            return self._load_failed(
                f"Settings root in '{self.path}' must be a JSON object, found {type(raw).__name__}.",
                None,
            )

        self.data = deep_merge_defaults(raw, self.defaults)
        self.dirty = False
        log.debug("settings_loaded", path=str(self.path))
        return self.data

    def _load_failed(self, message: str, cause: Exception | None) -> dict[str, Any]:
        if self.strict:
            raise SettingsStoreError(message) from cause
        log.warning("settings_load_failed", path=str(self.path), error=message)
        self.last_error = message
        self.data = deepcopy(self.defaults)
        self.dirty = False
        return self.data

    def save(self) -> None:
        if self.path is None:
            self.dirty = False
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc
        self.dirty = False
        self.last_error = None

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def set(self, key: str, value: Any) -> bool:
        if self.get(key) == value:
            return False
        dot_set(self.data, key, value)
        self.dirty = True
        return True

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key, default)
        if isinstance(value, bool):
            return int(default)
        try:
            return int(value)
        except (TypeError, ValueError):
            return int(default)

    def snapshot(self) -> dict[str, Any]:
        return deepcopy(self.data)
