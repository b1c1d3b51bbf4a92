from __future__ import annotations

from copy import deepcopy
from typing import TypedDict

from renamepad.core.keybindings import default_keybindings


class BackendSettings(TypedDict, total=False):
    program: str
    args: list[str]
    cwd: str


class RefactorSettings(TypedDict, total=False):
    enabled: bool
    positions_timeout_ms: int
    result_timeout_ms: int


class EditorColorSettings(TypedDict, total=False):
    occurrence_main: str
    occurrence_other: str
    rename_main: str
    rename_other: str


class EditorSettings(TypedDict, total=False):
    continuous_completion: bool
    occurrence_highlight: bool
    colors: EditorColorSettings


class LoggingSettings(TypedDict, total=False):
    level: str
    file: str
    json: bool


class AppSettings(TypedDict, total=False):
    schema_version: int
    backend: BackendSettings
    refactor: RefactorSettings
    editor: EditorSettings
    keybindings: dict[str, dict[str, list[str]]]
    logging: LoggingSettings


def default_settings() -> AppSettings:
    defaults: AppSettings = {
        "schema_version": 1,
        "backend": {
            "program": "",
            "args": [],
            "cwd": "",
        },
        "refactor": {
            "enabled": True,
            "positions_timeout_ms": 5000,
            "result_timeout_ms": 5000,
        },
        "editor": {
            "continuous_completion": False,
            "occurrence_highlight": True,
            "colors": {
                "occurrence_main": "#3A4F3B",
                "occurrence_other": "#2F3D30",
                "rename_main": "#264F78",
                "rename_other": "#3A3D41",
            },
        },
        "keybindings": default_keybindings(),
        "logging": {
            "level": "INFO",
            "file": "",
            "json": False,
        },
    }
    return deepcopy(defaults)
