import os
import sys
from pathlib import Path

import structlog
from PySide6.QtWidgets import QApplication

from renamepad.logging import setup_logging
from renamepad.settings_models import default_settings
from renamepad.settings_store import SettingsStore
from renamepad.ui import MainWindow

SETTINGS_ENV = "RENAMEPAD_SETTINGS"


def _default_settings_path() -> Path:
    override = str(os.environ.get(SETTINGS_ENV, "") or "").strip()
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "renamepad" / "settings.json"


def _split_startup_args(argv: list[str]) -> tuple[str | None, str | None]:
    settings_path: str | None = None
    file_path: str | None = None
    items = list(argv)
    while items:
        arg = items.pop(0)
        if arg == "--settings" and items:
            settings_path = items.pop(0)
            continue
        if arg.startswith("--settings="):
            settings_path = arg.split("=", 1)[1]
            continue
        if file_path is None:
            file_path = arg
    return settings_path, file_path


def _load_settings(path: Path) -> SettingsStore:
    store = SettingsStore(path, default_settings())
    store.load()
    return store


if __name__ == "__main__":
    settings_arg, file_arg = _split_startup_args(sys.argv[1:])
    settings = _load_settings(Path(settings_arg).expanduser() if settings_arg else _default_settings_path())
    setup_logging(settings.get("logging", {}))
    log = structlog.get_logger("renamepad")
    if settings.last_error:
        log.warning("settings_fallback_to_defaults", error=settings.last_error)

    app = QApplication(sys.argv)
    app.setApplicationName("renamepad")
    window = MainWindow(settings)
    if file_arg:
        window.open_path(file_arg)
    window.show()
    window.start_backend()
    sys.exit(app.exec())
