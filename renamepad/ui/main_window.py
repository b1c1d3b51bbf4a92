"""Single-document editor window hosting the rename refactor."""

from __future__ import annotations

from pathlib import Path

import structlog
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox

from renamepad.analysis.channel import AnalysisChannel, ProcessAnalysisChannel
from renamepad.analysis.protocol import AvailabilityUpdate
from renamepad.settings_store import SettingsStore
from renamepad.ui.controllers import ActionRegistry, RenameRefactorController
from renamepad.widgets.code_editor import CodeEditor

log = structlog.get_logger(__name__)

_STATUS_TIMEOUT_MS = 6000


class MainWindow(QMainWindow):
    def __init__(
        self,
        settings: SettingsStore,
        *,
        channel: AnalysisChannel | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.settings = settings
        self.current_path: Path | None = None
        self.setWindowTitle("renamepad")
        self.resize(960, 680)

        self.editor = CodeEditor(
            self,
            colors=settings.get("editor.colors", {}),
            occurrence_highlight=bool(settings.get("editor.occurrence_highlight", True)),
            continuous_completion=bool(settings.get("editor.continuous_completion", False)),
        )
        self.setCentralWidget(self.editor)

        self.channel = channel if channel is not None else ProcessAnalysisChannel(self)
        self.rename_controller = RenameRefactorController(
            self.editor,
            self.channel,
            positions_timeout_ms=settings.get_int("refactor.positions_timeout_ms", 5000),
            result_timeout_ms=settings.get_int("refactor.result_timeout_ms", 5000),
            enabled=bool(settings.get("refactor.enabled", True)),
            parent=self,
        )
        self.rename_controller.statusMessage.connect(self.show_status)
        self.channel.statusMessage.connect(self.show_status)
        if isinstance(self.channel, ProcessAnalysisChannel):
            self.channel.stopped.connect(self._on_backend_stopped)

        self.actions_by_id = ActionRegistry.create_actions(
            self,
            self.rename_controller,
            settings.get("keybindings", {}),
        )
        self.statusBar().showMessage("Ready")

    # --------- backend ---------
    def start_backend(self) -> None:
        if not isinstance(self.channel, ProcessAnalysisChannel):
            return
        args = self.settings.get("backend.args", [])
        self.channel.start(
            program=str(self.settings.get("backend.program", "") or ""),
            args=list(args) if isinstance(args, list) else [],
            cwd=str(self.settings.get("backend.cwd", "") or ""),
        )

    def _on_backend_stopped(self) -> None:
        # A dead backend owes no replies.
        self.rename_controller.cleanup()
        self.rename_controller.reset_stale_replies()
        self.rename_controller.on_availability_update(AvailabilityUpdate())
        self.show_status("Analysis backend stopped.")

    # --------- files ---------
    def open_path(self, path: str | Path) -> bool:
        target = Path(path).expanduser()
        try:
            text = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("open_failed", path=str(target), error=str(exc))
            QMessageBox.warning(self, "Open File", f"Could not open {target}:\n{exc}")
            return False
        self.rename_controller.abort()
        self.editor.setPlainText(text)
        self.current_path = target
        self.setWindowTitle(f"{target.name} - renamepad")
        log.info("file_opened", path=str(target))
        return True

    def open_file_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open File")
        if path:
            self.open_path(path)

    def save_current_file(self) -> None:
        if self.current_path is None:
            path, _ = QFileDialog.getSaveFileName(self, "Save File")
            if not path:
                return
            self.current_path = Path(path)
        try:
            self.current_path.write_text(self.editor.toPlainText(), encoding="utf-8")
        except OSError as exc:
            log.warning("save_failed", path=str(self.current_path), error=str(exc))
            QMessageBox.warning(self, "Save", f"Could not save {self.current_path}:\n{exc}")
            return
        self.show_status(f"Saved {self.current_path.name}.")

    # --------- status ---------
    def show_status(self, text: str) -> None:
        self.statusBar().showMessage(str(text or ""), _STATUS_TIMEOUT_MS)

    def closeEvent(self, event):
        self.rename_controller.abort()
        if isinstance(self.channel, ProcessAnalysisChannel):
            self.channel.stop(grace_ms=300)
        super().closeEvent(event)
