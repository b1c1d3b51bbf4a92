"""Shared test fixtures."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import QApplication

from renamepad.analysis.channel import AnalysisChannel
from renamepad.widgets.code_editor import CodeEditor

SAMPLE_SOURCE = "\n".join(
    [
        "// sample",
        "function main() {",
        "    foo = 1;",
        "    let bar = 2;",
        "    if (bar) {",
        "   return foo + bar;",
        "    }",
        "}",
    ]
)


class FakeChannel(AnalysisChannel):
    """Records outbound messages; tests push inbound ones via ``inject``."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.sent: list[tuple[str, dict]] = []

    def send(self, method, params):
        self.sent.append((method, dict(params)))

    def methods(self) -> list[str]:
        return [method for method, _params in self.sent]

    def last(self, method: str) -> dict | None:
        for sent_method, params in reversed(self.sent):
            if sent_method == method:
                return params
        return None

    def inject(self, method: str, params) -> bool:
        return self.dispatch_message({"jsonrpc": "2.0", "method": method, "params": params})


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for the whole run."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def editor(qapp):
    """Editor pre-filled with a small script."""
    widget = CodeEditor(occurrence_highlight=False)
    widget.setPlainText(SAMPLE_SOURCE)
    widget.resize(640, 400)
    yield widget
    widget.deleteLater()


@pytest.fixture
def fake_channel(qapp):
    channel = FakeChannel()
    yield channel
    channel.deleteLater()


def press_key(widget, key, text: str = "", modifiers=Qt.NoModifier) -> QKeyEvent:
    """Deliver a key press straight to ``widget.keyPressEvent``."""
    event = QKeyEvent(QEvent.KeyPress, int(key), modifiers, text)
    widget.keyPressEvent(event)
    return event


def type_text(widget, text: str) -> None:
    for ch in text:
        key = ord(ch.upper()) if ch.isalnum() else int(Qt.Key_unknown)
        press_key(widget, key, ch)
