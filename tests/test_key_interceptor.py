"""Tests for KeyInterceptor and the editor key-dispatch entry point."""

import pytest
from PySide6.QtCore import Qt

from renamepad.widgets.code_editor import KeyInterceptor, KeyInterceptorError, SessionKey, classify_session_key

from conftest import press_key


class Recorder:
    def __init__(self):
        self.calls = []

    def commit(self):
        self.calls.append("commit")

    def cancel(self):
        self.calls.append("cancel")


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def interceptor(editor, recorder):
    return KeyInterceptor(editor, on_commit=recorder.commit, on_cancel=recorder.cancel)


class TestInstall:
    def test_install_replaces_and_uninstall_restores(self, editor, interceptor):
        original = editor.key_handler()
        installed = interceptor.install()

        assert interceptor.is_installed()
        assert editor.key_handler() == installed
        assert interceptor.previous_handler() == original

        interceptor.uninstall()
        assert not interceptor.is_installed()
        assert editor.key_handler() == original

    def test_second_install_raises_and_keeps_original(self, editor, interceptor):
        original = editor.key_handler()
        interceptor.install()

        with pytest.raises(KeyInterceptorError):
            interceptor.install()

        assert interceptor.previous_handler() == original
        interceptor.uninstall()
        assert editor.key_handler() == original

    def test_uninstall_is_idempotent(self, editor, interceptor):
        original = editor.key_handler()
        interceptor.install()
        interceptor.uninstall()
        interceptor.uninstall()
        assert editor.key_handler() == original

    def test_key_handler_change_signal(self, editor, interceptor):
        seen = []
        editor.keyHandlerChanged.connect(lambda: seen.append(True))
        interceptor.install()
        interceptor.uninstall()
        assert len(seen) == 2


class TestDispatch:
    @pytest.mark.parametrize(
        "key,expected",
        [
            (Qt.Key_Escape, "cancel"),
            (Qt.Key_Space, "cancel"),
            (Qt.Key_Return, "commit"),
            (Qt.Key_Enter, "commit"),
        ],
    )
    def test_session_keys_are_consumed(self, editor, interceptor, recorder, key, expected):
        before = editor.toPlainText()
        interceptor.install()

        press_key(editor, key, " " if key == Qt.Key_Space else "")

        assert recorder.calls == [expected]
        assert editor.toPlainText() == before

    def test_other_keys_reach_the_editor(self, editor, interceptor, recorder):
        editor.move_cursor_to(0, 0)
        interceptor.install()

        press_key(editor, ord("Q"), "q")

        assert recorder.calls == []
        assert editor.line_text(0).startswith("q// sample")

    def test_previous_handler_result_is_returned(self, editor, recorder):
        seen = []

        def swallow_everything(event):
            seen.append(int(event.key()))
            return True

        editor.set_key_handler(swallow_everything)
        interceptor = KeyInterceptor(editor, on_commit=recorder.commit, on_cancel=recorder.cancel)
        interceptor.install()
        before = editor.toPlainText()

        press_key(editor, ord("Q"), "q")

        assert seen == [ord("Q")]
        assert editor.toPlainText() == before
        interceptor.uninstall()
        assert editor.key_handler() == swallow_everything

    def test_set_key_handler_none_restores_default(self, editor):
        editor.set_key_handler(lambda _event: True)
        editor.set_key_handler(None)
        editor.move_cursor_to(0, 0)
        press_key(editor, ord("Z"), "z")
        assert editor.line_text(0).startswith("z")


def test_classify_session_key(qapp):
    from PySide6.QtCore import QEvent
    from PySide6.QtGui import QKeyEvent

    def make(key):
        return QKeyEvent(QEvent.KeyPress, int(key), Qt.NoModifier, "")

    assert classify_session_key(make(Qt.Key_Escape)) is SessionKey.CANCEL
    assert classify_session_key(make(Qt.Key_Return)) is SessionKey.COMMIT
    assert classify_session_key(make(Qt.Key_A)) is None
