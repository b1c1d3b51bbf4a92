"""Key dispatch entry-point contract and the rename-session key interceptor."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Protocol

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent

# Dispatch contract:
# - Return True when the handler fully handled the event.
# - Return False to continue generic editor behavior.
KeyHandler = Callable[[QKeyEvent], bool]


class KeyDispatchSurface(Protocol):
    def key_handler(self) -> KeyHandler: ...

    def set_key_handler(self, handler: KeyHandler) -> None: ...


class SessionKey(str, Enum):
    COMMIT = "commit"
    CANCEL = "cancel"


SESSION_KEYS: dict[int, SessionKey] = {
    # A space would split the identifier that is rescanned on commit.
    int(Qt.Key_Space): SessionKey.CANCEL,
    int(Qt.Key_Escape): SessionKey.CANCEL,
    int(Qt.Key_Return): SessionKey.COMMIT,
    int(Qt.Key_Enter): SessionKey.COMMIT,
}


def classify_session_key(event: QKeyEvent) -> SessionKey | None:
    return SESSION_KEYS.get(int(event.key()))


class KeyInterceptorError(RuntimeError):
    """Raised when an interceptor is installed twice."""


class KeyInterceptor:
    """Temporarily owns a surface's key handler during a rename session."""

    def __init__(
        self,
        surface: KeyDispatchSurface,
        *,
        on_commit: Callable[[], None],
        on_cancel: Callable[[], None],
    ) -> None:
        self._surface = surface
        self._on_commit = on_commit
        self._on_cancel = on_cancel
        self._previous: KeyHandler | None = None

    def is_installed(self) -> bool:
        return self._previous is not None

    def previous_handler(self) -> KeyHandler | None:
        return self._previous

    def install(self) -> KeyHandler:
        if self._previous is not None:
            raise KeyInterceptorError("Key interceptor is already installed.")
        self._previous = self._surface.key_handler()
        self._surface.set_key_handler(self.handle_key)
        return self.handle_key

    def uninstall(self) -> None:
        previous = self._previous
        if previous is None:
            return
        self._previous = None
        self._surface.set_key_handler(previous)

    def handle_key(self, event: QKeyEvent) -> bool:
        action = classify_session_key(event)
        if action is SessionKey.CANCEL:
            self._on_cancel()
            event.accept()
            return True
        if action is SessionKey.COMMIT:
            self._on_commit()
            event.accept()
            return True

        previous = self._previous
        if previous is None:
            return False
        return bool(previous(event))


__all__ = [
    "KeyHandler",
    "KeyDispatchSurface",
    "SessionKey",
    "SESSION_KEYS",
    "classify_session_key",
    "KeyInterceptor",
    "KeyInterceptorError",
]
