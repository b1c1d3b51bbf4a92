"""Controller for the Rename Variable refactor session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog
from PySide6.QtCore import QObject, QTimer, Signal

from renamepad.analysis.channel import AnalysisChannel
from renamepad.analysis.protocol import AvailabilityUpdate, RefactorResult, VariablePositions
from renamepad.analysis.types import AvailabilityFlags, Identifier, OccurrenceSet
from renamepad.widgets.code_editor import (
    OCCURRENCE_MAIN,
    OCCURRENCE_OTHER,
    CodeEditor,
    KeyInterceptor,
    KeyInterceptorError,
    LinkedEditSession,
    scan_identifier,
)

log = structlog.get_logger(__name__)

SessionFactory = Callable[[CodeEditor, OccurrenceSet], LinkedEditSession]

_POSITIONS = "positions"
_RESULTS = "results"


class RefactorState(str, Enum):
    IDLE = "idle"
    AWAITING_POSITIONS = "awaiting_positions"
    ACTIVE = "active"
    SETTLING = "settling"


class SessionOutcome(str, Enum):
    PENDING = "pending"
    COMMIT = "commit"
    CANCEL = "cancel"


@dataclass
class RefactorSession:
    token: int
    old_identifier: Identifier
    occurrences: Optional[OccurrenceSet] = None
    handle: Optional[LinkedEditSession] = None
    outcome: SessionOutcome = SessionOutcome.PENDING
    new_name: str = ""
    suspended_completion: bool = False


def _default_session_factory(editor: CodeEditor, occurrences: OccurrenceSet) -> LinkedEditSession:
    return LinkedEditSession(editor, occurrences)


class RenameRefactorController(QObject):
    """Runs one rename session at a time between the editor and the backend.

    States move ``idle -> awaiting_positions -> active -> settling -> idle``.
    Every return to ``idle`` goes through :meth:`cleanup`, which restores the
    marker types, the editor key handler and continuous completion.

    Backend replies that no longer belong to the live session are dropped:
    replies echoing a ``session`` token must match it, and token-less replies
    are matched by counting the replies this controller has given up on.
    """

    SUPPRESSED_MARKER_TYPES = (OCCURRENCE_MAIN, OCCURRENCE_OTHER)

    availabilityChanged = Signal(object)  # AvailabilityFlags
    stateChanged = Signal(str)
    statusMessage = Signal(str)
    refactorFailed = Signal(str)

    def __init__(
        self,
        editor: CodeEditor,
        channel: AnalysisChannel,
        *,
        session_factory: SessionFactory | None = None,
        positions_timeout_ms: int = 5000,
        result_timeout_ms: int = 5000,
        enabled: bool = True,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._editor = editor
        self._channel = channel
        self._session_factory = session_factory or _default_session_factory
        self._positions_timeout_ms = max(0, int(positions_timeout_ms))
        self._result_timeout_ms = max(0, int(result_timeout_ms))
        self._enabled = bool(enabled)

        self._state = RefactorState.IDLE
        self._session: RefactorSession | None = None
        self._next_token = 0
        self._availability = AvailabilityFlags()
        self._disabled_marker_types: list[str] = []
        self._stale_replies = {_POSITIONS: 0, _RESULTS: 0}

        self._key_interceptor = KeyInterceptor(
            editor,
            on_commit=self.finish_refactoring,
            on_cancel=self.cancel_refactoring,
        )
        self._timeout_timer = QTimer(self)
        self._timeout_timer.setSingleShot(True)
        self._timeout_timer.timeout.connect(self._on_round_trip_timeout)

        channel.availabilityUpdated.connect(self.on_availability_update)
        channel.variablePositionsReceived.connect(self.on_variable_positions)
        channel.refactorResultReceived.connect(self.on_refactor_result)

    # --------- queries ---------
    def state(self) -> RefactorState:
        return self._state

    def session(self) -> RefactorSession | None:
        return self._session

    def availability(self) -> AvailabilityFlags:
        return self._availability

    def is_rename_available(self) -> bool:
        return self._enabled and self._availability.rename_variable

    def key_interceptor(self) -> KeyInterceptor:
        return self._key_interceptor

    def stale_reply_counts(self) -> dict[str, int]:
        return dict(self._stale_replies)

    def reset_stale_replies(self) -> None:
        """Forget replies owed by a backend that is no longer running."""
        for kind in self._stale_replies:
            self._stale_replies[kind] = 0

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        if not self._enabled and self._state is not RefactorState.IDLE:
            self.cancel_refactoring()
            if self._state is not RefactorState.IDLE:
                self._abandon_round_trip()
        self.availabilityChanged.emit(self._availability)

    # --------- user gestures ---------
    def rename_variable(self) -> bool:
        """Start a rename for the identifier under the cursor; False if nothing started."""
        if not self._enabled:
            return False
        if self._state is not RefactorState.IDLE:
            log.debug("rename_ignored", state=self._state.value)
            return False

        self._editor.setFocus()
        cursor = self._editor.cursor_position()
        identifier = scan_identifier(self._editor.line_text(cursor.row), cursor.column, row=cursor.row)
        if identifier is None:
            log.debug("rename_no_identifier", row=cursor.row, column=cursor.column)
            return False

        self._next_token += 1
        session = RefactorSession(token=self._next_token, old_identifier=identifier)
        self._session = session
        self._set_state(RefactorState.AWAITING_POSITIONS)
        self._start_timeout(self._positions_timeout_ms)
        log.info(
            "rename_started",
            session=session.token,
            identifier=identifier.text,
            row=cursor.row,
            column=cursor.column,
        )
        self._channel.fetch_variable_positions(cursor, session=session.token)
        return True

    def finish_refactoring(self) -> None:
        """Commit the typed name (Enter, or the cursor leaving the primary occurrence)."""
        session = self._session
        if self._state is not RefactorState.ACTIVE or session is None or session.handle is None:
            return

        primary = session.handle.primary_position()
        edited = scan_identifier(self._editor.line_text(primary.row), primary.column, row=primary.row)
        if edited is None:
            log.info("rename_name_unreadable", session=session.token)
            self.cancel_refactoring()
            return

        session.outcome = SessionOutcome.COMMIT
        session.new_name = edited.text
        self._set_state(RefactorState.SETTLING)
        self._start_timeout(self._result_timeout_ms)
        log.info(
            "rename_commit",
            session=session.token,
            old_name=session.old_identifier.text,
            new_name=edited.text,
        )
        self._channel.finish_refactoring(session.old_identifier, edited.text, session=session.token)

    def cancel_refactoring(self) -> None:
        """Cancel the live session (Escape or Space)."""
        session = self._session
        if session is None or self._state is RefactorState.IDLE:
            return

        if self._state is RefactorState.ACTIVE:
            session.outcome = SessionOutcome.CANCEL
            self._set_state(RefactorState.SETTLING)
            self._start_timeout(self._result_timeout_ms)
            if session.handle is not None:
                session.handle.cancel()
            # Nothing left to type into; keys go back to the editor while the ack is pending.
            self._key_interceptor.uninstall()
            log.info("rename_cancel", session=session.token)
            self._channel.cancel_refactoring(session=session.token)
            return

        # No local work left to undo; stop waiting for the backend.
        log.info("rename_cancel_local", session=session.token, state=self._state.value)
        self._abandon_round_trip()
        self.statusMessage.emit("Rename canceled.")

    # --------- backend messages ---------
    def on_availability_update(self, update: AvailabilityUpdate) -> None:
        self._availability = AvailabilityFlags.from_names(update.names)
        self.availabilityChanged.emit(self._availability)

    def on_variable_positions(self, positions: VariablePositions) -> None:
        if not self._accept_reply(_POSITIONS, positions.session, RefactorState.AWAITING_POSITIONS):
            return
        session = self._session
        assert session is not None
        self._timeout_timer.stop()

        occurrences = positions.occurrence_set()
        for marker_type in self.SUPPRESSED_MARKER_TYPES:
            if self._editor.marker_registry().disable_marker_type(marker_type):
                self._disabled_marker_types.append(marker_type)

        try:
            handle = self._session_factory(self._editor, occurrences)
        except ValueError as exc:
            log.warning("rename_positions_invalid", session=session.token, error=str(exc))
            self.statusMessage.emit(f"Rename Variable: {exc}")
            self._stale_replies[_RESULTS] += 1
            self._channel.cancel_refactoring(session=session.token)
            self.cleanup()
            return
        session.occurrences = occurrences
        session.handle = handle

        cursor = self._editor.cursor_position()
        if not occurrences.primary_contains(cursor.row, cursor.column):
            self._editor.move_cursor_to(occurrences.primary.row, occurrences.primary.column)
        handle.show_other_markers()
        if self._editor.is_continuous_completion_enabled():
            self._editor.set_continuous_completion_enabled(False)
            session.suspended_completion = True

        try:
            self._key_interceptor.install()
        except KeyInterceptorError:
            log.exception("rename_interceptor_reentry", session=session.token)
            self._stale_replies[_RESULTS] += 1
            self._channel.cancel_refactoring(session=session.token)
            self.cleanup()
            return
        handle.cursorLeft.connect(self._on_cursor_left)

        self._set_state(RefactorState.ACTIVE)
        log.info(
            "rename_session_opened",
            session=session.token,
            occurrences=1 + len(occurrences.secondaries),
            length=occurrences.length,
        )
        self.statusMessage.emit(
            f"Renaming '{session.old_identifier.text}': Enter to apply, Esc to cancel."
        )
        self._channel.start_refactoring(session=session.token)

    def on_refactor_result(self, result: RefactorResult) -> None:
        if not self._accept_reply(_RESULTS, result.session, RefactorState.SETTLING):
            return
        session = self._session
        assert session is not None
        self._timeout_timer.stop()

        if result.success:
            if session.outcome is SessionOutcome.COMMIT:
                self.statusMessage.emit(
                    f"Renamed '{session.old_identifier.text}' to '{session.new_name}'."
                )
            else:
                self.statusMessage.emit("Rename canceled.")
            log.info("rename_settled", session=session.token, outcome=session.outcome.value)
            self.cleanup()
            return

        detail = result.detail or "unknown error"
        log.warning("rename_failed", session=session.token, outcome=session.outcome.value, detail=detail)
        self.statusMessage.emit(f"Rename failed: {detail}")
        self.refactorFailed.emit(detail)
        if session.outcome is SessionOutcome.COMMIT:
            # Same path as a user cancel, minus the text revert; the reply is not awaited.
            self._stale_replies[_RESULTS] += 1
            self._channel.cancel_refactoring(session=session.token)
        self.cleanup()

    # --------- teardown ---------
    def abort(self) -> None:
        """Drop the live session without a revert, e.g. when the buffer is replaced.

        An active backend session is told ``cancelRefactoring``; every reply
        still owed to this session is counted as stale before cleanup.
        """
        session = self._session
        if session is None or self._state is RefactorState.IDLE:
            self.cleanup()
            return
        log.info("rename_abort", session=session.token, state=self._state.value)
        if self._state is RefactorState.ACTIVE:
            self._stale_replies[_RESULTS] += 1
            self._channel.cancel_refactoring(session=session.token)
            self.cleanup()
            return
        self._abandon_round_trip()

    def cleanup(self) -> None:
        """Release everything the live session holds; safe to call repeatedly."""
        self._timeout_timer.stop()
        registry = self._editor.marker_registry()
        while self._disabled_marker_types:
            registry.enable_marker_type(self._disabled_marker_types.pop())
        self._key_interceptor.uninstall()

        session = self._session
        self._session = None
        if session is not None:
            handle = session.handle
            if handle is not None:
                try:
                    handle.cursorLeft.disconnect(self._on_cursor_left)
                except (RuntimeError, TypeError):
                    pass
                handle.detach()
            if session.suspended_completion:
                self._editor.set_continuous_completion_enabled(True)
        self._set_state(RefactorState.IDLE)

    # --------- internals ---------
    def _set_state(self, state: RefactorState) -> None:
        if state is self._state:
            return
        previous = self._state
        self._state = state
        log.debug("rename_state", previous=previous.value, state=state.value)
        self.stateChanged.emit(state.value)

    def _start_timeout(self, timeout_ms: int) -> None:
        if timeout_ms > 0:
            self._timeout_timer.start(timeout_ms)
        else:
            self._timeout_timer.stop()

    def _accept_reply(self, kind: str, reply_session: int | None, expected: RefactorState) -> bool:
        session = self._session
        if reply_session is not None:
            current = session is not None and reply_session == session.token
            if not current and self._stale_replies[kind] > 0:
                self._stale_replies[kind] -= 1
        elif self._stale_replies[kind] > 0:
            self._stale_replies[kind] -= 1
            current = False
        else:
            current = session is not None

        if not current or self._state is not expected:
            log.debug(
                "reply_discarded",
                kind=kind,
                reply_session=reply_session,
                session=session.token if session is not None else None,
                state=self._state.value,
            )
            return False
        return True

    def _abandon_round_trip(self) -> None:
        if self._state is RefactorState.AWAITING_POSITIONS:
            self._stale_replies[_POSITIONS] += 1
        elif self._state is RefactorState.SETTLING:
            self._stale_replies[_RESULTS] += 1
        self.cleanup()

    def _on_cursor_left(self) -> None:
        session = self._session
        if self._state is not RefactorState.ACTIVE or session is None:
            return
        log.debug("rename_cursor_left", session=session.token)
        self.finish_refactoring()

    def _on_round_trip_timeout(self) -> None:
        if self._state not in (RefactorState.AWAITING_POSITIONS, RefactorState.SETTLING):
            return
        session = self._session
        log.warning(
            "rename_backend_timeout",
            session=session.token if session is not None else None,
            state=self._state.value,
        )
        self._abandon_round_trip()
        self.statusMessage.emit("Rename Variable: the analysis backend did not answer in time.")


__all__ = [
    "RefactorState",
    "RefactorSession",
    "SessionOutcome",
    "SessionFactory",
    "RenameRefactorController",
]
