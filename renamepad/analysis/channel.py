"""Asynchronous message channel between the editor and the analysis backend."""

from __future__ import annotations

import os
from typing import Any

import structlog
from PySide6.QtCore import QObject, QProcess, QTimer, Signal

from .json_rpc import MessageParser, encode_message, make_notification
from .protocol import (
    INBOUND_PARSERS,
    InboundMethod,
    OutboundMethod,
    ProtocolError,
    fetch_variable_positions_params,
    finish_refactoring_params,
    session_params,
)
from .types import Identifier, OccurrencePosition

log = structlog.get_logger(__name__)


class AnalysisChannel(QObject):
    """Typed front of the backend conversation.

    Subclasses provide :meth:`send`; inbound messages enter through
    :meth:`dispatch_message` and leave as one signal per message kind.
    """

    availabilityUpdated = Signal(object)  # AvailabilityUpdate
    variablePositionsReceived = Signal(object)  # VariablePositions
    refactorResultReceived = Signal(object)  # RefactorResult
    statusMessage = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._signals = {
            InboundMethod.AVAILABILITY_UPDATE.value: self.availabilityUpdated,
            InboundMethod.VARIABLE_POSITIONS.value: self.variablePositionsReceived,
            InboundMethod.REFACTOR_RESULT.value: self.refactorResultReceived,
        }

    # --------- outbound ---------
    def send(self, method: str, params: dict[str, Any]) -> None:
        raise NotImplementedError

    def fetch_variable_positions(self, position: OccurrencePosition, *, session: int) -> None:
        self.send(OutboundMethod.FETCH_VARIABLE_POSITIONS.value, fetch_variable_positions_params(position, session))

    def start_refactoring(self, *, session: int) -> None:
        self.send(OutboundMethod.START_REFACTORING.value, session_params(session))

    def finish_refactoring(self, old_identifier: Identifier, new_name: str, *, session: int) -> None:
        self.send(
            OutboundMethod.FINISH_REFACTORING.value,
            finish_refactoring_params(old_identifier, new_name, session),
        )

    def cancel_refactoring(self, *, session: int) -> None:
        self.send(OutboundMethod.CANCEL_REFACTORING.value, session_params(session))

    # --------- inbound ---------
    def dispatch_message(self, message: dict[str, Any]) -> bool:
        method = str(message.get("method") or "").strip()
        parser = INBOUND_PARSERS.get(method)
        if parser is None:
            log.debug("inbound_method_ignored", method=method or None)
            return False
        try:
            payload = parser(message.get("params"))
        except ProtocolError as exc:
            log.warning("inbound_payload_invalid", method=method, error=str(exc))
            self.statusMessage.emit(f"Ignored malformed '{method}' message from the analysis backend.")
            return False
        self._signals[method].emit(payload)
        return True


class ProcessAnalysisChannel(AnalysisChannel):
    """Talks to a backend child process over stdio using framed JSON-RPC."""

    started = Signal()
    stopped = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._proc = QProcess(self)
        self._proc.readyReadStandardOutput.connect(self._on_stdout_ready)
        self._proc.readyReadStandardError.connect(self._on_stderr_ready)
        self._proc.started.connect(self._on_process_started)
        self._proc.finished.connect(self._on_process_finished)
        self._proc.errorOccurred.connect(self._on_process_error)

        self._parser = MessageParser()
        self._queued_messages: list[dict[str, Any]] = []
        self._running = False
        self._shutting_down = False
        self._shutdown_timer = QTimer(self)
        self._shutdown_timer.setSingleShot(True)
        self._shutdown_timer.timeout.connect(self._force_terminate_if_running)
        self._program = ""

    def start(self, *, program: str, args: list[str] | None = None, cwd: str = "") -> None:
        self.stop()
        self._program = str(program or "").strip()
        if not self._program:
            self.statusMessage.emit("No analysis backend configured; Rename Variable is unavailable.")
            log.warning("backend_not_configured")
            return

        self._running = False
        self._shutting_down = False
        self._queued_messages.clear()
        self._parser.reset()

        self._proc.setProgram(self._program)
        self._proc.setArguments([str(item) for item in (args or [])])
        clean_cwd = str(cwd or "").strip()
        if clean_cwd and os.path.isdir(clean_cwd):
            self._proc.setWorkingDirectory(clean_cwd)
        log.info("backend_starting", program=self._program, args=list(args or []))
        self._proc.start()

    def stop(self, *, grace_ms: int = 1200) -> None:
        if self._proc.state() == QProcess.NotRunning:
            self._running = False
            self._queued_messages.clear()
            self._parser.reset()
            return
        self._shutting_down = True
        self._proc.closeWriteChannel()
        self._shutdown_timer.start(max(0, int(grace_ms)))

    def send(self, method: str, params: dict[str, Any]) -> None:
        payload = make_notification(method, params)
        if self._proc.state() == QProcess.NotRunning:
            log.debug("outbound_dropped", method=method, reason="not_running")
            return
        if not self._running:
            self._queued_messages.append(payload)
            return
        self._send_now(payload)

    def _send_now(self, payload: dict[str, Any]) -> None:
        written = int(self._proc.write(encode_message(payload)))
        if written < 0:
            if not self._shutting_down:
                self.statusMessage.emit(f"Analysis backend write failed: {self._proc.errorString()}")
            log.warning("outbound_write_failed", method=payload.get("method"), error=self._proc.errorString())
            return
        log.debug("outbound_sent", method=payload.get("method"), params=payload.get("params"))

    def _force_terminate_if_running(self) -> None:
        if self._proc.state() == QProcess.NotRunning:
            return
        self._proc.terminate()
        if not self._proc.waitForFinished(300):
            self._proc.kill()

    def _on_process_started(self) -> None:
        self._running = True
        log.info("backend_started", program=self._program, pid=int(self._proc.processId()))
        self.started.emit()
        queued = list(self._queued_messages)
        self._queued_messages.clear()
        for payload in queued:
            self._send_now(payload)

    def _on_process_finished(self, exit_code: int, _exit_status: QProcess.ExitStatus) -> None:
        self._shutdown_timer.stop()
        was_running = self._running
        self._running = False
        self._queued_messages.clear()
        self._parser.reset()
        self._shutting_down = False
        log.info("backend_stopped", exit_code=int(exit_code))
        if was_running:
            self.stopped.emit()

    def _on_process_error(self, error: QProcess.ProcessError) -> None:
        if self._shutting_down and error in {
            QProcess.ProcessError.Crashed,
            QProcess.ProcessError.ReadError,
            QProcess.ProcessError.WriteError,
        }:
            return
        log.error("backend_process_error", error=self._proc.errorString())
        self.statusMessage.emit(f"Analysis backend error: {self._proc.errorString()}")

    def _on_stdout_ready(self) -> None:
        raw = bytes(self._proc.readAllStandardOutput())
        if not raw:
            return
        for message in self._parser.feed(raw):
            log.debug("inbound_received", method=message.get("method"))
            self.dispatch_message(message)

    def _on_stderr_ready(self) -> None:
        raw = bytes(self._proc.readAllStandardError())
        text = raw.decode("utf-8", errors="replace").strip()
        if text:
            log.info("backend_stderr", text=text)


__all__ = ["AnalysisChannel", "ProcessAnalysisChannel"]
