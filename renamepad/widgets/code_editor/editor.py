from __future__ import annotations

import re
from typing import Mapping

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QColor, QFont, QKeyEvent, QTextCursor, QTextFormat
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit, QWidget

from renamepad.analysis.types import OccurrencePosition

from .helpers import (
    _EDITOR_DEFAULT_COLORS,
    codepoint_index_from_utf16_units,
    identifier_pattern,
    is_identifier_char,
    scan_identifier,
    utf16_units_for_prefix,
)
from .keypress_handlers import KeyHandler
from .markers import OCCURRENCE_MAIN, OCCURRENCE_OTHER, RENAME_MAIN, RENAME_OTHER, MarkerRegistry

# Painted bottom to top.
_MARKER_LAYER_ORDER: tuple[str, ...] = (OCCURRENCE_OTHER, OCCURRENCE_MAIN, RENAME_OTHER, RENAME_MAIN)
_MAX_OCCURRENCE_MATCHES = 12000


class CodeEditor(QPlainTextEdit):
    """Plain-text editor exposing the hooks a rename session drives.

    Rows and columns are 0-based and count code points; offsets are
    QTextDocument positions.
    """

    completionRequested = Signal(str)  # reason: manual | auto
    keyHandlerChanged = Signal()

    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        colors: Mapping[str, str] | None = None,
        occurrence_highlight: bool = True,
        continuous_completion: bool = False,
    ):
        super().__init__(parent)
        self._colors = dict(_EDITOR_DEFAULT_COLORS)
        if isinstance(colors, Mapping):
            self._colors.update({str(k): str(v) for k, v in colors.items() if v})
        self._editor_background_color = QColor("#252526")
        self._occurrence_highlight = bool(occurrence_highlight)
        self._continuous_completion = bool(continuous_completion)
        self._key_handler: KeyHandler = self._default_key_handler

        self._markers = MarkerRegistry(self)
        self._markers.markerTypesChanged.connect(self._rebuild_extra_selections)
        self._marker_layers: dict[str, list[QTextEdit.ExtraSelection]] = {}

        self._occurrence_refresh_timer = QTimer(self)
        self._occurrence_refresh_timer.setSingleShot(True)
        self._occurrence_refresh_timer.setInterval(90)
        self._occurrence_refresh_timer.timeout.connect(self._refresh_occurrence_markers)
        self.textChanged.connect(self._schedule_occurrence_marker_refresh)
        self.cursorPositionChanged.connect(self._schedule_occurrence_marker_refresh)
        self.cursorPositionChanged.connect(self._rebuild_extra_selections)

        self.setFont(QFont("Courier New", 11))
        self._rebuild_extra_selections()

    # --------- positions ---------
    def line_count(self) -> int:
        return int(self.document().blockCount())

    def line_text(self, row: int) -> str:
        block = self.document().findBlockByNumber(int(row))
        if not block.isValid():
            return ""
        return block.text()

    def offset_for(self, row: int, column: int) -> int | None:
        block = self.document().findBlockByNumber(int(row))
        if not block.isValid() or int(row) < 0:
            return None
        text = block.text()
        col = max(0, min(int(column), len(text)))
        return int(block.position()) + utf16_units_for_prefix(text, col)

    def position_for_offset(self, offset: int) -> OccurrencePosition:
        doc = self.document()
        clamped = max(0, min(int(offset), max(0, int(doc.characterCount()) - 1)))
        block = doc.findBlock(clamped)
        units = clamped - int(block.position())
        return OccurrencePosition(
            row=int(block.blockNumber()),
            column=codepoint_index_from_utf16_units(block.text(), units),
        )

    def cursor_position(self) -> OccurrencePosition:
        return self.position_for_offset(self.textCursor().position())

    def move_cursor_to(self, row: int, column: int) -> bool:
        offset = self.offset_for(row, column)
        if offset is None:
            return False
        cursor = self.textCursor()
        cursor.setPosition(offset)
        self.setTextCursor(cursor)
        self.ensureCursorVisible()
        return True

    # --------- key dispatch ---------
    def key_handler(self) -> KeyHandler:
        return self._key_handler

    def set_key_handler(self, handler: KeyHandler | None) -> None:
        self._key_handler = handler if callable(handler) else self._default_key_handler
        self.keyHandlerChanged.emit()

    def _default_key_handler(self, _event: QKeyEvent) -> bool:
        return False

    def keyPressEvent(self, event):
        if self._key_handler(event):
            event.accept()
            return

        super().keyPressEvent(event)

        text = event.text()
        mods = event.modifiers()
        if (
            self._continuous_completion
            and text
            and is_identifier_char(text[-1])
            and not (mods & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier))
        ):
            self.completionRequested.emit("auto")

    # --------- continuous completion ---------
    def is_continuous_completion_enabled(self) -> bool:
        return self._continuous_completion

    def set_continuous_completion_enabled(self, enabled: bool) -> None:
        self._continuous_completion = bool(enabled)

    # --------- marker layers ---------
    def marker_registry(self) -> MarkerRegistry:
        return self._markers

    def marker_color(self, marker_type: str) -> QColor:
        return QColor(self._colors.get(str(marker_type or ""), "#3A3D41"))

    def make_marker_selection(self, start: int, end: int, marker_type: str) -> QTextEdit.ExtraSelection:
        sel = QTextEdit.ExtraSelection()
        cur = QTextCursor(self.document())
        cur.setPosition(int(start))
        cur.setPosition(int(end), QTextCursor.KeepAnchor)
        sel.cursor = cur
        sel.format.setBackground(self.marker_color(marker_type))
        return sel

    def set_marker_selections(self, marker_type: str, selections: list[QTextEdit.ExtraSelection]) -> None:
        self._marker_layers[str(marker_type)] = list(selections)
        self._rebuild_extra_selections()

    def clear_marker_selections(self, marker_type: str) -> None:
        if self._marker_layers.pop(str(marker_type), None) is not None:
            self._rebuild_extra_selections()

    def marker_selections(self, marker_type: str) -> list[QTextEdit.ExtraSelection]:
        return list(self._marker_layers.get(str(marker_type), []))

    def visible_marker_types(self) -> list[str]:
        return [
            marker_type
            for marker_type in self._ordered_marker_types()
            if self._marker_layers.get(marker_type) and self._markers.is_marker_type_enabled(marker_type)
        ]

    def _ordered_marker_types(self) -> list[str]:
        ordered = [name for name in _MARKER_LAYER_ORDER if name in self._marker_layers]
        ordered.extend(name for name in self._marker_layers if name not in _MARKER_LAYER_ORDER)
        return ordered

    def _rebuild_extra_selections(self):
        extraSelections: list[QTextEdit.ExtraSelection] = []
        if not self.isReadOnly():
            selection = QTextEdit.ExtraSelection()
            lineColor = QColor(self._editor_background_color)
            if lineColor.lightness() < 128:
                lineColor = lineColor.lighter(130)
            else:
                lineColor = lineColor.darker(112)
            lineColor.setAlpha(140)
            selection.format.setBackground(lineColor)
            selection.format.setProperty(QTextFormat.FullWidthSelection, True)
            selection.cursor = self.textCursor()
            selection.cursor.clearSelection()
            extraSelections.append(selection)
        for marker_type in self.visible_marker_types():
            extraSelections.extend(self._marker_layers.get(marker_type, []))
        self.setExtraSelections(extraSelections)

    # --------- occurrence highlight ---------
    def set_occurrence_highlight_enabled(self, enabled: bool) -> None:
        self._occurrence_highlight = bool(enabled)
        self._schedule_occurrence_marker_refresh()

    def _schedule_occurrence_marker_refresh(self):
        if not self._occurrence_highlight:
            return
        self._occurrence_refresh_timer.start()

    def _clear_occurrence_markers(self):
        self._marker_layers.pop(OCCURRENCE_MAIN, None)
        self._marker_layers.pop(OCCURRENCE_OTHER, None)
        self._rebuild_extra_selections()

    def _refresh_occurrence_markers(self):
        if not self._occurrence_highlight:
            self._clear_occurrence_markers()
            return
        cur = self.textCursor()
        if cur.hasSelection():
            self._clear_occurrence_markers()
            return
        block = cur.block()
        position = self.cursor_position()
        ident = scan_identifier(block.text(), position.column, row=position.row)
        if ident is None or len(ident.text) < 2:
            self._clear_occurrence_markers()
            return

        regex = re.compile(identifier_pattern(ident.text))
        main: list[QTextEdit.ExtraSelection] = []
        others: list[QTextEdit.ExtraSelection] = []
        count = 0
        scan_block = self.document().firstBlock()
        while scan_block.isValid() and count < _MAX_OCCURRENCE_MATCHES:
            text = scan_block.text()
            base = int(scan_block.position())
            for match in regex.finditer(text):
                start = base + utf16_units_for_prefix(text, match.start())
                end = base + utf16_units_for_prefix(text, match.end())
                is_main = scan_block.blockNumber() == ident.row and match.start() == ident.start_column
                marker_type = OCCURRENCE_MAIN if is_main else OCCURRENCE_OTHER
                (main if is_main else others).append(self.make_marker_selection(start, end, marker_type))
                count += 1
                if count >= _MAX_OCCURRENCE_MATCHES:
                    break
            scan_block = scan_block.next()

        self._marker_layers[OCCURRENCE_MAIN] = main
        self._marker_layers[OCCURRENCE_OTHER] = others
        self._rebuild_extra_selections()


__all__ = ["CodeEditor"]
