"""Linked editing of one primary region mirrored into secondary regions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QTextCursor

from renamepad.analysis.types import OccurrencePosition, OccurrenceSet

from .markers import RENAME_MAIN, RENAME_OTHER

if TYPE_CHECKING:
    from .editor import CodeEditor


class _Region:
    __slots__ = ("start", "end")

    def __init__(self, start: int, end: int) -> None:
        self.start = start
        self.end = end

    def shift_for_change(self, position: int, removed: int, added: int) -> None:
        # Only valid for changes that do not overlap this region.
        if position >= self.end:
            return
        delta = added - removed
        self.start += delta
        self.end += delta


class LinkedEditSession(QObject):
    """Mirrors every edit typed inside the primary region to the secondaries.

    Regions are tracked as document offsets and re-based on each
    ``contentsChange``. The session ends when :meth:`detach` runs; leaving the
    primary region with the text cursor only emits :attr:`cursorLeft`.
    """

    cursorLeft = Signal()

    def __init__(
        self,
        editor: "CodeEditor",
        occurrences: OccurrenceSet,
        *,
        main_class: str = RENAME_MAIN,
        other_class: str = RENAME_OTHER,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        if int(occurrences.length) <= 0:
            raise ValueError(f"Occurrence length must be positive, got {occurrences.length}.")
        self._editor = editor
        self._doc = editor.document()
        self._main_class = str(main_class)
        self._other_class = str(other_class)
        self._regions: list[_Region] = []
        self._original_text = ""
        self._mirroring = False
        self._left = False
        self._detached = False
        self._showing_others = False

        for pos in occurrences.all_positions():
            start = editor.offset_for(pos.row, pos.column)
            end = editor.offset_for(pos.row, pos.column + int(occurrences.length))
            line_len = len(editor.line_text(pos.row))
            if start is None or end is None or pos.column < 0 or pos.column + occurrences.length > line_len:
                raise ValueError(f"Occurrence at {pos.row}:{pos.column} is outside the document.")
            self._regions.append(_Region(start, end))
        self._original_text = self._region_text(self._regions[0])

        self._doc.contentsChange.connect(self._on_contents_change)
        self._editor.cursorPositionChanged.connect(self._on_cursor_position_changed)
        self._refresh_markers()

    # --------- queries ---------
    def is_detached(self) -> bool:
        return self._detached

    def primary_position(self) -> OccurrencePosition:
        return self._editor.position_for_offset(self._regions[0].start)

    def primary_text(self) -> str:
        return self._region_text(self._regions[0])

    def region_texts(self) -> list[str]:
        return [self._region_text(region) for region in self._regions]

    def contains_offset(self, offset: int) -> bool:
        primary = self._regions[0]
        return primary.start <= int(offset) <= primary.end

    # --------- lifecycle ---------
    def show_other_markers(self) -> None:
        self._showing_others = True
        self._refresh_markers()

    def detach(self) -> None:
        if self._detached:
            return
        self._detached = True
        try:
            self._doc.contentsChange.disconnect(self._on_contents_change)
        except (RuntimeError, TypeError):
            pass
        try:
            self._editor.cursorPositionChanged.disconnect(self._on_cursor_position_changed)
        except (RuntimeError, TypeError):
            pass
        self._editor.clear_marker_selections(self._main_class)
        self._editor.clear_marker_selections(self._other_class)

    def cancel(self) -> None:
        """Write the original text back into every region, then detach."""
        if self._detached:
            return
        self._mirroring = True
        try:
            # Highest offset first so earlier regions keep their offsets.
            for index in sorted(range(len(self._regions)), key=lambda i: self._regions[i].start, reverse=True):
                self._replace_in_region(index, 0, self._region_length(index), self._original_text)
        finally:
            self._mirroring = False
        self.detach()

    # --------- internals ---------
    def _region_length(self, index: int) -> int:
        region = self._regions[index]
        return region.end - region.start

    def _region_text(self, region: _Region) -> str:
        cur = QTextCursor(self._doc)
        cur.setPosition(region.start)
        cur.setPosition(region.end, QTextCursor.KeepAnchor)
        return str(cur.selectedText() or "").replace("\u2029", "\n")

    def _replace_in_region(self, index: int, rel_start: int, removed: int, text: str) -> None:
        region = self._regions[index]
        start = region.start + rel_start
        cur = QTextCursor(self._doc)
        cur.setPosition(start)
        cur.setPosition(start + removed, QTextCursor.KeepAnchor)
        cur.insertText(text)
        added = len(text.encode("utf-16-le")) // 2
        region.end += added - removed
        for other_index, other in enumerate(self._regions):
            if other_index != index:
                other.shift_for_change(start, removed, added)

    def _on_contents_change(self, position: int, removed: int, added: int) -> None:
        if self._detached or self._mirroring:
            return
        primary = self._regions[0]
        change_end = position + removed
        if primary.start <= position and change_end <= primary.end:
            rel = position - primary.start
            primary.end += added - removed
            for region in self._regions[1:]:
                region.shift_for_change(position, removed, added)
            cur = QTextCursor(self._doc)
            cur.setPosition(position)
            cur.setPosition(position + added, QTextCursor.KeepAnchor)
            inserted = str(cur.selectedText() or "").replace("\u2029", "\n")
            self._mirror(rel, removed, inserted)
            self._refresh_markers()
            return

        overlaps = any(position < region.end and change_end > region.start for region in self._regions)
        if overlaps:
            self._emit_left()
            return
        for region in self._regions:
            region.shift_for_change(position, removed, added)
        self._refresh_markers()

    def _mirror(self, rel: int, removed: int, inserted: str) -> None:
        if len(self._regions) <= 1:
            return
        self._mirroring = True
        try:
            for index in range(1, len(self._regions)):
                self._replace_in_region(index, rel, removed, inserted)
        finally:
            self._mirroring = False

    def _on_cursor_position_changed(self) -> None:
        if self._detached or self._mirroring:
            return
        if not self.contains_offset(self._editor.textCursor().position()):
            self._emit_left()

    def _emit_left(self) -> None:
        if self._left or self._detached:
            return
        self._left = True
        self.cursorLeft.emit()

    def _refresh_markers(self) -> None:
        if self._detached:
            return
        primary = self._regions[0]
        self._editor.set_marker_selections(
            self._main_class,
            [self._editor.make_marker_selection(primary.start, primary.end, self._main_class)],
        )
        if self._showing_others:
            self._editor.set_marker_selections(
                self._other_class,
                [
                    self._editor.make_marker_selection(region.start, region.end, self._other_class)
                    for region in self._regions[1:]
                ],
            )


__all__ = ["LinkedEditSession"]
