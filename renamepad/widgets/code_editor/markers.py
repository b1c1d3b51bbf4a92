"""Marker type switches shared by the editor's highlight layers."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

OCCURRENCE_MAIN = "occurrence_main"
OCCURRENCE_OTHER = "occurrence_other"
RENAME_MAIN = "rename_main"
RENAME_OTHER = "rename_other"


class MarkerRegistry(QObject):
    """Tracks which marker types are currently allowed to paint."""

    markerTypesChanged = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._disabled: set[str] = set()

    def disable_marker_type(self, marker_type: str) -> bool:
        key = str(marker_type or "").strip()
        if not key or key in self._disabled:
            return False
        self._disabled.add(key)
        self.markerTypesChanged.emit()
        return True

    def enable_marker_type(self, marker_type: str) -> bool:
        key = str(marker_type or "").strip()
        if key not in self._disabled:
            return False
        self._disabled.discard(key)
        self.markerTypesChanged.emit()
        return True

    def is_marker_type_enabled(self, marker_type: str) -> bool:
        return str(marker_type or "").strip() not in self._disabled

    def disabled_marker_types(self) -> frozenset[str]:
        return frozenset(self._disabled)


__all__ = [
    "OCCURRENCE_MAIN",
    "OCCURRENCE_OTHER",
    "RENAME_MAIN",
    "RENAME_OTHER",
    "MarkerRegistry",
]
