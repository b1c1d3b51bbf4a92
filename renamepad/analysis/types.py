"""Small dataclasses for identifiers, occurrence positions and availability."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

RENAME_VARIABLE = "renameVariable"


@dataclass(frozen=True)
class OccurrencePosition:
    row: int
    column: int

    def to_dict(self) -> dict[str, int]:
        return {"row": int(self.row), "column": int(self.column)}


@dataclass(frozen=True)
class Identifier:
    row: int
    start_column: int
    text: str

    @property
    def end_column(self) -> int:
        return self.start_column + len(self.text)

    def contains(self, row: int, column: int) -> bool:
        return row == self.row and self.start_column <= column <= self.end_column

    def to_dict(self) -> dict[str, Any]:
        return {"row": int(self.row), "column": int(self.start_column), "text": str(self.text)}


@dataclass(frozen=True)
class OccurrenceSet:
    """One primary occurrence plus its mirrors, all `length` characters long."""

    primary: OccurrencePosition
    secondaries: tuple[OccurrencePosition, ...] = ()
    length: int = 0

    def primary_contains(self, row: int, column: int) -> bool:
        if row != self.primary.row:
            return False
        return self.primary.column <= column <= self.primary.column + self.length

    def all_positions(self) -> tuple[OccurrencePosition, ...]:
        return (self.primary, *self.secondaries)


@dataclass(frozen=True)
class AvailabilityFlags:
    rename_variable: bool = False
    names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "AvailabilityFlags":
        clean = frozenset(str(name or "").strip() for name in names if str(name or "").strip())
        return cls(rename_variable=RENAME_VARIABLE in clean, names=clean)


__all__ = [
    "RENAME_VARIABLE",
    "AvailabilityFlags",
    "Identifier",
    "OccurrencePosition",
    "OccurrenceSet",
]
