"""Refactor protocol message definitions.

Every message is a JSON-RPC 2.0 notification (no ``id``). Outbound messages
carry the coordinator's session token as ``"session"``; inbound replies may
echo it back, which lets the coordinator drop replies meant for an older
session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .types import Identifier, OccurrencePosition, OccurrenceSet


class InboundMethod(str, Enum):
    """Backend -> editor."""

    AVAILABILITY_UPDATE = "availabilityUpdate"
    VARIABLE_POSITIONS = "variablePositions"
    REFACTOR_RESULT = "refactorResult"


class OutboundMethod(str, Enum):
    """Editor -> backend."""

    FETCH_VARIABLE_POSITIONS = "fetchVariablePositions"
    START_REFACTORING = "startRefactoring"
    FINISH_REFACTORING = "finishRefactoring"
    CANCEL_REFACTORING = "cancelRefactoring"


class ProtocolError(ValueError):
    """Raised when a message payload does not have the expected shape."""


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ProtocolError(f"{what}: expected an object, got {type(data).__name__}")
    return data


def _require_int(data: dict[str, Any], key: str, what: str) -> int:
    value = data.get(key)
    # bool is an int subclass; a flag is never a coordinate.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProtocolError(f"{what}: '{key}' must be an integer, got {value!r}")
    return value


def _optional_session(data: dict[str, Any]) -> Optional[int]:
    value = data.get("session")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProtocolError(f"'session' must be an integer, got {value!r}")
    return value


def position_from_dict(data: Any, what: str = "position") -> OccurrencePosition:
    payload = _require_mapping(data, what)
    row = _require_int(payload, "row", what)
    column = _require_int(payload, "column", what)
    if row < 0 or column < 0:
        raise ProtocolError(f"{what}: negative coordinates {row}:{column}")
    return OccurrencePosition(row=row, column=column)


@dataclass(frozen=True)
class AvailabilityUpdate:
    names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_params(cls, params: Any) -> "AvailabilityUpdate":
        raw = params.get("names") if isinstance(params, dict) else params
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise ProtocolError(f"availabilityUpdate: expected a list of names, got {raw!r}")
        return cls(names=frozenset(str(name) for name in raw if isinstance(name, str) and name))


@dataclass(frozen=True)
class VariablePositions:
    primary: OccurrencePosition
    length: int
    secondaries: tuple[OccurrencePosition, ...] = ()
    session: Optional[int] = None

    @classmethod
    def from_params(cls, params: Any) -> "VariablePositions":
        payload = _require_mapping(params, "variablePositions")
        primary = position_from_dict(payload.get("primaryPosition"), "primaryPosition")
        length = _require_int(payload, "length", "variablePositions")
        raw_others = payload.get("secondaryPositions") or []
        if not isinstance(raw_others, list):
            raise ProtocolError("variablePositions: 'secondaryPositions' must be a list")
        others = tuple(position_from_dict(item, "secondaryPositions[]") for item in raw_others)
        return cls(primary=primary, length=length, secondaries=others, session=_optional_session(payload))

    def occurrence_set(self) -> OccurrenceSet:
        # The backend may list the primary among the others.
        others = tuple(pos for pos in self.secondaries if pos != self.primary)
        return OccurrenceSet(primary=self.primary, secondaries=others, length=int(self.length))


@dataclass(frozen=True)
class RefactorResult:
    success: bool
    detail: str = ""
    session: Optional[int] = None

    @classmethod
    def from_params(cls, params: Any) -> "RefactorResult":
        payload = _require_mapping(params, "refactorResult")
        success = payload.get("success")
        if not isinstance(success, bool):
            raise ProtocolError(f"refactorResult: 'success' must be a boolean, got {success!r}")
        detail = payload.get("detail")
        return cls(
            success=success,
            detail="" if detail is None else str(detail),
            session=_optional_session(payload),
        )


def fetch_variable_positions_params(position: OccurrencePosition, session: int) -> dict[str, Any]:
    return {**position.to_dict(), "session": int(session)}


def finish_refactoring_params(old_identifier: Identifier, new_name: str, session: int) -> dict[str, Any]:
    return {
        "oldIdentifier": old_identifier.to_dict(),
        "newName": str(new_name),
        "session": int(session),
    }


def session_params(session: int) -> dict[str, Any]:
    return {"session": int(session)}


INBOUND_PARSERS = {
    InboundMethod.AVAILABILITY_UPDATE.value: AvailabilityUpdate.from_params,
    InboundMethod.VARIABLE_POSITIONS.value: VariablePositions.from_params,
    InboundMethod.REFACTOR_RESULT.value: RefactorResult.from_params,
}


__all__ = [
    "InboundMethod",
    "OutboundMethod",
    "ProtocolError",
    "AvailabilityUpdate",
    "VariablePositions",
    "RefactorResult",
    "INBOUND_PARSERS",
    "position_from_dict",
    "fetch_variable_positions_params",
    "finish_refactoring_params",
    "session_params",
]
