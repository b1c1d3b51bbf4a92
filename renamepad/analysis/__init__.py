from .channel import AnalysisChannel, ProcessAnalysisChannel
from .json_rpc import MessageParser, encode_message
from .protocol import AvailabilityUpdate, ProtocolError, RefactorResult, VariablePositions

__all__ = [
    "AnalysisChannel",
    "ProcessAnalysisChannel",
    "MessageParser",
    "encode_message",
    "AvailabilityUpdate",
    "ProtocolError",
    "RefactorResult",
    "VariablePositions",
]
