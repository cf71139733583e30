"""Data models for the SMS relay assistant."""
from .conversation import Role, Turn
from .api import InboundEvent, Payload, Thinking, MessageReceivedResponse, ErrorResponse

__all__ = [
    "Role",
    "Turn",
    "InboundEvent",
    "Payload",
    "Thinking",
    "MessageReceivedResponse",
    "ErrorResponse",
]
