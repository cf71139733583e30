"""Conversation data models."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Role(str, Enum):
    """Author of a turn. Values are what the store persists."""
    HUMAN = "human"
    ASSISTANT = "ai"

    @classmethod
    def parse(cls, value: str) -> Union["Role", str]:
        """Return the matching Role, or the raw value if it is not one."""
        try:
            return cls(value)
        except ValueError:
            return value


@dataclass
class Turn:
    """Represents a single message in a sender's conversation."""
    sender: str
    role: Role
    content: str
    position: int  # assigned by the store on insert
    created_at: Optional[datetime] = None
