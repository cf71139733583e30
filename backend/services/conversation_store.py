"""Conversation store interface and error types."""
from abc import ABC, abstractmethod
from typing import List

from models.conversation import Role, Turn


class StoreError(Exception):
    """Base class for conversation store failures."""

    code = "STORE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StoreUnavailableError(StoreError):
    """The backing store could not be reached."""
    code = "STORE_UNAVAILABLE"


class StoreWriteError(StoreError):
    """An insert failed once the store was reached."""
    code = "STORE_WRITE_ERROR"


class StoreReadError(StoreError):
    """A history query failed once the store was reached."""
    code = "STORE_READ_ERROR"


class ConversationStore(ABC):
    """
    Append-only log of turns, one ordered history per sender.

    Implementations assign each turn a position that strictly increases
    within a sender's history. Schema setup happens at construction, never
    per request.
    """

    @abstractmethod
    def append(self, sender: str, role: Role, content: str) -> None:
        """
        Persist one turn at the end of the sender's history.

        Raises:
            StoreUnavailableError: If the store cannot be reached
            StoreWriteError: If the insert itself fails
        """

    @abstractmethod
    def load(self, sender: str) -> List[Turn]:
        """
        Return every turn for the sender in position order.

        Unknown senders yield an empty list.

        Raises:
            StoreUnavailableError: If the store cannot be reached
            StoreReadError: If the query fails
        """

    def close(self) -> None:
        """Release any held connection."""


def create_store(backend: str, **options) -> ConversationStore:
    """
    Build the configured conversation store.

    Args:
        backend: "sqlite" or "supabase"
        **options: Passed to the backend constructor

    Returns:
        ConversationStore instance

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = backend.strip().lower()
    if backend == "sqlite":
        from services.sqlite_store import SQLiteConversationStore
        return SQLiteConversationStore(**options)
    if backend == "supabase":
        from services.supabase_store import SupabaseConversationStore
        return SupabaseConversationStore(**options)
    raise ValueError(f"Unknown store backend: {backend}")
