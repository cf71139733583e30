"""Unit tests for the SQLite conversation store and the store factory."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import pytest
from datetime import datetime
from models.conversation import Role, Turn
from services.conversation_store import (
    StoreError,
    StoreUnavailableError,
    StoreWriteError,
    create_store,
)
from services.sqlite_store import SQLiteConversationStore


@pytest.fixture
def store(tmp_path):
    """Create a SQLite store in a temporary directory."""
    store = SQLiteConversationStore(str(tmp_path / "conversations.db"))
    yield store
    store.close()


class TestSQLiteConversationStore:
    """Test suite for SQLiteConversationStore."""

    def test_load_unknown_sender_is_empty(self, store):
        """Test that a sender with no turns has an empty history."""
        assert store.load("+15550000000") == []

    def test_append_and_load_in_order(self, store):
        """Test that turns come back in insertion order."""
        store.append("+15551234567", Role.HUMAN, "hello")
        store.append("+15551234567", Role.ASSISTANT, "hi there")
        store.append("+15551234567", Role.HUMAN, "how are you?")

        turns = store.load("+15551234567")

        assert [(t.role, t.content) for t in turns] == [
            (Role.HUMAN, "hello"),
            (Role.ASSISTANT, "hi there"),
            (Role.HUMAN, "how are you?"),
        ]
        assert all(isinstance(t, Turn) for t in turns)
        assert all(t.sender == "+15551234567" for t in turns)

    def test_positions_strictly_increase(self, store):
        """Test that the store assigns increasing positions."""
        for i in range(5):
            store.append("+15551234567", Role.HUMAN, f"message {i}")

        positions = [t.position for t in store.load("+15551234567")]

        assert positions == sorted(positions)
        assert len(set(positions)) == len(positions)

    def test_senders_are_isolated(self, store):
        """Test that one sender's history never contains another's turns."""
        store.append("+15550000001", Role.HUMAN, "from one")
        store.append("+15550000002", Role.HUMAN, "from two")
        store.append("+15550000001", Role.ASSISTANT, "reply to one")

        first = store.load("+15550000001")
        second = store.load("+15550000002")

        assert [t.content for t in first] == ["from one", "reply to one"]
        assert [t.content for t in second] == ["from two"]

    def test_interleaved_history_after_many_exchanges(self, store):
        """Test that n exchanges leave 2n turns alternating human/assistant."""
        messages = ["first", "second", "third", "fourth"]
        for message in messages:
            store.append("+15551234567", Role.HUMAN, message)
            store.append("+15551234567", Role.ASSISTANT, f"re: {message}")

        turns = store.load("+15551234567")

        assert len(turns) == 2 * len(messages)
        assert [t.role for t in turns] == [Role.HUMAN, Role.ASSISTANT] * len(messages)
        assert [t.content for t in turns[::2]] == messages

    def test_created_at_is_populated(self, store):
        """Test that the insert timestamp is parsed."""
        store.append("+15551234567", Role.HUMAN, "hello")

        turn = store.load("+15551234567")[0]

        assert isinstance(turn.created_at, datetime)

    def test_unexpected_role_value_is_kept_raw(self, store):
        """Test that a row with a foreign role value still loads."""
        store._db.execute(
            "INSERT INTO conversations (phone_number, role, content) VALUES (?, ?, ?)",
            ("+15551234567", "system", "legacy row")
        )
        store._db.commit()

        turn = store.load("+15551234567")[0]

        assert turn.role == "system"
        assert turn.content == "legacy row"

    def test_creates_parent_directory(self, tmp_path):
        """Test that a missing data directory is created."""
        path = tmp_path / "nested" / "data" / "conversations.db"
        store = SQLiteConversationStore(str(path))
        try:
            assert path.exists()
        finally:
            store.close()

    def test_unopenable_database_is_unavailable(self, tmp_path):
        """Test that a path that cannot be opened raises StoreUnavailableError."""
        with pytest.raises(StoreUnavailableError):
            SQLiteConversationStore(str(tmp_path))

    def test_missing_table_is_unavailable(self, store):
        """Test that an operational failure maps to StoreUnavailableError."""
        store._db.execute("DROP TABLE conversations")

        with pytest.raises(StoreUnavailableError) as exc_info:
            store.append("+15551234567", Role.HUMAN, "hello")

        assert exc_info.value.code == "STORE_UNAVAILABLE"

    def test_closed_connection_write_fails(self, tmp_path):
        """Test that writing after close raises a write error."""
        store = SQLiteConversationStore(str(tmp_path / "conversations.db"))
        store.close()

        with pytest.raises(StoreWriteError) as exc_info:
            store.append("+15551234567", Role.HUMAN, "hello")

        assert isinstance(exc_info.value, StoreError)
        assert exc_info.value.code == "STORE_WRITE_ERROR"

    def test_custom_table_name(self, tmp_path):
        """Test that the table name is configurable."""
        store = SQLiteConversationStore(str(tmp_path / "c.db"), table_name="sms_turns")
        try:
            store.append("+15551234567", Role.HUMAN, "hello")
            assert len(store.load("+15551234567")) == 1
        finally:
            store.close()


class TestCreateStore:
    """Test suite for the create_store factory."""

    def test_creates_sqlite_store(self, tmp_path):
        """Test selecting the SQLite backend."""
        store = create_store("sqlite", database_path=str(tmp_path / "c.db"))
        try:
            assert isinstance(store, SQLiteConversationStore)
        finally:
            store.close()

    def test_backend_name_is_case_insensitive(self, tmp_path):
        """Test that backend names are normalized."""
        store = create_store(" SQLite ", database_path=str(tmp_path / "c.db"))
        try:
            assert isinstance(store, SQLiteConversationStore)
        finally:
            store.close()

    def test_unknown_backend_raises(self):
        """Test that an unknown backend is rejected."""
        with pytest.raises(ValueError, match="Unknown store backend"):
            create_store("mongodb")
