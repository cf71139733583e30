"""Conversation store backed by an embedded SQLite file."""
import logging
import os
import sqlite3
import threading
from datetime import datetime
from typing import List, Optional

from models.conversation import Role, Turn
from services.conversation_store import (
    ConversationStore,
    StoreReadError,
    StoreUnavailableError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)


class SQLiteConversationStore(ConversationStore):
    """Single-file store; one shared connection serialized by a lock."""

    def __init__(self, database_path: str, table_name: str = "conversations"):
        """
        Open the database file and create the conversations table.

        Args:
            database_path: Path to the SQLite file, or ":memory:"
            table_name: Name of the table holding turns

        Raises:
            StoreUnavailableError: If the file cannot be opened
        """
        self.database_path = database_path
        self.table_name = table_name
        self._lock = threading.Lock()

        try:
            directory = os.path.dirname(database_path)
            if directory and database_path != ":memory:":
                os.makedirs(directory, exist_ok=True)
            self._db = sqlite3.connect(database_path, check_same_thread=False)
            self._db.execute("PRAGMA journal_mode=WAL")
            self._db.executescript(f"""
                CREATE TABLE IF NOT EXISTS {table_name} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    phone_number TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );
                CREATE INDEX IF NOT EXISTS idx_{table_name}_phone_number
                    ON {table_name} (phone_number, id);
            """)
            self._db.commit()
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Cannot open SQLite database {database_path}: {e}")

        logger.info(f"Initialized SQLiteConversationStore at {database_path}")

    def append(self, sender: str, role: Role, content: str) -> None:
        try:
            with self._lock:
                self._db.execute(
                    f"INSERT INTO {self.table_name} (phone_number, role, content) VALUES (?, ?, ?)",
                    (sender, Role(role).value, content)
                )
                self._db.commit()
        except sqlite3.OperationalError as e:
            raise StoreUnavailableError(str(e))
        except sqlite3.Error as e:
            raise StoreWriteError(str(e))

        logger.debug(f"Appended {Role(role).value} turn for {sender}")

    def load(self, sender: str) -> List[Turn]:
        try:
            with self._lock:
                rows = self._db.execute(
                    f"SELECT id, phone_number, role, content, created_at FROM {self.table_name} "
                    "WHERE phone_number = ? ORDER BY id ASC",
                    (sender,)
                ).fetchall()
        except sqlite3.OperationalError as e:
            raise StoreUnavailableError(str(e))
        except sqlite3.Error as e:
            raise StoreReadError(str(e))

        return [
            Turn(
                sender=phone_number,
                role=Role.parse(role),
                content=content,
                position=row_id,
                created_at=_parse_timestamp(created_at)
            )
            for row_id, phone_number, role, content, created_at in rows
        ]

    def close(self) -> None:
        with self._lock:
            self._db.close()
        logger.info("Closed SQLiteConversationStore")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    # CURRENT_TIMESTAMP yields "YYYY-MM-DD HH:MM:SS"
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
