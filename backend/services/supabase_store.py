"""Conversation store backed by Supabase PostgreSQL."""
import logging
from datetime import datetime
from typing import List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from models.conversation import Role, Turn
from services.conversation_store import (
    ConversationStore,
    StoreReadError,
    StoreUnavailableError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)


class SupabaseConversationStore(ConversationStore):
    """
    Stores turns in a Supabase table.

    The table is created outside the service:

        create table conversations (
            id bigserial primary key,
            phone_number text not null,
            role text not null,
            content text not null,
            created_at timestamptz not null default now()
        );
    """

    def __init__(
        self,
        supabase_url: Optional[str],
        supabase_key: Optional[str],
        table_name: str = "conversations",
        client: Optional[Client] = None
    ):
        """
        Initialize the store with a Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
            table_name: Name of the table holding turns
            client: Pre-built client, mainly for tests

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if client is None and (not supabase_url or not supabase_key):
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

        self.table_name = table_name
        self.client: Client = client or create_client(supabase_url, supabase_key)
        logger.info(f"Initialized SupabaseConversationStore with table: {table_name}")

    def append(self, sender: str, role: Role, content: str) -> None:
        try:
            self.client.table(self.table_name).insert({
                "phone_number": sender,
                "role": Role(role).value,
                "content": content
            }).execute()
        except httpx.TransportError as e:
            logger.error(f"Supabase unreachable while adding turn for {sender}: {e}")
            raise StoreUnavailableError(str(e))
        except APIError as e:
            logger.error(f"Error adding turn for {sender}: {e}")
            raise StoreWriteError(str(e))

        logger.debug(f"Added {Role(role).value} turn for {sender}")

    def load(self, sender: str) -> List[Turn]:
        try:
            result = (
                self.client.table(self.table_name)
                .select("id, phone_number, role, content, created_at")
                .eq("phone_number", sender)
                .order("id", desc=False)
                .execute()
            )
        except httpx.TransportError as e:
            logger.error(f"Supabase unreachable while loading turns for {sender}: {e}")
            raise StoreUnavailableError(str(e))
        except APIError as e:
            logger.error(f"Error retrieving turns for {sender}: {e}")
            raise StoreReadError(str(e))

        rows = result.data or []
        return [
            Turn(
                sender=row["phone_number"],
                role=Role.parse(row["role"]),
                content=row["content"],
                position=row["id"],
                created_at=self._parse_timestamp(row.get("created_at"))
            )
            for row in rows
        ]

    def _parse_timestamp(self, timestamp_str: Optional[str]) -> Optional[datetime]:
        """
        Parse timestamp string from Supabase, handling various formats.

        Supabase can return timestamps with varying microsecond precision,
        which Python's fromisoformat() can't always handle. This method
        normalizes the fraction to six digits.

        Args:
            timestamp_str: Timestamp string from Supabase

        Returns:
            datetime object, or None when absent
        """
        if not timestamp_str:
            return None

        # Replace 'Z' with '+00:00' for timezone
        timestamp_str = timestamp_str.replace("Z", "+00:00")

        # Format: 2026-02-21T02:08:26.18976+00:00
        if "." in timestamp_str:
            head, tail = timestamp_str.split(".", 1)
            for sign in ("+", "-"):
                if sign in tail:
                    fraction, tz = tail.split(sign, 1)
                    timestamp_str = f"{head}.{fraction[:6].ljust(6, '0')}{sign}{tz}"
                    break
            else:
                timestamp_str = f"{head}.{tail[:6].ljust(6, '0')}"

        return datetime.fromisoformat(timestamp_str)
