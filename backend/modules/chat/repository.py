"""
Chat message repository for database access.

Encapsulates Supabase queries and data mapping for the ``chat_messages``
table. Messages are only ever inserted and read.
"""

from typing import Any

from shared.repository import BaseRepository
from .models import ChatMessage

CHAT_MESSAGES_TABLE = "chat_messages"


class ChatMessageRepository(BaseRepository[ChatMessage]):
    """Repository for chat history."""

    def create_message(self, message: ChatMessage) -> ChatMessage:
        """
        Insert a message.

        Args:
            message: Message to store; its ``id`` is ignored.

        Returns:
            The stored message with its generated ID.
        """
        data = {
            "room_id": message.room_id,
            "sender_id": message.sender_id,
            "sender_name": message.sender_name,
            "content": message.content,
            "created_at": message.created_at.isoformat(),
        }
        result = self._db.table(CHAT_MESSAGES_TABLE).insert(data).execute()
        return self._map_to_message(result.data[0])

    def list_messages(self, room_id: str) -> list[ChatMessage]:
        """All messages in a room, oldest first."""
        result = (
            self._db.table(CHAT_MESSAGES_TABLE)
            .select("*")
            .eq("room_id", room_id)
            .order("created_at")
            .execute()
        )
        return [self._map_to_message(row) for row in result.data]

    def _map_to_message(self, data: dict[str, Any]) -> ChatMessage:
        """Map database row to ChatMessage model."""
        return ChatMessage(
            id=str(data["id"]),
            room_id=data["room_id"],
            sender_id=str(data["sender_id"]),
            sender_name=data["sender_name"],
            content=data["content"],
            created_at=data["created_at"],
        )
