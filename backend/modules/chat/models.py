"""
Chat module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field

from shared.models import CamelModel


class ChatEventType(str, Enum):
    """Realtime event names carried in the ``event`` field of a frame."""

    # client -> server
    JOIN_ROOM = "join-chat-room"
    LEAVE_ROOM = "leave-chat-room"
    SEND_MESSAGE = "send-chat-message"

    # server -> client
    NEW_MESSAGE = "new-chat-message"
    ERROR = "error"


class ChatMessage(CamelModel):
    """
    A chat message.

    Immutable once created. ``sender_name`` is copied at send time and not
    kept in sync with later profile changes.
    """

    model_config = {"frozen": True}

    id: Optional[str] = Field(None, description="Store-generated ID")
    room_id: str = Field(..., min_length=1)
    sender_id: str = Field(..., min_length=1)
    sender_name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    created_at: datetime


class ChatFrame(BaseModel):
    """One WebSocket frame: ``{"event": ..., "data": ...}``."""

    event: str
    data: Any = None


class SendChatMessage(CamelModel):
    """Payload of a ``send-chat-message`` frame."""

    room_id: str = Field(..., min_length=1)
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    content: str = Field(..., min_length=1)


class PostMessageRequest(CamelModel):
    content: Optional[str] = None


class ChatHistoryResponse(CamelModel):
    success: bool = True
    messages: list[ChatMessage]


class ChatMessageResponse(CamelModel):
    success: bool = True
    message: ChatMessage
