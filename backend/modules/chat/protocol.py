"""
WebSocket frame handling for realtime chat.

Frames are JSON objects ``{"event": <name>, "data": <payload>}``:

- ``join-chat-room``: data is the room id
- ``leave-chat-room``: data is the room id
- ``send-chat-message``: data is ``{roomId, senderId, senderName, content}``

The server pushes ``new-chat-message`` to room members, and ``error`` to
the sending connection when a frame cannot be handled.
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from .interfaces import IChatConnection, IChatManager
from .models import ChatEventType, ChatFrame, SendChatMessage

logger = logging.getLogger(__name__)


def _send_error(connection: IChatConnection, message: str) -> None:
    connection.deliver(ChatEventType.ERROR.value, {"message": message})


def _room_id(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        data = data.get("roomId") or data.get("room_id")
    if isinstance(data, (str, int)) and str(data):
        return str(data)
    return None


async def dispatch_frame(
    manager: IChatManager,
    connection: IChatConnection,
    raw: str,
) -> None:
    """Parse one inbound frame and apply it."""
    try:
        frame = ChatFrame.model_validate(json.loads(raw))
    except (json.JSONDecodeError, PydanticValidationError):
        _send_error(connection, "Invalid frame")
        return

    if frame.event == ChatEventType.JOIN_ROOM.value:
        room_id = _room_id(frame.data)
        if room_id is None:
            _send_error(connection, "Room id required")
            return
        manager.join_room(connection, room_id)

    elif frame.event == ChatEventType.LEAVE_ROOM.value:
        room_id = _room_id(frame.data)
        if room_id is None:
            _send_error(connection, "Room id required")
            return
        manager.leave_room(connection, room_id)

    elif frame.event == ChatEventType.SEND_MESSAGE.value:
        try:
            request = SendChatMessage.model_validate(frame.data)
        except PydanticValidationError:
            _send_error(connection, "roomId and content are required")
            return

        # An authenticated socket cannot speak for someone else.
        if connection.identity is not None:
            sender_id, sender_name = connection.identity.id, connection.identity.name
        else:
            sender_id, sender_name = request.sender_id, request.sender_name
        if not sender_id or not sender_name:
            _send_error(connection, "senderId and senderName are required")
            return

        await manager.send_message(request.room_id, sender_id, sender_name, request.content)

    else:
        logger.debug("Unknown chat event %r from %s", frame.event, connection.id)
        _send_error(connection, f"Unknown event: {frame.event}")
