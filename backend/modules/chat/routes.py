"""
Chat API endpoints.

REST endpoints for room history, plus the WebSocket endpoint for live
delivery.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from api.dependencies import get_auth_service, get_chat_manager, get_chat_repository
from api.middleware.auth import get_current_user, resolve_request_context
from modules.auth.interfaces import IAuthService
from shared.exceptions import ValidationError
from shared.models import AuthenticatedUser

from .interfaces import IChatManager
from .manager import QueuedConnection
from .models import (
    ChatHistoryResponse,
    ChatMessage,
    ChatMessageResponse,
    PostMessageRequest,
)
from .protocol import dispatch_frame
from .repository import ChatMessageRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    manager: IChatManager = Depends(get_chat_manager),
    auth: IAuthService = Depends(get_auth_service),
) -> None:
    """
    Realtime chat connection.

    An optional ``token`` query parameter identifies the sender; a bad token
    leaves the socket anonymous rather than closing it.
    """
    await websocket.accept()
    context = await resolve_request_context(auth, token)

    connection = QueuedConnection(websocket.send_json, identity=context.user)
    manager.connect(connection)
    writer = asyncio.create_task(connection.run_writer())

    try:
        while True:
            raw = await websocket.receive_text()
            await dispatch_frame(manager, connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(connection)
        connection.close()
        await asyncio.gather(writer, return_exceptions=True)


@router.get("/{room_id}", response_model=ChatHistoryResponse)
async def get_messages(
    room_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: ChatMessageRepository = Depends(get_chat_repository),
) -> ChatHistoryResponse:
    """Get a room's message history, oldest first."""
    messages = await asyncio.to_thread(repository.list_messages, room_id)
    return ChatHistoryResponse(messages=messages)


@router.post("/{room_id}", response_model=ChatMessageResponse, status_code=201)
async def post_message(
    room_id: str,
    request: PostMessageRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: ChatMessageRepository = Depends(get_chat_repository),
) -> ChatMessageResponse:
    """
    Store a message from the signed-in user.

    This writes history only; live delivery goes through the WebSocket.
    """
    if not request.content or not request.content.strip():
        raise ValidationError("Message content is required", code="MISSING_CONTENT")

    message = await asyncio.to_thread(
        repository.create_message,
        ChatMessage(
            room_id=room_id,
            sender_id=user.id,
            sender_name=user.name,
            content=request.content,
            created_at=datetime.now(timezone.utc),
        ),
    )
    return ChatMessageResponse(message=message)
