"""
Realtime chat manager.

Tracks which live connections are in which rooms and fans messages out to
them. Each connection per room follows ``connected -> joined* ->
disconnected``; nothing about membership is persisted, so a reconnecting
client has to join its rooms again.

Delivery and persistence fail independently: a message is handed to every
current member first, then written to the store on a detached task. There
is no replay, so a client that is not connected when a message is sent
only sees it through the history endpoint.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Awaitable, Optional
from uuid import uuid4

from shared.models import AuthenticatedUser

from .interfaces import IChatConnection, IChatManager
from .models import ChatEventType, ChatMessage
from .repository import ChatMessageRepository

logger = logging.getLogger(__name__)


class QueuedConnection(IChatConnection):
    """
    Connection with an outbound queue drained by its own writer task.

    ``deliver`` only enqueues, so a slow client never holds up a broadcast,
    and frames reach the client in the order they were delivered.
    """

    def __init__(
        self,
        send: Callable[[dict[str, Any]], Awaitable[None]],
        identity: Optional[AuthenticatedUser] = None,
        connection_id: Optional[str] = None,
    ):
        self.id = connection_id or uuid4().hex
        self.identity = identity
        self._send = send
        self._outbox: asyncio.Queue[Optional[dict[str, Any]]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: str, data: Any) -> None:
        if self._closed:
            return
        self._outbox.put_nowait({"event": event, "data": data})

    def close(self) -> None:
        """Stop accepting frames; the writer exits after flushing what is queued."""
        if not self._closed:
            self._closed = True
            self._outbox.put_nowait(None)

    async def run_writer(self) -> None:
        while True:
            frame = await self._outbox.get()
            if frame is None:
                return
            await self._send(frame)


class ChatManager(IChatManager):
    """
    In-memory room membership plus broadcast.

    All membership changes happen without awaiting, so on a single event
    loop they never interleave with a broadcast in progress.
    """

    def __init__(self, repository: ChatMessageRepository):
        self._repository = repository
        # room id -> connection id -> connection, insertion ordered
        self._rooms: dict[str, dict[str, IChatConnection]] = {}
        # connection id -> joined room ids
        self._memberships: dict[str, set[str]] = {}
        self._pending: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def connect(self, connection: IChatConnection) -> None:
        self._memberships.setdefault(connection.id, set())
        logger.info("Chat connection opened: %s", connection.id)

    def join_room(self, connection: IChatConnection, room_id: str) -> None:
        self._memberships.setdefault(connection.id, set()).add(room_id)
        self._rooms.setdefault(room_id, {})[connection.id] = connection
        logger.info("Connection %s joined chat room: %s", connection.id, room_id)

    def leave_room(self, connection: IChatConnection, room_id: str) -> None:
        self._memberships.get(connection.id, set()).discard(room_id)
        self._remove_member(room_id, connection.id)

    def disconnect(self, connection: IChatConnection) -> None:
        for room_id in self._memberships.pop(connection.id, set()):
            self._remove_member(room_id, connection.id)
        logger.info("Chat connection closed: %s", connection.id)

    def _remove_member(self, room_id: str, connection_id: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.pop(connection_id, None)
        if not members:
            del self._rooms[room_id]

    def room_members(self, room_id: str) -> list[str]:
        """Connection ids currently in a room."""
        return list(self._rooms.get(room_id, {}))

    def rooms_of(self, connection: IChatConnection) -> set[str]:
        return set(self._memberships.get(connection.id, set()))

    # -------------------------------------------------------------------------
    # Messaging
    # -------------------------------------------------------------------------

    async def send_message(
        self,
        room_id: str,
        sender_id: str,
        sender_name: str,
        content: str,
    ) -> ChatMessage:
        message = ChatMessage(
            room_id=room_id,
            sender_id=sender_id,
            sender_name=sender_name,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        payload = message.model_dump(mode="json", by_alias=True, exclude_none=True)

        # Snapshot so a delivery side effect cannot change the set mid-loop.
        for connection in list(self._rooms.get(room_id, {}).values()):
            connection.deliver(ChatEventType.NEW_MESSAGE.value, payload)

        task = asyncio.create_task(self._persist(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return message

    async def _persist(self, message: ChatMessage) -> None:
        try:
            await asyncio.to_thread(self._repository.create_message, message)
        except Exception:
            logger.exception(
                "Failed to persist chat message for room %s from %s",
                message.room_id,
                message.sender_id,
            )

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
