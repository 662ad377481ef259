"""Tests for the realtime chat manager."""

import asyncio
import pytest
from typing import Any, Optional
from unittest.mock import MagicMock
from uuid import uuid4

from modules.chat.interfaces import IChatConnection, IChatManager
from modules.chat.manager import ChatManager, QueuedConnection
from modules.chat.models import ChatEventType
from shared.models import AuthenticatedUser


class RecordingConnection:
    """Connection that keeps every delivered frame."""

    def __init__(self, identity: Optional[AuthenticatedUser] = None):
        self.id = uuid4().hex
        self.identity = identity
        self.frames: list[dict[str, Any]] = []

    def deliver(self, event: str, data: Any) -> None:
        self.frames.append({"event": event, "data": data})

    def messages(self) -> list[dict[str, Any]]:
        return [f["data"] for f in self.frames if f["event"] == ChatEventType.NEW_MESSAGE.value]


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.create_message.side_effect = lambda message: message
    return repo


@pytest.fixture
def manager(repository):
    return ChatManager(repository)


def connected(manager: ChatManager, *rooms: str) -> RecordingConnection:
    connection = RecordingConnection()
    manager.connect(connection)
    for room_id in rooms:
        manager.join_room(connection, room_id)
    return connection


class TestMembership:
    def test_implements_interfaces(self, manager):
        assert isinstance(manager, IChatManager)
        assert isinstance(RecordingConnection(), IChatConnection)

    def test_join_and_leave(self, manager):
        connection = connected(manager, "room-1", "room-2")

        assert manager.room_members("room-1") == [connection.id]
        assert manager.rooms_of(connection) == {"room-1", "room-2"}

        manager.leave_room(connection, "room-1")

        assert manager.room_members("room-1") == []
        assert manager.rooms_of(connection) == {"room-2"}

    def test_join_is_idempotent(self, manager):
        connection = connected(manager, "room-1", "room-1")
        assert manager.room_members("room-1") == [connection.id]

    def test_leave_unknown_room(self, manager):
        connection = connected(manager)
        manager.leave_room(connection, "nowhere")
        assert manager.rooms_of(connection) == set()

    def test_disconnect_leaves_every_room(self, manager):
        connection = connected(manager, "room-1", "room-2")
        other = connected(manager, "room-2")

        manager.disconnect(connection)

        assert manager.room_members("room-1") == []
        assert manager.room_members("room-2") == [other.id]
        assert manager.rooms_of(connection) == set()


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_delivers_only_to_room_members(self, manager):
        alice = connected(manager, "R1")
        bob = connected(manager, "R2")

        await manager.send_message("R1", "user-1", "Alice", "hi")
        await manager.drain()

        assert [m["content"] for m in alice.messages()] == ["hi"]
        assert bob.messages() == []

    @pytest.mark.asyncio
    async def test_sender_receives_own_message(self, manager):
        sender = connected(manager, "R1")
        await manager.send_message("R1", "user-1", "Alice", "echo")
        await manager.drain()

        assert sender.messages()[0]["senderName"] == "Alice"

    @pytest.mark.asyncio
    async def test_payload_shape(self, manager):
        member = connected(manager, "R1")

        message = await manager.send_message("R1", "user-1", "Alice", "hi")
        await manager.drain()

        payload = member.messages()[0]
        assert payload["roomId"] == "R1"
        assert payload["senderId"] == "user-1"
        assert payload["content"] == "hi"
        assert "createdAt" in payload
        assert "id" not in payload
        assert message.content == "hi"

    @pytest.mark.asyncio
    async def test_preserves_order(self, manager):
        first = connected(manager, "R1")
        second = connected(manager, "R1")

        for content in ("one", "two", "three"):
            await manager.send_message("R1", "user-1", "Alice", content)
        await manager.drain()

        for connection in (first, second):
            assert [m["content"] for m in connection.messages()] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_no_delivery_after_leaving(self, manager):
        connection = connected(manager, "R1")
        manager.leave_room(connection, "R1")

        await manager.send_message("R1", "user-1", "Alice", "hi")
        await manager.drain()

        assert connection.messages() == []

    @pytest.mark.asyncio
    async def test_empty_room(self, manager, repository):
        await manager.send_message("empty", "user-1", "Alice", "anyone?")
        await manager.drain()
        repository.create_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_persists_message(self, manager, repository):
        connected(manager, "R1")

        message = await manager.send_message("R1", "user-1", "Alice", "hi")
        await manager.drain()

        repository.create_message.assert_called_once_with(message)

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_block_delivery(self, manager, repository):
        repository.create_message.side_effect = RuntimeError("database down")
        member = connected(manager, "R1")

        await manager.send_message("R1", "user-1", "Alice", "still delivered")
        await manager.drain()

        assert [m["content"] for m in member.messages()] == ["still delivered"]

    @pytest.mark.asyncio
    async def test_drain_without_pending(self, manager):
        await manager.drain()


class TestQueuedConnection:
    @pytest.mark.asyncio
    async def test_writer_sends_in_order(self):
        sent = []

        async def send(frame):
            sent.append(frame)

        connection = QueuedConnection(send)
        writer = asyncio.create_task(connection.run_writer())

        connection.deliver("new-chat-message", {"content": "one"})
        connection.deliver("new-chat-message", {"content": "two"})
        connection.close()
        await asyncio.wait_for(writer, timeout=1)

        assert sent == [
            {"event": "new-chat-message", "data": {"content": "one"}},
            {"event": "new-chat-message", "data": {"content": "two"}},
        ]

    @pytest.mark.asyncio
    async def test_deliver_after_close_is_dropped(self):
        sent = []

        async def send(frame):
            sent.append(frame)

        connection = QueuedConnection(send)
        connection.close()
        connection.deliver("new-chat-message", {"content": "late"})

        await asyncio.wait_for(connection.run_writer(), timeout=1)

        assert connection.closed is True
        assert sent == []

    def test_ids_are_unique(self):
        async def send(frame):
            pass

        assert QueuedConnection(send).id != QueuedConnection(send).id
        assert QueuedConnection(send, connection_id="fixed").id == "fixed"
