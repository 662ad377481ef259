"""
Chat module interfaces.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser

from .models import ChatMessage


@runtime_checkable
class IChatConnection(Protocol):
    """
    A live client connection as seen by the chat manager.

    ``deliver`` must not block: the manager calls it while fanning a
    message out to every member of a room.
    """

    id: str
    identity: Optional[AuthenticatedUser]

    def deliver(self, event: str, data: Any) -> None:
        ...


@runtime_checkable
class IChatManager(Protocol):
    """
    Interface for realtime chat.

    Room membership is in-memory only and lasts as long as the connection.
    """

    def connect(self, connection: IChatConnection) -> None:
        """Register a newly opened connection."""
        ...

    def join_room(self, connection: IChatConnection, room_id: str) -> None:
        """Add a connection to a room's broadcast group. No access control at this layer."""
        ...

    def leave_room(self, connection: IChatConnection, room_id: str) -> None:
        """Remove a connection from one room."""
        ...

    def disconnect(self, connection: IChatConnection) -> None:
        """Remove a connection from every room it joined."""
        ...

    async def send_message(
        self,
        room_id: str,
        sender_id: str,
        sender_name: str,
        content: str,
    ) -> ChatMessage:
        """
        Broadcast a message to every member of a room, then persist it.

        Persistence runs in the background; its failure is logged and never
        affects delivery.

        Returns:
            The message as broadcast
        """
        ...

    async def drain(self) -> None:
        """Wait for in-flight persistence to settle."""
        ...
