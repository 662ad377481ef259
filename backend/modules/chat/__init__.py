"""
Chat module.

Realtime room-based chat over WebSockets with persisted history.

Public API:
- IChatManager / IChatConnection: Interfaces
- ChatManager, QueuedConnection: In-memory rooms and fan-out
- ChatMessage, ChatEventType: Models
"""

from .interfaces import IChatConnection, IChatManager
from .manager import ChatManager, QueuedConnection
from .models import ChatEventType, ChatMessage

__all__ = [
    "IChatConnection",
    "IChatManager",
    "ChatManager",
    "QueuedConnection",
    "ChatEventType",
    "ChatMessage",
]
