"""Per-chat conversation memory.

Handlers never touch a module-level map: the app builds one store when it
starts and hands it to the chatbot, so a persistent store can replace the
in-memory one without changing any caller.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel, Field


DEFAULT_CHAT_ID = "default"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: str = Field(default_factory=utc_now)


def resolve_chat_id(chat_id: Optional[str]) -> str:
    if isinstance(chat_id, str) and chat_id.strip():
        return chat_id.strip()
    return DEFAULT_CHAT_ID


class ConversationStore(Protocol):
    def append(self, chat_id: Optional[str], message: ChatMessage) -> None: ...

    def recent(self, chat_id: Optional[str], n: int) -> List[ChatMessage]: ...

    def history(self, chat_id: Optional[str]) -> List[ChatMessage]: ...

    def clear(self, chat_id: Optional[str]) -> None: ...

    def clear_all(self) -> None: ...


class InMemoryConversationStore:
    """Keeps the last ``max_length`` messages of every chat for the process lifetime."""

    def __init__(self, max_length: int = 20) -> None:
        self.max_length = max_length
        self._chats: Dict[str, List[ChatMessage]] = {}

    def append(self, chat_id: Optional[str], message: ChatMessage) -> None:
        messages = self._chats.setdefault(resolve_chat_id(chat_id), [])
        messages.append(message)
        if len(messages) > self.max_length:
            del messages[: len(messages) - self.max_length]

    def recent(self, chat_id: Optional[str], n: int) -> List[ChatMessage]:
        if n <= 0:
            return []
        return list(self._chats.get(resolve_chat_id(chat_id), [])[-n:])

    def history(self, chat_id: Optional[str]) -> List[ChatMessage]:
        return list(self._chats.get(resolve_chat_id(chat_id), []))

    def clear(self, chat_id: Optional[str]) -> None:
        self._chats[resolve_chat_id(chat_id)] = []

    def clear_all(self) -> None:
        self._chats.clear()
