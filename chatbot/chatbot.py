from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, Field

from chatbot.core.memory import (
    DEFAULT_CHAT_ID,
    ChatMessage,
    ConversationStore,
    resolve_chat_id,
    utc_now,
)
from chatbot.core.prompt import NO_CONTEXT, SYSTEM_PROMPT
from config.settings import Settings, get_settings


logger = logging.getLogger("voicechat.chatbot")

# generate(prompt) -> reply text
Generator = Callable[[str], str]

_FILLER_PREFIX_RE = re.compile(r"^(okay|ok|alright|sure)\b[,\s:;.!-]*", re.IGNORECASE)
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


class FailureKind(str, Enum):
    INVALID_KEY = "invalid_key"
    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


USER_MESSAGES: Dict[FailureKind, str] = {
    FailureKind.INVALID_KEY: "Invalid API key. Please check your Gemini API key configuration.",
    FailureKind.QUOTA_EXCEEDED: "API quota exceeded. Please try again later.",
    FailureKind.RATE_LIMITED: "Rate limit exceeded. Please wait a moment before trying again.",
    FailureKind.GENERIC: "Sorry, I encountered an error processing your request.",
}


class ConfigurationError(RuntimeError):
    pass


class GenerationError(RuntimeError):
    def __init__(self, kind: FailureKind, detail: str = "") -> None:
        super().__init__(detail or kind.value)
        self.kind = kind


def classify_failure(exc: BaseException) -> FailureKind:
    if isinstance(exc, GenerationError):
        return exc.kind
    text = str(exc)
    if "API_KEY_INVALID" in text or "API key not valid" in text:
        return FailureKind.INVALID_KEY
    if "QUOTA_EXCEEDED" in text:
        return FailureKind.QUOTA_EXCEEDED
    if "RATE_LIMIT_EXCEEDED" in text:
        return FailureKind.RATE_LIMITED
    return FailureKind.GENERIC


class ChatResult(BaseModel):
    success: bool
    response: Optional[str] = None
    error: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now)
    chat_id: str = Field(DEFAULT_CHAT_ID, serialization_alias="chatId")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def build_generator(settings: Optional[Settings] = None) -> Generator:
    settings = settings or get_settings()
    if not settings.gemini_api_key:
        raise ConfigurationError(
            "GEMINI_API_KEY not set. Please configure it in environment or .env"
        )

    llm = ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.gemini_api_key,
        temperature=settings.temperature,
    )

    def generate(prompt: str) -> str:
        result = llm.invoke([HumanMessage(content=prompt)])
        return _message_text(result.content)

    return generate


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(part.get("text") or "")
    return "".join(parts)


def post_process(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _FILLER_PREFIX_RE.sub("", cleaned).strip()
    return _EXTRA_NEWLINES_RE.sub("\n\n", cleaned).strip()


def build_conversation_context(messages: List[ChatMessage]) -> str:
    if not messages:
        return NO_CONTEXT
    lines = []
    for message in messages:
        role = "User" if message.role == "user" else "Assistant"
        lines.append(f"{role}: {message.content}")
    return "\n".join(lines)


class GeminiChatbot:
    """Chat with per-conversation memory on top of a ``generate(prompt)`` callable."""

    def __init__(
        self,
        store: ConversationStore,
        generate: Optional[Generator] = None,
        context_messages: int = 10,
    ) -> None:
        self.store = store
        self.generate = generate
        self.context_messages = context_messages

    def build_prompt(self, user_message: str, chat_id: str) -> str:
        # the newest stored message is the one being answered
        previous = self.store.recent(chat_id, self.context_messages + 1)[:-1]
        context = build_conversation_context(previous)
        return (
            f"{SYSTEM_PROMPT}\n\nConversation context:\n{context}\n\n"
            f"User: {user_message}\nAssistant:"
        )

    def generate_response(self, user_message: str, chat_id: Optional[str] = None) -> ChatResult:
        if self.generate is None:
            raise ConfigurationError("No text generator configured")
        chat_id = resolve_chat_id(chat_id)
        self.store.append(chat_id, ChatMessage(role="user", content=user_message))
        prompt = self.build_prompt(user_message, chat_id)
        logger.info("Generating reply: chat_id=%s prompt_len=%s", chat_id, len(prompt))

        try:
            text = post_process(self.generate(prompt))
        except Exception as exc:
            kind = classify_failure(exc)
            logger.exception("Generation failed: chat_id=%s kind=%s", chat_id, kind.value)
            return ChatResult(success=False, error=USER_MESSAGES[kind], chat_id=chat_id)

        self.store.append(chat_id, ChatMessage(role="assistant", content=text))
        logger.info("Model responded: chat_id=%s chars=%s", chat_id, len(text))
        return ChatResult(success=True, response=text, chat_id=chat_id)

    def clear_history(self, chat_id: Optional[str] = None, all: bool = False) -> bool:
        """Clear one chat, or every chat when ``all`` is set without a specific id.

        Returns True when every chat was cleared.
        """
        if all and resolve_chat_id(chat_id) == DEFAULT_CHAT_ID:
            self.store.clear_all()
            logger.info("Cleared all chats")
            return True
        self.store.clear(chat_id)
        logger.info("Cleared chat: chat_id=%s", resolve_chat_id(chat_id))
        return False

    def get_chat_history(self, chat_id: Optional[str] = None) -> List[ChatMessage]:
        return self.store.history(chat_id)
