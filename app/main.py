from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Literal, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatbot.chatbot import ConfigurationError, GeminiChatbot, Generator, build_generator
from chatbot.core.memory import (
    ConversationStore,
    InMemoryConversationStore,
    resolve_chat_id,
    utc_now,
)
from chatbot.render import (
    document_to_markdown,
    document_to_readable_text,
    document_to_speech_text,
    parse_markdown,
    render_message,
    render_to_html,
)
from chatbot.render.html_reader import read_html
from config.settings import Settings, get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("voicechat")

VERSION = "1.0.0"

_EXPORT_WRITERS = {
    "markdown": document_to_markdown,
    "text": document_to_readable_text,
    "speech": document_to_speech_text,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.store = InMemoryConversationStore(max_length=settings.max_history_length)
    logger.info(
        "Voice chat API starting: model=%s key_set=%s history_limit=%s",
        settings.gemini_model,
        bool(settings.gemini_api_key),
        settings.max_history_length,
    )
    yield
    app.state.store.clear_all()


app = FastAPI(title="Voice Chat API", version=VERSION, lifespan=lifespan)

# CORS: allow local frontend during development
settings = get_settings()
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ChatRequest(BaseModel):
    message: Any = Field(None, description="User's latest message")
    chat_id: Optional[str] = Field(None, alias="chatId", description="Conversation identifier")


class ClearHistoryRequest(BaseModel):
    chat_id: Optional[str] = Field(None, alias="chatId")
    all: bool = Field(False, description="Clear every chat when no chatId is given")


class RenderRequest(BaseModel):
    markdown: str


class ExportRequest(BaseModel):
    markdown: Optional[str] = None
    html: Optional[str] = None
    format: Literal["markdown", "text", "speech"] = "markdown"


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": message}
    body.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=body)


def get_store(request: Request) -> ConversationStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = InMemoryConversationStore(max_length=get_settings().max_history_length)
        request.app.state.store = store
    return store


def get_generator(settings: Settings = Depends(get_settings)) -> Generator:
    return build_generator(settings)


def validate_message(message: Any, max_length: int) -> Optional[str]:
    if not message or not isinstance(message, str):
        return "Message is required and must be a string"
    if not message.strip():
        return "Message cannot be empty"
    if len(message) > max_length:
        return f"Message too long. Maximum {max_length} characters allowed."
    return None


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected request body on %s: %s", request.url.path, exc.errors())
    if request.url.path == "/api/chat":
        return _error(400, "Message is required and must be a string")
    return _error(400, "Invalid request body")


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(ConfigurationError)
async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return _error(
        500,
        "Internal server error",
        hint="GEMINI_API_KEY is not configured in the server environment",
    )


@app.post("/api/chat")
def chat(
    req: ChatRequest,
    store: ConversationStore = Depends(get_store),
    generate: Generator = Depends(get_generator),
    settings: Settings = Depends(get_settings),
):
    problem = validate_message(req.message, settings.max_message_length)
    if problem:
        return _error(400, problem)

    chat_id = resolve_chat_id(req.chat_id)
    logger.info("Incoming chat: chat_id=%s message_len=%s", chat_id, len(req.message))
    chatbot = GeminiChatbot(store, generate, context_messages=settings.context_messages)
    try:
        result = chatbot.generate_response(req.message.strip(), chat_id)
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return _error(500, "Internal server error")

    payload = result.to_payload()
    if not result.success:
        logger.warning("Chat failed: chat_id=%s error=%s", chat_id, result.error)
        return JSONResponse(status_code=500, content=payload)
    payload["html"] = render_to_html(result.response or "")
    return payload


@app.post("/api/clear-history")
def clear_history(
    req: Optional[ClearHistoryRequest] = None,
    store: ConversationStore = Depends(get_store),
):
    req = req or ClearHistoryRequest()
    if GeminiChatbot(store).clear_history(req.chat_id, all=req.all):
        return {"success": True, "message": "All chats cleared", "count": 0}
    return {"success": True, "message": "Chat history cleared", "count": 0}


@app.get("/api/history")
def history(
    chat_id: Optional[str] = Query(None, alias="chatId"),
    store: ConversationStore = Depends(get_store),
):
    resolved = resolve_chat_id(chat_id)
    messages = GeminiChatbot(store).get_chat_history(resolved)
    return {
        "success": True,
        "history": [message.model_dump() for message in messages],
        "count": len(messages),
        "chatId": resolved,
    }


@app.post("/api/render")
def render(req: RenderRequest):
    message = render_message(req.markdown)
    return {"success": True, "html": message.html, "markdown": message.markdown}


@app.post("/api/export")
def export(req: ExportRequest):
    if req.markdown is None and req.html is None:
        return _error(400, "Either markdown or html is required")
    # raw markdown wins over html: no parse/re-parse round trip
    if req.markdown is not None:
        document = parse_markdown(req.markdown)
    else:
        document = read_html(req.html or "")
    return {"success": True, "format": req.format, "text": _EXPORT_WRITERS[req.format](document)}


@app.get("/api/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "success": True,
        "status": "healthy",
        "timestamp": utc_now(),
        "version": VERSION,
        "apiKeyConfigured": bool(settings.gemini_api_key),
        "environment": settings.app_env,
    }


def main():
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
