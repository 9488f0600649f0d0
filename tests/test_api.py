from __future__ import annotations

import pytest

from app.main import app, get_generator
from chatbot.chatbot import USER_MESSAGES, FailureKind
from config.settings import Settings, get_settings


def test_chat_returns_reply_and_html(client, generator) -> None:
    resp = client.post("/api/chat", json={"message": "  hello  ", "chatId": "c1"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["response"] == "**Hi** there"
    assert data["html"] == "<p><strong>Hi</strong> there</p>"
    assert data["chatId"] == "c1"
    assert data["timestamp"]
    assert generator.prompts[0].endswith("User: hello\nAssistant:")


@pytest.mark.parametrize(
    ("body", "error"),
    [
        ({}, "Message is required and must be a string"),
        ({"message": 5}, "Message is required and must be a string"),
        ({"message": ""}, "Message is required and must be a string"),
        ({"message": "   "}, "Message cannot be empty"),
        ({"message": "a" * 1001}, "Message too long. Maximum 1000 characters allowed."),
    ],
)
def test_chat_rejects_bad_messages(client, generator, body, error) -> None:
    resp = client.post("/api/chat", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": error}
    assert generator.prompts == []


def test_chat_rejects_malformed_json(client) -> None:
    resp = client.post(
        "/api/chat", content="not json", headers={"content-type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Message is required and must be a string"


def test_chat_failure_is_reported_with_user_message(client, generator) -> None:
    generator.error = RuntimeError("429 QUOTA_EXCEEDED")
    resp = client.post("/api/chat", json={"message": "hi"})
    assert resp.status_code == 500
    data = resp.json()
    assert data["success"] is False
    assert data["error"] == USER_MESSAGES[FailureKind.QUOTA_EXCEEDED]
    assert data["chatId"] == "default"


def test_history_and_clear(client) -> None:
    client.post("/api/chat", json={"message": "one", "chatId": "h1"})
    client.post("/api/chat", json={"message": "two", "chatId": "h2"})

    data = client.get("/api/history", params={"chatId": "h1"}).json()
    assert data["count"] == 2
    assert [m["role"] for m in data["history"]] == ["user", "assistant"]
    assert data["history"][0]["content"] == "one"

    resp = client.post("/api/clear-history", json={"chatId": "h1"})
    assert resp.json()["message"] == "Chat history cleared"
    assert client.get("/api/history", params={"chatId": "h1"}).json()["count"] == 0
    assert client.get("/api/history", params={"chatId": "h2"}).json()["count"] == 2

    resp = client.post("/api/clear-history", json={"all": True})
    assert resp.json() == {"success": True, "message": "All chats cleared", "count": 0}
    assert client.get("/api/history", params={"chatId": "h2"}).json()["count"] == 0


def test_history_defaults_to_default_chat(client) -> None:
    client.post("/api/chat", json={"message": "hi"})
    data = client.get("/api/history").json()
    assert data["chatId"] == "default"
    assert data["count"] == 2


def test_clear_history_without_body(client) -> None:
    client.post("/api/chat", json={"message": "hi"})
    assert client.post("/api/clear-history").json()["success"] is True
    assert client.get("/api/history").json()["count"] == 0


def test_health(client) -> None:
    data = client.get("/api/health").json()
    assert data["success"] is True
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"


def test_unknown_method_uses_error_shape(client) -> None:
    resp = client.get("/api/chat")
    assert resp.status_code == 405
    assert resp.json()["success"] is False


def test_render(client) -> None:
    resp = client.post("/api/render", json={"markdown": "1. a\n\nx\n\n2. b"})
    assert resp.json() == {
        "success": True,
        "html": '<ol><li>a</li></ol>\n<p>x</p>\n<ol start="2"><li>b</li></ol>',
        "markdown": "1. a\n\nx\n\n2. b",
    }


@pytest.mark.parametrize(
    ("body", "text"),
    [
        ({"markdown": "**Hi** [there](https://x.io)"}, "**Hi** [there](https://x.io)"),
        ({"markdown": "**Hi** [there](https://x.io)", "format": "text"}, "Hi there (https://x.io)"),
        ({"markdown": "**Hi** [there](https://x.io)", "format": "speech"}, "Hi there"),
        ({"html": "<ul><li><b>a</b></li></ul>", "format": "markdown"}, "- **a**"),
        ({"html": "<ul><li><b>a</b></li></ul>", "format": "text"}, "• a"),
    ],
)
def test_export(client, body, text) -> None:
    data = client.post("/api/export", json=body).json()
    assert data["success"] is True
    assert data["text"] == text


def test_export_requires_input(client) -> None:
    resp = client.post("/api/export", json={"format": "text"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Either markdown or html is required"}


def test_export_rejects_unknown_format(client) -> None:
    resp = client.post("/api/export", json={"markdown": "x", "format": "pdf"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid request body"}


def test_missing_api_key_is_a_server_error_with_hint(client) -> None:
    settings = Settings()
    settings.gemini_api_key = None
    app.dependency_overrides.pop(get_generator)
    app.dependency_overrides[get_settings] = lambda: settings

    resp = client.post("/api/chat", json={"message": "hi"})
    assert resp.status_code == 500
    data = resp.json()
    assert data["success"] is False
    assert data["error"] == "Internal server error"
    assert "GEMINI_API_KEY" in data["hint"]

    assert client.get("/api/health").json()["apiKeyConfigured"] is False


def test_clear_history_all_with_default_chat_id(client) -> None:
    client.post("/api/chat", json={"message": "one", "chatId": "a"})

    resp = client.post("/api/clear-history", json={"chatId": "default", "all": True})
    assert resp.json()["message"] == "All chats cleared"
    assert client.get("/api/history", params={"chatId": "a"}).json()["count"] == 0
