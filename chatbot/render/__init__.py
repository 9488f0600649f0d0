from chatbot.render.nodes import Document, RenderedMessage
from chatbot.render.renderer import (
    html_to_markdown,
    html_to_readable_text,
    markdown_to_speech_text,
    parse_markdown,
    render_message,
    render_to_html,
)
from chatbot.render.text_emitter import (
    document_to_markdown,
    document_to_readable_text,
    document_to_speech_text,
)

__all__ = [
    "Document",
    "RenderedMessage",
    "document_to_markdown",
    "document_to_readable_text",
    "document_to_speech_text",
    "html_to_markdown",
    "html_to_readable_text",
    "markdown_to_speech_text",
    "parse_markdown",
    "render_message",
    "render_to_html",
]
