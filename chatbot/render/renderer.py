from __future__ import annotations

from typing import List

from chatbot.render.blocks import ListRun, segment
from chatbot.render.html_emitter import document_to_html
from chatbot.render.html_reader import read_html
from chatbot.render.lists import ListBuilder, ListCounters
from chatbot.render.nodes import Block, Document, RenderedMessage
from chatbot.render.text_emitter import (
    document_to_markdown,
    document_to_readable_text,
    document_to_speech_text,
)


def parse_markdown(markdown: str) -> Document:
    """Parse one message into the node tree.

    List counters live for the whole message, so numbering carries over
    between list runs that other blocks interrupt.
    """
    counters: ListCounters = {}
    builder = ListBuilder(counters)
    blocks: List[Block] = []
    for item in segment(markdown):
        if isinstance(item, ListRun):
            blocks.extend(builder.build(item.items))
        else:
            blocks.append(item)
    return Document(blocks=blocks, source=markdown or "")


def render_message(markdown: str) -> RenderedMessage:
    document = parse_markdown(markdown)
    return RenderedMessage(
        markdown=document.source,
        html=document_to_html(document),
        document=document,
    )


def render_to_html(markdown: str) -> str:
    return document_to_html(parse_markdown(markdown))


def html_to_markdown(markup: str) -> str:
    return document_to_markdown(read_html(markup))


def html_to_readable_text(markup: str) -> str:
    return document_to_readable_text(read_html(markup))


def markdown_to_speech_text(markdown: str) -> str:
    return document_to_speech_text(parse_markdown(markdown))
