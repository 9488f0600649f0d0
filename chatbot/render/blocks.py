from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from chatbot.render.inline import parse_inline
from chatbot.render.lists import ListItem
from chatbot.render.nodes import HeadingNode, ParagraphNode, RuleNode, TableNode
from chatbot.render.tables import parse_table


_BLANK_LINES_RE = re.compile(r"\n(?:[ \t]*\n)+")
_RULE_RE = re.compile(r"^(-{3,}|\*{3,}|_{3,})\s*$")
_HEADING_RE = re.compile(r"^(?P<level>#{1,6})\s+(?P<text>.+)$")
_CLOSING_HASHES_RE = re.compile(r"\s+#+\s*$")
_ORDERED_RE = re.compile(r"^(?P<indent>\s*)(?P<num>\d+)[.)]\s+(?P<text>.+)$")
_UNORDERED_RE = re.compile(r"^(?P<indent>\s*)[-*+]\s+(?P<text>.+)$")
# "* words *" is emphasis around the whole line, not a bullet
_EMPHASIS_LINE_RE = re.compile(r"^\s*\*[^*\n]+\*\s*$")

INDENT_WIDTH = 4


@dataclass
class ListRun:
    items: List[ListItem] = field(default_factory=list)


Segment = Union[HeadingNode, RuleNode, TableNode, ListRun, ParagraphNode]


def segment(text: str) -> List[Segment]:
    """Split a message into blocks on blank lines and classify each one.

    Classification order is rule, heading, table, then a line scan that
    separates list runs from paragraph text. Anything unrecognised ends up
    in a paragraph.
    """
    segments: List[Segment] = []
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    for chunk in _BLANK_LINES_RE.split(normalized):
        chunk = chunk.strip()
        if chunk:
            segments.extend(_classify(chunk))
    return segments


def _classify(chunk: str) -> List[Segment]:
    if _RULE_RE.match(chunk):
        return [RuleNode()]

    first, _, rest = chunk.partition("\n")
    heading = _HEADING_RE.match(first.strip())
    if heading is not None:
        text = _CLOSING_HASHES_RE.sub("", heading.group("text")).strip()
        node = HeadingNode(level=len(heading.group("level")), children=parse_inline(text))
        rest = rest.strip()
        return [node, *_classify(rest)] if rest else [node]

    table = parse_table(chunk)
    if table is not None:
        return [table]

    return _scan_lines(chunk)


def _scan_lines(chunk: str) -> List[Segment]:
    segments: List[Segment] = []
    items: List[ListItem] = []
    paragraph: List[str] = []

    for raw in chunk.split("\n"):
        line = raw.expandtabs(INDENT_WIDTH).rstrip()
        item = match_list_item(line)
        if item is not None:
            if paragraph:
                segments.append(_paragraph(paragraph))
                paragraph = []
            items.append(item)
            continue
        if items:
            segments.append(ListRun(items=items))
            items = []
        if line.strip():
            paragraph.append(line.strip())

    if items:
        segments.append(ListRun(items=items))
    if paragraph:
        segments.append(_paragraph(paragraph))
    return segments


def match_list_item(line: str) -> Optional[ListItem]:
    match = _ORDERED_RE.match(line)
    if match is not None:
        return ListItem(
            ordered=True,
            level=len(match.group("indent")) // INDENT_WIDTH,
            children=parse_inline(match.group("text").strip()),
        )
    if _EMPHASIS_LINE_RE.match(line):
        return None
    match = _UNORDERED_RE.match(line)
    if match is not None:
        return ListItem(
            ordered=False,
            level=len(match.group("indent")) // INDENT_WIDTH,
            children=parse_inline(match.group("text").strip()),
        )
    return None


def _paragraph(lines: List[str]) -> ParagraphNode:
    # single line breaks fold into spaces
    return ParagraphNode(children=parse_inline(" ".join(lines)))
