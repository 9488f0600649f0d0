"""Intermediate tree shared by the HTML emitter and the text emitters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class TextRun:
    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False


@dataclass
class Link:
    href: str
    children: List["Inline"] = field(default_factory=list)


@dataclass
class LineBreak:
    pass


Inline = Union[TextRun, Link, LineBreak]


@dataclass
class HeadingNode:
    level: int
    children: List[Inline] = field(default_factory=list)


@dataclass
class RuleNode:
    pass


@dataclass
class ParagraphNode:
    children: List[Inline] = field(default_factory=list)


@dataclass
class ListEntry:
    children: List[Inline] = field(default_factory=list)
    sublists: List["ListNode"] = field(default_factory=list)


@dataclass
class ListNode:
    ordered: bool
    start: int = 1
    items: List[ListEntry] = field(default_factory=list)


@dataclass
class TableNode:
    header: List[List[Inline]] = field(default_factory=list)
    rows: List[List[List[Inline]]] = field(default_factory=list)
    align: List[Optional[str]] = field(default_factory=list)


Block = Union[HeadingNode, RuleNode, ParagraphNode, ListNode, TableNode]


@dataclass
class Document:
    blocks: List[Block] = field(default_factory=list)
    source: str = ""


@dataclass
class RenderedMessage:
    """HTML for display plus the Markdown it came from, kept verbatim for copy."""

    markdown: str
    html: str
    document: Document


def has_flag(node: Inline, flag: str) -> bool:
    """True when every character of ``node`` carries ``flag`` ("bold" or "italic")."""
    if isinstance(node, TextRun):
        return getattr(node, flag)
    if isinstance(node, Link):
        return bool(node.children) and all(has_flag(child, flag) for child in node.children)
    return False


def flag_run_end(nodes: List[Inline], start: int, flag: str) -> int:
    end = start
    while end < len(nodes) and has_flag(nodes[end], flag):
        end += 1
    return end
