"""Reads rendered message HTML back into the node tree.

Used when only the HTML of a message is at hand (for example HTML pasted in
from the browser); text export then goes through the same tree writers as a
freshly parsed message.
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import (
    BeautifulSoup,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)

from chatbot.render.inline import merge_inline
from chatbot.render.nodes import (
    Block,
    Document,
    HeadingNode,
    Inline,
    LineBreak,
    Link,
    ListEntry,
    ListNode,
    ParagraphNode,
    RuleNode,
    TableNode,
    TextRun,
)


_WHITESPACE_RE = re.compile(r"\s+")
_TEXT_ALIGN_RE = re.compile(r"text-align\s*:\s*(left|center|right)")

_HEADINGS = {f"h{level}": level for level in range(1, 7)}
_BOLD_TAGS = {"strong", "b"}
_ITALIC_TAGS = {"em", "i"}
_CODE_TAGS = {"code", "kbd", "samp", "tt"}
_CONTAINER_TAGS = {"html", "body", "div", "section", "article", "main", "blockquote"}
_SKIPPED_TAGS = {"script", "style", "head", "template"}
_LIST_TAGS = {"ul", "ol"}


def read_html(markup: str) -> Document:
    soup = BeautifulSoup(markup or "", "html.parser")
    return Document(blocks=_blocks(soup))


def _blocks(parent: Tag) -> List[Block]:
    blocks: List[Block] = []
    pending: List[Inline] = []

    def flush() -> None:
        children = _trim(merge_inline(pending))
        if children:
            blocks.append(ParagraphNode(children=children))
        pending.clear()

    for child in parent.children:
        if not isinstance(child, Tag):
            pending.extend(_inline(child))
            continue
        name = child.name
        if name in _SKIPPED_TAGS:
            continue
        if name in _HEADINGS:
            flush()
            blocks.append(HeadingNode(level=_HEADINGS[name], children=_inline_children(child)))
        elif name == "p":
            flush()
            children = _inline_children(child)
            if children:
                blocks.append(ParagraphNode(children=children))
        elif name == "hr":
            flush()
            blocks.append(RuleNode())
        elif name in _LIST_TAGS:
            flush()
            blocks.append(_list(child))
        elif name == "table":
            flush()
            table = _table(child)
            if table is not None:
                blocks.append(table)
        elif name in _CONTAINER_TAGS:
            flush()
            blocks.extend(_blocks(child))
        else:
            pending.extend(_inline(child))
    flush()
    return blocks


def _list(tag: Tag) -> ListNode:
    node = ListNode(ordered=tag.name == "ol", start=_start(tag.get("start")))
    for child in tag.children:
        if not isinstance(child, Tag):
            continue
        if child.name == "li":
            node.items.append(_entry(child))
        elif child.name in _LIST_TAGS:
            # a list directly inside a list belongs to the previous item
            if not node.items:
                node.items.append(ListEntry())
            node.items[-1].sublists.append(_list(child))
    return node


def _entry(li: Tag) -> ListEntry:
    entry = ListEntry()
    content: List[Inline] = []
    for child in li.children:
        if isinstance(child, Tag) and child.name in _LIST_TAGS:
            entry.sublists.append(_list(child))
        elif isinstance(child, Tag) and child.name in ("p", "div"):
            # paragraphs inside an item stay inside it, one line each
            paragraph = _inline_children(child)
            if paragraph:
                if _trim(list(content)):
                    content.append(LineBreak())
                content.extend(paragraph)
        else:
            content.extend(_inline(child))
    entry.children = _trim(merge_inline(content))
    return entry


def _table(tag: Tag) -> Optional[TableNode]:
    rows = tag.find_all("tr")
    if not rows:
        return None
    header_cells = rows[0].find_all(["th", "td"], recursive=False)
    return TableNode(
        header=[_inline_children(cell) for cell in header_cells],
        rows=[
            [_inline_children(cell) for cell in row.find_all(["th", "td"], recursive=False)]
            for row in rows[1:]
        ],
        align=[_cell_alignment(cell) for cell in header_cells],
    )


def _cell_alignment(cell: Tag) -> Optional[str]:
    match = _TEXT_ALIGN_RE.search(cell.get("style") or "")
    if match is not None:
        return match.group(1)
    align = (cell.get("align") or "").lower()
    return align if align in ("left", "center", "right") else None


def _start(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def _inline_children(tag: Tag) -> List[Inline]:
    out: List[Inline] = []
    for child in tag.children:
        out.extend(_inline(child))
    return _trim(merge_inline(out))


def _inline(
    node,
    bold: bool = False,
    italic: bool = False,
    code: bool = False,
) -> List[Inline]:
    if isinstance(node, (Comment, Declaration, Doctype, ProcessingInstruction)):
        return []
    if isinstance(node, NavigableString):
        text = _WHITESPACE_RE.sub(" ", str(node))
        return [TextRun(text, bold=bold, italic=italic, code=code)] if text else []
    if not isinstance(node, Tag) or node.name in _SKIPPED_TAGS:
        return []
    if node.name == "br":
        return [LineBreak()]

    bold = bold or node.name in _BOLD_TAGS
    italic = italic or node.name in _ITALIC_TAGS
    code = code or node.name in _CODE_TAGS
    children: List[Inline] = []
    for child in node.children:
        children.extend(_inline(child, bold=bold, italic=italic, code=code))

    href = node.get("href") if node.name == "a" else None
    if href:
        return [Link(href=href, children=_trim(merge_inline(children)))]
    return children


def _trim(nodes: List[Inline]) -> List[Inline]:
    while nodes and isinstance(nodes[0], TextRun) and not nodes[0].text.strip():
        nodes = nodes[1:]
    while nodes and isinstance(nodes[-1], TextRun) and not nodes[-1].text.strip():
        nodes = nodes[:-1]
    if nodes and isinstance(nodes[0], TextRun):
        nodes[0] = TextRun(nodes[0].text.lstrip(), nodes[0].bold, nodes[0].italic, nodes[0].code)
    if nodes and isinstance(nodes[-1], TextRun):
        last = nodes[-1]
        nodes[-1] = TextRun(last.text.rstrip(), last.bold, last.italic, last.code)
    return nodes
