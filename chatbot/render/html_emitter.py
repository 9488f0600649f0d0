from __future__ import annotations

import html
from typing import List, Optional

from chatbot.render.nodes import (
    Block,
    Document,
    HeadingNode,
    Inline,
    Link,
    ListNode,
    ParagraphNode,
    RuleNode,
    TableNode,
    TextRun,
    flag_run_end,
    has_flag,
)


def document_to_html(document: Document) -> str:
    return "\n".join(block_to_html(block) for block in document.blocks)


def block_to_html(block: Block) -> str:
    if isinstance(block, HeadingNode):
        return f"<h{block.level}>{inline_to_html(block.children)}</h{block.level}>"
    if isinstance(block, RuleNode):
        return "<hr>"
    if isinstance(block, ParagraphNode):
        return f"<p>{inline_to_html(block.children)}</p>"
    if isinstance(block, ListNode):
        return list_to_html(block)
    if isinstance(block, TableNode):
        return table_to_html(block)
    raise TypeError(f"Unknown block node: {block!r}")


def list_to_html(node: ListNode) -> str:
    tag = "ol" if node.ordered else "ul"
    attrs = f' start="{node.start}"' if node.ordered and node.start != 1 else ""
    out: List[str] = [f"<{tag}{attrs}>"]
    for entry in node.items:
        out.append("<li>")
        out.append(inline_to_html(entry.children))
        out.extend(list_to_html(sub) for sub in entry.sublists)
        out.append("</li>")
    out.append(f"</{tag}>")
    return "".join(out)


def table_to_html(node: TableNode) -> str:
    out: List[str] = ["<table><thead><tr>"]
    for index, cell in enumerate(node.header):
        out.append(_cell("th", cell, _align_at(node, index)))
    out.append("</tr></thead>")
    if node.rows:
        out.append("<tbody>")
        for row in node.rows:
            out.append("<tr>")
            for index, cell in enumerate(row):
                out.append(_cell("td", cell, _align_at(node, index)))
            out.append("</tr>")
        out.append("</tbody>")
    out.append("</table>")
    return "".join(out)


def _align_at(node: TableNode, index: int) -> Optional[str]:
    return node.align[index] if index < len(node.align) else None


def _cell(tag: str, children: List[Inline], align: Optional[str]) -> str:
    style = f' style="text-align: {align}"' if align else ""
    return f"<{tag}{style}>{inline_to_html(children)}</{tag}>"


def inline_to_html(nodes: List[Inline]) -> str:
    return _styled(nodes, bold=False, italic=False)


def _styled(nodes: List[Inline], bold: bool, italic: bool) -> str:
    # adjacent runs sharing a flag share one tag: strong outside em outside code
    out: List[str] = []
    index = 0
    while index < len(nodes):
        node = nodes[index]
        if not bold and has_flag(node, "bold"):
            end = flag_run_end(nodes, index, "bold")
            out.append(f"<strong>{_styled(nodes[index:end], True, italic)}</strong>")
            index = end
        elif not italic and has_flag(node, "italic"):
            end = flag_run_end(nodes, index, "italic")
            out.append(f"<em>{_styled(nodes[index:end], bold, True)}</em>")
            index = end
        else:
            out.append(_node_to_html(node, bold, italic))
            index += 1
    return "".join(out)


def _node_to_html(node: Inline, bold: bool, italic: bool) -> str:
    if isinstance(node, TextRun):
        text = html.escape(node.text)
        return f"<code>{text}</code>" if node.code else text
    if isinstance(node, Link):
        href = html.escape(node.href, quote=True)
        return (
            f'<a href="{href}" target="_blank" rel="noopener">'
            f"{_styled(node.children, bold, italic)}</a>"
        )
    return "<br>"
