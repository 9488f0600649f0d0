from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import List, Optional

from chatbot.render.nodes import (
    Block,
    Document,
    HeadingNode,
    Inline,
    LineBreak,
    Link,
    ListNode,
    ParagraphNode,
    RuleNode,
    TableNode,
    TextRun,
    flag_run_end,
    has_flag,
)


_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class WalkContext:
    inside_list_item: bool = False
    depth: int = 0


class MarkdownWriter:
    """Writes a document back out as Markdown for "copy as markdown".

    Headings come out as bold lines and rules as blank lines, so the copied
    text carries no ``#`` or ``---`` clutter. Nested list items indent four
    spaces per level, which the block segmenter reads back as one level.
    """

    bullet = "- "
    indent_width = 4

    def write(self, document: Document) -> str:
        context = WalkContext()
        return cleanup("".join(self.block(block, context) for block in document.blocks))

    def block(self, block: Block, context: WalkContext) -> str:
        if isinstance(block, HeadingNode):
            return f"\n\n{self.heading(block, context)}\n\n"
        if isinstance(block, ParagraphNode):
            text = self.inline(block.children, context)
            return text if context.inside_list_item else f"{text}\n\n"
        if isinstance(block, RuleNode):
            return "\n\n"
        if isinstance(block, ListNode):
            return self.list(block, context) + ("\n" if context.depth == 0 else "")
        if isinstance(block, TableNode):
            return self.table(block, context) + "\n\n"
        raise TypeError(f"Unknown block node: {block!r}")

    def heading(self, node: HeadingNode, context: WalkContext) -> str:
        return f"**{self.inline(_unbold(node.children), context)}**"

    def list(self, node: ListNode, context: WalkContext) -> str:
        out: List[str] = []
        indent = " " * (self.indent_width * context.depth)
        item_context = WalkContext(inside_list_item=True, depth=context.depth)
        child_context = WalkContext(inside_list_item=False, depth=context.depth + 1)
        number = node.start
        for entry in node.items:
            if entry.children:
                marker = self.marker(node, number)
                out.append(f"{indent}{marker}{self.inline(entry.children, item_context)}\n")
            if node.ordered:
                number += 1
            for sublist in entry.sublists:
                out.append(self.list(sublist, child_context))
        return "".join(out)

    def marker(self, node: ListNode, number: int) -> str:
        return f"{number}. " if node.ordered else self.bullet

    def table(self, node: TableNode, context: WalkContext) -> str:
        lines = [self._row(node.header, context)]
        lines.append("| " + " | ".join(_separator(align) for align in node.align) + " |")
        lines.extend(self._row(row, context) for row in node.rows)
        return "\n".join(lines)

    def _row(self, cells: List[List[Inline]], context: WalkContext) -> str:
        return "| " + " | ".join(self.inline(cell, context) for cell in cells) + " |"

    def inline(self, nodes: List[Inline], context: WalkContext) -> str:
        return self._styled(nodes, context, bold=False, italic=False)

    def _styled(self, nodes: List[Inline], context: WalkContext, bold: bool, italic: bool) -> str:
        # one marker pair per stretch of runs sharing a flag, so spans wrap code and links
        out: List[str] = []
        index = 0
        while index < len(nodes):
            node = nodes[index]
            if not bold and has_flag(node, "bold"):
                end = flag_run_end(nodes, index, "bold")
                inner = self._styled(nodes[index:end], context, True, italic)
                out.append(self.emphasis(inner, "**"))
                index = end
            elif not italic and has_flag(node, "italic"):
                end = flag_run_end(nodes, index, "italic")
                inner = self._styled(nodes[index:end], context, bold, True)
                out.append(self.emphasis(inner, "_"))
                index = end
            else:
                if isinstance(node, TextRun):
                    out.append(self.run(node))
                elif isinstance(node, Link):
                    out.append(self.link(node, self._styled(node.children, context, bold, italic)))
                elif isinstance(node, LineBreak):
                    out.append(self.line_break(context))
                index += 1
        return "".join(out)

    def emphasis(self, text: str, marker: str) -> str:
        core = text.strip()
        if not core:
            return text
        # markers hug the text; surrounding spaces stay outside them
        lead = text[: len(text) - len(text.lstrip())]
        trail = text[len(text.rstrip()) :]
        return f"{lead}{marker}{core}{marker}{trail}"

    def run(self, run: TextRun) -> str:
        return f"`{run.text}`" if run.code else run.text

    def link(self, node: Link, label: str) -> str:
        return f"[{label}]({node.href})"

    def line_break(self, context: WalkContext) -> str:
        if context.inside_list_item:
            return "\n" + " " * (self.indent_width * (context.depth + 1))
        return "\n"


class ReadableWriter(MarkdownWriter):
    """Plain text for humans: bullets as ``•``, no emphasis markers."""

    bullet = "• "
    indent_width = 2

    def heading(self, node: HeadingNode, context: WalkContext) -> str:
        return self.inline(node.children, context)

    def table(self, node: TableNode, context: WalkContext) -> str:
        rows = [node.header, *node.rows]
        return "\n".join(" | ".join(self.inline(cell, context) for cell in row) for row in rows)

    def emphasis(self, text: str, marker: str) -> str:
        return text

    def run(self, run: TextRun) -> str:
        return run.text

    def link(self, node: Link, label: str) -> str:
        return label if label == node.href else f"{label} ({node.href})"


class SpeechWriter(ReadableWriter):
    """Text handed to speech synthesis: no markers, links read by label only."""

    def marker(self, node: ListNode, number: int) -> str:
        return ""

    def table(self, node: TableNode, context: WalkContext) -> str:
        rows = [node.header, *node.rows]
        return "\n".join(", ".join(self.inline(cell, context) for cell in row) for row in rows)

    def link(self, node: Link, label: str) -> str:
        return label


def cleanup(text: str) -> str:
    return _EXTRA_NEWLINES_RE.sub("\n\n", text).strip()


def document_to_markdown(document: Document) -> str:
    return MarkdownWriter().write(document)


def document_to_readable_text(document: Document) -> str:
    return ReadableWriter().write(document)


def document_to_speech_text(document: Document) -> str:
    return SpeechWriter().write(document)


def _unbold(nodes: List[Inline]) -> List[Inline]:
    out: List[Inline] = []
    for node in nodes:
        if isinstance(node, TextRun):
            out.append(replace(node, bold=False))
        elif isinstance(node, Link):
            out.append(Link(href=node.href, children=_unbold(node.children)))
        else:
            out.append(node)
    return out


def _separator(align: Optional[str]) -> str:
    if align == "center":
        return ":---:"
    if align == "right":
        return "---:"
    if align == "left":
        return ":---"
    return "---"
