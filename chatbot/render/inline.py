from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Sequence, Tuple

from chatbot.render.nodes import Inline, Link, TextRun


_CODE_RE = re.compile(r"`([^`]+)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s\x00]+)\)")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*|(?<!\w)__(.+?)__(?!\w)")
_ITALIC_STAR_RE = re.compile(
    r"(?:^\*(?!\*)|(?<![*\w])\*(?![*\s]))"
    r"([^*\n]+?)"
    r"(?:(?<![*\s])\*(?![*\w])|(?<!\*)\*$)"
)
_ITALIC_UNDERSCORE_RE = re.compile(
    r"(?:^_(?!_)|(?<![_\w])_(?![_\s]))"
    r"([^_\n]+?)"
    r"(?:(?<![_\s])_(?![_\w])|(?<!_)_$)"
)
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")
_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")

# (pattern, flag it sets), applied in this order
_EMPHASIS_PASSES: Tuple[Tuple[re.Pattern, str], ...] = (
    (_BOLD_RE, "bold"),
    (_ITALIC_STAR_RE, "italic"),
    (_ITALIC_UNDERSCORE_RE, "italic"),
)


def parse_inline(text: str) -> List[Inline]:
    """Split one line of Markdown into inline nodes.

    Code spans and links are parsed first and parked behind placeholders,
    so the emphasis passes (bold, italic ``*``, italic ``_``) see the whole
    line and can wrap them. Code contents and URLs are never touched by
    emphasis; unmatched markers stay literal.
    """
    if not text:
        return []
    atoms: List[List[Inline]] = []
    text = text.replace("\x00", "")
    text = _CODE_RE.sub(lambda m: _stash(atoms, [TextRun(m.group(1), code=True)]), text)
    text = _LINK_RE.sub(lambda m: _link(m, atoms), text)
    return merge_inline(_emphasize(text, _EMPHASIS_PASSES, atoms))


def _stash(atoms: List[List[Inline]], nodes: List[Inline]) -> str:
    atoms.append(nodes)
    return f"\x00{len(atoms) - 1}\x00"


def _link(match: re.Match[str], atoms: List[List[Inline]]) -> str:
    label, href = match.group(1), match.group(2)
    if href.lower().startswith(_UNSAFE_SCHEMES):
        return match.group(0)
    children = _emphasize(label, _EMPHASIS_PASSES, atoms)
    return _stash(atoms, [Link(href=href, children=children)])


def _emphasize(
    text: str, passes: Sequence[Tuple[re.Pattern, str]], atoms: List[List[Inline]]
) -> List[Inline]:
    for index, (pattern, flag) in enumerate(passes):
        # inside a span only the later passes apply: italic within bold, not bold within bold
        inner = passes[index + 1 :]
        text = pattern.sub(lambda m: _wrap(m, flag, inner, atoms), text)
    return _expand(text, atoms)


def _wrap(
    match: re.Match[str],
    flag: str,
    passes: Sequence[Tuple[re.Pattern, str]],
    atoms: List[List[Inline]],
) -> str:
    body = next(group for group in match.groups() if group is not None)
    if flag == "italic":
        body = body.strip()
        if not body:
            return match.group(0)
    nodes = [_flagged(node, flag) for node in _emphasize(body, passes, atoms)]
    return _stash(atoms, nodes)


def _flagged(node: Inline, flag: str) -> Inline:
    if isinstance(node, TextRun):
        return replace(node, **{flag: True})
    if isinstance(node, Link):
        return Link(href=node.href, children=[_flagged(child, flag) for child in node.children])
    return node


def _expand(text: str, atoms: List[List[Inline]]) -> List[Inline]:
    out: List[Inline] = []
    pos = 0
    for match in _PLACEHOLDER_RE.finditer(text):
        if match.start() > pos:
            out.append(TextRun(text[pos : match.start()]))
        out.extend(atoms[int(match.group(1))])
        pos = match.end()
    if pos < len(text):
        out.append(TextRun(text[pos:]))
    return out


def merge_inline(nodes: List[Inline]) -> List[Inline]:
    out: List[Inline] = []
    for node in nodes:
        prev = out[-1] if out else None
        if (
            isinstance(node, TextRun)
            and isinstance(prev, TextRun)
            and (prev.bold, prev.italic, prev.code) == (node.bold, node.italic, node.code)
        ):
            prev.text += node.text
            continue
        if isinstance(node, Link):
            node.children = merge_inline(node.children)
        out.append(node)
    return out
