from __future__ import annotations

import re
from typing import List, Optional

from chatbot.render.inline import parse_inline
from chatbot.render.nodes import TableNode


_SEPARATOR_RE = re.compile(r"^\s*\|?[\s\-|:]+\|?\s*$")


def split_cells(line: str) -> List[str]:
    stripped = line.strip()
    cells = stripped.split("|")
    if stripped.startswith("|"):
        cells = cells[1:]
    if stripped.endswith("|") and cells:
        cells = cells[:-1]
    return [cell.strip() for cell in cells]


def is_separator(line: str) -> bool:
    return bool(_SEPARATOR_RE.match(line)) and "-" in line


def parse_table(block: str) -> Optional[TableNode]:
    """Return a table for a pipe block with a header separator, else None."""
    lines = [line for line in block.split("\n") if line.strip()]
    if len(lines) < 2 or "|" not in block or not is_separator(lines[1]):
        return None

    header = split_cells(lines[0])
    align = [_alignment(cell) for cell in split_cells(lines[1])][: len(header)]
    align += [None] * (len(header) - len(align))

    return TableNode(
        header=[parse_inline(cell) for cell in header],
        rows=[[parse_inline(cell) for cell in split_cells(line)] for line in lines[2:]],
        align=align,
    )


def _alignment(cell: str) -> Optional[str]:
    left, right = cell.startswith(":"), cell.endswith(":")
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return None
