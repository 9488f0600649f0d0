from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from chatbot.render.nodes import Inline, ListEntry, ListNode


# nesting level -> next ordinal, shared by every list run of one message
ListCounters = Dict[int, int]


@dataclass
class ListItem:
    ordered: bool
    level: int
    children: List[Inline]


@dataclass
class _OpenList:
    node: ListNode
    level: int


class ListBuilder:
    """Turns flat (kind, level, content) items into nested list nodes.

    The counters outlive a single ``build`` call so that a numbered list that
    is interrupted by other blocks resumes its numbering when it comes back.
    Counters of deeper levels are dropped when the walk climbs back out of
    them; draining the stack at the end of a run keeps them.
    """

    def __init__(self, counters: Optional[ListCounters] = None) -> None:
        self.counters: ListCounters = counters if counters is not None else {}

    def build(self, items: List[ListItem]) -> List[ListNode]:
        roots: List[ListNode] = []
        stack: List[_OpenList] = []
        last_level = -1

        for item in items:
            if item.level > last_level:
                for level in range(last_level + 1, item.level + 1):
                    self._open(roots, stack, item.ordered, level)
            elif item.level < last_level:
                for _ in range(last_level - item.level):
                    closed = stack.pop()
                    self.counters.pop(closed.level, None)

            # bullet <-> number switch at the same level: close and reopen
            if stack[-1].node.ordered != item.ordered:
                stack.pop()
                self._open(roots, stack, item.ordered, item.level)

            stack[-1].node.items.append(ListEntry(children=item.children))
            if item.ordered:
                self.counters[item.level] = self.counters.get(item.level, 1) + 1
            last_level = item.level

        return roots

    def _open(
        self,
        roots: List[ListNode],
        stack: List[_OpenList],
        ordered: bool,
        level: int,
    ) -> None:
        start = self.counters.setdefault(level, 1) if ordered else 1
        node = ListNode(ordered=ordered, start=start)
        if stack:
            parent = stack[-1].node
            if not parent.items:
                parent.items.append(ListEntry())
            parent.items[-1].sublists.append(node)
        else:
            roots.append(node)
        stack.append(_OpenList(node=node, level=level))
