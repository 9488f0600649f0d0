"""Block segmentation and table detection."""

from __future__ import annotations

from chatbot.render.blocks import ListRun, match_list_item, segment
from chatbot.render.nodes import HeadingNode, ParagraphNode, RuleNode, TableNode, TextRun
from chatbot.render.tables import parse_table, split_cells


def test_blank_lines_split_blocks() -> None:
    blocks = segment("first\n\n\n  \nsecond")
    assert blocks == [
        ParagraphNode(children=[TextRun("first")]),
        ParagraphNode(children=[TextRun("second")]),
    ]


def test_single_line_breaks_fold_into_spaces() -> None:
    assert segment("one\ntwo\nthree") == [ParagraphNode(children=[TextRun("one two three")])]


def test_rules_in_all_three_spellings() -> None:
    assert segment("---\n\n***\n\n___") == [RuleNode(), RuleNode(), RuleNode()]


def test_heading_level_and_closing_hashes() -> None:
    assert segment("### Title ###") == [HeadingNode(level=3, children=[TextRun("Title")])]


def test_heading_followed_by_lines_in_same_block() -> None:
    blocks = segment("## Steps\n1. one\n2. two")
    assert isinstance(blocks[0], HeadingNode)
    assert isinstance(blocks[1], ListRun)
    assert [item.level for item in blocks[1].items] == [0, 0]


def test_seven_hashes_is_not_a_heading() -> None:
    assert segment("####### nope") == [ParagraphNode(children=[TextRun("####### nope")])]


def test_list_levels_from_indentation() -> None:
    (run,) = segment("- a\n    - b\n        1) c\n  - d")
    assert [(item.ordered, item.level) for item in run.items] == [
        (False, 0),
        (False, 1),
        (True, 2),
        (False, 0),
    ]


def test_tab_indentation_counts_as_one_level() -> None:
    (run,) = segment("- a\n\t- b")
    assert [item.level for item in run.items] == [0, 1]


def test_paragraph_line_flushes_pending_list_run() -> None:
    blocks = segment("- a\n- b\nafter the list\nstill prose")
    assert isinstance(blocks[0], ListRun)
    assert len(blocks[0].items) == 2
    assert blocks[1] == ParagraphNode(children=[TextRun("after the list still prose")])


def test_list_after_prose_in_one_block() -> None:
    blocks = segment("Here are options:\n- a\n- b")
    assert isinstance(blocks[0], ParagraphNode)
    assert isinstance(blocks[1], ListRun)


def test_bullet_star_is_a_list_item() -> None:
    item = match_list_item("* item")
    assert item is not None
    assert not item.ordered
    assert item.children == [TextRun("item")]


def test_star_pair_around_line_is_not_a_list_item() -> None:
    assert match_list_item("* not a list *") is None


def test_table_block() -> None:
    (table,) = segment("A | B\n--|--\n1 | 2")
    assert isinstance(table, TableNode)
    assert table.header == [[TextRun("A")], [TextRun("B")]]
    assert table.rows == [[[TextRun("1")], [TextRun("2")]]]
    assert table.align == [None, None]


def test_pipes_without_separator_fall_through_to_paragraph() -> None:
    assert segment("A | B\nC | D") == [ParagraphNode(children=[TextRun("A | B C | D")])]


def test_table_alignment_from_separator() -> None:
    table = parse_table("| L | C | R | N |\n|:--|:-:|--:|---|\n| 1 | 2 | 3 | 4 |")
    assert table is not None
    assert table.align == ["left", "center", "right", None]


def test_split_cells_drops_outer_empty_cells() -> None:
    assert split_cells("| a | b |") == ["a", "b"]
    assert split_cells("a | b") == ["a", "b"]
    assert split_cells("| a |  | c") == ["a", "", "c"]


def test_table_cells_are_inline_processed() -> None:
    table = parse_table("| **k** | v |\n| --- | --- |")
    assert table is not None
    assert table.header[0] == [TextRun("k", bold=True)]
    assert table.rows == []


def test_garbage_never_raises() -> None:
    for text in ["", "   ", "|", "|\n|", "-", "#", "1.", "[", "**", "```", "\n\n\n"]:
        segment(text)
