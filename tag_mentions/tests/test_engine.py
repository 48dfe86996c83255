"""Tests for the in-memory document engine."""

import pytest

from tag_mentions.document import (
    Element,
    Point,
    Range,
    StaleRangeError,
    Text,
    paragraph,
    tag_element,
)
from tag_mentions.engine import UNIT_WORD, DocumentEngine, ScreenRect, word_distance
from tag_mentions.insertion import with_tags


def _engine(*children, caret=None):
    selection = Range.collapsed(caret) if caret is not None else None
    return with_tags(DocumentEngine(list(children), selection=selection))


class TestWordDistance:
    """Tests for the word-unit step."""

    def test_stops_at_trigger_character(self):
        assert word_distance(reversed("See #liv")) == 3

    def test_skips_leading_spaces(self):
        assert word_distance(reversed("#liv  ")) == 5

    def test_underscore_is_a_word_character(self):
        assert word_distance(reversed("#severe_pain")) == len("severe_pain")

    def test_empty_text(self):
        assert word_distance("") == 0

    def test_block_break_ends_step(self):
        assert word_distance(reversed("ab\n")) == 1
        assert word_distance(reversed("ab\ncd")) == 2


class TestPositions:
    """Tests for before/after/range/string queries."""

    def test_character_before_and_after(self):
        engine = _engine(paragraph("hello"))
        assert engine.before(Point((0, 0), 5)) == Point((0, 0), 4)
        assert engine.after(Point((0, 0), 2)) == Point((0, 0), 3)

    def test_word_before(self):
        engine = _engine(paragraph("See #liv"))
        assert engine.before(Point((0, 0), 8), unit=UNIT_WORD) == Point((0, 0), 5)

    def test_word_after(self):
        engine = _engine(paragraph("See #liv"))
        assert engine.after(Point((0, 0), 0), unit=UNIT_WORD) == Point((0, 0), 3)

    def test_none_at_document_edges(self):
        engine = _engine(paragraph("abc"))
        assert engine.before(Point((0, 0), 0)) is None
        assert engine.before(Point((0, 0), 0), unit=UNIT_WORD) is None
        assert engine.after(Point((0, 0), 3)) is None

    def test_range_without_end_is_collapsed(self):
        engine = _engine(paragraph("abc"))
        at = engine.range(Point((0, 0), 1))
        assert engine.is_range_collapsed(at)
        assert engine.string(at) == ""

    def test_string_skips_void_text(self):
        engine = _engine(paragraph("a ", tag_element("liver"), " b"))
        at = Range(Point((0, 0), 0), Point((0, 2), 2))
        assert engine.string(at) == "a  b"

    def test_string_with_reversed_range(self):
        engine = _engine(paragraph("hello"))
        assert engine.string(Range(Point((0, 0), 4), Point((0, 0), 1))) == "ell"

    def test_range_edges_are_ordered(self):
        engine = _engine(paragraph("hello"))
        start, end = engine.range_edges(Range(Point((0, 0), 4), Point((0, 0), 1)))
        assert start == Point((0, 0), 1)
        assert end == Point((0, 0), 4)

    def test_block_boundary_is_one_position(self):
        engine = _engine(paragraph("ab"), paragraph("cd"))
        after = engine.after(Point((0, 0), 2))
        assert after == Point((1, 0), 0)
        assert engine.string(Range(Point((0, 0), 2), after)) == ""

    def test_word_before_stops_at_block_start(self):
        engine = _engine(paragraph("ab"), paragraph("cd"))
        assert engine.before(Point((1, 0), 0), unit=UNIT_WORD) == Point((0, 0), 2)

    def test_unresolvable_point_raises(self):
        engine = _engine(paragraph("abc"))
        with pytest.raises(StaleRangeError):
            engine.before(Point((3, 0), 0))
        with pytest.raises(StaleRangeError):
            engine.after(Point((0, 0), 9))

    def test_unknown_unit_raises(self):
        engine = _engine(paragraph("abc"))
        with pytest.raises(ValueError):
            engine.before(Point((0, 0), 1), unit="sentence")


class TestNormalization:
    """Tests for tree invariants kept by the engine."""

    def test_inline_tags_get_surrounding_text(self):
        engine = _engine(paragraph(tag_element("x")))
        children = engine.children[0].children
        assert isinstance(children[0], Text)
        assert isinstance(children[1], Element)
        assert isinstance(children[2], Text)

    def test_adjacent_text_merged(self):
        engine = _engine(paragraph("a", "b", "c"))
        assert engine.children[0].children == [Text("abc")]

    def test_empty_paragraph_gets_text(self):
        engine = _engine(Element(paragraph().kind, []))
        assert engine.children[0].children == [Text("")]


class TestMutations:
    """Tests for selection and content mutations."""

    def test_insert_text_advances_caret(self):
        engine = _engine(paragraph("ac"), caret=Point((0, 0), 1))
        engine.insert_text("b")
        assert engine.children[0].children == [Text("abc")]
        assert engine.selection == Range.collapsed(Point((0, 0), 2))

    def test_insert_text_replaces_expanded_selection(self):
        engine = _engine(paragraph("hello"))
        engine.select(Range(Point((0, 0), 1), Point((0, 0), 4)))
        engine.insert_text("ipp")
        assert engine.children[0].children == [Text("hippo")]

    def test_delete_across_blocks_merges_them(self):
        engine = _engine(paragraph("ab"), paragraph("cd"))
        engine.delete_range(Range(Point((0, 0), 1), Point((1, 0), 1)))
        assert len(engine.children) == 1
        assert engine.children[0].children == [Text("ad")]
        assert engine.selection == Range.collapsed(Point((0, 0), 1))

    def test_delete_removes_void(self):
        engine = _engine(paragraph("a", tag_element("x"), "b"))
        engine.delete_range(Range(Point((0, 0), 1), Point((0, 2), 0)))
        assert engine.children[0].children == [Text("ab")]

    def test_insert_void_then_move_past_it(self):
        engine = _engine(paragraph("ab"), caret=Point((0, 0), 1))
        engine.insert_node(tag_element("x"))
        assert engine.selection == Range.collapsed(Point((0, 1, 0), 0))
        engine.move()
        assert engine.selection == Range.collapsed(Point((0, 2), 0))

    def test_insert_block_goes_after_current_block(self):
        engine = _engine(paragraph("ab"), caret=Point((0, 0), 1))
        engine.insert_node(paragraph("new"))
        assert len(engine.children) == 2
        assert engine.children[1].children == [Text("new")]
        assert engine.selection == Range.collapsed(Point((1, 0), 0))

    def test_select_stale_range_raises(self):
        engine = _engine(paragraph("ab"))
        with pytest.raises(StaleRangeError):
            engine.select(Range.collapsed(Point((0, 0), 7)))

    def test_insert_without_selection_raises(self):
        engine = _engine(paragraph("ab"))
        with pytest.raises(StaleRangeError):
            engine.insert_text("x")


class TestBatch:
    """Tests for change notification and rollback."""

    def test_every_mutation_notifies(self):
        engine = _engine(paragraph(""), caret=Point((0, 0), 0))
        calls = []
        engine.subscribe(calls.append)
        engine.insert_text("a")
        engine.insert_text("b")
        assert len(calls) == 2

    def test_batch_notifies_once(self):
        engine = _engine(paragraph(""), caret=Point((0, 0), 0))
        calls = []
        engine.subscribe(calls.append)
        with engine.batch():
            engine.insert_text("a")
            engine.insert_text("b")
            assert calls == []
        assert len(calls) == 1

    def test_failed_batch_restores_tree(self):
        engine = _engine(paragraph("ab"), caret=Point((0, 0), 2))
        calls = []
        engine.subscribe(calls.append)

        with pytest.raises(StaleRangeError):
            with engine.batch():
                engine.insert_text("c")
                engine.select(Range.collapsed(Point((5, 0), 0)))

        assert engine.children[0].children == [Text("ab")]
        assert engine.selection == Range.collapsed(Point((0, 0), 2))
        assert calls == []

    def test_unsubscribe(self):
        engine = _engine(paragraph(""), caret=Point((0, 0), 0))
        calls = []
        engine.subscribe(calls.append)
        engine.unsubscribe(calls.append)
        engine.insert_text("a")
        assert calls == []


class TestScreenRect:
    """Tests for the cell-grid screen mapping."""

    def test_rect_row_and_column(self):
        engine = _engine(paragraph("ab"), paragraph("x #liv"))
        rect = engine.to_screen_rect(Range(Point((1, 0), 2), Point((1, 0), 6)))
        assert rect == ScreenRect(top=1, left=2, width=4, height=1)
