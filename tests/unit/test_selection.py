#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_selection.py
"""Unit tests for text and node selections."""

import pytest

from richdoc.exceptions import PositionError, TransformError
from richdoc.model.selection import NodeSelection, Selection, TextSelection
from richdoc.model.steps import StepMap, StepMapping


@pytest.mark.unit
class TestTextSelection:
    """Tests for cursors and text ranges."""

    def test_cursor(self, build):
        doc = build.doc(build.p("Hello"))
        selection = TextSelection.create(doc, 3)
        assert selection.empty
        assert selection.cursor.pos == 3
        assert (selection.from_, selection.to) == (3, 3)

    def test_backward_range(self, build):
        doc = build.doc(build.p("Hello"))
        selection = TextSelection.create(doc, 5, 2)
        assert (selection.anchor, selection.head) == (5, 2)
        assert (selection.from_, selection.to) == (2, 5)
        assert selection.cursor is None

    def test_out_of_range(self, build):
        doc = build.doc(build.p("Hello"))
        with pytest.raises(PositionError):
            TextSelection.create(doc, 42)

    def test_equality(self, build):
        doc = build.doc(build.p("Hello"))
        assert TextSelection.create(doc, 2, 4) == TextSelection.create(doc, 2, 4)
        assert TextSelection.create(doc, 2, 4) != TextSelection.create(doc, 4, 2)

    def test_map_through_insertion(self, build, schema):
        doc = build.doc(build.p("Hello"))
        selection = TextSelection.create(doc, 4)
        new_doc = build.doc(build.p("HeXXllo"))
        mapped = selection.map(new_doc, StepMapping([StepMap(((2, 0, 2),))]))
        assert mapped.head == 6

    def test_json_round_trip(self, build):
        doc = build.doc(build.p("Hello"))
        selection = TextSelection.create(doc, 1, 4)
        assert Selection.from_json(doc, selection.to_json()) == selection

    def test_unknown_json_kind(self, build):
        doc = build.doc(build.p("Hello"))
        with pytest.raises(TransformError):
            Selection.from_json(doc, {"type": "cell", "anchor": 1, "head": 1})


@pytest.mark.unit
class TestNodeSelection:
    """Tests for selecting a node as a unit."""

    def test_selects_image(self, build):
        doc = build.doc(build.p("a", build.img("a.png"), "b"))
        selection = NodeSelection.create(doc, 2)
        assert selection.node.type.name == "image"
        assert (selection.anchor, selection.head) == (2, 3)

    def test_requires_node_after(self, build):
        doc = build.doc(build.p("Hello"))
        with pytest.raises(PositionError):
            NodeSelection.create(doc, 6)

    def test_is_selectable(self, build, schema):
        assert NodeSelection.is_selectable(build.img("a.png"))
        assert NodeSelection.is_selectable(build.p("Hello"))
        assert not NodeSelection.is_selectable(schema.text("Hello"))

    def test_map_to_deleted_node_falls_back(self, build):
        doc = build.doc(build.p("a", build.img("a.png"), "b"))
        selection = NodeSelection.create(doc, 2)
        new_doc = build.doc(build.p("ab"))
        mapped = selection.map(new_doc, StepMapping([StepMap(((2, 1, 0),))]))
        assert isinstance(mapped, TextSelection)
        assert mapped.head == 2

    def test_json_round_trip(self, build):
        doc = build.doc(build.p("a", build.img("a.png"), "b"))
        selection = NodeSelection.create(doc, 2)
        restored = Selection.from_json(doc, selection.to_json())
        assert isinstance(restored, NodeSelection)
        assert restored == selection


@pytest.mark.unit
class TestSelectionNear:
    """Tests for finding the nearest valid selection."""

    def test_inside_textblock(self, build):
        doc = build.doc(build.p("Hello"))
        selection = Selection.near(doc.resolve(3))
        assert isinstance(selection, TextSelection)
        assert selection.head == 3

    def test_between_blocks_forward(self, build):
        doc = build.doc(build.p("ab"), build.p("cd"))
        assert Selection.near(doc.resolve(4)).head == 5

    def test_between_blocks_backward(self, build):
        doc = build.doc(build.p("ab"), build.p("cd"))
        assert Selection.near(doc.resolve(4), -1).head == 3

    def test_falls_back_to_other_direction(self, build, schema):
        doc = build.doc(build.p("ab"), schema.node("horizontal_rule"))
        assert Selection.near(doc.resolve(5), 1).head == 3

    def test_at_start_and_end(self, build):
        doc = build.doc(build.h(1, "Title"), build.p("Hello"))
        assert Selection.at_start(doc).head == 1
        assert Selection.at_end(doc).head == 13

    def test_node_fallback_without_textblocks(self, schema):
        doc = schema.node("doc", None, [schema.node("horizontal_rule")])
        selection = Selection.at_start(doc)
        assert isinstance(selection, NodeSelection)
        assert selection.node.type.name == "horizontal_rule"


@pytest.mark.unit
class TestSelectionBase:
    """Tests for the abstract selection base class."""

    def test_base_class_is_abstract(self, build):
        doc = build.doc(build.p("Hello"))
        with pytest.raises(TypeError):
            Selection(doc.resolve(1), doc.resolve(1))

    def test_subclass_without_map_cannot_be_created(self, build):
        class Unmapped(Selection):
            kind = "unmapped"

        doc = build.doc(build.p("Hello"))
        with pytest.raises(TypeError):
            Unmapped(doc.resolve(1), doc.resolve(1))
