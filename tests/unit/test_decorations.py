#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_decorations.py
"""Unit tests for decorations, heading anchors and folded content."""

import pytest

from richdoc.exceptions import PositionError, RichDocError
from richdoc.model.selection import TextSelection
from richdoc.plugins.anchors import anchors_key, get_anchors, get_headings
from richdoc.plugins.folding import folded_ranges, folding_key, get_folded_content
from richdoc.utils.text import make_unique_slug, slugify
from richdoc.view.decorations import EMPTY, Decoration, DecorationSet, merge
from richdoc.view.dom import Element


def _widget(decoration):
    return Element("span")


@pytest.fixture
def outline(build):
    # heading "Overview": 0..10, paragraph: 10..13, second heading: 13..23
    return build.doc(build.h(1, "Overview"), build.p("x"), build.h(2, "Overview"))


@pytest.mark.unit
class TestDecorationSet:
    """Tests for decoration sets."""

    def test_sorted_by_position(self, build):
        doc = build.doc(build.p("Hello"))
        decorations = DecorationSet.create(
            doc, [Decoration.inline(2, 4, {"class": "hl"}), Decoration.widget(1, _widget, key="w")]
        )
        assert [d.kind for d in decorations] == ["widget", "inline"]

    def test_outside_document_rejected(self, build):
        doc = build.doc(build.p("Hello"))
        with pytest.raises(PositionError) as exc_info:
            DecorationSet.create(doc, [Decoration.widget(99, _widget)])
        assert exc_info.value.pos == 99
        assert isinstance(exc_info.value, RichDocError)

    def test_widget_equality_ignores_renderer(self):
        first = Decoration.widget(3, _widget, key="a", attrs={"id": "a"})
        second = Decoration.widget(3, lambda d: Element("b"), key="a", attrs={"id": "a"})
        assert first == second
        assert hash(first) == hash(second)

    def test_find(self, build):
        doc = build.doc(build.p("Hello"), build.p("World"))
        decorations = DecorationSet.create(
            doc, [Decoration.node(0, 7, {"class": "a"}), Decoration.node(7, 14, {"class": "b"})]
        )
        assert len(decorations.find(8, 9)) == 1
        assert len(decorations.find(7, 7)) == 2
        assert decorations.find(predicate=lambda d: d.attrs["class"] == "b")[0].from_ == 7

    def test_by_key_add_remove(self, build):
        doc = build.doc(build.p("Hello"))
        widget = Decoration.widget(1, _widget, key="w")
        decorations = DecorationSet().add(doc, [widget])
        assert decorations.by_key("w") == widget
        assert decorations.keys() == ["w"]
        assert not decorations.remove([widget])

    def test_render_requires_widget(self):
        with pytest.raises(ValueError):
            Decoration.inline(1, 2, {}).render()

    def test_merge(self):
        first = DecorationSet([Decoration.widget(1, _widget, key="a")])
        second = DecorationSet([Decoration.widget(0, _widget, key="b")])
        assert merge([None, EMPTY]) is EMPTY
        assert merge([first, None]) is first
        assert merge([first, second]).keys() == ["b", "a"]


@pytest.mark.unit
class TestSlugs:
    """Tests for anchor slug generation."""

    def test_slugify(self):
        assert slugify("My Heading Title") == "my-heading-title"
        assert slugify("Café résumé!") == "cafe-resume"
        assert slugify("snake_case  words") == "snake-case-words"

    def test_empty_slug(self):
        assert slugify("!!!") == "heading"

    def test_max_length(self):
        assert slugify("a" * 10 + " b", max_length=5) == "aaaaa"

    def test_custom_separator(self):
        assert slugify("Getting Started", separator="_") == "getting_started"

    def test_unique_suffixes(self):
        seen = {}
        assert [make_unique_slug("overview", seen) for _ in range(3)] == ["overview", "overview-1", "overview-2"]

    def test_unique_suffix_skips_taken_ids(self):
        seen = {}
        slugs = ["overview-1", "overview", "overview", "overview", "overview-1"]
        assert [make_unique_slug(slug, seen) for slug in slugs] == [
            "overview-1",
            "overview",
            "overview-2",
            "overview-3",
            "overview-1-1",
        ]


@pytest.mark.unit
class TestAnchors:
    """Tests for heading anchor decorations."""

    def test_duplicate_titles_get_suffixes(self, outline):
        decorations = get_anchors(outline)
        assert decorations.keys() == ["overview", "overview-1"]
        first, second = decorations
        assert (first.from_, second.from_) == (0, 13)
        assert first.side == -1
        assert dict(second.attrs) == {"id": "overview-1", "class": "heading-name"}

    def test_anchor_renders_link_target(self, outline):
        element = get_anchors(outline, class_name="anchor").by_key("overview").render()
        assert element.tag == "a"
        assert element.id == "overview"
        assert "anchor" in element.class_list

    def test_pure(self, outline):
        assert get_anchors(outline) == get_anchors(outline)

    def test_nested_headings_in_document_order(self, build):
        doc = build.doc(build.quote(build.h(2, "Intro")), build.h(1, "Intro"))
        assert get_anchors(doc).keys() == ["intro", "intro-1"]

    def test_numbered_title_does_not_collide_with_suffix(self, build):
        doc = build.doc(build.h(1, "Overview"), build.h(1, "Overview"), build.h(1, "Overview 1"))
        keys = get_anchors(doc).keys()
        assert keys == ["overview", "overview-1", "overview-1-1"]
        assert len(set(keys)) == len(keys)

    def test_headings_outline(self, outline):
        headings = get_headings(outline)
        assert [(h.title, h.level, h.id, h.pos) for h in headings] == [
            ("Overview", 1, "overview", 0),
            ("Overview", 2, "overview-1", 13),
        ]

    def test_plugin_reuses_set_for_selection_changes(self, manager, outline):
        state = manager.create_state(outline)
        before = anchors_key.get_state(state)
        state = state.apply(state.tr.set_selection(TextSelection.create(outline, 3)))
        assert anchors_key.get_state(state) is before

    def test_plugin_reuses_set_for_unchanged_markup(self, manager, outline):
        state = manager.create_state(outline)
        before = anchors_key.get_state(state)
        state = state.apply(state.tr.set_node_attribute(0, "level", 1))
        assert state.doc is outline
        assert anchors_key.get_state(state) is before

    def test_plugin_recomputes_on_document_change(self, manager, outline):
        state = manager.create_state(outline)
        state = state.apply(state.tr.insert_text("Summary ", 1))
        assert anchors_key.get_state(state).keys() == ["summary-overview", "overview"]


@pytest.mark.unit
class TestFolding:
    """Tests for folded-content decorations."""

    @pytest.fixture
    def sections(self, build):
        # A: 0..3, x: 3..6, B: 6..9, y: 9..12, C: 12..15, z: 15..18
        return build.doc(
            build.h(1, "A", collapsed=True),
            build.p("x"),
            build.h(2, "B"),
            build.p("y"),
            build.h(1, "C"),
            build.p("z"),
        )

    def test_hides_until_same_level(self, sections):
        assert folded_ranges(sections, 0) == [(0, 3, 6), (0, 6, 9), (0, 9, 12)]

    def test_lower_level_fold_stops_at_higher_heading(self, build):
        doc = build.doc(build.h(2, "A", collapsed=True), build.p("x"), build.h(1, "B"), build.p("y"))
        assert folded_ranges(doc, 0) == [(0, 3, 6)]

    def test_expanded_headings_hide_nothing(self, build):
        doc = build.doc(build.h(1, "A", collapsed=False), build.p("x"))
        assert folded_ranges(doc, 0) == []

    def test_node_decorations(self, sections):
        decorations = get_folded_content(sections)
        assert [(d.kind, d.from_, d.to) for d in decorations] == [("node", 3, 6), ("node", 6, 9), ("node", 9, 12)]
        assert all(d.attrs["class"] == "folded-content" for d in decorations)

    def test_nested_container(self, build):
        doc = build.doc(build.quote(build.h(1, "A", collapsed=True), build.p("x")))
        decorations = get_folded_content(doc)
        assert [(d.from_, d.to) for d in decorations] == [(4, 7)]

    def test_plugin_state(self, manager, sections):
        state = manager.create_state(sections)
        assert len(folding_key.get_state(state)) == 3
        state = state.apply(state.tr.set_node_attribute(0, "collapsed", False))
        assert len(folding_key.get_state(state)) == 0
