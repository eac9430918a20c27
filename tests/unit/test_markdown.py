#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_markdown.py
"""Unit tests for the markdown parser and serializer."""

import logging

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from richdoc.exceptions import ParsingError
from richdoc.extensions.manager import ExtensionManager
from richdoc.options.markdown import MarkdownParserOptions, MarkdownSerializerOptions
from richdoc.parsers.markdown import MarkdownParser, ParseWarning
from richdoc.parsers.tokens import Token
from richdoc.renderers.markdown import MarkdownSerializer


@pytest.mark.unit
class TestParsing:
    """Tests for markdown to document parsing."""

    def test_heading(self, manager):
        doc = manager.parse("# Overview\n")
        heading = doc.first_child
        assert heading.type.name == "heading"
        assert dict(heading.attrs) == {"level": 1, "collapsed": None}
        assert heading.text_content == "Overview"

    def test_heading_level_clamped(self, manager):
        heading = manager.parse("###### Deep\n").first_child
        assert heading.attrs["level"] == 4

    def test_inline_marks(self, manager):
        paragraph = manager.parse("Some *em* and **strong** and `code`\n").first_child
        marked = {child.text: [mark.type.name for mark in child.marks] for child in paragraph.content}
        assert marked["em"] == ["em"]
        assert marked["strong"] == ["strong"]
        assert marked["code"] == ["code_inline"]

    def test_link_and_image(self, manager):
        paragraph = manager.parse('[docs](https://example.com "Docs") ![logo](a.png)\n').first_child
        link = paragraph.first_child.marks[0]
        assert link.type.name == "link"
        assert dict(link.attrs) == {"href": "https://example.com", "title": "Docs"}
        image = paragraph.last_child
        assert image.type.name == "image"
        assert image.attrs["src"] == "a.png"
        assert image.attrs["alt"] == "logo"

    def test_code_block(self, manager):
        block = manager.parse("```python\nprint(1)\n```\n").first_child
        assert block.type.name == "code_block"
        assert block.attrs["language"] == "python"
        assert block.text_content == "print(1)"

    def test_lists(self, manager):
        doc = manager.parse("- one\n- two\n\n1. first\n2. second\n")
        bullets, ordered = doc.content
        assert bullets.type.name == "bullet_list"
        assert bullets.attrs["tight"] is True
        assert [item.text_content for item in bullets.content] == ["one", "two"]
        assert ordered.type.name == "ordered_list"
        assert ordered.attrs["order"] == 1

    def test_softbreak_becomes_space(self, manager):
        assert manager.parse("one\ntwo\n").first_child.text_content == "one two"

    def test_hard_break(self, manager):
        paragraph = manager.parse("one\\\ntwo\n").first_child
        assert [child.type.name for child in paragraph.content] == ["text", "hard_break", "text"]

    def test_empty_input(self, manager):
        doc = manager.parse("")
        assert doc.child_count == 1
        assert doc.first_child.type.name == "paragraph"

    def test_html_block_degrades_to_text(self, manager, caplog):
        with caplog.at_level(logging.WARNING):
            result = manager.parse_with_warnings("<div>hi</div>\n")
        assert result.doc.first_child.type.name == "paragraph"
        assert result.doc.first_child.text_content == "<div>hi</div>"
        assert result.warnings == [ParseWarning("html_block", "converted to text")]
        assert str(result.warnings[0]) == "html_block: converted to text"
        assert "html_block" in caplog.text

    def test_strict_mode_raises(self):
        manager = ExtensionManager.default(parser_options=MarkdownParserOptions(strict=True))
        with pytest.raises(ParsingError) as exc_info:
            manager.parse("<div>hi</div>\n")
        assert len(exc_info.value.warnings) == 1


@pytest.mark.unit
class TestTokenDegradation:
    """Tests for tokens the schema has no rule for."""

    @pytest.fixture
    def parser(self, schema):
        return MarkdownParser(schema)

    def test_unknown_container_with_inline_children(self, parser):
        tokens = [
            Token("table_cell_open", nesting=1, block=True, meta={"unknown": True, "inline_children": True}),
            Token("text", content="cell"),
            Token("table_cell_close", nesting=-1, block=True, meta={"unknown": True}),
        ]
        result = parser.parse_tokens(tokens)
        assert result.doc.first_child.type.name == "paragraph"
        assert result.doc.first_child.text_content == "cell"
        assert result.warnings[0].message == "converted to paragraph"

    def test_unknown_container_unwrapped(self, parser):
        tokens = [
            Token("figure_open", nesting=1, block=True, meta={"unknown": True}),
            Token("paragraph_open", "p", 1, block=True),
            Token("text", content="inside"),
            Token("paragraph_close", "p", -1, block=True),
            Token("figure_close", nesting=-1, block=True, meta={"unknown": True}),
        ]
        result = parser.parse_tokens(tokens)
        assert result.doc.first_child.text_content == "inside"
        assert result.warnings[0].message == "unwrapped, children kept"

    def test_empty_unknown_leaf_dropped(self, parser):
        tokens = [
            Token("paragraph_open", "p", 1, block=True),
            Token("text", content="kept"),
            Token("paragraph_close", "p", -1, block=True),
            Token("footnote_ref", content="", meta={"unknown": True}),
        ]
        result = parser.parse_tokens(tokens)
        assert result.doc.child_count == 1
        assert result.warnings == [ParseWarning("footnote_ref", "dropped")]

    def test_list_item_without_paragraph_is_filled(self, parser):
        tokens = [
            Token("bullet_list_open", "ul", 1, block=True),
            Token("list_item_open", "li", 1, block=True),
            Token("hr", "hr", block=True),
            Token("list_item_close", "li", -1, block=True),
            Token("bullet_list_close", "ul", -1, block=True),
        ]
        item = parser.parse_tokens(tokens).doc.first_child.first_child
        assert [child.type.name for child in item.content] == ["paragraph", "horizontal_rule"]


@pytest.mark.unit
class TestSerialization:
    """Tests for document to markdown serialization."""

    @pytest.mark.parametrize(
        "text",
        [
            "# Overview\n",
            "## Title\n\nSome *em* and **strong** text.\n",
            "- one\n- two\n",
            "1. first\n2. second\n",
            "> quoted\n",
            "```python\nprint(1)\n```\n",
            "one\\\ntwo\n",
            "[docs](https://example.com) and ~~gone~~\n",
            "above\n\n---\n\nbelow\n",
        ],
    )
    def test_round_trip(self, manager, text):
        assert manager.serialize(manager.parse(text)) == text

    def test_collapsed_not_written(self, manager, build):
        text = manager.serialize(build.doc(build.h(2, "Folded", collapsed=True), build.p("x")))
        assert text == "## Folded\n\nx\n"
        assert manager.parse(text).first_child.attrs["collapsed"] is None

    def test_escapes_block_syntax_at_line_start(self, manager, build):
        assert manager.serialize(build.doc(build.p("# not a heading"))) == "\\# not a heading\n"
        assert manager.serialize(build.doc(build.p("1. not a list"))) == "1\\. not a list\n"

    def test_escapes_inline_syntax(self, manager, build):
        assert manager.serialize(build.doc(build.p("*star* and snake_case"))) == "\\*star\\* and snake_case\n"

    def test_code_is_not_escaped(self, manager, build, schema):
        code = schema.text("a*b", [schema.mark("code_inline")])
        assert manager.serialize(build.doc(build.p(code))) == "`a*b`\n"
        assert manager.serialize(build.doc(build.code("x = *y*"))) == "```\nx = *y*\n```\n"

    def test_fence_longer_than_content(self, manager, build):
        text = manager.serialize(build.doc(build.code("```inner```")))
        assert text.startswith("````\n")

    def test_mark_whitespace_moved_outside(self, manager, build, schema):
        strong = schema.mark("strong")
        doc = build.doc(build.p("a", schema.text(" bold ", [strong]), "b"))
        assert manager.serialize(doc) == "a **bold** b\n"

    def test_trailing_hard_break_dropped(self, manager, build, schema):
        doc = build.doc(build.p("line", schema.node("hard_break")))
        assert manager.serialize(doc) == "line\n"

    def test_empty_document(self, manager, build):
        assert manager.serialize(build.doc(build.p())) == ""

    def test_nested_list_in_quote(self, manager):
        text = "> - one\n> - two\n"
        assert manager.serialize(manager.parse(text)) == text

    def test_serializer_options(self, manager):
        serializer = MarkdownSerializer(
            MarkdownSerializerOptions(bullet_marker="*", code_fence_char="~", hard_break_style="spaces")
        )
        doc = manager.parse("- a\\\n  b\n\n```\ncode\n```\n")
        assert serializer.serialize(doc) == "* a  \n  b\n\n~~~\ncode\n~~~\n"

    def test_horizontal_rule_option(self, manager, build, schema):
        serializer = MarkdownSerializer(MarkdownSerializerOptions(horizontal_rule="***"))
        assert serializer.serialize(build.doc(schema.node("horizontal_rule"))) == "***\n"

    @pytest.mark.parametrize("field, value", [("bullet_marker", "x"), ("code_fence_char", "'")])
    def test_invalid_serializer_options(self, field, value):
        with pytest.raises(ValueError):
            MarkdownSerializerOptions(**{field: value})


@pytest.mark.unit
class TestLosslessSerialization:
    """Tests for content that must survive a serialize/parse round trip unchanged."""

    def test_heading_ending_in_hash(self, manager, build):
        doc = build.doc(build.h(1, "Issue #"), build.h(2, "#"))
        text = manager.serialize(doc)
        assert text == "# Issue \\#\n\n## \\#\n"
        assert manager.parse(text) == doc

    def test_hash_inside_heading_untouched(self, manager, build):
        assert manager.serialize(build.doc(build.h(1, "C# tips"))) == "# C# tips\n"

    def test_empty_paragraph_between_blocks(self, manager, build):
        doc = build.doc(build.p("a"), build.p(), build.p("b"))
        text = manager.serialize(doc)
        assert text == "a\n\n<br>\n\nb\n"
        assert manager.parse(text) == doc

    def test_empty_paragraph_in_quote(self, manager, build):
        doc = build.doc(build.quote(build.p("a"), build.p()))
        assert manager.parse(manager.serialize(doc)) == doc

    def test_br_block_parses_to_empty_paragraph(self, manager):
        result = manager.parse_with_warnings("a\n\n<BR>\n\nb\n")
        assert [child.text_content for child in result.doc.content] == ["a", "", "b"]
        assert result.doc.content[1].type.name == "paragraph"
        assert result.warnings == []

    def test_image_destination_with_spaces_and_parentheses(self, manager, build):
        doc = build.doc(build.p(build.img("my image (1).png", "Logo")))
        text = manager.serialize(doc)
        assert text == "![Logo](my%20image%20\\(1\\).png)\n"
        assert manager.parse(text) == doc

    def test_link_destination_keeps_literal_escapes(self, manager, build, schema):
        link = schema.mark("link", {"href": "https://example.com/a%20b"})
        doc = build.doc(build.p(schema.text("docs", [link])))
        text = manager.serialize(doc)
        assert text == "[docs](https://example.com/a%2520b)\n"
        assert manager.parse(text) == doc

    def test_html_and_entities_in_text(self, manager, build):
        doc = build.doc(build.p("<br> &amp; AT&T"))
        text = manager.serialize(doc)
        assert text == "\\<br> \\&amp; AT&T\n"
        assert manager.parse(text) == doc


_WORD = st.from_regex(r"[a-z]([a-z0-9#&<_*`\\]{0,6}[a-z0-9])?", fullmatch=True)
_PLAIN_WORD = st.from_regex(r"[a-z][a-z0-9]{0,7}", fullmatch=True)
_DESTINATION = st.text(alphabet="abc /()%é", min_size=1, max_size=12)

_SEGMENT = st.one_of(
    st.tuples(st.just("text"), st.lists(_WORD, min_size=1, max_size=3)),
    st.tuples(st.sampled_from(["em", "strong"]), st.lists(_WORD, min_size=1, max_size=2)),
    st.tuples(st.just("code_inline"), st.lists(_PLAIN_WORD, min_size=1, max_size=2)),
    st.tuples(st.just("link"), st.lists(_WORD, min_size=1, max_size=2), _DESTINATION),
    st.tuples(st.just("image"), _PLAIN_WORD, _DESTINATION),
)
_INLINE = st.lists(_SEGMENT, min_size=1, max_size=4)

_BLOCK = st.one_of(
    st.tuples(st.just("paragraph"), _INLINE),
    st.just(("empty",)),
    st.tuples(st.just("heading"), st.integers(min_value=1, max_value=4), st.lists(_WORD, min_size=1, max_size=3)),
    st.tuples(st.just("code"), st.lists(_PLAIN_WORD, min_size=1, max_size=3), st.sampled_from([None, "python"])),
    st.tuples(st.just("list"), st.lists(_INLINE, min_size=1, max_size=3)),
    st.tuples(st.just("quote"), _INLINE),
)

# Adjacent lists of one kind merge into a single list in markdown
_BLOCKS = st.lists(_BLOCK, min_size=1, max_size=5).filter(
    lambda blocks: not any(a[0] == b[0] == "list" for a, b in zip(blocks, blocks[1:]))
)


def _build_inline(schema, segments):
    nodes = []
    for index, segment in enumerate(segments):
        if index:
            nodes.append(schema.text(" "))
        kind = segment[0]
        if kind == "image":
            nodes.append(schema.node("image", {"src": segment[2], "alt": segment[1]}))
        elif kind == "text":
            nodes.append(schema.text(" ".join(segment[1])))
        elif kind == "link":
            nodes.append(schema.text(" ".join(segment[1]), [schema.mark("link", {"href": segment[2]})]))
        else:
            nodes.append(schema.text(" ".join(segment[1]), [schema.mark(kind)]))
    return nodes


def _build_block(schema, block):
    kind = block[0]
    if kind == "paragraph":
        return schema.node("paragraph", None, _build_inline(schema, block[1]))
    if kind == "empty":
        return schema.node("paragraph")
    if kind == "heading":
        return schema.node("heading", {"level": block[1]}, [schema.text(" ".join(block[2]))])
    if kind == "code":
        return schema.node("code_block", {"language": block[2]}, [schema.text("\n".join(block[1]))])
    if kind == "list":
        items = [
            schema.node("list_item", None, [schema.node("paragraph", None, _build_inline(schema, item))])
            for item in block[1]
        ]
        return schema.node("bullet_list", {"tight": True}, items)
    return schema.node("blockquote", None, [schema.node("paragraph", None, _build_inline(schema, block[1]))])


@pytest.mark.unit
class TestRoundTripProperty:
    """Property tests: parsing serialized documents gives the same tree back."""

    @settings(deadline=None)
    @given(_BLOCKS)
    def test_parse_after_serialize_is_identity(self, blocks):
        manager = ExtensionManager.default()
        schema = manager.schema
        doc = schema.node("doc", None, [_build_block(schema, block) for block in blocks])
        text = manager.serialize(doc)
        assert manager.parse(text) == doc, text
        assert manager.serialize(manager.parse(text)) == text
