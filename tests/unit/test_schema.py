#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_schema.py
"""Unit tests for the schema registry, attribute contracts and content expressions."""

import pytest

from richdoc.exceptions import (
    AttributeValidationError,
    ContentMatchError,
    DuplicateTypeError,
    SchemaError,
    UnknownTypeError,
)
from richdoc.model.schema import AttributeSpec, MarkType, NodeType, SchemaRegistry


def _minimal_registry():
    registry = SchemaRegistry()
    registry.register(NodeType("doc", content="block+"))
    registry.register(NodeType("paragraph", content="inline*", groups=("block",)))
    registry.register(NodeType("text", inline=True, groups=("inline",)))
    return registry


@pytest.mark.unit
class TestRegistration:
    """Tests for registering and freezing types."""

    def test_duplicate_node_type_rejected(self):
        registry = _minimal_registry()
        with pytest.raises(DuplicateTypeError):
            registry.register(NodeType("paragraph", content="inline*", groups=("block",)))

    def test_duplicate_mark_type_rejected(self):
        registry = _minimal_registry()
        registry.register_mark(MarkType("strong"))
        with pytest.raises(DuplicateTypeError):
            registry.register_mark(MarkType("strong"))

    def test_register_after_freeze_rejected(self):
        registry = _minimal_registry().freeze()
        with pytest.raises(SchemaError):
            registry.register(NodeType("heading", content="inline*", groups=("block",)))

    def test_freeze_requires_top_node(self):
        registry = SchemaRegistry()
        registry.register(NodeType("text", inline=True, groups=("inline",)))
        with pytest.raises(SchemaError):
            registry.freeze()

    def test_freeze_requires_text_type(self):
        registry = SchemaRegistry()
        registry.register(NodeType("doc", content="paragraph*"))
        registry.register(NodeType("paragraph", groups=("block",)))
        with pytest.raises(SchemaError):
            registry.freeze()

    def test_freeze_rejects_default_failing_validator(self):
        registry = _minimal_registry()
        registry.register(
            NodeType("note", attrs={"level": AttributeSpec(default=9, validate=lambda v: v < 5)}, groups=("block",))
        )
        with pytest.raises(AttributeValidationError):
            registry.freeze()

    def test_freeze_is_idempotent(self):
        registry = _minimal_registry()
        assert registry.freeze() is registry.freeze()
        assert registry.frozen

    def test_unknown_type_lookup(self, schema):
        with pytest.raises(UnknownTypeError):
            schema.node_type("table")

    def test_mark_ranks_follow_registration_order(self, schema):
        ranks = [mark.rank for mark in schema.marks.values()]
        assert ranks == sorted(ranks)
        assert schema.mark_type("link").rank < schema.mark_type("strong").rank

    def test_default_block_type_is_paragraph(self, schema):
        assert schema.default_block_type.name == "paragraph"


@pytest.mark.unit
class TestAttributes:
    """Tests for attribute validation."""

    def test_defaults_filled(self, schema):
        assert schema.validate_attrs("heading") == {"level": 1, "collapsed": None}

    def test_unknown_attribute_rejected(self, schema):
        with pytest.raises(AttributeValidationError):
            schema.validate_attrs("paragraph", {"align": "left"})

    def test_missing_required_attribute_rejected(self, schema):
        with pytest.raises(AttributeValidationError):
            schema.validate_attrs("image", {"alt": "Logo"})

    def test_validator_failure_rejected(self, schema):
        with pytest.raises(AttributeValidationError) as exc_info:
            schema.validate_attrs("heading", {"level": 6})
        assert exc_info.value.attribute == "level"

    @pytest.mark.parametrize("level", [True, 1.0, "1"])
    def test_heading_level_must_be_int(self, schema, level):
        with pytest.raises(AttributeValidationError) as exc_info:
            schema.node("heading", {"level": level})
        assert exc_info.value.attribute == "level"

    def test_string_shorthand_validator(self, schema):
        assert schema.validate_attrs("code_block", {"language": "python"}) == {"language": "python"}
        with pytest.raises(AttributeValidationError):
            schema.validate_attrs("code_block", {"language": 3})

    def test_mark_attributes(self, schema):
        mark = schema.mark("link", {"href": "https://example.com"})
        assert dict(mark.attrs) == {"href": "https://example.com", "title": None}
        with pytest.raises(AttributeValidationError):
            schema.mark("link")


@pytest.mark.unit
class TestNodeConstruction:
    """Tests for validated node construction."""

    def test_empty_text_rejected(self, schema):
        with pytest.raises(SchemaError):
            schema.text("")

    def test_text_through_node_rejected(self, schema):
        with pytest.raises(SchemaError):
            schema.node("text")

    def test_content_expression_enforced(self, schema):
        with pytest.raises(ContentMatchError):
            schema.node("doc")
        with pytest.raises(ContentMatchError):
            schema.node("bullet_list", None, [schema.node("paragraph")])

    def test_list_item_requires_leading_paragraph(self, schema):
        heading = schema.node("heading", {"level": 2})
        with pytest.raises(ContentMatchError):
            schema.node("list_item", None, [heading])
        item = schema.node("list_item", None, [schema.node("paragraph"), heading])
        assert item.child_count == 2

    def test_code_block_rejects_marks(self, schema):
        strong = schema.mark("strong")
        with pytest.raises(SchemaError):
            schema.node("code_block", None, [schema.text("x = 1", [strong])])

    def test_adjacent_text_merged(self, schema):
        paragraph = schema.node("paragraph", None, [schema.text("Hello "), schema.text("world")])
        assert paragraph.child_count == 1
        assert paragraph.text_content == "Hello world"

    def test_create_and_fill(self, schema):
        doc = schema.create_and_fill("doc")
        assert doc.child_count == 1
        assert doc.first_child.type.name == "paragraph"

        item = schema.create_and_fill("bullet_list")
        assert item.first_child.type.name == "list_item"
        assert item.first_child.first_child.type.name == "paragraph"

    def test_json_round_trip(self, schema, build):
        link = schema.mark("link", {"href": "/docs", "title": "Docs"})
        doc = build.doc(build.h(2, "Title"), build.p("See ", schema.text("docs", [link]), build.img("a.png")))
        assert schema.node_from_json(doc.to_json()) == doc
