#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/nodes/lists.py
"""Bullet lists, ordered lists and list items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from richdoc.extensions.base import NodeExtension
from richdoc.model.schema import AttributeSpec, MarkdownParseRule, NodeType
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.parsers.tokens import Token
    from richdoc.renderers.markdown import MarkdownSerializerState


def _is_start(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class BulletList(NodeExtension):
    name = "bullet_list"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            marker = state.options.bullet_marker
            state.render_list(node, "  ", lambda i: marker + " ")

        def get_attrs(token: "Token") -> dict[str, Any]:
            return {"tight": bool(token.attrs.get("tight", False))}

        return NodeType(
            name=self.name,
            attrs={"tight": AttributeSpec(default=False, validate="boolean")},
            content="list_item+",
            groups=("block",),
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("bullet_list", get_attrs=get_attrs),),
            to_dom=lambda node: Element("ul", {"data-tight": "true" if node.attrs.get("tight") else None}),
        )


class OrderedList(NodeExtension):
    name = "ordered_list"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            start = int(node.attrs.get("order", 1))
            width = len(str(start + node.child_count - 1))
            space = " " * (width + 2)

            def marker(i: int) -> str:
                number = str(start + i)
                return " " * (width - len(number)) + number + ". "

            state.render_list(node, space, marker)

        def get_attrs(token: "Token") -> dict[str, Any]:
            start = token.attrs.get("start", 1)
            return {"order": start if _is_start(start) else 1, "tight": bool(token.attrs.get("tight", False))}

        def to_dom(node: "Node") -> Element:
            order = node.attrs.get("order", 1)
            return Element(
                "ol",
                {"start": order if order != 1 else None, "data-tight": "true" if node.attrs.get("tight") else None},
            )

        return NodeType(
            name=self.name,
            attrs={
                "order": AttributeSpec(default=1, validate=_is_start),
                "tight": AttributeSpec(default=False, validate="boolean"),
            },
            content="list_item+",
            groups=("block",),
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("ordered_list", get_attrs=get_attrs),),
            to_dom=to_dom,
        )


class ListItem(NodeExtension):
    name = "list_item"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            state.render_content(node)

        return NodeType(
            name=self.name,
            content="paragraph block*",
            defining=True,
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("list_item"),),
            to_dom=lambda node: Element("li"),
        )
