#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/nodes/image.py
"""Inline images, rendered through a node view component."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from richdoc.extensions.base import NodeExtension
from richdoc.model.schema import AttributeSpec, MarkdownParseRule, NodeType
from richdoc.utils.escape import escape_link_destination
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.parsers.tokens import Token
    from richdoc.renderers.markdown import MarkdownSerializerState
    from richdoc.view.node_view import Component, ComponentProps


def _image_attrs(node: "Node") -> dict[str, Any]:
    return {"src": node.attrs["src"], "alt": node.attrs.get("alt"), "title": node.attrs.get("title")}


def image_component(props: "ComponentProps") -> Element:
    """Default component: a plain ``img`` element, marked while selected."""
    element = Element("img", _image_attrs(props.node))
    if props.is_selected:
        element.class_list.add("ProseMirror-selectednode")
    return element


class Image(NodeExtension):
    """Image node type.

    Settings
    --------
    component : callable, optional
        Component rendering the image; defaults to :func:`image_component`
    """

    name = "image"
    default_settings = {"component": None}

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            alt = state.esc(node.attrs.get("alt") or "")
            src = escape_link_destination(str(node.attrs["src"]))
            title = node.attrs.get("title")
            state.write(f"![{alt}]({src}{' ' + state.quote(title) if title else ''})")

        def get_attrs(token: "Token") -> dict[str, Any]:
            return {
                "src": str(token.attrs.get("src") or ""),
                "alt": token.attrs.get("alt") or None,
                "title": token.attrs.get("title") or None,
            }

        return NodeType(
            name=self.name,
            attrs={
                "src": AttributeSpec(validate="string"),
                "alt": AttributeSpec(default=None, validate="string|null"),
                "title": AttributeSpec(default=None, validate="string|null"),
            },
            inline=True,
            groups=("inline",),
            atom=True,
            selectable=True,
            draggable=True,
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("image", kind="node", get_attrs=get_attrs),),
            to_dom=lambda node: Element("img", _image_attrs(node)),
        )

    def component(self) -> "Component":
        return self.settings["component"] or image_component
