#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/nodes/basic.py
"""Structural node types: document, text, paragraph, breaks, quotes and code."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from richdoc.commands.block_type import set_block_type
from richdoc.commands.input_rules import InputRule, textblock_type_input_rule
from richdoc.commands.split import split_block
from richdoc.constants import DEFAULT_BLOCK_TYPE, DOC_TYPE, EMPTY_PARAGRAPH_MARKDOWN, TEXT_TYPE
from richdoc.extensions.base import Extension, NodeExtension
from richdoc.model.schema import AttributeSpec, MarkdownParseRule, NodeType
from richdoc.model.selection import TextSelection
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.commands import Command, Dispatch
    from richdoc.model.node import Node
    from richdoc.model.schema import SchemaRegistry
    from richdoc.model.state import EditorState
    from richdoc.parsers.tokens import Token
    from richdoc.renderers.markdown import MarkdownSerializerState

logger = logging.getLogger(__name__)


class Doc(NodeExtension):
    """The document root."""

    name = DOC_TYPE

    def node_type(self) -> NodeType:
        return NodeType(name=self.name, content="block+", selectable=False, to_dom=lambda node: Element("div"))


class Text(NodeExtension):
    name = TEXT_TYPE

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            state.text(node.text or "")

        return NodeType(name=self.name, inline=True, groups=("inline",), selectable=False, to_markdown=to_markdown)


def _paragraph_to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
    # A document holding one empty paragraph is the parse of empty text
    if not node.content and not (parent.type.name == DOC_TYPE and parent.child_count == 1):
        state.write(EMPTY_PARAGRAPH_MARKDOWN)
    else:
        state.render_inline(node)
    state.close_block(node)


class Paragraph(NodeExtension):
    """Plain paragraphs.

    Register it before every other block type: the first textblock of the
    ``block`` group is the schema's default block.
    """

    name = DEFAULT_BLOCK_TYPE

    def node_type(self) -> NodeType:
        return NodeType(
            name=self.name,
            content="inline*",
            groups=("block",),
            to_markdown=_paragraph_to_markdown,
            parse_rules=(MarkdownParseRule("paragraph"),),
            to_dom=lambda node: Element("p", {"dir": "auto"}),
        )

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        return {"Shift-Ctrl-0": set_block_type(schema.node_type(self.name))}

    def commands(self, schema: "SchemaRegistry") -> Mapping[str, Any]:
        return {"paragraph": lambda: set_block_type(schema.node_type(self.name))}


class HardBreak(NodeExtension):
    """Line breaks inside a textblock."""

    name = "hard_break"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            # Trailing breaks have no markdown form
            for sibling in parent.content[index + 1 :]:
                if sibling.type is not node.type:
                    state.write("\\\n" if state.options.hard_break_style == "backslash" else "  \n")
                    return

        return NodeType(
            name=self.name,
            inline=True,
            groups=("inline",),
            selectable=False,
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("hardbreak", kind="node"),),
            to_dom=lambda node: Element("br"),
        )

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        command = self.insert_command(schema)
        return {"Shift-Enter": command, "Mod-Enter": command}

    def insert_command(self, schema: "SchemaRegistry") -> "Command":
        break_type = schema.node_type(self.name)

        def insert_hard_break(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
            selection = state.selection
            parent = selection.resolved_from.parent
            if not parent.is_textblock or parent.type.code:
                return False
            tr = state.tr.replace(selection.from_, selection.to, (state.schema.node(break_type),))
            if tr.rejected is not None:
                return False
            tr.set_selection(TextSelection.create(tr.doc, selection.from_ + 1))
            if dispatch is not None:
                dispatch(tr.scroll_into_view())
            return True

        return insert_hard_break


class Blockquote(NodeExtension):
    name = "blockquote"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            state.wrap_block("> ", None, node, lambda: state.render_content(node))

        return NodeType(
            name=self.name,
            content="block+",
            groups=("block",),
            defining=True,
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("blockquote"),),
            to_dom=lambda node: Element("blockquote"),
        )


def _code_language(token: "Token") -> dict[str, Any]:
    info = str(token.attrs.get("info") or "").split()
    return {"language": info[0] if info else None}


class CodeBlock(NodeExtension):
    """Fenced code blocks holding unmarked text."""

    name = "code_block"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            code = node.text_content
            fence = state.fence_for(code)
            state.write(fence + (node.attrs.get("language") or "") + "\n")
            state.text(code, escape=False)
            state.ensure_new_line()
            state.write(fence)
            state.close_block(node)

        def to_dom(node: "Node") -> tuple[Element, Element]:
            language = node.attrs.get("language")
            code = Element("code", {"class": f"language-{language}" if language else None})
            return Element("pre", {"spellcheck": "false"}, [code]), code

        return NodeType(
            name=self.name,
            attrs={"language": AttributeSpec(default=None, validate="string|null")},
            content="text*",
            groups=("block",),
            marks="",
            code=True,
            defining=True,
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("code_block", get_attrs=_code_language),),
            to_dom=to_dom,
        )

    def input_rules(self, schema: "SchemaRegistry") -> list[InputRule]:
        return [
            textblock_type_input_rule(
                r"^```([a-zA-Z0-9_+-]*)\s$",
                schema.node_type(self.name),
                lambda match: {"language": match.group(1) or None},
            )
        ]


class HorizontalRule(NodeExtension):
    name = "horizontal_rule"

    def node_type(self) -> NodeType:
        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            state.write(state.options.horizontal_rule)
            state.close_block(node)

        return NodeType(
            name=self.name,
            groups=("block",),
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("hr", kind="node"),),
            to_dom=lambda node: Element("hr"),
        )


class BaseKeymap(Extension):
    """Editing keys that belong to no single node type."""

    name = "base_keymap"

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        return {"Enter": split_block}
