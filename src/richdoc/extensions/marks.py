#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/marks.py
"""Inline formatting marks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping

from richdoc.commands.marks import toggle_mark
from richdoc.extensions.base import MarkExtension
from richdoc.model.schema import AttributeSpec, MarkdownParseRule, MarkSerializerSpec, MarkType
from richdoc.utils.escape import escape_link_destination
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.commands import Command
    from richdoc.model.node import Mark, Node
    from richdoc.model.schema import SchemaRegistry
    from richdoc.parsers.tokens import Token
    from richdoc.renderers.markdown import MarkdownSerializerState


class _SimpleMark(MarkExtension):
    """A mark without attributes, written between two fixed delimiters."""

    delimiter = ""
    token = ""
    tag = ""
    shortcut = ""

    def mark_type(self) -> MarkType:
        return MarkType(
            name=self.name,
            to_markdown=MarkSerializerSpec(self.delimiter, self.delimiter, expel_enclosing_whitespace=True),
            parse_rules=(MarkdownParseRule(self.token, kind="mark"),),
            to_dom=lambda mark: Element(self.tag),
        )

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        return {self.shortcut: toggle_mark(schema.mark_type(self.name))}

    def commands(self, schema: "SchemaRegistry") -> Mapping[str, Any]:
        return {self.name: lambda: toggle_mark(schema.mark_type(self.name))}


class Emphasis(_SimpleMark):
    name = "em"
    delimiter = "*"
    token = "em"
    tag = "em"
    shortcut = "Mod-i"


class Strong(_SimpleMark):
    name = "strong"
    delimiter = "**"
    token = "strong"
    tag = "strong"
    shortcut = "Mod-b"


class Strikethrough(_SimpleMark):
    name = "strikethrough"
    delimiter = "~~"
    token = "s"
    tag = "s"
    shortcut = "Mod-d"


def _marked_text(mark: "Mark", parent: "Node", index: int, forward: bool) -> str:
    """Text of the run of children carrying ``mark`` that starts (or ends) at ``index``."""
    children = parent.content
    step = 1 if forward else -1
    i = index if forward else index - 1
    run = []
    while 0 <= i < len(children) and mark in children[i].marks:
        run.append(children[i].text or "")
        i += step
    return "".join(run)


def _fence(text: str) -> str:
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    return "`" * (longest + 1)


def _backtick_open(state: "MarkdownSerializerState", mark: "Mark", parent: "Node", index: int) -> str:
    return _fence(_marked_text(mark, parent, index, True))


def _backtick_close(state: "MarkdownSerializerState", mark: "Mark", parent: "Node", index: int) -> str:
    return _fence(_marked_text(mark, parent, index, False))


class CodeInline(MarkExtension):
    name = "code_inline"

    def mark_type(self) -> MarkType:
        return MarkType(
            name=self.name,
            to_markdown=MarkSerializerSpec(_backtick_open, _backtick_close, escape=False),
            parse_rules=(MarkdownParseRule("code_inline", kind="mark"),),
            to_dom=lambda mark: Element("code", {"spellcheck": "false"}),
        )

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        return {"Mod-e": toggle_mark(schema.mark_type(self.name))}

    def commands(self, schema: "SchemaRegistry") -> Mapping[str, Any]:
        return {self.name: lambda: toggle_mark(schema.mark_type(self.name))}


def _link_close(state: "MarkdownSerializerState", mark: "Mark", parent: "Node", index: int) -> str:
    href = escape_link_destination(str(mark.attrs["href"]))
    title = mark.attrs.get("title")
    return f"]({href}{' ' + state.quote(title) if title else ''})"


class Link(MarkExtension):
    name = "link"

    def mark_type(self) -> MarkType:
        def get_attrs(token: "Token") -> dict[str, Any]:
            return {"href": str(token.attrs.get("href") or ""), "title": token.attrs.get("title") or None}

        return MarkType(
            name=self.name,
            attrs={
                "href": AttributeSpec(validate="string"),
                "title": AttributeSpec(default=None, validate="string|null"),
            },
            to_markdown=MarkSerializerSpec("[", _link_close),
            parse_rules=(MarkdownParseRule("link", kind="mark", get_attrs=get_attrs),),
            to_dom=lambda mark: Element(
                "a",
                {"href": mark.attrs["href"], "title": mark.attrs.get("title"), "rel": "noopener noreferrer nofollow"},
            ),
        )
