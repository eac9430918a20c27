#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/nodes/heading.py
"""Headings with anchors, folding and copy-link actions.

The heading node type renders as::

    <hN dir="auto">
      <span class="heading-actions" contenteditable="false">
        <button class="heading-anchor">#</button>
        <button class="heading-fold"></button>
      </span>
      <span class="heading-content">...</span>
    </hN>

where ``N`` is the level plus the configured heading offset. Both the
actions span and the fold button get an extra ``collapsed`` class while the
heading is folded. The anchor widget of the heading (see
:mod:`richdoc.plugins.anchors`) is rendered directly before the ``hN``
element.

Markdown
--------
``level`` repetitions of ``#``, a space and the inline content. The fold
state (``collapsed``) is presentational and never written. A run of ``#``
ending the content is escaped so it is not read back as a closing sequence.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Mapping

from richdoc.commands.block_type import toggle_block_type
from richdoc.commands.fold import toggle_fold
from richdoc.commands.input_rules import InputRule, textblock_type_input_rule
from richdoc.commands.split import backspace_to_paragraph, split_heading
from richdoc.constants import DEFAULT_BLOCK_TYPE
from richdoc.exceptions import NodeViewLifecycleError
from richdoc.extensions.base import NodeExtension
from richdoc.model.schema import AttributeSpec, MarkdownParseRule, NodeType
from richdoc.model.state import Plugin, PluginKey
from richdoc.plugins.anchors import heading_anchors_plugin
from richdoc.plugins.folding import folding_plugin
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.commands import Command
    from richdoc.model.node import Node
    from richdoc.model.schema import SchemaRegistry
    from richdoc.parsers.tokens import Token
    from richdoc.renderers.markdown import MarkdownSerializerState
    from richdoc.view.dom import Event
    from richdoc.view.editor_view import EditorView

logger = logging.getLogger(__name__)

ANCHOR_BUTTON_CLASS = "heading-anchor"
FOLD_BUTTON_CLASS = "heading-fold"
ACTIONS_CLASS = "heading-actions"
CONTENT_CLASS = "heading-content"

# A run of "#" ending the line would be read back as a closing sequence
_CLOSING_SEQUENCE_RE = re.compile(r"[ \t](#+)[ \t]*$")

heading_actions_key = PluginKey("heading-actions")


def _level_validator(levels: tuple[int, ...]) -> Callable[[Any], bool]:
    """Accept only plain integers listed in ``levels``; booleans and floats are rejected."""

    def validate(value: Any) -> bool:
        return type(value) is int and value in levels

    return validate


def copy_link(view: "EditorView", button: Element, anchor_class_name: str, message: str) -> str:
    """Copy the link to the heading owning ``button`` and notify the user.

    The anchor is the previous sibling of the heading element, which is the
    grandparent of the button. The link is the view's location without its
    fragment and without ``/edit``, followed by ``#`` and the anchor id.

    Returns
    -------
    str
        The copied URL

    Raises
    ------
    NodeViewLifecycleError
        If the anchor widget is not where it must be

    """
    heading_element = button.parent.parent if button.parent is not None else None
    anchor = heading_element.previous_sibling if heading_element is not None else None
    if not isinstance(anchor, Element) or anchor_class_name not in anchor.class_list:
        raise NodeViewLifecycleError("Did not find anchor as previous sibling of heading")

    url = view.location.split("#")[0].replace("/edit", "") + "#" + str(anchor.id)
    view.clipboard.write_text(url)
    view.notify(message)
    logger.debug(f"Copied heading link {url}")
    return url


class Heading(NodeExtension):
    """Heading node type.

    Settings
    --------
    None; heading levels, the tag offset and anchor options come from
    :class:`EditorOptions`.
    """

    name = "heading"

    @property
    def levels(self) -> tuple[int, ...]:
        return tuple(self.options.heading_levels)

    def _clamp_level(self, level: int) -> int:
        if level in self.levels:
            return level
        lower = [candidate for candidate in self.levels if candidate <= level]
        return max(lower) if lower else min(self.levels)

    def node_type(self) -> NodeType:
        levels = self.levels
        offset = self.options.heading_offset

        def to_markdown(state: "MarkdownSerializerState", node: "Node", parent: "Node", index: int) -> None:
            state.write(state.repeat("#", int(node.attrs["level"])) + " ")
            start = len(state.out)
            state.render_inline(node)
            # start - 1 is the space after the level marker
            closing = _CLOSING_SEQUENCE_RE.search(state.out, start - 1)
            if closing:
                at = closing.start(1)
                state.out = state.out[:at] + "\\" + state.out[at:]
            state.close_block(node)

        def get_attrs(token: "Token") -> dict[str, Any]:
            suffix = token.tag[1:]
            level = int(suffix) if suffix.isdigit() else int(token.attrs.get("level", 1))
            clamped = self._clamp_level(level)
            if clamped != level:
                logger.debug(f"Heading level {level} mapped to {clamped}")
            return {"level": clamped}

        def to_dom(node: "Node") -> tuple[Element, Element]:
            collapsed = " collapsed" if node.attrs.get("collapsed") else ""
            anchor = Element("button", {"class": ANCHOR_BUTTON_CLASS, "type": "button"}, ["#"])
            fold = Element("button", {"class": FOLD_BUTTON_CLASS + collapsed, "type": "button"})
            actions = Element("span", {"class": ACTIONS_CLASS + collapsed, "contenteditable": "false"}, [anchor, fold])
            content = Element("span", {"class": CONTENT_CLASS})
            heading = Element(f"h{int(node.attrs['level']) + offset}", {"dir": "auto"}, [actions, content])
            return heading, content

        return NodeType(
            name=self.name,
            attrs={
                "level": AttributeSpec(default=levels[0], validate=_level_validator(levels)),
                "collapsed": AttributeSpec(default=None, validate="boolean|null", presentational=True),
            },
            content="inline*",
            groups=("block",),
            defining=True,
            draggable=False,
            to_markdown=to_markdown,
            parse_rules=(MarkdownParseRule("heading", get_attrs=get_attrs),),
            to_dom=to_dom,
        )

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        heading = schema.node_type(self.name)
        paragraph = schema.node_type(DEFAULT_BLOCK_TYPE)
        return {
            f"Shift-Ctrl-{level}": toggle_block_type(heading, paragraph, {"level": level}) for level in self.levels
        }

    def scoped_keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        heading = schema.node_type(self.name)
        return {"Backspace": backspace_to_paragraph(heading), "Enter": split_heading(heading)}

    def input_rules(self, schema: "SchemaRegistry") -> list[InputRule]:
        heading = schema.node_type(self.name)
        return [
            textblock_type_input_rule(rf"^(#{{1,{level}}})\s$", heading, {"level": level}) for level in self.levels
        ]

    def commands(self, schema: "SchemaRegistry") -> Mapping[str, Any]:
        heading = schema.node_type(self.name)
        paragraph = schema.node_type(DEFAULT_BLOCK_TYPE)
        return {
            "heading": lambda level: toggle_block_type(heading, paragraph, {"level": level}),
            "toggle_fold": lambda pos: toggle_fold(pos, self.name),
        }

    def plugins(self, schema: "SchemaRegistry") -> list[Plugin]:
        return [heading_anchors_plugin(self.options), folding_plugin(), self._actions_plugin()]

    def _actions_plugin(self) -> Plugin:
        anchor_class_name = self.options.anchor_class_name
        message = self.options.link_copied_message

        def on_mousedown(view: "EditorView", event: "Event") -> bool:
            target = event.target
            if not isinstance(target, Element) or target.tag != "button":
                return False
            classes = target.class_list
            if ANCHOR_BUTTON_CLASS in classes:
                event.prevent_default()
                copy_link(view, target, anchor_class_name, message)
                return True
            if FOLD_BUTTON_CLASS in classes:
                event.prevent_default()
                resolved = view.state.doc.resolve(view.pos_at_dom(target))
                found = resolved.ancestor_of_type(self.name)
                if found is None:
                    return False
                _, depth = found
                return toggle_fold(resolved.before(depth), self.name)(view.state, view.dispatch, view)
            return False

        return Plugin(key=heading_actions_key, props={"handle_dom_events": {"mousedown": on_mousedown}})
