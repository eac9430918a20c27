#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/split.py
"""Enter and Backspace behaviour for textblocks and headings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from richdoc.model.selection import Selection, TextSelection
from richdoc.plugins.folding import folded_ranges

if TYPE_CHECKING:
    from richdoc.commands import Command, Dispatch
    from richdoc.model.node import Node
    from richdoc.model.schema import NodeType
    from richdoc.model.state import EditorState

logger = logging.getLogger(__name__)


def _plain_attrs(node: "Node") -> dict[str, Any]:
    """Attributes of ``node`` with presentational ones left at their defaults."""
    return {name: value for name, value in node.attrs.items() if not node.type.attrs[name].presentational}


def split_block(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
    """Split the textblock at the cursor in two, deleting any selected text first.

    Splitting at the very end of a block starts a default block (a
    paragraph); anywhere else the second half keeps the block's type. In
    code blocks a newline is inserted instead.
    """
    selection = state.selection
    if not isinstance(selection, TextSelection):
        return False
    start = selection.resolved_from
    if not start.parent.is_textblock or not start.same_parent(selection.resolved_to):
        return False

    tr = state.tr
    if start.parent.type.code:
        if dispatch is not None:
            dispatch(tr.insert_text("\n").scroll_into_view())
        return True

    if not selection.empty:
        tr.delete(selection.from_, selection.to)
    resolved = tr.doc.resolve(selection.from_)
    parent = resolved.parent
    offset = resolved.pos - resolved.start()
    left, right = parent.split_content(offset)

    schema = state.schema
    if offset == parent.content_size:
        second = schema.node(schema.default_block_type, None, right)
    else:
        second = schema.node(parent.type, _plain_attrs(parent), right)
    first = parent.copy(left)

    before = resolved.before()
    tr.replace(before, resolved.after(), (first, second))
    if tr.rejected is not None:
        logger.debug(f"Cannot split '{parent.type.name}': {tr.rejected.reason}")
        return False
    tr.set_selection(TextSelection.create(tr.doc, before + first.node_size + 1))
    if dispatch is not None:
        dispatch(tr.scroll_into_view())
    return True


def split_heading(node_type: "NodeType | str" = "heading") -> "Command":
    """Build the Enter handler for the end of a collapsed heading.

    A new, expanded heading of the same level is inserted after the folded
    section, in front of the next visible block, and the cursor moves into
    it. In every other situation the command does not apply, leaving Enter
    to :func:`split_block`.
    """

    def command(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
        heading_type = state.schema.node_type(node_type)
        selection = state.selection
        if not isinstance(selection, TextSelection) or not selection.empty:
            return False
        resolved = selection.resolved_head
        heading = resolved.parent
        if heading.type is not heading_type or resolved.pos != resolved.end():
            return False
        if not heading.attrs.get("collapsed"):
            return False

        heading_pos = resolved.before()
        container_depth = resolved.depth - 1
        hidden = [
            block_end
            for fold_pos, _, block_end in folded_ranges(
                resolved.node(container_depth), resolved.start(container_depth), heading_type.name
            )
            if fold_pos == heading_pos
        ]
        insert_pos = hidden[-1] if hidden else resolved.after()

        new_heading = state.schema.node(heading_type, {**heading.attrs, "collapsed": False})
        tr = state.tr.insert(insert_pos, (new_heading,))
        if tr.rejected is not None:
            logger.debug(f"Cannot insert heading after folded section: {tr.rejected.reason}")
            return False
        tr.set_selection(Selection.near(tr.doc.resolve(insert_pos + 1)))
        if dispatch is not None:
            dispatch(tr.scroll_into_view())
        return True

    return command


def backspace_to_paragraph(node_type: "NodeType | str" = "heading") -> "Command":
    """Build the Backspace handler turning a heading back into a paragraph.

    Applies only to an empty selection at the very start of the heading's
    content.
    """

    def command(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
        heading_type = state.schema.node_type(node_type)
        selection = state.selection
        if not selection.empty:
            return False
        resolved = selection.resolved_head
        if resolved.parent.type is not heading_type or resolved.pos != resolved.start():
            return False

        tr = state.tr.set_node_markup(
            resolved.before(), state.schema.default_block_type, None, expected_type=heading_type.name
        )
        if tr.rejected is not None:
            return False
        if dispatch is not None:
            dispatch(tr)
        return True

    return command
