#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/block_type.py
"""Commands that change the type of the selected textblocks.

Both commands work on every textblock touched by the selection and build
one transaction with one markup step per block, so a conversion either
applies to all of them or to none.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from richdoc.model.selection import NodeSelection

if TYPE_CHECKING:
    from richdoc.commands import Command, Dispatch
    from richdoc.model.node import Node
    from richdoc.model.schema import NodeType, TypeRef
    from richdoc.model.state import EditorState

logger = logging.getLogger(__name__)


def selected_textblocks(state: "EditorState") -> list[tuple["Node", int]]:
    """Return ``(node, pos)`` for every textblock the selection touches, in document order."""
    selection = state.selection
    if isinstance(selection, NodeSelection) and selection.node.is_textblock:
        return [(selection.node, selection.from_)]
    return [(node, pos) for node, pos in state.doc.nodes_between(selection.from_, selection.to) if node.is_textblock]


def _attrs_match(node: "Node", attrs: Mapping[str, Any] | None) -> bool:
    return not attrs or all(node.attrs.get(key) == value for key, value in attrs.items())


def _target_attrs(target: "NodeType", node: "Node", attrs: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if node.type is target:
        return {**node.attrs, **(attrs or {})}
    return dict(attrs) if attrs else None


def set_block_type(node_type: "TypeRef", attrs: Mapping[str, Any] | None = None) -> "Command":
    """Build a command converting the selected textblocks to ``node_type``.

    Blocks that already have the type and attributes are left alone. The
    command does not apply when nothing would change or when any block
    cannot take the new type (its content is not allowed there).
    """

    def command(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
        target = state.schema.node_type(node_type)
        blocks = [
            (node, pos)
            for node, pos in selected_textblocks(state)
            if not (node.type is target and _attrs_match(node, attrs))
        ]
        if not blocks:
            return False

        tr = state.tr
        for node, pos in blocks:
            tr.set_node_markup(pos, target, _target_attrs(target, node, attrs), expected_type=node.type.name)
        if tr.rejected is not None:
            logger.warning(f"Cannot convert selection to '{target.name}': {tr.rejected.reason}")
            return False
        if not tr.doc_changed:
            return False
        if dispatch is not None:
            dispatch(tr.scroll_into_view())
        return True

    return command


def toggle_block_type(
    node_type: "TypeRef", fallback_type: "TypeRef", attrs: Mapping[str, Any] | None = None
) -> "Command":
    """Build a command toggling the selected textblocks between two types.

    When every selected block already is ``node_type`` with ``attrs``, they
    become ``fallback_type``; otherwise they become ``node_type`` with
    ``attrs``. A selection covering blocks of more than one type is refused
    (the command returns False and logs a warning) so a toggle never leaves
    the selection half converted.

    Examples
    --------
        >>> toggle_heading = toggle_block_type("heading", "paragraph", {"level": 2})
        >>> toggle_heading(state, view.dispatch)
        True

    """

    def command(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
        blocks = selected_textblocks(state)
        if not blocks:
            return False
        type_names = sorted({node.type.name for node, _ in blocks})
        if len(type_names) > 1:
            logger.warning(f"Block type toggle refused: selection spans several block types ({', '.join(type_names)})")
            return False

        target = state.schema.node_type(node_type)
        active = all(node.type is target and _attrs_match(node, attrs) for node, _ in blocks)
        if active:
            return set_block_type(fallback_type)(state, dispatch, view)
        return set_block_type(target, attrs)(state, dispatch, view)

    return command
