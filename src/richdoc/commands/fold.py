#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/fold.py
"""Folding and unfolding of collapsible blocks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from richdoc.model.selection import Selection

if TYPE_CHECKING:
    from richdoc.commands import Command, Dispatch
    from richdoc.model.state import EditorState

logger = logging.getLogger(__name__)


def toggle_fold(pos: int, type_name: str = "heading") -> "Command":
    """Build a command flipping the ``collapsed`` attribute of the block at ``pos``.

    When collapsing while the selection ends past the end of the block's
    content, the selection is first moved to the nearest valid position at
    that end, in the same transaction, so it never ends up inside hidden
    content. Otherwise the selection is left as it is.

    Parameters
    ----------
    pos : int
        Position directly before the block
    type_name : str, default "heading"
        Type the block must have

    """

    def command(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
        node = state.doc.node_at(pos)
        if node is None or node.type.name != type_name or "collapsed" not in node.type.attrs:
            return False

        collapsed = not node.attrs.get("collapsed")
        content_end = pos + node.node_size - 1
        tr = state.tr
        if collapsed and state.selection.to > content_end:
            tr.set_selection(Selection.near(tr.doc.resolve(content_end), -1))
        tr.set_node_markup(pos, None, {**node.attrs, "collapsed": collapsed}, expected_type=type_name)
        if tr.rejected is not None:
            logger.warning(f"Cannot toggle fold at {pos}: {tr.rejected.reason}")
            return False
        logger.debug(f"{'Collapsing' if collapsed else 'Expanding'} '{type_name}' at {pos}")
        if dispatch is not None:
            dispatch(tr)
        return True

    return command
