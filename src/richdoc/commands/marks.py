#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/marks.py
"""Mark toggling."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from richdoc.commands import Command, Dispatch
    from richdoc.model.schema import MarkType
    from richdoc.model.state import EditorState

logger = logging.getLogger(__name__)


def _range_has_mark(state: "EditorState", from_: int, to: int, mark_type: "MarkType") -> bool:
    for node, _ in state.doc.nodes_between(from_, to):
        if node.is_inline and any(mark.type is mark_type for mark in node.marks):
            return True
    return False


def toggle_mark(mark_type: "str | MarkType", attrs: Mapping[str, Any] | None = None) -> "Command":
    """Build a command adding or removing a mark over the selected text.

    If any inline content in the selection carries the mark it is removed
    from the whole range; otherwise it is added. Empty selections are not
    handled (there are no stored marks).
    """

    def command(state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None) -> bool:
        selection = state.selection
        if selection.empty:
            return False
        resolved_type = state.schema.mark_type(mark_type)
        tr = state.tr
        if _range_has_mark(state, selection.from_, selection.to, resolved_type):
            tr.remove_mark(selection.from_, selection.to, resolved_type)
        else:
            tr.add_mark(selection.from_, selection.to, state.schema.mark(resolved_type, attrs))
        if tr.rejected is not None or not tr.doc_changed:
            logger.debug(f"Mark '{resolved_type.name}' cannot be toggled on the selection")
            return False
        if dispatch is not None:
            dispatch(tr.scroll_into_view())
        return True

    return command
