#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/selection.py
"""Selections over a document.

A selection is an ``(anchor, head)`` pair of positions that always resolves
in the document it belongs to. Two kinds exist:

- :class:`TextSelection` - a cursor or text range; both ends lie in
  textblocks
- :class:`NodeSelection` - a single selectable node, from the position
  before it to the position after it

Selections are immutable; mapping one through a transaction's position
mapping yields a new selection valid in the transaction's document.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping

from richdoc.exceptions import PositionError, TransformError
from richdoc.model.resolvedpos import ResolvedPos

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.model.steps import StepMapping

logger = logging.getLogger(__name__)


class Selection(ABC):
    """Base class for selections.

    Parameters
    ----------
    anchor : ResolvedPos
        The fixed side of the selection
    head : ResolvedPos
        The moving side of the selection

    """

    kind = "base"

    def __init__(self, anchor: ResolvedPos, head: ResolvedPos) -> None:
        self.resolved_anchor = anchor
        self.resolved_head = head

    @property
    def anchor(self) -> int:
        return self.resolved_anchor.pos

    @property
    def head(self) -> int:
        return self.resolved_head.pos

    @property
    def from_(self) -> int:
        return min(self.anchor, self.head)

    @property
    def to(self) -> int:
        return max(self.anchor, self.head)

    @property
    def resolved_from(self) -> ResolvedPos:
        return self.resolved_anchor if self.anchor <= self.head else self.resolved_head

    @property
    def resolved_to(self) -> ResolvedPos:
        return self.resolved_head if self.anchor <= self.head else self.resolved_anchor

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    @property
    def doc(self) -> "Node":
        return self.resolved_anchor.doc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Selection):
            return NotImplemented
        return self.kind == other.kind and self.anchor == other.anchor and self.head == other.head

    def __hash__(self) -> int:
        return hash((self.kind, self.anchor, self.head))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.anchor}, {self.head})"

    @abstractmethod
    def map(self, doc: "Node", mapping: "StepMapping") -> Selection:
        """Map the selection through ``mapping`` into ``doc``."""

    def to_json(self) -> dict[str, Any]:
        return {"type": self.kind, "anchor": self.anchor, "head": self.head}

    @staticmethod
    def from_json(doc: "Node", data: Mapping[str, Any]) -> Selection:
        """Rebuild a selection from :meth:`to_json` output."""
        kind = data.get("type", "text")
        if kind == "node":
            return NodeSelection.create(doc, int(data["anchor"]))
        if kind == "text":
            return TextSelection.create(doc, int(data["anchor"]), int(data["head"]))
        raise TransformError(f"Unknown selection type: {kind!r}")

    @staticmethod
    def near(resolved: ResolvedPos, bias: int = 1) -> Selection:
        """Find the valid selection nearest to ``resolved``.

        Positions inside a textblock give a cursor there. Otherwise the
        document is searched in the direction of ``bias`` (negative searches
        backwards) for the closest textblock boundary, falling back to the
        other direction, and finally to the first selectable node.

        Raises
        ------
        PositionError
            If the document has no textblock and no selectable node
        """
        if resolved.parent.type.inline_content:
            return TextSelection(resolved, resolved)

        doc = resolved.doc
        pos = resolved.pos
        backward: int | None = None
        forward: int | None = None
        for node, node_pos in doc.descendants():
            if not node.is_textblock:
                continue
            start = node_pos + 1
            end = start + node.content_size
            if end <= pos:
                backward = end
            elif start >= pos and forward is None:
                forward = start

        first, second = (backward, forward) if bias < 0 else (forward, backward)
        target = first if first is not None else second
        if target is not None:
            return TextSelection.create(doc, target)

        for node, node_pos in doc.descendants():
            if node.type.selectable and not node.is_text:
                return NodeSelection.create(doc, node_pos)
        raise PositionError(pos, doc.content_size, "Document contains no valid selection position")

    @staticmethod
    def at_start(doc: "Node") -> Selection:
        return Selection.near(doc.resolve(0), 1)

    @staticmethod
    def at_end(doc: "Node") -> Selection:
        return Selection.near(doc.resolve(doc.content_size), -1)


class TextSelection(Selection):
    """A cursor or text range."""

    kind = "text"

    @classmethod
    def create(cls, doc: "Node", anchor: int, head: int | None = None) -> TextSelection:
        """Create a text selection, resolving both ends in ``doc``.

        Raises
        ------
        PositionError
            If a position is outside the document
        """
        resolved_anchor = doc.resolve(anchor)
        resolved_head = resolved_anchor if head is None or head == anchor else doc.resolve(head)
        return cls(resolved_anchor, resolved_head)

    @property
    def cursor(self) -> ResolvedPos | None:
        """The cursor position when the selection is empty, else None."""
        return self.resolved_head if self.empty else None

    def map(self, doc: "Node", mapping: "StepMapping") -> Selection:
        head = doc.resolve(mapping.map(self.head))
        if not head.parent.type.inline_content:
            return Selection.near(head)
        anchor = doc.resolve(mapping.map(self.anchor))
        if not anchor.parent.type.inline_content:
            anchor = head
        return TextSelection(anchor, head)


class NodeSelection(Selection):
    """Selection of a single node.

    The anchor points directly before the node and the head directly after.
    """

    kind = "node"

    def __init__(self, resolved: ResolvedPos) -> None:
        node = resolved.node_after
        if node is None:
            raise PositionError(resolved.pos, resolved.doc.content_size, f"No node after position {resolved.pos}")
        head = resolved.doc.resolve(resolved.pos + node.node_size)
        super().__init__(resolved, head)
        self.node = node

    @classmethod
    def create(cls, doc: "Node", pos: int) -> NodeSelection:
        return cls(doc.resolve(pos))

    @staticmethod
    def is_selectable(node: "Node") -> bool:
        """Whether ``node`` can be the target of a node selection."""
        return not node.is_text and node.type.selectable

    def map(self, doc: "Node", mapping: "StepMapping") -> Selection:
        result = mapping.map_result(self.anchor, 1)
        resolved = doc.resolve(result.pos)
        if result.deleted or resolved.node_after is None:
            return Selection.near(resolved)
        return NodeSelection(resolved)

    def to_json(self) -> dict[str, Any]:
        return {"type": self.kind, "anchor": self.anchor, "head": self.anchor}
