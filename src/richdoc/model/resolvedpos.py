#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/resolvedpos.py
"""Resolved document positions.

A :class:`ResolvedPos` answers "where is this integer position" queries
without parent pointers: it records, for every depth from the document root
down to the innermost node containing the position, the ancestor node, the
index of the child the position points into and the absolute position where
that child starts.

Depth 0 is the document itself. For a cursor inside the text of a paragraph
at the top level of the document, ``depth`` is 1 and ``parent`` is the
paragraph.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from richdoc.exceptions import PositionError

if TYPE_CHECKING:
    from richdoc.model.node import Mark, Node


@dataclass(frozen=True)
class PathEntry:
    """One level of a resolved path."""

    node: "Node"
    index: int
    offset: int


class ResolvedPos:
    """A position together with the ancestor path it lies in.

    Parameters
    ----------
    pos : int
        The absolute position
    path : list of PathEntry
        One entry per depth, document first
    parent_offset : int
        Offset of the position within the innermost parent's content

    """

    __slots__ = ("pos", "path", "parent_offset")

    def __init__(self, pos: int, path: list[PathEntry], parent_offset: int) -> None:
        self.pos = pos
        self.path = path
        self.parent_offset = parent_offset

    @classmethod
    def resolve(cls, doc: "Node", pos: int) -> ResolvedPos:
        """Resolve ``pos`` in ``doc``.

        Raises
        ------
        PositionError
            If ``pos`` is outside ``[0, doc.content_size]``

        """
        if pos < 0 or pos > doc.content_size:
            raise PositionError(pos, doc.content_size)

        path: list[PathEntry] = []
        start = 0
        parent_offset = pos
        node = doc
        while True:
            index, offset = node.find_index(parent_offset)
            remainder = parent_offset - offset
            path.append(PathEntry(node, index, start + offset))
            if not remainder:
                break
            node = node.child(index)
            if node.is_text:
                break
            parent_offset = remainder - 1
            start += offset + 1
        return cls(pos, path, parent_offset)

    def __repr__(self) -> str:
        names = "/".join(entry.node.type.name for entry in self.path)
        return f"<ResolvedPos {self.pos} {names}:{self.parent_offset}>"

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    @property
    def doc(self) -> "Node":
        return self.path[0].node

    @property
    def parent(self) -> "Node":
        """The innermost node containing the position."""
        return self.path[-1].node

    def _depth(self, depth: int | None) -> int:
        if depth is None:
            return self.depth
        return depth if depth >= 0 else self.depth + depth

    def node(self, depth: int | None = None) -> "Node":
        """The ancestor node at ``depth`` (negative values count up from the parent)."""
        return self.path[self._depth(depth)].node

    def index(self, depth: int | None = None) -> int:
        """Index of the child at ``depth`` that the position points into."""
        return self.path[self._depth(depth)].index

    def index_after(self, depth: int | None = None) -> int:
        """Index pointing after the position at ``depth``."""
        depth = self._depth(depth)
        return self.index(depth) + (0 if depth == self.depth and not self.text_offset else 1)

    def start(self, depth: int | None = None) -> int:
        """Absolute position where the content of the ancestor at ``depth`` starts."""
        depth = self._depth(depth)
        return 0 if depth == 0 else self.path[depth - 1].offset + 1

    def end(self, depth: int | None = None) -> int:
        """Absolute position where the content of the ancestor at ``depth`` ends."""
        depth = self._depth(depth)
        return self.start(depth) + self.node(depth).content_size

    def before(self, depth: int | None = None) -> int:
        """Absolute position directly before the ancestor at ``depth`` (depth >= 1)."""
        depth = self._depth(depth)
        if not depth:
            raise PositionError(self.pos, self.doc.content_size, "There is no position before the top-level node")
        return self.path[depth - 1].offset

    def after(self, depth: int | None = None) -> int:
        """Absolute position directly after the ancestor at ``depth`` (depth >= 1)."""
        depth = self._depth(depth)
        if not depth:
            raise PositionError(self.pos, self.doc.content_size, "There is no position after the top-level node")
        return self.path[depth - 1].offset + self.node(depth).node_size

    @property
    def text_offset(self) -> int:
        """Offset into the text node the position points into (0 between nodes)."""
        return self.pos - self.path[-1].offset

    @property
    def node_after(self) -> "Node | None":
        """The node directly after the position (a cut text node when inside text)."""
        parent = self.parent
        index = self.index()
        if index == parent.child_count:
            return None
        child = parent.child(index)
        offset = self.text_offset
        return child.cut_text(offset) if offset else child

    @property
    def node_before(self) -> "Node | None":
        """The node directly before the position (a cut text node when inside text)."""
        index = self.index()
        offset = self.text_offset
        if offset:
            return self.parent.child(index).cut_text(0, offset)
        return self.parent.child(index - 1) if index > 0 else None

    def marks(self) -> tuple["Mark", ...]:
        """Marks active at the position (taken from the text before it when possible)."""
        parent = self.parent
        if parent.content_size == 0:
            return ()
        if self.text_offset:
            return parent.child(self.index()).marks
        before = self.node_before
        after = self.node_after
        source = before if before is not None else after
        return source.marks if source is not None else ()

    def shared_depth(self, pos: int) -> int:
        """Depth up to which this position and ``pos`` share the same ancestors."""
        for depth in range(self.depth, 0, -1):
            if self.start(depth) <= pos <= self.end(depth):
                return depth
        return 0

    def same_parent(self, other: ResolvedPos) -> bool:
        return self.depth == other.depth and self.start() == other.start() and self.parent is other.parent

    def ancestor_of_type(self, type_name: str) -> tuple["Node", int] | None:
        """Return the innermost ancestor of ``type_name`` and its depth, or None."""
        for depth in range(self.depth, -1, -1):
            node = self.node(depth)
            if node.type.name == type_name:
                return node, depth
        return None
