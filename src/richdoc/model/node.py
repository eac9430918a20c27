#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/node.py
"""Immutable document nodes and marks.

Nodes never point back at their parents. Locations inside a document are
plain integer positions into the flattened token stream of the tree:

- entering or leaving a node that has content counts as one token each
- every character of a text node counts as one token
- a leaf node (no content allowed) counts as a single token

So in ``doc(paragraph("Hi"))`` position 0 is before the paragraph, 1 is
the start of its content, 3 is the end of its content and 4 is after the
paragraph. :meth:`Node.resolve` turns a position into the ancestor path.

Every edit builds new nodes; :class:`Node` instances are frozen.

"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

from richdoc.exceptions import PositionError

if TYPE_CHECKING:
    from richdoc.model.resolvedpos import ResolvedPos
    from richdoc.model.schema import MarkType, NodeType

_EMPTY_ATTRS: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class Mark:
    """An inline mark (formatting) applied to a node.

    Parameters
    ----------
    type : MarkType
        The mark's type
    attrs : Mapping[str, Any]
        Validated attributes (e.g. ``href`` for links)

    """

    type: "MarkType"
    attrs: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_ATTRS)

    def __repr__(self) -> str:
        if self.attrs:
            return f"Mark({self.type.name}, {dict(self.attrs)!r})"
        return f"Mark({self.type.name})"

    def is_in_set(self, marks: Iterable[Mark]) -> bool:
        """Return True when an equal mark is part of ``marks``."""
        return any(self == other for other in marks)

    def to_json(self) -> dict[str, Any]:
        """Serialize the mark to a JSON-compatible dict."""
        data: dict[str, Any] = {"type": self.type.name}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        return data


def sort_marks(marks: Iterable[Mark]) -> tuple[Mark, ...]:
    """Return marks sorted by rank with at most one mark per type (last one wins)."""
    by_type: dict[str, Mark] = {}
    for mark in marks:
        by_type[mark.type.name] = mark
    return tuple(sorted(by_type.values(), key=lambda m: m.type.rank))


def add_mark(marks: Iterable[Mark], mark: Mark) -> tuple[Mark, ...]:
    """Return ``marks`` with ``mark`` added (replacing a mark of the same type)."""
    return sort_marks([*marks, mark])


def remove_mark(marks: Iterable[Mark], mark_type: "MarkType") -> tuple[Mark, ...]:
    """Return ``marks`` without any mark of ``mark_type``."""
    return tuple(m for m in marks if m.type is not mark_type)


def has_mark(marks: Iterable[Mark], mark_type: "MarkType") -> bool:
    """Return True when a mark of ``mark_type`` is in ``marks``."""
    return any(m.type is mark_type for m in marks)


@dataclass(frozen=True)
class Node:
    """An immutable node in a document tree.

    Parameters
    ----------
    type : NodeType
        The node's type
    attrs : Mapping[str, Any]
        Validated attributes
    content : tuple of Node
        Ordered children (empty for text and leaf nodes)
    marks : tuple of Mark
        Marks applied to this node (inline nodes only)
    text : str or None
        Text of a text node, None for every other node

    Notes
    -----
    Create nodes through :class:`~richdoc.model.schema.SchemaRegistry`
    (``schema.node(...)`` / ``schema.text(...)``) so attributes and content
    are validated.

    """

    type: "NodeType"
    attrs: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_ATTRS)
    content: tuple[Node, ...] = ()
    marks: tuple[Mark, ...] = ()
    text: str | None = None

    def __repr__(self) -> str:
        if self.is_text:
            return f"{self.type.name}({self.text!r})"
        inner = ", ".join(repr(child) for child in self.content)
        attrs = f" {dict(self.attrs)!r}" if self.attrs else ""
        return f"{self.type.name}{attrs}({inner})"

    # ------------------------------------------------------------------
    # Type shortcuts
    # ------------------------------------------------------------------

    @property
    def is_text(self) -> bool:
        return self.type.is_text

    @property
    def is_inline(self) -> bool:
        return self.type.inline

    @property
    def is_block(self) -> bool:
        return self.type.is_block

    @property
    def is_textblock(self) -> bool:
        return self.type.is_textblock

    @property
    def is_leaf(self) -> bool:
        return self.type.is_leaf

    @property
    def is_atom(self) -> bool:
        return self.type.is_atom

    # ------------------------------------------------------------------
    # Size and children
    # ------------------------------------------------------------------

    @property
    def node_size(self) -> int:
        """Number of position tokens this node occupies in its parent."""
        if self.is_text:
            return len(self.text or "")
        if self.is_leaf:
            return 1
        return self.content_size + 2

    @property
    def content_size(self) -> int:
        """Number of position tokens occupied by the children."""
        if self.is_text:
            return len(self.text or "")
        return sum(child.node_size for child in self.content)

    @property
    def child_count(self) -> int:
        return len(self.content)

    def child(self, index: int) -> Node:
        return self.content[index]

    @property
    def first_child(self) -> Node | None:
        return self.content[0] if self.content else None

    @property
    def last_child(self) -> Node | None:
        return self.content[-1] if self.content else None

    @property
    def text_content(self) -> str:
        """Concatenated text of all descendant text nodes."""
        if self.is_text:
            return self.text or ""
        return "".join(child.text_content for child in self.content)

    def find_index(self, offset: int) -> tuple[int, int]:
        """Locate the child at ``offset`` within this node's content.

        Returns
        -------
        tuple of (int, int)
            Index of the child that contains or starts at ``offset`` and the
            offset where that child starts. At the very end of the content
            the index equals ``child_count``.

        """
        if offset == 0:
            return 0, 0
        if offset == self.content_size:
            return len(self.content), offset
        if offset > self.content_size or offset < 0:
            raise PositionError(offset, self.content_size)
        cursor = 0
        for index, child in enumerate(self.content):
            end = cursor + child.node_size
            if end == offset:
                return index + 1, end
            if end > offset:
                return index, cursor
            cursor = end
        raise PositionError(offset, self.content_size)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def descendants(self) -> Iterator[tuple[Node, int]]:
        """Yield ``(node, pos)`` for every descendant, depth-first in document order.

        Positions are relative to the start of this node's content, which for
        a document equals the absolute position.
        """
        yield from self._descendants(0)

    def _descendants(self, start: int) -> Iterator[tuple[Node, int]]:
        pos = start
        for child in self.content:
            yield child, pos
            if child.content:
                yield from child._descendants(pos + 1)
            pos += child.node_size

    def nodes_between(self, from_: int, to: int) -> Iterator[tuple[Node, int]]:
        """Yield ``(node, pos)`` for every descendant overlapping ``[from_, to]``."""
        for node, pos in self.descendants():
            end = pos + node.node_size
            if end > from_ and pos < to:
                yield node, pos
            elif from_ == to and pos <= from_ <= end and not node.is_text:
                yield node, pos

    def node_at(self, pos: int) -> Node | None:
        """Return the node starting directly after ``pos``, or None."""
        node: Node = self
        while True:
            if pos < 0 or pos > node.content_size:
                return None
            index, offset = node.find_index(pos)
            if index >= node.child_count:
                return None
            child = node.child(index)
            if offset == pos or child.is_text:
                return child
            node = child
            pos = pos - offset - 1

    def resolve(self, pos: int) -> "ResolvedPos":
        """Resolve ``pos`` into its ancestor path; see :class:`ResolvedPos`."""
        from richdoc.model.resolvedpos import ResolvedPos

        return ResolvedPos.resolve(self, pos)

    # ------------------------------------------------------------------
    # Derivation (always returns new nodes)
    # ------------------------------------------------------------------

    def copy(self, content: Iterable[Node]) -> Node:
        """Return a node with the same markup and new children."""
        return replace(self, content=tuple(content))

    def with_attrs(self, attrs: Mapping[str, Any]) -> Node:
        return replace(self, attrs=MappingProxyType(dict(attrs)))

    def with_marks(self, marks: Iterable[Mark]) -> Node:
        return replace(self, marks=sort_marks(marks))

    def with_text(self, text: str) -> Node:
        return replace(self, text=text)

    def replace_child(self, index: int, node: Node) -> Node:
        children = list(self.content)
        children[index] = node
        return self.copy(children)

    def cut_text(self, start: int, end: int | None = None) -> Node:
        """Return a text node holding ``text[start:end]``."""
        return replace(self, text=(self.text or "")[start:end])

    def same_markup(self, other: Node) -> bool:
        """Return True when type, attributes and marks are equal."""
        return self.type is other.type and dict(self.attrs) == dict(other.attrs) and self.marks == other.marks

    def split_content(self, offset: int) -> tuple[tuple[Node, ...], tuple[Node, ...]]:
        """Split the children at ``offset``, cutting a text child in two if needed."""
        index, child_start = self.find_index(offset)
        left = list(self.content[:index])
        right = list(self.content[index:])
        if child_start != offset and index < self.child_count:
            child = self.content[index]
            inner = offset - child_start
            if not child.is_text:
                raise PositionError(offset, self.content_size, f"Cannot split inside non-text child at {offset}")
            left.append(child.cut_text(0, inner))
            right[0] = child.cut_text(inner)
        return tuple(left), tuple(right)

    def check(self) -> None:
        """Recursively validate content against every node type's content expression.

        Raises
        ------
        ContentMatchError
            If any node has children its type does not accept
        """
        from richdoc.model.schema import check_children

        if self.is_text:
            return
        check_children(self.type, self.content)
        for child in self.content:
            child.check()

    def to_json(self) -> dict[str, Any]:
        """Serialize the node to a JSON-compatible dict."""
        data: dict[str, Any] = {"type": self.type.name}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        if self.is_text:
            data["text"] = self.text
        elif self.content:
            data["content"] = [child.to_json() for child in self.content]
        if self.marks:
            data["marks"] = [mark.to_json() for mark in self.marks]
        return data


def normalize_inline(children: Iterable[Node]) -> tuple[Node, ...]:
    """Merge adjacent text nodes with equal marks and drop empty text nodes."""
    result: list[Node] = []
    for child in children:
        if child.is_text:
            if not child.text:
                continue
            if result and result[-1].is_text and result[-1].marks == child.marks:
                result[-1] = result[-1].with_text((result[-1].text or "") + child.text)
                continue
        result.append(child)
    return tuple(result)
