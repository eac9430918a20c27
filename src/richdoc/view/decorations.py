#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/view/decorations.py
"""View-only decorations.

Decorations annotate positions of a document without being part of it.
They are derived data: plugins recompute them from the document and never
patch them step by step. Three kinds exist:

widget
    A zero-width element inserted at a position (e.g. a heading anchor)
inline
    Attributes applied to the inline content of a range
node
    Attributes applied to the element of the node spanning a range exactly

Each decoration carries a ``key``. Two decorations are equal when their kind,
positions, key, side and attributes are equal, which lets the view skip
re-rendering decorations that survived a recomputation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Literal, Mapping

from richdoc.exceptions import PositionError

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.view.dom import Element

DecorationKind = Literal["widget", "inline", "node"]


@dataclass(frozen=True)
class Decoration:
    """A single decoration.

    Use the :meth:`widget`, :meth:`inline` and :meth:`node` constructors.

    Parameters
    ----------
    from_ : int
        Start position
    to : int
        End position (equal to ``from_`` for widgets)
    kind : {"widget", "inline", "node"}
        Decoration kind
    key : str, optional
        Stable identifier used to diff recomputed sets
    attrs : Mapping[str, Any]
        Element attributes (``class``, ``id``, ...)
    side : int
        For widgets, negative draws the widget before content inserted at
        the same position
    to_dom : callable, optional
        For widgets, ``to_dom(decoration) -> Element``; excluded from equality

    """

    from_: int
    to: int
    kind: DecorationKind
    key: str | None = None
    attrs: Mapping[str, Any] = field(default_factory=dict)
    side: int = 0
    to_dom: Callable[["Decoration"], "Element"] | None = field(default=None, compare=False, repr=False)

    def __hash__(self) -> int:
        return hash((self.from_, self.to, self.kind, self.key, tuple(sorted(self.attrs.items())), self.side))

    @classmethod
    def widget(
        cls,
        pos: int,
        to_dom: Callable[["Decoration"], "Element"],
        *,
        key: str | None = None,
        side: int = 0,
        attrs: Mapping[str, Any] | None = None,
    ) -> Decoration:
        return cls(pos, pos, "widget", key, dict(attrs or {}), side, to_dom)

    @classmethod
    def inline(cls, from_: int, to: int, attrs: Mapping[str, Any], *, key: str | None = None) -> Decoration:
        return cls(from_, to, "inline", key, dict(attrs))

    @classmethod
    def node(cls, from_: int, to: int, attrs: Mapping[str, Any], *, key: str | None = None) -> Decoration:
        return cls(from_, to, "node", key, dict(attrs))

    def render(self) -> "Element":
        """Create the widget element (widgets only)."""
        if self.kind != "widget" or self.to_dom is None:
            raise ValueError(f"Decoration {self.key or self.kind!r} has no widget to render")
        return self.to_dom(self)

    @property
    def sort_key(self) -> tuple[int, int, int, int]:
        order = {"widget": 0, "node": 1, "inline": 2}[self.kind]
        return self.from_, self.side, order, self.to


class DecorationSet:
    """An immutable, sorted collection of decorations.

    Sets are shared by reference between states until a plugin computes a
    new one, so ``old is new`` is the cheap "nothing changed" test and
    ``old == new`` compares contents.
    """

    __slots__ = ("_decorations",)

    def __init__(self, decorations: Iterable[Decoration] = ()) -> None:
        self._decorations: tuple[Decoration, ...] = tuple(sorted(decorations, key=lambda d: d.sort_key))

    @classmethod
    def create(cls, doc: "Node", decorations: Iterable[Decoration]) -> DecorationSet:
        """Create a set, validating every decoration against ``doc``.

        Raises
        ------
        PositionError
            If a decoration lies outside the document
        """
        items = list(decorations)
        size = doc.content_size
        for decoration in items:
            if not 0 <= decoration.from_ <= decoration.to <= size:
                bad = decoration.from_ if not 0 <= decoration.from_ <= size else decoration.to
                raise PositionError(bad, size, f"Decoration {decoration!r} lies outside the document (size {size})")
        return cls(items)

    def __iter__(self) -> Iterator[Decoration]:
        return iter(self._decorations)

    def __len__(self) -> int:
        return len(self._decorations)

    def __bool__(self) -> bool:
        return bool(self._decorations)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecorationSet):
            return NotImplemented
        return self._decorations == other._decorations

    def __hash__(self) -> int:
        return hash(self._decorations)

    def __repr__(self) -> str:
        return f"DecorationSet({list(self._decorations)!r})"

    def find(
        self, start: int | None = None, end: int | None = None, predicate: Callable[[Decoration], bool] | None = None
    ) -> list[Decoration]:
        """Return decorations touching ``[start, end]`` that satisfy ``predicate``."""
        result = []
        for decoration in self._decorations:
            if start is not None and decoration.to < start:
                continue
            if end is not None and decoration.from_ > end:
                continue
            if predicate is None or predicate(decoration):
                result.append(decoration)
        return result

    def by_key(self, key: str) -> Decoration | None:
        for decoration in self._decorations:
            if decoration.key == key:
                return decoration
        return None

    def keys(self) -> list[str | None]:
        return [decoration.key for decoration in self._decorations]

    def add(self, doc: "Node", decorations: Iterable[Decoration]) -> DecorationSet:
        return DecorationSet.create(doc, [*self._decorations, *decorations])

    def remove(self, decorations: Iterable[Decoration]) -> DecorationSet:
        dropped = set(decorations)
        return DecorationSet(d for d in self._decorations if d not in dropped)


EMPTY = DecorationSet()


def merge(sets: Iterable[DecorationSet | None]) -> DecorationSet:
    """Combine the decoration sets of several plugins into one."""
    parts = [s for s in sets if s]
    if not parts:
        return EMPTY
    if len(parts) == 1:
        return parts[0]
    return DecorationSet(d for part in parts for d in part)
