#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/steps.py
"""Atomic document edits.

A step is a small, serializable description of one change. Applying a step
to a document never mutates it; the result is a :class:`StepResult` that is
either a new document, a failure (the enclosing transaction is rejected) or
a no-op (the step's target went stale, the document is returned unchanged).

Every step also exposes a :class:`StepMap` describing how positions move,
which transactions use to keep selections and node-view positions in sync.

Step types
----------
ReplaceStep
    Replace the content between two positions of the same parent
SetNodeMarkupStep
    Change the type and/or attributes of the node at a position
AddMarkStep / RemoveMarkStep
    Add or remove a mark on all inline content in a range
SelectionStep
    Record a selection change (validated against the current document)

"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Iterable, Literal, Mapping, Sequence

from richdoc.exceptions import PositionError, SchemaError, TransformError
from richdoc.model.node import Mark, Node, add_mark, normalize_inline, remove_mark
from richdoc.model.schema import check_children, compute_attrs

if TYPE_CHECKING:
    from richdoc.model.resolvedpos import ResolvedPos
    from richdoc.model.schema import MarkType, NodeType, SchemaRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Position mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MapResult:
    """A mapped position and whether the content around it was deleted."""

    pos: int
    deleted: bool = False


@dataclass(frozen=True)
class StepMap:
    """Position mapping for a single step.

    ``ranges`` holds ``(start, old_size, new_size)`` triples in ascending
    order: ``old_size`` tokens starting at ``start`` were replaced by
    ``new_size`` tokens.
    """

    ranges: tuple[tuple[int, int, int], ...] = ()

    def map_result(self, pos: int, assoc: int = 1) -> MapResult:
        """Map ``pos`` through the step.

        ``assoc`` decides which side a position sticks to when content is
        inserted exactly at it: negative keeps it before the insertion,
        positive moves it after.
        """
        diff = 0
        for start, old_size, new_size in self.ranges:
            if start > pos:
                break
            end = start + old_size
            if pos <= end:
                if not old_size:
                    side = assoc
                elif pos == start:
                    side = -1
                elif pos == end:
                    side = 1
                else:
                    side = assoc
                mapped = start + diff + (0 if side < 0 else new_size)
                deleted = pos != (start if assoc < 0 else end) if old_size else False
                return MapResult(mapped, deleted)
            diff += new_size - old_size
        return MapResult(pos + diff)

    def map(self, pos: int, assoc: int = 1) -> int:
        return self.map_result(pos, assoc).pos


IDENTITY_MAP = StepMap()


class StepMapping:
    """A sequence of step maps applied one after another."""

    def __init__(self, maps: Iterable[StepMap] = ()) -> None:
        self.maps: list[StepMap] = list(maps)

    def append(self, step_map: StepMap) -> None:
        self.maps.append(step_map)

    def slice(self, start: int = 0, end: int | None = None) -> StepMapping:
        return StepMapping(self.maps[start:end])

    def map_result(self, pos: int, assoc: int = 1) -> MapResult:
        deleted = False
        for step_map in self.maps:
            result = step_map.map_result(pos, assoc)
            pos = result.pos
            deleted = deleted or result.deleted
        return MapResult(pos, deleted)

    def map(self, pos: int, assoc: int = 1) -> int:
        return self.map_result(pos, assoc).pos

    def __len__(self) -> int:
        return len(self.maps)


# ---------------------------------------------------------------------------
# Step results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepResult:
    """Outcome of applying a step.

    Exactly one of the three situations holds: ``doc`` is set and ``failed``
    is None (success, possibly a no-op when ``noop`` is True), or ``failed``
    holds the reason the step could not be applied.
    """

    doc: Node | None
    failed: str | None = None
    noop: bool = False

    @classmethod
    def ok(cls, doc: Node) -> StepResult:
        return cls(doc)

    @classmethod
    def fail(cls, reason: str) -> StepResult:
        return cls(None, failed=reason)

    @classmethod
    def skip(cls, doc: Node, reason: str) -> StepResult:
        logger.debug(f"Step is a no-op: {reason}")
        return cls(doc, noop=True)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

_STEP_TYPES: dict[str, type[Step]] = {}


def register_step(step_type: str) -> Callable[[type[Step]], type[Step]]:
    """Class decorator registering a step class for :meth:`Step.from_json`."""

    def decorator(cls: type[Step]) -> type[Step]:
        if step_type in _STEP_TYPES:
            raise SchemaError(f"Step type '{step_type}' is already registered")
        cls.step_type = step_type
        _STEP_TYPES[step_type] = cls
        return cls

    return decorator


class Step(ABC):
    """Base class for document steps."""

    step_type: ClassVar[str] = ""

    @abstractmethod
    def apply(self, doc: Node) -> StepResult:
        """Apply the step to ``doc``."""

    def get_map(self) -> StepMap:
        """Position mapping of the step (identity unless overridden)."""
        return IDENTITY_MAP

    @abstractmethod
    def to_json(self) -> dict[str, Any]:
        """Serialize the step to a JSON-compatible dict."""

    @classmethod
    @abstractmethod
    def _from_json(cls, schema: "SchemaRegistry", data: Mapping[str, Any]) -> Step: ...

    @staticmethod
    def from_json(schema: "SchemaRegistry", data: Mapping[str, Any]) -> Step:
        """Rebuild a step from :meth:`to_json` output.

        Raises
        ------
        TransformError
            If the step type is unknown
        """
        step_type = data.get("stepType")
        if step_type not in _STEP_TYPES:
            raise TransformError(f"Unknown step type: {step_type!r}")
        return _STEP_TYPES[step_type]._from_json(schema, data)


def _rebuild(resolved: "ResolvedPos", depth: int, replacement: Node) -> Node:
    """Replace the ancestor at ``depth`` of ``resolved`` with ``replacement`` and rebuild up to the root."""
    node = replacement
    for level in range(depth - 1, -1, -1):
        node = resolved.node(level).replace_child(resolved.index(level), node)
    return node


@register_step("replace")
@dataclass(frozen=True)
class ReplaceStep(Step):
    """Replace the content between ``from_`` and ``to`` with ``content``.

    Both positions must lie in the same parent node. Text nodes at the
    boundaries are split as needed. The step fails when the resulting
    children violate the parent's content expression.
    """

    from_: int
    to: int
    content: tuple[Node, ...] = ()

    def apply(self, doc: Node) -> StepResult:
        if self.from_ > self.to:
            return StepResult.fail(f"Replace range is inverted ({self.from_} > {self.to})")
        try:
            start = doc.resolve(self.from_)
            end = doc.resolve(self.to)
        except PositionError as e:
            return StepResult.fail(e.message)
        if not start.same_parent(end):
            return StepResult.fail(f"Replace range {self.from_}-{self.to} crosses a node boundary")

        parent = start.parent
        offset = start.start()
        try:
            left, _ = parent.split_content(self.from_ - offset)
            _, right = parent.split_content(self.to - offset)
        except PositionError as e:
            return StepResult.fail(e.message)

        children: Sequence[Node] = (*left, *self.content, *right)
        if parent.type.inline_content:
            children = normalize_inline(children)
        try:
            check_children(parent.type, children)
        except SchemaError as e:
            return StepResult.fail(e.message)

        return StepResult.ok(_rebuild(start, start.depth, parent.copy(children)))

    def get_map(self) -> StepMap:
        size = sum(node.node_size for node in self.content)
        return StepMap(((self.from_, self.to - self.from_, size),))

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stepType": self.step_type, "from": self.from_, "to": self.to}
        if self.content:
            data["content"] = [node.to_json() for node in self.content]
        return data

    @classmethod
    def _from_json(cls, schema: "SchemaRegistry", data: Mapping[str, Any]) -> ReplaceStep:
        content = tuple(schema.node_from_json(item) for item in data.get("content", []))
        return cls(int(data["from"]), int(data["to"]), content)


@register_step("setNodeMarkup")
@dataclass(frozen=True)
class SetNodeMarkupStep(Step):
    """Change the type and/or attributes of the node starting at ``pos``.

    Parameters
    ----------
    pos : int
        Position directly before the target node
    node_type : NodeType, optional
        New type; None keeps the current type
    attrs : Mapping, optional
        New attributes (defaults filled in); None keeps the current ones
        when the type is unchanged
    expected_type : str, optional
        Type name the target must still have. When the node at ``pos`` is
        gone or has another type the step is a no-op rather than a failure.

    """

    pos: int
    node_type: "NodeType | None" = None
    attrs: Mapping[str, Any] | None = None
    expected_type: str | None = None

    def apply(self, doc: Node) -> StepResult:
        try:
            target = doc.node_at(self.pos)
            resolved = doc.resolve(self.pos)
        except PositionError:
            target = None
        if target is None or target.is_text:
            return StepResult.skip(doc, f"no node at position {self.pos}")
        if self.expected_type is not None and target.type.name != self.expected_type:
            return StepResult.skip(
                doc, f"node at {self.pos} is '{target.type.name}', expected '{self.expected_type}'"
            )

        new_type = self.node_type or target.type
        if self.attrs is None and new_type is target.type:
            attrs = dict(target.attrs)
        else:
            try:
                attrs = compute_attrs(new_type, self.attrs)
            except SchemaError as e:
                return StepResult.fail(e.message)
        if new_type is target.type and attrs == dict(target.attrs):
            return StepResult.ok(doc)

        updated = Node(
            type=new_type,
            attrs=MappingProxyType(attrs),
            content=target.content,
            marks=target.marks,
        )
        parent = resolved.parent
        index = resolved.index()
        siblings = list(parent.content)
        siblings[index] = updated
        try:
            check_children(new_type, updated.content)
            check_children(parent.type, siblings)
        except SchemaError as e:
            return StepResult.fail(e.message)

        return StepResult.ok(_rebuild(resolved, resolved.depth, parent.copy(siblings)))

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stepType": self.step_type, "pos": self.pos}
        if self.node_type is not None:
            data["type"] = self.node_type.name
        if self.attrs is not None:
            data["attrs"] = dict(self.attrs)
        if self.expected_type is not None:
            data["expectedType"] = self.expected_type
        return data

    @classmethod
    def _from_json(cls, schema: "SchemaRegistry", data: Mapping[str, Any]) -> SetNodeMarkupStep:
        node_type = schema.node_type(data["type"]) if "type" in data else None
        return cls(int(data["pos"]), node_type, data.get("attrs"), data.get("expectedType"))


def _map_inline(
    node: Node, start: int, from_: int, to: int, change: Callable[[Node, Node], Node | None]
) -> Node | None:
    """Apply ``change(parent, inline_child)`` to inline content overlapping ``[from_, to)``.

    ``start`` is the absolute position where ``node``'s content starts.
    Returns the rebuilt node, or None when nothing changed.
    """
    changed = False
    children: list[Node] = []
    pos = start
    for child in node.content:
        end = pos + child.node_size
        if end <= from_ or pos >= to:
            children.append(child)
        elif child.is_inline:
            cut_from = max(from_, pos) - pos
            cut_to = min(to, end) - pos
            if child.is_text and (cut_from > 0 or cut_to < child.node_size):
                before = child.cut_text(0, cut_from)
                inner = child.cut_text(cut_from, cut_to)
                after = child.cut_text(cut_to)
            else:
                before, inner, after = None, child, None
            middle = change(node, inner)
            if middle is None:
                children.append(child)
            else:
                changed = True
                children.extend(piece for piece in (before, middle, after) if piece is not None)
        elif child.content:
            rebuilt = _map_inline(child, pos + 1, from_, to, change)
            if rebuilt is None:
                children.append(child)
            else:
                changed = True
                children.append(rebuilt)
        else:
            children.append(child)
        pos = end
    if not changed:
        return None
    if node.type.inline_content:
        return node.copy(normalize_inline(children))
    return node.copy(children)


@register_step("addMark")
@dataclass(frozen=True)
class AddMarkStep(Step):
    """Add ``mark`` to all inline content between ``from_`` and ``to``.

    Content whose parent does not allow the mark is left untouched.
    """

    from_: int
    to: int
    mark: Mark

    def apply(self, doc: Node) -> StepResult:
        if not 0 <= self.from_ <= self.to <= doc.content_size:
            return StepResult.fail(f"Mark range {self.from_}-{self.to} is outside the document")

        def change(parent: Node, child: Node) -> Node | None:
            if not parent.type.allows_mark(self.mark.type.name) or self.mark.is_in_set(child.marks):
                return None
            return child.with_marks(add_mark(child.marks, self.mark))

        rebuilt = _map_inline(doc, 0, self.from_, self.to, change)
        return StepResult.ok(rebuilt if rebuilt is not None else doc)

    def to_json(self) -> dict[str, Any]:
        return {"stepType": self.step_type, "from": self.from_, "to": self.to, "mark": self.mark.to_json()}

    @classmethod
    def _from_json(cls, schema: "SchemaRegistry", data: Mapping[str, Any]) -> AddMarkStep:
        mark = schema.mark(data["mark"]["type"], data["mark"].get("attrs"))
        return cls(int(data["from"]), int(data["to"]), mark)


@register_step("removeMark")
@dataclass(frozen=True)
class RemoveMarkStep(Step):
    """Remove every mark of ``mark_type`` from inline content between ``from_`` and ``to``."""

    from_: int
    to: int
    mark_type: "MarkType"

    def apply(self, doc: Node) -> StepResult:
        if not 0 <= self.from_ <= self.to <= doc.content_size:
            return StepResult.fail(f"Mark range {self.from_}-{self.to} is outside the document")

        def change(parent: Node, child: Node) -> Node | None:
            if not any(mark.type is self.mark_type for mark in child.marks):
                return None
            return child.with_marks(remove_mark(child.marks, self.mark_type))

        rebuilt = _map_inline(doc, 0, self.from_, self.to, change)
        return StepResult.ok(rebuilt if rebuilt is not None else doc)

    def to_json(self) -> dict[str, Any]:
        return {"stepType": self.step_type, "from": self.from_, "to": self.to, "markType": self.mark_type.name}

    @classmethod
    def _from_json(cls, schema: "SchemaRegistry", data: Mapping[str, Any]) -> RemoveMarkStep:
        return cls(int(data["from"]), int(data["to"]), schema.mark_type(data["markType"]))


@register_step("selection")
@dataclass(frozen=True)
class SelectionStep(Step):
    """Set the selection of the enclosing transaction.

    The document is left unchanged; the step fails when either position does
    not resolve in the document it is applied to.
    """

    anchor: int
    head: int
    kind: Literal["text", "node"] = "text"

    def apply(self, doc: Node) -> StepResult:
        size = doc.content_size
        for pos in (self.anchor, self.head):
            if not 0 <= pos <= size:
                return StepResult.fail(f"Selection position {pos} out of range (document content size is {size})")
        if self.kind == "node":
            target = doc.node_at(self.anchor)
            if target is None or not target.type.selectable:
                return StepResult.fail(f"No selectable node at position {self.anchor}")
        return StepResult.ok(doc)

    def to_json(self) -> dict[str, Any]:
        return {"stepType": self.step_type, "anchor": self.anchor, "head": self.head, "kind": self.kind}

    @classmethod
    def _from_json(cls, schema: "SchemaRegistry", data: Mapping[str, Any]) -> SelectionStep:
        return cls(int(data["anchor"]), int(data["head"]), data.get("kind", "text"))


def steps_to_json(steps: Iterable[Step]) -> list[dict[str, Any]]:
    """Serialize a step list (e.g. for an external history store)."""
    return [step.to_json() for step in steps]


def steps_from_json(schema: "SchemaRegistry", data: Iterable[Mapping[str, Any]]) -> list[Step]:
    """Rebuild a step list produced by :func:`steps_to_json`."""
    return [Step.from_json(schema, item) for item in data]
