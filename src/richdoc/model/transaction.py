#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/transaction.py
"""Transactions: ordered, atomic groups of steps.

A :class:`Transaction` is built against a starting document. Each step is
applied to the running document as soon as it is added, so later steps (and
the code adding them) see the effect of earlier ones. The first failing step
marks the transaction as rejected; nothing is ever committed partially.

:func:`apply` is the commit point: it returns either the final document or
a :class:`Rejected` record describing the failing step.

Examples
--------
    >>> tr = Transaction(doc)
    >>> tr.set_node_markup(0, attrs={"level": 2})
    >>> result = apply(doc, tr)
    >>> isinstance(result, Rejected)
    False

"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Union

from richdoc.exceptions import TransformError
from richdoc.model.selection import NodeSelection, Selection, TextSelection
from richdoc.model.steps import (
    AddMarkStep,
    RemoveMarkStep,
    ReplaceStep,
    SelectionStep,
    SetNodeMarkupStep,
    Step,
    StepMapping,
    StepResult,
)

if TYPE_CHECKING:
    from richdoc.model.node import Mark, Node
    from richdoc.model.schema import MarkType, NodeType, SchemaRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rejected:
    """Why a transaction could not be applied.

    Parameters
    ----------
    step_index : int
        Index of the failing step in the transaction
    step : Step
        The failing step
    reason : str
        Human-readable failure description

    """

    step_index: int
    step: Step
    reason: str


ApplyResult = Union["Node", Rejected]


class Transaction:
    """Builder for an ordered group of steps.

    Parameters
    ----------
    doc : Node
        Document the transaction starts from
    selection : Selection, optional
        Selection paired with ``doc``; defaults to the start of the document
    schema : SchemaRegistry, optional
        Schema used by helpers that create nodes (``insert_text``)

    Attributes
    ----------
    before : Node
        The starting document
    doc : Node
        The document after all steps added so far
    steps : list of Step
        Steps in application order
    mapping : StepMapping
        Position mapping accumulated over all steps
    rejected : Rejected or None
        Set when a step failed; further steps are ignored

    """

    def __init__(
        self, doc: "Node", selection: Selection | None = None, schema: "SchemaRegistry | None" = None
    ) -> None:
        self.before = doc
        self.schema = schema
        self.doc = doc
        self.steps: list[Step] = []
        self.mapping = StepMapping()
        self.rejected: Rejected | None = None
        self.time = time.time()
        self._meta: dict[str, Any] = {}
        self._selection = selection if selection is not None else Selection.at_start(doc)
        self._selection_for = 0
        self._selection_set = False

    def __repr__(self) -> str:
        rejected = self.rejected is not None
        return f"<Transaction steps={len(self.steps)} doc_changed={self.doc_changed} rejected={rejected}>"

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    def step(self, step: Step) -> Transaction:
        """Apply ``step`` to the running document and record it.

        A failing step marks the transaction as rejected. Steps added after a
        rejection are recorded but not applied.
        """
        self.maybe_step(step)
        return self

    def maybe_step(self, step: Step) -> StepResult:
        """Apply ``step`` and return its result (see :meth:`step`)."""
        index = len(self.steps)
        self.steps.append(step)
        if self.rejected is not None:
            logger.debug(f"Ignoring step {index} ({step.step_type}): transaction already rejected")
            return StepResult.fail(self.rejected.reason)

        result = step.apply(self.doc)
        if result.failed is not None:
            self.rejected = Rejected(index, step, result.failed)
            logger.debug(f"Step {index} ({step.step_type}) failed: {result.failed}")
            return result

        assert result.doc is not None
        self.doc = result.doc
        self.mapping.append(step.get_map())
        if isinstance(step, SelectionStep):
            self._selection = _selection_from_step(self.doc, step)
            self._selection_for = len(self.mapping)
            self._selection_set = True
        return result

    @property
    def doc_changed(self) -> bool:
        """Whether any step changed the document."""
        return self.doc is not self.before

    @property
    def selection_set(self) -> bool:
        """Whether the selection was set explicitly by a step."""
        return self._selection_set

    @property
    def selection(self) -> Selection:
        """The selection, mapped through all steps added since it was last set."""
        if self._selection_for < len(self.mapping):
            self._selection = self._selection.map(self.doc, self.mapping.slice(self._selection_for))
            self._selection_for = len(self.mapping)
        return self._selection

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def set_meta(self, key: str, value: Any) -> Transaction:
        """Attach metadata for plugins and views (e.g. ``"addToHistory"``)."""
        self._meta[key] = value
        return self

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self._meta.get(key, default)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def replace(self, from_: int, to: int, content: Iterable["Node"] = ()) -> Transaction:
        return self.step(ReplaceStep(from_, to, tuple(content)))

    def replace_with(self, from_: int, to: int, node: "Node") -> Transaction:
        return self.replace(from_, to, (node,))

    def insert(self, pos: int, content: Iterable["Node"]) -> Transaction:
        return self.replace(pos, pos, content)

    def delete(self, from_: int, to: int) -> Transaction:
        return self.replace(from_, to)

    def insert_text(self, text: str, from_: int | None = None, to: int | None = None) -> Transaction:
        """Insert ``text`` (with the marks active at ``from_``), replacing ``from_``-``to``.

        Defaults to replacing the current selection.
        """
        if from_ is None:
            from_, to = self.selection.from_, self.selection.to
        elif to is None:
            to = from_
        if not text:
            return self.delete(from_, to)
        if self.schema is None:
            raise TransformError("insert_text requires a transaction created with a schema")
        marks = self.doc.resolve(from_).marks()
        self.replace(from_, to, (self.schema.text(text, marks),))
        if self.rejected is None:
            self.set_selection(TextSelection.create(self.doc, from_ + len(text)))
        return self

    def set_node_markup(
        self,
        pos: int,
        node_type: "NodeType | None" = None,
        attrs: Mapping[str, Any] | None = None,
        expected_type: str | None = None,
    ) -> Transaction:
        return self.step(SetNodeMarkupStep(pos, node_type, attrs, expected_type))

    def set_node_attribute(self, pos: int, name: str, value: Any) -> Transaction:
        """Set a single attribute of the node at ``pos``, keeping the others."""
        target = self.doc.node_at(pos)
        if target is None:
            return self.step(SetNodeMarkupStep(pos, None, {name: value}))
        return self.step(SetNodeMarkupStep(pos, None, {**target.attrs, name: value}, target.type.name))

    def add_mark(self, from_: int, to: int, mark: "Mark") -> Transaction:
        return self.step(AddMarkStep(from_, to, mark))

    def remove_mark(self, from_: int, to: int, mark_type: "MarkType") -> Transaction:
        return self.step(RemoveMarkStep(from_, to, mark_type))

    def set_selection(self, selection: Selection) -> Transaction:
        """Record a selection change as a step."""
        kind = "node" if isinstance(selection, NodeSelection) else "text"
        return self.step(SelectionStep(selection.anchor, selection.head, kind))

    def scroll_into_view(self) -> Transaction:
        return self.set_meta("scrollIntoView", True)


def _selection_from_step(doc: "Node", step: SelectionStep) -> Selection:
    if step.kind == "node":
        return NodeSelection.create(doc, step.anchor)
    return TextSelection.create(doc, step.anchor, step.head)


def apply(document: "Node", transaction: Transaction) -> ApplyResult:
    """Apply ``transaction`` to ``document`` atomically.

    When ``document`` is the transaction's starting document, the result
    computed while building is returned. Otherwise every step is replayed
    against ``document`` and validated before anything is returned.

    Parameters
    ----------
    document : Node
        Target document
    transaction : Transaction
        Steps to apply

    Returns
    -------
    Node or Rejected
        The new document, or a description of the first failing step

    """
    if document is transaction.before or document == transaction.before:
        if transaction.rejected is not None:
            logger.warning(
                f"Transaction rejected at step {transaction.rejected.step_index}: {transaction.rejected.reason}"
            )
            return transaction.rejected
        return transaction.doc

    doc = document
    for index, step in enumerate(transaction.steps):
        result = step.apply(doc)
        if result.failed is not None:
            logger.warning(f"Transaction rejected at step {index}: {result.failed}")
            return Rejected(index, step, result.failed)
        assert result.doc is not None
        doc = result.doc
    return doc
