#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/plugins/anchors.py
"""Heading anchors.

Every heading gets a document-unique identifier derived from its text. The
identifiers are assigned depth-first in document order: the first heading
with a given slug keeps the bare slug and later ones get ``-1``, ``-2``, ...
appended. Each identifier becomes a zero-width widget decoration placed
directly before its heading, keyed by the identifier.

The same assignment drives :func:`get_headings`, which produces the outline
used for tables of contents and link targets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from richdoc.constants import DEFAULT_ANCHOR_CLASS_NAME, DEFAULT_SLUG_MAX_LENGTH, DEFAULT_SLUG_SEPARATOR
from richdoc.model.state import Plugin, PluginKey
from richdoc.utils.text import make_unique_slug, slugify
from richdoc.view.decorations import Decoration, DecorationSet
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.model.state import EditorState
    from richdoc.model.transaction import Transaction
    from richdoc.options.editor import EditorOptions

logger = logging.getLogger(__name__)

HEADING_TYPE = "heading"

anchors_key = PluginKey("anchors")


@dataclass(frozen=True)
class HeadingInfo:
    """One entry of a document outline."""

    title: str
    level: int
    id: str
    pos: int


def iter_heading_ids(
    doc: "Node",
    *,
    separator: str = DEFAULT_SLUG_SEPARATOR,
    max_length: int = DEFAULT_SLUG_MAX_LENGTH,
    type_name: str = HEADING_TYPE,
) -> Iterator[tuple["Node", int, str]]:
    """Yield ``(heading, pos, id)`` for every heading in document order."""
    seen: dict[str, int] = {}
    for node, pos in doc.descendants():
        if node.type.name != type_name:
            continue
        slug = slugify(node.text_content, max_length=max_length, separator=separator)
        yield node, pos, make_unique_slug(slug, seen, separator)


def get_anchors(
    doc: "Node",
    *,
    class_name: str = DEFAULT_ANCHOR_CLASS_NAME,
    separator: str = DEFAULT_SLUG_SEPARATOR,
    max_length: int = DEFAULT_SLUG_MAX_LENGTH,
) -> DecorationSet:
    """Compute the anchor widget decorations of ``doc``.

    Pure: the result depends on the document only, so calling it twice on
    the same document yields equal sets.

    Parameters
    ----------
    doc : Node
        Document to decorate
    class_name : str, default "heading-name"
        Class name given to every anchor element
    separator : str, default "-"
        Slug word separator, also used before duplicate counters
    max_length : int, default 100
        Maximum slug length

    Returns
    -------
    DecorationSet
        One widget per heading, at the position before the heading, with
        ``side=-1`` and ``key`` equal to the anchor id

    """
    decorations = [
        Decoration.widget(pos, _render_anchor, key=anchor_id, side=-1, attrs={"id": anchor_id, "class": class_name})
        for _, pos, anchor_id in iter_heading_ids(doc, separator=separator, max_length=max_length)
    ]
    return DecorationSet.create(doc, decorations)


def _render_anchor(decoration: Decoration) -> Element:
    return Element("a", dict(decoration.attrs))


def get_headings(
    doc: "Node", *, separator: str = DEFAULT_SLUG_SEPARATOR, max_length: int = DEFAULT_SLUG_MAX_LENGTH
) -> list[HeadingInfo]:
    """Return the outline of ``doc``: title, level, anchor id and position of each heading."""
    return [
        HeadingInfo(title=node.text_content, level=int(node.attrs.get("level", 1)), id=anchor_id, pos=pos)
        for node, pos, anchor_id in iter_heading_ids(doc, separator=separator, max_length=max_length)
    ]


def heading_anchors_plugin(options: "EditorOptions | None" = None, key: PluginKey = anchors_key) -> Plugin:
    """Build the plugin that keeps anchor decorations in the editor state.

    The decoration set is recomputed only for transactions that changed the
    document; any other transaction hands the previous set on unchanged.
    """
    class_name = options.anchor_class_name if options else DEFAULT_ANCHOR_CLASS_NAME
    separator = options.slug_separator if options else DEFAULT_SLUG_SEPARATOR
    max_length = options.slug_max_length if options else DEFAULT_SLUG_MAX_LENGTH

    def compute(doc: "Node") -> DecorationSet:
        return get_anchors(doc, class_name=class_name, separator=separator, max_length=max_length)

    def init(state: "EditorState") -> DecorationSet:
        return compute(state.doc)

    def apply(
        tr: "Transaction", previous: DecorationSet, old_state: "EditorState", new_state: "EditorState"
    ) -> DecorationSet:
        if not tr.doc_changed:
            return previous
        logger.debug("Recomputing heading anchors")
        return compute(tr.doc)

    return Plugin(key=key, init=init, apply=apply, decorations=key.get_state)
