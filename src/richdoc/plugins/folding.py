#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/plugins/folding.py
"""Decorations hiding the content of collapsed headings.

A collapsed heading hides the blocks that follow it in the same parent, up
to the next heading of the same or a higher level (lower number). Hidden
blocks receive a node decoration with the ``folded-content`` class; the
document itself is not changed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from richdoc.constants import FOLDED_CONTENT_CLASS
from richdoc.model.state import Plugin, PluginKey
from richdoc.view.decorations import Decoration, DecorationSet

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.model.state import EditorState
    from richdoc.model.transaction import Transaction

folding_key = PluginKey("folding")


def folded_ranges(parent: "Node", start: int, type_name: str = "heading") -> list[tuple[int, int, int]]:
    """Return ``(heading_pos, block_pos, block_end)`` for every block hidden in ``parent``.

    ``start`` is the absolute position where ``parent``'s content starts.
    """
    hidden: list[tuple[int, int, int]] = []
    fold_level: int | None = None
    fold_pos = 0
    pos = start
    for child in parent.content:
        if child.type.name == type_name:
            level = int(child.attrs.get("level", 1))
            if fold_level is not None and level <= fold_level:
                fold_level = None
            if fold_level is None and child.attrs.get("collapsed"):
                fold_level = level
                fold_pos = pos
                pos += child.node_size
                continue
        if fold_level is not None:
            hidden.append((fold_pos, pos, pos + child.node_size))
        pos += child.node_size
    return hidden


def get_folded_content(doc: "Node", class_name: str = FOLDED_CONTENT_CLASS) -> DecorationSet:
    """Compute node decorations for every block hidden by a collapsed heading."""
    decorations = []
    containers: list[tuple["Node", int]] = [(doc, 0)]
    containers.extend((node, pos + 1) for node, pos in doc.descendants() if not node.is_leaf and not node.is_textblock)
    for container, start in containers:
        for heading_pos, block_pos, block_end in folded_ranges(container, start):
            decorations.append(
                Decoration.node(block_pos, block_end, {"class": class_name}, key=f"fold-{heading_pos}-{block_pos}")
            )
    return DecorationSet.create(doc, decorations)


def folding_plugin(key: PluginKey = folding_key) -> Plugin:
    """Build the plugin that tracks folded-content decorations."""

    def init(state: "EditorState") -> DecorationSet:
        return get_folded_content(state.doc)

    def apply(
        tr: "Transaction", previous: DecorationSet, old_state: "EditorState", new_state: "EditorState"
    ) -> DecorationSet:
        return get_folded_content(tr.doc) if tr.doc_changed else previous

    return Plugin(key=key, init=init, apply=apply, decorations=key.get_state)
