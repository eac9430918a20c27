#  Copyright (c) 2025 Tom Villani, Ph.D.
"""View layer: element tree, decorations, notifications and node views.

:class:`~richdoc.view.editor_view.EditorView` lives in
:mod:`richdoc.view.editor_view` and is imported from there, since it depends
on the command modules.
"""

from richdoc.view.decorations import EMPTY, Decoration, DecorationSet, merge
from richdoc.view.dom import Element, Event, TextNode
from richdoc.view.node_view import (
    ComponentProps,
    ComponentView,
    ElementRenderer,
    NodeViewState,
)
from richdoc.view.notifications import NotificationBus, Subscription, default_bus

__all__ = [
    "EMPTY",
    "ComponentProps",
    "ComponentView",
    "Decoration",
    "DecorationSet",
    "Element",
    "ElementRenderer",
    "Event",
    "NodeViewState",
    "NotificationBus",
    "Subscription",
    "TextNode",
    "default_bus",
    "merge",
]
