#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/view/editor_view.py
"""The editor view.

:class:`EditorView` owns an :class:`EditorState` and keeps an
:class:`Element` tree in sync with it. Every update re-renders the document
together with the merged decorations of all plugins, reusing widget elements
whose decoration survived and keeping :class:`ComponentView` bindings alive
for nodes that persist.

Rendering rules
---------------
- Widget decorations are drawn before the node (or text) starting at their
  position.
- Node decorations merge their ``class`` into the node's element and set
  the remaining attributes.
- Inline decorations wrap the covered text in a ``span``.
- Marks wrap text using their type's ``to_dom``.
- A node type's ``to_dom`` returns either an element or an
  ``(outer, content_hole)`` pair; children are rendered into the hole.

Transactions are dispatched inside :meth:`NotificationBus.dispatching`, so
notifications published while the document changes reach subscribers only
after the view has been updated.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Sequence

from richdoc.commands.input_rules import run_input_rules
from richdoc.commands.keymap import key_name_from_event
from richdoc.constants import LOCATION_CHANGED, THEME_CHANGED
from richdoc.exceptions import NodeViewLifecycleError
from richdoc.hooks import HookContext
from richdoc.model.selection import NodeSelection
from richdoc.options.editor import EditorOptions
from richdoc.view.decorations import Decoration, DecorationSet, merge
from richdoc.view.dom import Element, Event, TextNode
from richdoc.view.node_view import ComponentView
from richdoc.view.notifications import default_bus

if TYPE_CHECKING:
    from richdoc.commands.input_rules import InputRule
    from richdoc.commands.keymap import Keymap
    from richdoc.hooks import HookManager
    from richdoc.model.node import Node
    from richdoc.model.state import EditorState
    from richdoc.model.steps import StepMapping
    from richdoc.model.transaction import Transaction
    from richdoc.view.dom import Child
    from richdoc.view.node_view import Component, Renderer
    from richdoc.view.notifications import NotificationBus

logger = logging.getLogger(__name__)

SELECTED_NODE_CLASS = "selected-node"

# Events the root element listens to
EVENT_TYPES = ("mousedown", "click", "keydown", "beforeinput", "dragstart", "drop", "cut", "copy", "paste")


class MemoryClipboard:
    """In-memory clipboard collaborator."""

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def text(self) -> str:
        return self.history[-1] if self.history else ""

    def write_text(self, text: str) -> None:
        self.history.append(text)


class EditorView:
    """Render an editor state and route input back into it.

    Parameters
    ----------
    state : EditorState
        Initial state
    options : EditorOptions, optional
        Editor configuration; ``editable`` and ``theme`` seed the view
    bus : NotificationBus, optional
        Notification bus; defaults to the process-wide bus
    node_views : mapping of str to Component, optional
        Components for node types rendered through :class:`ComponentView`
    keymap : Keymap, optional
        Key bindings consulted on ``keydown``
    input_rules : sequence of InputRule, optional
        Rules consulted on text input
    renderer : Renderer, optional
        Renderer handed to every :class:`ComponentView`
    clipboard : object, optional
        Object with ``write_text(str)``; defaults to :class:`MemoryClipboard`
    notify : callable, optional
        ``notify(message)`` for user-facing messages; defaults to logging
    location : str, default ""
        Location (URL) of the document, used for heading links
    hooks : HookManager, optional
        Hooks; ``post_apply`` hooks observe every applied transaction

    """

    def __init__(
        self,
        state: "EditorState",
        *,
        options: EditorOptions | None = None,
        bus: "NotificationBus | None" = None,
        node_views: Mapping[str, "Component"] | None = None,
        keymap: "Keymap | None" = None,
        input_rules: Sequence["InputRule"] = (),
        renderer: "Renderer | None" = None,
        clipboard: Any = None,
        notify: Callable[[str], None] | None = None,
        location: str = "",
        hooks: "HookManager | None" = None,
    ) -> None:
        self.options = options or EditorOptions()
        self._state = state
        self._editable = self.options.editable
        self._theme = self.options.theme
        self._bus = bus or default_bus
        self.components: dict[str, "Component"] = dict(node_views or {})
        self.keymap = keymap
        self.input_rules = list(input_rules)
        self.renderer = renderer
        self.clipboard = clipboard if clipboard is not None else MemoryClipboard()
        self.notify: Callable[[str], None] = notify or self._log_notification
        self.location = location
        self.hooks = hooks

        self.node_views: dict[int, ComponentView] = {}
        self._view_positions: dict[ComponentView, list[int]] = {}
        self._positions: dict[int, tuple[Element, int, "Node"]] = {}
        self._widgets: dict[Decoration, Element] = {}
        self._decorations: DecorationSet = DecorationSet()
        self._destroyed = False

        self.dom = Element("div", {"class": "ProseMirror", "translate": "no"})
        self._sync_editable_attribute()
        for event_type in EVENT_TYPES:
            self.dom.add_event_listener(event_type, self._on_event)

        self._render(None)
        logger.debug(f"Created editor view ({len(self.node_views)} node view(s))")

    def __repr__(self) -> str:
        return f"<EditorView editable={self._editable} destroyed={self._destroyed}>"

    @staticmethod
    def _log_notification(message: str) -> None:
        logger.info(message)

    # ------------------------------------------------------------------
    # Host properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> "EditorState":
        return self._state

    @property
    def editable(self) -> bool:
        return self._editable

    @property
    def theme(self) -> Any:
        return self._theme

    @property
    def bus(self) -> "NotificationBus":
        return self._bus

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def decorations(self) -> DecorationSet:
        """Decorations drawn by the last render."""
        return self._decorations

    def set_theme(self, theme: Any) -> None:
        """Change the theme and notify node views."""
        self._theme = theme
        self._bus.publish(THEME_CHANGED)

    def set_location(self, location: str) -> None:
        """Change the document location and notify node views."""
        self.location = location
        self._bus.publish(LOCATION_CHANGED)

    def set_editable(self, editable: bool) -> None:
        if editable == self._editable:
            return
        self._editable = editable
        self._sync_editable_attribute()
        for node_view in self.node_views.values():
            node_view.render_element()

    def _sync_editable_attribute(self) -> None:
        self.dom.set_attribute("contenteditable", "true" if self._editable else "false")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def dispatch(self, tr: "Transaction") -> None:
        """Apply ``tr`` and update the view.

        Raises
        ------
        NodeViewLifecycleError
            If the view has been destroyed
        TransactionRejectedError
            If a step of ``tr`` was rejected; the view is left unchanged

        """
        if self._destroyed:
            raise NodeViewLifecycleError("Cannot dispatch a transaction to a destroyed view")
        with self._bus.dispatching():
            new_state = self._state.apply(tr)
            if self.hooks is not None and self.hooks.has_hooks("post_apply"):
                context = HookContext(document=new_state.doc, metadata={"transaction": tr})
                self.hooks.run_pipeline_hook("post_apply", new_state.doc, context)
            self.update_state(new_state, tr.mapping if tr.doc_changed else None)

    def update_state(self, state: "EditorState", mapping: "StepMapping | None" = None) -> None:
        """Show ``state``; ``mapping`` maps node view positions of the previous document."""
        previous = self._state
        self._state = state
        if state.doc is previous.doc and self._collect_decorations() == self._decorations:
            self._sync_selection()
            return
        self._render(mapping)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _collect_decorations(self) -> DecorationSet:
        return merge(plugin.decorations(self._state) for plugin in self._state.plugins if plugin.decorations)

    def _render(self, mapping: "StepMapping | None") -> None:
        decorations = self._collect_decorations()
        available = self._map_node_views(mapping)
        previous_widgets = self._widgets
        self._widgets = {}
        self._positions = {}
        self.node_views = {}

        children = self._render_children(self._state.doc, 0, decorations, available, previous_widgets)
        self.dom.replace_children(*children)
        self._positions[id(self.dom)] = (self.dom, -1, self._state.doc)

        for stale in available.values():
            stale.destroy()
        self._view_positions = {
            node_view: cell for node_view, cell in self._view_positions.items() if not node_view.destroyed
        }
        self._decorations = decorations
        self._sync_selection()

    def _map_node_views(self, mapping: "StepMapping | None") -> dict[int, ComponentView]:
        """Map the current bindings to positions in the new document, destroying deleted ones."""
        mapped: dict[int, ComponentView] = {}
        for pos, node_view in self.node_views.items():
            if mapping is not None:
                result = mapping.map_result(pos, 1)
                if result.deleted:
                    node_view.destroy()
                    continue
                pos = result.pos
            if pos in mapped:
                mapped.pop(pos).destroy()
            mapped[pos] = node_view
        return mapped

    def _render_children(
        self,
        parent: "Node",
        start: int,
        decorations: DecorationSet,
        available: dict[int, ComponentView],
        previous_widgets: dict[Decoration, Element],
    ) -> list["Child"]:
        if parent.type.inline_content:
            return self._render_inline(parent, start, decorations, available, previous_widgets)
        out: list["Child"] = []
        pos = start
        for child in parent.content:
            out.extend(self._widgets_at(pos, decorations, previous_widgets))
            out.append(self._render_node(child, pos, decorations, available, previous_widgets))
            pos += child.node_size
        out.extend(self._widgets_at(pos, decorations, previous_widgets))
        return out

    def _render_inline(
        self,
        parent: "Node",
        start: int,
        decorations: DecorationSet,
        available: dict[int, ComponentView],
        previous_widgets: dict[Decoration, Element],
    ) -> list["Child"]:
        end = start + parent.content_size
        inline = decorations.find(start, end, lambda d: d.kind == "inline" and d.from_ < d.to)
        cuts = {d.from_ for d in inline} | {d.to for d in inline}
        cuts |= {d.from_ for d in decorations.find(start, end, lambda d: d.kind == "widget")}

        out: list["Child"] = []
        pos = start
        for child in parent.content:
            child_end = pos + child.node_size
            if child.is_text:
                text = child.text or ""
                bounds = [pos, *sorted(cut for cut in cuts if pos < cut < child_end), child_end]
                for seg_start, seg_end in zip(bounds, bounds[1:]):
                    out.extend(self._widgets_at(seg_start, decorations, previous_widgets))
                    segment: "Child" = TextNode(text[seg_start - pos : seg_end - pos])
                    segment = self._wrap_marks(segment, child)
                    attrs = _inline_attrs(inline, seg_start, seg_end)
                    if attrs:
                        segment = Element("span", attrs, [segment])
                    out.append(segment)
            else:
                out.extend(self._widgets_at(pos, decorations, previous_widgets))
                element = self._render_node(child, pos, decorations, available, previous_widgets)
                out.append(self._wrap_marks(element, child))
            pos = child_end
        out.extend(self._widgets_at(pos, decorations, previous_widgets))
        return out

    @staticmethod
    def _wrap_marks(child: "Child", node: "Node") -> "Child":
        for mark in reversed(node.marks):
            spec = mark.type.to_dom(mark) if mark.type.to_dom else Element("span")
            outer, hole = spec if isinstance(spec, tuple) else (spec, spec)
            hole.append_child(child)
            child = outer
        return child

    def _widgets_at(
        self, pos: int, decorations: DecorationSet, previous_widgets: dict[Decoration, Element]
    ) -> list[Element]:
        widgets = []
        for decoration in decorations.find(pos, pos, lambda d: d.kind == "widget" and d.from_ == pos):
            element = previous_widgets.get(decoration)
            if element is None:
                element = decoration.render()
            self._widgets[decoration] = element
            widgets.append(element)
        return widgets

    def _render_node(
        self,
        node: "Node",
        pos: int,
        decorations: DecorationSet,
        available: dict[int, ComponentView],
        previous_widgets: dict[Decoration, Element],
    ) -> Element:
        end = pos + node.node_size
        node_decorations = decorations.find(
            pos, end, lambda d: d.kind == "node" and d.from_ == pos and d.to == end
        )

        component = self.components.get(node.type.name)
        if component is not None:
            element = self._bind_node_view(component, node, pos, node_decorations, available)
            element.attrs["class"] = f"component-{node.type.name}"
        else:
            spec = node.type.to_dom(node) if node.type.to_dom else Element("div")
            element, hole = spec if isinstance(spec, tuple) else (spec, None if node.is_leaf else spec)
            if hole is not None:
                hole.replace_children(
                    *self._render_children(node, pos + 1, decorations, available, previous_widgets)
                )

        _apply_node_decorations(element, node_decorations)
        self._positions[id(element)] = (element, pos, node)
        return element

    def _bind_node_view(
        self,
        component: "Component",
        node: "Node",
        pos: int,
        node_decorations: Sequence[Decoration],
        available: dict[int, ComponentView],
    ) -> Element:
        node_view = available.pop(pos, None)
        if node_view is not None and not node_view.update(node, node_decorations):
            node_view.destroy()
            node_view = None

        if node_view is None:
            cell = [pos]
            node_view = ComponentView(
                component,
                view=self,
                node=node,
                get_pos=lambda: cell[0],
                renderer=self.renderer,
                decorations=node_decorations,
            )
            self._view_positions[node_view] = cell
        else:
            # get_pos of a surviving binding reads its cell
            self._view_positions[node_view][0] = pos

        self.node_views[pos] = node_view
        if node_view.dom is None:
            raise NodeViewLifecycleError(f"Node view for '{node.type.name}' has no element")
        return node_view.dom

    def _sync_selection(self) -> None:
        selection = self._state.selection
        selected_pos = selection.from_ if isinstance(selection, NodeSelection) else None

        for pos, node_view in self.node_views.items():
            if pos == selected_pos and not node_view.is_selected:
                node_view.select_node()
            elif pos != selected_pos and node_view.is_selected:
                node_view.deselect_node()

        for element in self.dom.query_selector_all(f".{SELECTED_NODE_CLASS}"):
            element.class_list.remove(SELECTED_NODE_CLASS)
        if selected_pos is not None and selected_pos not in self.node_views:
            element = self.element_at(selected_pos)
            if element is not None:
                element.class_list.add(SELECTED_NODE_CLASS)

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def element_at(self, pos: int) -> Element | None:
        """Element of the node starting at ``pos``, if it is rendered."""
        for element, start, _node in self._positions.values():
            if start == pos and element is not self.dom:
                return element
        return None

    def pos_at_dom(self, element: "Child") -> int:
        """Document position of a rendered element.

        Walks up from ``element`` to the closest element rendered for a
        node. For leaf nodes this is the position before the node; for
        other nodes the start of their content.

        Raises
        ------
        ValueError
            If ``element`` is not part of this view
        """
        current: Element | TextNode | None = element
        while current is not None:
            entry = self._positions.get(id(current))
            if entry is not None and entry[0] is current:
                _, pos, node = entry
                if current is self.dom:
                    return 0
                return pos if node.is_leaf else pos + 1
            current = current.parent
        raise ValueError(f"{element!r} is not rendered by this view")

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _on_event(self, event: Event) -> None:
        if self._destroyed or event.default_prevented:
            return
        node_view = self._node_view_for(event.target)
        if node_view is not None and node_view.stop_event(event):
            logger.debug(f"Event '{event.type}' left to {node_view!r}")
            return

        for plugin in self._state.plugins:
            handler = plugin.props.get("handle_dom_events", {}).get(event.type)
            if handler is not None and handler(self, event):
                return

        if event.type == "keydown":
            if self.handle_key(key_name_from_event(event)):
                event.prevent_default()
        elif event.type == "beforeinput" and "text" in event.data:
            if self.handle_text_input(str(event.data["text"])):
                event.prevent_default()

    def _node_view_for(self, target: Optional["Child"]) -> ComponentView | None:
        current = target
        while current is not None and current is not self.dom:
            for node_view in self.node_views.values():
                if node_view.dom is current:
                    return node_view
            current = current.parent
        return None

    def handle_key(self, key: str) -> bool:
        """Run the commands bound to ``key``; return whether one applied."""
        if not self._editable or self.keymap is None:
            return False
        return self.keymap.handle(key, self._state, self.dispatch, self)

    def handle_key_down(self, event: Event) -> bool:
        return self.handle_key(key_name_from_event(event))

    def handle_text_input(self, text: str, from_: int | None = None, to: int | None = None) -> bool:
        """Type ``text`` over ``from_``-``to`` (the selection by default).

        Input rules get the first chance to turn the typed text into a
        transformation; otherwise the text is inserted.
        """
        if not self._editable:
            return False
        selection = self._state.selection
        from_ = selection.from_ if from_ is None else from_
        to = selection.to if to is None else to
        tr = run_input_rules(self._state, self.input_rules, from_, to, text)
        if tr is None:
            tr = self._state.tr.insert_text(text, from_, to)
        self.dispatch(tr)
        return True

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_html(self) -> str:
        return self.dom.to_html()

    def destroy(self) -> None:
        """Destroy every node view binding and detach the event listeners."""
        if self._destroyed:
            return
        self._destroyed = True
        with ExitStack() as stack:
            for event_type in EVENT_TYPES:
                stack.callback(self.dom.remove_event_listener, event_type, self._on_event)
            for node_view in self.node_views.values():
                stack.callback(node_view.destroy)
        self.node_views = {}
        self._view_positions = {}
        self._positions = {}
        logger.debug("Destroyed editor view")


def _inline_attrs(decorations: Iterable[Decoration], start: int, end: int) -> dict[str, Any]:
    attrs: dict[str, Any] = {}
    for decoration in decorations:
        if decoration.from_ <= start and decoration.to >= end:
            _merge_attrs(attrs, decoration.attrs)
    return attrs


def _merge_attrs(target: dict[str, Any], attrs: Mapping[str, Any]) -> None:
    for name, value in attrs.items():
        if name == "class" and target.get("class"):
            target["class"] = f"{target['class']} {value}"
        elif name == "style" and target.get("style"):
            target["style"] = f"{target['style']};{value}"
        else:
            target[name] = value


def _apply_node_decorations(element: Element, decorations: Iterable[Decoration]) -> None:
    for decoration in decorations:
        for name, value in decoration.attrs.items():
            if name == "class":
                element.class_list.add(*str(value).split())
            elif name == "style" and element.get_attribute("style"):
                element.set_attribute("style", f"{element.get_attribute('style')};{value}")
            else:
                element.set_attribute(name, value)
