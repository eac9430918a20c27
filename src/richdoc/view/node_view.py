#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/view/node_view.py
"""Node views backed by externally rendered components.

A :class:`ComponentView` binds one document node to one foreign component.
The editor view creates it when a node of a component-backed type appears,
updates it while the node keeps its type, and destroys it when the node
disappears, changes type, or the view itself is destroyed.

Lifecycle
---------
``CREATED -> RENDERED -> (SELECTED <-> RENDERED) -> DESTROYED``

The binding owns its container element and two notification subscriptions
(``theme-changed`` and ``location-changed``) held on an
:class:`contextlib.ExitStack`, so destroying the binding always releases
them.
"""

from __future__ import annotations

import enum
import logging
from contextlib import ExitStack
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence

from richdoc.constants import LOCATION_CHANGED, SELECTABLE_NODE_EVENTS, THEME_CHANGED
from richdoc.exceptions import NodeViewLifecycleError
from richdoc.model.selection import NodeSelection
from richdoc.view.dom import Element

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.view.decorations import Decoration
    from richdoc.view.dom import Event
    from richdoc.view.notifications import NotificationBus

logger = logging.getLogger(__name__)


class NodeViewState(enum.Enum):
    CREATED = "created"
    RENDERED = "rendered"
    SELECTED = "selected"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class ComponentProps:
    """Input handed to a component on every render.

    Parameters
    ----------
    theme : Any
        Current theme value, read fresh on each render
    node : Node
        Snapshot of the bound node
    is_selected : bool
        Whether the node is selected as a unit
    is_editable : bool
        Whether the hosting view is editable
    get_pos : callable
        Returns the node's current document position

    """

    theme: Any
    node: "Node"
    is_selected: bool
    is_editable: bool
    get_pos: Callable[[], int]


Component = Callable[[ComponentProps], Any]


class ViewHost(Protocol):
    """What a node view needs from the view hosting it."""

    @property
    def editable(self) -> bool: ...

    @property
    def theme(self) -> Any: ...

    @property
    def bus(self) -> "NotificationBus": ...


class Renderer(Protocol):
    """Mounts component output into a container and releases it again."""

    def mount(self, output: Any, container: Element, theme: Any) -> None: ...

    def unmount(self, container: Element) -> None: ...


class ElementRenderer:
    """Renderer for components returning :class:`Element` trees or text.

    Each mount replaces the container's previous children wholesale.
    """

    def mount(self, output: Any, container: Element, theme: Any) -> None:
        if output is None:
            container.replace_children()
        elif isinstance(output, (list, tuple)):
            container.replace_children(*output)
        else:
            container.replace_children(output if isinstance(output, Element) else str(output))

    def unmount(self, container: Element) -> None:
        container.replace_children()


class ComponentView:
    """Bridge between one node and one externally rendered component.

    Parameters
    ----------
    component : callable
        ``component(ComponentProps) -> output``
    view : ViewHost
        The hosting editor view
    node : Node
        The bound node
    get_pos : callable
        Returns the node's current position
    renderer : Renderer, optional
        Mounts component output; defaults to :class:`ElementRenderer`
    decorations : sequence of Decoration
        Node decorations active on the node when it was created

    """

    def __init__(
        self,
        component: Component,
        *,
        view: ViewHost,
        node: "Node",
        get_pos: Callable[[], int],
        renderer: Renderer | None = None,
        decorations: Sequence["Decoration"] = (),
    ) -> None:
        self.component = component
        self.view = view
        self.node: "Node | None" = node
        self.get_pos = get_pos
        self.renderer: Renderer = renderer or ElementRenderer()
        self.decorations = tuple(decorations)
        self.is_selected = False
        self.state = NodeViewState.CREATED

        self.dom: Element | None = Element("span" if node.type.inline else "div")
        self.dom.class_list.add(f"component-{node.type.name}")

        with ExitStack() as stack:
            self.render_element()
            stack.enter_context(view.bus.subscribe(THEME_CHANGED, self.render_element))
            stack.enter_context(view.bus.subscribe(LOCATION_CHANGED, self.render_element))
            self._subscriptions = stack.pop_all()

        self.state = NodeViewState.RENDERED
        logger.debug(f"Created node view for '{node.type.name}'")

    def __repr__(self) -> str:
        name = self.node.type.name if self.node is not None else "-"
        return f"<ComponentView {name} {self.state.value}>"

    @property
    def destroyed(self) -> bool:
        return self.state is NodeViewState.DESTROYED

    def render_element(self) -> None:
        """Render the component with fresh props, replacing the previous output."""
        if self.node is None or self.dom is None:
            raise NodeViewLifecycleError("Cannot render a destroyed node view")
        props = ComponentProps(
            theme=self.view.theme,
            node=self.node,
            is_selected=self.is_selected,
            is_editable=self.view.editable,
            get_pos=self.get_pos,
        )
        self.renderer.mount(self.component(props), self.dom, props.theme)

    def update(self, node: "Node", decorations: Sequence["Decoration"] = ()) -> bool:
        """Bind a new snapshot of the node.

        Returns
        -------
        bool
            False when the node has another type (or the view is destroyed);
            the caller must then destroy and recreate the binding. The
            rendered output is left untouched in that case.

        """
        if self.node is None or node.type is not self.node.type:
            logger.debug(f"Node view refused update to '{node.type.name}'")
            return False
        self.node = node
        self.decorations = tuple(decorations)
        self.render_element()
        return True

    def select_node(self) -> None:
        if self.view.editable and not self.destroyed:
            self.is_selected = True
            self.state = NodeViewState.SELECTED
            self.render_element()

    def deselect_node(self) -> None:
        if self.view.editable and not self.destroyed:
            self.is_selected = False
            self.state = NodeViewState.RENDERED
            self.render_element()

    def stop_event(self, event: "Event") -> bool:
        """Return True for events the view must not handle itself.

        Drag events are always kept inside the component. Pointer-down,
        drop and clipboard events are kept only when the node can be
        selected as a unit.
        """
        if event.type.startswith("drag"):
            return True
        if event.type in SELECTABLE_NODE_EVENTS:
            return self.node is not None and NodeSelection.is_selectable(self.node)
        return False

    def ignore_mutation(self, mutation: Any = None) -> bool:
        """The component owns its subtree; native changes there are never document edits."""
        return True

    def destroy(self) -> None:
        """Release the subscriptions, unmount the component and drop the node."""
        if self.destroyed:
            return
        try:
            self._subscriptions.close()
        finally:
            if self.dom is not None:
                self.renderer.unmount(self.dom)
                self.dom.remove()
            self.dom = None
            self.node = None
            self.state = NodeViewState.DESTROYED
            logger.debug("Destroyed node view")
