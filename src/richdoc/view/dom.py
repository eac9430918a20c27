#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/view/dom.py
"""A minimal element tree used as the native rendering surface of the view.

The editor view renders documents and decorations into :class:`Element`
trees. Node views own one container element each and hand it to a foreign
renderer. Only the pieces the view relies on are modelled: tags,
attributes, class lists, children with sibling navigation, event listeners
with bubbling, simple selectors and HTML output.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

Listener = Callable[["Event"], Any]

# Elements that never have children
VOID_ELEMENTS = frozenset({"br", "hr", "img", "input", "meta", "link"})


@dataclass
class Event:
    """A native event dispatched to an element.

    Parameters
    ----------
    type : str
        Event type (``"mousedown"``, ``"dragstart"``, ``"click"``, ...)
    button : int, default 0
        Mouse button for pointer events
    key : str, optional
        Key name for keyboard events

    """

    type: str
    button: int = 0
    key: str | None = None
    target: Optional["Element"] = None
    current_target: Optional["Element"] = None
    default_prevented: bool = False
    propagation_stopped: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class TextNode:
    """A text leaf in the element tree."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.parent: Element | None = None

    def __repr__(self) -> str:
        return f"TextNode({self.text!r})"

    @property
    def text_content(self) -> str:
        return self.text

    def to_html(self) -> str:
        return html.escape(self.text, quote=False)


class ClassList:
    """Live view over an element's ``class`` attribute."""

    def __init__(self, element: Element) -> None:
        self._element = element

    def _names(self) -> list[str]:
        return str(self._element.attrs.get("class", "")).split()

    def _store(self, names: list[str]) -> None:
        if names:
            self._element.attrs["class"] = " ".join(names)
        else:
            self._element.attrs.pop("class", None)

    def add(self, *names: str) -> None:
        current = self._names()
        current.extend(name for name in names if name not in current)
        self._store(current)

    def remove(self, *names: str) -> None:
        self._store([name for name in self._names() if name not in names])

    def toggle(self, name: str, force: bool | None = None) -> bool:
        present = name in self
        wanted = not present if force is None else force
        if wanted and not present:
            self.add(name)
        elif not wanted and present:
            self.remove(name)
        return wanted

    def __contains__(self, name: object) -> bool:
        return name in self._names()

    def __iter__(self) -> Iterator[str]:
        return iter(self._names())

    def __len__(self) -> int:
        return len(self._names())


Child = Union["Element", TextNode]


class Element:
    """An element with attributes, children and event listeners.

    Parameters
    ----------
    tag : str
        Tag name (``"div"``, ``"span"``, ``"h2"``, ...)
    attrs : dict, optional
        Attributes; ``None`` values are dropped
    children : iterable, optional
        Child elements or strings (wrapped in :class:`TextNode`)

    """

    def __init__(
        self,
        tag: str,
        attrs: dict[str, Any] | None = None,
        children: list[Child | str] | None = None,
    ) -> None:
        self.tag = tag
        self.attrs: dict[str, Any] = {key: value for key, value in (attrs or {}).items() if value is not None}
        self.children: list[Child] = []
        self.parent: Element | None = None
        self._listeners: dict[str, list[Listener]] = {}
        for child in children or []:
            self.append_child(child)

    def __repr__(self) -> str:
        return f"<Element {self.tag} {self.attrs!r}>"

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    @property
    def class_list(self) -> ClassList:
        return ClassList(self)

    @property
    def class_name(self) -> str:
        return str(self.attrs.get("class", ""))

    @property
    def id(self) -> str | None:
        return self.attrs.get("id")

    def get_attribute(self, name: str) -> Any:
        return self.attrs.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        if value is None:
            self.attrs.pop(name, None)
        else:
            self.attrs[name] = value

    # ------------------------------------------------------------------
    # Tree structure
    # ------------------------------------------------------------------

    def append_child(self, child: Child | str) -> Child:
        node: Child = TextNode(child) if isinstance(child, str) else child
        if node.parent is not None:
            node.parent.remove_child(node)
        node.parent = self
        self.children.append(node)
        return node

    def insert_before(self, child: Child, reference: Child | None) -> Child:
        if reference is None:
            return self.append_child(child)
        if child.parent is not None:
            child.parent.remove_child(child)
        index = self.children.index(reference)
        child.parent = self
        self.children.insert(index, child)
        return child

    def remove_child(self, child: Child) -> Child:
        self.children.remove(child)
        child.parent = None
        return child

    def replace_children(self, *children: Child | str) -> None:
        for child in list(self.children):
            self.remove_child(child)
        for child in children:
            self.append_child(child)

    def remove(self) -> None:
        """Detach this element from its parent."""
        if self.parent is not None:
            self.parent.remove_child(self)

    def _sibling(self, offset: int) -> Child | None:
        if self.parent is None:
            return None
        index = self.parent.children.index(self) + offset
        if 0 <= index < len(self.parent.children):
            return self.parent.children[index]
        return None

    @property
    def previous_sibling(self) -> Child | None:
        return self._sibling(-1)

    @property
    def next_sibling(self) -> Child | None:
        return self._sibling(1)

    @property
    def text_content(self) -> str:
        return "".join(child.text_content for child in self.children)

    def iter(self) -> Iterator[Element]:
        """Yield this element and every descendant element, depth-first."""
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter()

    def contains(self, other: Child) -> bool:
        node: Child | None = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def _matches(self, selector: str) -> bool:
        if selector.startswith("."):
            return selector[1:] in self.class_list
        if selector.startswith("#"):
            return self.id == selector[1:]
        if "." in selector:
            tag, class_name = selector.split(".", 1)
            return self.tag == tag and class_name in self.class_list
        return self.tag == selector

    def query_selector(self, selector: str) -> Element | None:
        """Return the first descendant matching ``tag``, ``.class``, ``#id`` or ``tag.class``."""
        for element in self.iter():
            if element is not self and element._matches(selector):
                return element
        return None

    def query_selector_all(self, selector: str) -> list[Element]:
        return [element for element in self.iter() if element is not self and element._matches(selector)]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event: Event) -> bool:
        """Dispatch ``event`` at this element and bubble it to the ancestors.

        Returns
        -------
        bool
            False when a listener called ``prevent_default``

        """
        event.target = self
        element: Element | None = self
        while element is not None and not event.propagation_stopped:
            event.current_target = element
            for listener in list(element._listeners.get(event.type, [])):
                listener(event)
            element = element.parent
        event.current_target = None
        return not event.default_prevented

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_html(self) -> str:
        attrs = "".join(
            f' {name}="{html.escape(str(value), quote=True)}"' if value is not True else f" {name}"
            for name, value in self.attrs.items()
            if value is not False
        )
        if self.tag in VOID_ELEMENTS:
            return f"<{self.tag}{attrs}>"
        inner = "".join(child.to_html() for child in self.children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"
