#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/state.py
"""Editor state and plugins.

:class:`EditorState` bundles an immutable document, its selection and the
state of every plugin. Applying a transaction produces a new state; the old
one is left untouched.

Plugins contribute per-state values (for example a decoration set) through a
pair of pure functions: ``init(state)`` computes the value for a fresh state
and ``apply(tr, value, old_state, new_state)`` derives the next value from a
transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Iterable, Optional

from richdoc.exceptions import TransactionRejectedError, TransformError
from richdoc.model.selection import Selection
from richdoc.model.transaction import Rejected, Transaction, apply

if TYPE_CHECKING:
    from richdoc.model.node import Node
    from richdoc.model.schema import SchemaRegistry
    from richdoc.view.decorations import DecorationSet

logger = logging.getLogger(__name__)


class PluginKey:
    """Unique key used to look up a plugin and its state.

    Keys created with the same name get distinct ids (``anchors$``,
    ``anchors$1``, ...).
    """

    _counts: ClassVar[dict[str, int]] = {}

    def __init__(self, name: str = "plugin") -> None:
        count = PluginKey._counts.get(name, 0)
        PluginKey._counts[name] = count + 1
        self.name = name
        self.key = f"{name}${count or ''}"

    def __repr__(self) -> str:
        return f"PluginKey({self.key!r})"

    def get_state(self, state: EditorState) -> Any:
        """Return the plugin state stored under this key in ``state``."""
        return state.plugin_state(self)


InitFn = Callable[["EditorState"], Any]
ApplyFn = Callable[[Transaction, Any, "EditorState", "EditorState"], Any]
DecorationsFn = Callable[["EditorState"], Optional["DecorationSet"]]


@dataclass(eq=False)
class Plugin:
    """A state plugin.

    Parameters
    ----------
    key : PluginKey
        Key under which the plugin state is stored
    init : callable, optional
        ``init(state) -> value``
    apply : callable, optional
        ``apply(tr, value, old_state, new_state) -> value``
    decorations : callable, optional
        ``decorations(state) -> DecorationSet | None`` view prop
    props : dict
        Further view props (e.g. ``handle_click``)

    """

    key: PluginKey = field(default_factory=PluginKey)
    init: Optional[InitFn] = None
    apply: Optional[ApplyFn] = None
    decorations: Optional[DecorationsFn] = None
    props: dict[str, Any] = field(default_factory=dict)

    def get_state(self, state: EditorState) -> Any:
        return state.plugin_state(self.key)


class EditorState:
    """An immutable editor state.

    Use :meth:`create` to build a fresh state and :meth:`apply` to derive the
    next one from a transaction.
    """

    def __init__(
        self,
        schema: "SchemaRegistry",
        doc: "Node",
        selection: Selection,
        plugins: tuple[Plugin, ...],
        plugin_states: dict[str, Any],
    ) -> None:
        self.schema = schema
        self.doc = doc
        self.selection = selection
        self.plugins = plugins
        self._plugin_states = plugin_states

    @classmethod
    def create(
        cls,
        schema: "SchemaRegistry",
        doc: "Node | None" = None,
        selection: Selection | None = None,
        plugins: Iterable[Plugin] = (),
    ) -> EditorState:
        """Create a state, initializing every plugin.

        Parameters
        ----------
        schema : SchemaRegistry
            Frozen schema
        doc : Node, optional
            Initial document; defaults to an empty document filled to satisfy
            the top node's content expression
        selection : Selection, optional
            Initial selection; defaults to the start of the document
        plugins : iterable of Plugin
            Plugins in priority order

        """
        if doc is None:
            doc = schema.create_and_fill(schema.top_node_type)
        if selection is None:
            selection = Selection.at_start(doc)
        plugin_list = tuple(plugins)
        keys = [plugin.key.key for plugin in plugin_list]
        if len(set(keys)) != len(keys):
            raise TransformError(f"Duplicate plugin keys: {keys}")

        state = cls(schema, doc, selection, plugin_list, {})
        for plugin in plugin_list:
            if plugin.init is not None:
                state._plugin_states[plugin.key.key] = plugin.init(state)
        return state

    def __repr__(self) -> str:
        return f"<EditorState doc_size={self.doc.content_size} selection={self.selection!r}>"

    @property
    def tr(self) -> Transaction:
        """A new transaction starting from this state."""
        return Transaction(self.doc, self.selection, self.schema)

    def plugin_state(self, key: PluginKey) -> Any:
        return self._plugin_states.get(key.key)

    def apply(self, tr: Transaction) -> EditorState:
        """Apply ``tr`` and return the resulting state.

        Raises
        ------
        TransactionRejectedError
            If any step of the transaction failed; the state is unchanged
        TransformError
            If the transaction was built for a different document

        """
        if tr.before is not self.doc and tr.before != self.doc:
            raise TransformError("Applying a transaction built for a different document")
        result = apply(self.doc, tr)
        if isinstance(result, Rejected):
            raise TransactionRejectedError(result)

        new_state = EditorState(self.schema, result, tr.selection, self.plugins, {})
        for plugin in self.plugins:
            value = self._plugin_states.get(plugin.key.key)
            if plugin.apply is not None:
                value = plugin.apply(tr, value, self, new_state)
            new_state._plugin_states[plugin.key.key] = value
        logger.debug(f"Applied transaction with {len(tr.steps)} step(s), doc_changed={tr.doc_changed}")
        return new_state

    def reconfigure(self, plugins: Iterable[Plugin]) -> EditorState:
        """Return a state with a new plugin set, reusing existing plugin states by key."""
        plugin_list = tuple(plugins)
        state = EditorState(self.schema, self.doc, self.selection, plugin_list, {})
        for plugin in plugin_list:
            if plugin.key.key in self._plugin_states:
                state._plugin_states[plugin.key.key] = self._plugin_states[plugin.key.key]
            elif plugin.init is not None:
                state._plugin_states[plugin.key.key] = plugin.init(state)
        return state

    def to_json(self) -> dict[str, Any]:
        return {"doc": self.doc.to_json(), "selection": self.selection.to_json()}

    @classmethod
    def from_json(
        cls, schema: "SchemaRegistry", data: dict[str, Any], plugins: Iterable[Plugin] = ()
    ) -> EditorState:
        doc = schema.node_from_json(data["doc"])
        selection = Selection.from_json(doc, data["selection"]) if "selection" in data else None
        return cls.create(schema, doc, selection, plugins)
