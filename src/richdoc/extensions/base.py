#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/base.py
"""Base classes for editor extensions.

An extension bundles everything one feature contributes to an editor: a
node or mark type (with its markdown rules and element rendering), key
bindings, input rules, state plugins, named commands and, for node types
rendered by a foreign component, the component itself.

Extensions are instantiated with the shared :class:`EditorOptions` plus
their own keyword settings and are combined by
:class:`~richdoc.extensions.manager.ExtensionManager`. Every contribution
method except :meth:`Extension.node_type`/:meth:`Extension.mark_type`
receives the frozen schema, so commands are built against the compiled
types.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Literal, Mapping

from richdoc.options.editor import EditorOptions

if TYPE_CHECKING:
    from richdoc.commands import Command
    from richdoc.commands.input_rules import InputRule
    from richdoc.model.schema import MarkType, NodeType, SchemaRegistry
    from richdoc.model.state import Plugin
    from richdoc.view.node_view import Component

logger = logging.getLogger(__name__)

ExtensionKind = Literal["node", "mark", "extension"]


class Extension:
    """A feature contributed to the editor.

    Parameters
    ----------
    options : EditorOptions, optional
        Shared editor configuration
    **settings : Any
        Extension-specific settings, merged over :attr:`default_settings`

    Attributes
    ----------
    name : str
        Unique name; for node and mark extensions, the type name
    kind : {"node", "mark", "extension"}
        What the extension contributes to the schema

    """

    name: ClassVar[str] = ""
    kind: ClassVar[ExtensionKind] = "extension"
    default_settings: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, options: EditorOptions | None = None, **settings: Any) -> None:
        if not self.name:
            raise TypeError(f"{type(self).__name__} must define a name")
        unknown = sorted(set(settings) - set(self.default_settings))
        if unknown:
            raise TypeError(f"Unknown setting(s) for extension '{self.name}': {', '.join(unknown)}")
        self.options = options or EditorOptions()
        self.settings: dict[str, Any] = {**self.default_settings, **settings}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    # Schema contributions

    def node_type(self) -> "NodeType | None":
        return None

    def mark_type(self) -> "MarkType | None":
        return None

    # Editor contributions

    def keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        """Global key bindings."""
        return {}

    def scoped_keys(self, schema: "SchemaRegistry") -> Mapping[str, "Command"]:
        """Key bindings active only while the selection is inside this extension's node type."""
        return {}

    def input_rules(self, schema: "SchemaRegistry") -> list["InputRule"]:
        return []

    def plugins(self, schema: "SchemaRegistry") -> list["Plugin"]:
        return []

    def commands(self, schema: "SchemaRegistry") -> Mapping[str, Callable[..., "Command"]]:
        """Named command factories, e.g. ``{"heading": lambda level: ...}``."""
        return {}

    def component(self) -> "Component | None":
        """Foreign component rendering this node type through a node view."""
        return None


class NodeExtension(Extension):
    """Extension contributing a node type."""

    kind: ClassVar[ExtensionKind] = "node"

    def node_type(self) -> "NodeType":
        raise NotImplementedError


class MarkExtension(Extension):
    """Extension contributing a mark type."""

    kind: ClassVar[ExtensionKind] = "mark"

    def mark_type(self) -> "MarkType":
        raise NotImplementedError
