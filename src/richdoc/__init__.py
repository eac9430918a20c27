"""richdoc - A schema-driven rich-text document model with a markdown codec.

richdoc provides the editing core of a rich-text editor: a schema of node
and mark types, immutable documents addressed by integer positions,
transactions built from position-mapped steps, selections, state plugins and
view-only decorations. Around that core it ships headings with stable
anchors and folding, a markdown parser and serializer, a keymap and input
rules, and node views that render nodes through foreign components.

Examples
--------
Parse, edit and serialize a document:

    >>> from richdoc import ExtensionManager
    >>> manager = ExtensionManager.default()
    >>> state = manager.create_state(manager.parse("Overview\\n"))
    >>> manager.command("heading", 2)(state, None)
    True

List the anchors of a document:

    >>> from richdoc import get_headings
    >>> [h.id for h in get_headings(manager.parse("# Overview\\n\\n# Overview\\n"))]
    ['overview', 'overview-1']

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "richdoc requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from richdoc.exceptions import (  # noqa: E402
    DependencyError,
    NodeViewLifecycleError,
    ParsingError,
    PositionError,
    RenderingError,
    RichDocError,
    SchemaError,
    TransactionRejectedError,
    TransformError,
    ValidationError,
)
from richdoc.extensions import Extension, ExtensionManager, default_extensions  # noqa: E402
from richdoc.hooks import HookContext, HookManager  # noqa: E402
from richdoc.model import (  # noqa: E402
    EditorState,
    Mark,
    Node,
    NodeSelection,
    Plugin,
    PluginKey,
    SchemaRegistry,
    Selection,
    TextSelection,
    Transaction,
)
from richdoc.options import EditorOptions, MarkdownParserOptions, MarkdownSerializerOptions  # noqa: E402
from richdoc.plugins import HeadingInfo, get_anchors, get_headings  # noqa: E402
from richdoc.view.decorations import Decoration, DecorationSet  # noqa: E402
from richdoc.view.editor_view import EditorView  # noqa: E402
from richdoc.view.node_view import ComponentProps, ComponentView  # noqa: E402

__all__ = [
    "ComponentProps",
    "ComponentView",
    "Decoration",
    "DecorationSet",
    "DependencyError",
    "EditorOptions",
    "EditorState",
    "EditorView",
    "Extension",
    "ExtensionManager",
    "HeadingInfo",
    "HookContext",
    "HookManager",
    "Mark",
    "MarkdownParserOptions",
    "MarkdownSerializerOptions",
    "Node",
    "NodeSelection",
    "NodeViewLifecycleError",
    "ParsingError",
    "Plugin",
    "PluginKey",
    "PositionError",
    "RenderingError",
    "RichDocError",
    "SchemaError",
    "SchemaRegistry",
    "Selection",
    "TextSelection",
    "Transaction",
    "TransactionRejectedError",
    "TransformError",
    "ValidationError",
    "__version__",
    "default_extensions",
    "get_anchors",
    "get_headings",
]
