#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/extensions/manager.py
"""Assembly of an editor from extensions.

:class:`ExtensionManager` registers the node and mark types of a list of
extensions in a :class:`SchemaRegistry`, freezes it and then collects
everything else the extensions contribute: key bindings, input rules, state
plugins, node view components and named commands. It is also the factory
for the markdown parser and serializer, editor states and editor views of
that schema.

Third-party extensions are discovered through the ``richdoc.extensions``
entry-point group; each entry point must load an :class:`Extension`
subclass.

Examples
--------
    >>> manager = ExtensionManager(default_extensions())
    >>> state = manager.create_state(manager.parse("# Overview\\n"))
    >>> manager.serialize(state.doc)
    '# Overview\\n'

"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from richdoc.commands.input_rules import InputRule
from richdoc.commands.keymap import Keymap
from richdoc.exceptions import DuplicateTypeError
from richdoc.extensions.base import Extension
from richdoc.extensions.marks import CodeInline, Emphasis, Link, Strikethrough, Strong
from richdoc.extensions.nodes.basic import (
    BaseKeymap,
    Blockquote,
    CodeBlock,
    Doc,
    HardBreak,
    HorizontalRule,
    Paragraph,
    Text,
)
from richdoc.extensions.nodes.heading import Heading
from richdoc.extensions.nodes.image import Image
from richdoc.extensions.nodes.lists import BulletList, ListItem, OrderedList
from richdoc.model.schema import SchemaRegistry
from richdoc.model.state import EditorState, Plugin
from richdoc.options.editor import EditorOptions
from richdoc.options.markdown import MarkdownParserOptions, MarkdownSerializerOptions
from richdoc.parsers.markdown import MarkdownParser, ParseResult
from richdoc.renderers.markdown import MarkdownSerializer

if TYPE_CHECKING:
    from richdoc.commands import Command
    from richdoc.hooks import HookManager
    from richdoc.model.node import Node
    from richdoc.model.selection import Selection
    from richdoc.view.editor_view import EditorView
    from richdoc.view.node_view import Component

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "richdoc.extensions"

# Registration order matters: paragraph must be the first block type
DEFAULT_EXTENSION_CLASSES: tuple[type[Extension], ...] = (
    Doc,
    Paragraph,
    Text,
    HardBreak,
    Heading,
    Blockquote,
    CodeBlock,
    HorizontalRule,
    BulletList,
    OrderedList,
    ListItem,
    Image,
    Link,
    Emphasis,
    Strong,
    CodeInline,
    Strikethrough,
    BaseKeymap,
)


def default_extensions(options: EditorOptions | None = None) -> list[Extension]:
    """Instantiate the built-in extensions."""
    options = options or EditorOptions()
    return [extension_class(options) for extension_class in DEFAULT_EXTENSION_CLASSES]


def discover_extensions(options: EditorOptions | None = None) -> list[Extension]:
    """Instantiate the extensions registered by installed packages.

    Entry points that fail to load or do not provide an :class:`Extension`
    subclass are skipped with a warning.
    """
    options = options or EditorOptions()
    found: list[Extension] = []
    for entry_point in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
        dist_name = entry_point.dist.name if entry_point.dist else "unknown"
        try:
            extension_class = entry_point.load()
        except (ImportError, AttributeError) as e:
            logger.warning(f"Failed to load extension '{entry_point.name}' from '{dist_name}': {e}")
            continue
        if not (isinstance(extension_class, type) and issubclass(extension_class, Extension)):
            logger.warning(f"Entry point '{entry_point.name}' from '{dist_name}' did not return an Extension subclass")
            continue
        found.append(extension_class(options))
        logger.info(f"Registered extension '{extension_class.name}' from package '{dist_name}'")
    return found


class ExtensionManager:
    """Build a schema and its editor machinery from extensions.

    Parameters
    ----------
    extensions : iterable of Extension
        Extensions in registration order
    options : EditorOptions, optional
        Editor configuration (used for the keymap platform and views)
    parser_options : MarkdownParserOptions, optional
        Markdown parser configuration
    serializer_options : MarkdownSerializerOptions, optional
        Markdown serializer configuration
    hooks : HookManager, optional
        Hooks for parsing, serialization and applied transactions

    Raises
    ------
    DuplicateTypeError
        If two extensions share a name
    SchemaError
        If the contributed types do not form a valid schema

    """

    def __init__(
        self,
        extensions: Iterable[Extension],
        options: EditorOptions | None = None,
        parser_options: Optional[MarkdownParserOptions] = None,
        serializer_options: Optional[MarkdownSerializerOptions] = None,
        hooks: "HookManager | None" = None,
    ) -> None:
        self.extensions = list(extensions)
        self.options = options or EditorOptions()
        self.parser_options = parser_options or MarkdownParserOptions()
        self.serializer_options = serializer_options or MarkdownSerializerOptions()
        self.hooks = hooks

        names = [extension.name for extension in self.extensions]
        for name in names:
            if names.count(name) > 1:
                raise DuplicateTypeError(name, f"Extension '{name}' is registered more than once")

        self.schema = self._build_schema()
        self.keymap = self._build_keymap()
        self.input_rules: list[InputRule] = [
            rule for extension in self.extensions for rule in extension.input_rules(self.schema)
        ]
        self.plugins: list[Plugin] = [
            plugin for extension in self.extensions for plugin in extension.plugins(self.schema)
        ]
        self.node_views: dict[str, "Component"] = {}
        self.commands: dict[str, Callable[..., "Command"]] = {}
        for extension in self.extensions:
            component = extension.component()
            if component is not None:
                self.node_views[extension.name] = component
            self.commands.update(extension.commands(self.schema))
        logger.debug(
            f"Built editor from {len(self.extensions)} extension(s): {len(self.plugins)} plugin(s), "
            f"{len(self.input_rules)} input rule(s), {len(self.node_views)} node view(s)"
        )

    @classmethod
    def default(cls, options: EditorOptions | None = None, discover: bool = False, **kwargs: Any) -> ExtensionManager:
        """Manager for the built-in extensions, plus discovered ones when ``discover`` is True."""
        extensions = default_extensions(options)
        if discover:
            extensions.extend(discover_extensions(options))
        return cls(extensions, options, **kwargs)

    def _build_schema(self) -> SchemaRegistry:
        registry = SchemaRegistry()
        for extension in self.extensions:
            if extension.kind == "node":
                registry.register(extension.node_type())
            elif extension.kind == "mark":
                registry.register_mark(extension.mark_type())
        return registry.freeze()

    def _build_keymap(self) -> Keymap:
        keymap = Keymap(self.options.platform)
        for extension in self.extensions:
            keymap.bind_all(extension.scoped_keys(self.schema), context=extension.name)
        for extension in self.extensions:
            keymap.bind_all(extension.keys(self.schema))
        return keymap

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def parser(self) -> MarkdownParser:
        return MarkdownParser(self.schema, self.parser_options, self.hooks)

    def serializer(self) -> MarkdownSerializer:
        return MarkdownSerializer(self.serializer_options, self.hooks)

    def parse_with_warnings(self, text: str) -> ParseResult:
        return self.parser().parse(text)

    def parse(self, text: str) -> "Node":
        """Parse markdown text into a document of this schema."""
        return self.parse_with_warnings(text).doc

    def serialize(self, doc: "Node") -> str:
        return self.serializer().serialize(doc)

    def create_state(self, doc: "Node | None" = None, selection: "Selection | None" = None) -> EditorState:
        """Create an editor state carrying every contributed plugin."""
        return EditorState.create(self.schema, doc, selection, self.plugins)

    def create_view(self, state: EditorState | None = None, **kwargs: Any) -> "EditorView":
        """Create an editor view wired to this manager's keymap, input rules, node views and hooks."""
        from richdoc.view.editor_view import EditorView

        kwargs.setdefault("options", self.options)
        kwargs.setdefault("node_views", self.node_views)
        kwargs.setdefault("keymap", self.keymap)
        kwargs.setdefault("input_rules", self.input_rules)
        kwargs.setdefault("hooks", self.hooks)
        return EditorView(state if state is not None else self.create_state(), **kwargs)

    def command(self, name: str, *args: Any) -> "Command":
        """Build the named command, e.g. ``manager.command("heading", 2)``.

        Raises
        ------
        KeyError
            If no extension provides the command
        """
        try:
            factory = self.commands[name]
        except KeyError:
            raise KeyError(f"Unknown command: {name!r}") from None
        return factory(*args)


def build_default_schema(options: EditorOptions | None = None) -> SchemaRegistry:
    """Frozen schema of the built-in extensions."""
    return ExtensionManager(default_extensions(options), options).schema


__all__ = [
    "DEFAULT_EXTENSION_CLASSES",
    "ENTRY_POINT_GROUP",
    "ExtensionManager",
    "build_default_schema",
    "default_extensions",
    "discover_extensions",
]
