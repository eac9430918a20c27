#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/parsers/markdown.py
"""Markdown to document parser.

This module turns markdown text into a document of a given schema. The text
is parsed with mistune, flattened into a :mod:`token stream
<richdoc.parsers.tokens>` and then replayed against the parse rules the
schema's node and mark types declare.

Unknown tokens never abort a parse. A container whose children are inline
becomes a paragraph, any other container is unwrapped (its children are kept
in place), a leaf with text becomes plain text, and a leaf without text is
dropped. Every such substitution is recorded as a :class:`ParseWarning`;
with ``strict=True`` the first one raises :class:`ParsingError` instead.

An HTML block holding nothing but ``<br>`` is how the serializer writes an
empty paragraph, and it parses back to one.

Purely presentational attributes (fold state) have no markdown syntax and
always come back as their declared defaults.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from richdoc.constants import DEPS_MARKDOWN
from richdoc.exceptions import AttributeValidationError, ParsingError, SchemaError
from richdoc.model.node import Mark, add_mark, remove_mark
from richdoc.options.markdown import MarkdownParserOptions
from richdoc.parsers.tokens import Token, tokenize
from richdoc.utils.decorators import debug_timer, requires_dependencies

if TYPE_CHECKING:
    from richdoc.hooks import HookManager
    from richdoc.model.node import Node
    from richdoc.model.schema import MarkdownParseRule, MarkType, NodeType, SchemaRegistry

logger = logging.getLogger(__name__)

# Serialized form of an empty paragraph
_EMPTY_PARAGRAPH_RE = re.compile(r"<br\s*>", re.IGNORECASE)


@dataclass(frozen=True)
class ParseWarning:
    """A non-fatal problem found while parsing.

    Parameters
    ----------
    token_type : str
        Type of the token that could not be mapped exactly
    message : str
        What was done instead

    """

    token_type: str
    message: str

    def __str__(self) -> str:
        return f"{self.token_type}: {self.message}"


@dataclass
class ParseResult:
    """Document produced by a parse, with the warnings collected on the way."""

    doc: "Node"
    warnings: list[ParseWarning] = field(default_factory=list)


@dataclass
class _Frame:
    type: "NodeType"
    attrs: dict[str, Any]
    content: list["Node"] = field(default_factory=list)
    marks: tuple[Mark, ...] = ()


Handler = Callable[[Token], None]


class MarkdownParser:
    """Parser from markdown text to documents of ``schema``.

    Parameters
    ----------
    schema : SchemaRegistry
        Frozen schema whose types declare markdown parse rules
    options : MarkdownParserOptions, optional
        Parser configuration
    hooks : HookManager, optional
        Node-type and ``post_parse`` hooks run on the finished document

    """

    def __init__(
        self,
        schema: "SchemaRegistry",
        options: Optional[MarkdownParserOptions] = None,
        hooks: "HookManager | None" = None,
    ) -> None:
        self.schema = schema
        self.options = options or MarkdownParserOptions()
        self.hooks = hooks
        self._handlers = self._build_handlers()
        self._stack: list[_Frame] = []
        self._degraded: list[str] = []
        self._warnings: list[ParseWarning] = []

    def _build_handlers(self) -> dict[str, Handler]:
        handlers: dict[str, Handler] = {
            "text": lambda token: self.add_text(token.content),
            "softbreak": lambda token: self.add_text(" "),
            "html_block": self._html_block,
        }
        for node_type in self.schema.nodes.values():
            for rule in node_type.parse_rules:
                self._add_node_rule(handlers, node_type, rule)
        for mark_type in self.schema.marks.values():
            for rule in mark_type.parse_rules:
                self._add_mark_rule(handlers, mark_type, rule)
        return handlers

    def _add_node_rule(self, handlers: dict[str, Handler], node_type: "NodeType", rule: "MarkdownParseRule") -> None:
        def attrs_of(token: Token) -> dict[str, Any]:
            return rule.get_attrs(token) if rule.get_attrs else {}

        if rule.kind == "node":
            handlers[rule.token] = lambda token: self.add_node(node_type, attrs_of(token))
            return

        def open_block(token: Token) -> None:
            self.open_node(node_type, attrs_of(token))

        def leaf_block(token: Token) -> None:
            # Blocks without a close token carry their text inline (code blocks)
            self.open_node(node_type, attrs_of(token))
            self.add_text(token.content[:-1] if token.content.endswith("\n") else token.content)
            self.close_node()

        handlers[f"{rule.token}_open"] = open_block
        handlers[f"{rule.token}_close"] = lambda token: self.close_node()
        handlers[rule.token] = leaf_block

    def _add_mark_rule(self, handlers: dict[str, Handler], mark_type: "MarkType", rule: "MarkdownParseRule") -> None:
        def make_mark(token: Token) -> Mark:
            return self.schema.mark(mark_type, rule.get_attrs(token) if rule.get_attrs else None)

        def leaf_mark(token: Token) -> None:
            # Marks without a close token wrap their own text (inline code)
            self.open_mark(make_mark(token))
            self.add_text(token.content)
            self.close_mark(mark_type)

        handlers[f"{rule.token}_open"] = lambda token: self.open_mark(make_mark(token))
        handlers[f"{rule.token}_close"] = lambda token: self.close_mark(mark_type)
        handlers[rule.token] = leaf_mark

    # ------------------------------------------------------------------
    # Parse state
    # ------------------------------------------------------------------

    @property
    def top(self) -> _Frame:
        return self._stack[-1]

    @property
    def in_inline(self) -> bool:
        """Whether the innermost open node holds inline content."""
        return self.top.type.inline_content

    def open_node(self, node_type: "NodeType", attrs: dict[str, Any]) -> None:
        self._stack.append(_Frame(node_type, attrs))

    def close_node(self) -> "Node":
        frame = self._stack.pop()
        node = self._create(frame)
        if self._stack:
            self.top.content.append(node)
        return node

    def _create(self, frame: _Frame) -> "Node":
        attrs = frame.attrs
        try:
            self.schema.validate_attrs(frame.type, attrs)
        except AttributeValidationError as e:
            self.warn(frame.type.name, f"{e.message}; using defaults")
            attrs = {}

        try:
            return self.schema.node(frame.type, attrs, frame.content)
        except SchemaError as e:
            fill = frame.type.expression.required_fill()
            if not fill:
                raise ParsingError(f"Cannot build '{frame.type.name}': {e.message}", self._warnings, e) from e
            first = self.schema.create_and_fill(fill[0])
            try:
                node = self.schema.node(frame.type, attrs, [first, *frame.content])
            except SchemaError:
                raise ParsingError(f"Cannot build '{frame.type.name}': {e.message}", self._warnings, e) from e
            logger.debug(f"Filled '{frame.type.name}' with a leading '{fill[0]}'")
            return node

    def add_text(self, text: str) -> None:
        if not text:
            return
        if not self.in_inline:
            self._add_text_block(text)
            return
        self.top.content.append(self.schema.text(text, self.top.marks))

    def _add_text_block(self, text: str) -> None:
        block = self.schema.default_block_type
        self.top.content.append(self.schema.node(block, None, [self.schema.text(text)]))

    def add_node(self, node_type: "NodeType", attrs: dict[str, Any]) -> None:
        if node_type.inline and not self.in_inline:
            self.open_node(self.schema.default_block_type, {})
            self.add_node(node_type, attrs)
            self.close_node()
            return
        try:
            node = self.schema.node(node_type, attrs, marks=self.top.marks)
        except AttributeValidationError as e:
            self.warn(node_type.name, f"{e.message}; using defaults")
            node = self.schema.node(node_type, None, marks=self.top.marks)
        self.top.content.append(node)

    def open_mark(self, mark: Mark) -> None:
        self.top.marks = add_mark(self.top.marks, mark)

    def close_mark(self, mark_type: "MarkType") -> None:
        self.top.marks = remove_mark(self.top.marks, mark_type)

    def warn(self, token_type: str, message: str) -> None:
        warning = ParseWarning(token_type, message)
        if self.options.strict:
            raise ParsingError(f"Unsupported markdown: {warning}", [*self._warnings, warning])
        logger.warning(f"Markdown parse: {warning}")
        self._warnings.append(warning)

    # ------------------------------------------------------------------
    # Degradation
    # ------------------------------------------------------------------

    def _html_block(self, token: Token) -> None:
        if _EMPTY_PARAGRAPH_RE.fullmatch(token.content.strip()):
            self.open_node(self.schema.default_block_type, {})
            self.close_node()
            return
        self._degrade(token)

    def _degrade(self, token: Token) -> None:
        if token.nesting == 1:
            if not self.in_inline and token.meta.get("inline_children"):
                self.warn(token.kind, "converted to paragraph")
                self.open_node(self.schema.default_block_type, {})
                self._degraded.append("block")
            else:
                self.warn(token.kind, "unwrapped, children kept")
                self._degraded.append("unwrap")
        elif token.nesting == -1:
            action = self._degraded.pop() if self._degraded else "unwrap"
            if action == "block":
                self.close_node()
        elif token.content.strip():
            self.warn(token.type, "converted to text")
            text = token.content[:-1] if token.content.endswith("\n") else token.content
            self.add_text(text)
        else:
            self.warn(token.type, "dropped")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse_tokens(self, tokens: list[Token]) -> ParseResult:
        """Build a document from a flat token stream."""
        self._stack = [_Frame(self.schema.top_node_type, {})]
        self._degraded = []
        self._warnings = []

        for token in tokens:
            handler = self._handlers.get(token.type)
            if handler is None:
                self._degrade(token)
            else:
                handler(token)

        doc = self.close_node()
        while self._stack:
            doc = self.close_node()

        if self.hooks is not None:
            from richdoc.hooks import HookContext

            context = HookContext(document=doc, metadata={"warnings": list(self._warnings)})
            doc = self.hooks.apply_node_hooks(doc, context)
            context.document = doc
            doc = self.hooks.run_pipeline_hook("post_parse", doc, context)

        return ParseResult(doc, list(self._warnings))

    @requires_dependencies("markdown", DEPS_MARKDOWN)
    def parse(self, text: str) -> ParseResult:
        """Parse markdown text.

        Parameters
        ----------
        text : str
            Markdown source

        Returns
        -------
        ParseResult
            The document and any parse warnings

        Raises
        ------
        ParsingError
            In strict mode, when a token has no mapping in the schema
        DependencyError
            If mistune is not installed

        """
        import mistune

        plugins = []
        if self.options.parse_strikethrough:
            plugins.append("strikethrough")

        markdown = mistune.create_markdown(plugins=plugins, renderer=None)

        with debug_timer(logger, "Markdown parse"):
            mistune_tokens, _state = markdown.parse(text)
            if not isinstance(mistune_tokens, list):
                mistune_tokens = []
            result = self.parse_tokens(tokenize(mistune_tokens))

        if result.warnings:
            logger.info(f"Markdown parsed with {len(result.warnings)} warning(s)")
        return result


def parse(
    text: str,
    schema: "SchemaRegistry",
    options: Optional[MarkdownParserOptions] = None,
    hooks: "HookManager | None" = None,
) -> "Node":
    """Parse markdown text into a document of ``schema``.

    Warnings are logged; use :class:`MarkdownParser` to inspect them.
    """
    return MarkdownParser(schema, options, hooks).parse(text).doc


__all__ = ["MarkdownParser", "ParseResult", "ParseWarning", "parse"]
