#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/schema.py
"""Schema registry for node and mark types.

A schema is the registry of every :class:`NodeType` and :class:`MarkType`
a document may contain. Types are plain descriptors: besides their
attribute contracts and content rules they carry function-valued fields
(``to_markdown``, ``to_dom``) and markdown parse rules, so every per-type
behavior is resolved by looking the type up by name rather than through a
class hierarchy.

The registry is filled once at start-up and then frozen. Freezing compiles
the content expressions, validates attribute defaults and assigns mark
ranks; afterwards the registry is read-only.

Examples
--------
    >>> registry = SchemaRegistry()
    >>> registry.register(NodeType(name="doc", content="block+"))
    >>> registry.register(NodeType(name="paragraph", content="inline*", groups=("block",)))
    >>> registry.register(NodeType(name="text", inline=True, groups=("inline",)))
    >>> schema = registry.freeze()
    >>> schema.node("paragraph", content=[schema.text("Hello")])

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Literal, Mapping, Sequence, Union

from richdoc.constants import DOC_TYPE, TEXT_TYPE
from richdoc.exceptions import (
    AttributeValidationError,
    ContentMatchError,
    DuplicateTypeError,
    SchemaError,
    UnknownTypeError,
)
from richdoc.model.content import ContentExpression

if TYPE_CHECKING:
    from richdoc.model.node import Mark, Node

logger = logging.getLogger(__name__)

Validator = Callable[[Any], bool]

_REQUIRED = object()

_SHORTHAND_VALIDATORS: dict[str, Validator] = {
    "number": lambda value: isinstance(value, (int, float)) and not isinstance(value, bool),
    "string": lambda value: isinstance(value, str),
    "boolean": lambda value: isinstance(value, bool),
    "null": lambda value: value is None,
}


def _compile_validator(validate: Validator | str | None) -> Validator | None:
    """Turn a validator shorthand such as ``"number|null"`` into a predicate."""
    if validate is None or callable(validate):
        return validate
    predicates = []
    for part in validate.split("|"):
        part = part.strip()
        if part not in _SHORTHAND_VALIDATORS:
            raise SchemaError(f"Unknown attribute validator shorthand: {part!r}")
        predicates.append(_SHORTHAND_VALIDATORS[part])
    return lambda value: any(predicate(value) for predicate in predicates)


@dataclass(frozen=True)
class AttributeSpec:
    """Contract for a single node or mark attribute.

    Parameters
    ----------
    default : Any, optional
        Value used when the attribute is not provided. Attributes without a
        default are required.
    validate : callable or str, optional
        Pure predicate, or a shorthand such as ``"number"`` or ``"string|null"``
    presentational : bool, default False
        Purely presentational state (e.g. fold state). Such attributes are
        not written by the markdown serializer and come back as the default
        after parsing.

    """

    default: Any = _REQUIRED
    validate: Validator | str | None = None
    presentational: bool = False

    @property
    def has_default(self) -> bool:
        """Whether a default value is declared."""
        return self.default is not _REQUIRED

    def check(self, value: Any) -> bool:
        """Return True when ``value`` passes the validator (or there is none)."""
        predicate = _compile_validator(self.validate)
        return predicate is None or bool(predicate(value))


@dataclass(frozen=True)
class MarkdownParseRule:
    """How a markdown token maps onto a schema type.

    Parameters
    ----------
    token : str
        Token kind as produced by :mod:`richdoc.parsers.tokens`
        (``"heading"``, ``"paragraph"``, ``"em"``, ...)
    kind : {"block", "node", "mark"}
        ``block`` wraps the token's children, ``node`` is a leaf created from
        the token alone, ``mark`` applies a mark to the token's inline content
    get_attrs : callable, optional
        Derives attributes from the token

    """

    token: str
    kind: Literal["block", "node", "mark"] = "block"
    get_attrs: Callable[[Any], dict[str, Any]] | None = None


@dataclass(frozen=True)
class MarkSerializerSpec:
    """Markdown serialization rule for a mark type.

    ``open`` and ``close`` are either literal strings or callables receiving
    ``(state, mark, parent, index)``. ``escape`` is False for marks whose
    content is written verbatim (inline code).
    """

    open: str | Callable[..., str]
    close: str | Callable[..., str]
    escape: bool = True
    expel_enclosing_whitespace: bool = False


@dataclass(frozen=True, eq=False)
class NodeType:
    """Descriptor of a node type.

    Parameters
    ----------
    name : str
        Unique type name
    attrs : Mapping[str, AttributeSpec]
        Attribute contracts
    content : str
        Content expression (empty for leaf nodes)
    groups : tuple of str
        Group names the type belongs to (e.g. ``("block",)``)
    inline : bool
        Inline (True) or block (False) node
    atom : bool
        Treated as a single unit even when it has content
    selectable : bool
        Can be selected as a unit (node selection)
    draggable : bool
        Can be dragged without being selected first
    defining : bool
        Keeps its type when its content is replaced wholesale
    code : bool
        Holds code; marks are not allowed and text is written verbatim
    marks : str or None
        Space-separated mark names allowed in the content, ``"_"`` for all
        and ``""`` for none. None means all for inline content, none otherwise.
    to_markdown : callable, optional
        ``(state, node, parent, index) -> None`` serialization rule
    parse_rules : tuple of MarkdownParseRule
        Markdown tokens mapped onto this type
    to_dom : callable, optional
        ``(node) -> Element`` rendering rule used by the editor view
    content_match : ContentExpression, optional
        Compiled content expression, set by :meth:`SchemaRegistry.freeze`

    """

    name: str
    attrs: Mapping[str, AttributeSpec] = field(default_factory=dict)
    content: str = ""
    groups: tuple[str, ...] = ()
    inline: bool = False
    atom: bool = False
    selectable: bool = True
    draggable: bool = False
    defining: bool = False
    code: bool = False
    marks: str | None = None
    to_markdown: Callable[..., None] | None = None
    parse_rules: tuple[MarkdownParseRule, ...] = ()
    to_dom: Callable[..., Any] | None = None
    content_match: ContentExpression | None = None

    def __repr__(self) -> str:
        return f"<NodeType {self.name}>"

    @property
    def is_text(self) -> bool:
        """Whether this is the text node type."""
        return self.name == TEXT_TYPE

    @property
    def is_block(self) -> bool:
        """Whether this is a block node type."""
        return not self.inline

    @property
    def is_textblock(self) -> bool:
        """Whether this is a block type with inline content."""
        return self.is_block and self.expression.inline_content

    @property
    def is_leaf(self) -> bool:
        """Whether this type allows no content."""
        return self.expression.is_empty

    @property
    def is_atom(self) -> bool:
        """Whether nodes of this type are edited as a single unit."""
        return self.is_leaf or self.atom

    @property
    def inline_content(self) -> bool:
        """Whether this type's content is inline."""
        return self.expression.inline_content

    @property
    def expression(self) -> ContentExpression:
        if self.content_match is None:
            raise SchemaError(f"Node type '{self.name}' has not been compiled; freeze the schema first", self.name)
        return self.content_match

    def allows_mark(self, mark_name: str) -> bool:
        """Return True when marks of ``mark_name`` may be applied to this type's content."""
        if self.code:
            return False
        if self.marks is None:
            return self.inline_content
        if self.marks == "_":
            return True
        return mark_name in self.marks.split()


@dataclass(frozen=True, eq=False)
class MarkType:
    """Descriptor of a mark type (inline formatting such as ``strong``).

    Parameters
    ----------
    name : str
        Unique mark name
    attrs : Mapping[str, AttributeSpec]
        Attribute contracts
    to_markdown : MarkSerializerSpec, optional
        Serialization rule
    parse_rules : tuple of MarkdownParseRule
        Markdown tokens mapped onto this mark
    to_dom : callable, optional
        ``(mark) -> Element`` wrapper element used by the editor view
    rank : int
        Registration order; marks on a node are kept sorted by rank

    """

    name: str
    attrs: Mapping[str, AttributeSpec] = field(default_factory=dict)
    to_markdown: MarkSerializerSpec | None = None
    parse_rules: tuple[MarkdownParseRule, ...] = ()
    to_dom: Callable[..., Any] | None = None
    rank: int = 0

    def __repr__(self) -> str:
        return f"<MarkType {self.name}>"


TypeRef = Union[str, NodeType]


class SchemaRegistry:
    """Registry of node and mark types.

    Parameters
    ----------
    top_node : str, default "doc"
        Name of the node type used as document root

    Notes
    -----
    The registry is read-only once :meth:`freeze` has been called; any
    further registration raises :class:`SchemaError`. Lookups and node
    construction require a frozen registry.

    """

    def __init__(self, top_node: str = DOC_TYPE) -> None:
        """Initialize an empty, unfrozen registry."""
        self.top_node = top_node
        self._nodes: dict[str, NodeType] = {}
        self._marks: dict[str, MarkType] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, node_type: NodeType) -> None:
        """Register a node type.

        Raises
        ------
        DuplicateTypeError
            If a node type with the same name is already registered
        SchemaError
            If the registry is frozen

        """
        self._ensure_mutable(node_type.name)
        if node_type.name in self._nodes:
            raise DuplicateTypeError(node_type.name)
        self._nodes[node_type.name] = node_type
        logger.debug(f"Registered node type: {node_type.name}")

    def register_mark(self, mark_type: MarkType) -> None:
        """Register a mark type.

        Raises
        ------
        DuplicateTypeError
            If a mark type with the same name is already registered
        SchemaError
            If the registry is frozen

        """
        self._ensure_mutable(mark_type.name)
        if mark_type.name in self._marks:
            raise DuplicateTypeError(mark_type.name)
        self._marks[mark_type.name] = mark_type
        logger.debug(f"Registered mark type: {mark_type.name}")

    def _ensure_mutable(self, type_name: str) -> None:
        if self._frozen:
            raise SchemaError(f"Cannot register '{type_name}': schema registry is frozen", type_name)

    def freeze(self) -> SchemaRegistry:
        """Compile content expressions and make the registry read-only.

        Returns
        -------
        SchemaRegistry
            ``self``, for chaining

        Raises
        ------
        SchemaError
            If the top node or text type is missing, a content expression is
            invalid, or an attribute default fails its own validator

        """
        if self._frozen:
            return self
        if self.top_node not in self._nodes:
            raise SchemaError(f"Schema is missing its top node type '{self.top_node}'", self.top_node)
        if TEXT_TYPE not in self._nodes:
            raise SchemaError("Schema is missing the 'text' node type", TEXT_TYPE)

        compiled: dict[str, NodeType] = {}
        for name, node_type in self._nodes.items():
            expression = ContentExpression.parse(node_type.content, self._nodes)
            compiled[name] = replace(node_type, content_match=expression)
            self._check_defaults(name, node_type.attrs)
        self._nodes = compiled

        self._marks = {name: replace(mark, rank=rank) for rank, (name, mark) in enumerate(self._marks.items())}
        for name, mark_type in self._marks.items():
            self._check_defaults(name, mark_type.attrs)

        self._frozen = True
        logger.debug(f"Schema frozen with {len(self._nodes)} node types and {len(self._marks)} mark types")
        return self

    @staticmethod
    def _check_defaults(type_name: str, attrs: Mapping[str, AttributeSpec]) -> None:
        for attr_name, spec in attrs.items():
            if spec.has_default and not spec.check(spec.default):
                raise AttributeValidationError(
                    type_name,
                    attr_name,
                    spec.default,
                    message=f"Default {spec.default!r} of '{type_name}.{attr_name}' fails its own validator",
                )

    @property
    def frozen(self) -> bool:
        """Whether the registry has been frozen."""
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Mapping[str, NodeType]:
        """Read-only view of the node types, in registration order."""
        self._ensure_frozen()
        return MappingProxyType(self._nodes)

    @property
    def marks(self) -> Mapping[str, MarkType]:
        """Read-only view of the mark types, in rank order."""
        self._ensure_frozen()
        return MappingProxyType(self._marks)

    def _ensure_frozen(self) -> None:
        if not self._frozen:
            raise SchemaError("Schema registry must be frozen before use")

    def node_type(self, name: TypeRef) -> NodeType:
        """Look up a node type by name (a NodeType is returned as-is)."""
        if isinstance(name, NodeType):
            return name
        self._ensure_frozen()
        try:
            return self._nodes[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def mark_type(self, name: str | MarkType) -> MarkType:
        """Look up a mark type by name (a MarkType is returned as-is)."""
        if isinstance(name, MarkType):
            return name
        self._ensure_frozen()
        try:
            return self._marks[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    @property
    def top_node_type(self) -> NodeType:
        """The document root type."""
        return self.node_type(self.top_node)

    @property
    def default_block_type(self) -> NodeType:
        """First registered textblock type, used when a plain block is needed."""
        for node_type in self.nodes.values():
            if node_type.is_textblock and "block" in node_type.groups:
                return node_type
        raise SchemaError("Schema has no textblock type in the 'block' group")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_attrs(self, type_ref: TypeRef | MarkType, attrs: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Fill missing attributes from defaults and validate the result.

        Parameters
        ----------
        type_ref : str, NodeType or MarkType
            Type whose attribute contract applies
        attrs : Mapping[str, Any], optional
            Provided attribute values

        Returns
        -------
        dict
            Complete attribute mapping

        Raises
        ------
        AttributeValidationError
            If an unknown key is provided, a required attribute is missing,
            or a provided value fails its validator

        """
        target = type_ref if isinstance(type_ref, MarkType) else self.node_type(type_ref)
        return compute_attrs(target, attrs)

    def check_content(self, type_ref: TypeRef, children: Sequence["Node"]) -> None:
        """Raise ContentMatchError when ``children`` violate the type's content expression.

        Marks on inline children are checked against the parent as well.
        """
        check_children(self.node_type(type_ref), children)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def node(
        self,
        type_ref: TypeRef,
        attrs: Mapping[str, Any] | None = None,
        content: Iterable["Node"] = (),
        marks: Iterable["Mark"] = (),
    ) -> "Node":
        """Create a validated node.

        Raises
        ------
        SchemaError
            If the type is unknown, attributes are invalid or the content
            does not match the type's content expression

        """
        from richdoc.model.node import Node, normalize_inline, sort_marks

        node_type = self.node_type(type_ref)
        if node_type.is_text:
            raise SchemaError("Use SchemaRegistry.text() to create text nodes", TEXT_TYPE)
        children = tuple(content)
        if node_type.inline_content:
            children = normalize_inline(children)
        self.check_content(node_type, children)
        return Node(
            type=node_type,
            attrs=MappingProxyType(self.validate_attrs(node_type, attrs)),
            content=children,
            marks=sort_marks(marks),
        )

    def text(self, text: str, marks: Iterable["Mark"] = ()) -> "Node":
        """Create a text node. Empty text is not allowed."""
        from richdoc.model.node import Node, sort_marks

        if not text:
            raise SchemaError("Empty text nodes are not allowed", TEXT_TYPE)
        return Node(type=self.node_type(TEXT_TYPE), attrs=MappingProxyType({}), text=text, marks=sort_marks(marks))

    def mark(self, name: str | MarkType, attrs: Mapping[str, Any] | None = None) -> "Mark":
        """Create a validated mark."""
        from richdoc.model.node import Mark

        mark_type = self.mark_type(name)
        return Mark(type=mark_type, attrs=MappingProxyType(self.validate_attrs(mark_type, attrs)))

    def create_and_fill(
        self, type_ref: TypeRef, attrs: Mapping[str, Any] | None = None, content: Iterable["Node"] = ()
    ) -> "Node":
        """Create a node, appending the minimal required children when ``content`` is empty.

        Raises
        ------
        ContentMatchError
            If the content cannot be completed mechanically
        """
        node_type = self.node_type(type_ref)
        children = tuple(content)
        if not children and not node_type.expression.matches([]):
            fill = node_type.expression.required_fill()
            if fill is None:
                raise ContentMatchError(node_type.name, [], node_type.expression.source)
            children = tuple(self.create_and_fill(name) for name in fill)
        return self.node(node_type, attrs, children)

    def node_from_json(self, data: Mapping[str, Any]) -> "Node":
        """Rebuild a node from :meth:`Node.to_json` output."""
        marks = [self.mark(m["type"], m.get("attrs")) for m in data.get("marks", [])]
        if data["type"] == TEXT_TYPE:
            return self.text(data["text"], marks)
        content = [self.node_from_json(child) for child in data.get("content", [])]
        return self.node(data["type"], data.get("attrs"), content, marks)


def check_children(node_type: NodeType, children: Sequence["Node"]) -> None:
    """Raise ContentMatchError when ``children`` are not valid content for ``node_type``.

    Both the content expression and the marks allowed by the parent are checked.
    """
    names = [child.type.name for child in children]
    expression = node_type.expression
    if not expression.matches(names):
        raise ContentMatchError(node_type.name, names, expression.source)
    for child in children:
        for mark in child.marks:
            if not node_type.allows_mark(mark.type.name):
                raise ContentMatchError(
                    node_type.name,
                    names,
                    expression.source,
                    message=f"Mark '{mark.type.name}' is not allowed in '{node_type.name}'",
                )


def compute_attrs(target: NodeType | MarkType, attrs: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Fill defaults into ``attrs`` and validate them against ``target``'s attribute contract.

    Raises
    ------
    AttributeValidationError
        If an unknown key is provided, a required attribute is missing, or a
        provided value fails its validator

    """
    provided = dict(attrs or {})

    unknown = sorted(set(provided) - set(target.attrs))
    if unknown:
        raise AttributeValidationError(
            target.name,
            unknown[0],
            provided[unknown[0]],
            message=f"Unknown attribute(s) for '{target.name}': {', '.join(unknown)}",
        )

    result: dict[str, Any] = {}
    for attr_name, spec in target.attrs.items():
        if attr_name in provided:
            value = provided[attr_name]
            if not spec.check(value):
                raise AttributeValidationError(target.name, attr_name, value)
            result[attr_name] = value
        elif spec.has_default:
            result[attr_name] = spec.default
        else:
            raise AttributeValidationError(
                target.name, attr_name, message=f"Missing required attribute '{attr_name}' of '{target.name}'"
            )
    return result
