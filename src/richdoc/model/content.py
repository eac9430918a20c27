#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/model/content.py
"""Content expressions describing which children a node type accepts.

A content expression is a small regular language over node type names and
group names, for example ``"inline*"``, ``"block+"`` or
``"paragraph block*"``. Supported syntax:

- a type name or group name matches one child of that type (or group)
- ``*``, ``+``, ``?``, ``{n}``, ``{n,}`` and ``{n,m}`` repeat the preceding term
- juxtaposition is sequence, ``|`` is choice, parentheses group

Expressions are compiled into a Python regular expression over a string in
which every child contributes the token ``<type_name>``, so matching a list
of children is a single ``fullmatch`` call.

Examples
--------
    >>> expr = ContentExpression.parse("paragraph block*", types)
    >>> expr.matches(["paragraph", "heading"])
    True
    >>> expr.matches([])
    False

"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Sequence

from richdoc.exceptions import SchemaError

if TYPE_CHECKING:
    from richdoc.model.schema import NodeType

_TOKEN_RE = re.compile(r"\s*(\w+|\{\d+(?:,\d*)?\}|[()*+?|])")


@dataclass(frozen=True)
class ContentTerm:
    """One top-level term of a sequence: candidate types and a repeat range."""

    names: tuple[str, ...]
    min: int
    max: int | None


@dataclass(frozen=True)
class ContentExpression:
    """A compiled content expression.

    Parameters
    ----------
    source : str
        The expression as written in the node type
    pattern : re.Pattern
        Compiled regular expression over ``<name>`` tokens
    allowed : frozenset of str
        Every type name that may appear anywhere in the content
    terms : tuple of ContentTerm
        Top-level sequence terms, empty when the expression uses choice or
        grouping at the top level (filling is then unsupported)
    inline_content : bool
        True when every allowed type is inline

    """

    source: str
    pattern: re.Pattern = field(compare=False)
    allowed: frozenset[str]
    terms: tuple[ContentTerm, ...] = ()
    inline_content: bool = False

    @classmethod
    def parse(cls, source: str, node_types: Mapping[str, "NodeType"]) -> ContentExpression:
        """Compile ``source`` against the registered node types.

        Parameters
        ----------
        source : str
            Content expression; the empty string means "no children"
        node_types : Mapping[str, NodeType]
            Registered node types by name, in registration order

        Returns
        -------
        ContentExpression
            The compiled expression

        Raises
        ------
        SchemaError
            If the expression is malformed or references an unknown name

        """
        tokens = _tokenize(source)
        if not tokens:
            return cls(source=source, pattern=re.compile(""), allowed=frozenset())

        parser = _ExpressionParser(source, tokens, node_types)
        regex = parser.parse_choice()
        if parser.pos != len(tokens):
            raise SchemaError(f"Unexpected token {tokens[parser.pos]!r} in content expression {source!r}")

        allowed = frozenset(parser.seen_names)
        inline_content = bool(allowed) and all(node_types[name].inline for name in allowed)
        return cls(
            source=source,
            pattern=re.compile(regex),
            allowed=allowed,
            terms=tuple(parser.top_terms) if parser.simple_sequence else (),
            inline_content=inline_content,
        )

    @property
    def is_empty(self) -> bool:
        """Whether the expression admits no children at all."""
        return not self.allowed

    def matches(self, type_names: Sequence[str]) -> bool:
        """Return True when the sequence of child type names satisfies the expression."""
        encoded = "".join(f"<{name}>" for name in type_names)
        return self.pattern.fullmatch(encoded) is not None

    def allows(self, type_name: str) -> bool:
        """Return True when ``type_name`` can appear somewhere in the content."""
        return type_name in self.allowed

    def required_fill(self) -> list[str] | None:
        """Return the minimal list of type names that satisfies the expression.

        Each required term contributes its first candidate type, repeated
        ``min`` times. Returns None when the expression is not a plain
        sequence and cannot be filled mechanically.

        """
        if self.is_empty:
            return []
        if not self.terms:
            return None
        filled: list[str] = []
        for term in self.terms:
            filled.extend([term.names[0]] * term.min)
        return filled if self.matches(filled) else None


def _tokenize(source: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = source.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None:
            raise SchemaError(f"Invalid character in content expression {source!r} at offset {pos}")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


class _ExpressionParser:
    """Recursive-descent parser producing a regex string."""

    def __init__(self, source: str, tokens: list[str], node_types: Mapping[str, "NodeType"]):
        self.source = source
        self.tokens = tokens
        self.node_types = node_types
        self.pos = 0
        self.seen_names: set[str] = set()
        self.top_terms: list[ContentTerm] = []
        self.simple_sequence = True
        self._depth = 0

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def parse_choice(self) -> str:
        alternatives = [self.parse_sequence()]
        while self._peek() == "|":
            self.pos += 1
            if self._depth == 0:
                self.simple_sequence = False
            alternatives.append(self.parse_sequence())
        if len(alternatives) == 1:
            return alternatives[0]
        return "(?:" + "|".join(alternatives) + ")"

    def parse_sequence(self) -> str:
        parts = []
        while self._peek() not in (None, ")", "|"):
            parts.append(self.parse_term())
        if not parts:
            raise SchemaError(f"Empty sequence in content expression {self.source!r}")
        return "".join(parts)

    def parse_term(self) -> str:
        token = self._peek()
        names: tuple[str, ...] = ()
        if token == "(":
            self.pos += 1
            self._depth += 1
            atom = "(?:" + self.parse_choice() + ")"
            self._depth -= 1
            if self._peek() != ")":
                raise SchemaError(f"Missing ')' in content expression {self.source!r}")
            self.pos += 1
            if self._depth == 0:
                self.simple_sequence = False
        elif token is not None and re.fullmatch(r"\w+", token):
            self.pos += 1
            names = self._resolve(token)
            atom = "(?:" + "|".join(re.escape(f"<{name}>") for name in names) + ")"
        else:
            raise SchemaError(f"Unexpected token {token!r} in content expression {self.source!r}")

        low, high = self._parse_repeat()
        if high is None:
            quantifier = {0: "*", 1: "+"}.get(low, f"{{{low},}}")
        elif (low, high) == (1, 1):
            quantifier = ""
        elif (low, high) == (0, 1):
            quantifier = "?"
        else:
            quantifier = f"{{{low},{high}}}"

        if self._depth == 0 and names:
            self.top_terms.append(ContentTerm(names=names, min=low, max=high))
        return atom + quantifier

    def _parse_repeat(self) -> tuple[int, int | None]:
        token = self._peek()
        if token == "*":
            self.pos += 1
            return 0, None
        if token == "+":
            self.pos += 1
            return 1, None
        if token == "?":
            self.pos += 1
            return 0, 1
        if token is not None and token.startswith("{"):
            self.pos += 1
            body = token[1:-1]
            if "," not in body:
                count = int(body)
                return count, count
            low_text, high_text = body.split(",", 1)
            return int(low_text), int(high_text) if high_text else None
        return 1, 1

    def _resolve(self, name: str) -> tuple[str, ...]:
        if name in self.node_types:
            resolved: tuple[str, ...] = (name,)
        else:
            resolved = tuple(type_name for type_name, node_type in self.node_types.items() if name in node_type.groups)
        if not resolved:
            raise SchemaError(f"No node type or group named '{name}' (in content expression {self.source!r})")
        self.seen_names.update(resolved)
        return resolved
