#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/input_rules.py
"""Input rules: transformations triggered by typed text.

An input rule pairs a regular expression with a handler. Whenever text is
typed, the text of the current textblock up to the cursor plus the typed
text is matched against every rule (the expressions should end in ``$``).
The first rule whose handler returns a transaction wins, and that
transaction replaces the plain text insertion.

Rules never run inside code blocks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence, Union

if TYPE_CHECKING:
    from richdoc.model.resolvedpos import ResolvedPos
    from richdoc.model.schema import NodeType
    from richdoc.model.state import EditorState
    from richdoc.model.transaction import Transaction

logger = logging.getLogger(__name__)

# Longest stretch of text before the cursor that rules are matched against
MAX_MATCH = 500

# Stand-in for non-text inline nodes in the matched text
LEAF_CHAR = "\ufffc"

RuleHandler = Callable[["EditorState", "re.Match[str]", int, int], Optional["Transaction"]]
AttrsSource = Union[Mapping[str, Any], Callable[["re.Match[str]"], Mapping[str, Any]], None]


@dataclass(frozen=True)
class InputRule:
    """A typed-text trigger.

    Parameters
    ----------
    pattern : re.Pattern
        Expression matched against the text before the cursor plus the typed text
    handler : callable
        ``handler(state, match, start, end) -> Transaction | None`` where
        ``start``-``end`` is the document range covered by the match,
        excluding the typed text which is not in the document yet

    """

    pattern: re.Pattern[str]
    handler: RuleHandler


def textblock_type_input_rule(
    pattern: str | re.Pattern[str], node_type: "NodeType | str", get_attrs: AttrsSource = None
) -> InputRule:
    """Build a rule that converts the textblock to ``node_type`` when ``pattern`` matches at its start.

    The matched text is removed.

    Examples
    --------
        >>> rule = textblock_type_input_rule(r"^(#{1,2})\\s$", "heading", {"level": 2})

    """
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def handler(state: "EditorState", match: "re.Match[str]", start: int, end: int) -> Optional["Transaction"]:
        target = state.schema.node_type(node_type)
        resolved = state.doc.resolve(start)
        attrs = get_attrs(match) if callable(get_attrs) else get_attrs
        tr = state.tr.delete(start, end)
        tr.set_node_markup(resolved.before(), target, attrs, expected_type=resolved.parent.type.name)
        return tr if tr.rejected is None else None

    return InputRule(compiled, handler)


def _text_before(resolved: "ResolvedPos") -> str:
    parts = []
    offset = resolved.pos - resolved.start()
    pos = 0
    for child in resolved.parent.content:
        if pos >= offset:
            break
        take = min(child.node_size, offset - pos)
        parts.append((child.text or "")[:take] if child.is_text else LEAF_CHAR)
        pos += child.node_size
    return "".join(parts)[-MAX_MATCH:]


def run_input_rules(
    state: "EditorState", rules: Sequence[InputRule], from_: int, to: int, text: str
) -> Optional["Transaction"]:
    """Return the transaction of the first rule matching ``text`` typed over ``from_``-``to``.

    Returns None when no rule applies; the caller then inserts the text itself.
    """
    if not rules:
        return None
    resolved = state.doc.resolve(from_)
    if not resolved.parent.is_textblock or resolved.parent.type.code:
        return None

    text_before = _text_before(resolved) + text
    for rule in rules:
        match = rule.pattern.search(text_before)
        if match is None:
            continue
        start = from_ - (len(match.group(0)) - len(text))
        tr = rule.handler(state, match, start, to)
        if tr is not None:
            logger.debug(f"Input rule {rule.pattern.pattern!r} matched {match.group(0)!r}")
            return tr
    return None
