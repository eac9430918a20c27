#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/parsers/tokens.py
"""Flat markdown token stream built from mistune's AST.

mistune produces nested token dictionaries. The document parser works on a
flat stream instead, where every container contributes an ``<kind>_open`` and
an ``<kind>_close`` token and every leaf a single token. Each token carries a
kind, an HTML-like tag (``h2`` for a level-2 heading) and its raw attributes,
so schema parse rules can derive node attributes from the tag alone.

Token kinds
-----------
Blocks: ``paragraph``, ``heading``, ``blockquote``, ``bullet_list``,
``ordered_list``, ``list_item`` (containers); ``code_block``, ``hr``,
``html_block`` (leaves).

Inline: ``em``, ``strong``, ``link``, ``s`` (containers); ``text``,
``code_inline``, ``image``, ``hardbreak``, ``softbreak``, ``html_inline``
(leaves).

Token types mistune knows but this module does not (for example tables or
math from plugins) are passed through under their mistune name with
``meta["unknown"]`` set, so the parser can degrade them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from richdoc.utils.escape import unescape_link_destination

logger = logging.getLogger(__name__)


@dataclass
class Token:
    """One token of the flat stream.

    Parameters
    ----------
    type : str
        ``<kind>_open``, ``<kind>_close`` or the kind of a leaf token
    tag : str
        HTML-like tag name (``p``, ``h1``, ``ul``, ``em``, ...)
    nesting : int
        1 for open tokens, -1 for close tokens, 0 for leaves
    attrs : dict
        Raw attributes (``level``, ``href``, ``src``, ``tight``, ...)
    content : str
        Text of leaf tokens
    block : bool
        Whether the token belongs to block structure
    meta : dict
        Extra flags (``unknown``, ``inline_children``)

    """

    type: str
    tag: str = ""
    nesting: int = 0
    attrs: dict[str, Any] = field(default_factory=dict)
    content: str = ""
    block: bool = False
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        """Token type without its ``_open``/``_close`` suffix."""
        if self.nesting == 1:
            return self.type[: -len("_open")]
        if self.nesting == -1:
            return self.type[: -len("_close")]
        return self.type


def _heading(token: dict[str, Any]) -> tuple[str, str, dict[str, Any]]:
    level = _attrs(token).get("level", 1)
    if not isinstance(level, int) or level < 1 or level > 6:
        level = 1
    return "heading", f"h{level}", {"level": level}


def _list(token: dict[str, Any]) -> tuple[str, str, dict[str, Any]]:
    attrs = _attrs(token)
    # mistune 3 keeps tight and bullet beside attrs, not inside it
    tight = bool(token.get("tight", attrs.get("tight", True)))
    bullet = token.get("bullet", attrs.get("bullet", "-"))
    if attrs.get("ordered"):
        return "ordered_list", "ol", {"tight": tight, "start": attrs.get("start", 1) or 1}
    return "bullet_list", "ul", {"tight": tight, "bullet": bullet}


def _link(token: dict[str, Any]) -> tuple[str, str, dict[str, Any]]:
    attrs = _attrs(token)
    return "link", "a", {"href": unescape_link_destination(str(attrs.get("url", ""))), "title": attrs.get("title")}


# mistune type -> (kind, tag, attrs) for containers
BLOCK_CONTAINERS: dict[str, Callable[[dict[str, Any]], tuple[str, str, dict[str, Any]]]] = {
    "paragraph": lambda token: ("paragraph", "p", {}),
    "block_text": lambda token: ("paragraph", "p", {}),
    "heading": _heading,
    "block_quote": lambda token: ("blockquote", "blockquote", {}),
    "list": _list,
    "list_item": lambda token: ("list_item", "li", {}),
}

INLINE_CONTAINERS: dict[str, Callable[[dict[str, Any]], tuple[str, str, dict[str, Any]]]] = {
    "emphasis": lambda token: ("em", "em", {}),
    "strong": lambda token: ("strong", "strong", {}),
    "link": _link,
    "strikethrough": lambda token: ("s", "s", {}),
}

# mistune types that never yield a token
SKIPPED = frozenset({"blank_line"})


def _attrs(token: dict[str, Any]) -> dict[str, Any]:
    attrs = token.get("attrs", {})
    return attrs if isinstance(attrs, dict) else {}


def _children(token: dict[str, Any]) -> list[dict[str, Any]]:
    children = token.get("children", [])
    if not isinstance(children, list):
        return []
    return [child for child in children if isinstance(child, dict)]


def _plain_text(tokens: list[dict[str, Any]]) -> str:
    """Concatenate the raw text of a token subtree (used for image alt text)."""
    parts = []
    for token in tokens:
        if "raw" in token:
            parts.append(str(token.get("raw", "")))
        parts.append(_plain_text(_children(token)))
    return "".join(parts)


def _leaf(token: dict[str, Any]) -> Token | None:
    token_type = token.get("type", "")
    attrs = _attrs(token)
    raw = str(token.get("raw", ""))

    if token_type == "block_code":
        info = str(attrs.get("info", "") or "").strip()
        return Token("code_block", "code", attrs={"info": info}, content=raw, block=True)
    if token_type == "thematic_break":
        return Token("hr", "hr", block=True)
    if token_type == "block_html":
        return Token("html_block", "", content=raw, block=True)
    if token_type == "text":
        return Token("text", content=raw)
    if token_type == "codespan":
        return Token("code_inline", "code", content=raw)
    if token_type == "image":
        alt = _plain_text(_children(token))
        src = unescape_link_destination(str(attrs.get("url", "")))
        image_attrs = {"src": src, "alt": alt or None, "title": attrs.get("title")}
        return Token("image", "img", attrs=image_attrs)
    if token_type == "linebreak":
        return Token("hardbreak", "br")
    if token_type == "softbreak":
        return Token("softbreak", "br")
    if token_type == "inline_html":
        return Token("html_inline", "", content=raw)
    return None


def _has_block_children(children: list[dict[str, Any]]) -> bool:
    return any(child.get("type") in BLOCK_CONTAINERS or child.get("type") == "block_code" for child in children)


def iter_tokens(tokens: list[dict[str, Any]], block: bool = True) -> Iterator[Token]:
    """Flatten mistune tokens into :class:`Token` objects in document order.

    Parameters
    ----------
    tokens : list of dict
        mistune token dictionaries
    block : bool, default True
        Whether ``tokens`` are block-level tokens

    """
    for token in tokens:
        token_type = token.get("type", "")
        if token_type in SKIPPED:
            continue

        containers = BLOCK_CONTAINERS if block else INLINE_CONTAINERS
        if token_type in containers:
            kind, tag, attrs = containers[token_type](token)
            children = _children(token)
            child_block = kind in ("blockquote", "bullet_list", "ordered_list", "list_item")
            yield Token(f"{kind}_open", tag, 1, attrs, block=block)
            yield from iter_tokens(children, block=child_block)
            yield Token(f"{kind}_close", tag, -1, block=block)
            continue

        leaf = _leaf(token)
        if leaf is not None:
            yield leaf
            continue

        # Unknown to this module: pass through for the parser to degrade
        children = _children(token)
        meta = {"unknown": True}
        if children:
            child_block = _has_block_children(children)
            meta["inline_children"] = not child_block
            logger.debug(f"Passing through unknown container token '{token_type}'")
            yield Token(f"{token_type}_open", "", 1, _attrs(token), block=block, meta=meta)
            yield from iter_tokens(children, block=child_block)
            yield Token(f"{token_type}_close", "", -1, block=block, meta=dict(meta))
        else:
            logger.debug(f"Passing through unknown leaf token '{token_type}'")
            text = token.get("raw", token.get("text", ""))
            yield Token(token_type, "", 0, _attrs(token), content=str(text or ""), block=block, meta=meta)


def tokenize(tokens: list[dict[str, Any]]) -> list[Token]:
    """Return the flat token list for a mistune block token list."""
    return list(iter_tokens(tokens, block=True))


__all__ = ["BLOCK_CONTAINERS", "INLINE_CONTAINERS", "Token", "iter_tokens", "tokenize"]
