#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/options/markdown.py
"""Configuration options for markdown parsing and serialization."""

from __future__ import annotations

from dataclasses import dataclass, field

from richdoc.constants import (
    DEFAULT_BULLET_MARKER,
    DEFAULT_CODE_FENCE_CHAR,
    DEFAULT_HARD_BREAK_STYLE,
    DEFAULT_HORIZONTAL_RULE,
    BulletMarker,
    CodeFenceChar,
    HardBreakStyle,
)
from richdoc.options.base import CloneFrozenMixin


@dataclass(frozen=True)
class MarkdownParserOptions(CloneFrozenMixin):
    """Configuration options for markdown-to-document parsing.

    Parameters
    ----------
    parse_strikethrough : bool, default True
        Whether to parse strikethrough syntax (~~text~~).
    strict : bool, default False
        Raise ParsingError instead of collecting warnings when a token has
        no reasonable mapping in the schema.

    """

    parse_strikethrough: bool = field(
        default=True,
        metadata={"help": "Parse strikethrough syntax (~~text~~)", "cli_name": "no-parse-strikethrough"},
    )
    strict: bool = field(
        default=False,
        metadata={"help": "Fail on unmapped tokens instead of warning", "importance": "advanced"},
    )


@dataclass(frozen=True)
class MarkdownSerializerOptions(CloneFrozenMixin):
    """Configuration options for document-to-markdown serialization.

    Parameters
    ----------
    bullet_marker : {"-", "*", "+"}, default "-"
        Marker used for bullet list items.
    code_fence_char : {"`", "~"}, default "`"
        Character used for fenced code blocks.
    hard_break_style : {"backslash", "spaces"}, default "backslash"
        How hard line breaks are written.
    horizontal_rule : str, default "---"
        Text written for horizontal rules.

    """

    bullet_marker: BulletMarker = field(
        default=DEFAULT_BULLET_MARKER,
        metadata={"help": "Marker for bullet list items", "choices": ["-", "*", "+"]},
    )
    code_fence_char: CodeFenceChar = field(
        default=DEFAULT_CODE_FENCE_CHAR,
        metadata={"help": "Character for fenced code blocks", "choices": ["`", "~"]},
    )
    hard_break_style: HardBreakStyle = field(
        default=DEFAULT_HARD_BREAK_STYLE,
        metadata={"help": "How hard line breaks are written", "choices": ["backslash", "spaces"]},
    )
    horizontal_rule: str = field(
        default=DEFAULT_HORIZONTAL_RULE,
        metadata={"help": "Text written for horizontal rules"},
    )

    def __post_init__(self) -> None:
        """Validate option values."""
        if self.bullet_marker not in ("-", "*", "+"):
            raise ValueError(f"bullet_marker must be one of '-', '*', '+', got {self.bullet_marker!r}")
        if self.code_fence_char not in ("`", "~"):
            raise ValueError(f"code_fence_char must be '`' or '~', got {self.code_fence_char!r}")
