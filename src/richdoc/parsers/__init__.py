#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Parsers building documents from external formats."""

from richdoc.parsers.markdown import MarkdownParser, ParseResult, ParseWarning, parse

__all__ = ["MarkdownParser", "ParseResult", "ParseWarning", "parse"]
