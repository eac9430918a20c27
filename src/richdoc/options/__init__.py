#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for richdoc.

Each component has its own frozen Options dataclass; use
``create_updated`` to derive modified copies.
"""

from __future__ import annotations

from richdoc.options.base import CloneFrozenMixin
from richdoc.options.editor import EditorOptions
from richdoc.options.markdown import MarkdownParserOptions, MarkdownSerializerOptions

__all__ = [
    "CloneFrozenMixin",
    "EditorOptions",
    "MarkdownParserOptions",
    "MarkdownSerializerOptions",
]
