#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Renderers writing documents to external formats."""

from richdoc.renderers.markdown import MarkdownSerializer, MarkdownSerializerState, serialize

__all__ = ["MarkdownSerializer", "MarkdownSerializerState", "serialize"]
