#  Copyright (c) 2025 Tom Villani, Ph.D.
"""State plugins producing view decorations (heading anchors, folded content)."""

from richdoc.plugins.anchors import (
    HeadingInfo,
    anchors_key,
    get_anchors,
    get_headings,
    heading_anchors_plugin,
)
from richdoc.plugins.folding import folding_key, folding_plugin, get_folded_content

__all__ = [
    "HeadingInfo",
    "anchors_key",
    "folding_key",
    "folding_plugin",
    "get_anchors",
    "get_folded_content",
    "get_headings",
    "heading_anchors_plugin",
]
