#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the richdoc library.

Constants are organized by category:
1. Type Definitions - Literal types and type aliases
2. Schema Defaults - Heading levels and node type names
3. Decoration Defaults - Anchor and folding class names
4. Markdown Defaults - Serializer and parser settings
5. View Defaults - Notification channel names and events
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

BulletMarker = Literal["-", "*", "+"]
CodeFenceChar = Literal["`", "~"]
HardBreakStyle = Literal["backslash", "spaces"]
Platform = Literal["mac", "linux", "windows"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# =============================================================================
# Schema Defaults
# =============================================================================

DEFAULT_HEADING_LEVELS: tuple[int, ...] = (1, 2, 3, 4)
DEFAULT_BLOCK_TYPE = "paragraph"
TEXT_TYPE = "text"
DOC_TYPE = "doc"

# =============================================================================
# Decoration Defaults
# =============================================================================

DEFAULT_ANCHOR_CLASS_NAME = "heading-name"
DEFAULT_SLUG_SEPARATOR = "-"
DEFAULT_SLUG_MAX_LENGTH = 100
DEFAULT_EMPTY_SLUG = "heading"
FOLDED_CONTENT_CLASS = "folded-content"

# =============================================================================
# Markdown Defaults
# =============================================================================

DEFAULT_BULLET_MARKER: BulletMarker = "-"
DEFAULT_CODE_FENCE_CHAR: CodeFenceChar = "`"
DEFAULT_HARD_BREAK_STYLE: HardBreakStyle = "backslash"
DEFAULT_HORIZONTAL_RULE = "---"

# Markdown line standing for an empty paragraph between other blocks
EMPTY_PARAGRAPH_MARKDOWN = "<br>"

DEPS_MARKDOWN = [("mistune", "mistune", ">=3.0.0")]
DEPS_RICH_OUTPUT = [("rich", "rich", "")]

# =============================================================================
# View Defaults
# =============================================================================

THEME_CHANGED = "theme-changed"
LOCATION_CHANGED = "location-changed"

# Events swallowed by node views only when their node is selectable as a unit
SELECTABLE_NODE_EVENTS = frozenset({"mousedown", "drop", "cut", "copy", "paste"})

DEFAULT_LINK_COPIED_MESSAGE = "Link copied to clipboard"
