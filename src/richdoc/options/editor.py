#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/options/editor.py
"""Configuration options for the editor engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from richdoc.constants import (
    DEFAULT_ANCHOR_CLASS_NAME,
    DEFAULT_HEADING_LEVELS,
    DEFAULT_LINK_COPIED_MESSAGE,
    DEFAULT_SLUG_MAX_LENGTH,
    DEFAULT_SLUG_SEPARATOR,
    Platform,
)
from richdoc.options.base import CloneFrozenMixin


@dataclass(frozen=True)
class EditorOptions(CloneFrozenMixin):
    """Configuration options for schema construction and the editor view.

    Parameters
    ----------
    heading_levels : tuple of int, default (1, 2, 3, 4)
        Heading levels accepted by the heading node type.
    heading_offset : int, default 0
        Offset added to the heading level when choosing the rendered tag.
    slug_separator : str, default "-"
        Separator used by heading anchors, also before duplicate suffixes.
    slug_max_length : int, default 100
        Maximum length of a heading anchor slug.
    anchor_class_name : str, default "heading-name"
        Class name of the anchor widgets placed before headings.
    editable : bool, default True
        Whether the view starts in editable mode.
    platform : {"mac", "linux", "windows"}, default "linux"
        Platform used to resolve the ``Mod`` key modifier.
    theme : Any, default None
        Opaque theme value handed to node view components.
    link_copied_message : str
        Notification text shown after copying a heading link.

    """

    heading_levels: tuple[int, ...] = field(
        default=DEFAULT_HEADING_LEVELS,
        metadata={"help": "Heading levels accepted by the heading node type", "importance": "core"},
    )
    heading_offset: int = field(
        default=0,
        metadata={"help": "Offset added to the heading level when rendering tags", "importance": "advanced"},
    )
    slug_separator: str = field(
        default=DEFAULT_SLUG_SEPARATOR,
        metadata={"help": "Separator used in heading anchors", "importance": "advanced"},
    )
    slug_max_length: int = field(
        default=DEFAULT_SLUG_MAX_LENGTH,
        metadata={"help": "Maximum length of heading anchor slugs", "importance": "advanced"},
    )
    anchor_class_name: str = field(
        default=DEFAULT_ANCHOR_CLASS_NAME,
        metadata={"help": "Class name of heading anchor widgets", "importance": "advanced"},
    )
    editable: bool = field(
        default=True,
        metadata={"help": "Start the view in editable mode", "importance": "core"},
    )
    platform: Platform = field(
        default="linux",
        metadata={"help": "Platform used to resolve the Mod key", "choices": ["mac", "linux", "windows"]},
    )
    theme: Any = field(
        default=None,
        metadata={"help": "Opaque theme value passed to node view components", "exclude_from_cli": True},
    )
    link_copied_message: str = field(
        default=DEFAULT_LINK_COPIED_MESSAGE,
        metadata={"help": "Message shown after copying a heading link", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if isinstance(self.heading_levels, list):
            object.__setattr__(self, "heading_levels", tuple(self.heading_levels))
        if not self.heading_levels:
            raise ValueError("heading_levels must not be empty")
        if any(not isinstance(level, int) or level < 1 or level > 6 for level in self.heading_levels):
            raise ValueError(f"heading_levels must be integers between 1 and 6, got {self.heading_levels}")
        if not self.slug_separator:
            raise ValueError("slug_separator must not be empty")
        if self.slug_max_length <= 0:
            raise ValueError(f"slug_max_length must be positive, got {self.slug_max_length}")
