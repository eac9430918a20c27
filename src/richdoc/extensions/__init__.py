#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Editor extensions: node types, marks and the manager combining them."""

from richdoc.extensions.base import Extension, MarkExtension, NodeExtension
from richdoc.extensions.manager import (
    ExtensionManager,
    build_default_schema,
    default_extensions,
    discover_extensions,
)

__all__ = [
    "Extension",
    "ExtensionManager",
    "MarkExtension",
    "NodeExtension",
    "build_default_schema",
    "default_extensions",
    "discover_extensions",
]
