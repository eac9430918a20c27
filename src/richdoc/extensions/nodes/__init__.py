#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Built-in node type extensions."""

from richdoc.extensions.nodes.basic import (
    BaseKeymap,
    Blockquote,
    CodeBlock,
    Doc,
    HardBreak,
    HorizontalRule,
    Paragraph,
    Text,
)
from richdoc.extensions.nodes.heading import Heading, copy_link
from richdoc.extensions.nodes.image import Image, image_component
from richdoc.extensions.nodes.lists import BulletList, ListItem, OrderedList

__all__ = [
    "BaseKeymap",
    "Blockquote",
    "BulletList",
    "CodeBlock",
    "Doc",
    "HardBreak",
    "Heading",
    "HorizontalRule",
    "Image",
    "ListItem",
    "OrderedList",
    "Paragraph",
    "Text",
    "copy_link",
    "image_component",
]
