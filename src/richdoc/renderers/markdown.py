#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/renderers/markdown.py
"""Document to markdown serialization.

Serialization is driven by the schema: every node type carries a
``to_markdown(state, node, parent, index)`` rule and every mark type a
:class:`~richdoc.model.schema.MarkSerializerSpec`. The rules write through a
:class:`MarkdownSerializerState`, which tracks the line prefix of enclosing
blocks (``"> "`` inside quotes, indentation inside lists), delays block
separators until the next block is written, and handles mark nesting and
escaping of inline text.

Presentational attributes (fold state) are never written.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, Optional

from richdoc.exceptions import RenderingError
from richdoc.options.markdown import MarkdownSerializerOptions
from richdoc.utils.decorators import debug_timer

if TYPE_CHECKING:
    from richdoc.hooks import HookManager
    from richdoc.model.node import Mark, Node

logger = logging.getLogger(__name__)

# Characters escaped wherever they appear in inline text
ALWAYS_ESCAPE = "\\`*[]~<"

_ENTITY_RE = re.compile(r"&#?[0-9A-Za-z]+;")

_LINE_PREFIX_RE = re.compile(r"\s*(?:(?:>|[-+*]|\d+[.)])\s*)*")

_BLOCK_START_RE = re.compile(r"^(\s*)(#{1,6}(?:\s|$)|[-+>](?:\s|$)|\d+[.)](?:\s|$)|-{3,}\s*$|={3,}\s*$)")


class MarkdownSerializerState:
    """Output buffer and block bookkeeping for one serialization.

    Parameters
    ----------
    options : MarkdownSerializerOptions
        Serializer configuration

    Attributes
    ----------
    out : str
        Markdown written so far
    delim : str
        Prefix written at the start of every line (quotes, list indentation)
    in_tight_list : bool
        Whether the blocks being written belong to a tight list

    """

    def __init__(self, options: MarkdownSerializerOptions) -> None:
        self.options = options
        self.out = ""
        self.delim = ""
        self.closed: Node | None = None
        self.in_tight_list = False

    # ------------------------------------------------------------------
    # Block structure
    # ------------------------------------------------------------------

    def flush_close(self, size: int = 2) -> None:
        """Write the separator owed by the previously closed block."""
        if self.closed is not None:
            if not self.at_blank():
                self.out += "\n"
            if size > 1:
                delim_min = self.delim.rstrip()
                self.out += (delim_min + "\n") * (size - 1)
            self.closed = None

    def close_block(self, node: "Node") -> None:
        """Mark ``node`` as finished; its separator is written lazily."""
        self.closed = node

    def at_blank(self) -> bool:
        return not self.out or self.out.endswith("\n")

    def _at_line_start(self) -> bool:
        """Whether only block prefixes (quote markers, list markers, indentation) precede the cursor."""
        line = self.out[self.out.rfind("\n") + 1 :]
        return _LINE_PREFIX_RE.fullmatch(line) is not None

    def ensure_new_line(self) -> None:
        if not self.at_blank():
            self.out += "\n"

    def write(self, content: str | None = None) -> None:
        """Write ``content`` verbatim, preceded by any pending separator and the line prefix."""
        self.flush_close()
        if self.delim and self.at_blank():
            self.out += self.delim
        if content:
            self.out += content

    def wrap_block(self, delim: str, first_delim: str | None, node: "Node", fn: Callable[[], None]) -> None:
        """Render ``fn`` with ``delim`` added to the line prefix.

        ``first_delim`` replaces ``delim`` on the first line (list markers).
        """
        old = self.delim
        self.write(first_delim if first_delim is not None else delim)
        self.delim += delim
        fn()
        self.delim = old
        self.close_block(node)

    def render_list(self, node: "Node", delim: str, first_delim: Callable[[int], str]) -> None:
        """Render list items, separated by blank lines unless the list is tight."""
        if self.closed is not None and self.closed.type is node.type:
            # Two adjacent lists of the same kind would merge without an extra line
            self.flush_close(3)
        elif self.in_tight_list:
            self.flush_close(1)

        is_tight = bool(node.attrs.get("tight", False))
        previous_tight = self.in_tight_list
        self.in_tight_list = is_tight
        for index, child in enumerate(node.content):
            if index and is_tight:
                self.flush_close(1)
            self.wrap_block(
                delim, first_delim(index), node, lambda child=child, index=index: self.render(child, node, index)
            )
        self.in_tight_list = previous_tight

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, node: "Node", parent: "Node", index: int) -> None:
        rule = node.type.to_markdown
        if rule is None:
            raise RenderingError(f"Node type '{node.type.name}' has no markdown serializer", rendering_stage="node")
        rule(self, node, parent, index)

    def render_content(self, parent: "Node") -> None:
        for index, child in enumerate(parent.content):
            self.render(child, parent, index)

    def render_inline(self, parent: "Node") -> None:
        """Render inline children, opening and closing marks as they change."""
        active: list[Mark] = []
        trailing = ""
        children = parent.content

        for index, child in enumerate(children):
            marks = list(child.marks)
            keep = 0
            while keep < min(len(active), len(marks)) and active[keep] == marks[keep]:
                keep += 1

            # Close marks that end here (innermost first)
            for mark in reversed(active[keep:]):
                self.out += self.mark_string(mark, False, parent, index)
            del active[keep:]
            if trailing:
                self.text(trailing, escape=False)
                trailing = ""

            opening = marks[keep:]
            text = child.text if child.is_text else None
            if text is not None and opening and self._expels(opening):
                stripped = text.lstrip()
                if stripped != text:
                    self.text(text[: len(text) - len(stripped)], escape=False)
                    text = stripped

            for mark in opening:
                self.write(self.mark_string(mark, True, parent, index))
                active.append(mark)

            if text is not None:
                next_marks = children[index + 1].marks if index + 1 < len(children) else ()
                closing = [mark for mark in active if mark not in next_marks]
                if closing and self._expels(closing):
                    stripped = text.rstrip()
                    trailing = text[len(stripped) :]
                    text = stripped
                self.text(text, escape=all(self._escapes(mark) for mark in active))
            else:
                self.render(child, parent, index)

        for mark in reversed(active):
            self.out += self.mark_string(mark, False, parent, len(children))
        if trailing:
            self.text(trailing, escape=False)

    @staticmethod
    def _expels(marks: list["Mark"]) -> bool:
        return any(
            mark.type.to_markdown is not None and mark.type.to_markdown.expel_enclosing_whitespace for mark in marks
        )

    @staticmethod
    def _escapes(mark: "Mark") -> bool:
        return mark.type.to_markdown is None or mark.type.to_markdown.escape

    def mark_string(self, mark: "Mark", is_open: bool, parent: "Node", index: int) -> str:
        spec = mark.type.to_markdown
        if spec is None:
            raise RenderingError(f"Mark type '{mark.type.name}' has no markdown serializer", rendering_stage="mark")
        value = spec.open if is_open else spec.close
        return value if isinstance(value, str) else value(self, mark, parent, index)

    def text(self, text: str, escape: bool = True) -> None:
        """Write inline text, escaping markdown syntax unless ``escape`` is False."""
        lines = text.split("\n")
        for i, line in enumerate(lines):
            self.write()
            self.out += self.esc(line, self._at_line_start()) if escape else line
            if i != len(lines) - 1:
                self.out += "\n"

    # ------------------------------------------------------------------
    # Helpers for node rules
    # ------------------------------------------------------------------

    def esc(self, text: str, start_of_line: bool = False) -> str:
        """Escape markdown syntax characters in ``text``.

        Underscores inside words (``snake_case``) and characters that are only
        special at the start of a line are left alone where that is safe; ``&``
        is escaped only where it would start an entity reference.
        """
        escaped = []
        for i, char in enumerate(text):
            if char in ALWAYS_ESCAPE:
                escaped.append("\\" + char)
            elif char == "_":
                prev_alnum = i > 0 and text[i - 1].isalnum()
                next_alnum = i < len(text) - 1 and text[i + 1].isalnum()
                escaped.append(char if prev_alnum and next_alnum else "\\_")
            elif char == "&" and _ENTITY_RE.match(text, i):
                escaped.append("\\&")
            else:
                escaped.append(char)
        result = "".join(escaped)

        if start_of_line:
            match = _BLOCK_START_RE.match(result)
            if match:
                lead, marker = match.group(1), match.group(2)
                digits = re.match(r"\d+", marker)
                if digits:
                    result = lead + digits.group(0) + "\\" + result[len(lead) + len(digits.group(0)) :]
                else:
                    result = lead + "\\" + result[len(lead) :]
        return result

    @staticmethod
    def repeat(text: str, count: int) -> str:
        return text * count

    @staticmethod
    def quote(text: str) -> str:
        """Quote a link or image title."""
        if '"' not in text:
            return f'"{text}"'
        if "'" not in text:
            return f"'{text}'"
        return f"({text})"

    def fence_for(self, content: str) -> str:
        """Return a code fence longer than any fence-character run in ``content``."""
        fence_char = self.options.code_fence_char
        longest = max((len(run) for run in re.findall(re.escape(fence_char) + "+", content)), default=0)
        return fence_char * max(3, longest + 1)


class MarkdownSerializer:
    """Serializer from documents to markdown text.

    Parameters
    ----------
    options : MarkdownSerializerOptions, optional
        Serializer configuration
    hooks : HookManager, optional
        ``pre_serialize`` hooks run on the document before writing

    """

    def __init__(
        self, options: Optional[MarkdownSerializerOptions] = None, hooks: "HookManager | None" = None
    ) -> None:
        self.options = options or MarkdownSerializerOptions()
        self.hooks = hooks

    def serialize(self, doc: "Node") -> str:
        """Serialize ``doc``.

        Returns
        -------
        str
            Markdown text ending in a single newline (empty for an empty document)

        Raises
        ------
        RenderingError
            If a node or mark type has no markdown rule

        """
        if self.hooks is not None:
            doc = self.hooks.run_pipeline_hook("pre_serialize", doc)

        with debug_timer(logger, "Markdown serialize"):
            state = MarkdownSerializerState(self.options)
            state.render_content(doc)
            text = state.out.replace("\r\n", "\n").rstrip()

        return text + "\n" if text else ""


def serialize(
    doc: "Node", options: Optional[MarkdownSerializerOptions] = None, hooks: "HookManager | None" = None
) -> str:
    """Serialize a document to markdown text."""
    return MarkdownSerializer(options, hooks).serialize(doc)


__all__ = ["MarkdownSerializer", "MarkdownSerializerState", "serialize"]
