#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/keymap.py
"""Key bindings.

Bindings map symbolic key strings such as ``"Shift-Ctrl-1"``, ``"Mod-b"``
or ``"Enter"`` to commands. Modifier names are normalized (``Cmd``/``Meta``,
``Ctrl``/``Control``, ``Alt``, ``Shift``; ``Mod`` is ``Meta`` on mac and
``Ctrl`` elsewhere) and put in a canonical order, so ``"Ctrl-Shift-1"`` and
``"Shift-Ctrl-1"`` are the same binding.

A binding can be scoped to a node type. For a key press, scoped bindings
are tried innermost context first (the selected node, then the cursor's
ancestors from the parent outwards), then global bindings; within one
context bindings run in registration order. The first command that returns
True handles the key.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional

from richdoc.constants import Platform
from richdoc.model.selection import NodeSelection

if TYPE_CHECKING:
    from richdoc.commands import Command, Dispatch
    from richdoc.model.state import EditorState
    from richdoc.view.dom import Event

logger = logging.getLogger(__name__)

_KEY_SPLIT_RE = re.compile(r"-(?!$)")


def normalize_key_name(name: str, platform: Platform = "linux") -> str:
    """Return the canonical form of a key string.

    Raises
    ------
    ValueError
        If a modifier is not recognized

    Examples
    --------
        >>> normalize_key_name("Ctrl-Shift-1")
        'Shift-Ctrl-1'
        >>> normalize_key_name("Mod-b", "mac")
        'Meta-b'

    """
    parts = _KEY_SPLIT_RE.split(name)
    key = parts[-1]
    if key == "Space":
        key = " "
    alt = ctrl = shift = meta = False
    for modifier in parts[:-1]:
        lowered = modifier.lower()
        if lowered in ("cmd", "meta", "m"):
            meta = True
        elif lowered in ("a", "alt"):
            alt = True
        elif lowered in ("c", "ctrl", "control"):
            ctrl = True
        elif lowered in ("s", "shift"):
            shift = True
        elif lowered == "mod":
            if platform == "mac":
                meta = True
            else:
                ctrl = True
        else:
            raise ValueError(f"Unrecognized modifier name: {modifier}")

    if alt:
        key = "Alt-" + key
    if ctrl:
        key = "Ctrl-" + key
    if meta:
        key = "Meta-" + key
    if shift:
        key = "Shift-" + key
    return key


def key_name_from_event(event: "Event") -> str:
    """Build the canonical key string of a keyboard event.

    Modifier state is read from ``event.data`` (``shift``, ``ctrl``,
    ``alt``, ``meta``).
    """
    key = event.key or ""
    if key == " ":
        key = "Space"
    modifiers = [name.capitalize() for name in ("shift", "meta", "ctrl", "alt") if event.data.get(name)]
    return normalize_key_name("-".join([*modifiers, key]))


@dataclass(frozen=True)
class KeyBinding:
    key: str
    command: "Command"
    context: str | None = None


class Keymap:
    """Table of key bindings.

    Parameters
    ----------
    platform : {"mac", "linux", "windows"}, default "linux"
        Platform used to resolve ``Mod``

    """

    def __init__(self, platform: Platform = "linux") -> None:
        self.platform = platform
        self._bindings: dict[str, list[KeyBinding]] = {}

    def __repr__(self) -> str:
        return f"<Keymap keys={len(self._bindings)} platform={self.platform}>"

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key_name(key, self.platform) in self._bindings

    def bind(self, key: str, command: "Command", context: str | None = None) -> None:
        """Bind ``command`` to ``key``, optionally scoped to node type ``context``."""
        name = normalize_key_name(key, self.platform)
        self._bindings.setdefault(name, []).append(KeyBinding(name, command, context))
        logger.debug(f"Bound {name}" + (f" in '{context}'" if context else ""))

    def bind_all(self, bindings: Mapping[str, "Command"], context: str | None = None) -> None:
        for key, command in bindings.items():
            self.bind(key, command, context)

    @staticmethod
    def contexts(state: "EditorState") -> list[str]:
        """Node type names the selection sits in, innermost first."""
        selection = state.selection
        names: list[str] = []
        if isinstance(selection, NodeSelection):
            names.append(selection.node.type.name)
        resolved = selection.resolved_head
        for depth in range(resolved.depth, -1, -1):
            name = resolved.node(depth).type.name
            if name not in names:
                names.append(name)
        return names

    def resolve(self, key: str, state: "EditorState") -> list["Command"]:
        """Return the commands bound to ``key`` in the order they are tried."""
        bindings = self._bindings.get(normalize_key_name(key, self.platform), [])
        if not bindings:
            return []
        ordered = []
        for context in self.contexts(state):
            ordered.extend(binding.command for binding in bindings if binding.context == context)
        ordered.extend(binding.command for binding in bindings if binding.context is None)
        return ordered

    def handle(
        self, key: str, state: "EditorState", dispatch: Optional["Dispatch"] = None, view: Any = None
    ) -> bool:
        """Run the commands bound to ``key`` until one applies; return whether one did."""
        for command in self.resolve(key, state):
            if command(state, dispatch, view):
                logger.debug(f"Key {key} handled by {getattr(command, '__qualname__', command)!r}")
                return True
        return False
