#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/hooks.py
"""Hook system for the markdown codec and the editor state.

Hooks can be registered for:
- Pipeline points: ``post_parse`` (document built from markdown),
  ``pre_serialize`` (document about to be written as markdown) and
  ``post_apply`` (document produced by an applied transaction)
- Node types by schema name (``"heading"``, ``"image"``, ...), run over
  every node of that type after parsing

Documents are immutable, so hooks return the (possibly new) object they
were given. A node hook returning None removes the node.

Examples
--------
Register a hook for all headings:

    >>> from richdoc.hooks import HookManager
    >>> manager = HookManager()
    >>>
    >>> def demote(node, context):
    ...     level = min(node.attrs["level"] + 1, 4)
    ...     return node.with_attrs({**node.attrs, "level": level})
    >>>
    >>> manager.register_hook("heading", demote)

Register a pipeline hook:

    >>> def count_blocks(doc, context):
    ...     context.set_shared("blocks", doc.child_count)
    ...     return doc
    >>>
    >>> manager.register_hook("post_parse", count_blocks)

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional, Union

from richdoc.exceptions import SchemaError

if TYPE_CHECKING:
    from richdoc.model.node import Node

logger = logging.getLogger(__name__)

HookPoint = Literal["post_parse", "pre_serialize", "post_apply"]

HOOK_POINTS: frozenset[str] = frozenset({"post_parse", "pre_serialize", "post_apply"})

# Pipeline hooks: (Node, HookContext) -> Node
# Node hooks: (Node, HookContext) -> Node | None
HookTarget = Union[HookPoint, str]
HookCallable = Callable[[Any, "HookContext"], Any]


@dataclass
class HookContext:
    """Context passed to hook functions.

    Parameters
    ----------
    document : Node
        The document being processed
    metadata : dict, default = empty dict
        Caller-supplied metadata (e.g. the source path)
    shared : dict, default = empty dict
        Shared mutable dictionary for passing data between hooks
    node_path : list of Node, default = empty list
        Ancestors of the current node (node hooks only). Mutated during
        traversal.

    """

    document: "Node"
    metadata: dict[str, Any] = field(default_factory=dict)
    shared: dict[str, Any] = field(default_factory=dict)
    node_path: list["Node"] = field(default_factory=list)

    def get_shared(self, key: str, default: Any = None) -> Any:
        """Get a value from shared state."""
        return self.shared.get(key, default)

    def set_shared(self, key: str, value: Any) -> None:
        """Set a value in shared state."""
        self.shared[key] = value


class HookManager:
    """Manager for registering and executing hooks.

    Parameters
    ----------
    strict : bool, default = False
        If True, hook exceptions are re-raised. If False, exceptions are
        logged and execution continues with the next hook.

    Notes
    -----
    HookManager instances are not thread-safe; registration and execution
    share mutable state without synchronization.

    """

    def __init__(self, strict: bool = False) -> None:
        """Initialize the hook manager."""
        self._hooks: dict[HookTarget, list[tuple[int, HookCallable]]] = {}
        self.strict = strict

    def register_hook(self, target: HookTarget, hook: HookCallable, priority: int = 100) -> None:
        """Register a hook for a hook point or node type name.

        Hooks for the same target run in priority order (lower first), then
        in registration order.
        """
        self._hooks.setdefault(target, []).append((priority, hook))
        logger.debug(f"Registered hook for '{target}' with priority {priority}")

    def unregister_hook(self, target: HookTarget, hook: HookCallable) -> bool:
        """Unregister a hook.

        Returns
        -------
        bool
            True if the hook was found and removed

        """
        if target not in self._hooks:
            return False

        initial_len = len(self._hooks[target])
        self._hooks[target] = [(p, h) for p, h in self._hooks[target] if h != hook]

        removed = len(self._hooks[target]) < initial_len
        if removed:
            logger.debug(f"Unregistered hook from '{target}'")
        return removed

    def execute_hooks(self, target: HookTarget, obj: Any, context: HookContext) -> Any:
        """Execute all hooks for a target, threading the result through them.

        Returns
        -------
        Any
            Processed object, or None if a hook removed it

        Raises
        ------
        Exception
            Any exception from a hook when strict mode is enabled

        """
        if target not in self._hooks:
            return obj

        result = obj
        for priority, hook in sorted(self._hooks[target], key=lambda x: x[0]):
            try:
                result = hook(result, context)
                if result is None:
                    logger.debug(f"Hook removed object at '{target}'")
                    return None
            except Exception as e:
                logger.error(f"Hook failed at '{target}' with priority {priority}: {e}", exc_info=True)
                if self.strict:
                    raise
                continue

        return result

    def has_hooks(self, target: HookTarget) -> bool:
        return bool(self._hooks.get(target))

    def has_node_hooks(self) -> bool:
        """Whether any hook targets a node type rather than a pipeline point."""
        return any(hooks for target, hooks in self._hooks.items() if target not in HOOK_POINTS)

    def run_pipeline_hook(self, point: HookPoint, doc: "Node", context: HookContext | None = None) -> "Node":
        """Run the hooks of a pipeline point.

        Raises
        ------
        SchemaError
            If a hook removed the document or returned an invalid one

        """
        if not self.has_hooks(point):
            return doc
        context = context or HookContext(document=doc)
        result = self.execute_hooks(point, doc, context)
        if result is None:
            raise SchemaError(f"A '{point}' hook removed the document")
        if result is not doc:
            result.check()
        return result

    def apply_node_hooks(self, doc: "Node", context: HookContext | None = None) -> "Node":
        """Run node-type hooks over every node of ``doc``, bottom-up, and rebuild the tree.

        Raises
        ------
        SchemaError
            If the rebuilt document violates a content expression

        """
        if not self.has_node_hooks():
            return doc
        context = context or HookContext(document=doc)
        rebuilt = self._visit(doc, context)
        if rebuilt is None:
            raise SchemaError("A node hook removed the document")
        if rebuilt is not doc:
            rebuilt.check()
        return rebuilt

    def _visit(self, node: "Node", context: HookContext) -> Optional["Node"]:
        if node.content:
            context.node_path.append(node)
            try:
                children = [self._visit(child, context) for child in node.content]
            finally:
                context.node_path.pop()
            kept = [child for child in children if child is not None]
            if len(kept) != len(node.content) or any(a is not b for a, b in zip(kept, node.content)):
                node = node.copy(kept)
        return self.execute_hooks(node.type.name, node, context)

    def list_hooks(self) -> dict[HookTarget, list[tuple[int, HookCallable]]]:
        """Return a shallow copy of the registered hooks by target."""
        return dict(self._hooks)

    def clear(self) -> None:
        """Clear all registered hooks."""
        self._hooks.clear()
        logger.debug("Cleared all hooks")


__all__ = [
    "HOOK_POINTS",
    "HookCallable",
    "HookContext",
    "HookManager",
    "HookPoint",
    "HookTarget",
]
