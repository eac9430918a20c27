#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/commands/__init__.py
"""Editing commands.

A command is a callable ``command(state, dispatch=None, view=None) -> bool``.
It inspects the state and returns whether it applies. When it applies and a
``dispatch`` callable is given, it builds a transaction and hands it to
``dispatch``. Calling a command without ``dispatch`` is a dry run that only
answers "would this do something here?".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from richdoc.model.state import EditorState
    from richdoc.model.transaction import Transaction

logger = logging.getLogger(__name__)

Dispatch = Callable[["Transaction"], None]
Command = Callable[["EditorState", Optional[Dispatch], Any], bool]


def chain_commands(*commands: Command) -> Command:
    """Combine commands into one that runs the first applicable command."""

    def chained(state: "EditorState", dispatch: Optional[Dispatch] = None, view: Any = None) -> bool:
        for command in commands:
            if command(state, dispatch, view):
                return True
        return False

    return chained


from richdoc.commands.block_type import selected_textblocks, set_block_type, toggle_block_type  # noqa: E402
from richdoc.commands.fold import toggle_fold  # noqa: E402
from richdoc.commands.input_rules import InputRule, run_input_rules, textblock_type_input_rule  # noqa: E402
from richdoc.commands.keymap import Keymap, key_name_from_event, normalize_key_name  # noqa: E402
from richdoc.commands.marks import toggle_mark  # noqa: E402
from richdoc.commands.split import backspace_to_paragraph, split_block, split_heading  # noqa: E402

__all__ = [
    "Command",
    "Dispatch",
    "InputRule",
    "Keymap",
    "backspace_to_paragraph",
    "chain_commands",
    "key_name_from_event",
    "normalize_key_name",
    "run_input_rules",
    "selected_textblocks",
    "set_block_type",
    "split_block",
    "split_heading",
    "textblock_type_input_rule",
    "toggle_block_type",
    "toggle_fold",
    "toggle_mark",
]
