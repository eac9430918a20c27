#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Document model: schema, immutable nodes, positions, steps and transactions."""

from richdoc.model.content import ContentExpression
from richdoc.model.node import Mark, Node
from richdoc.model.resolvedpos import ResolvedPos
from richdoc.model.schema import (
    AttributeSpec,
    MarkdownParseRule,
    MarkSerializerSpec,
    MarkType,
    NodeType,
    SchemaRegistry,
)
from richdoc.model.selection import NodeSelection, Selection, TextSelection
from richdoc.model.state import EditorState, Plugin, PluginKey
from richdoc.model.steps import (
    AddMarkStep,
    RemoveMarkStep,
    ReplaceStep,
    SelectionStep,
    SetNodeMarkupStep,
    Step,
    StepMap,
    StepMapping,
    StepResult,
)
from richdoc.model.transaction import Rejected, Transaction, apply

__all__ = [
    "AddMarkStep",
    "AttributeSpec",
    "ContentExpression",
    "EditorState",
    "Mark",
    "MarkSerializerSpec",
    "MarkType",
    "MarkdownParseRule",
    "Node",
    "NodeSelection",
    "NodeType",
    "Plugin",
    "PluginKey",
    "Rejected",
    "RemoveMarkStep",
    "ReplaceStep",
    "ResolvedPos",
    "SchemaRegistry",
    "Selection",
    "SelectionStep",
    "SetNodeMarkupStep",
    "Step",
    "StepMap",
    "StepMapping",
    "StepResult",
    "TextSelection",
    "Transaction",
    "apply",
]
