"""
Canvas Kernel — the command execution engine.

Components:
  schema      — the closed action vocabulary (single source of truth)
  primitives  — structural validation of actions against the schema
  color       — hex color codec with black fallback
  resolver    — id and ranked name lookups over the live tree
  executor    — applies an ActionBatch to a DocumentHost, never aborting a batch
  memory_host — in-memory DocumentHost for tests and the CLI
"""

from engine.kernel.color import hex_to_rgb, parse_hex_color, rgb_to_hex
from engine.kernel.errors import (
    ActionExecutionError,
    CommandError,
    ResponseShapeError,
    UnknownOperationError,
    UpstreamServiceError,
    ValidationError,
)
from engine.kernel.executor import ActionExecutor
from engine.kernel.host import DocumentHost
from engine.kernel.memory_host import MemoryDocument
from engine.kernel.primitives import validate, validate_action
from engine.kernel.resolver import NodeResolver
from engine.kernel.schema import ACTION_SCHEMA, OP_TYPES, describe_schema
from engine.kernel.types import RGB, Action, ActionBatch, Diagnostic, ExecuteResult

__all__ = [
    "ACTION_SCHEMA",
    "OP_TYPES",
    "describe_schema",
    "validate",
    "validate_action",
    "hex_to_rgb",
    "parse_hex_color",
    "rgb_to_hex",
    "NodeResolver",
    "ActionExecutor",
    "DocumentHost",
    "MemoryDocument",
    "RGB",
    "Action",
    "ActionBatch",
    "Diagnostic",
    "ExecuteResult",
    "CommandError",
    "ValidationError",
    "UpstreamServiceError",
    "ResponseShapeError",
    "ActionExecutionError",
    "UnknownOperationError",
]
