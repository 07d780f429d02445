"""
Canvas Kernel: Diagnostic Events

Factory and collector for structured diagnostics. Every fallback the executor
takes (malformed color, parent not found, font load failure, ...) goes through
here so it is both logged and returned to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

from engine.kernel.types import Diagnostic

logger = logging.getLogger(__name__)

# Diagnostic codes
COLOR_FALLBACK = "COLOR_FALLBACK"
UNKNOWN_OPERATION = "UNKNOWN_OPERATION"
INVALID_ACTION = "INVALID_ACTION"
ACTION_FAILED = "ACTION_FAILED"
MISSING_TARGET = "MISSING_TARGET"
TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
UNSUPPORTED_CAPABILITY = "UNSUPPORTED_CAPABILITY"
STALE_NODE = "STALE_NODE"
NO_MATCHING_LAYERS = "NO_MATCHING_LAYERS"
MULTIPLE_MATCHES = "MULTIPLE_MATCHES"
PARENT_NOT_FOUND = "PARENT_NOT_FOUND"
PARENT_NOT_CONTAINER = "PARENT_NOT_CONTAINER"
MULTIPLE_PARENTS = "MULTIPLE_PARENTS"
FONT_LOAD_FAILED = "FONT_LOAD_FAILED"
EMPTY_SELECTION = "EMPTY_SELECTION"
GROUP_NEEDS_TWO = "GROUP_NEEDS_TWO"
NOTHING_REMEMBERED = "NOTHING_REMEMBERED"

# Codes whose message is worth surfacing to the user as a host notification
USER_FACING: set[str] = {
    UNKNOWN_OPERATION,
    NO_MATCHING_LAYERS,
    MULTIPLE_MATCHES,
    PARENT_NOT_FOUND,
    MULTIPLE_PARENTS,
}


def make_diagnostic(
    code: str,
    message: str,
    *,
    index: int | None = None,
    **details: Any,
) -> Diagnostic:
    """Build a Diagnostic from minimal inputs."""
    return Diagnostic(code=code, message=message, index=index, details=details)


class DiagnosticLog:
    """
    Collects diagnostics for one batch.

    `index` tracks the action currently executing so handlers don't have to
    pass it around.
    """

    def __init__(self) -> None:
        self.entries: list[Diagnostic] = []
        self.index: int | None = None

    def emit(self, code: str, message: str, **details: Any) -> Diagnostic:
        diagnostic = make_diagnostic(code, message, index=self.index, **details)
        self.entries.append(diagnostic)
        logger.info("diagnostic %s at action %s: %s", code, self.index, message)
        return diagnostic

    def codes(self) -> list[str]:
        return [d.code for d in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
