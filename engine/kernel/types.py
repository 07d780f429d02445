"""
Canvas Kernel: Shared Types

Data classes used across schema, validation, resolver and executor.
These are the contracts that bind the kernel together.

An Action is the atomic unit of work. An ActionBatch is the ordered list of
actions compiled from one transcript; order is execution order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Node kinds (host-side types the executor can create or inspect)
# ---------------------------------------------------------------------------

NODE_TYPES: set[str] = {
    "PAGE",
    "FRAME",
    "GROUP",
    "RECTANGLE",
    "ELLIPSE",
    "LINE",
    "POLYGON",
    "STAR",
    "TEXT",
}

DEFAULT_FONT: dict[str, str] = {"family": "Inter", "style": "Regular"}

TEXT_AUTO_RESIZE = "WIDTH_AND_HEIGHT"

# Plugin data key holding the id of the node last found by name
LAST_FOUND_KEY = "lastSelectedNodeId"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RGB:
    """A normalized color. Each channel is in [0, 1]."""

    r: float
    g: float
    b: float

    def to_dict(self) -> dict[str, float]:
        return {"r": self.r, "g": self.g, "b": self.b}


BLACK = RGB(0.0, 0.0, 0.0)


@dataclass
class Action:
    """
    One schema-conformant editing instruction.

    `op` selects the handler, `args` carries op-specific fields and `target`
    names the node (by id or by name) the action mutates.
    """

    op: str
    args: dict[str, Any] = field(default_factory=dict)
    target: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"op": self.op}
        if self.target is not None:
            d["target"] = self.target
        if self.args:
            d["args"] = self.args
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Action:
        # Older plugin builds sent the op name under "action"
        op = d.get("op", d.get("action"))
        args = d.get("args")
        return cls(
            op=op if isinstance(op, str) else "",
            args=args if isinstance(args, dict) else {},
            target=d.get("target"),
        )


@dataclass
class ActionBatch:
    """Ordered actions compiled from one transcript. Consumed once."""

    actions: list[Action] = field(default_factory=list)
    transcript: str | None = None
    warnings: list[str] = field(default_factory=list)
    raw_response: str | None = None

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self):
        return iter(self.actions)

    def to_dict(self) -> dict[str, Any]:
        return {"actions": [a.to_dict() for a in self.actions]}

    @classmethod
    def from_list(cls, items: list[dict[str, Any]], transcript: str | None = None) -> ActionBatch:
        return cls(actions=[Action.from_dict(item) for item in items], transcript=transcript)


@dataclass
class Diagnostic:
    """
    A structured record of a fallback or soft failure.
    Emitted instead of relying on incidental logging so callers can assert on it.
    """

    code: str
    message: str
    index: int | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: now_iso())

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "index": self.index,
            "details": self.details,
            "timestamp": self.timestamp,
        }


@dataclass
class ExecuteResult:
    """
    Outcome of executing one batch.
    The executor never throws for per-action faults; it always returns one of these.
    """

    attempted: int = 0
    succeeded: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    unknown: list[int] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics]

    def diagnostics_for(self, code: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def summary(self) -> str:
        text = f"Executed {self.attempted} actions on canvas!"
        if self.unknown:
            positions = ", ".join(str(i + 1) for i in self.unknown)
            text += f" Skipped unknown action(s) at position {positions}."
        if self.failed:
            text += f" {len(self.failed)} failed."
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "unknown": self.unknown,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "summary": self.summary(),
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_number(value: Any) -> bool:
    """JSON number check. Booleans are not numbers here."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
