"""
Canvas Kernel: Exceptions

Validation and response-shape errors abort a transcript before anything
executes. Per-action errors are caught by the executor and never abort a batch.
"""

from __future__ import annotations

from typing import Any


class CommandError(Exception):
    """Base class for command translation and execution failures."""

    pass


class ValidationError(CommandError):
    """Transcript empty, too long, or otherwise malformed. Raised before any network call."""

    pass


class UpstreamServiceError(CommandError):
    """
    The language-model service failed: connection error, non-2xx status, rate limit.

    `message` is the most specific text available (service-provided over generic).
    """

    def __init__(
        self,
        message: str,
        *,
        service: str,
        status_code: int | None = None,
        rate_limited: bool = False,
    ) -> None:
        self.message = message
        self.service = service
        self.status_code = status_code
        self.rate_limited = rate_limited
        super().__init__(message)


class ResponseShapeError(CommandError):
    """The service answered, but the reply was not a usable actions document."""

    def __init__(self, message: str, raw_payload: str | None = None) -> None:
        self.message = message
        self.raw_payload = raw_payload
        super().__init__(message)


class ActionExecutionError(CommandError):
    """One action could not be applied: missing target, wrong capability, host fault."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnknownOperationError(ActionExecutionError):
    """An op outside the schema. A soft failure: reported, batch continues."""

    def __init__(self, op: Any) -> None:
        super().__init__("UNKNOWN_OPERATION", f"Unknown action: {op}", {"op": op})
        self.op = op
