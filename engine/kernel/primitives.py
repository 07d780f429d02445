"""
Canvas Kernel: Action Validation

Validates an action's op and args before it reaches the executor.
Validation is structural (well-formed?) not semantic (will it apply?).
The executor handles semantic checks (does the target exist? can it be filled?).

Color fields are deliberately not format-checked here: a malformed color is
mapped to black by the codec, with a diagnostic, rather than rejected.
"""

from __future__ import annotations

from typing import Any

from engine.kernel.schema import ACTION_SCHEMA, COLOR, STRING, OpSpec
from engine.kernel.types import Action, is_number

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_action(op: Any, args: Any = None, target: Any = None) -> list[str]:
    """
    Validate one action's op, args and target.
    Returns a list of error strings. Empty list = valid.

    Checks:
    - Is the op recognized?
    - Is args an object?
    - Is target a string when present?
    - Do numeric fields hold numbers, within bounds where the schema sets them?
    - Do string fields hold strings?
    - Are op-specific required fields present?

    It does NOT check whether the target exists. That's the executor's job.
    """
    errors: list[str] = []

    # Universal: op must be known
    if not isinstance(op, str) or op not in ACTION_SCHEMA:
        errors.append(f"Unknown action: {op}")
        return errors  # can't validate args for unknown op

    spec = ACTION_SCHEMA[op]

    if args is None:
        args = {}
    if not isinstance(args, dict):
        errors.append("'args' must be an object")
        return errors

    if target is not None and not isinstance(target, str):
        errors.append("'target' must be a string")

    for name in spec.required:
        if args.get(name) is None:
            errors.append(f"{op} requires '{name}'")

    errors.extend(_validate_fields(spec, args))

    validator = _VALIDATORS.get(op)
    if validator:
        errors.extend(validator(args))

    return errors


def validate(action: Action) -> list[str]:
    """Validate an Action instance."""
    return validate_action(action.op, action.args, action.target)


def is_known_op(op: Any) -> bool:
    return isinstance(op, str) and op in ACTION_SCHEMA


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def _validate_fields(spec: OpSpec, args: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    for f in spec.fields:
        value = args.get(f.name)
        if value is None or f.type == COLOR:
            continue

        if f.numeric:
            if not is_number(value):
                errors.append(f"'{f.name}' must be a number")
                continue
            if f.minimum is not None and value < f.minimum:
                errors.append(f"'{f.name}' must be >= {f.minimum}")
            if f.maximum is not None and value > f.maximum:
                errors.append(f"'{f.name}' must be <= {f.maximum}")
        elif f.type == STRING and not isinstance(value, str):
            errors.append(f"'{f.name}' must be a string")

    return errors


# ---------------------------------------------------------------------------
# Per-op validators
# ---------------------------------------------------------------------------


def _validate_create_circle(p: dict) -> list[str]:
    radius = p.get("radius")
    if is_number(radius) and radius < 0:
        return ["'radius' must not be negative"]
    return []


def _validate_box(p: dict) -> list[str]:
    errors: list[str] = []
    for name in ("width", "height"):
        value = p.get(name)
        if is_number(value) and value < 0:
            errors.append(f"'{name}' must not be negative")
    return errors


_VALIDATORS = {
    "create_circle": _validate_create_circle,
    "create_rectangle": _validate_box,
    "create_ellipse": _validate_box,
    "create_polygon": _validate_box,
    "create_star": _validate_box,
    "create_frame": _validate_box,
    "create_line": _validate_box,
    "resize": _validate_box,
}
