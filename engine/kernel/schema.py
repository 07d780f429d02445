"""
Canvas Kernel: Action Schema

The closed vocabulary of operations, their argument fields and constraints.
Pure data. Both the compiler prompt (describe_schema) and the executor's
dispatch table are built from ACTION_SCHEMA, so they cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Field / op specs
# ---------------------------------------------------------------------------

# Field types
INT = "int"
FLOAT = "float"
STRING = "string"
COLOR = "color"

# Target modes
TARGET_NONE = "none"  # op ignores target
TARGET_REQUIRED = "required"  # op needs an explicit target
TARGET_OR_SELECTION = "selection"  # explicit target, else current selection
TARGET_OR_NAME = "lookup"  # explicit target id, else args.name fuzzy lookup


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: str
    minimum: float | None = None
    maximum: float | None = None

    @property
    def numeric(self) -> bool:
        return self.type in (INT, FLOAT)


@dataclass(frozen=True)
class OpSpec:
    op: str
    category: str
    fields: tuple[FieldSpec, ...] = ()
    target: str = TARGET_NONE
    required: tuple[str, ...] = ()

    def field(self, name: str) -> FieldSpec | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


CATEGORIES: tuple[str, ...] = (
    "CREATE",
    "STYLE",
    "TRANSFORM",
    "SELECT",
    "LAYER",
    "DELETE",
    "GROUP",
    "ZOOM",
)

_X = FieldSpec("x", INT)
_Y = FieldSpec("y", INT)
_W = FieldSpec("width", INT)
_H = FieldSpec("height", INT)
_COLOR = FieldSpec("color", COLOR)
_RADIUS = FieldSpec("borderRadius", INT)
_NAME = FieldSpec("name", STRING)
_PARENT = FieldSpec("parentId", STRING)
_STROKE_WEIGHT = FieldSpec("strokeWeight", INT)

_BOX = (_X, _Y, _W, _H, _COLOR)

_OPS: tuple[OpSpec, ...] = (
    # Create
    OpSpec("create_rectangle", "CREATE", (*_BOX, _RADIUS, _NAME, _PARENT)),
    OpSpec("create_circle", "CREATE", (_X, _Y, FieldSpec("radius", INT), _COLOR, _NAME, _PARENT)),
    OpSpec("create_ellipse", "CREATE", (*_BOX, _NAME, _PARENT)),
    OpSpec("create_line", "CREATE", (_X, _Y, _W, _COLOR, _STROKE_WEIGHT, _NAME, _PARENT)),
    OpSpec("create_polygon", "CREATE", (*_BOX, _NAME, _PARENT)),
    OpSpec("create_star", "CREATE", (*_BOX, _NAME, _PARENT)),
    OpSpec(
        "create_text",
        "CREATE",
        (_X, _Y, FieldSpec("text", STRING), FieldSpec("fontSize", INT), _COLOR, _NAME, _PARENT),
    ),
    OpSpec("create_frame", "CREATE", (*_BOX, _RADIUS, _NAME, _PARENT)),
    # Style
    OpSpec("set_fill", "STYLE", (_COLOR,), target=TARGET_OR_SELECTION),
    OpSpec("set_stroke", "STYLE", (_COLOR, _STROKE_WEIGHT), target=TARGET_OR_SELECTION),
    OpSpec(
        "set_opacity",
        "STYLE",
        (FieldSpec("opacity", FLOAT, minimum=0.0, maximum=1.0),),
        target=TARGET_OR_SELECTION,
        required=("opacity",),
    ),
    # Transform
    OpSpec("move", "TRANSFORM", (_X, _Y), target=TARGET_REQUIRED),
    OpSpec("resize", "TRANSFORM", (_W, _H), target=TARGET_REQUIRED),
    OpSpec("rotate", "TRANSFORM", (FieldSpec("rotation", FLOAT),), target=TARGET_REQUIRED),
    # Select
    OpSpec("select", "SELECT", (_NAME,), target=TARGET_OR_NAME),
    OpSpec("select_all", "SELECT"),
    OpSpec("deselect", "SELECT"),
    OpSpec("find_by_name", "SELECT", (_NAME,)),
    OpSpec("select_last", "SELECT"),
    # Layer
    OpSpec("bring_to_front", "LAYER", target=TARGET_REQUIRED),
    OpSpec("send_to_back", "LAYER", target=TARGET_REQUIRED),
    # Delete
    OpSpec("delete", "DELETE", target=TARGET_REQUIRED),
    OpSpec("delete_selection", "DELETE"),
    # Group
    OpSpec("group", "GROUP", (_NAME,)),
    OpSpec("ungroup", "GROUP"),
    # Zoom
    OpSpec("zoom_to_fit", "ZOOM"),
    OpSpec("zoom_to_selection", "ZOOM"),
)

ACTION_SCHEMA: dict[str, OpSpec] = {spec.op: spec for spec in _OPS}

OP_TYPES: frozenset[str] = frozenset(ACTION_SCHEMA)


def ops_in_category(category: str) -> list[str]:
    """Op names in one category, in declaration order."""
    return [spec.op for spec in _OPS if spec.category == category]


# ---------------------------------------------------------------------------
# Prompt rendering
# ---------------------------------------------------------------------------

_PLACEHOLDERS: dict[str, str] = {
    INT: "int",
    FLOAT: "float",
    STRING: '"string"',
    COLOR: '"#hex"',
}


def describe_op(spec: OpSpec) -> str:
    """One schema line, e.g. {"op":"move","target":"nodeId-or-name","args":{"x":int,"y":int}}."""
    parts = [f'"op":"{spec.op}"']
    if spec.target != TARGET_NONE:
        parts.append('"target":"nodeId-or-name"')
    if spec.fields:
        fields = ",".join(f'"{f.name}":{_PLACEHOLDERS[f.type]}' for f in spec.fields)
        parts.append(f'"args":{{{fields}}}')
    return "{" + ",".join(parts) + "}"


def describe_categories() -> str:
    """Category listing, one line per category."""
    return "\n".join(f"- {cat}: {', '.join(ops_in_category(cat))}" for cat in CATEGORIES)


def describe_schema() -> str:
    """The full schema block embedded in the compiler prompt."""
    lines = ",\n".join(f"    {describe_op(spec)}" for spec in _OPS)
    return '{\n  "actions":[\n' + lines + "\n  ]\n}"


# Prefix of the prompt line that carries the user's transcript
TRANSCRIPT_MARKER = "User command: "
