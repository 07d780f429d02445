"""
Canvas Kernel: Action Executor

Applies an ActionBatch to a live document, one action at a time.

A sequential state machine: one state per action index, no branching between
actions, no rollback. A fault in one action is caught, recorded as a
diagnostic, and never stops the actions after it.

The only suspension point is the font load inside create_text.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from engine.kernel import events
from engine.kernel.color import parse_hex_color
from engine.kernel.errors import ActionExecutionError, UnknownOperationError
from engine.kernel.events import DiagnosticLog
from engine.kernel.host import (
    Blendable,
    Container,
    CornerRounded,
    DocumentHost,
    Fillable,
    Resizable,
    Rotatable,
    SceneNode,
    Strokable,
    TextLike,
)
from engine.kernel.primitives import is_known_op, validate
from engine.kernel.resolver import NodeResolver
from engine.kernel.schema import OP_TYPES
from engine.kernel.types import (
    DEFAULT_FONT,
    LAST_FOUND_KEY,
    RGB,
    TEXT_AUTO_RESIZE,
    Action,
    ActionBatch,
    ExecuteResult,
    is_number,
)

logger = logging.getLogger(__name__)

DEFAULT_X = 100
DEFAULT_Y = 100
DEFAULT_SIZE = 100
DEFAULT_FRAME_SIZE = 200
DEFAULT_RADIUS = 50
DEFAULT_TEXT = "Hello"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class ActionExecutor:
    """
    Executes batches against one host.

    auto_focus_created: select and zoom to each node a CREATE op makes.
    notify_summary: post the completion summary to the host after each batch.
    """

    def __init__(
        self,
        host: DocumentHost,
        *,
        auto_focus_created: bool = False,
        notify_summary: bool = True,
    ) -> None:
        self.host = host
        self.resolver = NodeResolver(host)
        self.auto_focus_created = auto_focus_created
        self.notify_summary = notify_summary

    async def execute(self, batch: ActionBatch | Iterable[Action | dict[str, Any]]) -> ExecuteResult:
        """
        Run every action in order and report the aggregate outcome.
        Always attempts all actions; never raises for a per-action fault.
        """
        actions = [_coerce(item) for item in batch]
        result = ExecuteResult()
        log = DiagnosticLog()

        for index, action in enumerate(actions):
            log.index = index
            result.attempted += 1
            seen = len(log)
            try:
                await self._apply(action, log)
            except UnknownOperationError as e:
                result.unknown.append(index)
                log.emit(events.UNKNOWN_OPERATION, e.message, **e.details)
            except ActionExecutionError as e:
                result.failed.append(index)
                log.emit(e.code, e.message, op=action.op, **e.details)
            except Exception as e:
                logger.exception("Action %d (%s) raised", index, action.op)
                result.failed.append(index)
                log.emit(events.ACTION_FAILED, str(e) or type(e).__name__, op=action.op)
            else:
                result.succeeded.append(index)

            for diagnostic in log.entries[seen:]:
                if diagnostic.code in events.USER_FACING:
                    self.host.notify(diagnostic.message)

        log.index = None
        result.diagnostics = log.entries
        logger.info(
            "Executed %d actions: %d ok, %d failed, %d unknown",
            result.attempted,
            len(result.succeeded),
            len(result.failed),
            len(result.unknown),
        )
        if self.notify_summary:
            self.host.notify(result.summary())
        return result

    async def _apply(self, action: Action, log: DiagnosticLog) -> None:
        if not is_known_op(action.op):
            raise UnknownOperationError(action.op)

        errors = validate(action)
        if errors:
            raise ActionExecutionError(events.INVALID_ACTION, "; ".join(errors), {"errors": errors})

        logger.debug("Executing %s target=%s args=%s", action.op, action.target, action.args)
        ctx = _Context(self, action, log)
        outcome = _HANDLERS[action.op](ctx)
        if inspect.isawaitable(outcome):
            await outcome


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _coerce(item: Action | dict[str, Any] | Any) -> Action:
    if isinstance(item, Action):
        return item
    if isinstance(item, dict):
        return Action.from_dict(item)
    return Action(op="")


class _Context:
    """Everything one handler needs: host, resolver, diagnostics, the action."""

    def __init__(self, executor: ActionExecutor, action: Action, log: DiagnosticLog) -> None:
        self.executor = executor
        self.host = executor.host
        self.resolver = executor.resolver
        self.log = log
        self.op = action.op
        self.args = action.args
        self.target = action.target

    def num(self, name: str, fallback: float) -> float:
        """Numeric arg, or fallback when absent."""
        value = self.args.get(name)
        return value if is_number(value) else fallback

    def color(self, name: str = "color") -> RGB:
        value = self.args.get(name)
        rgb, ok = parse_hex_color(value)
        if not ok:
            self.log.emit(events.COLOR_FALLBACK, f"Invalid color {value!r}, using black", value=value)
        return rgb

    def has(self, name: str) -> bool:
        return self.args.get(name) is not None

    def alive(self, node: SceneNode) -> bool:
        """Existence gate before mutating a node the host may have removed."""
        if node.removed:
            self.log.emit(events.STALE_NODE, f"Node {node.id} no longer exists", node_id=node.id)
            return False
        return True

    def require_target(self) -> SceneNode:
        if not self.target:
            raise ActionExecutionError(events.MISSING_TARGET, f"{self.op} requires a target")
        node = self.resolver.resolve_target(self.target)
        if node is None:
            raise ActionExecutionError(
                events.TARGET_NOT_FOUND,
                f"No node matches target '{self.target}'",
                {"target": self.target},
            )
        return node

    def require(self, node: SceneNode, trait: type) -> SceneNode:
        if not isinstance(node, trait):
            raise ActionExecutionError(
                events.UNSUPPORTED_CAPABILITY,
                f"{node.type} node {node.id} does not support {self.op}",
                {"node_id": node.id},
            )
        return node

    def subjects(self, trait: type) -> list[Any]:
        """The explicit target, else every selected node that has the trait."""
        if self.target:
            return [self.require(self.require_target(), trait)]

        selection = self.host.get_selection()
        if not selection:
            self.log.emit(events.EMPTY_SELECTION, f"{self.op}: nothing selected")
            return []

        capable = [n for n in selection if isinstance(n, trait)]
        skipped = [n.id for n in selection if not isinstance(n, trait)]
        if skipped:
            self.log.emit(
                events.UNSUPPORTED_CAPABILITY,
                f"{self.op} skipped {len(skipped)} selected node(s)",
                node_ids=skipped,
            )
        return capable

    def focus(self, nodes: Sequence[SceneNode]) -> None:
        self.host.set_selection(nodes)
        self.host.scroll_and_zoom_into_view(nodes)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def _name(ctx: _Context, node: SceneNode) -> None:
    name = ctx.args.get("name")
    if name:
        node.name = name


def _fill(ctx: _Context, node: SceneNode) -> None:
    if ctx.has("color") and isinstance(node, Fillable):
        node.set_fill(ctx.color())


def _corner_radius(ctx: _Context, node: SceneNode) -> None:
    if is_number(ctx.args.get("borderRadius")) and isinstance(node, CornerRounded):
        node.corner_radius = ctx.args["borderRadius"]


def _place(ctx: _Context, node: SceneNode) -> None:
    node.x = ctx.num("x", DEFAULT_X)
    node.y = ctx.num("y", DEFAULT_Y)


def _attach(ctx: _Context, node: SceneNode) -> list[SceneNode]:
    """
    Attach a new node under args.parentId.

    No parentId -> page root. No match -> root, reported.
    One match -> that container. Several -> one copy in each, reported.
    """
    page = ctx.host.current_page
    parent_ref = ctx.args.get("parentId")
    if not parent_ref:
        page.append_child(node)
        return [node]

    match = ctx.resolver.resolve_parent(parent_ref)
    if match is None:
        page.append_child(node)
        ctx.log.emit(events.PARENT_NOT_FOUND, "Parent not found, created at root instead.", parent=parent_ref)
        return [node]

    parents = match if isinstance(match, list) else [match]
    copies = [node] + [node.clone() for _ in parents[1:]]
    for parent, copy in zip(parents, copies):
        if isinstance(parent, Container) and not parent.removed:
            parent.append_child(copy)
        else:
            page.append_child(copy)
            ctx.log.emit(
                events.PARENT_NOT_CONTAINER,
                f"'{parent.name}' cannot contain children, created at root instead.",
                parent_id=parent.id,
            )

    if len(parents) > 1:
        ctx.log.emit(
            events.MULTIPLE_PARENTS,
            f"Added element inside {len(parents)} parents named '{parent_ref}'.",
            parent=parent_ref,
            count=len(parents),
        )
    return copies


def _finish(ctx: _Context, node: SceneNode) -> None:
    created = _attach(ctx, node)
    if ctx.executor.auto_focus_created:
        ctx.focus(created)


def _create_box(kind: str, default_size: float = DEFAULT_SIZE) -> Callable[[_Context], None]:
    def handler(ctx: _Context) -> None:
        node = ctx.host.create_node(kind)
        _place(ctx, node)
        node.resize(ctx.num("width", default_size), ctx.num("height", default_size))
        _fill(ctx, node)
        _corner_radius(ctx, node)
        _name(ctx, node)
        _finish(ctx, node)

    handler.__name__ = f"_handle_create_{kind.lower()}"
    return handler


def _handle_create_circle(ctx: _Context) -> None:
    node = ctx.host.create_node("ELLIPSE")
    _place(ctx, node)
    radius = ctx.num("radius", DEFAULT_RADIUS)
    node.resize(radius * 2, radius * 2)
    _fill(ctx, node)
    _name(ctx, node)
    _finish(ctx, node)


def _handle_create_line(ctx: _Context) -> None:
    node = ctx.host.create_node("LINE")
    _place(ctx, node)
    node.resize(ctx.num("width", DEFAULT_SIZE), 0)
    weight = ctx.args.get("strokeWeight") if is_number(ctx.args.get("strokeWeight")) else None
    if ctx.has("color"):
        node.set_stroke(ctx.color(), weight)
    elif weight is not None:
        node.stroke_weight = weight
    _name(ctx, node)
    _finish(ctx, node)


async def _handle_create_text(ctx: _Context) -> None:
    node = ctx.host.create_node("TEXT")
    _place(ctx, node)

    # Characters can only be set safely once the font is in; without it the
    # text still lands but keeps its fixed box.
    auto_resize = True
    try:
        await ctx.host.load_font(DEFAULT_FONT["family"], DEFAULT_FONT["style"])
    except Exception as e:
        auto_resize = False
        ctx.log.emit(events.FONT_LOAD_FAILED, f"Font loading failed: {e}", font=dict(DEFAULT_FONT))

    text = ctx.args.get("text")
    node.characters = text if text else DEFAULT_TEXT
    if is_number(ctx.args.get("fontSize")):
        node.font_size = ctx.args["fontSize"]
    _fill(ctx, node)
    _name(ctx, node)
    if auto_resize and isinstance(node, TextLike):
        node.text_auto_resize = TEXT_AUTO_RESIZE
    _finish(ctx, node)


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------


def _handle_set_fill(ctx: _Context) -> None:
    nodes = ctx.subjects(Fillable)
    if not nodes:
        return
    rgb = ctx.color()
    for node in nodes:
        if ctx.alive(node):
            node.set_fill(rgb)


def _handle_set_stroke(ctx: _Context) -> None:
    nodes = ctx.subjects(Strokable)
    if not nodes:
        return
    rgb = ctx.color()
    weight = ctx.args.get("strokeWeight") if is_number(ctx.args.get("strokeWeight")) else None
    for node in nodes:
        if ctx.alive(node):
            node.set_stroke(rgb, weight)


def _handle_set_opacity(ctx: _Context) -> None:
    opacity = ctx.args["opacity"]
    for node in ctx.subjects(Blendable):
        if ctx.alive(node):
            node.opacity = opacity


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------


def _handle_move(ctx: _Context) -> None:
    node = ctx.require_target()
    if ctx.alive(node):
        node.x = ctx.num("x", node.x)
        node.y = ctx.num("y", node.y)


def _handle_resize(ctx: _Context) -> None:
    node = ctx.require(ctx.require_target(), Resizable)
    if ctx.alive(node):
        node.resize(ctx.num("width", node.width), ctx.num("height", node.height))


def _handle_rotate(ctx: _Context) -> None:
    node = ctx.require(ctx.require_target(), Rotatable)
    if ctx.alive(node):
        node.rotation = ctx.num("rotation", node.rotation)


# ---------------------------------------------------------------------------
# Select
# ---------------------------------------------------------------------------


def _select_by_name(ctx: _Context, name: Any) -> None:
    matches = ctx.resolver.find_by_name_fragment(name)
    if not matches:
        ctx.log.emit(
            events.NO_MATCHING_LAYERS,
            "No matching layers found with the specified name.",
            name=name,
        )
        return

    ctx.focus(matches)
    if len(matches) > 1:
        ctx.log.emit(
            events.MULTIPLE_MATCHES,
            f"Selected {len(matches)} layers named '{name}'.",
            name=name,
            count=len(matches),
        )


def _handle_select(ctx: _Context) -> None:
    if ctx.target:
        node = ctx.resolver.find_by_id(ctx.target)
        if node is not None:
            ctx.focus([node])
            return
    _select_by_name(ctx, ctx.args.get("name") or ctx.target)


def _handle_find_by_name(ctx: _Context) -> None:
    name = ctx.args.get("name") or ""
    matches = ctx.resolver.find_by_name_fragment(name)
    if not matches:
        ctx.log.emit(events.NO_MATCHING_LAYERS, f'No objects found matching "{name}"', name=name)
        return

    best = matches[0]
    ctx.focus([best])
    ctx.host.set_plugin_data(LAST_FOUND_KEY, best.id)
    ctx.host.notify(f"Found and selected: {best.name}")


def _handle_select_last(ctx: _Context) -> None:
    node = ctx.resolver.find_by_id(ctx.host.get_plugin_data(LAST_FOUND_KEY))
    if node is None:
        ctx.log.emit(events.NOTHING_REMEMBERED, "No previously found layer to select.")
        return
    ctx.focus([node])


def _handle_select_all(ctx: _Context) -> None:
    ctx.host.set_selection(ctx.host.current_page.children)


def _handle_deselect(ctx: _Context) -> None:
    ctx.host.set_selection([])


# ---------------------------------------------------------------------------
# Layer
# ---------------------------------------------------------------------------


def _layer_parent(ctx: _Context, node: SceneNode) -> Container:
    parent = node.parent
    return parent if isinstance(parent, Container) else ctx.host.current_page


def _handle_bring_to_front(ctx: _Context) -> None:
    node = ctx.require_target()
    if ctx.alive(node):
        _layer_parent(ctx, node).append_child(node)


def _handle_send_to_back(ctx: _Context) -> None:
    node = ctx.require_target()
    if ctx.alive(node):
        _layer_parent(ctx, node).insert_child(0, node)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def _handle_delete(ctx: _Context) -> None:
    node = ctx.require_target()
    if ctx.alive(node):
        node.remove()


def _handle_delete_selection(ctx: _Context) -> None:
    for node in ctx.host.get_selection():
        # Removing a parent first takes its selected children with it
        if not node.removed:
            node.remove()


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------


def _handle_group(ctx: _Context) -> None:
    selection = ctx.host.get_selection()
    if len(selection) < 2:
        ctx.log.emit(
            events.GROUP_NEEDS_TWO,
            f"Grouping needs at least two selected layers, found {len(selection)}.",
            count=len(selection),
        )
        return

    group = ctx.host.group(selection, _layer_parent(ctx, selection[0]))
    _name(ctx, group)


def _handle_ungroup(ctx: _Context) -> None:
    for node in ctx.host.get_selection():
        if node.type == "GROUP" and ctx.alive(node):
            ctx.host.ungroup(node)


# ---------------------------------------------------------------------------
# Zoom
# ---------------------------------------------------------------------------


def _handle_zoom_to_fit(ctx: _Context) -> None:
    ctx.host.scroll_and_zoom_into_view(ctx.host.current_page.children)


def _handle_zoom_to_selection(ctx: _Context) -> None:
    selection = ctx.host.get_selection()
    if not selection:
        ctx.log.emit(events.EMPTY_SELECTION, "zoom_to_selection: nothing selected")
        return
    ctx.host.scroll_and_zoom_into_view(selection)


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[str, Callable[[_Context], Any]] = {
    "create_rectangle": _create_box("RECTANGLE"),
    "create_circle": _handle_create_circle,
    "create_ellipse": _create_box("ELLIPSE"),
    "create_line": _handle_create_line,
    "create_polygon": _create_box("POLYGON"),
    "create_star": _create_box("STAR"),
    "create_text": _handle_create_text,
    "create_frame": _create_box("FRAME", DEFAULT_FRAME_SIZE),
    "set_fill": _handle_set_fill,
    "set_stroke": _handle_set_stroke,
    "set_opacity": _handle_set_opacity,
    "move": _handle_move,
    "resize": _handle_resize,
    "rotate": _handle_rotate,
    "select": _handle_select,
    "select_all": _handle_select_all,
    "deselect": _handle_deselect,
    "find_by_name": _handle_find_by_name,
    "select_last": _handle_select_last,
    "bring_to_front": _handle_bring_to_front,
    "send_to_back": _handle_send_to_back,
    "delete": _handle_delete,
    "delete_selection": _handle_delete_selection,
    "group": _handle_group,
    "ungroup": _handle_ungroup,
    "zoom_to_fit": _handle_zoom_to_fit,
    "zoom_to_selection": _handle_zoom_to_selection,
}

if set(_HANDLERS) != OP_TYPES:
    raise RuntimeError(
        "Executor handlers and action schema diverge: "
        f"missing={sorted(OP_TYPES - set(_HANDLERS))} extra={sorted(set(_HANDLERS) - OP_TYPES)}"
    )


def handled_ops() -> frozenset[str]:
    """Ops the executor can dispatch. Equal to schema.OP_TYPES."""
    return frozenset(_HANDLERS)
