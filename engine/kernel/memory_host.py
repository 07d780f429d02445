"""
Canvas Kernel: In-Memory Host

A DocumentHost backed by plain Python objects. Used by tests, the CLI and
local development. Mirrors the editor's behavior closely enough for the
executor: host-assigned ids, detached creation, append/insert reparenting,
selection pruning of removed nodes, optional font-load failure.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from engine.kernel.color import rgb_to_hex
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
from engine.kernel.types import RGB

# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class _Children(Container):
    """Child list shared by pages, frames and groups."""

    def _init_children(self) -> None:
        self._children: list[SceneNode] = []

    @property
    def children(self) -> list[SceneNode]:
        return list(self._children)

    def append_child(self, node: SceneNode) -> None:
        _detach(node)
        self._children.append(node)
        node.parent = self

    def insert_child(self, index: int, node: SceneNode) -> None:
        _detach(node)
        self._children.insert(index, node)
        node.parent = self

    def _remove_child(self, node: SceneNode) -> None:
        if node in self._children:
            self._children.remove(node)


def _detach(node: SceneNode) -> None:
    parent = node.parent
    if isinstance(parent, _Children):
        parent._remove_child(node)
    node.parent = None


class MemoryNode(SceneNode):
    type = "NODE"
    default_name = "Node"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        self.document = document
        self.id = node_id
        self.name = self.default_name
        self.x = 0.0
        self.y = 0.0
        self.parent: Container | None = None
        self._removed = False

    @property
    def removed(self) -> bool:
        return self._removed

    def remove(self) -> None:
        _detach(self)
        for node in self.walk():
            node._removed = True

    def walk(self) -> Iterator[MemoryNode]:
        """This node and its descendants, pre-order."""
        yield self
        if isinstance(self, _Children):
            for child in self._children:
                yield from child.walk()

    def clone(self) -> MemoryNode:
        twin = self.document.create_node(self.type)
        for key, value in vars(self).items():
            if key in ("document", "id", "parent", "_removed", "_children"):
                continue
            setattr(twin, key, copy.deepcopy(value))
        if isinstance(self, _Children):
            for child in self._children:
                twin.append_child(child.clone())
        return twin

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} {self.name!r}>"


class _Shape(MemoryNode, Resizable, Rotatable, Blendable):
    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self.width = 100.0
        self.height = 100.0
        self.rotation = 0.0
        self.opacity = 1.0

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height


class _Paint(Fillable, Strokable):
    def _init_paint(self) -> None:
        self.fills: list[dict[str, Any]] = []
        self.strokes: list[dict[str, Any]] = []
        self.stroke_weight = 1.0

    def set_fill(self, color: RGB) -> None:
        self.fills = [{"type": "SOLID", "color": color}]

    def set_stroke(self, color: RGB, weight: float | None = None) -> None:
        self.strokes = [{"type": "SOLID", "color": color}]
        if weight is not None:
            self.stroke_weight = weight


class RectangleNode(_Shape, _Paint, CornerRounded):
    type = "RECTANGLE"
    default_name = "Rectangle"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self._init_paint()
        self.corner_radius = 0.0


class EllipseNode(_Shape, _Paint):
    type = "ELLIPSE"
    default_name = "Ellipse"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self._init_paint()


class PolygonNode(EllipseNode):
    type = "POLYGON"
    default_name = "Polygon"


class StarNode(EllipseNode):
    type = "STAR"
    default_name = "Star"


class LineNode(_Shape, Strokable):
    type = "LINE"
    default_name = "Line"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self.height = 0.0
        self.strokes: list[dict[str, Any]] = []
        self.stroke_weight = 1.0

    def set_stroke(self, color: RGB, weight: float | None = None) -> None:
        self.strokes = [{"type": "SOLID", "color": color}]
        if weight is not None:
            self.stroke_weight = weight


class TextNode(_Shape, _Paint, TextLike):
    type = "TEXT"
    default_name = "Text"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self._init_paint()
        self.characters = ""
        self.font_size = 12.0
        self.text_auto_resize = "NONE"


class FrameNode(_Shape, _Paint, CornerRounded, _Children):
    type = "FRAME"
    default_name = "Frame"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self._init_paint()
        self._init_children()
        self.corner_radius = 0.0


class GroupNode(MemoryNode, Rotatable, Blendable, _Children):
    type = "GROUP"
    default_name = "Group"

    def __init__(self, document: MemoryDocument, node_id: str) -> None:
        super().__init__(document, node_id)
        self._init_children()
        self.rotation = 0.0
        self.opacity = 1.0


class PageNode(_Children):
    type = "PAGE"

    def __init__(self, node_id: str, name: str) -> None:
        self.id = node_id
        self.name = name
        self._init_children()


_FACTORY: dict[str, type[MemoryNode]] = {
    "RECTANGLE": RectangleNode,
    "ELLIPSE": EllipseNode,
    "POLYGON": PolygonNode,
    "STAR": StarNode,
    "LINE": LineNode,
    "TEXT": TextNode,
    "FRAME": FrameNode,
    "GROUP": GroupNode,
}


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class MemoryDocument(DocumentHost):
    """In-memory host for testing."""

    def __init__(self, *, fail_font_load: bool = False, page_name: str = "Page 1") -> None:
        self.page = PageNode("0:1", page_name)
        self.fail_font_load = fail_font_load
        self.loaded_fonts: set[tuple[str, str]] = set()
        self.viewport: list[SceneNode] = []
        self.notifications: list[str] = []
        self.plugin_data: dict[str, str] = {}
        self._selection: list[SceneNode] = []
        self._next_id = 1

    # -- DocumentHost ------------------------------------------------------

    @property
    def current_page(self) -> PageNode:
        return self.page

    def create_node(self, kind: str) -> MemoryNode:
        node_cls = _FACTORY.get(kind)
        if node_cls is None:
            raise ValueError(f"Cannot create node of type {kind}")
        node = node_cls(self, f"1:{self._next_id}")
        self._next_id += 1
        return node

    def get_selection(self) -> list[SceneNode]:
        self._selection = [n for n in self._selection if not n.removed]
        return list(self._selection)

    def set_selection(self, nodes: Sequence[SceneNode]) -> None:
        self._selection = list(nodes)

    def scroll_and_zoom_into_view(self, nodes: Sequence[SceneNode]) -> None:
        self.viewport = list(nodes)

    def group(self, nodes: Sequence[SceneNode], parent: Container) -> GroupNode:
        if not nodes:
            raise ValueError("Cannot group an empty list of nodes")
        group = self.create_node("GROUP")
        siblings = parent.children
        first = nodes[0]
        index = siblings.index(first) if first in siblings else len(siblings)
        parent.insert_child(index, group)
        for node in nodes:
            group.append_child(node)
        return group

    def ungroup(self, node: SceneNode) -> list[SceneNode]:
        if not isinstance(node, GroupNode):
            raise ValueError(f"{node!r} is not a group")
        parent = node.parent
        if parent is None:
            return []
        index = parent.children.index(node)
        released = node.children
        for offset, child in enumerate(released):
            parent.insert_child(index + offset, child)
        node.remove()
        return released

    def find_all(self, predicate: Callable[[SceneNode], bool] | None = None) -> list[SceneNode]:
        found: list[SceneNode] = []
        for top in self.page.children:
            for node in top.walk():
                if predicate is None or predicate(node):
                    found.append(node)
        return found

    async def load_font(self, family: str, style: str) -> None:
        if self.fail_font_load:
            raise RuntimeError(f"Font {family} {style} could not be loaded")
        self.loaded_fonts.add((family, style))

    def notify(self, message: str) -> None:
        self.notifications.append(message)

    def get_plugin_data(self, key: str) -> str:
        return self.plugin_data.get(key, "")

    def set_plugin_data(self, key: str, value: str) -> None:
        self.plugin_data[key] = value

    # -- Convenience -------------------------------------------------------

    def add(self, kind: str, name: str | None = None, parent: Container | None = None, **attrs: Any) -> MemoryNode:
        """Create, configure and attach a node in one call."""
        node = self.create_node(kind)
        if name is not None:
            node.name = name
        for key, value in attrs.items():
            setattr(node, key, value)
        (parent or self.page).append_child(node)
        return node

    def get(self, node_id: str) -> SceneNode | None:
        for node in self.find_all():
            if node.id == node_id:
                return node
        return None

    def render_tree(self) -> str:
        """Indented text outline of the page, one node per line."""
        lines = [f"{self.page.name}"]
        for top in self.page.children:
            lines.extend(_outline(top, depth=1))
        return "\n".join(lines)


def _outline(node: SceneNode, depth: int) -> list[str]:
    parts = [f"{'  ' * depth}{node.type} {node.id} {node.name!r} at ({node.x:g}, {node.y:g})"]
    if isinstance(node, Resizable):
        parts.append(f"{node.width:g}x{node.height:g}")
    if isinstance(node, _Paint) and node.fills:
        parts.append(f"fill {rgb_to_hex(node.fills[0]['color'])}")
    if isinstance(node, TextLike) and node.characters:
        parts.append(f"text {node.characters!r}")
    lines = [" ".join(parts)]
    if isinstance(node, Container):
        for child in node.children:
            lines.extend(_outline(child, depth + 1))
    return lines
