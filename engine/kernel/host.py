"""
Canvas Kernel: Host Interface

The document-editing host owns the node tree. The kernel only reads and
mutates nodes through this surface.

Capabilities are explicit traits. A node adapter declares what it supports by
inheriting the trait (Fillable, Resizable, ...) and the resolver and executor
check the trait, never ad hoc attribute presence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from engine.kernel.types import RGB

# ---------------------------------------------------------------------------
# Node traits
# ---------------------------------------------------------------------------


class SceneNode(ABC):
    """
    Base for every addressable node.

    id is host-assigned and immutable; name is mutable and used for lookup.
    """

    id: str
    name: str
    type: str
    x: float
    y: float
    parent: Container | None

    @property
    @abstractmethod
    def removed(self) -> bool:
        """True once the node has been detached from the document."""

    @abstractmethod
    def remove(self) -> None: ...

    @abstractmethod
    def clone(self) -> SceneNode:
        """A detached copy; the caller attaches it."""


class Fillable(ABC):
    @abstractmethod
    def set_fill(self, color: RGB) -> None: ...


class Strokable(ABC):
    stroke_weight: float

    @abstractmethod
    def set_stroke(self, color: RGB, weight: float | None = None) -> None: ...


class Resizable(ABC):
    width: float
    height: float

    @abstractmethod
    def resize(self, width: float, height: float) -> None: ...


class Rotatable(ABC):
    """Marker: exposes a writable `rotation` in degrees."""

    rotation: float


class Blendable(ABC):
    """Marker: exposes a writable `opacity` in [0, 1]."""

    opacity: float


class CornerRounded(ABC):
    """Marker: exposes a writable `corner_radius`."""

    corner_radius: float


class TextLike(ABC):
    """Marker: exposes `characters`, `font_size` and `text_auto_resize`."""

    characters: str
    font_size: float
    text_auto_resize: str


class Container(ABC):
    @property
    @abstractmethod
    def children(self) -> list[SceneNode]: ...

    @abstractmethod
    def append_child(self, node: SceneNode) -> None:
        """Attach node as the last (front-most) child, detaching it from its old parent."""

    @abstractmethod
    def insert_child(self, index: int, node: SceneNode) -> None: ...


# ---------------------------------------------------------------------------
# Host protocol
# ---------------------------------------------------------------------------


class DocumentHost:
    """
    Abstract host interface.
    Implement against a live editor, or in-memory for tests (MemoryDocument).
    """

    @property
    def current_page(self) -> Container:
        """The page whose subtree every lookup searches."""
        raise NotImplementedError

    def create_node(self, kind: str) -> SceneNode:
        """Node factory. kind is one of NODE_TYPES. Returns a detached node."""
        raise NotImplementedError

    def get_selection(self) -> list[SceneNode]:
        raise NotImplementedError

    def set_selection(self, nodes: Sequence[SceneNode]) -> None:
        """Replace the selection wholesale."""
        raise NotImplementedError

    def scroll_and_zoom_into_view(self, nodes: Sequence[SceneNode]) -> None:
        """Focus the viewport on the union of nodes."""
        raise NotImplementedError

    def group(self, nodes: Sequence[SceneNode], parent: Container) -> SceneNode:
        raise NotImplementedError

    def ungroup(self, node: SceneNode) -> list[SceneNode]:
        raise NotImplementedError

    def find_all(self, predicate: Callable[[SceneNode], bool] | None = None) -> list[SceneNode]:
        """Every node under the current page, in tree traversal order."""
        raise NotImplementedError

    async def load_font(self, family: str, style: str) -> None:
        """Load a font before text content is assigned. May raise."""
        raise NotImplementedError

    def notify(self, message: str) -> None:
        """Show a short user-facing message."""
        raise NotImplementedError

    def get_plugin_data(self, key: str) -> str:
        """Host-owned key/value storage. Missing keys read as ""."""
        raise NotImplementedError

    def set_plugin_data(self, key: str, value: str) -> None:
        raise NotImplementedError
