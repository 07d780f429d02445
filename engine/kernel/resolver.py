"""
Canvas Kernel: Node Resolver

Locates nodes in the live tree by id or by name fragment.

Name ranking (case-insensitive):
  1. exact equality
  2. prefix matches, shorter names first
  3. remaining substring matches, shorter names first
Ties keep tree traversal order (stable sort).
"""

from __future__ import annotations

from typing import Any

from engine.kernel.host import DocumentHost, SceneNode


class NodeResolver:
    """Id and name lookups over the current page of one host."""

    def __init__(self, host: DocumentHost) -> None:
        self.host = host

    def find_by_id(self, node_id: Any) -> SceneNode | None:
        """Exact id match. None for empty, non-string or absent ids."""
        if not node_id or not isinstance(node_id, str):
            return None
        for node in self.host.find_all(lambda n: n.id == node_id):
            return node
        return None

    def find_by_name_fragment(self, fragment: Any) -> list[SceneNode]:
        """Every node whose name contains fragment, ranked best first."""
        if not fragment or not isinstance(fragment, str):
            return []
        search = fragment.lower()
        matches = self.host.find_all(lambda n: bool(n.name) and search in n.name.lower())
        return sorted(matches, key=lambda n: rank_key(n.name, search))

    def resolve_parent(self, parent_id_or_name: Any) -> SceneNode | list[SceneNode] | None:
        """
        Id lookup first, then name fragment lookup.

        Returns the raw match for the caller to reduce: a single node for an
        id hit, the ranked list for name hits, None when nothing matches.
        """
        by_id = self.find_by_id(parent_id_or_name)
        if by_id is not None:
            return by_id
        by_name = self.find_by_name_fragment(parent_id_or_name)
        return by_name or None

    def resolve_target(self, target: Any) -> SceneNode | None:
        """A single node for a target that may be an id or a name."""
        by_id = self.find_by_id(target)
        if by_id is not None:
            return by_id
        matches = self.find_by_name_fragment(target)
        return matches[0] if matches else None


def rank_key(name: str, search: str) -> tuple[int, int]:
    """Sort key for a name already known to contain search (both compared lowercased)."""
    lowered = name.lower()
    if lowered == search:
        return (0, 0)
    if lowered.startswith(search):
        return (1, len(lowered))
    return (2, len(lowered))
