"""
Command channel — per-plugin queue of pending voice commands.

A capture surface posts transcripts (or pre-compiled actions) for a plugin id;
the plugin polls, executes and acknowledges them. Commands that sit unclaimed
longer than the TTL are evicted. Polling also records the plugin as connected.

Single event loop, no threads: every method is synchronous and runs to
completion between awaits, so no locking is needed.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from backend.config import settings

logger = logging.getLogger(__name__)


@dataclass
class PendingCommand:
    plugin_id: str
    transcript: str | None = None
    actions: list[dict[str, Any]] | None = None
    created_at: float = 0.0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "pluginId": self.plugin_id}
        if self.transcript is not None:
            d["transcript"] = self.transcript
        if self.actions is not None:
            d["actions"] = self.actions
        return d


class CommandChannel:
    """Pending commands and connection heartbeats, keyed by plugin id."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        connection_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.COMMAND_TTL_SECONDS
        self.connection_ttl_seconds = (
            connection_ttl_seconds if connection_ttl_seconds is not None else settings.PLUGIN_CONNECTION_TTL_SECONDS
        )
        self._clock = clock
        self._pending: dict[str, deque[PendingCommand]] = {}
        self._last_seen: dict[str, float] = {}

    # -- Producer side -----------------------------------------------------

    def post(
        self,
        plugin_id: str,
        transcript: str | None = None,
        actions: list[dict[str, Any]] | None = None,
    ) -> PendingCommand:
        if not plugin_id:
            raise ValueError("plugin_id is required")
        if transcript is None and actions is None:
            raise ValueError("A command needs a transcript or actions")

        command = PendingCommand(plugin_id, transcript, actions, created_at=self._clock())
        self._pending.setdefault(plugin_id, deque()).append(command)
        logger.info("Command %s queued for plugin %s (%d pending)", command.id, plugin_id, self.pending_count(plugin_id))
        return command

    # -- Consumer side -----------------------------------------------------

    def touch(self, plugin_id: str) -> None:
        """Record a poll from plugin_id."""
        self._last_seen[plugin_id] = self._clock()

    def peek(self, plugin_id: str) -> PendingCommand | None:
        """Oldest unexpired command for plugin_id, left in place."""
        self._evict_plugin(plugin_id)
        queue = self._pending.get(plugin_id)
        return queue[0] if queue else None

    def pop(self, plugin_id: str) -> PendingCommand | None:
        """Remove and return the oldest unexpired command for plugin_id."""
        self._evict_plugin(plugin_id)
        queue = self._pending.get(plugin_id)
        if not queue:
            return None
        command = queue.popleft()
        if not queue:
            del self._pending[plugin_id]
        return command

    def clear(self, plugin_id: str) -> int:
        """Drop every pending command for plugin_id. Returns how many were dropped."""
        queue = self._pending.pop(plugin_id, None)
        return len(queue) if queue else 0

    def pending_count(self, plugin_id: str) -> int:
        return len(self._pending.get(plugin_id, ()))

    # -- Housekeeping ------------------------------------------------------

    def is_connected(self, plugin_id: str) -> bool:
        seen = self._last_seen.get(plugin_id)
        return seen is not None and self._clock() - seen <= self.connection_ttl_seconds

    def connected_count(self) -> int:
        return sum(1 for plugin_id in self._last_seen if self.is_connected(plugin_id))

    def evict_expired(self) -> int:
        """Drop expired commands and stale connections. Returns commands dropped."""
        dropped = sum(self._evict_plugin(plugin_id) for plugin_id in list(self._pending))

        now = self._clock()
        for plugin_id, seen in list(self._last_seen.items()):
            if now - seen > self.connection_ttl_seconds:
                del self._last_seen[plugin_id]

        if dropped:
            logger.info("Evicted %d expired command(s)", dropped)
        return dropped

    def _evict_plugin(self, plugin_id: str) -> int:
        queue = self._pending.get(plugin_id)
        if not queue:
            return 0
        cutoff = self._clock() - self.ttl_seconds
        dropped = 0
        while queue and queue[0].created_at < cutoff:
            queue.popleft()
            dropped += 1
        if not queue:
            del self._pending[plugin_id]
        return dropped


# Application-wide channel, injected into routes through a dependency
command_channel = CommandChannel()
