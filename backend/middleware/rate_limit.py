"""
In-memory rate limiting for the compile endpoint.

Per client IP: a short window against rapid spam and a daily window against
sustained use. For production scale, consider Redis or similar.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

MINUTE_LIMIT_MESSAGE = "Too many requests. Please wait a moment before trying again."
DAILY_LIMIT_MESSAGE = "Daily limit reached. You've used all your requests for today. Try again tomorrow."


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateLimiter:
    """
    Simple in-memory rate limiter.

    Tracks request counts per key (usually "<window>:<ip>") within time windows.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        # key -> list of (timestamp, count) tuples
        self._requests: dict[str, list[tuple[datetime, int]]] = defaultdict(list)
        self._clock = clock

    def check_rate_limit(self, key: str, max_requests: int, window_minutes: int = 60) -> bool:
        """
        Check if a key has exceeded the rate limit.

        Args:
            key: Identifier to rate limit
            max_requests: Maximum requests allowed in the window
            window_minutes: Time window in minutes (default 60)

        Returns:
            True if under the limit (and the request is recorded), False if exceeded
        """
        if self._recent_count(key, window_minutes) >= max_requests:
            return False

        # Record this request
        self._requests[key].append((self._clock(), 1))
        return True

    def check_client(self, client_ip: str, per_minute: int, per_day: int) -> str | None:
        """
        Apply the daily and per-minute windows for one client.

        A request is recorded in both windows only when both allow it, so
        rejected requests never count against either quota.

        Returns:
            None when allowed, else the message to send with the 429
        """
        day_key = f"day:{client_ip}"
        minute_key = f"minute:{client_ip}"

        if self._recent_count(day_key, window_minutes=24 * 60) >= per_day:
            return DAILY_LIMIT_MESSAGE
        if self._recent_count(minute_key, window_minutes=1) >= per_minute:
            return MINUTE_LIMIT_MESSAGE

        now = self._clock()
        self._requests[day_key].append((now, 1))
        self._requests[minute_key].append((now, 1))
        return None

    def _recent_count(self, key: str, window_minutes: int) -> int:
        """Drop entries older than the window and count the rest."""
        cutoff = self._clock() - timedelta(minutes=window_minutes)
        self._requests[key] = [(ts, count) for ts, count in self._requests[key] if ts > cutoff]
        return sum(count for _, count in self._requests[key])

    def cleanup_old_entries(self, max_age_hours: int = 25):
        """
        Clean up rate limit entries older than specified hours.

        Args:
            max_age_hours: Remove entries older than this many hours
        """
        cutoff = self._clock() - timedelta(hours=max_age_hours)
        for key in list(self._requests.keys()):
            self._requests[key] = [(ts, count) for ts, count in self._requests[key] if ts > cutoff]
            if not self._requests[key]:
                del self._requests[key]

    def __len__(self) -> int:
        return len(self._requests)


# Global rate limiter instance
rate_limiter = RateLimiter()
