"""In-memory, short-TTL cache of each user's last fetched track."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from nowplaying.schemas.track import TrackSnapshot

DEFAULT_TTL_SECONDS = 30.0


@dataclass(slots=True)
class _CacheEntry:
    snapshot: TrackSnapshot
    captured_at: float


class TrackCache:
    """Map user id -> snapshot, never returning entries older than the TTL.

    Staleness is checked on every read; :meth:`sweep` only bounds memory.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, user_id: str) -> Optional[TrackSnapshot]:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        if self._clock() - entry.captured_at < self._ttl:
            return entry.snapshot
        return None

    def put(self, user_id: str, snapshot: TrackSnapshot) -> None:
        self._entries[user_id] = _CacheEntry(snapshot=snapshot, captured_at=self._clock())

    def sweep(self) -> int:
        """Drop entries older than the TTL and return how many were removed."""
        now = self._clock()
        expired = [
            user_id
            for user_id, entry in self._entries.items()
            if now - entry.captured_at > self._ttl
        ]
        for user_id in expired:
            del self._entries[user_id]
        return len(expired)


__all__ = ["DEFAULT_TTL_SECONDS", "TrackCache"]
