"""In-memory, time-bounded cache of raw caption cues."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from tubelens.models.transcript import Cue

DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_LANGUAGE_KEY = "default"

CacheKey = Tuple[str, str]


@dataclass(slots=True, frozen=True)
class _CacheEntry:
    cues: Tuple[Cue, ...]
    expires_at: float


def cache_key(video_id: str, language: Optional[str]) -> CacheKey:
    """Build the ``(video_id, language)`` key, using ``"default"`` when no language was requested."""

    return video_id, language or DEFAULT_LANGUAGE_KEY


class CueCache:
    """Memoise unfiltered cue sequences per video and language.

    Entries expire a fixed TTL after insertion; reads never extend an entry's lifetime.
    When ``max_entries`` is set the oldest insertion is evicted first. Replacing an entry
    is a single dict assignment, so within one event loop the last successful write wins.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CacheKey, _CacheEntry] = OrderedDict()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, video_id: str, language: Optional[str] = None) -> Optional[List[Cue]]:
        """Return a copy of the cached cues, or ``None`` when absent or expired."""

        key = cache_key(video_id, language)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return list(entry.cues)

    def put(self, video_id: str, language: Optional[str], cues: List[Cue]) -> None:
        """Insert or replace the raw cue sequence for ``(video_id, language)``."""

        key = cache_key(video_id, language)
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(cues=tuple(cues), expires_at=self._clock() + self._ttl)
        self._evict()

    def invalidate(self, video_id: str, language: Optional[str] = None) -> bool:
        """Drop one entry, returning whether it existed."""

        return self._entries.pop(cache_key(video_id, language), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.get(key[0], key[1]) is not None

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [key for key, entry in self._entries.items() if entry.expires_at <= now]:
            del self._entries[key]

    def _evict(self) -> None:
        if self._max_entries is None:
            return
        self._purge_expired()
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)


__all__ = ["CacheKey", "CueCache", "DEFAULT_LANGUAGE_KEY", "DEFAULT_TTL_SECONDS", "cache_key"]
