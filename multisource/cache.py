"""Short-lived in-memory cache of aggregate results."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from multisource.models import AggregateResult

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 256


def cache_key(query: str) -> str:
    return " ".join(query.split()).casefold()


class QueryCache:
    """TTL cache keyed by normalized query text.

    Only results that carry at least one offer are stored, so a transient
    outage is never replayed from cache. Oldest entries are evicted first
    once max_entries is reached.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, AggregateResult]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, query: str) -> Optional[AggregateResult]:
        key = cache_key(query)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, result = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
        return result.model_copy(update={"cached": True})

    def put(self, query: str, result: AggregateResult) -> bool:
        if not result.offers or self.ttl_seconds <= 0:
            return False
        key = cache_key(query)
        with self._lock:
            self._entries[key] = (self._clock(), result)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
