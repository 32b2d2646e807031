from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
import threading
import time
from typing import Any

QUOTE_REQUEST = "quote"
HISTORY_REQUEST = "history"


def cache_key(*, provider: str, symbol: str, kind: str) -> str:
    return f"{provider.strip().lower()}:{symbol.strip().upper()}:{kind}"


@dataclass(slots=True, frozen=True)
class CacheEntry:
    key: str
    payload: Any
    captured_at: float


class ResponseCache:
    """In-process TTL cache for upstream provider responses.

    Expired entries are treated as absent on read and stay in place until
    overwritten or evicted; the least recently used entry is evicted once
    ``max_entries`` is reached.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 30.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.captured_at >= self._ttl_seconds:
                return None
            self._entries.move_to_end(key)
            return entry.payload

    def put(self, key: str, payload: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key=key, payload=payload, captured_at=self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
