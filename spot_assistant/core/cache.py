# Role: Shared in-process TTL cache for query results. Entries expire lazily on read and on write;
# last write wins for concurrent sets of the same key.

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock or time.monotonic

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if now >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        now = self._clock()
        with self._lock:
            self._data[key] = (now + ttl_seconds, value)
            self._gc(now)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _gc(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._data.items() if now >= expires_at]
        for k in expired:
            self._data.pop(k, None)
