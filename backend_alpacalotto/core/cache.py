"""
Thread-safe TTL cache shared by the price source and the lottery adapter.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable


class TTLCache:
    """Thread-safe cache with TTL. Key -> (value, expiry_ts)."""

    def __init__(self, ttl_sec: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_sec
        self._clock = clock
        self._store: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if self._clock() >= expiry:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = (value, self._clock() + self._ttl)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
