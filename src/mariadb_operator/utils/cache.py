"""TTL cache for objects read from the Kubernetes API."""

from __future__ import annotations

import os
import threading
import time
from typing import Any, Callable, Optional


class TTLCache:
    """Thread-safe cache whose entries expire after ``ttl`` seconds.

    Handlers run in kopf's thread pool, so reads and writes take a lock.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            obj, stored_at = entry
            if self._clock() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return obj

    def set(self, key: str, obj: Any) -> None:
        with self._lock:
            self._entries[key] = (obj, self._clock())

    def invalidate(self, pattern: Optional[str] = None) -> None:
        """Drop entries whose key contains ``pattern``, or everything when omitted."""
        with self._lock:
            if pattern is None:
                self._entries.clear()
                return
            for key in [key for key in self._entries if pattern in key]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def make_cache_key(kind: str, namespace: str, name: str) -> str:
    return f"{kind}:{namespace}:{name}"


# MariaDB objects looked up by Grant and MaxScale reconciliations
mariadb_cache = TTLCache(float(os.getenv("K8S_CACHE_TTL_SECONDS", "30.0")))
