"""Rate limiting utilities for Kubernetes API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])


class RateLimiter:
    """Spaces calls at least ``1 / rate`` seconds apart across all threads."""

    def __init__(
        self,
        rate_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = 1.0 / rate_per_second
        self._clock = clock
        self._sleep = sleep
        self._next_allowed = 0.0
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """Reserve the next call slot and wait for it.

        Returns:
            The number of seconds waited
        """
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_allowed)
            self._next_allowed = slot + self.min_interval
        delay = slot - now
        if delay > 0:
            self._sleep(delay)
        return delay

    def __call__(self, func: _F) -> _F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self.acquire()
            return func(*args, **kwargs)

        return wrapper  # type: ignore


k8s_rate_limiter = RateLimiter(float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0")))


def rate_limit_k8s(func: _F) -> _F:
    """Wrap a Kubernetes API call with the shared rate limiter."""
    return k8s_rate_limiter(func)


def is_rate_limit_error(e: Exception) -> bool:
    """Return True for API server throttling responses (429, or 503 mentioning rate limits)."""
    if not isinstance(e, ApiException):
        return False
    if e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower()):
        metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
        return True
    return False
