"""Utility functions for the MariaDB Operator."""

from .cache import TTLCache, make_cache_key, mariadb_cache
from .conditions import (
    set_grant_failed_condition,
    set_mariadb_not_ready_condition,
    set_ready_condition,
    set_revoke_failed_condition,
    update_condition,
)
from .events import emit_event
from .rate_limit import RateLimiter, is_rate_limit_error, rate_limit_k8s
from .secrets import get_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_mariadb_not_ready_condition",
    "set_grant_failed_condition",
    "set_revoke_failed_condition",
    "emit_event",
    "get_secret_value",
    "TTLCache",
    "make_cache_key",
    "mariadb_cache",
    "RateLimiter",
    "rate_limit_k8s",
    "is_rate_limit_error",
]
