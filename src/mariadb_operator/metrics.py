"""Prometheus metrics for the MariaDB Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "mariadb_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "mariadb_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "mariadb_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "mariadb_operator_resource_status_total",
    "Resource status observations",
    ["kind", "status"],
)

# Watch metrics
watch_bindings = Gauge(
    "mariadb_operator_watch_bindings",
    "Number of watch bindings registered at startup",
    ["owner_kind", "watched_kind"],
)

watch_triggers_total = Counter(
    "mariadb_operator_watch_triggers_total",
    "Reconciliations enqueued by changes to watched resources",
    ["owner_kind", "watched_kind", "result"],
)

# Finalizer metrics
finalizer_operations_total = Counter(
    "mariadb_operator_finalizer_operations_total",
    "Finalizer state transitions",
    ["kind", "operation", "result"],
)

prerequisite_poll_duration_seconds = Histogram(
    "mariadb_operator_prerequisite_poll_duration_seconds",
    "Duration of prerequisite existence polls in seconds",
    ["kind", "outcome"],
    buckets=[0.01, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# MariaDB operation metrics
sql_operations_total = Counter(
    "mariadb_operator_sql_operations_total",
    "Total number of SQL operations against MariaDB",
    ["operation", "result"],
)

# API call metrics
api_call_total = Counter(
    "mariadb_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "mariadb_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "mariadb_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
