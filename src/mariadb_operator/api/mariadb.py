"""Accessors for MariaDB and MaxScale resource specs."""

from __future__ import annotations

from typing import Any

from ..constants import DEFAULT_MARIADB_PORT

METRICS_CONFIG_KEY = "exporter.cnf"


def are_metrics_enabled(obj: dict[str, Any]) -> bool:
    """Return True when ``spec.metrics.enabled`` is set.

    Works for both MariaDB and MaxScale resources.
    """
    metrics = (obj.get("spec") or {}).get("metrics")
    return bool(metrics and metrics.get("enabled", False))


def is_tls_enabled(obj: dict[str, Any]) -> bool:
    """Return True when ``spec.tls.enabled`` is set."""
    tls = (obj.get("spec") or {}).get("tls")
    return bool(tls and tls.get("enabled", False))


def metrics_key(obj: dict[str, Any]) -> tuple[str, str]:
    """Return the (namespace, name) of the exporter objects for a resource."""
    meta = obj.get("metadata", {})
    return meta.get("namespace", "default"), f"{meta.get('name', 'unknown')}-metrics"


def metrics_config_secret_key_ref(obj: dict[str, Any]) -> dict[str, str]:
    """Return the Secret key reference holding the exporter configuration."""
    meta = obj.get("metadata", {})
    metrics = (obj.get("spec") or {}).get("metrics") or {}
    ref = metrics.get("configSecretKeyRef") or {}
    return {
        "name": ref.get("name") or f"{meta.get('name', 'unknown')}-metrics-config",
        "key": ref.get("key") or METRICS_CONFIG_KEY,
    }


def root_password_secret_key_ref(obj: dict[str, Any]) -> dict[str, str] | None:
    ref = (obj.get("spec") or {}).get("rootPasswordSecretKeyRef")
    if not ref or not ref.get("name") or not ref.get("key"):
        return None
    return {"name": ref["name"], "key": ref["key"]}


def mariadb_port(obj: dict[str, Any]) -> int:
    return int((obj.get("spec") or {}).get("port") or DEFAULT_MARIADB_PORT)


def mariadb_host(obj: dict[str, Any]) -> str:
    """Return the in-cluster DNS name of the MariaDB service."""
    meta = obj.get("metadata", {})
    return f"{meta.get('name', 'unknown')}.{meta.get('namespace', 'default')}.svc.cluster.local"


def mariadb_ref(obj: dict[str, Any]) -> tuple[str, str] | None:
    """Return the (namespace, name) of the MariaDB a resource points at.

    The namespace defaults to the namespace of the referencing object.
    """
    meta = obj.get("metadata", {})
    ref = (obj.get("spec") or {}).get("mariaDbRef") or {}
    name = ref.get("name")
    if not name:
        return None
    return ref.get("namespace") or meta.get("namespace", "default"), name


def is_ready(obj: dict[str, Any]) -> bool:
    conditions = (obj.get("status") or {}).get("conditions", [])
    return any(cond.get("type") == "Ready" and cond.get("status") == "True" for cond in conditions)
