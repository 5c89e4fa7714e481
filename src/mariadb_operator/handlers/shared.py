"""Shared utilities for handlers."""

from __future__ import annotations

import hashlib
import threading
import time
from typing import Any

from kubernetes import client, config

from .. import metrics
from ..api.kinds import MARIADB, SECRET
from ..constants import FIELD_MANAGER
from ..indexes.registry import IndexedReference
from ..utils.cache import make_cache_key, mariadb_cache
from ..utils.rate_limit import rate_limit_k8s
from ..utils.secrets import read_config_map_data, read_secret_data

# Set by the cleanup handler so that blocking waits in handlers end early.
operator_stopping = threading.Event()


def load_k8s_config() -> None:
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client.

    Returns:
        CustomObjectsApi instance
    """
    load_k8s_config()
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    load_k8s_config()
    return client.CoreV1Api()


def get_apps_client() -> client.AppsV1Api:
    load_k8s_config()
    return client.AppsV1Api()


def get_mariadb_with_cache(
    api: Any,
    mariadb_name: str,
    mariadb_ns: str,
) -> dict[str, Any]:
    """Get MariaDB CRD with caching.

    Args:
        api: Kubernetes CustomObjectsApi instance
        mariadb_name: Name of the MariaDB
        mariadb_ns: Namespace of the MariaDB

    Returns:
        MariaDB CRD object

    Raises:
        client.exceptions.ApiException: If MariaDB not found or API error
    """
    cache_key = make_cache_key(MARIADB.kind, mariadb_ns, mariadb_name)
    cached = mariadb_cache.get(cache_key)
    if cached is not None:
        metrics.api_call_total.labels(api_type="k8s", operation="get_mariadb", result="cache_hit").inc()
        return cached

    start_time = time.time()
    try:
        mariadb_obj = rate_limit_k8s(api.get_namespaced_custom_object)(
            group=MARIADB.group,
            version=MARIADB.version,
            namespace=mariadb_ns,
            plural=MARIADB.plural,
            name=mariadb_name,
        )
        metrics.api_call_total.labels(api_type="k8s", operation="get_mariadb", result="success").inc()
        mariadb_cache.set(cache_key, mariadb_obj)
        return mariadb_obj
    except client.exceptions.ApiException:
        metrics.api_call_total.labels(api_type="k8s", operation="get_mariadb", result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation="get_mariadb").observe(duration)


def references_hash(core_api: client.CoreV1Api, namespace: str, refs: list[IndexedReference]) -> str:
    """Hash the data of every referenced ConfigMap and Secret.

    The hash changes whenever any referenced object's data changes, which is
    what rolls the exporter pods after a watched Secret is updated.

    Raises:
        ValueError: If a referenced object does not exist
    """
    digest = hashlib.sha256()
    for ref in sorted(refs, key=lambda r: (r.referenced_kind, r.referenced_name, r.field_path)):
        if ref.referenced_kind == SECRET.kind:
            data = read_secret_data(core_api, namespace, ref.referenced_name)
        else:
            data = read_config_map_data(core_api, namespace, ref.referenced_name)
        digest.update(f"{ref.referenced_kind}/{ref.referenced_name}\n".encode())
        for key in sorted(data):
            digest.update(f"{key}={data[key]}\n".encode())
    return digest.hexdigest()


def apply_deployment(apps_api: client.AppsV1Api, manifest: dict[str, Any]) -> None:
    """Create a Deployment, replacing it when it already exists."""
    namespace = manifest["metadata"]["namespace"]
    name = manifest["metadata"]["name"]
    start_time = time.time()
    try:
        try:
            rate_limit_k8s(apps_api.create_namespaced_deployment)(
                namespace=namespace,
                body=manifest,
                field_manager=FIELD_MANAGER,
            )
        except client.exceptions.ApiException as e:
            if e.status != 409:
                raise
            rate_limit_k8s(apps_api.replace_namespaced_deployment)(
                name=name,
                namespace=namespace,
                body=manifest,
                field_manager=FIELD_MANAGER,
            )
        metrics.api_call_total.labels(api_type="k8s", operation="apply_deployment", result="success").inc()
    except client.exceptions.ApiException:
        metrics.api_call_total.labels(api_type="k8s", operation="apply_deployment", result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation="apply_deployment").observe(duration)
