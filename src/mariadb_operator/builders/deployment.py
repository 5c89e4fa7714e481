"""Builder for metrics exporter Deployments."""

from __future__ import annotations

from typing import Any

from ..api.mariadb import are_metrics_enabled, metrics_config_secret_key_ref, metrics_key
from ..constants import (
    DEFAULT_EXPORTER_IMAGE,
    DEFAULT_EXPORTER_PORT,
    DEFAULT_MAXSCALE_EXPORTER_IMAGE,
    DEFAULT_MAXSCALE_EXPORTER_PORT,
    EXPORTER_CONFIG_MOUNT_PATH,
    EXPORTER_CONFIG_VOLUME,
    EXPORTER_CONTAINER_NAME,
    FIELD_MANAGER,
    LABEL_APP_INSTANCE,
    LABEL_APP_NAME,
    LABEL_MANAGED_BY,
    METRICS_PORT_NAME,
)


def exporter_config_file(file_name: str) -> str:
    return EXPORTER_CONFIG_MOUNT_PATH + file_name


def metrics_selector_labels(name: str) -> dict[str, str]:
    return {
        LABEL_APP_NAME: "exporter",
        LABEL_APP_INSTANCE: name,
    }


def _merge_pull_secrets(*groups: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    merged: list[dict[str, Any]] = []
    for group in groups:
        for secret in group or []:
            if secret not in merged:
                merged.append(secret)
    return merged


def _object_meta(
    name: str,
    namespace: str,
    mariadb: dict[str, Any],
    labels: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Object metadata inheriting the MariaDB's ``spec.inheritMetadata``."""
    inherited = (mariadb.get("spec") or {}).get("inheritMetadata") or {}
    meta_labels = {**(inherited.get("labels") or {}), LABEL_MANAGED_BY: FIELD_MANAGER, **(labels or {})}
    meta = {
        "name": name,
        "namespace": namespace,
        "labels": meta_labels,
    }
    annotations = inherited.get("annotations") or {}
    if annotations:
        meta["annotations"] = dict(annotations)
    return meta


def _owner_reference(owner: dict[str, Any]) -> dict[str, Any]:
    meta = owner.get("metadata", {})
    return {
        "apiVersion": owner.get("apiVersion"),
        "kind": owner.get("kind"),
        "name": meta.get("name"),
        "uid": meta.get("uid"),
        "controller": True,
        "blockOwnerDeletion": True,
    }


def exporter_container(
    exporter: dict[str, Any],
    args: list[str],
    default_image: str,
    default_port: int,
) -> dict[str, Any]:
    """Build the exporter container.

    Template args from ``exporter.args`` are appended after the builder's own.
    """
    port = int(exporter.get("port") or default_port)
    probe = {"httpGet": {"path": "/", "port": port}}
    container: dict[str, Any] = {
        "name": EXPORTER_CONTAINER_NAME,
        "image": exporter.get("image") or default_image,
        "args": [*args, *(exporter.get("args") or [])],
        "ports": [{"name": METRICS_PORT_NAME, "containerPort": port}],
        "volumeMounts": [
            {
                "name": EXPORTER_CONFIG_VOLUME,
                "mountPath": EXPORTER_CONFIG_MOUNT_PATH,
                "readOnly": True,
            }
        ],
        "livenessProbe": probe,
        "readinessProbe": probe,
    }
    for field in ("imagePullPolicy", "env", "resources", "securityContext"):
        if exporter.get(field):
            container[field] = exporter[field]
    return container


def _exporter_pod_template(
    pod_meta: dict[str, Any],
    container: dict[str, Any],
    exporter: dict[str, Any],
    pull_secrets: list[dict[str, Any]] | None,
    config_secret_name: str,
) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "containers": [container],
        "volumes": [
            {
                "name": EXPORTER_CONFIG_VOLUME,
                "secret": {"secretName": config_secret_name},
            }
        ],
    }
    image_pull_secrets = _merge_pull_secrets(pull_secrets, exporter.get("imagePullSecrets"))
    if image_pull_secrets:
        spec["imagePullSecrets"] = image_pull_secrets
    if exporter.get("podSecurityContext"):
        spec["securityContext"] = exporter["podSecurityContext"]
    for field in ("affinity", "nodeSelector", "tolerations", "priorityClassName", "topologySpreadConstraints"):
        if exporter.get(field):
            spec[field] = exporter[field]
    return {"metadata": pod_meta, "spec": spec}


def _exporter_deployment(
    owner: dict[str, Any],
    mariadb: dict[str, Any],
    args: list[str],
    default_image: str,
    default_port: int,
    pod_annotations: dict[str, str] | None,
) -> dict[str, Any]:
    namespace, name = metrics_key(owner)
    config = metrics_config_secret_key_ref(owner)
    metrics = (owner.get("spec") or {}).get("metrics") or {}
    exporter = metrics.get("exporter") or {}
    selector_labels = metrics_selector_labels(name)

    pod_meta = _object_meta(name, namespace, mariadb, selector_labels)
    pod_meta.pop("name")
    pod_meta.pop("namespace")
    if pod_annotations:
        pod_meta["annotations"] = {**pod_meta.get("annotations", {}), **pod_annotations}

    container = exporter_container(
        exporter,
        [arg.format(config_file=exporter_config_file(config["key"])) for arg in args],
        default_image,
        default_port,
    )
    pull_secrets = (owner.get("spec") or {}).get("imagePullSecrets")

    metadata = _object_meta(name, namespace, mariadb)
    metadata["ownerReferences"] = [_owner_reference(mariadb)]
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": metadata,
        "spec": {
            "selector": {"matchLabels": selector_labels},
            "template": _exporter_pod_template(pod_meta, container, exporter, pull_secrets, config["name"]),
        },
    }


def build_exporter_deployment(
    mariadb: dict[str, Any],
    pod_annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build the mysqld-exporter Deployment for a MariaDB.

    Args:
        mariadb: MariaDB resource
        pod_annotations: Extra annotations for the pod template

    Returns:
        Deployment manifest owned by the MariaDB

    Raises:
        ValueError: If the MariaDB does not enable metrics
    """
    if not are_metrics_enabled(mariadb):
        raise ValueError("MariaDB instance does not specify Metrics")
    return _exporter_deployment(
        mariadb,
        mariadb,
        ["--config.my-cnf={config_file}"],
        DEFAULT_EXPORTER_IMAGE,
        DEFAULT_EXPORTER_PORT,
        pod_annotations,
    )


def build_maxscale_exporter_deployment(
    maxscale: dict[str, Any],
    mariadb: dict[str, Any],
    pod_annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build the MaxScale exporter Deployment.

    The Deployment is owned by the MariaDB the MaxScale fronts.

    Raises:
        ValueError: If the MaxScale does not enable metrics
    """
    if not are_metrics_enabled(maxscale):
        raise ValueError("MaxScale instance does not specify Metrics")
    return _exporter_deployment(
        maxscale,
        mariadb,
        ["--config={config_file}"],
        DEFAULT_MAXSCALE_EXPORTER_IMAGE,
        DEFAULT_MAXSCALE_EXPORTER_PORT,
        pod_annotations,
    )
