"""Utilities for reading Kubernetes Secrets and ConfigMaps."""

from __future__ import annotations

import base64

from kubernetes import client


def get_secret_value(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    key: str,
) -> str:
    """Get a value from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        key: Key in the secret

    Returns:
        Secret value

    Raises:
        ValueError: If secret or key not found
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
        data = secret.data or {}
        if key not in data:
            raise ValueError(f"Key '{key}' not found in secret '{secret_name}'")

        value = data[key]
        # Handle both string and bytes (different versions of kubernetes client)
        if isinstance(value, str):
            return base64.b64decode(value).decode("utf-8")
        return value.decode("utf-8")
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ValueError(f"Secret '{secret_name}' not found in namespace '{namespace}'") from e
        raise


def read_secret_data(api: client.CoreV1Api, namespace: str, secret_name: str) -> dict[str, str]:
    """Read the raw (still base64 encoded) data of a secret.

    Raises:
        ValueError: If the secret does not exist
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ValueError(f"Secret '{secret_name}' not found in namespace '{namespace}'") from e
        raise
    return dict(secret.data or {})


def read_config_map_data(api: client.CoreV1Api, namespace: str, name: str) -> dict[str, str]:
    """Read the data of a config map.

    Raises:
        ValueError: If the config map does not exist
    """
    try:
        config_map = api.read_namespaced_config_map(name=name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ValueError(f"ConfigMap '{name}' not found in namespace '{namespace}'") from e
        raise
    return dict(config_map.data or {})
