"""Builder for MariaDB clients."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..api.mariadb import mariadb_host, mariadb_port, root_password_secret_key_ref
from ..constants import ROOT_USER
from ..services.mariadb.client import MySQLConnectorClient
from ..utils.secrets import get_secret_value


def create_client_from_mariadb(mariadb: dict[str, Any], core_api: client.CoreV1Api) -> MySQLConnectorClient:
    """Create a MariaDB client from a MariaDB resource.

    Args:
        mariadb: MariaDB resource as returned by the API
        core_api: CoreV1Api used to read the root password secret

    Returns:
        Client connecting as root to the MariaDB service

    Raises:
        ValueError: If the root password reference is missing or cannot be read
    """
    ref = root_password_secret_key_ref(mariadb)
    if ref is None:
        raise ValueError("spec.rootPasswordSecretKeyRef is required")

    namespace = mariadb.get("metadata", {}).get("namespace", "default")
    password = get_secret_value(core_api, namespace, ref["name"], ref["key"])

    return MySQLConnectorClient(
        host=mariadb_host(mariadb),
        port=mariadb_port(mariadb),
        user=ROOT_USER,
        password=password,
    )
