"""Indexed references held by MariaDB resources."""

from __future__ import annotations

from typing import Any

from ..api.kinds import CONFIG_MAP, MARIADB, SECRET
from ..api.mariadb import are_metrics_enabled, is_tls_enabled
from ..constants import (
    MARIADB_METRICS_PASSWORD_SECRET_FIELD_PATH,
    MARIADB_MY_CNF_CONFIG_MAP_FIELD_PATH,
    MARIADB_TLS_CLIENT_CA_SECRET_FIELD_PATH,
    MARIADB_TLS_CLIENT_CERT_SECRET_FIELD_PATH,
    MARIADB_TLS_SERVER_CA_SECRET_FIELD_PATH,
    MARIADB_TLS_SERVER_CERT_SECRET_FIELD_PATH,
)
from .registry import ExtractorRegistry, ref_name

mariadb_indexes = ExtractorRegistry(MARIADB)


def _spec(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("spec") or {}


@mariadb_indexes.extractor(MARIADB_MY_CNF_CONFIG_MAP_FIELD_PATH, CONFIG_MAP)
def my_cnf_config_map(obj: dict[str, Any]) -> list[str]:
    return ref_name(_spec(obj).get("myCnfConfigMapKeyRef"))


@mariadb_indexes.extractor(MARIADB_METRICS_PASSWORD_SECRET_FIELD_PATH, SECRET)
def metrics_password_secret(obj: dict[str, Any]) -> list[str]:
    # metrics may carry a defaulted password ref while disabled
    if not are_metrics_enabled(obj):
        return []
    return ref_name(_spec(obj)["metrics"].get("passwordSecretKeyRef"))


def _tls_secret(obj: dict[str, Any], field: str) -> list[str]:
    if not is_tls_enabled(obj):
        return []
    return ref_name(_spec(obj)["tls"].get(field))


@mariadb_indexes.extractor(MARIADB_TLS_SERVER_CA_SECRET_FIELD_PATH, SECRET)
def tls_server_ca_secret(obj: dict[str, Any]) -> list[str]:
    return _tls_secret(obj, "serverCASecretRef")


@mariadb_indexes.extractor(MARIADB_TLS_SERVER_CERT_SECRET_FIELD_PATH, SECRET)
def tls_server_cert_secret(obj: dict[str, Any]) -> list[str]:
    return _tls_secret(obj, "serverCertSecretRef")


@mariadb_indexes.extractor(MARIADB_TLS_CLIENT_CA_SECRET_FIELD_PATH, SECRET)
def tls_client_ca_secret(obj: dict[str, Any]) -> list[str]:
    return _tls_secret(obj, "clientCASecretRef")


@mariadb_indexes.extractor(MARIADB_TLS_CLIENT_CERT_SECRET_FIELD_PATH, SECRET)
def tls_client_cert_secret(obj: dict[str, Any]) -> list[str]:
    return _tls_secret(obj, "clientCertSecretRef")


MARIADB_CONFIG_MAP_FIELD_PATHS = (MARIADB_MY_CNF_CONFIG_MAP_FIELD_PATH,)

MARIADB_SECRET_FIELD_PATHS = (
    MARIADB_METRICS_PASSWORD_SECRET_FIELD_PATH,
    MARIADB_TLS_SERVER_CA_SECRET_FIELD_PATH,
    MARIADB_TLS_SERVER_CERT_SECRET_FIELD_PATH,
    MARIADB_TLS_CLIENT_CA_SECRET_FIELD_PATH,
    MARIADB_TLS_CLIENT_CERT_SECRET_FIELD_PATH,
)
