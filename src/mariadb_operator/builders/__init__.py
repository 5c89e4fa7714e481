"""Builders for clients and Kubernetes manifests."""

from .client import create_client_from_mariadb
from .deployment import build_exporter_deployment, build_maxscale_exporter_deployment

__all__ = ["build_exporter_deployment", "build_maxscale_exporter_deployment", "create_client_from_mariadb"]
