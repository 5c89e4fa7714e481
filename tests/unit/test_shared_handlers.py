"""Tests for shared handler utilities."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock, patch

import pytest
from kubernetes import client

from mariadb_operator.api.kinds import CONFIG_MAP, MARIADB, SECRET
from mariadb_operator.constants import FIELD_MANAGER
from mariadb_operator.handlers.shared import (
    apply_deployment,
    get_mariadb_with_cache,
    load_k8s_config,
    references_hash,
)
from mariadb_operator.indexes.registry import IndexedReference
from mariadb_operator.utils.cache import mariadb_cache


def reference(kind: str, name: str, field_path: str = "spec.ref") -> IndexedReference:
    return IndexedReference(owner_kind=MARIADB.kind, field_path=field_path, referenced_kind=kind, referenced_name=name)


class TestLoadK8sConfig:
    """Test cases for load_k8s_config."""

    @patch("mariadb_operator.handlers.shared.config")
    def test_falls_back_to_kubeconfig(self, mock_config):
        """Test kubeconfig is used outside the cluster."""
        mock_config.ConfigException = Exception
        mock_config.load_incluster_config.side_effect = Exception("not in cluster")
        load_k8s_config()
        mock_config.load_kube_config.assert_called_once()


class TestGetMariaDBWithCache:
    """Test cases for get_mariadb_with_cache."""

    def setup_method(self):
        """Clear cache before each test."""
        mariadb_cache.invalidate()

    def test_fetches_and_caches(self):
        """Test that the second lookup is served from cache."""
        api = MagicMock()
        api.get_namespaced_custom_object.return_value = {"metadata": {"name": "mariadb"}}

        first = get_mariadb_with_cache(api, "mariadb", "db")
        second = get_mariadb_with_cache(api, "mariadb", "db")

        assert first == second == {"metadata": {"name": "mariadb"}}
        api.get_namespaced_custom_object.assert_called_once_with(
            group=MARIADB.group,
            version=MARIADB.version,
            namespace="db",
            plural=MARIADB.plural,
            name="mariadb",
        )

    def test_not_found_propagates(self):
        """Test that API errors propagate and are not cached."""
        api = MagicMock()
        api.get_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=404)

        with pytest.raises(client.exceptions.ApiException):
            get_mariadb_with_cache(api, "mariadb", "db")
        assert len(mariadb_cache) == 0


class TestReferencesHash:
    """Test cases for references_hash."""

    def _core_api(self, secret_data=None, config_map_data=None):
        core_api = MagicMock()
        core_api.read_namespaced_secret.return_value = Mock(data=secret_data or {"password": "cHc="})
        core_api.read_namespaced_config_map.return_value = Mock(data=config_map_data or {"my.cnf": "[mysqld]"})
        return core_api

    def test_order_independent(self):
        """Test that reference order does not change the hash."""
        refs = [reference(SECRET.kind, "a"), reference(CONFIG_MAP.kind, "b")]
        core_api = self._core_api()
        assert references_hash(core_api, "db", refs) == references_hash(core_api, "db", list(reversed(refs)))

    def test_changes_with_data(self):
        """Test that changed data changes the hash."""
        refs = [reference(SECRET.kind, "a")]
        before = references_hash(self._core_api(secret_data={"password": "YQ=="}), "db", refs)
        after = references_hash(self._core_api(secret_data={"password": "Yg=="}), "db", refs)
        assert before != after

    def test_reads_by_kind(self):
        """Test that Secrets and ConfigMaps are read from their own APIs."""
        core_api = self._core_api()
        references_hash(core_api, "db", [reference(SECRET.kind, "s"), reference(CONFIG_MAP.kind, "c")])
        core_api.read_namespaced_secret.assert_called_once_with(name="s", namespace="db")
        core_api.read_namespaced_config_map.assert_called_once_with(name="c", namespace="db")

    def test_no_references(self):
        """Test that an empty reference list still hashes."""
        assert references_hash(MagicMock(), "db", [])

    def test_missing_reference(self):
        """Test that a missing object is reported as ValueError."""
        core_api = MagicMock()
        core_api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=404)
        with pytest.raises(ValueError, match="not found"):
            references_hash(core_api, "db", [reference(SECRET.kind, "gone")])


class TestApplyDeployment:
    """Test cases for apply_deployment."""

    MANIFEST = {"metadata": {"name": "mariadb-metrics", "namespace": "db"}}

    def test_create(self):
        """Test that a new Deployment is created."""
        apps_api = MagicMock()
        apply_deployment(apps_api, self.MANIFEST)
        apps_api.create_namespaced_deployment.assert_called_once_with(
            namespace="db", body=self.MANIFEST, field_manager=FIELD_MANAGER
        )
        apps_api.replace_namespaced_deployment.assert_not_called()

    def test_replace_on_conflict(self):
        """Test that an existing Deployment is replaced."""
        apps_api = MagicMock()
        apps_api.create_namespaced_deployment.side_effect = client.exceptions.ApiException(status=409)
        apply_deployment(apps_api, self.MANIFEST)
        apps_api.replace_namespaced_deployment.assert_called_once_with(
            name="mariadb-metrics", namespace="db", body=self.MANIFEST, field_manager=FIELD_MANAGER
        )

    def test_other_errors_raise(self):
        """Test that other API errors propagate."""
        apps_api = MagicMock()
        apps_api.create_namespaced_deployment.side_effect = client.exceptions.ApiException(status=403)
        with pytest.raises(client.exceptions.ApiException):
            apply_deployment(apps_api, self.MANIFEST)
