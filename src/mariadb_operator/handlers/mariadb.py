"""Handler for MariaDB CRD.

Reconciles the objects derived from a MariaDB that this operator owns: the
hash of its referenced ConfigMaps and Secrets and, when metrics are enabled,
the mysqld-exporter Deployment.
"""

from __future__ import annotations

from typing import Any

import kopf
from kubernetes import client

from ..api.mariadb import are_metrics_enabled
from ..builders.deployment import build_exporter_deployment
from ..constants import ANNOTATION_REFERENCES_HASH, API_GROUP_VERSION, KIND_MARIADB
from ..indexes.mariadb import mariadb_indexes
from ..tracing import trace_span
from ..utils.conditions import set_ready_condition, set_references_resolved_condition
from ..utils.events import emit_exporter_applied, emit_validate_succeeded
from .base import TRANSIENT_RETRY_DELAY, BaseHandler, raise_for_kopf
from .shared import apply_deployment, get_apps_client, get_core_client, references_hash


class MariaDBHandler(BaseHandler):
    """Handler for MariaDB resources."""

    def __init__(self):
        super().__init__(KIND_MARIADB)

    def reconcile(
        self,
        body: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Reconcile MariaDB resource."""
        namespace = meta.get("namespace", "default")
        name = meta.get("name", "unknown")
        generation = meta.get("generation", 0)
        conditions = status.get("conditions", [])

        with trace_span("reconcile_mariadb", kind=KIND_MARIADB, attributes={"mariadb.name": name}):
            refs = mariadb_indexes.all_references(body)
            emit_validate_succeeded(meta)

            try:
                refs_hash = references_hash(get_core_client(), namespace, refs)
            except ValueError as e:
                error_msg = str(e)
                self.log_warning(meta, error_msg, reason="ReferencesMissing")
                conditions = set_references_resolved_condition(conditions, False, error_msg, generation)
                conditions = set_ready_condition(conditions, False, error_msg, generation, reason="ReferencesMissing")
                self.update_resource_status(patch, meta, False, {"conditions": conditions})
                raise kopf.TemporaryError(error_msg, delay=TRANSIENT_RETRY_DELAY)
            except client.exceptions.ApiException as e:
                raise_for_kopf(e)

            conditions = set_references_resolved_condition(
                conditions, True, f"{len(refs)} reference(s) resolved", generation
            )

            if are_metrics_enabled(body):
                deployment = build_exporter_deployment(body, pod_annotations={ANNOTATION_REFERENCES_HASH: refs_hash})
                try:
                    apply_deployment(get_apps_client(), deployment)
                except client.exceptions.ApiException as e:
                    self.handle_reconciliation_error(meta, {"conditions": conditions}, patch, e)
                deployment_name = deployment["metadata"]["name"]
                self.log_info(meta, f"Exporter Deployment {deployment_name} applied", reason="ExporterApplied")
                emit_exporter_applied(meta, deployment_name)

            conditions = set_ready_condition(conditions, True, "MariaDB reconciled", generation)
            self.update_resource_status(
                patch,
                meta,
                True,
                {"conditions": conditions, "referencesHash": refs_hash},
            )


# Global handler instance
_handler = MariaDBHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_MARIADB)
@kopf.on.update(API_GROUP_VERSION, KIND_MARIADB)
@kopf.on.resume(API_GROUP_VERSION, KIND_MARIADB)
def handle_mariadb(
    body: kopf.Body,
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle MariaDB resource reconciliation."""
    obj = dict(body)
    _handler.reconcile_with_metrics(meta, lambda: _handler.reconcile(obj, meta, status, patch))
