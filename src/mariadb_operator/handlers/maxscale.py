"""Handler for MaxScale CRD."""

from __future__ import annotations

from typing import Any

import kopf
from kubernetes import client

from ..api.mariadb import are_metrics_enabled, mariadb_ref
from ..builders.deployment import build_maxscale_exporter_deployment
from ..constants import ANNOTATION_REFERENCES_HASH, API_GROUP_VERSION, KIND_MAXSCALE
from ..indexes.maxscale import maxscale_indexes
from ..tracing import trace_span
from ..utils.conditions import set_ready_condition, set_references_resolved_condition
from ..utils.events import emit_exporter_applied, emit_validate_succeeded
from .base import TRANSIENT_RETRY_DELAY, BaseHandler, raise_for_kopf
from .shared import (
    apply_deployment,
    get_apps_client,
    get_core_client,
    get_k8s_client,
    get_mariadb_with_cache,
    references_hash,
)


class MaxScaleHandler(BaseHandler):
    """Handler for MaxScale resources."""

    def __init__(self):
        super().__init__(KIND_MAXSCALE)

    def reconcile(
        self,
        body: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Reconcile MaxScale resource."""
        namespace = meta.get("namespace", "default")
        generation = meta.get("generation", 0)
        conditions = status.get("conditions", [])

        with trace_span("reconcile_maxscale", kind=KIND_MAXSCALE, attributes={"maxscale.name": meta.get("name", "")}):
            ref = mariadb_ref(body)
            if ref is None:
                self.handle_validation_error(meta, "mariaDbRef.name is required")
            emit_validate_succeeded(meta)

            refs = maxscale_indexes.all_references(body)
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
                mariadb_ns, mariadb_name = ref
                try:
                    mariadb = get_mariadb_with_cache(get_k8s_client(), mariadb_name, mariadb_ns)
                except client.exceptions.ApiException as e:
                    if e.status == 404:
                        self.handle_mariadb_not_found(
                            meta, status, patch, f"MariaDB {mariadb_name} not found in namespace {mariadb_ns}"
                        )
                    raise_for_kopf(e)

                deployment = build_maxscale_exporter_deployment(
                    body, mariadb, pod_annotations={ANNOTATION_REFERENCES_HASH: refs_hash}
                )
                try:
                    apply_deployment(get_apps_client(), deployment)
                except client.exceptions.ApiException as e:
                    self.handle_reconciliation_error(meta, {"conditions": conditions}, patch, e)
                deployment_name = deployment["metadata"]["name"]
                self.log_info(meta, f"Exporter Deployment {deployment_name} applied", reason="ExporterApplied")
                emit_exporter_applied(meta, deployment_name)

            conditions = set_ready_condition(conditions, True, "MaxScale reconciled", generation)
            self.update_resource_status(
                patch,
                meta,
                True,
                {"conditions": conditions, "referencesHash": refs_hash},
            )


# Global handler instance
_handler = MaxScaleHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_MAXSCALE)
@kopf.on.update(API_GROUP_VERSION, KIND_MAXSCALE)
@kopf.on.resume(API_GROUP_VERSION, KIND_MAXSCALE)
def handle_maxscale(
    body: kopf.Body,
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle MaxScale resource reconciliation."""
    obj = dict(body)
    _handler.reconcile_with_metrics(meta, lambda: _handler.reconcile(obj, meta, status, patch))
