"""Handler for Grant CRD."""

from __future__ import annotations

from typing import Any, Callable

import kopf
from kubernetes import client

from ..api.grant import GrantDescriptor
from ..api.mariadb import is_ready, mariadb_ref
from ..builders.client import create_client_from_mariadb
from ..constants import (
    API_GROUP_VERSION,
    COND_GRANT_FAILED,
    COND_MARIADB_NOT_READY,
    COND_USER_NOT_FOUND,
    KIND_GRANT,
)
from ..exceptions import (
    ExternalEffectNotFoundError,
    ExternalEffectPermanentError,
    OperatorError,
    PrerequisiteCheckError,
)
from ..finalizers.coordinator import FinalizationOutcome
from ..finalizers.grant import create_grant_coordinator, revoke_effect, user_exists, user_exists_check
from ..services.mariadb.base import MariaDBClient, connection
from ..tracing import trace_span
from ..utils.conditions import (
    remove_condition,
    set_grant_failed_condition,
    set_ready_condition,
    set_revoke_failed_condition,
    set_user_not_found_condition,
)
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_finalizer_removed,
    emit_grant_applied,
    emit_grant_revoked,
    emit_revoke_failed,
    emit_validate_succeeded,
)
from .base import TRANSIENT_RETRY_DELAY, BaseHandler, raise_for_kopf
from .shared import get_core_client, get_k8s_client, get_mariadb_with_cache, operator_stopping


class GrantHandler(BaseHandler):
    """Handler for Grant resources."""

    def __init__(self):
        super().__init__(KIND_GRANT)
        self.coordinator = create_grant_coordinator(get_k8s_client)

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Reconcile Grant resource."""
        namespace = meta.get("namespace", "default")
        generation = meta.get("generation", 0)

        with trace_span("reconcile_grant", kind=KIND_GRANT, attributes={"grant.username": spec.get("username", "")}):
            try:
                descriptor = GrantDescriptor.from_spec(spec)
            except ValueError as e:
                self.handle_validation_error(meta, str(e))

            ref = mariadb_ref({"metadata": meta, "spec": spec})
            if ref is None:
                self.handle_validation_error(meta, "mariaDbRef.name is required")

            emit_validate_succeeded(meta)

            api = get_k8s_client()
            conditions = status.get("conditions", [])

            try:
                user_present = user_exists(api, namespace, descriptor.username)
            except PrerequisiteCheckError as e:
                raise_for_kopf(e)
            if not user_present:
                error_msg = f"User {descriptor.username} not found in namespace {namespace}"
                self.log_warning(meta, error_msg, reason="UserNotFound", username=descriptor.username)
                conditions = set_user_not_found_condition(conditions, error_msg, generation)
                conditions = set_ready_condition(conditions, False, error_msg, generation, reason="UserNotFound")
                self.update_resource_status(patch, meta, False, {"conditions": conditions})
                raise kopf.TemporaryError(error_msg, delay=TRANSIENT_RETRY_DELAY)
            conditions = remove_condition(conditions, COND_USER_NOT_FOUND)

            mariadb_ns, mariadb_name = ref
            try:
                mariadb = get_mariadb_with_cache(api, mariadb_name, mariadb_ns)
            except client.exceptions.ApiException as e:
                if e.status == 404:
                    self.handle_mariadb_not_found(
                        meta, status, patch, f"MariaDB {mariadb_name} not found in namespace {mariadb_ns}"
                    )
                raise_for_kopf(e)

            if not is_ready(mariadb):
                self.handle_mariadb_not_ready(meta, status, patch, mariadb_name, f"MariaDB {mariadb_name} is not ready")
            conditions = remove_condition(conditions, COND_MARIADB_NOT_READY)

            try:
                mariadb_client = create_client_from_mariadb(mariadb, get_core_client())
                with connection(mariadb_client) as handle:
                    mariadb_client.grant(handle, descriptor)
            except (ValueError, OperatorError) as e:
                self.handle_reconciliation_error(
                    meta, {"conditions": conditions}, patch, e, condition_fn=set_grant_failed_condition
                )

            self.log_info(
                meta,
                f"Granted {', '.join(descriptor.privileges)} to {descriptor.username}",
                reason="GrantApplied",
                username=descriptor.username,
                database=descriptor.database,
                table=descriptor.table,
            )
            emit_grant_applied(meta, descriptor.username)

            conditions = remove_condition(conditions, COND_GRANT_FAILED)
            conditions = set_ready_condition(conditions, True, "Grant applied", generation)
            self.update_resource_status(patch, meta, True, {"conditions": conditions})

    def delete(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Release the Grant finalizer, revoking privileges if the User outlived the Grant."""
        namespace = meta.get("namespace", "default")
        generation = meta.get("generation", 0)

        self.log_info(meta, f"Grant {meta.get('name')} is being deleted", event="deletion", reason="Deletion")

        with trace_span("finalize_grant", kind=KIND_GRANT):
            try:
                descriptor = GrantDescriptor.from_spec(spec)
            except ValueError as e:
                # An invalid Grant was never applied, so there is nothing to revoke.
                self.log_warning(meta, f"Skipping revoke for invalid Grant: {e}", reason="InvalidSpec")
                self._finalize(meta, status, patch, lambda: False, lambda: None)
                return

            def client_factory() -> MariaDBClient:
                return self._client_for(meta, spec)

            outcome = self._finalize(
                meta,
                status,
                patch,
                user_exists_check(get_k8s_client, namespace, descriptor.username),
                revoke_effect(client_factory, descriptor),
            )

        if outcome is FinalizationOutcome.REMOVED_AFTER_EFFECT:
            emit_grant_revoked(meta, descriptor.username)
        if outcome is not FinalizationOutcome.NOT_PRESENT:
            self.log_info(
                meta,
                "Grant finalizer removed",
                reason="FinalizerRemoved",
                outcome=outcome.value,
                generation=generation,
            )
            emit_finalizer_removed(meta)

    def _finalize(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        prerequisite_exists: Callable[[], bool],
        apply_effect: Callable[[], None],
    ) -> FinalizationOutcome:
        try:
            return self.coordinator.finalize(meta, prerequisite_exists, apply_effect, cancelled=operator_stopping)
        except ExternalEffectPermanentError as e:
            message = f"Failed to revoke privileges: {sanitize_exception(e)}"
            self.log_error(meta, message, error=e, reason="RevokeFailed")
            emit_revoke_failed(meta, message)
            conditions = set_revoke_failed_condition(status.get("conditions", []), message, meta.get("generation", 0))
            patch.status.update({"conditions": conditions})
            raise_for_kopf(e)
        except OperatorError as e:
            self.log_warning(
                meta,
                f"Finalization incomplete: {sanitize_exception(e)}",
                reason="FinalizationRetry",
                error_type=type(e).__name__,
            )
            raise_for_kopf(e)

    def _client_for(self, meta: dict[str, Any], spec: dict[str, Any]) -> MariaDBClient:
        """Resolve the Grant's MariaDB and build a client for it.

        A MariaDB that no longer exists took the grant with it.

        Raises:
            ExternalEffectNotFoundError: If the MariaDB is gone
        """
        ref = mariadb_ref({"metadata": meta, "spec": spec})
        if ref is None:
            raise ExternalEffectNotFoundError("Grant does not reference a MariaDB")
        mariadb_ns, mariadb_name = ref
        try:
            mariadb = get_mariadb_with_cache(get_k8s_client(), mariadb_name, mariadb_ns)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                raise ExternalEffectNotFoundError(f"MariaDB {mariadb_ns}/{mariadb_name} not found") from e
            raise
        return create_client_from_mariadb(mariadb, get_core_client())


# Global handler instance
_handler = GrantHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_GRANT)
@kopf.on.update(API_GROUP_VERSION, KIND_GRANT)
@kopf.on.resume(API_GROUP_VERSION, KIND_GRANT)
def handle_grant(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Grant resource reconciliation."""
    _handler.coordinator.attach(meta, patch)
    _handler.reconcile_with_metrics(meta, lambda: _handler.reconcile(spec, meta, status, patch))


# kopf runs delete handlers only while its finalizer (GRANT_FINALIZER, see
# main.configure) is on the object.
@kopf.on.delete(API_GROUP_VERSION, KIND_GRANT)
def handle_grant_delete(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Grant resource deletion."""
    _handler.delete(spec, meta, status, patch)
