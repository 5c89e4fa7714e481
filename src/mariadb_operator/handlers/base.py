"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, NoReturn

import kopf
from kubernetes import client

from .. import metrics
from ..exceptions import (
    ExternalEffectPermanentError,
    ExternalEffectTransientError,
    FinalizationCancelledError,
    PatchConflictError,
    PrerequisiteCheckError,
)
from ..logging import CONTROLLER_NAME, log_resource_event
from ..utils.conditions import set_mariadb_not_ready_condition
from ..utils.errors import sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started, emit_validate_failed
from ..utils.rate_limit import is_rate_limit_error

TRANSIENT_RETRY_DELAY = float(os.getenv("TRANSIENT_ERROR_RETRY_DELAY_SECONDS", "10"))
PERMANENT_RETRY_DELAY = float(os.getenv("PERMANENT_ERROR_RETRY_DELAY_SECONDS", "300"))


class BaseHandler:
    """Base class for all CRD handlers with common functionality."""

    def __init__(self, kind: str):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "MariaDB", "Grant")
        """
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    def handle_mariadb_not_found(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error_msg: str,
    ) -> NoReturn:
        """Record a missing MariaDB and retry later.

        Raises:
            kopf.TemporaryError: Always raises to trigger retry
        """
        self.log_error(meta, error_msg, reason="MariaDBNotFound")
        self._set_mariadb_not_ready(meta, status, patch, error_msg)
        raise kopf.TemporaryError(error_msg, delay=TRANSIENT_RETRY_DELAY)

    def handle_mariadb_not_ready(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        mariadb_name: str,
        error_msg: str,
    ) -> NoReturn:
        """Record a MariaDB that is not Ready yet and retry later.

        Raises:
            kopf.TemporaryError: Always raises to trigger retry
        """
        self.log_warning(meta, error_msg, reason="MariaDBNotReady", mariadb=mariadb_name)
        self._set_mariadb_not_ready(meta, status, patch, error_msg)
        raise kopf.TemporaryError(error_msg, delay=TRANSIENT_RETRY_DELAY)

    def _set_mariadb_not_ready(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error_msg: str,
    ) -> None:
        generation = meta.get("generation", 0)
        conditions = set_mariadb_not_ready_condition(status.get("conditions", []), error_msg, generation)
        emit_reconcile_failed(meta, error_msg)
        metrics.reconcile_total.labels(kind=self.kind, result="failed").inc()
        patch.status.update({
            "conditions": conditions,
            "observedGeneration": generation,
        })

    def handle_validation_error(
        self,
        meta: dict[str, Any],
        error_msg: str,
    ) -> NoReturn:
        """Handle validation error consistently.

        Raises:
            kopf.PermanentError: Always raises with the error message
        """
        self.log_error(meta, error_msg, reason="ValidationFailed")
        emit_validate_failed(meta, error_msg)
        metrics.reconcile_total.labels(kind=self.kind, result="failed").inc()
        raise kopf.PermanentError(error_msg)

    def handle_reconciliation_error(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error: Exception,
        condition_fn: Callable[[list[dict[str, Any]], str, int | None], list[dict[str, Any]]] | None = None,
    ) -> NoReturn:
        """Record a failed reconciliation step and hand the error to kopf.

        Args:
            meta: Kubernetes resource metadata
            status: Resource status
            patch: Kopf patch object
            error: Exception that occurred
            condition_fn: Optional condition setter called with the sanitized message

        Raises:
            kopf.TemporaryError: With a delay matching the kind of failure
        """
        sanitized_error = sanitize_exception(error)
        generation = meta.get("generation", 0)

        self.log_error(meta, f"Reconciliation failed: {sanitized_error}", error=error, reason="ReconciliationFailed")
        emit_reconcile_failed(meta, f"Reconciliation failed: {sanitized_error}")

        status_update: dict[str, Any] = {"observedGeneration": generation}
        if condition_fn is not None:
            status_update["conditions"] = condition_fn(status.get("conditions", []), sanitized_error, generation)
        patch.status.update(status_update)

        raise_for_kopf(error)

    def reconcile_with_metrics(
        self,
        meta: dict[str, Any],
        reconcile_fn: Callable[[], None],
    ) -> None:
        """Execute reconciliation with metrics and error handling.

        Args:
            meta: Kubernetes resource metadata
            reconcile_fn: Function to execute for reconciliation
        """
        emit_reconcile_started(meta)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            reconcile_fn()
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
        except (kopf.TemporaryError, kopf.PermanentError):
            metrics.reconcile_total.labels(kind=self.kind, result="retry").inc()
            raise
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(meta, "Reconciliation failed", error=e, reason="ReconciliationFailed")
            emit_reconcile_failed(meta, f"Reconciliation failed: {sanitize_exception(e)}")
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)

    def update_resource_status(
        self,
        patch: kopf.Patch,
        meta: dict[str, Any],
        ready: bool,
        status_data: dict[str, Any] | None = None,
    ) -> None:
        """Update resource status with common fields.

        Args:
            patch: Kopf patch object
            meta: Kubernetes resource metadata
            ready: Whether the resource is ready
            status_data: Additional status data to include
        """
        status_update = {
            "observedGeneration": meta.get("generation", 0),
            **(status_data or {}),
        }

        if ready:
            metrics.resource_status_total.labels(kind=self.kind, status="ready").inc()
        else:
            metrics.resource_status_total.labels(kind=self.kind, status="not_ready").inc()

        patch.status.update(status_update)


def raise_for_kopf(error: Exception) -> NoReturn:
    """Re-raise an operator error as the kopf error that schedules its retry.

    Transient failures come back after a short delay. Permanent database
    failures keep blocking the resource and are retried after a long delay.
    Anything else propagates unchanged.
    """
    message = sanitize_exception(error)
    if isinstance(error, (kopf.TemporaryError, kopf.PermanentError)):
        raise error
    if isinstance(error, ExternalEffectPermanentError):
        raise kopf.TemporaryError(message, delay=PERMANENT_RETRY_DELAY) from error
    if isinstance(
        error,
        (ExternalEffectTransientError, PrerequisiteCheckError, PatchConflictError, FinalizationCancelledError),
    ):
        raise kopf.TemporaryError(message, delay=TRANSIENT_RETRY_DELAY) from error
    if is_rate_limit_error(error):
        raise kopf.TemporaryError(message, delay=TRANSIENT_RETRY_DELAY) from error
    if isinstance(error, client.exceptions.ApiException) and error.status is not None and error.status >= 500:
        raise kopf.TemporaryError(message, delay=TRANSIENT_RETRY_DELAY) from error
    raise error
