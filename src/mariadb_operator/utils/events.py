"""Kubernetes events for the resources this operator reconciles.

Messages are sanitized before posting since they often carry database
error text.
"""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_EXPORTER_APPLIED,
    EVENT_REASON_FINALIZER_REMOVED,
    EVENT_REASON_GRANT_APPLIED,
    EVENT_REASON_GRANT_REVOKED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_REVOKE_FAILED,
    EVENT_REASON_VALIDATE_FAILED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
)
from .errors import sanitize_error_message

NORMAL = "Normal"
WARNING = "Warning"


def emit_event(meta: dict[str, Any], reason: str, message: str, type_: str = NORMAL) -> None:
    """Post an event on the resource described by ``meta``.

    Args:
        meta: Resource metadata
        reason: Event reason
        message: Event message, sanitized before posting
        type_: Event type (Normal or Warning)
    """
    kopf.event(meta, reason=reason, message=sanitize_error_message(message), type=type_)


def emit_reconcile_started(meta: dict[str, Any]) -> None:
    emit_event(meta, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(meta: dict[str, Any], message: str) -> None:
    emit_event(meta, EVENT_REASON_RECONCILE_FAILED, message, type_=WARNING)


def emit_validate_succeeded(meta: dict[str, Any]) -> None:
    emit_event(meta, EVENT_REASON_VALIDATE_SUCCEEDED, "Validation succeeded")


def emit_validate_failed(meta: dict[str, Any], message: str) -> None:
    emit_event(meta, EVENT_REASON_VALIDATE_FAILED, message, type_=WARNING)


def emit_grant_applied(meta: dict[str, Any], username: str) -> None:
    emit_event(meta, EVENT_REASON_GRANT_APPLIED, f"Privileges granted to user {username}")


def emit_grant_revoked(meta: dict[str, Any], username: str) -> None:
    emit_event(meta, EVENT_REASON_GRANT_REVOKED, f"Privileges revoked from user {username}")


def emit_revoke_failed(meta: dict[str, Any], message: str) -> None:
    emit_event(meta, EVENT_REASON_REVOKE_FAILED, message, type_=WARNING)


def emit_finalizer_removed(meta: dict[str, Any]) -> None:
    emit_event(meta, EVENT_REASON_FINALIZER_REMOVED, "Finalizer removed")


def emit_exporter_applied(meta: dict[str, Any], deployment_name: str) -> None:
    emit_event(meta, EVENT_REASON_EXPORTER_APPLIED, f"Exporter Deployment {deployment_name} applied")
