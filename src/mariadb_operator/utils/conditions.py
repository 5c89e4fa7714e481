"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_GRANT_FAILED,
    COND_MARIADB_NOT_READY,
    COND_READY,
    COND_REFERENCES_RESOLVED,
    COND_REVOKE_FAILED,
    COND_USER_NOT_FOUND,
)


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()
    conditions = [dict(cond) for cond in conditions]

    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    return [dict(cond) for cond in conditions if cond.get("type") != condition_type]


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
    reason: str | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        reason or ("Ready" if status else "NotReady"),
        message,
        observed_generation,
    )


def set_mariadb_not_ready_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the MariaDBNotReady condition."""
    return update_condition(
        conditions,
        COND_MARIADB_NOT_READY,
        "True",
        "MariaDBNotReady",
        message,
        observed_generation,
    )


def set_user_not_found_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the UserNotFound condition."""
    return update_condition(
        conditions,
        COND_USER_NOT_FOUND,
        "True",
        "UserNotFound",
        message,
        observed_generation,
    )


def set_grant_failed_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the GrantFailed condition."""
    return update_condition(
        conditions,
        COND_GRANT_FAILED,
        "True",
        "GrantFailed",
        message,
        observed_generation,
    )


def set_revoke_failed_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the RevokeFailed condition."""
    return update_condition(
        conditions,
        COND_REVOKE_FAILED,
        "True",
        "RevokeFailed",
        message,
        observed_generation,
    )


def set_references_resolved_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the ReferencesResolved condition."""
    return update_condition(
        conditions,
        COND_REFERENCES_RESOLVED,
        "True" if status else "False",
        "ReferencesResolved" if status else "ReferencesMissing",
        message,
        observed_generation,
    )
