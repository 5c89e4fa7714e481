"""Finalizer state machine guarding external cleanup before deletion.

An owner moves through ``NO_FINALIZER -> FINALIZER_ATTACHED -> FINALIZING ->
REMOVED``. While finalizing, the coordinator polls for the owner's
prerequisite resource. If the prerequisite disappears within the window no
cleanup is needed. If it is still there when the window closes, the external
effect runs first. Only then is the finalizer removed, with a single patch
conditioned on the resource version the coordinator read.

Nothing is cached between attempts: every call to :meth:`finalize` starts
again from the existence check.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Any, Callable, Protocol

import kopf

from .. import metrics
from ..exceptions import ExternalEffectNotFoundError, PrerequisiteCheckError
from .poll import PollOutcome, poll_until_absent

logger = logging.getLogger(__name__)


class FinalizerState(enum.Enum):
    NO_FINALIZER = "NoFinalizer"
    FINALIZER_ATTACHED = "FinalizerAttached"
    FINALIZING = "Finalizing"
    REMOVED = "Removed"


class FinalizationOutcome(enum.Enum):
    NOT_PRESENT = "not_present"
    REMOVED_WITHOUT_EFFECT = "removed_without_effect"
    REMOVED_AFTER_EFFECT = "removed_after_effect"


class FinalizerRemover(Protocol):
    """Removes a finalizer with a patch conditioned on ``metadata.resourceVersion``."""

    def remove(self, meta: dict[str, Any], finalizer: str) -> None:
        """Raises PatchConflictError when the object changed since ``meta`` was read."""
        ...


def finalizer_state(meta: dict[str, Any], finalizer: str) -> FinalizerState:
    present = finalizer in (meta.get("finalizers") or [])
    deleting = bool(meta.get("deletionTimestamp"))
    if present:
        return FinalizerState.FINALIZING if deleting else FinalizerState.FINALIZER_ATTACHED
    return FinalizerState.REMOVED if deleting else FinalizerState.NO_FINALIZER


class FinalizationCoordinator:
    """Drives one finalizer for one owner kind."""

    def __init__(
        self,
        kind: str,
        finalizer: str,
        remover: FinalizerRemover,
        poll_interval: float,
        poll_timeout: float,
    ):
        self.kind = kind
        self.finalizer = finalizer
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self._remover = remover

    def state(self, meta: dict[str, Any]) -> FinalizerState:
        return finalizer_state(meta, self.finalizer)

    def attach(self, meta: dict[str, Any], patch: kopf.Patch) -> bool:
        """Add the finalizer to a live object that does not carry it yet.

        Returns:
            True if the patch was mutated
        """
        if self.state(meta) is not FinalizerState.NO_FINALIZER:
            return False
        finalizers = list(meta.get("finalizers") or [])
        finalizers.append(self.finalizer)
        patch.metadata["finalizers"] = finalizers
        metrics.finalizer_operations_total.labels(kind=self.kind, operation="attach", result="success").inc()
        return True

    def finalize(
        self,
        meta: dict[str, Any],
        prerequisite_exists: Callable[[], bool],
        apply_effect: Callable[[], None],
        cancelled: threading.Event | None = None,
    ) -> FinalizationOutcome:
        """Run the finalizing sequence once.

        Args:
            meta: Metadata of the owner as last read, including resourceVersion
            prerequisite_exists: Existence check for the prerequisite resource
            apply_effect: Reverts the owner's external effect
            cancelled: Interrupts the existence poll when set

        Returns:
            How the finalizer was released

        Raises:
            PrerequisiteCheckError: If existence could not be determined
            FinalizationCancelledError: If cancelled during the poll
            ExternalEffectError: If the effect failed for a reason other than NotFound
            PatchConflictError: If the owner changed before the finalizer was removed
        """
        if self.finalizer not in (meta.get("finalizers") or []):
            return FinalizationOutcome.NOT_PRESENT

        name = meta.get("name", "unknown")
        start_time = time.monotonic()
        result = poll_until_absent(prerequisite_exists, self.poll_interval, self.poll_timeout, cancelled)
        metrics.prerequisite_poll_duration_seconds.labels(
            kind=self.kind, outcome=result.outcome.value
        ).observe(time.monotonic() - start_time)

        if result.outcome is PollOutcome.ERROR:
            metrics.finalizer_operations_total.labels(
                kind=self.kind, operation="check_prerequisite", result="error"
            ).inc()
            raise PrerequisiteCheckError(
                f"error checking prerequisite of {self.kind} {name}: {result.error}"
            ) from result.error

        if result.outcome is PollOutcome.STILL_PRESENT:
            # An exhausted window means the prerequisite exists: clean up first.
            try:
                apply_effect()
                metrics.finalizer_operations_total.labels(kind=self.kind, operation="effect", result="success").inc()
            except ExternalEffectNotFoundError:
                logger.info(f"External effect of {self.kind} {name} already absent")
                metrics.finalizer_operations_total.labels(kind=self.kind, operation="effect", result="not_found").inc()
            except Exception:
                metrics.finalizer_operations_total.labels(kind=self.kind, operation="effect", result="error").inc()
                raise
            outcome = FinalizationOutcome.REMOVED_AFTER_EFFECT
        else:
            logger.info(f"Prerequisite of {self.kind} {name} is gone after {result.attempts} check(s)")
            outcome = FinalizationOutcome.REMOVED_WITHOUT_EFFECT

        try:
            self._remover.remove(meta, self.finalizer)
        except Exception:
            metrics.finalizer_operations_total.labels(kind=self.kind, operation="remove", result="error").inc()
            raise
        metrics.finalizer_operations_total.labels(kind=self.kind, operation="remove", result="success").inc()
        return outcome
