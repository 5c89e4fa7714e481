"""Finalizer coordination for resources with external effects."""

from .coordinator import FinalizationCoordinator, FinalizationOutcome, FinalizerState, finalizer_state
from .grant import create_grant_coordinator, revoke_effect, user_exists, user_exists_check
from .poll import PollOutcome, PollResult, poll_until_absent
from .remover import KubernetesFinalizerRemover

__all__ = [
    "FinalizationCoordinator",
    "FinalizationOutcome",
    "FinalizerState",
    "KubernetesFinalizerRemover",
    "PollOutcome",
    "PollResult",
    "create_grant_coordinator",
    "finalizer_state",
    "poll_until_absent",
    "revoke_effect",
    "user_exists",
    "user_exists_check",
]
