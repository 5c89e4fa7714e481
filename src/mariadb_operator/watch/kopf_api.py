"""kopf implementation of the watch registration surface."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Protocol

import kopf
from kubernetes import client

from .. import metrics
from ..api.kinds import ResourceKind
from ..constants import ANNOTATION_WATCHED_RESOURCE, FIELD_MANAGER
from ..indexes.registry import Extractor
from ..utils.rate_limit import rate_limit_k8s
from .predicate import LabelPredicate

logger = logging.getLogger(__name__)

# kopf reports the initial listing with no event type
_TRIGGER_EVENT_TYPES = {"ADDED", "MODIFIED", "DELETED"}


class Enqueuer(Protocol):
    """Requests a reconciliation of one owner object."""

    def enqueue(self, owner_kind: ResourceKind, namespace: str, name: str, trigger: str) -> None:
        ...


class AnnotationEnqueuer:
    """Enqueues reconciliations by touching an annotation on the owner.

    kopf treats annotation changes as part of the object's essence, so the
    patch fires the owner's ``on.update`` handlers.
    """

    def __init__(self, api_factory: Callable[[], client.CustomObjectsApi]):
        self._api_factory = api_factory

    def enqueue(self, owner_kind: ResourceKind, namespace: str, name: str, trigger: str) -> None:
        api = self._api_factory()
        start_time = time.time()
        try:
            rate_limit_k8s(api.patch_namespaced_custom_object)(
                group=owner_kind.group,
                version=owner_kind.version,
                namespace=namespace,
                plural=owner_kind.plural,
                name=name,
                body={"metadata": {"annotations": {ANNOTATION_WATCHED_RESOURCE: trigger}}},
                field_manager=FIELD_MANAGER,
            )
            metrics.api_call_total.labels(api_type="k8s", operation="enqueue_owner", result="success").inc()
        except client.exceptions.ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation="enqueue_owner", result="error").inc()
            if e.status == 404:
                logger.info(f"{owner_kind.kind} {namespace}/{name} is gone, nothing to reconcile")
                return
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="enqueue_owner").observe(duration)


def index_id(owner_kind: ResourceKind, field_path: str) -> str:
    """Handler id of the kopf index for one owner kind and field path."""
    return f"{owner_kind.plural}{field_path}"


def trigger_id(watched_kind: ResourceKind, owner_kind: ResourceKind, field_path: str) -> str:
    return f"{watched_kind.plural}->{owner_kind.plural}{field_path}"


def make_index_fn(extractor: Extractor) -> Callable[..., dict[tuple[str, str], tuple[str, str]]]:
    """Build a kopf index function keyed by the referenced object's identity.

    The keys are recomputed from the owner's current spec on every owner
    event; kopf replaces the owner's previous contribution to the index.
    """

    def index_fn(body: Any, namespace: str, name: str, **_: Any) -> dict[tuple[str, str], tuple[str, str]]:
        return {(namespace, ref): (namespace, name) for ref in extractor(body) if ref}

    return index_fn


def make_trigger_fn(
    watched_kind: ResourceKind,
    owner_kind: ResourceKind,
    field_path: str,
    predicate: LabelPredicate,
    enqueuer: Enqueuer,
) -> Callable[..., None]:
    """Build the event handler enqueuing owners of a changed watched object."""
    idx = index_id(owner_kind, field_path)

    def trigger_fn(body: Any, namespace: str, name: str, **kwargs: Any) -> None:
        if kwargs.get("type") not in _TRIGGER_EVENT_TYPES:
            return
        meta = body.get("metadata") or {}
        if not predicate.matches(meta):
            return

        index = kwargs[idx]
        owners = sorted(set(index.get((namespace, name), [])))
        if not owners:
            return

        trigger = f"{watched_kind.kind}/{name}@{meta.get('resourceVersion', '')}"
        for owner_ns, owner_name in owners:
            try:
                enqueuer.enqueue(owner_kind, owner_ns, owner_name, trigger)
            except Exception:
                metrics.watch_triggers_total.labels(
                    owner_kind=owner_kind.kind, watched_kind=watched_kind.kind, result="error"
                ).inc()
                raise
            metrics.watch_triggers_total.labels(
                owner_kind=owner_kind.kind, watched_kind=watched_kind.kind, result="enqueued"
            ).inc()
            logger.debug(f"{trigger} enqueued {owner_kind.kind} {owner_ns}/{owner_name} via {field_path}")

    return trigger_fn


class KopfWatchAPI:
    """Registers one kopf index and one kopf event handler per binding."""

    def __init__(self, enqueuer: Enqueuer, registry: kopf.OperatorRegistry | None = None):
        self.enqueuer = enqueuer
        self.registry = registry or kopf.get_default_registry()

    def watch(
        self,
        watched_kind: ResourceKind,
        owner_kind: ResourceKind,
        owner_list_kind: str,
        field_path: str,
        predicate: LabelPredicate,
        extractor: Extractor,
    ) -> None:
        kopf.index(
            *owner_kind.selector,
            id=index_id(owner_kind, field_path),
            registry=self.registry,
        )(make_index_fn(extractor))

        kopf.on.event(
            *watched_kind.selector,
            id=trigger_id(watched_kind, owner_kind, field_path),
            labels=predicate.kopf_labels(),
            registry=self.registry,
        )(make_trigger_fn(watched_kind, owner_kind, field_path, predicate, self.enqueuer))
