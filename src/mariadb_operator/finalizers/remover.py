"""Version-conditioned finalizer removal through the Kubernetes API."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from kubernetes import client

from .. import metrics
from ..api.kinds import ResourceKind
from ..constants import FIELD_MANAGER
from ..exceptions import PatchConflictError
from ..utils.rate_limit import rate_limit_k8s

logger = logging.getLogger(__name__)


class KubernetesFinalizerRemover:
    """Removes a finalizer from a custom resource with a merge patch.

    The patch carries ``metadata.resourceVersion``, which the API server
    treats as a precondition and answers with 409 when it no longer matches.
    """

    def __init__(self, kind: ResourceKind, api_factory: Callable[[], client.CustomObjectsApi]):
        self.kind = kind
        self._api_factory = api_factory

    def remove(self, meta: dict[str, Any], finalizer: str) -> None:
        resource_version = meta.get("resourceVersion")
        if not resource_version:
            raise ValueError("metadata.resourceVersion is required to remove a finalizer")

        namespace = meta.get("namespace", "default")
        name = meta.get("name")
        body = {
            "metadata": {
                "finalizers": [f for f in meta.get("finalizers") or [] if f != finalizer],
                "resourceVersion": resource_version,
            }
        }

        api = self._api_factory()
        start_time = time.time()
        try:
            rate_limit_k8s(api.patch_namespaced_custom_object)(
                group=self.kind.group,
                version=self.kind.version,
                namespace=namespace,
                plural=self.kind.plural,
                name=name,
                body=body,
                field_manager=FIELD_MANAGER,
            )
            metrics.api_call_total.labels(api_type="k8s", operation="remove_finalizer", result="success").inc()
        except client.exceptions.ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation="remove_finalizer", result="error").inc()
            if e.status == 409:
                raise PatchConflictError(
                    f"{self.kind.kind} {namespace}/{name} changed since resourceVersion {resource_version}"
                ) from e
            if e.status == 404:
                logger.info(f"{self.kind.kind} {namespace}/{name} already deleted")
                return
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="remove_finalizer").observe(duration)
