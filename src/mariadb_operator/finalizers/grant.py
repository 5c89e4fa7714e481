"""Grant finalizer: revoke privileges unless the User went away first.

Deleting a User drops its account, and with it every privilege. A Grant that
is deleted together with its User therefore needs no revoke. The finalizer
waits a short window for the User to disappear and only revokes when it is
still there afterwards.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable

from kubernetes import client

from .. import metrics
from ..api.grant import GrantDescriptor
from ..api.kinds import GRANT, USER
from ..constants import GRANT_FINALIZER
from ..exceptions import PrerequisiteCheckError
from ..services.mariadb.base import MariaDBClient, connection
from ..utils.errors import sanitize_exception
from ..utils.rate_limit import rate_limit_k8s
from .coordinator import FinalizationCoordinator
from .remover import KubernetesFinalizerRemover

logger = logging.getLogger(__name__)


def user_exists(api: client.CustomObjectsApi, namespace: str, name: str) -> bool:
    """Return whether the User exists, reading straight from the API server.

    Raises:
        PrerequisiteCheckError: For any API error other than 404
    """
    start_time = time.time()
    try:
        rate_limit_k8s(api.get_namespaced_custom_object)(
            group=USER.group,
            version=USER.version,
            namespace=namespace,
            plural=USER.plural,
            name=name,
        )
    except client.exceptions.ApiException as e:
        if e.status == 404:
            metrics.api_call_total.labels(api_type="k8s", operation="get_user", result="not_found").inc()
            return False
        metrics.api_call_total.labels(api_type="k8s", operation="get_user", result="error").inc()
        raise PrerequisiteCheckError(
            f"error getting User {namespace}/{name}: {sanitize_exception(e)}"
        ) from e
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation="get_user").observe(duration)
    metrics.api_call_total.labels(api_type="k8s", operation="get_user", result="success").inc()
    return True


def user_exists_check(
    api_factory: Callable[[], client.CustomObjectsApi],
    namespace: str,
    name: str,
) -> Callable[[], bool]:
    def check() -> bool:
        return user_exists(api_factory(), namespace, name)

    return check


def revoke_effect(
    client_factory: Callable[[], MariaDBClient],
    descriptor: GrantDescriptor,
) -> Callable[[], None]:
    """Build the revoke run when the User outlives the poll window.

    The client is only created when the revoke actually runs, so a Grant
    whose User is already gone never touches its MariaDB.
    """

    def revoke() -> None:
        mariadb_client = client_factory()
        with connection(mariadb_client) as handle:
            mariadb_client.revoke(handle, descriptor)
        logger.info(f"Revoked {', '.join(descriptor.privileges)} from {descriptor.username}")

    return revoke


def create_grant_coordinator(api_factory: Callable[[], client.CustomObjectsApi]) -> FinalizationCoordinator:
    return FinalizationCoordinator(
        kind=GRANT.kind,
        finalizer=GRANT_FINALIZER,
        remover=KubernetesFinalizerRemover(GRANT, api_factory),
        poll_interval=float(os.getenv("GRANT_USER_POLL_INTERVAL_SECONDS", "1")),
        poll_timeout=float(os.getenv("GRANT_USER_POLL_TIMEOUT_SECONDS", "5")),
    )
