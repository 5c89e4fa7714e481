"""Entry point for the MariaDB Operator.

Run with ``kopf run -m mariadb_operator.main``. Importing this module
registers every handler and sets up the dependency watches. A watch that
cannot be set up aborts the import, and with it the operator.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

import kopf
from werkzeug.serving import make_server

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .constants import GRANT_FINALIZER
from .handlers.shared import get_k8s_client, operator_stopping
from .indexes import mariadb_indexes, maxscale_indexes
from .tracing import initialize_tracing
from .watch import WATCH_PLAN, AnnotationEnqueuer, KopfWatchAPI, WatchBinder, setup_watches

logger = logging.getLogger(__name__)

binder = WatchBinder(
    KopfWatchAPI(AnnotationEnqueuer(get_k8s_client)),
    [mariadb_indexes, maxscale_indexes],
)
bindings = setup_watches(binder, WATCH_PLAN)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    # kopf blocks deletion with this finalizer, so Grant delete handlers run on it.
    settings.persistence.finalizer = GRANT_FINALIZER

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    server = make_server("", metrics_port, health.create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    initialize_tracing()

    logger.info(f"Operator started with {len(bindings)} watch binding(s), metrics on port {metrics_port}")
    health.mark_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Interrupt in-flight finalizer polls and report not ready."""
    operator_stopping.set()
    health.mark_not_ready()
