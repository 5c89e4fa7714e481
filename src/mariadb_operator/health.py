"""Health check endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable

from prometheus_client import make_wsgi_app
from werkzeug.wrappers import Response

_ready = threading.Event()


def mark_ready() -> None:
    """Report the operator as ready once watch setup has completed."""
    _ready.set()


def mark_not_ready() -> None:
    _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def create_combined_wsgi_app(metrics_app: Callable[..., Iterable[bytes]] | None = None) -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    ``/healthz`` always answers 200. ``/readyz`` answers 503 until
    :func:`mark_ready` is called. Every other path goes to the Prometheus app.

    Args:
        metrics_app: WSGI app serving metrics (default: prometheus_client's)

    Returns:
        Combined WSGI application
    """
    metrics_app = metrics_app or make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "")

        if path == "/healthz":
            response = Response('{"status":"ok"}', mimetype="application/json", status=200)
            return response(environ, start_response)
        if path == "/readyz":
            if is_ready():
                response = Response('{"status":"ready"}', mimetype="application/json", status=200)
            else:
                response = Response('{"status":"not ready"}', mimetype="application/json", status=503)
            return response(environ, start_response)
        return metrics_app(environ, start_response)

    return combined_app
