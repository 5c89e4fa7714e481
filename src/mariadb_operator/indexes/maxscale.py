"""Indexed references held by MaxScale resources."""

from __future__ import annotations

from typing import Any

from ..api.kinds import MAXSCALE, SECRET
from ..api.mariadb import are_metrics_enabled
from ..constants import MAXSCALE_METRICS_PASSWORD_SECRET_FIELD_PATH
from .registry import ExtractorRegistry, ref_name

maxscale_indexes = ExtractorRegistry(MAXSCALE)


@maxscale_indexes.extractor(MAXSCALE_METRICS_PASSWORD_SECRET_FIELD_PATH, SECRET)
def metrics_password_secret(obj: dict[str, Any]) -> list[str]:
    if not are_metrics_enabled(obj):
        return []
    auth = (obj.get("spec") or {}).get("auth") or {}
    return ref_name(auth.get("metricsPasswordSecretKeyRef"))


MAXSCALE_SECRET_FIELD_PATHS = (MAXSCALE_METRICS_PASSWORD_SECRET_FIELD_PATH,)
