"""Resource kinds known to the operator."""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import (
    API_GROUP,
    API_VERSION,
    KIND_CONFIG_MAP,
    KIND_GRANT,
    KIND_MARIADB,
    KIND_MAXSCALE,
    KIND_SECRET,
    KIND_USER,
)


@dataclass(frozen=True)
class ResourceKind:
    """Identifies a Kubernetes resource type.

    ``group`` is empty for core resources such as Secrets and ConfigMaps.
    """

    group: str
    version: str
    kind: str
    plural: str

    @property
    def list_kind(self) -> str:
        return f"{self.kind}List"

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    @property
    def selector(self) -> tuple[str, ...]:
        """Positional resource selector accepted by kopf decorators."""
        if not self.group:
            return (self.version, self.plural)
        return (self.api_version, self.kind)

    @property
    def is_custom(self) -> bool:
        return bool(self.group)

    def __str__(self) -> str:
        return self.kind


MARIADB = ResourceKind(API_GROUP, API_VERSION, KIND_MARIADB, "mariadbs")
MAXSCALE = ResourceKind(API_GROUP, API_VERSION, KIND_MAXSCALE, "maxscales")
GRANT = ResourceKind(API_GROUP, API_VERSION, KIND_GRANT, "grants")
USER = ResourceKind(API_GROUP, API_VERSION, KIND_USER, "users")
SECRET = ResourceKind("", "v1", KIND_SECRET, "secrets")
CONFIG_MAP = ResourceKind("", "v1", KIND_CONFIG_MAP, "configmaps")
