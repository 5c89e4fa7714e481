"""The operator's fixed set of watch bindings."""

from __future__ import annotations

from ..api.kinds import CONFIG_MAP, MARIADB, MAXSCALE, SECRET
from ..indexes.mariadb import MARIADB_CONFIG_MAP_FIELD_PATHS, MARIADB_SECRET_FIELD_PATHS
from ..indexes.maxscale import MAXSCALE_SECRET_FIELD_PATHS
from .binder import WatchBinding
from .predicate import WATCH_LABEL_PREDICATE

WATCH_PLAN: tuple[WatchBinding, ...] = (
    *(
        WatchBinding(CONFIG_MAP, MARIADB, MARIADB.list_kind, field_path, WATCH_LABEL_PREDICATE)
        for field_path in MARIADB_CONFIG_MAP_FIELD_PATHS
    ),
    *(
        WatchBinding(SECRET, MARIADB, MARIADB.list_kind, field_path, WATCH_LABEL_PREDICATE)
        for field_path in MARIADB_SECRET_FIELD_PATHS
    ),
    *(
        WatchBinding(SECRET, MAXSCALE, MAXSCALE.list_kind, field_path, WATCH_LABEL_PREDICATE)
        for field_path in MAXSCALE_SECRET_FIELD_PATHS
    ),
)
