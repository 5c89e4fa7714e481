"""Cross-resource reference indexes."""

from .mariadb import MARIADB_CONFIG_MAP_FIELD_PATHS, MARIADB_SECRET_FIELD_PATHS, mariadb_indexes
from .maxscale import MAXSCALE_SECRET_FIELD_PATHS, maxscale_indexes
from .registry import ExtractorRegistry, IndexedReference

__all__ = [
    "ExtractorRegistry",
    "IndexedReference",
    "mariadb_indexes",
    "maxscale_indexes",
    "MARIADB_CONFIG_MAP_FIELD_PATHS",
    "MARIADB_SECRET_FIELD_PATHS",
    "MAXSCALE_SECRET_FIELD_PATHS",
]
