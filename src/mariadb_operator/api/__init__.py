"""Resource models and spec accessors."""

from .grant import GrantDescriptor
from .kinds import CONFIG_MAP, GRANT, MARIADB, MAXSCALE, SECRET, USER, ResourceKind

__all__ = [
    "ResourceKind",
    "MARIADB",
    "MAXSCALE",
    "GRANT",
    "USER",
    "SECRET",
    "CONFIG_MAP",
    "GrantDescriptor",
]
