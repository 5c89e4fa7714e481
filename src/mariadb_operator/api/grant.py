"""Grant resource model."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

DEFAULT_DATABASE = "*"
DEFAULT_TABLE = "*"

_PRIVILEGE_RE = re.compile(
    r"^[A-Z]+( [A-Z]+)*( ?\(\s*[A-Za-z0-9_]+(\s*,\s*[A-Za-z0-9_]+)*\s*\))?$",
    re.IGNORECASE,
)


def validate_privilege(privilege: Any) -> str:
    """Return the privilege stripped of surrounding whitespace.

    Privileges are spliced into GRANT and REVOKE statements, so only a plain
    keyword with an optional column list is accepted.

    Raises:
        ValueError: If the privilege has any other form
    """
    if not isinstance(privilege, str) or not _PRIVILEGE_RE.match(privilege.strip()):
        raise ValueError(f"invalid privilege: {privilege!r}")
    return privilege.strip()


@dataclass(frozen=True)
class GrantDescriptor:
    """Desired permission assignment for a MariaDB user."""

    privileges: tuple[str, ...]
    database: str
    table: str
    username: str
    grant_option: bool = False

    @classmethod
    def from_spec(cls, spec: dict[str, Any]) -> GrantDescriptor:
        """Build a descriptor from a Grant spec.

        Raises:
            ValueError: If privileges or username are missing, or a privilege is invalid
        """
        privileges = spec.get("privileges") or []
        username = spec.get("username")
        if not privileges:
            raise ValueError("privileges are required")
        if not username:
            raise ValueError("username is required")
        return cls(
            privileges=tuple(validate_privilege(p) for p in privileges),
            database=spec.get("database") or DEFAULT_DATABASE,
            table=spec.get("table") or DEFAULT_TABLE,
            username=username,
            grant_option=bool(spec.get("grantOption", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "privileges": list(self.privileges),
            "database": self.database,
            "table": self.table,
            "username": self.username,
            "grantOption": self.grant_option,
        }
