"""GRANT and REVOKE statement construction.

User and host are left as ``%s`` placeholders for the driver to bind.
Privileges and identifiers cannot be bound, so privileges are checked
again with :func:`validate_privilege` and identifiers are backtick-quoted.
"""

from __future__ import annotations

from ...api.grant import GrantDescriptor, validate_privilege


def quote_identifier(name: str) -> str:
    """Quote a database or table name; ``*`` stays a wildcard."""
    if name == "*":
        return name
    return "`" + name.replace("`", "``") + "`"


def _target(descriptor: GrantDescriptor) -> str:
    return f"{quote_identifier(descriptor.database)}.{quote_identifier(descriptor.table)}"


def grant_statement(descriptor: GrantDescriptor) -> str:
    privileges = ", ".join(validate_privilege(p) for p in descriptor.privileges)
    statement = f"GRANT {privileges} ON {_target(descriptor)} TO %s@%s"
    if descriptor.grant_option:
        statement += " WITH GRANT OPTION"
    return statement


def revoke_statement(descriptor: GrantDescriptor) -> str:
    privileges = [validate_privilege(p) for p in descriptor.privileges]
    if descriptor.grant_option:
        privileges.append("GRANT OPTION")
    return f"REVOKE {', '.join(privileges)} ON {_target(descriptor)} FROM %s@%s"
