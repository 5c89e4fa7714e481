"""MariaDB client implementation backed by mysql-connector-python."""

from __future__ import annotations

import logging
import os
from typing import Any

import mysql.connector
from mysql.connector import errorcode

from ... import metrics
from ...api.grant import GrantDescriptor
from ...constants import DEFAULT_GRANT_HOST
from ...exceptions import (
    DatabaseConnectionError,
    ExternalEffectError,
    ExternalEffectNotFoundError,
    ExternalEffectPermanentError,
    PermissionDeniedError,
)
from ...utils.errors import sanitize_exception
from .sql import grant_statement, revoke_statement

logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = {
    errorcode.ER_NONEXISTING_GRANT,
    errorcode.ER_NONEXISTING_TABLE_GRANT,
}

PERMISSION_ERRORS = {
    errorcode.ER_ACCESS_DENIED_ERROR,
    errorcode.ER_DBACCESS_DENIED_ERROR,
    errorcode.ER_TABLEACCESS_DENIED_ERROR,
    errorcode.ER_SPECIFIC_ACCESS_DENIED_ERROR,
}


def translate_error(error: mysql.connector.Error) -> ExternalEffectError:
    """Map a driver error onto the operator's error taxonomy."""
    message = sanitize_exception(error)
    if error.errno in NOT_FOUND_ERRORS:
        return ExternalEffectNotFoundError(message)
    if error.errno in PERMISSION_ERRORS:
        return PermissionDeniedError(message)
    if isinstance(error, (mysql.connector.errors.InterfaceError, mysql.connector.errors.OperationalError)):
        return DatabaseConnectionError(message)
    return ExternalEffectPermanentError(message)


class MySQLConnectorClient:
    """MariaDB client applying grants over a mysql-connector connection."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        connect_timeout: float | None = None,
        grant_host: str = DEFAULT_GRANT_HOST,
    ) -> None:
        """Initialize the client.

        Args:
            host: MariaDB host name
            port: MariaDB port
            user: Account used by the operator
            password: Password of that account
            connect_timeout: Connection timeout in seconds
            grant_host: Host part of the accounts grants are applied to
        """
        self.host = host
        self.port = port
        self.user = user
        self._password = password
        self.connect_timeout = connect_timeout or float(os.getenv("MARIADB_CONNECT_TIMEOUT_SECONDS", "10"))
        self.grant_host = grant_host

    def connect(self) -> Any:
        try:
            handle = mysql.connector.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self._password,
                connection_timeout=int(self.connect_timeout),
                autocommit=True,
            )
        except mysql.connector.Error as e:
            metrics.sql_operations_total.labels(operation="connect", result="error").inc()
            raise translate_error(e) from e
        metrics.sql_operations_total.labels(operation="connect", result="success").inc()
        return handle

    def grant(self, handle: Any, descriptor: GrantDescriptor) -> None:
        self._execute(handle, "grant", grant_statement(descriptor), descriptor.username)

    def revoke(self, handle: Any, descriptor: GrantDescriptor) -> None:
        self._execute(handle, "revoke", revoke_statement(descriptor), descriptor.username)

    def close(self, handle: Any) -> None:
        try:
            handle.close()
        except mysql.connector.Error as e:
            logger.warning(f"Failed to close MariaDB connection to {self.host}: {sanitize_exception(e)}")

    def _execute(self, handle: Any, operation: str, statement: str, username: str) -> None:
        cursor = handle.cursor()
        try:
            cursor.execute(statement, (username, self.grant_host))
        except mysql.connector.Error as e:
            error = translate_error(e)
            result = "not_found" if isinstance(error, ExternalEffectNotFoundError) else "error"
            metrics.sql_operations_total.labels(operation=operation, result=result).inc()
            raise error from e
        finally:
            cursor.close()
        metrics.sql_operations_total.labels(operation=operation, result="success").inc()
        logger.info(f"Executed {operation} for user {username} on {self.host}")
