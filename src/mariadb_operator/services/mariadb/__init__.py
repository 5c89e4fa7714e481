"""MariaDB service clients."""

from .base import MariaDBClient, connection
from .client import MySQLConnectorClient, translate_error

__all__ = ["MariaDBClient", "MySQLConnectorClient", "connection", "translate_error"]
