"""Base MariaDB client interface."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from ...api.grant import GrantDescriptor


class MariaDBClient(Protocol):
    """Protocol defining the privilege operations applied to a live MariaDB.

    Implementations raise subclasses of ``ExternalEffectError``:
    ``ExternalEffectNotFoundError`` when a revoke target is already absent,
    ``DatabaseConnectionError`` when the server cannot be reached and
    ``PermissionDeniedError`` when the operator account lacks privileges.
    """

    def connect(self) -> Any:
        """Open a connection and return its handle."""
        ...

    def grant(self, handle: Any, descriptor: GrantDescriptor) -> None:
        """Grant the privileges described by ``descriptor``."""
        ...

    def revoke(self, handle: Any, descriptor: GrantDescriptor) -> None:
        """Revoke the privileges described by ``descriptor``."""
        ...

    def close(self, handle: Any) -> None:
        """Release a connection handle."""
        ...


@contextmanager
def connection(client: MariaDBClient) -> Iterator[Any]:
    """Open a connection for the duration of a block."""
    handle = client.connect()
    try:
        yield handle
    finally:
        client.close(handle)
