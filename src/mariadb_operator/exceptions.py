"""Error taxonomy for the MariaDB Operator.

Startup errors (``UnsupportedFieldPathError``, ``WatchRegistrationError``)
abort operator bootstrap. Every other error is returned to kopf, which owns
backoff and rescheduling.
"""

from __future__ import annotations


class OperatorError(Exception):
    """Base class for all operator errors."""


class UnsupportedFieldPathError(OperatorError):
    """Raised when no extractor is registered for a field path token."""

    def __init__(self, field_path: str, owner_kind: str | None = None):
        self.field_path = field_path
        self.owner_kind = owner_kind
        if owner_kind:
            message = f"unsupported field path for {owner_kind}: {field_path}"
        else:
            message = f"unsupported field path: {field_path}"
        super().__init__(message)


class WatchRegistrationError(OperatorError):
    """Raised when a watch binding cannot be registered."""

    def __init__(self, field_path: str, reason: str):
        self.field_path = field_path
        self.reason = reason
        super().__init__(f"error watching '{field_path}': {reason}")


class PrerequisiteCheckError(OperatorError):
    """Raised when the existence of a prerequisite resource cannot be determined."""


class ExternalEffectError(OperatorError):
    """Base class for failures applying or revoking privileges in MariaDB."""


class ExternalEffectNotFoundError(ExternalEffectError):
    """The revoke target is already absent."""


class ExternalEffectTransientError(ExternalEffectError):
    """A retryable failure talking to MariaDB."""


class DatabaseConnectionError(ExternalEffectTransientError):
    """MariaDB could not be reached."""


class ExternalEffectPermanentError(ExternalEffectError):
    """A failure that will not resolve by retrying alone."""


class PermissionDeniedError(ExternalEffectPermanentError):
    """The operator's database account lacks the required privileges."""


class PatchConflictError(OperatorError):
    """A version-conditioned patch was rejected because the object changed."""


class FinalizationCancelledError(OperatorError):
    """Finalization was interrupted before any mutation was performed."""
