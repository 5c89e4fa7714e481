"""Handler modules for CRD resources."""

# Import handlers to register them - all handlers register themselves via @kopf decorators
from . import grant  # noqa: F401
from . import mariadb  # noqa: F401
from . import maxscale  # noqa: F401
