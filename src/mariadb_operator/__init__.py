"""MariaDB Operator: dependency indexing, watch wiring and Grant finalization."""

__version__ = "0.1.0"
