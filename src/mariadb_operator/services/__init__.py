"""External services managed by the operator."""
