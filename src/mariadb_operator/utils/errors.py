"""Error sanitization utilities to prevent information leakage."""

import re


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"mysql://[^:\s]+:([^@\s]+)@",
    r"mariadb://[^:\s]+:([^@\s]+)@",
    r"identified[\s]+by[\s]+'([^']*)'",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "passwd",
    "root_password",
    "secret",
    "credentials",
    "token",
}


def _redact_group(match: re.Match) -> str:
    start, end = match.span(1)
    offset = match.start(0)
    whole = match.group(0)
    return whole[: start - offset] + "[REDACTED]" + whole[end - offset :]


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, _redact_group, sanitized, flags=re.IGNORECASE)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{field}[:=\s]+([^\s,;\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))
