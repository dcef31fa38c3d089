"""
SQL identifier sanitization.

Table and column names arrive from callers and are interpolated into SQL
text (bound parameters only work for values), so every name passes through
``sanitize_identifier`` first.
"""

import re

DEFAULT_IDENTIFIER = "items"

_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(raw: str | None) -> str:
    """
    Normalize a caller-supplied name into a safe SQL identifier.

    Every character outside ``[A-Za-z0-9_]`` is removed. Input that is empty,
    or becomes empty after stripping, maps to ``DEFAULT_IDENTIFIER``.

    Args:
        raw: Name as supplied by the caller

    Returns:
        Identifier matching ``^[A-Za-z0-9_]+$``

    Example:
        >>> sanitize_identifier("my-table; DROP")
        'mytableDROP'
        >>> sanitize_identifier("!!!")
        'items'
    """
    cleaned = _INVALID_CHARS.sub("", raw or "")
    return cleaned or DEFAULT_IDENTIFIER
