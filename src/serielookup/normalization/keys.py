"""
Serial-number key sanitization.

The sanitized key is the only join key between the registry and the
incident log, so it must collapse formatting differences between the two
exports (case, spacing, hyphens, dots) onto one canonical value.
"""

import re
from typing import Any

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def sanitize_key(raw: Any) -> str:
    """
    Normalize a raw serial value into a canonical lookup key.

    Trims surrounding whitespace, removes every character outside
    ``[A-Za-z0-9]`` and upper-cases the rest. Total and pure: non-string
    input yields an empty string and the function never raises.

    Examples:
        >>> sanitize_key(" abc-123 ")
        'ABC123'
        >>> sanitize_key(None)
        ''

    Args:
        raw: Raw serial value as read from a dataset or typed by a user.

    Returns:
        Sanitized key, possibly empty.
    """
    if not isinstance(raw, str):
        return ""
    return _NON_ALNUM.sub("", raw.strip()).upper()
