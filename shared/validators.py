"""
Input normalisation and validation — framework-agnostic, pure functions.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

# Last-name marker used when a full name is a single word
LAST_NAME_PLACEHOLDER = "-"


def normalize_identifier(value: Any) -> Optional[str]:
    """Trim *value*; return ``None`` for non-strings and blank strings."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_email(value: Any) -> Optional[str]:
    """Trim and lower-case an email address; ``None`` when absent."""
    email = normalize_identifier(value)
    return email.lower() if email else None


def split_full_name(full_name: Any) -> Tuple[Optional[str], Optional[str]]:
    """Split a full name into ``(first_name, last_name)`` on whitespace.

    >>> split_full_name("Alice  van Nguyen")
    ('Alice', 'van Nguyen')
    >>> split_full_name("Alice")
    ('Alice', '-')
    >>> split_full_name("   ")
    (None, None)
    """
    if not isinstance(full_name, str):
        return None, None
    parts = full_name.split()
    if not parts:
        return None, None
    if len(parts) == 1:
        return parts[0], LAST_NAME_PLACEHOLDER
    return parts[0], " ".join(parts[1:])


def is_long_enough(password: str, min_length: int = 8) -> bool:
    """Return True if *password* has at least *min_length* characters."""
    return len(password) >= min_length
