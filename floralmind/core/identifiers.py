"""
Identifier sanitization.

Maps free-form headers and dataset labels to storage-safe SQLite
identifiers. The AI query layer recomputes column names from the
original headers with these same functions, so they must stay pure.
"""

from typing import Optional
import re
import time

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")
_LEADING_DIGIT = re.compile(r"^(\d)")
STORE_ID_PATTERN = re.compile(r"^[a-z0-9_]+$")
DEFAULT_MAX_TABLE_NAME_LENGTH = 60


def sanitize_identifier(name: str) -> str:
    """
    Sanitize an arbitrary string into a SQL identifier.

    Trims, replaces every character outside [A-Za-z0-9_] with an
    underscore, prefixes a leading digit with an underscore and lowercases.

    Example:
        >>> sanitize_identifier("Revenue (USD)")
        'revenue__usd_'
    """
    cleaned = _UNSAFE_CHARS.sub("_", name.strip())
    cleaned = _LEADING_DIGIT.sub(r"_\1", cleaned)
    return cleaned.lower()


def sanitize_column_name(name: str) -> str:
    """Physical column name for an original header."""
    return sanitize_identifier(name)


def sanitize_table_name(name: str, max_length: int = DEFAULT_MAX_TABLE_NAME_LENGTH) -> str:
    """Sanitized identifier truncated to ``max_length`` characters."""
    return sanitize_identifier(name)[:max_length]


def generate_store_id(
    label: str,
    max_length: int = DEFAULT_MAX_TABLE_NAME_LENGTH,
    token: Optional[str] = None,
) -> str:
    """
    Build a fresh store identifier for a dataset label.

    Args:
        label: Human dataset name, e.g. the uploaded file stem
        max_length: Upper bound on the identifier length
        token: Uniqueness token; defaults to the current time in milliseconds

    Returns:
        Identifier of the form ``ds_<token>_<label>``
    """
    if token is None:
        token = str(time.time_ns() // 1_000_000)
    return sanitize_table_name(f"ds_{token}_{label}", max_length)


def is_valid_store_id(store_id: str) -> bool:
    """Check that a store identifier is already in sanitized form."""
    return bool(store_id) and STORE_ID_PATTERN.match(store_id) is not None
