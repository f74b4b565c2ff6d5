"""
Type Inference

Classifies raw CSV columns as numeric, date or text from a sample of
their string values.
"""

from typing import List, Optional, Sequence
import logging
import math
import re

from floralmind.core.models import ColumnDescriptor, ColumnType

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 100
DEFAULT_NUMERIC_THRESHOLD = 0.8
DEFAULT_DATE_THRESHOLD = 0.6

DATE_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # YYYY-MM-DD
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}$"),  # M/D/YY(YY)
    re.compile(r"^\d{1,2}-\d{1,2}-\d{2,4}$"),  # M-D-YY(YY)
]


def parse_number(value: str) -> Optional[float]:
    """
    Parse a raw cell as a number after removing thousands separators.

    Returns None for empty, non-numeric or non-finite input.
    """
    cleaned = value.replace(",", "").strip()
    # float() accepts digit-group underscores, CSV numbers never use them
    if not cleaned or "_" in cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def looks_like_date(value: str) -> bool:
    """Check a raw cell against the supported date shapes."""
    stripped = value.strip()
    return any(p.match(stripped) for p in DATE_PATTERNS)


def detect_column_type(
    values: Sequence[str],
    numeric_threshold: float = DEFAULT_NUMERIC_THRESHOLD,
    date_threshold: float = DEFAULT_DATE_THRESHOLD,
) -> ColumnType:
    """
    Classify one column from its sampled values.

    Args:
        values: Raw string cells, typically the first 100 rows
        numeric_threshold: Minimum share of non-empty values parsing as numbers
        date_threshold: Minimum share of non-empty values shaped like dates

    Returns:
        NUMERIC, DATE, or TEXT when neither threshold is met or the column is empty
    """
    non_empty = [v for v in values if v is not None and v.strip() != ""]
    if not non_empty:
        return ColumnType.TEXT

    total = len(non_empty)
    numeric_count = sum(1 for v in non_empty if parse_number(v) is not None)
    if numeric_count / total >= numeric_threshold:
        return ColumnType.NUMERIC

    date_count = sum(1 for v in non_empty if looks_like_date(v))
    if date_count / total >= date_threshold:
        return ColumnType.DATE

    return ColumnType.TEXT


def infer_schema(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    numeric_threshold: float = DEFAULT_NUMERIC_THRESHOLD,
    date_threshold: float = DEFAULT_DATE_THRESHOLD,
) -> List[ColumnDescriptor]:
    """
    Infer a column descriptor for every header.

    Only the first ``sample_size`` rows are inspected. Short rows are
    treated as having empty cells for the missing positions.
    """
    sample = rows[:sample_size]
    descriptors = []

    for i, header in enumerate(headers):
        values = [(row[i] if i < len(row) and row[i] is not None else "") for row in sample]
        column_type = detect_column_type(values, numeric_threshold, date_threshold)
        example = next((v for v in values if v.strip() != ""), "")
        descriptors.append(ColumnDescriptor(name=header.strip(), type=column_type, sample=example))

    logger.debug(
        "Inferred schema: "
        + ", ".join(f"{d.name}={d.type.value}" for d in descriptors)
    )
    return descriptors
