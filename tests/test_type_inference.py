from __future__ import annotations

from floralmind.core.models import ColumnType
from floralmind.core.type_inference import (
    detect_column_type,
    infer_schema,
    looks_like_date,
    parse_number,
)


def test_parse_number_strips_thousands_separators() -> None:
    assert parse_number("1,234.5") == 1234.5
    assert parse_number(" 42 ") == 42.0
    assert parse_number("-3e2") == -300.0


def test_parse_number_rejects_non_numbers() -> None:
    assert parse_number("") is None
    assert parse_number("   ") is None
    assert parse_number("abc") is None
    assert parse_number("nan") is None
    assert parse_number("inf") is None
    assert parse_number("1_000") is None


def test_mostly_numeric_column_is_numeric() -> None:
    values = ["1", "2", "3", "4", "5", "6", "7", "8", "n/a", "?"]
    assert detect_column_type(values) == ColumnType.NUMERIC


def test_below_numeric_threshold_is_not_numeric() -> None:
    values = ["1", "2", "3", "4", "5", "6", "7", "x", "y", "z"]
    assert detect_column_type(values) == ColumnType.TEXT


def test_empty_values_are_ignored_for_the_ratio() -> None:
    values = ["1,000", "", "2,500", "  ", "300"]
    assert detect_column_type(values) == ColumnType.NUMERIC


def test_all_empty_column_is_text() -> None:
    assert detect_column_type([]) == ColumnType.TEXT
    assert detect_column_type(["", " ", ""]) == ColumnType.TEXT


def test_date_shapes() -> None:
    assert looks_like_date("2024-01-31")
    assert looks_like_date("1/2/24")
    assert looks_like_date("12/31/2024")
    assert looks_like_date("3-4-2024")
    assert not looks_like_date("Jan 3 2024")
    assert not looks_like_date("2024/01/31")


def test_mostly_dates_column_is_date() -> None:
    values = ["2024-01-01", "2024-01-02", "1/3/2024", "unknown", "2024-01-05"]
    assert detect_column_type(values) == ColumnType.DATE


def test_below_date_threshold_is_text() -> None:
    values = ["2024-01-01", "soon", "later", "never", "2024-01-05"]
    assert detect_column_type(values) == ColumnType.TEXT


def test_infer_schema_builds_descriptors() -> None:
    headers = [" Region ", "Sales", "Day", "Notes"]
    rows = [
        ["East", "100", "2024-01-01", ""],
        ["West", "1,250", "2024-01-02", "late"],
    ]
    columns = infer_schema(headers, rows)

    assert [c.name for c in columns] == ["Region", "Sales", "Day", "Notes"]
    assert [c.type for c in columns] == [
        ColumnType.TEXT,
        ColumnType.NUMERIC,
        ColumnType.DATE,
        ColumnType.TEXT,
    ]
    assert columns[0].sample == "East"
    assert columns[3].sample == "late"


def test_infer_schema_only_samples_leading_rows() -> None:
    rows = [["1"], ["2"]] + [["text"]] * 10
    columns = infer_schema(["value"], rows, sample_size=2)
    assert columns[0].type == ColumnType.NUMERIC


def test_infer_schema_tolerates_short_rows() -> None:
    columns = infer_schema(["a", "b"], [["1"], ["2"]])
    assert columns[0].type == ColumnType.NUMERIC
    assert columns[1].type == ColumnType.TEXT
    assert columns[1].sample == ""
