from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from floralmind.core.exceptions import InvalidInputError, TableImportError
from floralmind.core.readers import (
    TableImporter,
    dataset_label_from_filename,
    read_csv_file,
    read_csv_text,
    stringify_value,
)


def test_read_csv_text_parses_quoted_fields() -> None:
    data = read_csv_text('name,amount\n"Smith, J","1,200"\nLee,300\n')
    assert data.headers == ["name", "amount"]
    assert data.rows == [["Smith, J", "1,200"], ["Lee", "300"]]
    assert data.dropped_rows == 0


def test_read_csv_text_drops_malformed_rows_and_blank_lines() -> None:
    data = read_csv_text("a,b\n1,2\n\n3\n4,5,6\n7,8\n")
    assert data.rows == [["1", "2"], ["7", "8"]]
    assert data.dropped_rows == 2


def test_read_csv_text_requires_a_data_row() -> None:
    with pytest.raises(InvalidInputError):
        read_csv_text("a,b\n")
    with pytest.raises(InvalidInputError):
        read_csv_text("")


def test_read_csv_text_strips_bom() -> None:
    data = read_csv_text("\ufeffregion,sales\nEast,1\n")
    assert data.headers == ["region", "sales"]


def test_read_csv_file(tmp_path: Path) -> None:
    path = tmp_path / "sales.csv"
    path.write_text("\ufeffRegion,Sales\r\nEast,100\r\nWest,250\r\n", encoding="utf-8")
    data = read_csv_file(path)
    assert data.headers == ["Region", "Sales"]
    assert data.row_count == 2


def test_read_csv_file_rejects_non_utf8(tmp_path: Path) -> None:
    path = tmp_path / "latin.csv"
    path.write_bytes("name\ncaf\xe9\n".encode("latin-1"))
    with pytest.raises(InvalidInputError):
        read_csv_file(path)


def test_dataset_label_from_filename() -> None:
    assert dataset_label_from_filename("Q1 Sales.CSV") == "Q1 Sales"
    assert dataset_label_from_filename("/tmp/uploads/data.csv") == "data"
    assert dataset_label_from_filename("notes.txt") == "notes.txt"


def test_stringify_value() -> None:
    assert stringify_value(None) == ""
    assert stringify_value(3.5) == "3.5"
    assert stringify_value({"a": 1}) == '{"a": 1}'
    assert stringify_value([1, 2]) == "[1, 2]"


@pytest.fixture
def source_db(tmp_path: Path) -> str:
    path = tmp_path / "source.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT, total REAL)")
    conn.executemany(
        "INSERT INTO orders (id, customer, total) VALUES (?, ?, ?)",
        [(i, f"c{i % 3}" if i % 4 else None, i * 1.5) for i in range(1, 26)],
    )
    conn.execute("CREATE TABLE empty_table (id INTEGER PRIMARY KEY, note TEXT)")
    conn.commit()
    conn.close()
    return f"sqlite:///{path}"


def test_fetch_pages_through_table(source_db: str) -> None:
    with TableImporter(source_db) as importer:
        data = importer.fetch("orders", limit=10000, page_size=7)

    assert data.headers == ["id", "customer", "total"]
    assert data.row_count == 25
    assert data.total_count == 25
    assert data.rows[0] == ["1", "c1", "1.5"]
    assert data.rows[3] == ["4", "", "6.0"]


def test_fetch_respects_limit(source_db: str) -> None:
    with TableImporter(source_db) as importer:
        data = importer.fetch("orders", limit=10, page_size=4)
    assert data.row_count == 10
    assert data.total_count == 25
    assert data.rows[-1][0] == "10"


def test_fetch_missing_table(source_db: str) -> None:
    with TableImporter(source_db) as importer:
        with pytest.raises(TableImportError, match="not found"):
            importer.fetch("nope")


def test_fetch_empty_table(source_db: str) -> None:
    with TableImporter(source_db) as importer:
        with pytest.raises(TableImportError, match="empty"):
            importer.fetch("empty_table")


def test_list_tables(source_db: str) -> None:
    with TableImporter(source_db) as importer:
        tables = importer.list_tables()
    assert tables == [
        {"name": "empty_table", "row_count": 0},
        {"name": "orders", "row_count": 25},
    ]
