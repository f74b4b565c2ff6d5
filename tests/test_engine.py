from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from floralmind.core.exceptions import InvalidInputError, TableImportError
from floralmind.core.models import ColumnDescriptor, ColumnType
from floralmind.engine import FloralMindEngine


def test_ingest_csv_end_to_end(engine: FloralMindEngine, tmp_path: Path) -> None:
    csv_path = tmp_path / "Regional Sales.csv"
    csv_path.write_text("Region,Sales,Day\nEast,100,2024-01-01\nWest,250,2024-01-02\nbroken\n", encoding="utf-8")

    record = engine.ingest_csv(csv_path)

    assert record.name == "Regional Sales"
    assert record.row_count == 2
    assert record.source == "csv"
    assert [(c.name, c.type) for c in record.columns] == [
        ("Region", ColumnType.TEXT),
        ("Sales", ColumnType.NUMERIC),
        ("Day", ColumnType.DATE),
    ]
    assert record.store_id.endswith("_regional_sales")
    assert engine.list_stores() == [record.store_id]

    result = engine.run_query(record.store_id, "SELECT region, sales FROM data ORDER BY id")
    assert result.rows == [{"region": "East", "sales": 100.0}, {"region": "West", "sales": 250.0}]


def test_ingest_csv_with_explicit_label(engine: FloralMindEngine, tmp_path: Path) -> None:
    csv_path = tmp_path / "upload.csv"
    csv_path.write_text("a\n1\n", encoding="utf-8")
    record = engine.ingest_csv(csv_path, label="Custom Name")
    assert record.name == "Custom Name"
    assert "_custom_name" in record.store_id


def test_ingest_header_only_csv_fails_without_store(engine: FloralMindEngine) -> None:
    with pytest.raises(InvalidInputError):
        engine.ingest_csv_text("a,b\n", "nothing")
    assert engine.list_stores() == []


def test_record_to_dict(engine: FloralMindEngine) -> None:
    record = engine.ingest_csv_text("Name,Score\nann,3\n", "scores")
    payload = record.to_dict()
    assert payload["name"] == "scores"
    assert payload["row_count"] == 1
    assert payload["columns"] == [
        {"name": "Name", "type": "text", "sample": "ann"},
        {"name": "Score", "type": "numeric", "sample": "3"},
    ]
    assert [ColumnDescriptor.from_dict(c) for c in payload["columns"]] == record.columns


def test_import_table(engine: FloralMindEngine, tmp_path: Path) -> None:
    source = tmp_path / "shop.db"
    conn = sqlite3.connect(source)
    conn.execute("CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT, spend REAL)")
    conn.executemany(
        "INSERT INTO customers VALUES (?, ?, ?)",
        [(1, "Ann", 10.5), (2, "Bo", None), (3, "Cy", 7.0)],
    )
    conn.commit()
    conn.close()
    url = f"sqlite:///{source}"

    assert engine.list_source_tables(url) == [{"name": "customers", "row_count": 3}]

    # the source "id" header collides with the store's own row identifier
    with pytest.raises(InvalidInputError):
        engine.import_table(url, "customers")

    conn = sqlite3.connect(source)
    conn.execute("CREATE TABLE people AS SELECT name, spend FROM customers")
    conn.commit()
    conn.close()

    record = engine.import_table(url, "people")
    assert record.name == "import_people"
    assert record.source == "import"
    assert record.row_count == 3
    assert [c.type for c in record.columns] == [ColumnType.TEXT, ColumnType.NUMERIC]

    stats = engine.profile_columns(record.store_id)
    assert stats["spend"].sum == 17.5
    assert stats["spend"].count == 2


def test_import_missing_table(engine: FloralMindEngine, tmp_path: Path) -> None:
    source = tmp_path / "blank.db"
    sqlite3.connect(source).close()
    with pytest.raises(TableImportError):
        engine.import_table(f"sqlite:///{source}", "missing")


def test_drop(engine: FloralMindEngine) -> None:
    record = engine.ingest_csv_text("a\n1\n", "temp")
    assert engine.drop(record.store_id) is True
    assert engine.list_stores() == []
    assert engine.drop(record.store_id) is False
