from __future__ import annotations

import pytest

from floralmind.core.exceptions import StoreNotFoundError
from floralmind.core.models import ColumnDescriptor, ColumnType, DatasetRecord
from floralmind.engine import FloralMindEngine


def test_context_describes_columns(engine: FloralMindEngine, sales_record: DatasetRecord) -> None:
    context = engine.describe(sales_record)
    lines = context.splitlines()

    assert lines[0] == 'Dataset has 4 rows and the following columns in the SQLite table "data":'
    assert lines[1] == '- "region" (text) | 3 unique values, top: East(2), North(1), West(1)'
    assert lines[2] == '- "sales" (numeric) | min: 100.0, max: 1250.0, avg: 550.00, sum: 1650.00'
    assert lines[3].startswith('- "order_date" (date) | 4 unique values, top: ')


def test_context_includes_samples_and_physical_names(
    engine: FloralMindEngine, sales_record: DatasetRecord
) -> None:
    context = engine.describe(sales_record)

    assert "\nSample rows:\n" in context
    assert '"region": "East"' in context
    assert '"region": "North"' not in context
    assert context.endswith('Actual column names in SQLite: "region", "sales", "order_date"')


def test_context_caps_top_values(engine: FloralMindEngine) -> None:
    rows = [[f"v{i}"] for i in range(8)]
    record = engine.ingest_csv_text("c\n" + "\n".join(r[0] for r in rows) + "\n", "caps")
    context = engine.describe(record)
    assert "8 unique values, top: v0(1), v1(1), v2(1), v3(1), v4(1)\n" in context


def test_context_for_missing_store(engine: FloralMindEngine) -> None:
    record = DatasetRecord(
        name="gone",
        store_id="ds_0_gone",
        row_count=0,
        columns=[ColumnDescriptor("x", ColumnType.TEXT)],
    )
    with pytest.raises(StoreNotFoundError):
        engine.describe(record)
