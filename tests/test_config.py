from __future__ import annotations

from pathlib import Path

import pytest

from floralmind.config import (
    DEFAULT_FORBIDDEN_KEYWORDS,
    FloralMindConfig,
    JournalMode,
    StorageConfig,
    create_default_config,
)
from floralmind.engine import FloralMindEngine


def test_defaults() -> None:
    config = create_default_config(data_dir="/tmp/stores")
    assert config.sandbox.max_rows == 500
    assert config.sandbox.forbidden_keywords == DEFAULT_FORBIDDEN_KEYWORDS
    assert config.ingestion.numeric_threshold == 0.8
    assert config.ingestion.date_threshold == 0.6
    assert config.ingestion.inference_sample_size == 100
    assert config.profiling.top_values_limit == 10
    assert config.storage.journal_mode is JournalMode.DELETE


def test_data_dir_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FLORALMIND_DATA_DIR", str(tmp_path / "env"))
    assert StorageConfig().base_path == (tmp_path / "env").resolve()


def test_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "floralmind.yaml"
    path.write_text(
        "storage:\n"
        f"  data_dir: {tmp_path / 'yaml-stores'}\n"
        "  journal_mode: wal\n"
        "sandbox:\n"
        "  max_rows: 50\n"
        "  forbidden_keywords: [drop, vacuum]\n"
        "profiling:\n"
        "  top_values_limit: 3\n"
        "verbose: true\n",
        encoding="utf-8",
    )
    config = FloralMindConfig.from_yaml(str(path))

    assert config.storage.journal_mode is JournalMode.WAL
    assert config.sandbox.max_rows == 50
    assert config.sandbox.forbidden_keywords == ["DROP", "VACUUM"]
    assert config.profiling.top_values_limit == 3
    assert config.ingestion.max_table_name_length == 60
    assert config.verbose is True
    assert config.to_dict()["sandbox"]["max_rows"] == 50


def test_empty_yaml_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    config = FloralMindConfig.from_yaml(str(path))
    assert config.sandbox.max_rows == 500


def test_wal_stores_are_queryable(tmp_path: Path) -> None:
    engine = FloralMindEngine(create_default_config(data_dir=str(tmp_path), journal_mode="wal"))
    record = engine.ingest_csv_text("v\n1\n2\n", "wal")
    assert engine.run_query(record.store_id, "SELECT SUM(v) AS total FROM data").rows == [{"total": 3.0}]
