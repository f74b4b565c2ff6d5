from __future__ import annotations

from pathlib import Path

import pytest

from floralmind.config import FloralMindConfig, create_default_config
from floralmind.core.models import DatasetRecord
from floralmind.core.readers import TabularData
from floralmind.engine import FloralMindEngine


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "stores"


@pytest.fixture
def config(data_dir: Path) -> FloralMindConfig:
    return create_default_config(data_dir=str(data_dir))


@pytest.fixture
def engine(config: FloralMindConfig) -> FloralMindEngine:
    return FloralMindEngine(config)


@pytest.fixture
def sales_record(engine: FloralMindEngine) -> DatasetRecord:
    headers = ["Region", "Sales", "Order Date"]
    rows = [
        ["East", "100", "2024-01-05"],
        ["West", "1,250", "2024-01-06"],
        ["East", "300", "2024-02-01"],
        ["North", "", "2024-02-03"],
    ]
    return engine.ingest("Q1 Sales", TabularData(headers=headers, rows=rows))

