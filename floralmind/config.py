"""
Configuration management for FloralMind.

Handles all configuration options including the store directory,
schema inference thresholds, query sandbox limits and profiling output.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from enum import Enum
import os
from pathlib import Path
import yaml


class JournalMode(Enum):
    """SQLite journal modes accepted for dataset stores."""
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    PERSIST = "PERSIST"
    WAL = "WAL"


DEFAULT_FORBIDDEN_KEYWORDS = [
    "DROP",
    "DELETE",
    "INSERT",
    "UPDATE",
    "ALTER",
    "CREATE",
    "ATTACH",
    "DETACH",
    "PRAGMA",
    "SQLITE_MASTER",
    "SQLITE_SCHEMA",
]


@dataclass
class StorageConfig:
    """Where and how dataset stores are kept on disk."""
    data_dir: Optional[str] = None
    journal_mode: JournalMode = JournalMode.DELETE
    file_suffix: str = ".sqlite"

    def __post_init__(self):
        if not self.data_dir:
            self.data_dir = os.environ.get("FLORALMIND_DATA_DIR", "./data")

    @property
    def base_path(self) -> Path:
        """Resolved store directory."""
        return Path(self.data_dir).expanduser().resolve()


@dataclass
class IngestionConfig:
    """Schema inference and import settings."""
    inference_sample_size: int = 100  # Rows inspected per column
    numeric_threshold: float = 0.8  # Share of values that must parse as numbers
    date_threshold: float = 0.6  # Share of values that must look like dates
    max_table_name_length: int = 60
    import_row_limit: int = 10000
    import_page_size: int = 1000


@dataclass
class SandboxConfig:
    """Query sandbox settings."""
    max_rows: int = 500  # Appended as LIMIT when a query has none
    forbidden_keywords: List[str] = field(
        default_factory=lambda: list(DEFAULT_FORBIDDEN_KEYWORDS)
    )


@dataclass
class ProfilingConfig:
    """Stats profiler settings."""
    top_values_limit: int = 10
    sample_rows: int = 3
    context_top_values: int = 5  # Top values quoted per column in the AI context


@dataclass
class FloralMindConfig:
    """Main configuration container."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    profiling: ProfilingConfig = field(default_factory=ProfilingConfig)

    verbose: bool = False

    @classmethod
    def from_yaml(cls, path: str) -> "FloralMindConfig":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "FloralMindConfig":
        """Create config from dictionary."""
        storage_data = data.get("storage", {}) or {}
        storage_config = StorageConfig(
            data_dir=storage_data.get("data_dir"),
            journal_mode=JournalMode(str(storage_data.get("journal_mode", "DELETE")).upper()),
            file_suffix=storage_data.get("file_suffix", ".sqlite"),
        )

        ingestion_data = data.get("ingestion", {}) or {}
        ingestion_config = IngestionConfig(
            inference_sample_size=ingestion_data.get("inference_sample_size", 100),
            numeric_threshold=ingestion_data.get("numeric_threshold", 0.8),
            date_threshold=ingestion_data.get("date_threshold", 0.6),
            max_table_name_length=ingestion_data.get("max_table_name_length", 60),
            import_row_limit=ingestion_data.get("import_row_limit", 10000),
            import_page_size=ingestion_data.get("import_page_size", 1000),
        )

        sandbox_data = data.get("sandbox", {}) or {}
        sandbox_config = SandboxConfig(
            max_rows=sandbox_data.get("max_rows", 500),
            forbidden_keywords=[
                k.upper() for k in sandbox_data.get("forbidden_keywords", DEFAULT_FORBIDDEN_KEYWORDS)
            ],
        )

        profiling_data = data.get("profiling", {}) or {}
        profiling_config = ProfilingConfig(
            top_values_limit=profiling_data.get("top_values_limit", 10),
            sample_rows=profiling_data.get("sample_rows", 3),
            context_top_values=profiling_data.get("context_top_values", 5),
        )

        return cls(
            storage=storage_config,
            ingestion=ingestion_config,
            sandbox=sandbox_config,
            profiling=profiling_config,
            verbose=data.get("verbose", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "storage": {
                "data_dir": self.storage.data_dir,
                "journal_mode": self.storage.journal_mode.value,
                "file_suffix": self.storage.file_suffix,
            },
            "ingestion": {
                "inference_sample_size": self.ingestion.inference_sample_size,
                "numeric_threshold": self.ingestion.numeric_threshold,
                "date_threshold": self.ingestion.date_threshold,
                "max_table_name_length": self.ingestion.max_table_name_length,
                "import_row_limit": self.ingestion.import_row_limit,
                "import_page_size": self.ingestion.import_page_size,
            },
            "sandbox": {
                "max_rows": self.sandbox.max_rows,
                "forbidden_keywords": list(self.sandbox.forbidden_keywords),
            },
            "profiling": {
                "top_values_limit": self.profiling.top_values_limit,
                "sample_rows": self.profiling.sample_rows,
                "context_top_values": self.profiling.context_top_values,
            },
            "verbose": self.verbose,
        }


def create_default_config(
    data_dir: Optional[str] = None,
    max_rows: int = 500,
    journal_mode: str = "DELETE",
) -> FloralMindConfig:
    """Factory function to create a default configuration."""

    return FloralMindConfig(
        storage=StorageConfig(data_dir=data_dir, journal_mode=JournalMode(journal_mode.upper())),
        ingestion=IngestionConfig(),
        sandbox=SandboxConfig(max_rows=max_rows),
        profiling=ProfilingConfig(),
    )
