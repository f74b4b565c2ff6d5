"""
FloralMind Engine

Single entry point used by the HTTP layer and the AI agent: ingestion,
schema inference, store creation, sandboxed queries and profiling.
"""

from typing import Dict, List, Optional, Any, Sequence, Union
from pathlib import Path
import logging

from floralmind.config import FloralMindConfig, create_default_config
from floralmind.core.connection import StoreManager
from floralmind.core.data_profiler import StatsProfiler, ColumnSummary
from floralmind.core.models import ColumnDescriptor, DatasetRecord, QueryResult, StoreInfo
from floralmind.core.readers import (
    TableImporter,
    TabularData,
    dataset_label_from_filename,
    read_csv_file,
    read_csv_text,
)
from floralmind.core.sandbox import QuerySandbox
from floralmind.core.store_builder import StoreBuilder
from floralmind.core.type_inference import infer_schema
from floralmind.inference.context import DataContextBuilder

logger = logging.getLogger(__name__)


class FloralMindEngine:
    """
    Coordinates the data core.

    This class wires together:
    1. Store manager (file-per-dataset directory)
    2. Schema inference
    3. Store builder
    4. Query sandbox
    5. Stats profiler and the AI grounding context
    """

    def __init__(self, config: Optional[FloralMindConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Complete configuration object; defaults are used when omitted
        """
        self.config = config or create_default_config()
        self.store_manager = StoreManager(self.config.storage)
        self.store_builder = StoreBuilder(self.store_manager, self.config)
        self.sandbox = QuerySandbox(self.store_manager, self.config)
        self.profiler = StatsProfiler(self.store_manager, self.config)
        self.context_builder = DataContextBuilder(self.profiler)

    # Core operations

    def infer_schema(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> List[ColumnDescriptor]:
        """Classify every column as numeric, date or text."""
        ingestion = self.config.ingestion
        return infer_schema(
            headers,
            rows,
            sample_size=ingestion.inference_sample_size,
            numeric_threshold=ingestion.numeric_threshold,
            date_threshold=ingestion.date_threshold,
        )

    def create_store(
        self,
        label: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        columns: Sequence[ColumnDescriptor],
    ) -> StoreInfo:
        """Create a store and bulk-load rows into it."""
        return self.store_builder.create_store(label, headers, rows, columns)

    def run_query(self, store_id: str, sql: str) -> QueryResult:
        """
        Execute untrusted read-only SQL against one store.

        A malformed ``store_id`` raises InvalidInputError; a well-formed id
        with no store behind it raises StoreNotFoundError.
        """
        return self.sandbox.execute(store_id, sql)

    def list_physical_columns(self, store_id: str) -> List[str]:
        return self.profiler.list_physical_columns(store_id)

    def sample_rows(self, store_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.profiler.sample_rows(store_id, limit)

    def profile_columns(self, store_id: str) -> Dict[str, ColumnSummary]:
        return self.profiler.profile_columns(store_id)

    # Ingestion

    def ingest(self, label: str, data: TabularData, source: str = "csv") -> DatasetRecord:
        """
        Infer the schema of parsed data and load it into a new store.

        Args:
            label: Dataset name
            data: Parsed headers and rows
            source: Where the data came from ("csv", "import")

        Returns:
            DatasetRecord describing the new dataset
        """
        columns = self.infer_schema(data.headers, data.rows)
        info = self.create_store(label, data.headers, data.rows, columns)
        logger.info(f"Ingested dataset '{label}' into {info.store_id} ({info.row_count} rows)")
        return DatasetRecord(
            name=label,
            store_id=info.store_id,
            row_count=info.row_count,
            columns=columns,
            source=source,
        )

    def ingest_csv(self, path: Union[str, Path], label: Optional[str] = None) -> DatasetRecord:
        """Ingest a CSV file; the label defaults to the file name without ``.csv``."""
        data = read_csv_file(path)
        if data.dropped_rows:
            logger.warning(f"Skipped {data.dropped_rows} malformed rows in {path}")
        return self.ingest(label or dataset_label_from_filename(str(path)), data)

    def ingest_csv_text(self, content: str, label: str) -> DatasetRecord:
        """Ingest CSV content already held in memory."""
        return self.ingest(label, read_csv_text(content))

    def import_table(self, source_url: str, table_name: str) -> DatasetRecord:
        """
        Import a table from another database as a new dataset.

        Args:
            source_url: SQLAlchemy URL of the source database
            table_name: Table to copy
        """
        ingestion = self.config.ingestion
        with TableImporter(source_url) as importer:
            data = importer.fetch(
                table_name,
                limit=ingestion.import_row_limit,
                page_size=ingestion.import_page_size,
            )
        return self.ingest(f"import_{table_name}", data, source="import")

    def list_source_tables(self, source_url: str) -> List[Dict[str, Any]]:
        """List tables available for import from a source database."""
        with TableImporter(source_url) as importer:
            return importer.list_tables()

    # Housekeeping

    def describe(self, record: DatasetRecord) -> str:
        """Grounding context for the AI agent about one dataset."""
        return self.context_builder.build(record.store_id, record.columns, record.row_count)

    def list_stores(self) -> List[str]:
        return self.store_manager.list_stores()

    def drop(self, store_id: str) -> bool:
        """Delete a store. Returns False if it did not exist."""
        return self.store_manager.drop_store(store_id)
