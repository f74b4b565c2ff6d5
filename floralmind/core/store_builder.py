"""
Store Builder

Creates one SQLite store per dataset, defines its typed ``data`` table
and bulk-loads the rows in a single transaction.
"""

from typing import Dict, List, Optional, Any, Sequence
import logging
import time

from sqlalchemy import MetaData, Table, Column, Integer
from sqlalchemy.types import REAL, TEXT
from sqlalchemy.exc import SQLAlchemyError

from floralmind.config import FloralMindConfig
from floralmind.core.connection import StoreManager, DATA_TABLE, ROW_ID_COLUMN
from floralmind.core.exceptions import InvalidInputError, StoreCreationError
from floralmind.core.identifiers import sanitize_column_name, generate_store_id
from floralmind.core.models import ColumnDescriptor, StoreInfo
from floralmind.core.type_inference import parse_number

logger = logging.getLogger(__name__)


class StoreBuilder:
    """
    Turns parsed tabular input into a typed, queryable store.

    This module handles:
    - Store identifier generation
    - Physical column naming and affinity (REAL / TEXT)
    - Value coercion (numbers with thousands separators, empty cells)
    - Atomic bulk load; a failed load leaves no store file behind
    """

    def __init__(self, store_manager: StoreManager, config: FloralMindConfig):
        """
        Initialize the store builder.

        Args:
            store_manager: Store manager owning the store directory
            config: FloralMind configuration
        """
        self.store_manager = store_manager
        self.config = config

    def create_store(
        self,
        label: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[Optional[str]]],
        columns: Sequence[ColumnDescriptor],
    ) -> StoreInfo:
        """
        Create and load a new dataset store.

        Args:
            label: Dataset name used to derive the store identifier
            headers: Original header strings, in file order
            rows: Data rows, each the same length as ``headers``
            columns: Inferred descriptors, one per header

        Returns:
            StoreInfo with the new identifier and the number of rows loaded

        Raises:
            InvalidInputError: Mismatched lengths or colliding column names
            StoreCreationError: The store could not be written
        """
        physical_names = self.physical_column_names(headers)
        if len(columns) != len(headers):
            raise InvalidInputError(
                f"Expected {len(headers)} column descriptors, got {len(columns)}"
            )
        for index, row in enumerate(rows):
            if len(row) != len(headers):
                raise InvalidInputError(
                    f"Row {index} has {len(row)} values, expected {len(headers)}"
                )

        store_id = self._new_store_id(label)
        table = self._build_table(physical_names, columns)
        records = [self._coerce_row(row, physical_names, columns) for row in rows]

        start = time.time()
        try:
            with self.store_manager.begin_write(store_id) as conn:
                table.metadata.create_all(conn)
                if records:
                    conn.execute(table.insert(), records)
        except SQLAlchemyError as e:
            raise StoreCreationError(f"Failed to create store {store_id}: {e}") from e
        except OSError as e:
            raise StoreCreationError(f"Failed to write store {store_id}: {e}") from e

        elapsed = time.time() - start
        logger.info(
            f"Created store {store_id} with {len(records)} rows "
            f"and {len(physical_names)} columns in {elapsed:.2f}s"
        )
        return StoreInfo(store_id=store_id, row_count=len(records))

    def physical_column_names(self, headers: Sequence[str]) -> List[str]:
        """
        Sanitize headers into physical column names.

        Two headers mapping to the same identifier, or a header mapping
        to the row identifier column, are rejected rather than renamed:
        callers rebuild names from the headers alone and must get the
        same answer.
        """
        if not headers:
            raise InvalidInputError("At least one column is required")

        seen: Dict[str, str] = {ROW_ID_COLUMN: "<row identifier>"}
        names = []
        for header in headers:
            name = sanitize_column_name(header)
            if not name:
                raise InvalidInputError("Column headers must not be empty")
            if name in seen:
                raise InvalidInputError(
                    f"Column {header!r} collides with {seen[name]!r} "
                    f"(both map to {name!r})"
                )
            seen[name] = header
            names.append(name)
        return names

    def _new_store_id(self, label: str) -> str:
        """Generate an identifier that no existing store uses."""
        max_length = self.config.ingestion.max_table_name_length
        token = time.time_ns() // 1_000_000
        store_id = generate_store_id(label, max_length, token=str(token))
        while self.store_manager.exists(store_id):
            token += 1
            store_id = generate_store_id(label, max_length, token=str(token))
        return store_id

    def _build_table(
        self,
        physical_names: List[str],
        columns: Sequence[ColumnDescriptor],
    ) -> Table:
        """Define the ``data`` table for a store."""
        metadata = MetaData()
        value_columns = [
            Column(name, REAL if descriptor.is_numeric else TEXT)
            for name, descriptor in zip(physical_names, columns)
        ]
        return Table(
            DATA_TABLE,
            metadata,
            Column(ROW_ID_COLUMN, Integer, primary_key=True, autoincrement=True),
            *value_columns,
            sqlite_autoincrement=True,
        )

    @staticmethod
    def _coerce_row(
        row: Sequence[Optional[str]],
        physical_names: List[str],
        columns: Sequence[ColumnDescriptor],
    ) -> Dict[str, Any]:
        """Convert one raw row into column values ready for insertion."""
        record: Dict[str, Any] = {}
        for name, descriptor, raw in zip(physical_names, columns, row):
            value = "" if raw is None else str(raw)
            if descriptor.is_numeric:
                record[name] = parse_number(value)
            else:
                record[name] = value.strip() or None
        return record
