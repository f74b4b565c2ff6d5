"""
Tabular Input Readers

Turns uploaded CSV content, or a table in another database, into the
header + string-row shape that schema inference and the store builder
consume.
"""

from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass
from pathlib import Path
import csv
import io
import json
import logging
import re

from sqlalchemy import create_engine, inspect, select, func, MetaData, Table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError, NoSuchTableError

from floralmind.core.exceptions import InvalidInputError, TableImportError

logger = logging.getLogger(__name__)

_CSV_SUFFIX = re.compile(r"\.csv$", re.I)


@dataclass
class TabularData:
    """Headers plus rows of raw string cells."""
    headers: List[str]
    rows: List[List[str]]
    dropped_rows: int = 0  # Rows skipped because their length differed from the header
    total_count: Optional[int] = None  # Source row count when only part was fetched

    @property
    def row_count(self) -> int:
        return len(self.rows)


def read_csv_text(content: str) -> TabularData:
    """
    Parse CSV text into headers and data rows.

    Blank lines are skipped and rows whose length differs from the header
    are dropped.

    Raises:
        InvalidInputError: Unparseable content or no data row after the header
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    try:
        parsed = [row for row in csv.reader(io.StringIO(content)) if row]
    except csv.Error as e:
        raise InvalidInputError(f"Invalid CSV file: {e}") from e

    if len(parsed) < 2:
        raise InvalidInputError("CSV must have at least a header row and one data row")

    headers = parsed[0]
    rows = [row for row in parsed[1:] if len(row) == len(headers)]
    dropped = len(parsed) - 1 - len(rows)
    if dropped:
        logger.debug(f"Dropped {dropped} rows with a column count other than {len(headers)}")

    return TabularData(headers=headers, rows=rows, dropped_rows=dropped)


def read_csv_file(path: Union[str, Path]) -> TabularData:
    """Read and parse a CSV file from disk (UTF-8, BOM tolerated)."""
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"CSV file is not valid UTF-8: {path}") from e
    return read_csv_text(content)


def dataset_label_from_filename(filename: str) -> str:
    """Dataset label for an uploaded file: base name without ``.csv``."""
    return _CSV_SUFFIX.sub("", Path(filename).name)


def stringify_value(value: Any) -> str:
    """Render a source database value as a raw CSV-like cell."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


class TableImporter:
    """
    Reads tables from another database through SQLAlchemy.

    Any SQLAlchemy URL works as a source; rows are fetched in pages and
    stringified so they go through the same inference as a CSV upload.
    """

    def __init__(self, source_url: str):
        """
        Initialize the importer.

        Args:
            source_url: SQLAlchemy connection string of the source database
        """
        self.source_url = source_url
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        """Get or create the source engine."""
        if self._engine is None:
            try:
                self._engine = create_engine(self.source_url, pool_pre_ping=True)
            except Exception as e:
                raise TableImportError(f"Failed to create engine: {e}") from e
        return self._engine

    def list_tables(self) -> List[Dict[str, Any]]:
        """
        List user tables of the source with their row counts.

        Returns:
            Dictionaries with ``name`` and ``row_count``, sorted by name
        """
        try:
            names = inspect(self.engine).get_table_names()
            tables = []
            with self.engine.connect() as conn:
                for name in sorted(names):
                    if name.lower().startswith("sqlite_"):
                        continue
                    table = Table(name, MetaData(), autoload_with=conn)
                    count = conn.execute(select(func.count()).select_from(table)).scalar()
                    tables.append({"name": name, "row_count": count or 0})
            return tables
        except SQLAlchemyError as e:
            raise TableImportError(f"Failed to list source tables: {e}") from e

    def fetch(self, table_name: str, limit: int = 10000, page_size: int = 1000) -> TabularData:
        """
        Fetch up to ``limit`` rows of a source table.

        Args:
            table_name: Table to read
            limit: Maximum rows to import
            page_size: Rows per round trip

        Raises:
            TableImportError: Table missing, unreadable or empty
        """
        try:
            with self.engine.connect() as conn:
                table = Table(table_name, MetaData(), autoload_with=conn)
                total = conn.execute(select(func.count()).select_from(table)).scalar() or 0
                fetch_limit = min(limit, total)

                order_by = list(table.primary_key.columns) or list(table.columns)[:1]
                headers = [c.name for c in table.columns]
                rows: List[List[str]] = []

                for offset in range(0, fetch_limit, page_size):
                    page = conn.execute(
                        select(table)
                        .order_by(*order_by)
                        .offset(offset)
                        .limit(min(page_size, fetch_limit - offset))
                    ).fetchall()
                    if not page:
                        break
                    rows.extend([stringify_value(v) for v in row] for row in page)
        except NoSuchTableError as e:
            raise TableImportError(f'Cannot access table "{table_name}": not found') from e
        except SQLAlchemyError as e:
            raise TableImportError(f'Failed to fetch data from "{table_name}": {e}') from e

        if not rows:
            raise TableImportError(f'Table "{table_name}" is empty or has no accessible rows.')

        logger.info(f"Fetched {len(rows)} of {total} rows from {table_name}")
        return TabularData(headers=headers, rows=rows, total_count=total)

    def close(self):
        """Dispose of the source engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
