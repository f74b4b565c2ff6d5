"""
Stats Profiler

Computes per-column aggregates over a dataset store. The output grounds
the prompts given to the AI query agent, so it is recomputed in full on
every call and never cached.
"""

from typing import Dict, List, Optional, Any, Union
import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from floralmind.config import FloralMindConfig
from floralmind.core.connection import StoreManager, DATA_TABLE, ROW_ID_COLUMN
from floralmind.core.exceptions import InvalidInputError, QueryExecutionError
from floralmind.core.models import NumericSummary, CategoricalSummary

logger = logging.getLogger(__name__)

ColumnSummary = Union[NumericSummary, CategoricalSummary]

NUMERIC_STORAGE_TYPES = ("real", "float", "double")


def _is_numeric_type(declared_type: Any) -> bool:
    """Check a reflected column type against the numeric storage affinities."""
    return any(t in str(declared_type).lower() for t in NUMERIC_STORAGE_TYPES)


class StatsProfiler:
    """
    Read-only aggregation over a dataset store.

    This module handles:
    - Physical column listing (row identifier excluded)
    - Bounded raw row samples
    - Numeric summaries (min, max, avg, sum, non-null count)
    - Categorical summaries (distinct count, most frequent values)
    """

    def __init__(self, store_manager: StoreManager, config: FloralMindConfig):
        """
        Initialize the stats profiler.

        Args:
            store_manager: Store manager owning the store directory
            config: FloralMind configuration
        """
        self.store_manager = store_manager
        self.config = config
        self.profiling_config = config.profiling

    def list_physical_columns(self, store_id: str) -> List[str]:
        """Column identifiers exactly as stored, in table order, without ``id``."""
        columns = self._reflect_columns(store_id)
        return [c["name"] for c in columns if c["name"] != ROW_ID_COLUMN]

    def sample_rows(self, store_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get the first rows of a store, including the row identifier.

        Args:
            store_id: Store to read
            limit: Number of rows; defaults to the configured sample size
        """
        if limit is None:
            limit = self.profiling_config.sample_rows
        if limit < 0:
            raise InvalidInputError("Sample limit must not be negative")

        try:
            return self.store_manager.execute_query(
                store_id,
                f'SELECT * FROM "{DATA_TABLE}" ORDER BY "{ROW_ID_COLUMN}" LIMIT :limit',
                {"limit": limit},
            )
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"Error sampling rows from {store_id}: {e}") from e

    def profile_columns(self, store_id: str) -> Dict[str, ColumnSummary]:
        """
        Profile every column in a store.

        Args:
            store_id: Store to profile

        Returns:
            Mapping of physical column name to its summary
        """
        columns = self._reflect_columns(store_id)
        stats: Dict[str, ColumnSummary] = {}

        try:
            with self.store_manager.connect(store_id) as conn:
                for column in columns:
                    name = column["name"]
                    if name == ROW_ID_COLUMN:
                        continue
                    if _is_numeric_type(column["type"]):
                        stats[name] = self._numeric_summary(conn, name)
                    else:
                        stats[name] = self._categorical_summary(conn, name)
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"Error profiling {store_id}: {e}") from e

        logger.debug(f"Profiled {len(stats)} columns in {store_id}")
        return stats

    def _reflect_columns(self, store_id: str) -> List[Dict[str, Any]]:
        try:
            return self.store_manager.get_columns(store_id, DATA_TABLE)
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"Error reading columns of {store_id}: {e}") from e

    def _numeric_summary(self, conn: Connection, column_name: str) -> NumericSummary:
        """Get min/max/avg/sum/count over non-null values."""
        query = f"""
            SELECT
                MIN("{column_name}") AS min_val,
                MAX("{column_name}") AS max_val,
                AVG("{column_name}") AS avg_val,
                SUM("{column_name}") AS sum_val,
                COUNT("{column_name}") AS count_val
            FROM "{DATA_TABLE}"
            WHERE "{column_name}" IS NOT NULL
        """
        row = conn.execute(text(query)).mappings().one()
        return NumericSummary(
            min=row["min_val"],
            max=row["max_val"],
            avg=row["avg_val"],
            sum=row["sum_val"],
            count=row["count_val"] or 0,
        )

    def _categorical_summary(self, conn: Connection, column_name: str) -> CategoricalSummary:
        """Get distinct count and most common values with their counts."""
        distinct_count = conn.execute(text(f"""
            SELECT COUNT(DISTINCT "{column_name}")
            FROM "{DATA_TABLE}"
            WHERE "{column_name}" IS NOT NULL
        """)).scalar() or 0

        top = conn.execute(
            text(f"""
                SELECT "{column_name}" AS val, COUNT(*) AS cnt
                FROM "{DATA_TABLE}"
                WHERE "{column_name}" IS NOT NULL
                GROUP BY "{column_name}"
                ORDER BY cnt DESC, val
                LIMIT :limit
            """),
            {"limit": self.profiling_config.top_values_limit},
        ).mappings().all()

        return CategoricalSummary(
            distinct_count=distinct_count,
            top_values=[(row["val"], row["cnt"]) for row in top],
        )
