"""
Dataset Context Builder

Renders the dataset description handed to the AI query agent: column
names as they exist in SQLite, their types and stats, a few sample rows
and the literal physical column list.
"""

from typing import Any, Optional, Sequence
import json
import logging

from floralmind.core.data_profiler import StatsProfiler
from floralmind.core.identifiers import sanitize_column_name
from floralmind.core.models import ColumnDescriptor, NumericSummary, CategoricalSummary

logger = logging.getLogger(__name__)

CONTEXT_HEADER = 'Dataset has {row_count} rows and the following columns in the SQLite table "data":'


def _fixed(value: Optional[float]) -> str:
    return "null" if value is None else f"{value:.2f}"


def _plain(value: Any) -> str:
    return "null" if value is None else str(value)


class DataContextBuilder:
    """Builds grounding text for prompts from a store's live contents."""

    def __init__(self, profiler: StatsProfiler):
        self.profiler = profiler
        self.profiling_config = profiler.profiling_config

    def build(
        self,
        store_id: str,
        columns: Sequence[ColumnDescriptor],
        row_count: int,
    ) -> str:
        """
        Build the data context for one dataset.

        Args:
            store_id: Store backing the dataset
            columns: Descriptors recorded at ingestion
            row_count: Rows loaded at ingestion

        Returns:
            Multi-line context string
        """
        stats = self.profiler.profile_columns(store_id)
        sample_rows = self.profiler.sample_rows(store_id, self.profiling_config.sample_rows)
        db_columns = self.profiler.list_physical_columns(store_id)

        lines = [CONTEXT_HEADER.format(row_count=row_count)]
        for col in columns:
            name = sanitize_column_name(col.name)
            line = f'- "{name}" ({col.type.value})'
            summary = stats.get(name)
            if isinstance(summary, NumericSummary):
                line += (
                    f" | min: {_plain(summary.min)}, max: {_plain(summary.max)}, "
                    f"avg: {_fixed(summary.avg)}, sum: {_fixed(summary.sum)}"
                )
            elif isinstance(summary, CategoricalSummary):
                top = summary.top_values[: self.profiling_config.context_top_values]
                line += (
                    f" | {summary.distinct_count} unique values, top: "
                    + ", ".join(f"{value}({count})" for value, count in top)
                )
            lines.append(line)

        context = "\n".join(lines) + "\n"
        if sample_rows:
            context += f"\nSample rows:\n{json.dumps(sample_rows, indent=2, default=str)}"

        context += "\n\nActual column names in SQLite: " + ", ".join(f'"{c}"' for c in db_columns)
        return context
