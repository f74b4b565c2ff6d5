"""
Dataset Models

Data structures shared by ingestion, the query sandbox and the stats
profiler: column descriptors, query results and per-column summaries.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum
from datetime import datetime


class ColumnType(Enum):
    """Inferred column classification."""
    NUMERIC = "numeric"
    DATE = "date"
    TEXT = "text"

    @property
    def storage_type(self) -> str:
        """SQLite column affinity used for this classification."""
        return "REAL" if self is ColumnType.NUMERIC else "TEXT"


@dataclass(frozen=True)
class ColumnDescriptor:
    """Inferred type and a representative value for one original column."""
    name: str
    type: ColumnType
    sample: str = ""

    @property
    def is_numeric(self) -> bool:
        return self.type is ColumnType.NUMERIC

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.value, "sample": self.sample}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnDescriptor":
        return cls(
            name=data["name"],
            type=ColumnType(data.get("type", "text")),
            sample=data.get("sample") or "",
        )


@dataclass
class StoreInfo:
    """Outcome of creating a dataset store."""
    store_id: str
    row_count: int


@dataclass
class QueryResult:
    """Rows returned by the query sandbox."""
    columns: List[str]
    rows: List[Dict[str, Any]]
    sql: str = ""  # Statement actually sent to the engine
    truncated: bool = False  # True when the forced LIMIT was reached

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {"columns": list(self.columns), "rows": list(self.rows)}


@dataclass
class NumericSummary:
    """Aggregates for a REAL column, computed over non-null values."""
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None
    sum: Optional[float] = None
    count: int = 0

    kind = "numeric"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "sum": self.sum,
            "count": self.count,
        }


@dataclass
class CategoricalSummary:
    """Cardinality and most frequent values for a TEXT column."""
    distinct_count: int = 0
    top_values: List[Tuple[Any, int]] = field(default_factory=list)  # (value, count)

    kind = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "distinct_count": self.distinct_count,
            "top_values": [{"value": v, "count": c} for v, c in self.top_values],
        }


@dataclass
class DatasetRecord:
    """
    Metadata handle for an ingested dataset.

    The core hands this to collaborators; persisting it is their concern.
    """
    name: str
    store_id: str
    row_count: int
    columns: List[ColumnDescriptor] = field(default_factory=list)
    source: str = "csv"
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "store_id": self.store_id,
            "row_count": self.row_count,
            "columns": [c.to_dict() for c in self.columns],
            "source": self.source,
            "created_at": self.created_at,
        }
