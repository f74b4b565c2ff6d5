"""Core modules for FloralMind."""

from floralmind.core.connection import StoreManager
from floralmind.core.store_builder import StoreBuilder
from floralmind.core.sandbox import QuerySandbox
from floralmind.core.data_profiler import StatsProfiler
from floralmind.core.type_inference import infer_schema

__all__ = [
    "StoreManager",
    "StoreBuilder",
    "QuerySandbox",
    "StatsProfiler",
    "infer_schema",
]
