"""
FloralMind - CSV to SQLite Data Core

Infers schemas for uploaded tabular data, stores each dataset in its own
SQLite file and runs sandboxed read-only queries written by people or
generated by an AI agent.
"""

__version__ = "1.0.0"
__author__ = "FloralMind Team"

from floralmind.config import FloralMindConfig
from floralmind.engine import FloralMindEngine

__all__ = ["FloralMindConfig", "FloralMindEngine", "__version__"]
