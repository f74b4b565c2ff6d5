"""
Store Manager

Owns the directory of dataset stores and hands out short-lived
connections to them. Every operation opens its own engine and disposes
of it afterwards, so no handle outlives the call that needed it.
"""

from typing import Optional, Any, List, Dict, Generator
from contextlib import contextmanager
from pathlib import Path
import logging
import sqlite3

from sqlalchemy import create_engine, text, inspect
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.pool import NullPool

from floralmind.config import StorageConfig
from floralmind.core.exceptions import (
    InvalidInputError,
    StoreCreationError,
    StoreNotFoundError,
)
from floralmind.core.identifiers import is_valid_store_id

logger = logging.getLogger(__name__)

DATA_TABLE = "data"
ROW_ID_COLUMN = "id"
SIDE_FILE_SUFFIXES = ("-wal", "-shm", "-journal")


class StoreManager:
    """
    Manages the file-backed SQLite stores, one per dataset.

    Features:
    - Injected base directory (tests point it at a temporary path)
    - Read-only connections opened through the SQLite URI ``mode=ro``
    - A single write transaction per store, at creation time
    - Context manager support for safe connection handling
    """

    def __init__(self, config: StorageConfig):
        """
        Initialize the store manager.

        Args:
            config: Storage configuration object
        """
        self.config = config
        self.base_path = config.base_path

    def store_path(self, store_id: str) -> Path:
        """Path of the file backing ``store_id``."""
        if not is_valid_store_id(store_id):
            raise InvalidInputError(f"Invalid store identifier: {store_id!r}")
        return self.base_path / f"{store_id}{self.config.file_suffix}"

    def exists(self, store_id: str) -> bool:
        """Check whether a store file exists."""
        return self.store_path(store_id).is_file()

    def require_store(self, store_id: str) -> Path:
        """Return the store path, raising StoreNotFoundError if it is missing."""
        path = self.store_path(store_id)
        if not path.is_file():
            raise StoreNotFoundError(store_id)
        return path

    def list_stores(self) -> List[str]:
        """List identifiers of all stores under the base directory."""
        if not self.base_path.is_dir():
            return []
        suffix = self.config.file_suffix
        return sorted(
            p.name[: -len(suffix)]
            for p in self.base_path.iterdir()
            if p.is_file() and p.name.endswith(suffix)
        )

    def _create_engine(self, path: Path, read_only: bool) -> Engine:
        """Create a non-pooling SQLAlchemy engine bound to one store file."""
        journal_mode = self.config.journal_mode.value

        def creator():
            if read_only:
                return sqlite3.connect(f"{path.as_uri()}?mode=ro", uri=True)
            raw = sqlite3.connect(str(path))
            raw.execute(f"PRAGMA journal_mode={journal_mode}")
            return raw

        return create_engine("sqlite://", creator=creator, poolclass=NullPool)

    @contextmanager
    def connect(self, store_id: str, read_only: bool = True) -> Generator[Connection, None, None]:
        """
        Open a connection to an existing store as a context manager.

        Yields:
            Database connection, closed together with its engine on exit

        Example:
            with manager.connect(store_id) as conn:
                result = conn.execute(query)
        """
        path = self.require_store(store_id)
        engine = self._create_engine(path, read_only=read_only)
        try:
            with engine.connect() as connection:
                yield connection
        finally:
            engine.dispose()

    @contextmanager
    def begin_write(self, store_id: str) -> Generator[Connection, None, None]:
        """
        Create a new store file and yield a connection inside one transaction.

        The transaction commits when the block exits normally. On any
        error it rolls back and the store file is removed, so a failed
        creation never leaves a usable store behind.
        """
        path = self.store_path(store_id)
        if path.exists():
            raise StoreCreationError(f"Store already exists: {store_id}")

        self.base_path.mkdir(parents=True, exist_ok=True)
        engine = self._create_engine(path, read_only=False)
        try:
            with engine.begin() as connection:
                yield connection
        except Exception:
            engine.dispose()
            self.drop_store(store_id)
            raise
        finally:
            engine.dispose()

    def execute_query(
        self,
        store_id: str,
        query: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Execute a trusted internal query and return rows as dictionaries.

        Args:
            store_id: Store to read from
            query: SQL query string with named ``:param`` placeholders
            params: Optional query parameters

        Returns:
            List of row dictionaries
        """
        with self.connect(store_id) as conn:
            result = conn.execute(text(query), params or {})
            columns = result.keys()
            return [dict(zip(columns, row)) for row in result.fetchall()]

    def get_columns(self, store_id: str, table: str = DATA_TABLE) -> List[Dict[str, Any]]:
        """Reflect column metadata (name, type, nullable...) of a store table."""
        with self.connect(store_id) as conn:
            return inspect(conn).get_columns(table)

    def drop_store(self, store_id: str) -> bool:
        """
        Delete a store file and its journal side files.

        Returns:
            True if the main store file existed
        """
        path = self.store_path(store_id)
        existed = path.exists()
        for candidate in [path] + [Path(f"{path}{s}") for s in SIDE_FILE_SUFFIXES]:
            if candidate.exists():
                candidate.unlink()
        if existed:
            logger.info(f"Removed store {store_id}")
        return existed
