"""
FloralMind exceptions.

Every failure the core raises derives from FloralMindError so callers
can tell the categories apart without string matching.
"""

from typing import Optional


class FloralMindError(Exception):
    """Base class for all FloralMind errors."""
    pass


class InvalidInputError(FloralMindError):
    """Input rejected before any storage engine interaction."""
    pass


class ForbiddenQueryError(FloralMindError):
    """Query is not a plain read-only SELECT or contains a denied keyword."""

    def __init__(self, message: str, keyword: Optional[str] = None):
        super().__init__(message)
        self.keyword = keyword


class QueryExecutionError(FloralMindError):
    """The storage engine failed to run an accepted query."""
    pass


class StoreCreationError(FloralMindError):
    """A dataset store could not be created or loaded."""
    pass


class StoreNotFoundError(FloralMindError):
    """No backing file exists for the requested store identifier."""

    def __init__(self, store_id: str):
        super().__init__(f"Dataset not found: {store_id}")
        self.store_id = store_id


class TableImportError(FloralMindError):
    """A source table could not be read for import."""
    pass
