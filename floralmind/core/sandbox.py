"""
Query Sandbox

Validates and executes untrusted read-only SQL against a single
dataset store. Queries come from the manual chart builder and from the
AI agent alike, and both pass through the same gate.

Safety:
- Statement must start with SELECT
- Keyword deny-list scanned over the whole text (substring match)
- LIMIT appended when the statement has none
- Store opened read-only, one connection per call
"""

from typing import List, Sequence, Tuple
import logging
import re
import sqlite3
import time

from sqlalchemy.exc import SQLAlchemyError

from floralmind.config import FloralMindConfig
from floralmind.core.connection import StoreManager
from floralmind.core.exceptions import (
    ForbiddenQueryError,
    InvalidInputError,
    QueryExecutionError,
)
from floralmind.core.models import QueryResult

logger = logging.getLogger(__name__)

LIMIT_PATTERN = re.compile(r"\bLIMIT\b", re.I)
TRAILING_LIMIT_PATTERN = re.compile(r"\bLIMIT\s+\d+(?:\s*(?:,|\bOFFSET\b)\s*\d+)?\s*$", re.I)

QUOTE_CLOSERS = {"'": "'", '"': '"', "`": "`", "[": "]"}


def check_query(sql: str, forbidden_keywords: Sequence[str]) -> str:
    """
    Validate a query against the read-only policy.

    The keyword scan is a plain substring search over the uppercased
    text, so denied words inside literals, comments or longer names
    (``created_at``) are rejected too.

    Args:
        sql: Raw query text
        forbidden_keywords: Uppercase keywords that must not appear

    Returns:
        The trimmed query

    Raises:
        InvalidInputError: Query is empty
        ForbiddenQueryError: Query is not a SELECT or contains a denied keyword
    """
    if sql is None or not sql.strip():
        raise InvalidInputError("SQL query is required")

    statement = sql.strip()
    upper = statement.upper()
    if not upper.startswith("SELECT"):
        raise ForbiddenQueryError("Only SELECT queries are allowed")

    for keyword in forbidden_keywords:
        if keyword.upper() in upper:
            raise ForbiddenQueryError(f"Forbidden keyword in query: {keyword}", keyword=keyword)

    return statement


def _mask_sql(sql: str) -> str:
    """
    Same-length copy of ``sql`` with comments blanked out and the insides
    of string literals and quoted identifiers replaced by ``_``.
    """
    masked = []
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if sql.startswith("--", i):
            end = sql.find("\n", i)
            end = n if end == -1 else end
            masked.append(" " * (end - i))
            i = end
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = n if end == -1 else end + 2
            masked.append(" " * (end - i))
            i = end
        elif ch in QUOTE_CLOSERS:
            closer = QUOTE_CLOSERS[ch]
            j = i + 1
            while j < n:
                if sql[j] == closer:
                    # doubled quote is an escaped quote
                    if closer != "]" and sql.startswith(closer * 2, j):
                        j += 2
                        continue
                    break
                j += 1
            if j < n:
                masked.append(ch + "_" * (j - i - 1) + closer)
                i = j + 1
            else:
                masked.append(ch + "_" * (n - i - 1))
                i = n
        else:
            masked.append(ch)
            i += 1
    return "".join(masked)


def _top_level(masked: str) -> str:
    """Blank out everything nested inside parentheses."""
    chars = []
    depth = 0
    for ch in masked:
        if ch == ")" and depth:
            depth -= 1
        chars.append(ch if depth == 0 or ch in "()" else " ")
        if ch == "(":
            depth += 1
    return "".join(chars)


def apply_row_limit(sql: str, max_rows: int) -> Tuple[str, bool]:
    """
    Bound the result size of a statement.

    Only a trailing top-level ``LIMIT n [OFFSET m | , m]`` counts as the
    statement's own limit. The word inside comments, literals, quoted
    aliases or subqueries does not. A top-level LIMIT of any other shape
    (``LIMIT -1``, expressions) is kept, and the whole statement is
    wrapped in an outer bounded SELECT.

    Returns:
        (statement, limit_was_added)
    """
    masked = _mask_sql(sql)
    # trailing comments and semicolons
    end = len(re.sub(r"[\s;]+$", "", masked))
    statement = sql[:end]
    top_level = _top_level(masked[:end])

    if TRAILING_LIMIT_PATTERN.search(top_level):
        return statement, False
    if LIMIT_PATTERN.search(top_level):
        return f"SELECT * FROM (\n{statement}\n)\nLIMIT {max_rows}", True
    return f"{statement}\nLIMIT {max_rows}", True


class QuerySandbox:
    """
    Safe SQL execution against one dataset store per call.

    Every call re-opens the store read-only and closes it before
    returning; nothing is cached between calls.
    """

    def __init__(self, store_manager: StoreManager, config: FloralMindConfig):
        """
        Initialize the sandbox.

        Args:
            store_manager: Store manager owning the store directory
            config: FloralMind configuration
        """
        self.store_manager = store_manager
        self.config = config
        self.max_rows = config.sandbox.max_rows
        self.forbidden_keywords: List[str] = [k.upper() for k in config.sandbox.forbidden_keywords]

    def validate(self, sql: str) -> str:
        """Run the policy checks without touching any store."""
        try:
            return check_query(sql, self.forbidden_keywords)
        except ForbiddenQueryError as e:
            logger.warning(f"Rejected query: {e}")
            raise

    def execute(self, store_id: str, sql: str) -> QueryResult:
        """
        Execute a query safely.

        Args:
            store_id: Store the query is scoped to
            sql: Untrusted SQL text

        Returns:
            QueryResult; columns come from the first row, so an empty
            result has no columns

        Raises:
            InvalidInputError: Empty query, or a store identifier that is not
                ``[a-z0-9_]+`` (uppercase, ``/``, ``.``). Such an id can never
                name a store, so it is rejected before any path is built
                rather than reported as missing.
            ForbiddenQueryError: Policy violation, raised before the store is opened
            StoreNotFoundError: Well-formed identifier with no store behind it
            QueryExecutionError: The engine rejected or failed the query,
                including query text the driver cannot encode
        """
        statement = self.validate(sql)
        statement, limit_added = apply_row_limit(statement, self.max_rows)

        start = time.time()
        try:
            with self.store_manager.connect(store_id, read_only=True) as conn:
                # exec_driver_sql: no bind-parameter parsing of ':' in user text
                result = conn.exec_driver_sql(statement)
                keys = list(result.keys())
                rows = [dict(zip(keys, row)) for row in result.fetchall()]
        except (SQLAlchemyError, sqlite3.Error, sqlite3.Warning, UnicodeEncodeError) as e:
            # sqlite3.Warning (several statements, older Pythons) and encode
            # failures (lone surrogates) are not wrapped by SQLAlchemy
            message = str(getattr(e, "orig", None) or e)
            logger.debug(f"Query failed on {store_id}: {message}")
            raise QueryExecutionError(message) from e

        columns = list(rows[0].keys()) if rows else []
        elapsed = (time.time() - start) * 1000
        logger.debug(f"Query on {store_id} returned {len(rows)} rows in {elapsed:.1f}ms")

        return QueryResult(
            columns=columns,
            rows=rows,
            sql=statement,
            truncated=limit_added and len(rows) >= self.max_rows,
        )
