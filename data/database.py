"""
Database Module for the Post Feed Application

This module owns the local cache database: opening and closing it, creating
the schema, and executing statements for the cache stores built on top of it.
The handle is constructed explicitly and passed to whoever needs it; there is
no module-level instance.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from config import settings
from utils.exceptions import ConnectionError as DatabaseConnectionError
from utils.exceptions import QueryError
from utils.logger import get_logger

logger = get_logger(__name__)

Params = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS posts (
        id INTEGER PRIMARY KEY,
        user_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        body TEXT NOT NULL,
        is_favorite INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS favorites (
        post_id INTEGER NOT NULL,
        user_key TEXT NOT NULL,
        title TEXT NOT NULL,
        body TEXT NOT NULL,
        original_user_id INTEGER NOT NULL,
        PRIMARY KEY (post_id, user_key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS comments (
        id INTEGER PRIMARY KEY,
        post_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        body TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_comments_post_id ON comments (post_id)",
    """
    CREATE TABLE IF NOT EXISTS users (
        email TEXT PRIMARY KEY,
        password TEXT NOT NULL
    )
    """,
]


class CacheDatabase:
    """Connection manager for the local SQLite cache."""

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize the database handle without opening it.

        Args:
            database_url: SQLAlchemy URL; defaults to settings.CACHE_DATABASE_URL.
        """
        self.database_url = database_url or settings.CACHE_DATABASE_URL
        self.engine: Optional[Engine] = None

    def __enter__(self) -> "CacheDatabase":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if self.database_url.startswith("sqlite"):
            # Store calls arrive from worker threads
            options["connect_args"] = {"check_same_thread": False}
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise each thread sees its own empty database
                options["poolclass"] = StaticPool
        return options

    def connect(self) -> bool:
        """
        Open the database and create missing tables.

        Returns:
            bool: True once the database is open.

        Raises:
            DatabaseConnectionError: If the database cannot be opened.
        """
        if self.engine is not None:
            return True

        try:
            engine = create_engine(self.database_url, **self._engine_options())
            with engine.begin() as conn:
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(text(statement))
        except SQLAlchemyError as e:
            logger.error(f"Failed to open cache database: {e}")
            raise DatabaseConnectionError(f"Failed to open cache database: {e}") from e

        self.engine = engine
        logger.info("Cache database opened")
        return True

    def close(self) -> None:
        """Close the database and release pooled connections."""
        if self.engine is None:
            return
        try:
            self.engine.dispose()
            logger.info("Cache database closed")
        except SQLAlchemyError as e:
            logger.error(f"Error closing cache database: {e}")
        finally:
            self.engine = None

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise DatabaseConnectionError("Cache database is not open")
        return self.engine

    def execute(self, statement: str, params: Params = None) -> int:
        """
        Execute a write statement in its own transaction.

        Args:
            statement: SQL with named (``:name``) parameters.
            params: One mapping, or a sequence of mappings to execute many times.

        Returns:
            int: Number of affected rows as reported by the driver.

        Raises:
            QueryError: If the statement fails; the transaction is rolled back.
        """
        engine = self._require_engine()
        if isinstance(params, Sequence) and not params:
            return 0
        try:
            with engine.begin() as conn:
                result = conn.execute(text(statement), params if params is not None else {})
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error executing statement: {e}")
            raise QueryError(f"Error executing statement: {e}") from e

    def query(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Execute a SELECT and return the rows as dictionaries.

        Raises:
            QueryError: If the query fails.
        """
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                result = conn.execute(text(statement), dict(params or {}))
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error(f"Error executing query: {e}")
            raise QueryError(f"Error executing query: {e}") from e

    def query_scalar(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Execute a SELECT returning a single value."""
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                return conn.execute(text(statement), dict(params or {})).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Error executing query: {e}")
            raise QueryError(f"Error executing query: {e}") from e

    def read_frame(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
        """
        Execute a SELECT and return the result as a DataFrame.

        Raises:
            QueryError: If the query fails.
        """
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                return pd.read_sql(text(statement), conn, params=dict(params or {}))
        except SQLAlchemyError as e:
            logger.error(f"Error reading frame: {e}")
            raise QueryError(f"Error reading frame: {e}") from e
