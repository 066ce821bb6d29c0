"""
Database manager for the SQLite annotation store.

Provides connection management and transactions through context managers.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator
from .db_schema import initialize_database
from . import sqlite_utils


class DatabaseManager:
    """
    Manages SQLite database connections and transactions.

    Creates the schema on construction; repositories share one manager.
    """

    def __init__(self, db_path: Path, logger=None):
        """
        Initialize database manager.

        Args:
            db_path: Path to SQLite database file
            logger: Optional logger instance
        """
        self.db_path = Path(db_path)
        self.logger = logger
        self._ensure_db_exists()

    def _ensure_db_exists(self) -> None:
        """
        Ensure database file and schema exist.

        Idempotent. Uses the per-database lock so concurrent managers do not
        race on schema creation.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with sqlite_utils.with_db_lock(self.db_path):
            with self.get_connection() as conn:
                initialize_database(conn, self.logger)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for autocommit connections with sqlite3.Row rows.

        Usage:
            with db_manager.get_connection() as conn:
                conn.execute("SELECT * FROM annotations")
        """
        with sqlite_utils.get_connection(self.db_path) as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database transactions.

        Commits on success, rolls back on exception.
        """
        with sqlite_utils.transaction(self.db_path) as conn:
            yield conn
            if self.logger:
                self.logger.debug("Transaction committed")

    def execute_query(
        self,
        query: str,
        params: tuple | list = (),
        fetch_one: bool = False
    ) -> Optional[list | dict]:
        """
        Execute a SELECT query and return results as dicts.

        Args:
            query: SQL query string
            params: Query parameters
            fetch_one: If True, return single row; if False, return all rows
        """
        with self.get_connection() as conn:
            cursor = conn.execute(query, tuple(params))
            if fetch_one:
                row = cursor.fetchone()
                return dict(row) if row else None
            return [dict(row) for row in cursor.fetchall()]

    def execute_update(self, query: str, params: tuple | list = ()) -> int:
        """
        Execute an INSERT, UPDATE, or DELETE query in its own transaction.

        Returns:
            Number of affected rows
        """
        with self.transaction() as conn:
            cursor = conn.execute(query, tuple(params))
            return cursor.rowcount
