"""
SQLite connection utilities.

Provides WAL mode initialization, per-database initialization locks and
retry logic for transient "database is locked" failures. Repositories go
through DatabaseManager, which delegates here.
"""

import sqlite3
import time
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator
import logging

logger = logging.getLogger(__name__)

# Databases already switched to WAL mode
_initialized_databases: set[str] = set()
_init_lock = threading.Lock()

# Per-database reentrant locks for schema initialization
_db_locks: dict[str, threading.RLock] = {}
_db_locks_lock = threading.Lock()

DEFAULT_RETRY_COUNT = 5
DEFAULT_RETRY_DELAY = 0.05  # seconds


def _get_db_lock(db_path: Path) -> threading.RLock:
    db_key = str(db_path.resolve())
    with _db_locks_lock:
        if db_key not in _db_locks:
            _db_locks[db_key] = threading.RLock()
        return _db_locks[db_key]


def _ensure_wal_mode(db_path: Path) -> None:
    """
    Enable WAL mode once per database path.

    Args:
        db_path: Path to the SQLite database file
    """
    db_key = str(db_path.resolve())

    with _init_lock:
        if db_key in _initialized_databases:
            return

    with _get_db_lock(db_path):
        with _init_lock:
            if db_key in _initialized_databases:
                return

        db_path.parent.mkdir(parents=True, exist_ok=True)

        for attempt in range(DEFAULT_RETRY_COUNT):
            try:
                conn = sqlite3.connect(str(db_path), timeout=30.0)
                try:
                    conn.execute("PRAGMA journal_mode = WAL")
                    with _init_lock:
                        _initialized_databases.add(db_key)
                    logger.debug(f"WAL mode enabled for {db_path.name}")
                    return
                finally:
                    conn.close()
            except sqlite3.OperationalError as e:
                if attempt < DEFAULT_RETRY_COUNT - 1:
                    logger.warning(
                        f"Failed to set WAL mode for {db_path.name} "
                        f"(attempt {attempt + 1}/{DEFAULT_RETRY_COUNT}): {e}"
                    )
                    time.sleep(DEFAULT_RETRY_DELAY * (attempt + 1))
                else:
                    logger.error(f"Failed to set WAL mode for {db_path.name} after {DEFAULT_RETRY_COUNT} attempts")
                    raise


@contextmanager
def with_db_lock(db_path: Path):
    """
    Hold the reentrant initialization lock of a database.

    Args:
        db_path: Path to the SQLite database file
    """
    with _get_db_lock(db_path):
        yield


def _connect(db_path: Path, timeout: float, row_factory: bool, foreign_keys: bool, **kwargs) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), timeout=timeout, check_same_thread=False, **kwargs)
    if row_factory:
        conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_connection(
    db_path: Path,
    timeout: float = 30.0,
    row_factory: bool = True,
    foreign_keys: bool = True,
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_delay: float = DEFAULT_RETRY_DELAY
) -> Generator[sqlite3.Connection, None, None]:
    """
    Open an autocommit connection, retrying transient failures.

    Args:
        db_path: Path to the SQLite database file
        timeout: Connection timeout in seconds
        row_factory: If True, use sqlite3.Row for dict-like access
        foreign_keys: If True, enable foreign key constraints
        retry_count: Number of connection attempts
        retry_delay: Base delay between attempts (multiplied by attempt number)

    Raises:
        sqlite3.Error: If the connection fails after all retries
    """
    _ensure_wal_mode(db_path)

    conn = None
    last_error = None
    for attempt in range(retry_count):
        try:
            conn = _connect(db_path, timeout, row_factory, foreign_keys, isolation_level=None)
            break
        except sqlite3.OperationalError as e:
            last_error = e
            if attempt < retry_count - 1:
                delay = retry_delay * (attempt + 1)
                logger.warning(
                    f"Database connection failed for {db_path.name} "
                    f"(attempt {attempt + 1}/{retry_count}): {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                time.sleep(delay)
            else:
                logger.error(
                    f"Database connection failed for {db_path.name} "
                    f"after {retry_count} attempts: {e}"
                )

    if conn is None:
        raise last_error or sqlite3.OperationalError("Connection failed")

    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(
    db_path: Path,
    timeout: float = 30.0,
    row_factory: bool = True,
    foreign_keys: bool = True
) -> Generator[sqlite3.Connection, None, None]:
    """
    Connection with transaction semantics.

    Commits on success, rolls back on exception.

    Raises:
        sqlite3.Error: If the transaction fails
    """
    _ensure_wal_mode(db_path)

    conn = None
    try:
        conn = _connect(db_path, timeout, row_factory, foreign_keys)
        conn.execute("BEGIN")
        yield conn
        conn.commit()
    except Exception:
        if conn:
            conn.rollback()
        raise
    finally:
        if conn:
            conn.close()
