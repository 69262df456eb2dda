import asyncio
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

from utils.errors import StorageError
from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".lingocoach"
DB_PATH = CONFIG_DIR / "lingocoach.db"
BUSY_TIMEOUT_SECONDS = 30

# Serializes writers inside the process; BEGIN IMMEDIATE covers other processes.
_WRITE_LOCK = threading.RLock()

T = TypeVar("T")

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        ensure_schema_version(conn)
    logger.info("Database ready at %s (schema v%s)", DB_PATH, SCHEMA_VERSION)

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows.

    The connection runs in autocommit mode; writes go through write_transaction().
    """
    conn = sqlite3.connect(
        DB_PATH,
        timeout=BUSY_TIMEOUT_SECONDS,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()

@contextmanager
def write_transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block as one immediate transaction: commit on success, roll back otherwise.

    Re-entrant: a block opened while ``conn`` is already inside a transaction joins it.
    """
    with _WRITE_LOCK:
        if conn.in_transaction:
            yield conn
            return
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            logger.error("Could not open write transaction: %s", exc)
            raise StorageError(f"Could not open write transaction: {exc}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Write transaction rolled back: %s", exc)
            raise StorageError(f"Write transaction failed: {exc}") from exc
        except BaseException:
            conn.rollback()
            raise
        try:
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Commit failed, transaction rolled back: %s", exc)
            raise StorageError(f"Commit failed: {exc}") from exc

async def run_in_db(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run ``func(conn, *args, **kwargs)`` on a worker thread with its own connection."""
    def _call() -> T:
        try:
            with get_conn() as conn:
                return func(conn, *args, **kwargs)
        except sqlite3.Error as exc:
            logger.error("Storage operation %s failed: %s", getattr(func, "__name__", func), exc)
            raise StorageError(str(exc)) from exc

    return await asyncio.to_thread(_call)

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
