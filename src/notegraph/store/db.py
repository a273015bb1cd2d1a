"""Database connection, schema, and named store management."""

import logging
import os
import re
import sqlite3
from pathlib import Path

logger = logging.getLogger('notegraph')

DEFAULT_STORE_NAME = 'default'

_VALID_STORE_NAME_RE = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9_-]*$')


def valid_store_name(name: str) -> bool:
    """Return True if name matches [a-zA-Z0-9][a-zA-Z0-9_-]*."""
    return bool(_VALID_STORE_NAME_RE.match(name))


def default_data_dir() -> str:
    """Return ~/.notegraph."""
    return str(Path.home() / '.notegraph')


def store_dir(base_dir: str, name: str) -> str:
    """Return <base_dir>/data/<name>."""
    return os.path.join(base_dir, 'data', name)


def active_file(base_dir: str) -> str:
    """Return path to <base_dir>/active."""
    return os.path.join(base_dir, 'active')


def read_active(base_dir: str) -> str:
    """Read the active store name from <base_dir>/active."""
    try:
        data = Path(active_file(base_dir)).read_text()
    except OSError:
        return DEFAULT_STORE_NAME
    name = data.strip()
    return name or DEFAULT_STORE_NAME


def write_active(base_dir: str, name: str) -> None:
    """Write the active store name to <base_dir>/active."""
    Path(base_dir).mkdir(mode=0o755, exist_ok=True, parents=True)
    Path(active_file(base_dir)).write_text(name + '\n')


def list_stores(base_dir: str) -> list[str]:
    """Return sorted names of all stores under <base_dir>/data/."""
    data_dir = os.path.join(base_dir, 'data')
    if not Path(data_dir).is_dir():
        return []
    return sorted(e.name for e in os.scandir(data_dir) if e.is_dir())


class DB:
    """Wraps a SQLite connection used as a key-value blob store."""

    def __init__(self, conn: sqlite3.Connection, path: str) -> None:
        self._conn = conn
        self._in_tx = False
        self.path = path

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the underlying connection."""
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def _exec(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, params)

    def _query(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, params)

    def in_transaction(self, fn: callable) -> None:
        """Run fn inside a single SQL transaction."""
        if self._in_tx:
            raise RuntimeError('nested transactions not supported')
        self._in_tx = True
        try:
            self._conn.execute('BEGIN IMMEDIATE')
            fn()
            self._conn.execute('COMMIT')
        except Exception:
            self._conn.execute('ROLLBACK')
            raise
        finally:
            self._in_tx = False


def open_db(data_dir: str) -> DB:
    """Open (or create) the store database at the given directory."""
    Path(data_dir).mkdir(mode=0o755, exist_ok=True, parents=True)
    db_path = os.path.join(data_dir, 'notegraph.db')
    conn = sqlite3.connect(db_path, isolation_level=None)
    conn.execute('PRAGMA journal_mode=WAL')
    db = DB(conn, db_path)
    _migrate(db)
    logger.debug('opened store %s', db_path)
    return db


def _migrate(db: DB) -> None:
    """Create the schema if missing."""
    schema = """
CREATE TABLE IF NOT EXISTS kv (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS oplog (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    operation   TEXT NOT NULL,
    note_id     TEXT,
    detail      TEXT DEFAULT '',
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_oplog_created ON oplog(created_at);
"""
    db._conn.executescript(schema)
