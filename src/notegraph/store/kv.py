"""Key-value blob access on the kv table."""

from datetime import datetime, timezone

from notegraph.model import format_timestamp


def get_blob(db: 'DB', key: str) -> str | None:
    """Return the stored value for key, or None."""
    row = db._query('SELECT value FROM kv WHERE key = ?', (key,)).fetchone()
    return row[0] if row else None


def put_blob(db: 'DB', key: str, value: str) -> None:
    """Insert or replace the value stored under key."""
    now = format_timestamp(datetime.now(timezone.utc))
    db._exec(
        'INSERT OR REPLACE INTO kv (key, value, updated_at)'
        ' VALUES (?, ?, ?)',
        (key, value, now))


def delete_blob(db: 'DB', key: str) -> None:
    """Remove the value stored under key."""
    db._exec('DELETE FROM kv WHERE key = ?', (key,))
