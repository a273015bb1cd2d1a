"""Operation logging with auto-trim."""

import logging
from datetime import datetime, timezone

from notegraph.model import format_timestamp

logger = logging.getLogger('notegraph')

MAX_OPLOG_ENTRIES = 5000


def log_op(db: 'DB', operation: str, note_id: str, detail: str) -> None:
    """Record an operation to the oplog and trim old entries."""
    now = format_timestamp(datetime.now(timezone.utc))
    try:
        db._exec(
            'INSERT INTO oplog (operation, note_id, detail, created_at)'
            ' VALUES (?, ?, ?, ?)',
            (operation, note_id, detail, now))
        db._exec(
            'DELETE FROM oplog WHERE id <='
            ' (SELECT MAX(id) FROM oplog) - ?',
            (MAX_OPLOG_ENTRIES,))
    except Exception as e:
        logger.warning('oplog write failed: %s', e)


def get_oplog(db: 'DB', limit: int = 20) -> list[dict]:
    """Return the most recent N oplog entries."""
    if limit <= 0:
        limit = 20
    rows = db._query(
        'SELECT id, operation, note_id, detail, created_at'
        ' FROM oplog ORDER BY id DESC LIMIT ?',
        (limit,)).fetchall()
    return [{
            'id': row[0],
            'operation': row[1],
            'note_id': row[2] or '',
            'detail': row[3] or '',
            'created_at': row[4],
            } for row in rows]
