"""Note repository over the key-value store.

Notes live as one JSON blob under the ``notes`` key, the way the browser
application kept them in local storage. Every read goes back to the store,
so callers never hold a copy that outlives an update.
"""

import logging
from collections.abc import Callable
from dataclasses import fields
from datetime import datetime, timezone

from notegraph.model import Note, notes_from_json, notes_to_json
from notegraph.store.kv import get_blob, put_blob

logger = logging.getLogger('notegraph')

NOTES_KEY = 'notes'

_IMMUTABLE_FIELDS = {'id', 'created_at'}
_NOTE_FIELDS = {f.name for f in fields(Note)}


class NoteRepository:
    """Canonical note list with partial updates and change listeners."""

    def __init__(self, db: 'DB') -> None:
        self._db = db
        self._listeners: list[Callable[[], None]] = []

    def get_all(self) -> list[Note]:
        """Return the current note list in stored order."""
        return notes_from_json(get_blob(self._db, NOTES_KEY))

    def get(self, note_id: str) -> Note | None:
        """Return one note by id, or None."""
        for n in self.get_all():
            if n.id == note_id:
                return n
        return None

    def update(self, note_id: str, **changes) -> Note:
        """Merge changes into a note and refresh its updated_at."""
        unknown = set(changes) - _NOTE_FIELDS
        if unknown:
            raise ValueError(f'unknown note fields: {sorted(unknown)}')
        if changes.keys() & _IMMUTABLE_FIELDS:
            raise ValueError('id and created_at cannot be updated')

        notes = self.get_all()
        for n in notes:
            if n.id == note_id:
                target = n
                break
        else:
            raise ValueError(f'note {note_id} not found')

        for k, v in changes.items():
            setattr(target, k, list(v) if isinstance(v, (list, tuple)) else v)
        target.updated_at = datetime.now(timezone.utc)

        put_blob(self._db, NOTES_KEY, notes_to_json(notes))
        logger.debug('updated note %s: %s', note_id, sorted(changes))
        self._notify()
        return target

    def replace_all(self, notes: list[Note]) -> None:
        """Overwrite the whole note list."""
        put_blob(self._db, NOTES_KEY, notes_to_json(notes))
        self._notify()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
