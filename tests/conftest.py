"""Shared fixtures for notegraph tests."""

from datetime import datetime, timezone

import pytest
from notegraph.model import Note


@pytest.fixture
def tmp_db(tmp_path):
    """Fresh SQLite store in temp directory."""
    from notegraph.store.db import open_db
    db = open_db(str(tmp_path))
    yield db
    db.close()


@pytest.fixture
def repo(tmp_db):
    """Empty note repository over the temp store."""
    from notegraph.store.notes import NoteRepository
    return NoteRepository(tmp_db)


@pytest.fixture
def populated_repo(repo):
    """Repository pre-loaded with 5 notes across categories."""
    repo.replace_all([
        make_note(id='n-1', title='Trip to Lisbon', category='personnel',
                  tags=['travel', 'summer'], connections=['n-3']),
        make_note(id='n-2', title='Quarterly roadmap', category='travail',
                  tags=['planning']),
        make_note(id='n-3', title='Packing list', category='personnel',
                  tags=['travel']),
        make_note(id='n-4', title='Garden app idea', category='idées',
                  tags=['summer', 'planning']),
        make_note(id='n-5', title='Website redesign', category='projets'),
        ])
    return repo


def make_note(**overrides) -> Note:
    """Factory for test Note instances."""
    now = datetime(2024, 1, 15, 14, 30, 45, tzinfo=timezone.utc)
    defaults = {
        'id': 'test-id',
        'title': 'test title',
        'content': 'test content',
        'category': 'personnel',
        'tags': [],
        'connections': [],
        'created_at': now,
        'updated_at': now,
    }
    defaults.update(overrides)
    return Note(**defaults)
