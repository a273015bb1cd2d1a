"""Data models for notegraph: Note, GraphNode, GraphEdge, Point, JSON helpers."""

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger('notegraph')

DEFAULT_CATEGORY = 'personnel'


@dataclass
class Note:
    """A user-authored note as held by the note repository."""

    id: str = ''
    title: str = ''
    content: str = ''
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    connections: list[str] = field(default_factory=list)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Serialize using the camelCase shape the browser stored."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'category': self.category,
            'tags': list(self.tags),
            'connections': list(self.connections),
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            }

    @classmethod
    def from_dict(cls, d: dict) -> 'Note':
        """Build a Note from its stored dict; missing lists become empty."""
        now = datetime.now(timezone.utc)
        created = d.get('createdAt')
        updated = d.get('updatedAt')
        return cls(
            id=str(d.get('id', '')),
            title=d.get('title') or '',
            content=d.get('content') or '',
            category=d.get('category') or DEFAULT_CATEGORY,
            tags=list(d.get('tags') or []),
            connections=list(d.get('connections') or []),
            created_at=parse_timestamp(created) if created else now,
            updated_at=parse_timestamp(updated) if updated else now,
            )


@dataclass(frozen=True)
class Point:
    """A graph-space coordinate pair."""

    x: float = 0.0
    y: float = 0.0

    def distance_to(self, other: 'Point') -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass
class GraphNode:
    """Visualization node derived from a note."""

    id: str = ''
    title: str = ''
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    connections: list[str] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0

    @property
    def position(self) -> Point:
        """Return the node's seed position."""
        return Point(self.x, self.y)


@dataclass
class GraphEdge:
    """A directed link between two nodes, weighted in (0, 1]."""

    source: str = ''
    target: str = ''
    strength: float = 1.0
    explicit: bool = False


@dataclass
class Graph:
    """Node and edge lists produced by the model builder."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def node_ids(self) -> list[str]:
        """Return node ids in model order."""
        return [n.id for n in self.nodes]

    def node_by_id(self, node_id: str) -> GraphNode | None:
        """Return the node with the given id, or None."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


def format_timestamp(dt: datetime) -> str:
    """Format datetime as RFC3339 with milliseconds and Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(s: str) -> datetime:
    """Parse RFC3339 timestamp, accepting Z, +00:00 and millisecond forms."""
    if s.endswith('Z'):
        s = s[:-1] + '+00:00'
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def notes_to_json(notes: list[Note]) -> str:
    """Encode a note list as the JSON blob kept in the store."""
    return json.dumps([n.to_dict() for n in notes], ensure_ascii=False)


def notes_from_json(s: str | None) -> list[Note]:
    """Decode a stored JSON blob; invalid or empty input yields []."""
    if not s:
        return []
    try:
        raw = json.loads(s)
    except (json.JSONDecodeError, TypeError):
        logger.debug('notes blob is not valid JSON, treating as empty')
        return []
    if not isinstance(raw, list):
        return []
    return [Note.from_dict(d) for d in raw if isinstance(d, dict)]
