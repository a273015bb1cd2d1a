"""Graph model building: notes to nodes plus explicit and tag-derived edges."""

import logging
import math

from notegraph.model import Graph, GraphEdge, GraphNode, Note, Point

logger = logging.getLogger('notegraph')

SEED_RADIUS = 200.0
ALL_CATEGORIES = 'all'


def circular_seed(index: int, count: int,
                  radius: float = SEED_RADIUS) -> Point:
    """Default position for node `index` of `count` on a circle."""
    if count <= 0:
        return Point(0.0, 0.0)
    angle = 2 * math.pi * index / count
    return Point(math.cos(angle) * radius, math.sin(angle) * radius)


def tag_similarity(a: list[str], b: list[str]) -> float:
    """Compute |shared tags| / max(|a|, |b|) over tag sets."""
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    shared = len(set_a & set_b)
    return shared / max(len(set_a), len(set_b))


def build_graph(notes: list[Note],
                positions: 'PositionStore | dict | None' = None) -> Graph:
    """Build nodes and edges from notes.

    Nodes follow note order. A node takes its cached position when one
    exists, else its circular seed. For each note, its explicit edges come
    first, then implicit edges to every other note it shares a tag with.
    An implicit edge is skipped only when an explicit edge already covers
    the same (source, target) order; the reverse direction is kept.
    """
    count = len(notes)
    existing = {n.id for n in notes}

    nodes: list[GraphNode] = []
    for index, note in enumerate(notes):
        pos = _cached(positions, note.id)
        if pos is None:
            pos = circular_seed(index, count)
        nodes.append(GraphNode(
            id=note.id, title=note.title, category=note.category,
            tags=list(note.tags), connections=list(note.connections),
            x=pos.x, y=pos.y))

    edges: list[GraphEdge] = []
    explicit_pairs: set[tuple[str, str]] = set()
    for note in notes:
        for target_id in note.connections:
            # dangling and self references are dropped silently
            if target_id == note.id or target_id not in existing:
                continue
            pair = (note.id, target_id)
            if pair in explicit_pairs:
                continue
            explicit_pairs.add(pair)
            edges.append(GraphEdge(
                source=note.id, target=target_id,
                strength=1.0, explicit=True))

        if not note.tags:
            continue
        for other in notes:
            if other.id == note.id or not other.tags:
                continue
            strength = tag_similarity(note.tags, other.tags)
            if strength <= 0.0:
                continue
            if (note.id, other.id) in explicit_pairs:
                continue
            edges.append(GraphEdge(
                source=note.id, target=other.id, strength=strength))

    logger.debug('built graph: %d nodes, %d edges', len(nodes), len(edges))
    return Graph(nodes=nodes, edges=edges)


def categories(notes: list[Note]) -> list[str]:
    """Return unique categories in first-seen order."""
    seen: dict[str, None] = {}
    for n in notes:
        seen.setdefault(n.category, None)
    return list(seen)


def filter_nodes(nodes: list[GraphNode], category: str) -> list[GraphNode]:
    """Keep nodes of the given category; 'all' keeps everything."""
    if category == ALL_CATEGORIES:
        return list(nodes)
    return [n for n in nodes if n.category == category]


def _cached(positions, node_id: str) -> Point | None:
    if positions is None:
        return None
    pos = positions.get(node_id)
    if pos is None:
        return None
    if isinstance(pos, Point):
        return pos
    if isinstance(pos, dict):
        return Point(float(pos['x']), float(pos['y']))
    return Point(float(pos[0]), float(pos[1]))
