"""Layout strategies: force-directed, circular and grid placement."""

import enum
import logging
import math
from dataclasses import dataclass

import numpy as np

from notegraph.model import GraphEdge, GraphNode, Point

logger = logging.getLogger('notegraph')

CIRCULAR_RADIUS = 250.0
GRID_SPACING = 150.0


class LayoutStrategy(enum.Enum):
    """Available layout algorithms."""

    FORCE = 'force'
    CIRCULAR = 'circular'
    GRID = 'grid'

    @classmethod
    def parse(cls, value: 'str | LayoutStrategy') -> 'LayoutStrategy':
        """Return the strategy for a name such as 'grid'."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ', '.join(s.value for s in cls)
            raise ValueError(
                f'unknown layout {value!r}; valid: {valid}') from None


@dataclass
class ForceParams:
    """Tuning for the force-directed simulation."""

    iterations: int = 50
    repulsion: float = 5000.0
    attraction: float = 0.01
    time_step: float = 0.1


def force_layout(nodes: list[GraphNode], edges: list[GraphEdge],
                 positions: 'PositionStore | None' = None,
                 params: ForceParams | None = None) -> dict[str, Point]:
    """Run a fixed number of force iterations seeded from cached positions.

    Every node is pushed away from every other node by
    repulsion / distance**2 and pulled toward the targets of its outgoing
    edges by distance * attraction * strength. Incoming edges do not pull:
    a link A -> B moves A toward B but leaves B alone.

    Forces for an iteration are computed from the previous iteration's
    positions, then all nodes move at once. Distances are floored at 1.
    """
    if params is None:
        params = ForceParams()
    if not nodes:
        return {}

    ids = [n.id for n in nodes]
    index = {node_id: i for i, node_id in enumerate(ids)}
    pos = np.empty((len(nodes), 2), dtype=float)
    for i, n in enumerate(nodes):
        cached = positions.get(n.id) if positions is not None else None
        pos[i] = (cached.x, cached.y) if cached is not None else (n.x, n.y)

    linked = [e for e in edges if e.source in index and e.target in index]
    src = np.array([index[e.source] for e in linked], dtype=int)
    tgt = np.array([index[e.target] for e in linked], dtype=int)
    weight = np.array([e.strength for e in linked], dtype=float)

    for _ in range(params.iterations):
        delta = pos[:, np.newaxis, :] - pos[np.newaxis, :, :]
        dist = np.maximum(np.sqrt((delta ** 2).sum(axis=2)), 1.0)
        magnitude = params.repulsion / dist ** 2
        force = (delta / dist[:, :, np.newaxis]
                 * magnitude[:, :, np.newaxis]).sum(axis=1)

        if len(linked):
            pull = ((pos[tgt] - pos[src])
                    * (params.attraction * weight)[:, np.newaxis])
            np.add.at(force, src, pull)

        pos = pos + force * params.time_step

    logger.debug('force layout: %d nodes, %d edges, %d iterations',
                 len(nodes), len(linked), params.iterations)
    return {node_id: Point(float(pos[i, 0]), float(pos[i, 1]))
            for i, node_id in enumerate(ids)}


def circular_layout(nodes: list[GraphNode],
                    radius: float = CIRCULAR_RADIUS) -> dict[str, Point]:
    """Place nodes evenly on a circle, starting at angle 0."""
    count = len(nodes)
    result = {}
    for i, n in enumerate(nodes):
        angle = 2 * math.pi * i / count
        result[n.id] = Point(math.cos(angle) * radius,
                             math.sin(angle) * radius)
    return result


def grid_layout(nodes: list[GraphNode],
                spacing: float = GRID_SPACING) -> dict[str, Point]:
    """Place nodes row by row in a near-square grid centred on the origin."""
    count = len(nodes)
    if count == 0:
        return {}
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    result = {}
    for i, n in enumerate(nodes):
        row, col = divmod(i, cols)
        result[n.id] = Point((col - cols / 2) * spacing,
                             (row - rows / 2) * spacing)
    return result


def compute_layout(strategy: 'LayoutStrategy | str',
                   nodes: list[GraphNode], edges: list[GraphEdge],
                   positions: 'PositionStore | None' = None,
                   visible: list[GraphNode] | None = None,
                   params: ForceParams | None = None) -> dict[str, Point]:
    """Compute positions with the chosen strategy.

    The force simulation always runs over the full node and edge set.
    Circular and grid place only the visible (filtered) nodes, falling
    back to every node when no filter is given.
    """
    strategy = LayoutStrategy.parse(strategy)
    placed = nodes if visible is None else visible
    if strategy is LayoutStrategy.FORCE:
        result = force_layout(nodes, edges, positions, params)
    elif strategy is LayoutStrategy.CIRCULAR:
        result = circular_layout(placed)
    else:
        result = grid_layout(placed)
    logger.debug('%s layout placed %d nodes', strategy.value, len(result))
    return result
