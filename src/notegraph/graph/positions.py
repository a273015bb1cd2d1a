"""Session-scoped node position cache keyed by node id."""

from collections.abc import Callable, Iterable

from notegraph.model import Point


class PositionStore:
    """Owns the id -> Point mapping shared by layout, drag and rendering.

    Entries for notes that no longer exist are left in place and simply
    never read again.
    """

    def __init__(self, initial: dict[str, Point] | None = None) -> None:
        self._positions: dict[str, Point] = dict(initial or {})

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def get(self, node_id: str) -> Point | None:
        """Return the cached position for a node, or None."""
        return self._positions.get(node_id)

    def set(self, node_id: str, point: Point) -> None:
        """Overwrite one node's position."""
        self._positions[node_id] = point

    def update(self, positions: dict[str, Point]) -> None:
        """Overwrite entries for the given ids, leaving others untouched."""
        self._positions.update(positions)

    def rebuild_missing(self, ids: Iterable[str],
                        default_fn: Callable[[int, str], Point]) -> None:
        """Fill positions for ids without an entry via default_fn(index, id)."""
        for index, node_id in enumerate(ids):
            if node_id not in self._positions:
                self._positions[node_id] = default_fn(index, node_id)

    def snapshot(self) -> dict[str, Point]:
        """Return a copy of the mapping."""
        return dict(self._positions)
