"""Interactive graph view: selection, hover, drag, pan/zoom and link edits."""

import logging
from collections.abc import Callable

from notegraph.config import ViewConfig
from notegraph.graph.builder import ALL_CATEGORIES, build_graph, categories
from notegraph.graph.builder import filter_nodes
from notegraph.graph.layout import ForceParams, LayoutStrategy, compute_layout
from notegraph.graph.positions import PositionStore
from notegraph.model import Graph, GraphNode, Note, Point
from notegraph.view.render import CanvasSize, Frame, Renderer, compose_frame
from notegraph.view.viewport import Viewport

logger = logging.getLogger('notegraph')

HIT_RADIUS = 25.0


class GraphSession:
    """Owns the state behind one graph view.

    The note list is re-read from the repository after every change and
    the model rebuilt from scratch; positions live in a PositionStore that
    survives rebuilds, so edits never reset the layout. Layout re-runs on
    strategy changes and when the number of notes changes.
    """

    def __init__(self, repo: 'NoteRepository',
                 config: ViewConfig | None = None,
                 on_select_note: Callable[[str], None] | None = None,
                 on_close: Callable[[], None] | None = None) -> None:
        if config is None:
            config = ViewConfig()
        self.repo = repo
        self.positions = PositionStore()
        self.viewport = Viewport()
        self.renderer = Renderer()
        self.strategy = LayoutStrategy.parse(config.layout)
        self.force_params = ForceParams(
            iterations=config.iterations, repulsion=config.repulsion,
            attraction=config.attraction, time_step=config.time_step)
        self.filter_category = config.filter_category or ALL_CATEGORIES
        self.show_labels = config.show_labels
        self.show_connections = config.show_connections
        self.size: CanvasSize | None = None
        self.selected: str | None = None
        self.hovered: str | None = None
        self.dragged: str | None = None
        self.notes: list[Note] = []
        self.graph = Graph()
        self._on_select_note = on_select_note
        self._on_close = on_close
        self._unsubscribe = repo.subscribe(self._on_notes_changed)
        self.rebuild()
        self.apply_layout()

    # --- model and layout ---

    def rebuild(self) -> Graph:
        """Re-read notes and rebuild the graph model."""
        self.notes = self.repo.get_all()
        self.graph = build_graph(self.notes, self.positions)
        seeds = {n.id: n.position for n in self.graph.nodes}
        self.positions.rebuild_missing(
            self.graph.node_ids(), lambda _, node_id: seeds[node_id])
        return self.graph

    def visible_nodes(self) -> list[GraphNode]:
        """Nodes passing the category filter, in model order."""
        return filter_nodes(self.graph.nodes, self.filter_category)

    def apply_layout(self) -> None:
        """Run the current strategy to completion and redraw."""
        placed = compute_layout(
            self.strategy, self.graph.nodes, self.graph.edges,
            self.positions, self.visible_nodes(), self.force_params)
        self.positions.update(placed)
        self.redraw()

    def set_strategy(self, strategy: 'LayoutStrategy | str') -> None:
        """Switch layout strategy and lay out again."""
        self.strategy = LayoutStrategy.parse(strategy)
        self.apply_layout()

    def position_of(self, node: GraphNode) -> Point:
        """Cached position, falling back to the node's seed."""
        cached = self.positions.get(node.id)
        return cached if cached is not None else node.position

    def _on_notes_changed(self) -> None:
        previous = len(self.notes)
        self.rebuild()
        if self.selected is not None and \
                self.graph.node_by_id(self.selected) is None:
            self.selected = None
        if len(self.notes) != previous:
            self.apply_layout()
        else:
            self.redraw()

    # --- display toggles ---

    def set_filter(self, category: str) -> None:
        """Show only one category; 'all' shows everything."""
        self.filter_category = category or ALL_CATEGORIES
        self.redraw()

    def set_show_labels(self, show: bool) -> None:
        self.show_labels = show
        self.redraw()

    def set_show_connections(self, show: bool) -> None:
        self.show_connections = show
        self.redraw()

    def categories(self) -> list[str]:
        """Categories present in the notes, in first-seen order."""
        return categories(self.notes)

    # --- rendering ---

    def resize(self, width: int, height: int) -> None:
        """Record the container size and redraw at it."""
        self.size = CanvasSize(width, height)
        self.redraw()

    def frame(self) -> Frame | None:
        """Compose the current frame, or None without a render target."""
        return compose_frame(
            self.visible_nodes(), self.graph.edges, self.positions,
            self.viewport, self.size,
            selected=self.selected, hovered=self.hovered,
            show_labels=self.show_labels,
            show_connections=self.show_connections,
            categories=self.categories(),
            all_nodes=self.graph.nodes)

    def redraw(self) -> None:
        """Redraw the whole canvas; skipped until a size is known."""
        self.renderer.render(self.frame())

    # --- pointer input ---

    def hit_test(self, point: Point) -> str | None:
        """Return the first visible node within HIT_RADIUS of a graph point."""
        for n in self.visible_nodes():
            if self.position_of(n).distance_to(point) < HIT_RADIUS:
                return n.id
        return None

    def _to_graph(self, screen_x: float, screen_y: float) -> Point | None:
        if self.size is None:
            return None
        return self.viewport.screen_to_graph(
            screen_x, screen_y, self.size.width, self.size.height)

    def pointer_down(self, screen_x: float, screen_y: float) -> None:
        """Select and start dragging a node, or start panning."""
        point = self._to_graph(screen_x, screen_y)
        if point is None:
            return
        hit = self.hit_test(point)
        if hit is not None:
            self.selected = hit
            self.dragged = hit
        else:
            self.selected = None
            self.viewport.start_pan(screen_x, screen_y)
        self.redraw()

    def pointer_move(self, screen_x: float, screen_y: float) -> None:
        """Drag the held node, pan, or update hover."""
        point = self._to_graph(screen_x, screen_y)
        if point is None:
            return
        if self.dragged is not None:
            self.positions.set(self.dragged, point)
        elif self.viewport.panning:
            self.viewport.drag_to(screen_x, screen_y)
        else:
            self.hovered = self.hit_test(point)
        self.redraw()

    def pointer_up(self) -> None:
        """End drag and pan; selection is kept."""
        self.dragged = None
        self.viewport.end_pan()

    pointer_leave = pointer_up

    def wheel(self, delta_y: float) -> None:
        self.viewport.wheel(delta_y)
        self.redraw()

    def zoom_in(self) -> None:
        self.viewport.zoom_in()
        self.redraw()

    def zoom_out(self) -> None:
        self.viewport.zoom_out()
        self.redraw()

    def reset_view(self) -> None:
        self.viewport.reset()
        self.redraw()

    # --- selection ---

    def select(self, note_id: str | None) -> None:
        """Select a node by id, e.g. from the connection list."""
        if note_id is not None and self.graph.node_by_id(note_id) is None:
            return
        self.selected = note_id
        self.redraw()

    def clear_selection(self) -> None:
        self.select(None)

    def open_selected(self) -> None:
        """Ask the surrounding UI to open the selected note."""
        if self.selected is not None and self._on_select_note is not None:
            self._on_select_note(self.selected)

    def close(self) -> None:
        """Detach from the repository and tell the UI the view closed."""
        self._unsubscribe()
        if self._on_close is not None:
            self._on_close()

    def selected_details(self) -> dict | None:
        """Side-panel data for the selected note."""
        if self.selected is None:
            return None
        by_id = {n.id: n for n in self.notes}
        note = by_id.get(self.selected)
        if note is None:
            return None
        return {
            'id': note.id,
            'title': note.title,
            'category': note.category,
            'content': note.content,
            'tags': list(note.tags),
            'connections': [
                {'id': cid, 'title': by_id[cid].title}
                for cid in note.connections if cid in by_id],
            'candidates': [
                {'id': n.id, 'title': n.title}
                for n in self.notes if n.id != note.id],
            }

    # --- connection edits ---

    def add_connection(self, from_id: str, to_id: str) -> bool:
        """Append to_id to from_id's connections; False when nothing changed."""
        if from_id == to_id:
            return False
        note = self.repo.get(from_id)
        if note is None or to_id in note.connections:
            return False
        self.repo.update(from_id, connections=[*note.connections, to_id])
        logger.debug('linked %s -> %s', from_id, to_id)
        return True

    def remove_connection(self, from_id: str, to_id: str) -> bool:
        """Drop to_id from from_id's connections; False when nothing changed."""
        note = self.repo.get(from_id)
        if note is None or to_id not in note.connections:
            return False
        self.repo.update(
            from_id,
            connections=[c for c in note.connections if c != to_id])
        logger.debug('unlinked %s -> %s', from_id, to_id)
        return True

    def link_selected(self, to_id: str) -> bool:
        """Link the selected note to another note."""
        if self.selected is None:
            return False
        return self.add_connection(self.selected, to_id)

    def unlink_selected(self, to_id: str) -> bool:
        """Remove a link from the selected note."""
        if self.selected is None:
            return False
        return self.remove_connection(self.selected, to_id)
