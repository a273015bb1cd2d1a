"""GraphSession tests: pointer handling, hit-testing, filter and link edits."""

import pytest
from notegraph.config import ViewConfig
from notegraph.graph.layout import LayoutStrategy
from notegraph.model import Point
from notegraph.view.render import CircleCommand, LineCommand, TextCommand
from notegraph.view.session import GraphSession
from tests.conftest import make_note

WIDTH, HEIGHT = 400, 300


def _screen(session, x, y):
    """Graph point -> screen pixel for the current viewport."""
    p = session.viewport.graph_to_screen(x, y, WIDTH, HEIGHT)
    return p.x, p.y


@pytest.fixture
def grid_session(populated_repo):
    """Session over the populated repo using the grid layout."""
    session = GraphSession(populated_repo, ViewConfig(layout='grid'))
    session.resize(WIDTH, HEIGHT)
    yield session
    session.close()


class TestConstruction:
    """Initial model and layout."""

    def test_builds_and_lays_out(self, populated_repo):
        """Every note gets a node and a cached position."""
        session = GraphSession(populated_repo)
        assert session.graph.node_ids() == [
            'n-1', 'n-2', 'n-3', 'n-4', 'n-5']
        assert session.strategy is LayoutStrategy.FORCE
        for node_id in session.graph.node_ids():
            assert session.positions.get(node_id) is not None

    def test_empty_repo(self, repo):
        """No notes: nothing placed, nothing drawn."""
        session = GraphSession(repo)
        session.resize(WIDTH, HEIGHT)
        assert session.graph.nodes == []
        assert session.frame().commands == []

    def test_bad_layout_name(self, repo):
        """An unknown layout in the config is rejected."""
        with pytest.raises(ValueError):
            GraphSession(repo, ViewConfig(layout='spiral'))


class TestHitTest:
    """25-unit radius in graph space."""

    def test_radius_boundary(self, grid_session):
        """24.9 units hits, 25.1 does not."""
        centre = grid_session.positions.get('n-1')
        assert grid_session.hit_test(
            Point(centre.x + 24.9, centre.y)) == 'n-1'
        assert grid_session.hit_test(
            Point(centre.x + 25.1, centre.y)) is None

    def test_radius_independent_of_zoom(self, grid_session):
        """At zoom 2 a 40px screen offset is 20 graph units: a hit."""
        grid_session.viewport.zoom = 2.0
        centre = grid_session.positions.get('n-1')
        sx, sy = _screen(grid_session, centre.x, centre.y)
        grid_session.pointer_down(sx + 40, sy)
        assert grid_session.selected == 'n-1'

    def test_hidden_nodes_not_hit(self, grid_session):
        """Filtered-out nodes cannot be hit."""
        centre = grid_session.positions.get('n-2')
        grid_session.set_filter('personnel')
        assert grid_session.hit_test(centre) is None


class TestPointer:
    """Mouse down/move/up semantics."""

    def test_select_and_drag(self, grid_session):
        """Down on a node selects and drags it to the pointer."""
        centre = grid_session.positions.get('n-3')
        grid_session.pointer_down(*_screen(grid_session, centre.x, centre.y))
        assert grid_session.selected == 'n-3'
        assert grid_session.dragged == 'n-3'
        grid_session.pointer_move(*_screen(grid_session, 42, 17))
        assert grid_session.positions.get('n-3') == Point(42.0, 17.0)
        grid_session.pointer_up()
        assert grid_session.dragged is None
        assert grid_session.selected == 'n-3'

    def test_background_pans_and_clears_selection(self, grid_session):
        """Down on empty space clears selection and pans."""
        grid_session.select('n-1')
        grid_session.pointer_down(390, 290)
        assert grid_session.selected is None
        assert grid_session.viewport.panning
        grid_session.pointer_move(410, 300)
        assert grid_session.viewport.pan == Point(20.0, 10.0)
        grid_session.pointer_leave()
        assert not grid_session.viewport.panning

    def test_hover(self, grid_session):
        """Plain moves update the hovered node."""
        centre = grid_session.positions.get('n-2')
        grid_session.pointer_move(*_screen(grid_session, centre.x, centre.y))
        assert grid_session.hovered == 'n-2'
        grid_session.pointer_move(390, 290)
        assert grid_session.hovered is None

    def test_no_target_ignored(self, populated_repo):
        """Without a canvas size pointer events do nothing."""
        session = GraphSession(populated_repo)
        session.pointer_down(0, 0)
        assert session.selected is None
        assert not session.viewport.panning

    def test_rebuild_preserves_manual_position(self, grid_session,
                                               populated_repo):
        """A dragged node stays put when another note is edited."""
        centre = grid_session.positions.get('n-1')
        grid_session.pointer_down(*_screen(grid_session, centre.x, centre.y))
        grid_session.pointer_move(*_screen(grid_session, 42, 17))
        grid_session.pointer_up()

        populated_repo.update('n-5', title='Website redesign v2')

        assert grid_session.graph.node_by_id('n-5').title == \
            'Website redesign v2'
        assert grid_session.positions.get('n-1') == Point(42.0, 17.0)
        node = grid_session.graph.node_by_id('n-1')
        assert (node.x, node.y) == (42.0, 17.0)

    def test_zoom_controls(self, grid_session):
        """Wheel, buttons and reset drive the viewport."""
        grid_session.wheel(1)
        assert grid_session.viewport.zoom == pytest.approx(0.9)
        grid_session.zoom_in()
        assert grid_session.viewport.zoom == pytest.approx(1.0)
        grid_session.zoom_out()
        grid_session.reset_view()
        assert grid_session.viewport.zoom == 1.0


class TestFilterScoping:
    """Non-force layouts and rendering only touch visible nodes."""

    def test_grid_with_filter(self, repo):
        """3 of 10 notes placed; the other 7 keep their positions."""
        notes = [make_note(id=f'w-{i}', category='travail')
                 for i in range(3)]
        notes += [make_note(id=f'p-{i}', category='personnel')
                  for i in range(7)]
        repo.replace_all(notes)
        session = GraphSession(repo)
        before = session.positions.snapshot()

        session.set_filter('travail')
        session.set_strategy('grid')

        after = session.positions.snapshot()
        for i in range(7):
            assert after[f'p-{i}'] == before[f'p-{i}']
        # 3 nodes: 2 cols, 2 rows
        assert after['w-0'] == Point(-150.0, -150.0)
        assert after['w-1'] == Point(0.0, -150.0)
        assert after['w-2'] == Point(-150.0, 0.0)

        session.resize(WIDTH, HEIGHT)
        drawn = [c.node_id for c in session.frame().commands
                 if isinstance(c, CircleCommand)]
        assert drawn == ['w-0', 'w-1', 'w-2']

    def test_filter_does_not_change_model(self, grid_session):
        """The model keeps every node under a filter."""
        grid_session.set_filter('projets')
        assert len(grid_session.graph.nodes) == 5
        assert [n.id for n in grid_session.visible_nodes()] == ['n-5']
        grid_session.set_filter('all')
        assert len(grid_session.visible_nodes()) == 5


class TestConnections:
    """add/remove connection through the repository."""

    def test_add(self, grid_session, populated_repo):
        """A new link is appended and shows up as an explicit edge."""
        assert grid_session.add_connection('n-2', 'n-5')
        assert populated_repo.get('n-2').connections == ['n-5']
        explicit = [(e.source, e.target) for e in grid_session.graph.edges
                    if e.explicit]
        assert ('n-2', 'n-5') in explicit

    def test_add_self_rejected(self, grid_session, populated_repo):
        """addConnection(X, X) leaves X unchanged."""
        before = populated_repo.get('n-1')
        assert not grid_session.add_connection('n-1', 'n-1')
        after = populated_repo.get('n-1')
        assert after.connections == before.connections
        assert after.updated_at == before.updated_at

    def test_add_existing_noop(self, grid_session, populated_repo):
        """An existing link is not duplicated."""
        assert not grid_session.add_connection('n-1', 'n-3')
        assert populated_repo.get('n-1').connections == ['n-3']

    def test_add_unknown_source(self, grid_session):
        """A missing source note is a no-op."""
        assert not grid_session.add_connection('ghost', 'n-1')

    def test_remove(self, grid_session, populated_repo):
        """Removing drops the id and the explicit edge."""
        assert grid_session.remove_connection('n-1', 'n-3')
        assert populated_repo.get('n-1').connections == []
        assert not [e for e in grid_session.graph.edges if e.explicit]
        assert not grid_session.remove_connection('n-1', 'n-3')

    def test_positions_kept_across_edit(self, grid_session):
        """Link edits keep the whole position cache."""
        before = grid_session.positions.snapshot()
        grid_session.add_connection('n-4', 'n-5')
        assert grid_session.positions.snapshot() == before

    def test_selected_helpers(self, grid_session, populated_repo):
        """link/unlink_selected act on the selected note."""
        assert not grid_session.link_selected('n-2')
        grid_session.select('n-4')
        assert grid_session.link_selected('n-2')
        assert populated_repo.get('n-4').connections == ['n-2']
        assert grid_session.unlink_selected('n-2')
        assert populated_repo.get('n-4').connections == []

    def test_new_note_triggers_layout(self, grid_session, populated_repo):
        """A change in note count lays out again."""
        notes = populated_repo.get_all()
        notes.append(make_note(id='n-6', category='travail'))
        populated_repo.replace_all(notes)
        # 6 nodes: 3 cols, 2 rows; index 5 at row 1, col 2
        assert grid_session.positions.get('n-6') == Point(75.0, 0.0)


class TestSelection:
    """Selection, details panel and callbacks."""

    def test_details(self, grid_session):
        """Details resolve connections and list link candidates."""
        grid_session.select('n-1')
        details = grid_session.selected_details()
        assert details['title'] == 'Trip to Lisbon'
        assert details['tags'] == ['travel', 'summer']
        assert details['connections'] == [
            {'id': 'n-3', 'title': 'Packing list'}]
        assert [c['id'] for c in details['candidates']] == [
            'n-2', 'n-3', 'n-4', 'n-5']

    def test_details_skip_dangling(self, repo):
        """Dangling connection ids are left out of the panel."""
        repo.replace_all([make_note(id='a', connections=['gone'])])
        session = GraphSession(repo)
        session.select('a')
        assert session.selected_details()['connections'] == []

    def test_select_unknown_ignored(self, grid_session):
        """Selecting a missing id keeps the current selection."""
        grid_session.select('n-2')
        grid_session.select('ghost')
        assert grid_session.selected == 'n-2'
        grid_session.clear_selection()
        assert grid_session.selected_details() is None

    def test_callbacks(self, populated_repo):
        """open_selected and close call back into the UI."""
        opened, closed = [], []
        session = GraphSession(populated_repo,
                               on_select_note=opened.append,
                               on_close=lambda: closed.append(True))
        session.open_selected()
        assert opened == []
        session.select('n-2')
        session.open_selected()
        assert opened == ['n-2']
        session.close()
        assert closed == [True]
        populated_repo.update('n-2', title='after close')
        assert session.graph.node_by_id('n-2').title == 'Quarterly roadmap'

    def test_selected_removed_from_repo(self, grid_session, populated_repo):
        """Selection clears when its note disappears."""
        grid_session.select('n-5')
        populated_repo.replace_all(populated_repo.get_all()[:4])
        assert grid_session.selected is None


class TestFrame:
    """Frame content reflects session state."""

    def test_label_only_for_selected(self, grid_session):
        """Labels appear for the selected node when enabled."""
        grid_session.select('n-2')
        texts = [c.text for c in grid_session.frame().commands
                 if isinstance(c, TextCommand)]
        assert texts == ['Quarterly roadmap']
        grid_session.set_show_labels(False)
        assert not [c for c in grid_session.frame().commands
                    if isinstance(c, TextCommand)]

    def test_legend(self, grid_session):
        """Legend lists categories with colours."""
        assert grid_session.frame().legend[0] == ('personnel', '#93c5fd')
        assert len(grid_session.frame().legend) == 4

    def test_edge_to_hidden_note_still_drawn(self, repo):
        """Filtering hides the other note but keeps the link to it."""
        repo.replace_all([
            make_note(id='a', category='travail', connections=['b']),
            make_note(id='b', category='personnel')])
        session = GraphSession(repo, ViewConfig(layout='grid'))
        session.resize(WIDTH, HEIGHT)
        session.set_filter('travail')
        commands = session.frame().commands
        lines = [c for c in commands if isinstance(c, LineCommand)]
        assert len(lines) == 1
        assert lines[0].end == session.positions.get('b')
        assert [c.node_id for c in commands
                if isinstance(c, CircleCommand)] == ['a']

    def test_toggle_connections(self, grid_session):
        """Turning connections off removes every line; on restores them."""
        drawn = [c for c in grid_session.frame().commands
                 if isinstance(c, LineCommand)]
        assert len(drawn) == len(grid_session.graph.edges)
        grid_session.set_show_connections(False)
        assert not [c for c in grid_session.frame().commands
                    if isinstance(c, LineCommand)]
        grid_session.set_show_connections(True)
        assert len([c for c in grid_session.frame().commands
                    if isinstance(c, LineCommand)]) == len(drawn)

    def test_zoom_percent_follows_controls(self, grid_session):
        """The zoom readout tracks wheel and button zoom."""
        assert grid_session.viewport.zoom_percent == 100
        grid_session.zoom_in()
        assert grid_session.viewport.zoom_percent == 110
        grid_session.wheel(1)
        assert grid_session.viewport.zoom_percent == 99
        assert grid_session.frame().zoom == pytest.approx(0.99)
