"""Click CLI for notegraph."""

import json
import logging
import os
from pathlib import Path

import click
import notegraph
from notegraph.config import ViewConfig, load_view_config
from notegraph.graph.layout import LayoutStrategy
from notegraph.model import notes_from_json, notes_to_json
from notegraph.store.db import DB, default_data_dir, list_stores, open_db
from notegraph.store.db import read_active, store_dir, valid_store_name
from notegraph.store.db import write_active
from notegraph.store.notes import NoteRepository
from notegraph.store.oplog import log_op

STRATEGY_CHOICE = click.Choice([s.value for s in LayoutStrategy])


def _json_out(obj: object) -> None:
    """Write JSON to stdout with 2-space indent, sorted keys."""
    click.echo(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def _resolve_store_name(data_dir: str, store_flag: str) -> str:
    """Resolve effective store name."""
    if store_flag:
        return store_flag
    env = os.environ.get('NOTEGRAPH_STORE', '')
    if env:
        return env
    return read_active(data_dir)


def _open_db(ctx: click.Context) -> DB:
    """Open the database using context options."""
    data_dir = ctx.obj['data_dir']
    name = _resolve_store_name(data_dir, ctx.obj['store'])
    if not valid_store_name(name):
        raise click.ClickException(f'invalid store name {name!r}')
    return open_db(store_dir(data_dir, name))


def _view_config(ctx: click.Context) -> ViewConfig:
    """Load view settings, surfacing config errors as CLI errors."""
    try:
        return load_view_config(ctx.obj['data_dir'])
    except ValueError as e:
        raise click.ClickException(f'invalid config file: {e}')


def _session(repo: NoteRepository, config: ViewConfig) -> 'GraphSession':
    from notegraph.view.session import GraphSession
    try:
        return GraphSession(repo, config)
    except ValueError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version=notegraph.__version__, prog_name='notegraph')
@click.option('--data-dir', default=None, help='Base data directory (env: NOTEGRAPH_DATA_DIR)')
@click.option('--store', 'store_name', default='', help='Named note store')
@click.option('--verbose', '-v', is_flag=True, default=False, help='Debug logging to stderr')
@click.pass_context
def cli(ctx: click.Context, data_dir: str | None, store_name: str,
        verbose: bool) -> None:
    """Note graph builder, layout and renderer."""
    if data_dir is None:
        data_dir = os.environ.get('NOTEGRAPH_DATA_DIR', default_data_dir())
    if verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')
    ctx.ensure_object(dict)
    ctx.obj['data_dir'] = data_dir
    ctx.obj['store'] = store_name


@cli.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_notes(ctx: click.Context, path: str) -> None:
    """Replace the note list with a JSON array of notes."""
    text = Path(path).read_text(encoding='utf-8')
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise click.ClickException(f'invalid JSON in {path}: {e}')
    if not isinstance(raw, list):
        raise click.ClickException('expected a JSON array of notes')
    notes = notes_from_json(text)
    ids = [n.id for n in notes]
    if any(not i for i in ids) or len(set(ids)) != len(ids):
        raise click.ClickException('every note needs a unique, non-empty id')

    db = _open_db(ctx)
    try:
        def tx_body() -> None:
            NoteRepository(db).replace_all(notes)
            log_op(db, 'import', '', f'{len(notes)} notes from {path}')
        db.in_transaction(tx_body)
    finally:
        db.close()
    _json_out({'status': 'imported', 'count': len(notes)})


@cli.command()
@click.pass_context
def export(ctx: click.Context) -> None:
    """Print the note list as JSON."""
    db = _open_db(ctx)
    try:
        notes = NoteRepository(db).get_all()
    finally:
        db.close()
    click.echo(json.dumps(json.loads(notes_to_json(notes)),
                          indent=2, ensure_ascii=False))


@cli.command('list')
@click.pass_context
def list_notes(ctx: click.Context) -> None:
    """Show notes with their category and connection count."""
    db = _open_db(ctx)
    try:
        notes = NoteRepository(db).get_all()
    finally:
        db.close()
    _json_out([{
        'id': n.id,
        'title': n.title,
        'category': n.category,
        'connections': len(n.connections),
        } for n in notes])


def _edit_link(ctx: click.Context, from_id: str, to_id: str,
               remove: bool) -> None:
    if from_id == to_id:
        raise click.ClickException('a note cannot connect to itself')
    db = _open_db(ctx)
    try:
        repo = NoteRepository(db)
        known = {n.id for n in repo.get_all()}
        for note_id in (from_id, to_id):
            if note_id not in known:
                raise click.ClickException(f'note {note_id} not found')
        session = _session(repo, ViewConfig())
        if remove:
            changed = session.remove_connection(from_id, to_id)
            op, status = 'unlink', 'unlinked'
        else:
            changed = session.add_connection(from_id, to_id)
            op, status = 'link', 'linked'
        if changed:
            log_op(db, op, from_id, f'{from_id} -> {to_id}')
        session.close()
    finally:
        db.close()
    _json_out({
        'status': status if changed else 'unchanged',
        'source_id': from_id,
        'target_id': to_id,
        })


@cli.command()
@click.argument('from_id')
@click.argument('to_id')
@click.pass_context
def link(ctx: click.Context, from_id: str, to_id: str) -> None:
    """Add an explicit connection FROM_ID -> TO_ID."""
    _edit_link(ctx, from_id, to_id, remove=False)


@cli.command()
@click.argument('from_id')
@click.argument('to_id')
@click.pass_context
def unlink(ctx: click.Context, from_id: str, to_id: str) -> None:
    """Remove the connection FROM_ID -> TO_ID."""
    _edit_link(ctx, from_id, to_id, remove=True)


def _configured(ctx: click.Context, strategy: str | None,
                category: str | None) -> ViewConfig:
    config = _view_config(ctx)
    if strategy:
        config.layout = strategy
    if category:
        config.filter_category = category
    return config


@cli.command()
@click.option('--strategy', type=STRATEGY_CHOICE, default=None, help='Layout strategy')
@click.option('--category', default=None, help='Only place/show this category')
@click.pass_context
def layout(ctx: click.Context, strategy: str | None,
           category: str | None) -> None:
    """Lay out the graph and print node positions."""
    config = _configured(ctx, strategy, category)
    db = _open_db(ctx)
    try:
        session = _session(NoteRepository(db), config)
        visible = {n.id for n in session.visible_nodes()}
        out = {
            'strategy': session.strategy.value,
            'filter': session.filter_category,
            'nodes': [{
                'id': n.id,
                'x': round(session.position_of(n).x, 4),
                'y': round(session.position_of(n).y, 4),
                'visible': n.id in visible,
                } for n in session.graph.nodes],
            }
        session.close()
    finally:
        db.close()
    _json_out(out)


@cli.command()
@click.argument('out', type=click.Path(dir_okay=False))
@click.option('--strategy', type=STRATEGY_CHOICE, default=None, help='Layout strategy')
@click.option('--category', default=None, help='Only place/show this category')
@click.option('--width', default=None, type=int, help='Canvas width in pixels')
@click.option('--height', default=None, type=int, help='Canvas height in pixels')
@click.option('--zoom', default=1.0, type=float, help='Zoom factor (0.1-3.0)')
@click.option('--no-labels', is_flag=True, default=False, help='Hide labels')
@click.option('--no-connections', is_flag=True, default=False, help='Hide edges')
@click.option('--select', 'select_id', default=None, help='Note id to select')
@click.pass_context
def render(ctx: click.Context, out: str, strategy: str | None,
           category: str | None, width: int | None, height: int | None,
           zoom: float, no_labels: bool, no_connections: bool,
           select_id: str | None) -> None:
    """Render the graph to an image file."""
    from notegraph.view.viewport import clamp_zoom

    config = _configured(ctx, strategy, category)
    if no_labels:
        config.show_labels = False
    if no_connections:
        config.show_connections = False
    width = width or config.width
    height = height or config.height
    if width <= 0 or height <= 0:
        raise click.ClickException('width and height must be positive')

    db = _open_db(ctx)
    try:
        session = _session(NoteRepository(db), config)
        if select_id:
            if session.graph.node_by_id(select_id) is None:
                raise click.ClickException(f'note {select_id} not found')
            session.select(select_id)
        session.viewport.zoom = clamp_zoom(zoom)
        session.resize(width, height)
        session.renderer.save(out)
        drawn = len(session.visible_nodes())
        session.close()
    finally:
        db.close()
    _json_out({
        'status': 'rendered',
        'path': out,
        'width': width,
        'height': height,
        'nodes': drawn,
        })


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Print graph statistics."""
    from notegraph.graph.builder import build_graph
    from notegraph.graph.stats import graph_stats

    db = _open_db(ctx)
    try:
        notes = NoteRepository(db).get_all()
    finally:
        db.close()
    _json_out(graph_stats(notes, build_graph(notes)))


@cli.group()
def store() -> None:
    """Manage named note stores."""


@store.command('list')
@click.pass_context
def store_list(ctx: click.Context) -> None:
    """List stores and the active one."""
    data_dir = ctx.obj['data_dir']
    _json_out({
        'active': read_active(data_dir),
        'stores': list_stores(data_dir),
        })


@store.command('set')
@click.argument('name')
@click.pass_context
def store_set(ctx: click.Context, name: str) -> None:
    """Make NAME the active store."""
    if not valid_store_name(name):
        raise click.ClickException(
            f'invalid store name {name!r}; use [a-zA-Z0-9][a-zA-Z0-9_-]*')
    write_active(ctx.obj['data_dir'], name)
    _json_out({'status': 'active', 'store': name})

