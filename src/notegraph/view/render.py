"""Frame composition and rasterization of the note graph.

A frame is first composed into plain draw commands in graph space (edges,
then nodes, then labels), then rasterized onto a matplotlib Agg canvas
under a single affine transform: translate to canvas centre plus pan,
then scale by zoom.
"""

import logging
from dataclasses import dataclass, field

import matplotlib.patches as mpatches
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure
from matplotlib.transforms import Affine2D

from notegraph.model import GraphEdge, GraphNode, Point

logger = logging.getLogger('notegraph')

CATEGORY_COLOURS = {
    'personnel': '#93c5fd',
    'travail': '#a78bfa',
    'idées': '#fbbf24',
    'projets': '#34d399',
    }
DEFAULT_COLOUR = '#93c5fd'

EDGE_RGB = (147 / 255, 197 / 255, 253 / 255)
EDGE_ALPHA = 0.3
EDGE_WIDTH = 3.0

NODE_RADIUS = 25.0
HOVER_RADIUS = 30.0
SELECTED_RADIUS = 35.0
SELECTED_STROKE = '#3b82f6'
SELECTED_STROKE_WIDTH = 4.0

LABEL_COLOUR = '#1f2937'
LABEL_SIZE = 14.0
LABEL_OFFSET = 50.0
LABEL_MAX_CHARS = 20

BG_COLOUR = '#ffffff'
DPI = 100


@dataclass(frozen=True)
class CanvasSize:
    """Pixel dimensions of the container the canvas fills."""

    width: int
    height: int


@dataclass
class LineCommand:
    """A straight edge between two graph-space points."""

    start: Point
    end: Point
    rgba: tuple[float, float, float, float]
    width: float


@dataclass
class CircleCommand:
    """A filled node circle with an optional outline."""

    centre: Point
    radius: float
    fill: str
    stroke: str | None = None
    stroke_width: float = 0.0
    node_id: str = ''


@dataclass
class TextCommand:
    """A centred text label."""

    anchor: Point
    text: str
    colour: str = LABEL_COLOUR
    size: float = LABEL_SIZE


@dataclass
class Frame:
    """Everything needed to draw one canvas frame."""

    width: int
    height: int
    zoom: float = 1.0
    pan: Point = Point(0.0, 0.0)
    commands: list = field(default_factory=list)
    legend: list[tuple[str, str]] = field(default_factory=list)


def category_colour(category: str) -> str:
    """Fill colour for a category, falling back to the default."""
    return CATEGORY_COLOURS.get(category, DEFAULT_COLOUR)


def node_radius(node_id: str, selected: str | None,
                hovered: str | None) -> float:
    """Selected beats hovered beats normal."""
    if node_id == selected:
        return SELECTED_RADIUS
    if node_id == hovered:
        return HOVER_RADIUS
    return NODE_RADIUS


def legend_entries(categories: list[str]) -> list[tuple[str, str]]:
    """Pair each category with its colour."""
    return [(c, category_colour(c)) for c in categories]


def compose_frame(nodes: list[GraphNode], edges: list[GraphEdge],
                  positions: 'PositionStore', viewport: 'Viewport',
                  size: CanvasSize | None,
                  selected: str | None = None,
                  hovered: str | None = None,
                  show_labels: bool = True,
                  show_connections: bool = True,
                  categories: list[str] | None = None,
                  all_nodes: list[GraphNode] | None = None) -> Frame | None:
    """Build the draw list for the visible nodes.

    Edges connect any two nodes of all_nodes (default: nodes), so links
    to filtered-out notes still show. Returns None when there is no usable
    render target.
    """
    if size is None or size.width <= 0 or size.height <= 0:
        logger.debug('render target unavailable, skipping frame')
        return None

    def pos_of(n: GraphNode) -> Point:
        cached = positions.get(n.id)
        return cached if cached is not None else n.position

    by_id = {n.id: n for n in (nodes if all_nodes is None else all_nodes)}
    frame = Frame(width=size.width, height=size.height,
                  zoom=viewport.zoom, pan=viewport.pan,
                  legend=legend_entries(categories or []))

    if show_connections:
        for e in edges:
            source, target = by_id.get(e.source), by_id.get(e.target)
            if source is None or target is None:
                continue
            frame.commands.append(LineCommand(
                start=pos_of(source), end=pos_of(target),
                rgba=(*EDGE_RGB, e.strength * EDGE_ALPHA),
                width=e.strength * EDGE_WIDTH))

    for n in nodes:
        centre = pos_of(n)
        is_selected = n.id == selected
        frame.commands.append(CircleCommand(
            centre=centre,
            radius=node_radius(n.id, selected, hovered),
            fill=category_colour(n.category),
            stroke=SELECTED_STROKE if is_selected else None,
            stroke_width=SELECTED_STROKE_WIDTH if is_selected else 0.0,
            node_id=n.id))
        if show_labels and (is_selected or n.id == hovered):
            frame.commands.append(TextCommand(
                anchor=Point(centre.x, centre.y + LABEL_OFFSET),
                text=n.title[:LABEL_MAX_CHARS]))

    return frame


class Renderer:
    """Rasterizes frames onto a fresh Agg canvas sized to the container."""

    def __init__(self, background: str = BG_COLOUR) -> None:
        self.background = background
        self.figure: Figure | None = None

    def render(self, frame: Frame | None) -> Figure | None:
        """Clear and redraw the whole canvas; no-op without a frame."""
        if frame is None:
            return None

        fig = Figure(figsize=(frame.width / DPI, frame.height / DPI),
                     dpi=DPI, facecolor=self.background)
        FigureCanvasAgg(fig)
        ax = fig.add_axes((0, 0, 1, 1))
        ax.set_xlim(0, frame.width)
        ax.set_ylim(frame.height, 0)
        ax.set_axis_off()

        view = Affine2D().scale(frame.zoom).translate(
            frame.width / 2 + frame.pan.x,
            frame.height / 2 + frame.pan.y) + ax.transData
        # canvas pixels -> points, scaled with zoom like the canvas does
        px_to_pt = frame.zoom * 72.0 / DPI

        lines = [c for c in frame.commands if isinstance(c, LineCommand)]
        if lines:
            ax.add_collection(LineCollection(
                [[(c.start.x, c.start.y), (c.end.x, c.end.y)] for c in lines],
                colors=[c.rgba for c in lines],
                linewidths=[c.width * px_to_pt for c in lines],
                transform=view, zorder=1))

        for c in frame.commands:
            if isinstance(c, CircleCommand):
                ax.add_patch(mpatches.Circle(
                    (c.centre.x, c.centre.y), c.radius,
                    facecolor=c.fill,
                    edgecolor=c.stroke or 'none',
                    linewidth=c.stroke_width * px_to_pt,
                    transform=view, zorder=2))
            elif isinstance(c, TextCommand):
                ax.text(c.anchor.x, c.anchor.y, c.text,
                        transform=view, ha='center', va='baseline',
                        fontsize=c.size * px_to_pt, color=c.colour,
                        family='sans-serif', zorder=3)

        if frame.legend:
            handles = [mpatches.Patch(color=colour, label=cat)
                       for cat, colour in frame.legend]
            ax.legend(handles=handles, loc='lower left', fontsize=8,
                      title='Légende', title_fontsize=9, framealpha=0.9)

        self.figure = fig
        return fig

    def to_array(self) -> np.ndarray | None:
        """Return the last frame as an (height, width, 4) RGBA array."""
        if self.figure is None:
            return None
        self.figure.canvas.draw()
        return np.asarray(self.figure.canvas.buffer_rgba())

    def save(self, path: str) -> None:
        """Write the last frame as an image file."""
        if self.figure is None:
            raise RuntimeError('nothing rendered yet')
        self.figure.savefig(path, dpi=DPI,
                            facecolor=self.figure.get_facecolor())
