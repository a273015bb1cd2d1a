"""Pan/zoom state and the screen <-> graph coordinate transform."""

import logging

from notegraph.model import Point

logger = logging.getLogger('notegraph')

MIN_ZOOM = 0.1
MAX_ZOOM = 3.0
WHEEL_ZOOM_OUT = 0.9
WHEEL_ZOOM_IN = 1.1
BUTTON_ZOOM_STEP = 0.1


def clamp_zoom(value: float) -> float:
    """Clamp a zoom factor to [MIN_ZOOM, MAX_ZOOM]."""
    return max(MIN_ZOOM, min(MAX_ZOOM, value))


class Viewport:
    """Zoom factor and pixel pan offset.

    Rendering translates to the canvas centre plus pan, then scales by
    zoom; screen_to_graph is the inverse of that mapping. Zoom always
    pivots on the canvas centre.
    """

    def __init__(self, zoom: float = 1.0, pan: Point = Point(0.0, 0.0)) -> None:
        self.zoom = clamp_zoom(zoom)
        self.pan = pan
        self._drag_anchor: Point | None = None

    @property
    def panning(self) -> bool:
        """True while a background drag gesture is active."""
        return self._drag_anchor is not None

    @property
    def zoom_percent(self) -> int:
        """Zoom as a rounded percentage for display."""
        return round(self.zoom * 100)

    def screen_to_graph(self, screen_x: float, screen_y: float,
                        width: float, height: float) -> Point:
        """Convert canvas pixel coordinates to graph space."""
        return Point((screen_x - width / 2 - self.pan.x) / self.zoom,
                     (screen_y - height / 2 - self.pan.y) / self.zoom)

    def graph_to_screen(self, x: float, y: float,
                        width: float, height: float) -> Point:
        """Convert graph-space coordinates to canvas pixels."""
        return Point(x * self.zoom + width / 2 + self.pan.x,
                     y * self.zoom + height / 2 + self.pan.y)

    def start_pan(self, pointer_x: float, pointer_y: float) -> None:
        """Begin a drag; the anchor is the pointer minus the current pan."""
        self._drag_anchor = Point(pointer_x - self.pan.x,
                                  pointer_y - self.pan.y)

    def drag_to(self, pointer_x: float, pointer_y: float) -> None:
        """Recompute pan from the pointer while a drag is active."""
        if self._drag_anchor is None:
            return
        self.pan = Point(pointer_x - self._drag_anchor.x,
                         pointer_y - self._drag_anchor.y)

    def end_pan(self) -> None:
        """Finish any active drag."""
        self._drag_anchor = None

    def wheel(self, delta_y: float) -> float:
        """Zoom out for positive delta (scroll down), in otherwise."""
        factor = WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN
        self.zoom = clamp_zoom(self.zoom * factor)
        return self.zoom

    def zoom_in(self) -> float:
        """Step zoom up by one button increment."""
        self.zoom = clamp_zoom(self.zoom + BUTTON_ZOOM_STEP)
        return self.zoom

    def zoom_out(self) -> float:
        """Step zoom down by one button increment."""
        self.zoom = clamp_zoom(self.zoom - BUTTON_ZOOM_STEP)
        return self.zoom

    def reset(self) -> None:
        """Return to zoom 1 and no pan."""
        self.zoom = 1.0
        self.pan = Point(0.0, 0.0)
        logger.debug('viewport reset')
