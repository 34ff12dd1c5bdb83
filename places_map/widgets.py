"""Textual widgets: the virtualized place list, the terminal map surface, the status bar."""

from __future__ import annotations
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from rich.segment import Segment
from rich.style import Style
from rich.text import Text
from textual import events
from textual.binding import Binding
from textual.geometry import Size
from textual.message import Message
from textual.reactive import reactive
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widget import Widget
from textual.widgets import Static

from .listview import OVERSCAN, ROW_HEIGHT, Row, VirtualList
from .markers import MarkerLayer, MarkerRegistry
from .models import UNKNOWN, Coordinate, PointOfInterest

log = logging.getLogger(__name__)

TAG_COLORS: Dict[str, str] = {
    "italian": "#FF5733",
    "pizza": "#33FF57",
    "asian": "#3357FF",
    "default": "#AAAAAA",
}

def tag_color(category: Optional[str]) -> str:
    return TAG_COLORS.get((category or "default").lower(), TAG_COLORS["default"])

# ---------------- Status ----------------
class StatusBar(Static):
    def set(self, msg: str) -> None: self.update(msg)

# ---------------- List ----------------
class PlaceList(ScrollView, can_focus=True):
    """Fixed-height rows drawn line by line; only the scroll window is ever materialized."""

    DEFAULT_CSS = """
    PlaceList { height: 1fr; }
    """
    BINDINGS = [
        Binding("down,j", "cursor_down", "Down", show=False),
        Binding("up,k", "cursor_up", "Up", show=False),
        Binding("home,g", "cursor_top", show=False),
        Binding("end,G", "cursor_bottom", show=False),
        Binding("enter", "pick", "Show on Map"),
    ]
    cursor = reactive(0)

    class Picked(Message):
        def __init__(self, poi_id: str) -> None:
            self.poi_id = poi_id
            super().__init__()

    def __init__(self, row_height: int = ROW_HEIGHT, overscan: int = OVERSCAN, **kwargs):
        super().__init__(**kwargs)
        self.rows = VirtualList(row_height, 0, overscan, on_pick=self._post_pick)
        self.selected_id: Optional[str] = None
        self._window: Optional[Tuple[int, int]] = None

    def _post_pick(self, poi_id: str) -> None: self.post_message(self.Picked(poi_id))

    def set_places(self, pois: Sequence[PointOfInterest]) -> None:
        self.rows.set_items(pois)
        self._window = None
        self.virtual_size = Size(self.size.width, self.rows.virtual_height)
        self.cursor = min(self.cursor, max(0, len(pois) - 1))
        self.refresh()

    def set_selected(self, poi_id: Optional[str]) -> None:
        if poi_id != self.selected_id:
            self.selected_id = poi_id
            self.refresh()

    def on_resize(self, event: events.Resize) -> None:
        self.virtual_size = Size(event.size.width, self.rows.virtual_height)

    def _sync_window(self) -> None:
        window = (self.scroll_offset.y, self.scrollable_content_region.height)
        if window != self._window:
            self._window = window
            self.rows.resize(window[1])
            self.rows.scroll_to(window[0])
            self.rows.rows()

    def render_line(self, y: int) -> Strip:
        self._sync_window()
        width = self.scrollable_content_region.width
        content_y = self.scroll_offset.y + y
        row = self.rows.row_at(content_y)
        if row is None:
            return Strip.blank(width, self.rich_style)
        return self._render_row_line(row, content_y - row.top, width)

    def _render_row_line(self, row: Row, line: int, width: int) -> Strip:
        poi = row.poi
        base = self.rich_style
        if poi.id == self.selected_id: base += Style(bgcolor="#1f3a5f")
        if row.index == self.cursor and self.has_focus: base += Style(reverse=True)
        if line == 0:
            segments = [Segment(f" {poi.name}", base + Style(bold=True, color=tag_color(poi.tags.get("cuisine"))))]
        elif line == 1:
            segments = [Segment(f"   Cuisine: {poi.tags.get('cuisine') or UNKNOWN}", base + Style(dim=True))]
        else:
            segments = [Segment("", base)]
        return Strip(segments).adjust_cell_length(width, base)

    # cursor / picking
    def _move(self, index: int) -> None:
        if not len(self.rows): return
        self.cursor = max(0, min(index, len(self.rows) - 1))
        self._sync_window()
        self.rows.scroll_into_view(self.cursor)
        self.scroll_to(y=self.rows.scroll_offset, animate=False)

    def action_cursor_down(self) -> None: self._move(self.cursor + 1)
    def action_cursor_up(self) -> None: self._move(self.cursor - 1)
    def action_cursor_top(self) -> None: self._move(0)
    def action_cursor_bottom(self) -> None: self._move(len(self.rows) - 1)

    def action_pick(self) -> None:
        self.rows.activate(self.cursor)

    def on_click(self, event: events.Click) -> None:
        index = self.rows.index_at(self.scroll_offset.y + event.y)
        if index is None: return
        self.cursor = index
        self.rows.activate(index)

# ---------------- Map surface ----------------
CELL_PX_W = 8       # a terminal cell is roughly 8x16 map pixels
TILE_PX = 256
REFERENCE_GLYPH, MARKER_GLYPH, OPEN_GLYPH = "★", "●", "◉"

class MapView(Widget):
    """Planar terminal map: a reference marker, one marker per place, and one open popup.

    Camera moves are `set_view` (jump) or `fly_to` (animated). Markers mount and
    unmount through a MarkerLayer whose hooks feed the MarkerRegistry.
    """

    DEFAULT_CSS = """
    MapView { height: 1fr; width: 1fr; border: round $primary; }
    """
    center_lat = reactive(0.0)
    center_lon = reactive(0.0)
    zoom = reactive(15.0)

    class Ready(Message):
        pass

    def __init__(self, registry: MarkerRegistry, reference: Coordinate, reference_label: str,
                 tile_url: str, attribution: str, **kwargs):
        super().__init__(**kwargs)
        self.marker_layer = MarkerLayer(registry.marker_mounted, registry.marker_unmounted, self.refresh)
        self.reference = reference
        self.reference_label = reference_label
        self.tile_url = tile_url
        self.attribution = attribution

    def on_mount(self) -> None:
        self.border_subtitle = self.attribution
        self.call_after_refresh(self.post_message, self.Ready())

    def watch_zoom(self, zoom: float) -> None:
        self.border_title = f"{self.reference_label} · z{zoom:.0f}"

    # camera
    def set_view(self, center: Coordinate, zoom: float) -> None:
        self.center_lat, self.center_lon, self.zoom = center.lat, center.lon, float(zoom)

    def fly_to(self, center: Coordinate, zoom: float, duration: float) -> None:
        for attr, value in (("center_lat", center.lat), ("center_lon", center.lon), ("zoom", float(zoom))):
            self.animate(attr, value, duration=duration, easing="in_out_cubic")

    # markers
    def show_places(self, pois: Sequence[PointOfInterest]) -> None:
        self.marker_layer.sync(pois)

    @property
    def center(self) -> Coordinate: return Coordinate(self.center_lat, self.center_lon)

    def osm_url(self, at: Optional[Coordinate] = None) -> str:
        c = at or self.center
        return f"https://www.openstreetmap.org/?mlat={c.lat:.6f}&mlon={c.lon:.6f}#map={self.zoom:.0f}/{c.lat:.6f}/{c.lon:.6f}"

    # drawing
    def _scale(self) -> Tuple[float, float]:
        deg_x = 360.0 / (TILE_PX * 2 ** self.zoom) * CELL_PX_W
        return deg_x, deg_x * 2

    def to_cell(self, c: Coordinate, width: int, height: int) -> Tuple[int, int]:
        deg_x, deg_y = self._scale()
        col = round((c.lon - self.center_lon) / deg_x + width / 2)
        row = round((self.center_lat - c.lat) / deg_y + height / 2)
        return col, row

    def _popup_lines(self) -> List[str]:
        marker = self.marker_layer.markers.get(self.marker_layer.popup_id) if self.marker_layer.popup_id else None
        if marker is None: return []
        poi = marker.poi
        lines = [poi.name, f"Cuisine: {poi.tags.get('cuisine') or UNKNOWN}"]
        if poi.website: lines.append(f"Website: {poi.website}")
        if poi.phone: lines.append(f"Phone: {poi.phone}")
        if poi.address: lines.append(f"Address: {poi.address}")
        return lines

    def render(self) -> Text:
        width, height = self.size.width, self.size.height
        if width <= 0 or height <= 0: return Text()
        grid: List[List[Tuple[str, str]]] = [[(" ", "")] * width for _ in range(height)]

        def put(c: Coordinate, glyph: str, style: str) -> None:
            col, row = self.to_cell(c, width, height)
            if 0 <= col < width and 0 <= row < height: grid[row][col] = (glyph, style)

        for marker in self.marker_layer.markers.values():
            if marker.popup_open: continue
            put(marker.poi.coordinate, MARKER_GLYPH, tag_color(marker.poi.tags.get("cuisine")))
        put(self.reference, REFERENCE_GLYPH, "bold red")
        for marker in self.marker_layer.markers.values():
            if marker.popup_open: put(marker.poi.coordinate, OPEN_GLYPH, "bold yellow")

        popup = self._popup_lines()[: max(0, height - 1)]
        for i, line in enumerate(popup):
            row = height - len(popup) + i
            text = f" {line} "[:width]
            grid[row][: len(text)] = [(ch, "bold on grey23" if i == 0 else "on grey23") for ch in text]

        out = Text(no_wrap=True, overflow="crop")
        for r, cells in enumerate(grid):
            for ch, style in cells: out.append(ch, style or None)
            if r < height - 1: out.append("\n")
        return out
