"""Textual app wiring the browser core to the list and map widgets, plus the CLI entrypoint."""

from __future__ import annotations
import argparse, logging, os, webbrowser
from typing import Optional

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import ContentSwitcher, Footer, Header, Input, Label, LoadingIndicator, Static

from .browser import Browser, ViewStatus
from .cache import QueryCache
from .config import LOG_DIR, BrowserConfig
from .logs import configure_logging
from .markers import MarkerRegistry
from .models import QueryKey
from .overpass import OverpassService, make_session
from .widgets import MapView, PlaceList, StatusBar

log = logging.getLogger(__name__)

# ---------------- UI ----------------
class PlacesMapApp(App):
    CSS = """
    Screen { layout: vertical; }
    #inputs { height: auto; padding: 0 1; }
    #inputs Input { width: 1fr; }
    #views { height: 1fr; }
    #body { layout: horizontal; height: 1fr; }
    #sidebar { width: 36%; padding: 0 1; background: $boost; }
    #title { padding: 1 0 0 0; text-style: bold; }
    #body.-stacked { layout: vertical; }
    #body.-stacked #sidebar { width: 100%; height: 45%; }
    #error { height: 1fr; content-align: center middle; color: $error; }
    #status { padding: 0 2; color: $text 50%; }
    """
    BINDINGS = [
        Binding("/", "focus_filter", "Filter"),
        Binding("l", "focus_list", "List"),
        Binding("escape", "clear_selection", "Clear"),
        Binding("o", "open_map", "Open Map"),
        Binding("w", "open_website", "Website"),
        Binding("r", "retry", "Retry"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, config: BrowserConfig, service: Optional[OverpassService] = None,
                 cache: Optional[QueryCache] = None):
        super().__init__()
        self.config = config
        self.service = service or OverpassService(
            config.endpoint, config.timeout_s, make_session(config.http_retries, config.user_agent))
        self.cache = cache or QueryCache(self.service, config.cache_max_entries, config.cache_max_age_s)
        self.registry = MarkerRegistry()
        self.map_view = MapView(self.registry, config.reference, config.reference_label,
                                config.tile_url, config.attribution, id="map")
        self.place_list = PlaceList(config.row_height, config.overscan, id="places")
        self.browser = Browser(config, self.cache, self.map_view, self.registry)
        self.title = f"Places near {config.reference_label}"

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="inputs"):
            yield Input(value=self.config.category, placeholder="Category (amenity)", id="category")
            yield Input(value=str(self.config.radius_m), placeholder="Radius m", id="radius")
        with ContentSwitcher(initial="loading", id="views"):
            yield LoadingIndicator(id="loading")
            yield Static(id="error")
            with Container(id="body"):
                with Vertical(id="sidebar"):
                    yield Label(f"Places near {self.config.reference_label}", id="title")
                    yield Input(placeholder="Search name or cuisine", id="filter")
                    yield self.place_list
                yield self.map_view
        self.status = StatusBar(id="status"); yield self.status
        yield Footer()

    def on_mount(self) -> None:
        self.browser.subscribe(self.render_state)
        self._apply_layout(self.size.width)
        self.load_places()

    def on_resize(self, event: events.Resize) -> None:
        self._apply_layout(event.size.width)

    def _apply_layout(self, width: int) -> None:
        for body in self.query("#body"):
            body.set_class(width < self.config.layout_breakpoint, "-stacked")

    # ---------------- state -> widgets ----------------
    def render_state(self, browser: Browser) -> None:
        views = self.query_one("#views", ContentSwitcher)
        if browser.status is ViewStatus.LOADING:
            views.current = "loading"
            self.status.set(f"Searching {browser.key}…")
            return
        if browser.status is ViewStatus.ERROR:
            views.current = "error"
            self.query_one("#error", Static).update(f"Error fetching data.\n{browser.error}\n\nPress r to retry.")
            self.status.set("Query failed.")
            return
        views.current = "body"
        if self.place_list.rows.items is not browser.visible:
            self.place_list.set_places(browser.visible)
        self.place_list.set_selected(browser.selected_id)
        picked = browser.selected
        msg = f"Showing {len(browser.visible)} of {len(browser.pois)} place(s) within {browser.key.radius_m} m."
        if picked is not None: msg += f"  Selected: {picked.name}. Press 'o' to open, Esc to clear."
        self.status.set(msg)

    @work(exclusive=True, group="query")
    async def load_places(self, key: Optional[QueryKey] = None) -> None:
        await self.browser.load(key)

    # ---------------- events ----------------
    def on_map_view_ready(self, event: MapView.Ready) -> None:
        self.browser.surface_ready()

    def on_place_list_picked(self, event: PlaceList.Picked) -> None:
        self.browser.pick(event.poi_id)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "filter":
            self.browser.set_filter(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "filter":
            self.action_focus_list(); return
        category = self.query_one("#category", Input).value.strip() or self.config.category
        try:
            radius = int(float((self.query_one("#radius", Input).value or "0").strip()))
        except ValueError:
            self.status.set("Radius must be a number of meters."); return
        if radius <= 0:
            self.status.set("Radius must be positive."); return
        self.load_places(self.config.query_key(category, radius))

    # ---------------- actions ----------------
    def action_focus_filter(self) -> None: self.query_one("#filter", Input).focus()

    def action_focus_list(self) -> None: self.place_list.focus()

    def action_clear_selection(self) -> None:
        self.browser.clear_selection()

    def action_retry(self) -> None:
        if self.browser.status is ViewStatus.ERROR:
            self.load_places()

    def action_open_map(self) -> None:
        picked = self.browser.selected
        at = picked.coordinate if picked else self.config.reference
        webbrowser.open(self.map_view.osm_url(at))
        self.status.set(f"Opened {picked.name if picked else self.config.reference_label} in browser.")

    def action_open_website(self) -> None:
        picked = self.browser.selected
        if picked is None or not picked.website:
            self.status.set("No website for the selected place."); return
        webbrowser.open(picked.website)

# ---------------- Entrypoint ----------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="places-map", add_help=True,
                                     description="Browse OpenStreetMap places around a fixed location.")
    parser.add_argument("--config", help="JSON file with BrowserConfig fields")
    parser.add_argument("--lat", type=float, dest="reference_lat", help="Reference latitude")
    parser.add_argument("--lon", type=float, dest="reference_lon", help="Reference longitude")
    parser.add_argument("--label", dest="reference_label", help="Reference marker label")
    parser.add_argument("--category", help="Tag value to search, e.g. restaurant, cafe")
    parser.add_argument("--tag", help="Tag key to search (default: amenity)")
    parser.add_argument("--radius", type=int, dest="radius_m", help="Search radius in meters")
    parser.add_argument("--endpoint", help="Overpass interpreter URL")
    parser.add_argument("--timeout", type=float, dest="timeout_s", help="Query timeout in seconds")
    parser.add_argument("--retries", type=int, dest="http_retries", help="Transport-level HTTP retries")
    parser.add_argument("--log-file", default=str(LOG_DIR / "places_map.log"), help="Log file path")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    parser.add_argument("--log-format", choices=("json", "text"), default="json")
    parser.add_argument("--dev", action="store_true", help="Enable Textual devtools")
    parser.add_argument("--no-color", action="store_true", help="Force a dumb TERM (debug)")
    return parser

def load_config(args: argparse.Namespace) -> BrowserConfig:
    overrides = {k: getattr(args, k) for k in (
        "reference_lat", "reference_lon", "reference_label", "category", "tag",
        "radius_m", "endpoint", "timeout_s", "http_retries")}
    return BrowserConfig.from_file(args.config).with_overrides(**overrides)

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args)
    except (OSError, ValueError, TypeError) as e:
        parser.error(str(e))

    configure_logging(args.log_level, args.log_file, args.log_format)
    log.info("starting with %s", config.query_key())

    os.environ.setdefault("TERM", "xterm-256color")
    if args.no_color:
        os.environ["TERM"] = "dumb"
    if args.dev:
        os.environ["TEXTUAL_DEVTOOLS"] = "1"

    PlacesMapApp(config).run()
