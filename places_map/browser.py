"""Controller layer: the single authoritative POI set, filter text, selection and view status."""

from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .cache import QueryCache
from .camera import MapSurface, MapViewController
from .config import BrowserConfig
from .filtering import filter_pois
from .markers import MarkerRegistry
from .models import CacheEntry, PointOfInterest, QueryFailure, QueryKey
from .selection import SelectionController

log = logging.getLogger(__name__)


class PlacesSurface(MapSurface, Protocol):
    def show_places(self, pois: Sequence[PointOfInterest]) -> None: ...


class ViewStatus(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


class Browser:
    """Owns query state and fans it out to the list, the map surface and the selection.

    Every `load` bumps a generation counter; a resolution that comes back after a
    newer `load` started is dropped, so a slow superseded query never overwrites
    the state of a newer one.
    """

    def __init__(self, config: BrowserConfig, cache: QueryCache, surface: PlacesSurface,
                 registry: Optional[MarkerRegistry] = None):
        self.config = config
        self.cache = cache
        self.surface = surface
        self.registry = registry if registry is not None else MarkerRegistry()
        self.camera = MapViewController(surface, config.fly_duration)
        self.selection = SelectionController(config.reference, self.camera, self.registry,
                                             config.default_zoom, config.detail_zoom)
        self.key: QueryKey = config.query_key()
        self.status = ViewStatus.LOADING
        self.error: Optional[QueryFailure] = None
        self.pois: Tuple[PointOfInterest, ...] = ()
        self.filter_text = ""
        self.visible: Tuple[PointOfInterest, ...] = ()
        self.generation = 0
        self._listeners: List[Callable[["Browser"], None]] = []

    # ---------------- listeners ----------------
    def subscribe(self, fn: Callable[["Browser"], None]) -> None:
        self._listeners.append(fn)

    def _notify(self) -> None:
        for fn in list(self._listeners):
            fn(self)

    # ---------------- queries ----------------
    async def load(self, key: Optional[QueryKey] = None) -> bool:
        """Resolve `key` (default: the current one); True if the result was applied."""
        key = key or self.key
        self.generation += 1
        generation = self.generation
        self.key = key
        self.status, self.error = ViewStatus.LOADING, None
        self._notify()
        entry = await self.cache.resolve(key)
        if generation != self.generation:
            log.debug("dropping stale result for %s (generation %d < %d)", key, generation, self.generation)
            return False
        self._apply(entry)
        return True

    async def retry(self) -> bool:
        return await self.load(self.key)

    def _apply(self, entry: CacheEntry) -> None:
        if entry.is_ready:
            self.status, self.error = ViewStatus.READY, None
            self._replace(entry.pois)
            log.info("%d place(s) for %s", len(entry.pois), entry.key)
        else:
            self.status, self.error = ViewStatus.ERROR, entry.error
            self._replace(())
        self._notify()

    def _replace(self, pois: Tuple[PointOfInterest, ...]) -> None:
        self.pois = pois
        self.visible = filter_pois(pois, self.filter_text)
        self.surface.show_places(pois)
        self.selection.replace_pois(pois)

    # ---------------- interaction ----------------
    def set_filter(self, text: str) -> Tuple[PointOfInterest, ...]:
        self.filter_text = text
        self.visible = filter_pois(self.pois, text)
        self._notify()
        return self.visible

    def pick(self, poi_id: str) -> bool:
        picked = self.selection.pick(poi_id)
        if picked: self._notify()
        return picked

    def clear_selection(self) -> None:
        self.selection.clear()
        self._notify()

    def surface_ready(self) -> None:
        self.camera.mark_ready()

    @property
    def selected(self) -> Optional[PointOfInterest]: return self.selection.selected

    @property
    def selected_id(self) -> Optional[str]: return self.selection.selected_id
