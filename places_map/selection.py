"""Selection state machine and the selection -> camera derivation."""

from __future__ import annotations
import logging
from typing import Dict, Iterable, Mapping, Optional

from .camera import MapViewController
from .markers import MarkerRegistry, PopupResult
from .models import UNSELECTED, CameraState, Coordinate, PointOfInterest, Selected, Selection

log = logging.getLogger(__name__)

DEFAULT_ZOOM = 15
DETAIL_ZOOM = 18


def camera_for(selection: Selection, pois: Mapping[str, PointOfInterest], reference: Coordinate,
               default_zoom: float = DEFAULT_ZOOM, detail_zoom: float = DETAIL_ZOOM,
               initial: bool = False) -> CameraState:
    if isinstance(selection, Selected) and selection.poi_id in pois:
        return CameraState(pois[selection.poi_id].coordinate, detail_zoom, True)
    return CameraState(reference, default_zoom, not initial)


class SelectionController:
    """Owns the picked POI; pushes the derived camera and opens popups on each pick."""

    def __init__(self, reference: Coordinate, camera: MapViewController, registry: MarkerRegistry,
                 default_zoom: float = DEFAULT_ZOOM, detail_zoom: float = DETAIL_ZOOM):
        if detail_zoom <= default_zoom:
            raise ValueError("detail zoom must be greater than the default zoom")
        self.reference = reference
        self.camera = camera
        self.registry = registry
        self.default_zoom = default_zoom
        self.detail_zoom = detail_zoom
        self.selection: Selection = UNSELECTED
        self._pois: Dict[str, PointOfInterest] = {}
        self._initial = True
        self._push()

    @property
    def selected_id(self) -> Optional[str]:
        return self.selection.poi_id if isinstance(self.selection, Selected) else None

    @property
    def selected(self) -> Optional[PointOfInterest]:
        return self._pois.get(self.selected_id) if self.selected_id else None

    def current_camera(self) -> CameraState:
        return camera_for(self.selection, self._pois, self.reference,
                          self.default_zoom, self.detail_zoom, self._initial)

    def _push(self) -> None:
        self.camera.request(self.current_camera())

    def pick(self, poi_id: str) -> bool:
        if poi_id not in self._pois:
            log.warning("pick for %s ignored: not in the active set", poi_id)
            return False
        self.selection = Selected(poi_id)
        self._initial = False
        self._push()
        if self.registry.open_popup(poi_id) is PopupResult.MISS:
            log.debug("picked %s before its marker mounted", poi_id)
        return True

    def clear(self) -> None:
        if self.selection is UNSELECTED: return
        handle = self.registry.get(self.selected_id)
        if handle is not None: handle.close_popup()
        self.selection = UNSELECTED
        self._push()

    def replace_pois(self, pois: Iterable[PointOfInterest]) -> None:
        self._pois = {p.id: p for p in pois}
        if self.selected_id is not None and self.selected_id not in self._pois:
            log.debug("selection %s dropped with the old result set", self.selected_id)
            self.selection = UNSELECTED
        self._push()
