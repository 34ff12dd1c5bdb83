"""Marker handles, the id -> handle registry, and the surface-side marker layer."""

from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Protocol

from .models import PointOfInterest

log = logging.getLogger(__name__)


class MarkerHandle(Protocol):
    def open_popup(self) -> None: ...
    def close_popup(self) -> None: ...
    def remove(self) -> None: ...


class PopupResult(str, Enum):
    OK = "ok"
    MISS = "miss"


# ---------------- Registry ----------------
class MarkerRegistry:
    """POI id -> live marker handle, kept in step with the surface's mount/unmount hooks."""

    def __init__(self):
        self._handles: Dict[str, MarkerHandle] = {}

    def __len__(self) -> int: return len(self._handles)

    def __contains__(self, poi_id: str) -> bool: return poi_id in self._handles

    def ids(self) -> FrozenSet[str]: return frozenset(self._handles)

    def get(self, poi_id: str) -> Optional[MarkerHandle]: return self._handles.get(poi_id)

    def register(self, poi_id: str, handle: MarkerHandle) -> None:
        self._handles[poi_id] = handle

    def unregister(self, poi_id: str, handle: Optional[MarkerHandle] = None) -> None:
        # an unmount for a handle that was already replaced leaves the new one alone
        if handle is not None and self._handles.get(poi_id) is not handle:
            return
        self._handles.pop(poi_id, None)

    def open_popup(self, poi_id: str) -> PopupResult:
        handle = self._handles.get(poi_id)
        if handle is None:
            log.debug("no marker mounted for %s yet; popup skipped", poi_id)
            return PopupResult.MISS
        handle.open_popup()
        return PopupResult.OK

    # lifecycle hooks, wired to MarkerLayer
    def marker_mounted(self, poi_id: str, handle: MarkerHandle) -> None: self.register(poi_id, handle)

    def marker_unmounted(self, poi_id: str, handle: MarkerHandle) -> None: self.unregister(poi_id, handle)


# ---------------- Surface side ----------------
MountHook = Callable[[str, MarkerHandle], None]


class Marker:
    """A marker mounted on a MarkerLayer."""

    def __init__(self, layer: "MarkerLayer", poi: PointOfInterest):
        self.layer = layer
        self.poi = poi
        self.mounted = True

    @property
    def popup_open(self) -> bool: return self.mounted and self.layer.popup_id == self.poi.id

    def open_popup(self) -> None:
        if self.mounted:
            self.layer.set_popup(self.poi.id)

    def close_popup(self) -> None:
        if self.popup_open:
            self.layer.set_popup(None)

    def remove(self) -> None:
        self.layer.unmount(self.poi.id)

    def __repr__(self) -> str: return f"Marker({self.poi.id}, mounted={self.mounted})"


class MarkerLayer:
    """Markers currently drawn on the map; fires mount/unmount hooks as they come and go."""

    def __init__(self, on_mount: Optional[MountHook] = None, on_unmount: Optional[MountHook] = None,
                 on_change: Optional[Callable[[], None]] = None):
        self.on_mount = on_mount
        self.on_unmount = on_unmount
        self.on_change = on_change
        self.markers: Dict[str, Marker] = {}
        self.popup_id: Optional[str] = None

    def __len__(self) -> int: return len(self.markers)

    def ids(self) -> FrozenSet[str]: return frozenset(self.markers)

    def _changed(self) -> None:
        if self.on_change: self.on_change()

    def set_popup(self, poi_id: Optional[str]) -> None:
        if poi_id is not None and poi_id not in self.markers: return
        if poi_id != self.popup_id:
            self.popup_id = poi_id
            self._changed()

    def mount(self, poi: PointOfInterest) -> Marker:
        old = self.markers.get(poi.id)
        marker = Marker(self, poi)
        self.markers[poi.id] = marker
        if self.on_mount: self.on_mount(poi.id, marker)
        if old is not None:
            old.mounted = False
            if self.on_unmount: self.on_unmount(poi.id, old)
        return marker

    def unmount(self, poi_id: str) -> None:
        marker = self.markers.pop(poi_id, None)
        if marker is None: return
        marker.mounted = False
        if self.popup_id == poi_id: self.popup_id = None
        if self.on_unmount: self.on_unmount(poi_id, marker)

    def sync(self, pois: Iterable[PointOfInterest]) -> None:
        """Make the mounted set equal to `pois`: unmount the gone, mount the new or changed."""
        wanted = {p.id: p for p in pois}
        for poi_id in [i for i in self.markers if i not in wanted]:
            self.unmount(poi_id)
        for poi_id, poi in wanted.items():
            current = self.markers.get(poi_id)
            if current is None or current.poi != poi:
                self.mount(poi)
        self._changed()

    def clear(self) -> None:
        self.sync(())
