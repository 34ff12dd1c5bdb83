"""Camera transitions toward the map surface."""

from __future__ import annotations
import logging
from typing import Optional, Protocol

from .models import CameraState, Coordinate

log = logging.getLogger(__name__)

FLY_DURATION_S = 1.5


class MapSurface(Protocol):
    def set_view(self, center: Coordinate, zoom: float) -> None: ...
    def fly_to(self, center: Coordinate, zoom: float, duration: float) -> None: ...


class MapViewController:
    """Drives a MapSurface.

    Requests made before the surface is ready are collapsed to the latest one and
    applied when `mark_ready` arrives. A request whose center and zoom match the
    last applied state is dropped, so unrelated redraws never restart an animation.
    """

    def __init__(self, surface: MapSurface, duration: float = FLY_DURATION_S):
        self.surface = surface
        self.duration = duration
        self.ready = False
        self.pending: Optional[CameraState] = None
        self.applied: Optional[CameraState] = None
        self.transitions = 0

    def request(self, camera: CameraState) -> bool:
        """Returns True when a transition was issued to the surface."""
        if not self.ready:
            self.pending = camera
            return False
        return self._apply(camera)

    def mark_ready(self) -> None:
        if self.ready: return
        self.ready = True
        pending, self.pending = self.pending, None
        if pending is not None:
            self._apply(pending)

    def _apply(self, camera: CameraState) -> bool:
        if camera.same_view(self.applied):
            return False
        if camera.animated:
            self.surface.fly_to(camera.center, camera.zoom, self.duration)
        else:
            self.surface.set_view(camera.center, camera.zoom)
        self.applied = camera
        self.transitions += 1
        log.debug("camera -> %s z%s (animated=%s)", camera.center, camera.zoom, camera.animated)
        return True
