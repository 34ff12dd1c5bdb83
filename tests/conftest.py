"""
Shared fakes for the browser core tests.

The query service and the map surface are external collaborators; these fakes
record what the core asks of them.
"""
import threading

import pytest

from places_map.config import BrowserConfig
from places_map.markers import MarkerLayer, MarkerRegistry
from places_map.models import Coordinate, PointOfInterest

LONDON = Coordinate(51.5074, -0.1278)


def make_poi(poi_id, lat=51.5075, lon=-0.1279, **tags):
    return PointOfInterest(f"node/{poi_id}", Coordinate(lat, lon), tags)


class FakeService:
    """Returns canned results per key; a gate makes a key block until released."""

    def __init__(self, results=None, default=()):
        self.results = dict(results or {})
        self.default = default
        self.gates = {}
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, key):
        with self._lock:
            self.calls.append(key)
        gate = self.gates.get(key)
        if gate is not None:
            assert gate.wait(timeout=5), "gate never released"
        result = self.results.get(key, self.default)
        if isinstance(result, Exception):
            raise result
        return tuple(result)


class FakeSurface:
    """Map surface double: records camera commands and mounts markers through a MarkerLayer."""

    def __init__(self, registry=None):
        self.registry = registry if registry is not None else MarkerRegistry()
        self.layer = MarkerLayer(self.registry.marker_mounted, self.registry.marker_unmounted)
        self.commands = []

    def set_view(self, center, zoom):
        self.commands.append(("set_view", center, zoom))

    def fly_to(self, center, zoom, duration):
        self.commands.append(("fly_to", center, zoom, duration))

    def show_places(self, pois):
        self.layer.sync(pois)


class CountingRegistry(MarkerRegistry):
    def __init__(self):
        super().__init__()
        self.popup_requests = []

    def open_popup(self, poi_id):
        self.popup_requests.append(poi_id)
        return super().open_popup(poi_id)


@pytest.fixture
def config():
    return BrowserConfig(reference_lat=LONDON.lat, reference_lon=LONDON.lon, reference_label="HQ")


@pytest.fixture
def three_places():
    return (
        make_poi(1, 51.5080, -0.1270, name="Luigi's", cuisine="italian"),
        make_poi(2, 51.5060, -0.1290, name="Slice Shop", cuisine="pizza"),
        make_poi(3, 51.5090, -0.1300, name="Noodle Bar", cuisine="asian"),
    )


@pytest.fixture
def registry():
    return CountingRegistry()


@pytest.fixture
def surface(registry):
    return FakeSurface(registry)
