"""Startup configuration: defaults, optional JSON file, CLI overrides."""

from __future__ import annotations
import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

from .camera import FLY_DURATION_S
from .cache import DEFAULT_MAX_ENTRIES
from .listview import OVERSCAN, ROW_HEIGHT
from .models import Coordinate, QueryKey
from .overpass import DEFAULT_TIMEOUT_S, OVERPASS_URL, USER_AGENT
from .selection import DEFAULT_ZOOM, DETAIL_ZOOM

TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
ATTRIBUTION = "© OpenStreetMap contributors"
LAYOUT_BREAKPOINT = 100
LOG_DIR = Path("~/.places_map").expanduser()


@dataclass(frozen=True)
class BrowserConfig:
    reference_lat: float = 51.5074
    reference_lon: float = -0.1278
    reference_label: str = "Headquarters"
    category: str = "restaurant"
    tag: str = "amenity"
    radius_m: int = 1000
    endpoint: str = OVERPASS_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    http_retries: int = 0
    user_agent: str = USER_AGENT
    default_zoom: float = DEFAULT_ZOOM
    detail_zoom: float = DETAIL_ZOOM
    fly_duration: float = FLY_DURATION_S
    row_height: int = ROW_HEIGHT
    overscan: int = OVERSCAN
    cache_max_entries: int = DEFAULT_MAX_ENTRIES
    cache_max_age_s: Optional[float] = None
    tile_url: str = TILE_URL
    attribution: str = ATTRIBUTION
    layout_breakpoint: int = LAYOUT_BREAKPOINT

    def __post_init__(self):
        if not -90 <= self.reference_lat <= 90: raise ValueError(f"latitude out of range: {self.reference_lat}")
        if not -180 <= self.reference_lon <= 180: raise ValueError(f"longitude out of range: {self.reference_lon}")
        if self.radius_m <= 0: raise ValueError("radius must be positive")
        if not self.category.strip() or not self.tag.strip(): raise ValueError("category and tag must be non-empty")
        if self.detail_zoom <= self.default_zoom: raise ValueError("detail_zoom must be greater than default_zoom")
        if self.timeout_s <= 0: raise ValueError("timeout must be positive")
        if self.row_height < 1: raise ValueError("row_height must be >= 1")
        if self.cache_max_entries < 1: raise ValueError("cache_max_entries must be >= 1")

    @property
    def reference(self) -> Coordinate: return Coordinate(self.reference_lat, self.reference_lon)

    def query_key(self, category: Optional[str] = None, radius_m: Optional[int] = None) -> QueryKey:
        return QueryKey(self.reference, (category or self.category).strip(),
                        int(radius_m or self.radius_m), self.tag)

    def with_overrides(self, **overrides: Any) -> "BrowserConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_file(cls, path: Optional[str]) -> "BrowserConfig":
        data = load_json(path)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown: raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**data)


def load_json(path: Optional[str]) -> dict:
    if not path: return {}
    p = Path(path).expanduser()
    if not p.exists(): raise FileNotFoundError(path)
    with p.open("r", encoding="utf-8") as f: data = json.load(f)
    if not isinstance(data, dict): raise ValueError(f"{path}: expected a JSON object")
    return data
