"""Value types shared by the query, selection and view layers."""

from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

UNNAMED = "Unnamed Place"
UNKNOWN = "Unknown"

# ---------------- Geometry ----------------
@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

    def __str__(self) -> str: return f"{self.lat:.5f},{self.lon:.5f}"

# ---------------- POI ----------------
def build_full_address(tags: Mapping[str, str]) -> Optional[str]:
    """Prefer an explicit address; else compose addr:* parts; never fall back to 'name'."""
    for k in ("address", "addr:full"):
        if tags.get(k):
            return tags[k]
    parts = []
    hn, st = tags.get("addr:housenumber"), tags.get("addr:street")
    if st and hn: parts.append(f"{hn} {st}")
    elif st or hn: parts.append(st or hn)
    city = tags.get("addr:city") or tags.get("addr:town") or tags.get("addr:village")
    tail = ", ".join(p for p in (city, tags.get("addr:state")) if p)
    if tail: parts.append(tail)
    if tags.get("addr:postcode"): parts.append(tags["addr:postcode"])
    return ", ".join(parts) or None

@dataclass(frozen=True)
class PointOfInterest:
    id: str
    coordinate: Coordinate
    tags: Mapping[str, str] = field(default_factory=dict, hash=False)
    category_tag: str = "amenity"

    def __post_init__(self):
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @property
    def name(self) -> str:
        return self.tags.get("name") or UNNAMED

    @property
    def category(self) -> str:
        return self.tags.get("cuisine") or self.tags.get(self.category_tag) or UNKNOWN

    @property
    def phone(self) -> Optional[str]: return self.tags.get("phone")

    @property
    def website(self) -> Optional[str]: return self.tags.get("website")

    @property
    def address(self) -> Optional[str]: return build_full_address(self.tags)

    @classmethod
    def from_element(cls, o: Dict[str, Any], category_tag: str = "amenity") -> Optional["PointOfInterest"]:
        """Build a POI from an Overpass element; None when it carries no position."""
        if "lat" in o and "lon" in o: lat, lon = float(o["lat"]), float(o["lon"])
        elif "center" in o: lat, lon = float(o["center"]["lat"]), float(o["center"]["lon"])
        else: return None
        tags = o.get("tags")
        if not isinstance(tags, dict): tags = {}
        tags = {str(k): str(v) for k, v in tags.items()}
        return cls(f"{o.get('type', 'node')}/{o['id']}", Coordinate(lat, lon), tags, category_tag)

# ---------------- Query / cache ----------------
@dataclass(frozen=True)
class QueryKey:
    coordinate: Coordinate
    category: str
    radius_m: int
    tag: str = "amenity"

    def __str__(self) -> str:
        return f"{self.tag}={self.category}@{self.coordinate}r{self.radius_m}"

class ErrorKind(str, Enum):
    QUERY_FAILURE = "query_failure"
    MALFORMED_RESPONSE = "malformed_response"

class QueryFailure(Exception):
    """The geospatial service could not answer a query."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.QUERY_FAILURE):
        super().__init__(message)
        self.kind = kind

class CacheStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"

@dataclass(frozen=True)
class CacheEntry:
    key: QueryKey
    status: CacheStatus
    pois: Tuple[PointOfInterest, ...] = ()
    error: Optional[QueryFailure] = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def is_ready(self) -> bool: return self.status is CacheStatus.READY

# ---------------- Selection / camera ----------------
class Unselected:
    _instance: Optional["Unselected"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str: return "Unselected"

    def __bool__(self) -> bool: return False

UNSELECTED = Unselected()

@dataclass(frozen=True)
class Selected:
    poi_id: str

Selection = Union[Unselected, Selected]

@dataclass(frozen=True)
class CameraState:
    center: Coordinate
    zoom: float
    animated: bool = False

    def same_view(self, other: Optional["CameraState"]) -> bool:
        return other is not None and self.center == other.center and self.zoom == other.zoom
