"""Overpass-backed query service: builds the declarative query, posts it, parses POIs."""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import ErrorKind, PointOfInterest, QueryFailure, QueryKey

log = logging.getLogger(__name__)

# ---------------- Endpoints / UA ----------------
OVERPASS_URL = "https://overpass-api.de/api/interpreter"
USER_AGENT = "places-map/1.0 (personal use) https://openstreetmap.org"
DEFAULT_TIMEOUT_S = 30

# ---------------- HTTP session ----------------
def make_session(retries: int = 0, user_agent: str = USER_AGENT) -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    retry = Retry(total=retries, connect=retries, read=retries, backoff_factor=0.2,
                  status_forcelist=(429, 500, 502, 503, 504),
                  allowed_methods=frozenset(["GET", "POST"]))
    adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4, max_retries=retry)
    s.mount("https://", adapter); s.mount("http://", adapter)
    return s

# ---------------- Query language ----------------
def escape_tag_value(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"').strip()

def build_query(key: QueryKey, timeout_s: int = DEFAULT_TIMEOUT_S) -> str:
    c = key.coordinate
    sel = f'["{escape_tag_value(key.tag)}"="{escape_tag_value(key.category)}"]'
    return (f"[out:json][timeout:{int(timeout_s)}];"
            f"nwr{sel}(around:{int(key.radius_m)},{c.lat},{c.lon});"
            "out center;")

def parse_elements(payload: Any, category_tag: str = "amenity") -> Tuple[PointOfInterest, ...]:
    """Turn an Overpass JSON body into POIs, keeping response order and dropping repeated ids."""
    if not isinstance(payload, dict) or not isinstance(payload.get("elements"), list):
        raise QueryFailure("response has no 'elements' array", ErrorKind.MALFORMED_RESPONSE)
    remark = payload.get("remark")
    if isinstance(remark, str) and "runtime error" in remark.lower():
        raise QueryFailure(remark.strip())
    seen = set()
    out: List[PointOfInterest] = []
    for o in payload["elements"]:
        if not isinstance(o, dict) or "id" not in o: continue
        try:
            poi = PointOfInterest.from_element(o, category_tag)
        except (TypeError, ValueError, KeyError):
            log.debug("skipping unparsable element %r", o.get("id"))
            continue
        if poi is None or poi.id in seen: continue
        seen.add(poi.id)
        out.append(poi)
    return tuple(out)

# ---------------- Service ----------------
class OverpassService:
    """Blocking query service; callers run `fetch` off the event loop."""

    def __init__(self, endpoint: str = OVERPASS_URL, timeout_s: float = DEFAULT_TIMEOUT_S,
                 session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.timeout_s = timeout_s
        self.session = session or make_session()
        self.calls = 0

    def fetch(self, key: QueryKey) -> Tuple[PointOfInterest, ...]:
        ql = build_query(key, int(self.timeout_s))
        self.calls += 1
        log.debug("overpass POST %s (%s)", self.endpoint, key)
        try:
            resp = self.session.post(self.endpoint, data={"data": ql}, timeout=self.timeout_s)
            resp.raise_for_status()
        except requests.RequestException as exc:
            log.warning("overpass request failed for %s: %s", key, exc)
            raise QueryFailure(f"Overpass request failed: {exc}") from exc
        try:
            payload: Dict[str, Any] = resp.json()
        except ValueError as exc:
            raise QueryFailure("Overpass returned a non-JSON body", ErrorKind.MALFORMED_RESPONSE) from exc
        pois = parse_elements(payload, key.tag)
        log.info("overpass %s -> %d place(s)", key, len(pois))
        return pois
