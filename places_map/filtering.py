"""Text filter for the list panel."""

from __future__ import annotations
from typing import Iterable, Tuple

from .models import PointOfInterest


def matches(poi: PointOfInterest, needle: str) -> bool:
    fields = (poi.tags.get("name"), poi.tags.get("cuisine"), poi.tags.get(poi.category_tag))
    return any(needle in value.casefold() for value in fields if value)


def filter_pois(pois: Iterable[PointOfInterest], query: str) -> Tuple[PointOfInterest, ...]:
    """Keep POIs whose name or category contains `query` (case-folded), in input order.

    A blank query keeps everything.
    """
    pois = tuple(pois)
    needle = (query or "").strip().casefold()
    if not needle:
        return pois
    return tuple(p for p in pois if matches(p, needle))
