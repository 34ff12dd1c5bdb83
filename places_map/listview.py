"""Virtualized list model: only rows inside the scroll window (plus overscan) are materialized."""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .models import PointOfInterest

ROW_HEIGHT = 2
OVERSCAN = 3


@dataclass
class Row:
    index: int
    poi: PointOfInterest
    top: int

    @property
    def poi_id(self) -> str: return self.poi.id


class VirtualList:
    """Fixed-height rows over a sequence of POIs.

    `visible_range` is pure arithmetic on the scroll offset; `rows` materializes Row
    objects for that range only and releases the rest, so the number of live rows is
    bounded by the viewport no matter how long the sequence is.
    """

    def __init__(self, row_height: int = ROW_HEIGHT, viewport_height: int = 0, overscan: int = OVERSCAN,
                 on_pick: Optional[Callable[[str], None]] = None):
        if row_height < 1:
            raise ValueError("row_height must be >= 1")
        self.row_height = row_height
        self.viewport_height = max(0, viewport_height)
        self.overscan = max(0, overscan)
        self.on_pick = on_pick
        self.items: Sequence[PointOfInterest] = ()
        self.scroll_offset = 0
        self._rows: Dict[int, Row] = {}
        self.materialized_total = 0

    def __len__(self) -> int: return len(self.items)

    @property
    def virtual_height(self) -> int: return len(self.items) * self.row_height

    @property
    def max_offset(self) -> int: return max(0, self.virtual_height - self.viewport_height)

    @property
    def max_rows(self) -> int:
        return math.ceil(self.viewport_height / self.row_height) + 1 + 2 * self.overscan

    def set_items(self, items: Sequence[PointOfInterest]) -> None:
        self.items = items
        self._rows.clear()
        self.scroll_offset = min(self.scroll_offset, self.max_offset)

    def resize(self, viewport_height: int) -> None:
        self.viewport_height = max(0, viewport_height)
        self.scroll_offset = min(self.scroll_offset, self.max_offset)

    def scroll_to(self, offset: int) -> None:
        self.scroll_offset = max(0, min(int(offset), self.max_offset))

    def visible_range(self) -> Tuple[int, int]:
        """Half-open [start, stop) index range to draw."""
        if not self.items or self.viewport_height == 0:
            return (0, 0)
        first = self.scroll_offset // self.row_height
        last = (self.scroll_offset + self.viewport_height - 1) // self.row_height
        start = max(0, first - self.overscan)
        stop = min(len(self.items), last + 1 + self.overscan)
        return (start, stop)

    def rows(self) -> List[Row]:
        start, stop = self.visible_range()
        for i in [i for i in self._rows if not start <= i < stop]:
            del self._rows[i]
        out = []
        for i in range(start, stop):
            row = self._rows.get(i)
            if row is None:
                row = self._rows[i] = Row(i, self.items[i], i * self.row_height)
                self.materialized_total += 1
            out.append(row)
        return out

    @property
    def live_rows(self) -> int: return len(self._rows)

    def index_at(self, y: int) -> Optional[int]:
        """Index of the row under content offset `y` (viewport y + scroll offset)."""
        if y < 0: return None
        i = y // self.row_height
        return i if i < len(self.items) else None

    def row_at(self, y: int) -> Optional[Row]:
        i = self.index_at(y)
        if i is None: return None
        row = self._rows.get(i)
        return row if row is not None else Row(i, self.items[i], i * self.row_height)

    def scroll_into_view(self, index: int) -> None:
        top = index * self.row_height
        if top < self.scroll_offset:
            self.scroll_to(top)
        elif top + self.row_height > self.scroll_offset + self.viewport_height:
            self.scroll_to(top + self.row_height - self.viewport_height)

    def activate(self, index: int) -> Optional[str]:
        if not 0 <= index < len(self.items): return None
        poi_id = self.items[index].id
        if self.on_pick: self.on_pick(poi_id)
        return poi_id
