"""Authoritative collection of annotated lines."""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from pydantic import ValidationError

from trench_map.backends.base import MapBackend
from trench_map.contracts.screen_contract import (
    DEFAULT_LINE,
    END_MARKER,
    START_MARKER,
    LineHandles,
)
from trench_map.core.errors import InvalidInput, NotFound
from trench_map.core.geomath import midpoint, point_to_segment_distance
from trench_map.core.models import (
    AttributeUpdate,
    Endpoint,
    GeoPoint,
    Line,
    LineAttributes,
    LineRecord,
)

log = logging.getLogger(__name__)

_ID_RE = re.compile(r"^A(\d+)$")

DeleteListener = Callable[[str], None]


def format_distance(meters: float) -> str:
    return f"{meters:.2f} m"


def _label_anchor(line: Line) -> GeoPoint:
    lat, lng = midpoint(line.start, line.end)
    return GeoPoint(lat=lat, lng=lng)


class LineStore:
    """
    Lines in creation order, each with its backend primitives.

    Ids are ``A1``, ``A2``, ... and the counter never goes backwards, not even
    after deletes or an import.
    """

    def __init__(self, backend: MapBackend):
        self.backend = backend
        self._lines: Dict[str, Line] = {}
        self._next_n = 1
        self._delete_listeners: List[DeleteListener] = []

    # ---- access ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(list(self._lines.values()))

    def __contains__(self, line_id: object) -> bool:
        return line_id in self._lines

    def get(self, line_id: str) -> Line:
        try:
            return self._lines[line_id]
        except KeyError:
            raise NotFound(line_id) from None

    @property
    def next_id(self) -> str:
        return f"A{self._next_n}"

    def on_delete(self, listener: DeleteListener) -> None:
        """Run ``listener(line_id)`` before a line's primitives are removed."""
        self._delete_listeners.append(listener)

    # ---- handles -----------------------------------------------------------

    def _draw(self, line: Line) -> None:
        b = self.backend
        line._handles = LineHandles(
            polyline=b.add_line(line.start, line.end, DEFAULT_LINE),
            start_marker=b.add_marker(line.start, START_MARKER),
            end_marker=b.add_marker(line.end, END_MARKER),
            label=b.add_label(_label_anchor(line), format_distance(line.distance)),
        )

    def _redraw(self, line: Line) -> None:
        h = line.handles
        if h is None:
            return
        b = self.backend
        b.update_line(h.polyline, line.start, line.end)
        b.move_marker(h.start_marker, line.start)
        b.move_marker(h.end_marker, line.end)
        b.update_label(h.label, _label_anchor(line), format_distance(line.distance))

    def _erase(self, line: Line) -> None:
        h = line.handles
        if h is None:
            return
        for handle in h.all():
            self.backend.remove(handle)
        line._handles = None

    # ---- mutation ----------------------------------------------------------

    def _allocate_id(self) -> str:
        line_id = self.next_id
        self._next_n += 1
        return line_id

    def _add(self, line_id: str, start: GeoPoint, end: GeoPoint, attrs: Optional[LineAttributes] = None) -> Line:
        fields: Dict[str, Any] = attrs.model_dump() if attrs is not None else {}
        line = Line(id=line_id, start=start, end=end, **fields)
        self._draw(line)
        self._lines[line.id] = line
        return line

    def create(self, start: GeoPoint, end: GeoPoint) -> Line:
        line = self._add(self._allocate_id(), start, end)
        log.info("Created line %s (%.2f m)", line.id, line.distance)
        return line

    def update_endpoint(self, line_id: str, which: Endpoint, point: GeoPoint) -> Line:
        line = self.get(line_id)
        if Endpoint(which) == Endpoint.START:
            line.start = point
        else:
            line.end = point
        self._redraw(line)
        return line

    def update_attributes(self, line_id: str, **changes: Any) -> Line:
        line = self.get(line_id)
        try:
            update = AttributeUpdate(**changes)
        except ValidationError as e:
            raise InvalidInput(str(e)) from e
        for name, value in update.model_dump(exclude_none=True).items():
            setattr(line, name, value)
        return line

    def delete(self, line_id: str) -> Line:
        line = self.get(line_id)
        for listener in self._delete_listeners:
            listener(line_id)
        self._erase(line)
        del self._lines[line_id]
        log.info("Deleted line %s", line_id)
        return line

    def clear(self) -> None:
        for line_id in list(self._lines):
            self.delete(line_id)

    def replace_all(self, records: Iterable[LineRecord]) -> List[Line]:
        """
        Drop every line and rebuild from ``records`` in order.

        Distances are re-derived from the endpoints. Ids in the records are
        kept; records without one get a fresh id. Callers validate first, so
        a bad record never leaves a half-imported set.
        """
        records = list(records)
        seen: set[str] = set()
        for rec in records:
            if rec.id is None:
                continue
            if not _ID_RE.match(rec.id):
                raise InvalidInput(f"Bad line id: {rec.id!r}")
            if rec.id in seen:
                raise InvalidInput(f"Duplicate line id: {rec.id}")
            seen.add(rec.id)

        self.clear()

        # Keep the counter past every imported id so later lines never collide
        top = max((int(_ID_RE.match(i).group(1)) for i in seen), default=0)
        self._next_n = max(self._next_n, top + 1)

        out: List[Line] = []
        for rec in records:
            attrs = LineAttributes(
                depth=rec.depth,
                width=rec.width,
                excavation_type=rec.excavation_type,
                road_type=rec.road_type,
            )
            line_id = rec.id if rec.id is not None else self._allocate_id()
            out.append(self._add(line_id, rec.start, rec.end, attrs))

        log.info("Replaced line set: %d lines, next id %s", len(out), self.next_id)
        return out

    # ---- hit-test ----------------------------------------------------------

    def find_nearest(self, point: GeoPoint, threshold_px: float) -> Optional[Line]:
        """
        First line (creation order) passing within ``threshold_px`` of ``point``.

        This is first-hit-wins picking, not a closest-match search.
        """
        p = self.backend.project(point)
        for line in self._lines.values():
            a = self.backend.project(line.start)
            b = self.backend.project(line.end)
            if point_to_segment_distance(p, a, b) < threshold_px:
                return line
        return None
