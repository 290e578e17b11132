"""Headless Web-Mercator viewport that keeps the drawn scene in memory.

Serves as the mapping backend for the API (the browser renders ``scene()``)
and for tests. Overlay items are reported at their visual (rotated) screen
position and are never rotated themselves.
"""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from trench_map.backends.base import MapBackend
from trench_map.contracts.screen_contract import LineStyle, MarkerStyle, ScreenPoint
from trench_map.core.geomath import rotate_point
from trench_map.core.models import GeoPoint

log = logging.getLogger(__name__)

TILE_SIZE = 256
_MAX_LAT = 85.05112878  # Web Mercator limit


def _world_px(lat: float, lng: float, zoom: float) -> tuple[float, float]:
    scale = TILE_SIZE * 2.0 ** zoom
    lat = max(-_MAX_LAT, min(_MAX_LAT, lat))
    x = (lng + 180.0) / 360.0 * scale
    y = (1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0 * scale
    return x, y


def _world_latlng(x: float, y: float, zoom: float) -> tuple[float, float]:
    scale = TILE_SIZE * 2.0 ** zoom
    lng = x / scale * 360.0 - 180.0
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / scale))))
    lng = (lng + 180.0) % 360.0 - 180.0
    return lat, lng


@dataclass
class Primitive:
    handle: str
    kind: str  # "line" | "marker" | "label"
    points: List[GeoPoint]
    line_style: Optional[LineStyle] = None
    marker_style: Optional[MarkerStyle] = None
    text: Optional[str] = None

    @property
    def layer(self) -> str:
        return "vector" if self.kind == "line" else "overlay"


@dataclass
class ViewportBackend(MapBackend):
    center: GeoPoint = field(default_factory=lambda: GeoPoint(lat=24.4539, lng=39.5773))
    zoom: float = 13
    width: int = 1024
    height: int = 768

    def __post_init__(self) -> None:
        self.primitives: Dict[str, Primitive] = {}
        self.rotation_deg = 0.0
        self.panning = True
        self.base_layer = "street"
        self._ids = itertools.count(1)

    # ---- projection --------------------------------------------------------

    def view_center(self) -> ScreenPoint:
        return ScreenPoint(self.width / 2.0, self.height / 2.0)

    def project(self, point: GeoPoint) -> ScreenPoint:
        cx, cy = _world_px(self.center.lat, self.center.lng, self.zoom)
        px, py = _world_px(point.lat, point.lng, self.zoom)
        mid = self.view_center()
        return ScreenPoint(px - cx + mid.x, py - cy + mid.y)

    def unproject(self, point: ScreenPoint) -> GeoPoint:
        cx, cy = _world_px(self.center.lat, self.center.lng, self.zoom)
        mid = self.view_center()
        lat, lng = _world_latlng(point.x - mid.x + cx, point.y - mid.y + cy, self.zoom)
        return GeoPoint(lat=lat, lng=lng)

    def visual_position(self, point: GeoPoint) -> ScreenPoint:
        """Where the user sees ``point`` once the vector layer is rotated."""
        return rotate_point(self.project(point), self.view_center(), self.rotation_deg)

    def pan_to(self, center: GeoPoint, zoom: Optional[float] = None) -> None:
        self.center = center
        if zoom is not None:
            self.zoom = zoom

    # ---- primitives --------------------------------------------------------

    def _add(self, prim: Primitive) -> str:
        self.primitives[prim.handle] = prim
        return prim.handle

    def _get(self, handle: str, kind: str) -> Primitive:
        prim = self.primitives[handle]
        if prim.kind != kind:
            raise KeyError(f"{handle} is a {prim.kind}, not a {kind}")
        return prim

    def _next_handle(self, kind: str) -> str:
        return f"{kind}-{next(self._ids)}"

    def add_line(self, start: GeoPoint, end: GeoPoint, style: LineStyle) -> str:
        return self._add(Primitive(self._next_handle("line"), "line", [start, end], line_style=style))

    def update_line(self, handle: str, start: GeoPoint, end: GeoPoint) -> None:
        self._get(handle, "line").points = [start, end]

    def style_line(self, handle: str, style: LineStyle) -> None:
        self._get(handle, "line").line_style = style

    def add_marker(self, point: GeoPoint, style: MarkerStyle) -> str:
        return self._add(Primitive(self._next_handle("marker"), "marker", [point], marker_style=style))

    def move_marker(self, handle: str, point: GeoPoint) -> None:
        self._get(handle, "marker").points = [point]

    def add_label(self, point: GeoPoint, text: str) -> str:
        return self._add(Primitive(self._next_handle("label"), "label", [point], text=text))

    def update_label(self, handle: str, point: GeoPoint, text: str) -> None:
        prim = self._get(handle, "label")
        prim.points = [point]
        prim.text = text

    def remove(self, handle: str) -> None:
        # KeyError on a second removal is intentional: handles die exactly once
        del self.primitives[handle]

    # ---- view --------------------------------------------------------------

    def set_rotation(self, degrees: float) -> None:
        self.rotation_deg = degrees

    def set_panning(self, enabled: bool) -> None:
        self.panning = enabled

    def set_base_layer(self, name: str) -> None:
        self.base_layer = name

    # ---- scene -------------------------------------------------------------

    def scene(self) -> Dict[str, Any]:
        """Render list for a client: vector items in model pixels (the client
        rotates that layer), overlay items at their final visual pixels."""
        vector: List[Dict[str, Any]] = []
        overlay: List[Dict[str, Any]] = []
        for prim in self.primitives.values():
            item: Dict[str, Any] = {
                "handle": prim.handle,
                "kind": prim.kind,
                "geo": [p.model_dump() for p in prim.points],
            }
            if prim.kind == "line":
                item["screen"] = [[s.x, s.y] for s in map(self.project, prim.points)]
                item["style"] = vars(prim.line_style) if prim.line_style else None
                vector.append(item)
            else:
                pos = self.visual_position(prim.points[0])
                item["screen"] = [pos.x, pos.y]
                if prim.kind == "marker":
                    item["style"] = vars(prim.marker_style) if prim.marker_style else None
                else:
                    item["text"] = prim.text
                overlay.append(item)

        return {
            "center": self.center.model_dump(),
            "zoom": self.zoom,
            "size": [self.width, self.height],
            "rotation_deg": self.rotation_deg,
            "base_layer": self.base_layer,
            "panning": self.panning,
            "vector": vector,
            "overlay": overlay,
        }
