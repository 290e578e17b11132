"""Pure geometry helpers: geodesic distance and screen-space primitives."""
from __future__ import annotations

from math import atan2, cos, hypot, radians, sin, sqrt
from typing import Protocol

from trench_map.contracts.screen_contract import ScreenPoint


EARTH_RADIUS_M = 6_371_000.0


class _LatLng(Protocol):
    lat: float
    lng: float


# ---------------------------------------------------------------------------
# Geographic
# ---------------------------------------------------------------------------

def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres between two WGS-84 points."""
    lat1r, lng1r, lat2r, lng2r = map(radians, [lat1, lng1, lat2, lng2])
    dlat = lat2r - lat1r
    dlng = lng2r - lng1r
    a = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlng / 2) ** 2
    return EARTH_RADIUS_M * 2 * atan2(sqrt(a), sqrt(1 - a))


def distance(a: _LatLng, b: _LatLng) -> float:
    """Haversine distance in metres between two points with ``lat``/``lng``."""
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def midpoint(a: _LatLng, b: _LatLng) -> tuple[float, float]:
    """Plain average of the two coordinates; good enough for trench lengths."""
    return (a.lat + b.lat) / 2, (a.lng + b.lng) / 2


# ---------------------------------------------------------------------------
# Screen space
# ---------------------------------------------------------------------------

def point_to_segment_distance(p: ScreenPoint, seg_start: ScreenPoint, seg_end: ScreenPoint) -> float:
    """Distance from ``p`` to the closest point of the segment, in pixels."""
    dx = seg_end.x - seg_start.x
    dy = seg_end.y - seg_start.y
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return hypot(p.x - seg_start.x, p.y - seg_start.y)

    t = ((p.x - seg_start.x) * dx + (p.y - seg_start.y) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    return hypot(p.x - (seg_start.x + t * dx), p.y - (seg_start.y + t * dy))


def rotate_point(p: ScreenPoint, center: ScreenPoint, degrees: float) -> ScreenPoint:
    """
    Rotate ``p`` about ``center``.

    Screen y grows downward, so positive degrees turn clockwise on screen,
    the same sense as a CSS ``rotate()`` transform.
    """
    if degrees == 0:
        return p
    theta = radians(degrees)
    c, s = cos(theta), sin(theta)
    dx = p.x - center.x
    dy = p.y - center.y
    return ScreenPoint(center.x + dx * c - dy * s, center.y + dx * s + dy * c)


def screen_distance(a: ScreenPoint, b: ScreenPoint) -> float:
    return hypot(a.x - b.x, a.y - b.y)
