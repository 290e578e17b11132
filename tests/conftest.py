"""Shared fixtures: a headless viewport zoomed in on a small test site."""

import pytest

from trench_map.backends.viewport import ViewportBackend
from trench_map.contracts.screen_contract import ScreenPoint
from trench_map.core.lines import LineStore
from trench_map.core.models import GeoPoint
from trench_map.core.router import InteractionRouter

# Site between the two corners used by the draw scenario
SITE = GeoPoint(lat=24.0005, lng=39.0005)


@pytest.fixture
def backend():
    return ViewportBackend(center=SITE, zoom=18, width=800, height=600)


@pytest.fixture
def store(backend):
    return LineStore(backend)


@pytest.fixture
def router(backend):
    return InteractionRouter(backend, hit_tolerance_px=10.0, handle_radius_px=10.0)


def visual_of(router: InteractionRouter, point: GeoPoint) -> ScreenPoint:
    """Where the user sees ``point`` on the (possibly rotated) surface."""
    return router.view.to_visual_point(router.backend.project(point), router.backend.view_center())


def geo_at(backend: ViewportBackend, x: float, y: float) -> GeoPoint:
    """Coordinate under model-space pixel (x, y)."""
    return backend.unproject(ScreenPoint(x, y))
