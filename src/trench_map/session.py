"""Process-wide operator session for the HTTP service.

One session, one writer at a time: FastAPI runs sync endpoints on a thread
pool, so every request goes through ``locked_session()``.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import HTTPException

from trench_map.backends.viewport import ViewportBackend
from trench_map.config import Settings, settings
from trench_map.core.errors import (
    InvalidInput,
    NotFound,
    PreconditionNotMet,
    SourceUnavailable,
    TrenchMapError,
)
from trench_map.core.models import GeoPoint
from trench_map.core.router import InteractionRouter
from trench_map.gps.base import GpsSource
from trench_map.gps.http import HTTPGpsSource
from trench_map.gps.push import PushGpsSource

log = logging.getLogger(__name__)

_router: Optional[InteractionRouter] = None
_gps_source: Optional[GpsSource] = None
_lock = threading.Lock()


def build_session(cfg: Settings = settings) -> tuple[InteractionRouter, GpsSource]:
    backend = ViewportBackend(
        center=GeoPoint(lat=cfg.map_center_lat, lng=cfg.map_center_lng),
        zoom=cfg.map_zoom,
        width=cfg.viewport_width,
        height=cfg.viewport_height,
    )
    router = InteractionRouter.from_settings(backend, cfg)

    source: GpsSource
    if cfg.gps_poll_url:
        source = HTTPGpsSource(cfg.gps_poll_url, timeout_s=cfg.gps_timeout_s)
        log.info("GPS: polling %s", cfg.gps_poll_url)
    else:
        source = PushGpsSource()
    router.attach_gps(source)
    return router, source


def get_session() -> InteractionRouter:
    """Lazy singleton."""
    global _router, _gps_source
    if _router is None:
        _router, _gps_source = build_session()
    return _router


def get_gps_source() -> GpsSource:
    get_session()
    if _gps_source is None:
        raise RuntimeError("Session was built without a GPS source")
    return _gps_source


def reset_session() -> None:
    global _router, _gps_source
    with _lock:
        if _router is not None:
            _router.detach_gps()
        _router = None
        _gps_source = None


@contextmanager
def locked_session() -> Iterator[InteractionRouter]:
    with _lock:
        yield get_session()


def http_error(exc: TrenchMapError) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidInput):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, PreconditionNotMet):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, SourceUnavailable):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
