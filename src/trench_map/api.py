"""FastAPI backend for the trench-map annotation engine.

A browser front-end renders ``/scene`` over its tile layer and forwards raw
pointer events and geolocation fixes; all geometry lives here.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trench_map.config import settings
from trench_map.routers import drawing, gps, lines, view
from trench_map.session import locked_session

log = logging.getLogger(__name__)

app = FastAPI(title="Trench Map", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(view.router)
app.include_router(lines.router)
app.include_router(gps.router)
app.include_router(drawing.router)


@app.get("/health")
def health():
    with locked_session() as router:
        return {
            "status": "ok",
            "lines": len(router.store),
            "gps": router.session.gps_status.value,
        }


@app.get("/config")
def client_config():
    """What the front-end needs to build its map before the first scene."""
    return {
        "center": {"lat": settings.map_center_lat, "lng": settings.map_center_lng},
        "zoom": settings.map_zoom,
        "size": [settings.viewport_width, settings.viewport_height],
        "tile_urls": settings.tile_urls,
        "base_layer": settings.default_base_layer,
        "hit_tolerance_px": settings.hit_tolerance_px,
    }
