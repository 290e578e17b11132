"""Centralized settings for trench-map."""
from __future__ import annotations

from typing import Dict

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "TRENCH_MAP_"}

    # Initial view (Madinah)
    map_center_lat: float = 24.4539
    map_center_lng: float = 39.5773
    map_zoom: float = 13
    viewport_width: int = 1024
    viewport_height: int = 768

    # Picking, in screen pixels (fixed; does not scale with zoom)
    hit_tolerance_px: float = 10.0
    handle_radius_px: float = 10.0

    default_base_layer: str = "street"
    tile_urls: Dict[str, str] = {
        "street": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "satellite": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
    }

    # GPS: empty URL means fixes are pushed by the client instead of polled
    gps_poll_url: str = ""
    gps_timeout_s: float = 5.0

    export_dir: str = "exports"


settings = Settings()
