"""Poll a JSON position endpoint (phone GPS bridge, gpsd web proxy, ...)."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError
from requests.exceptions import ConnectionError, ReadTimeout

from trench_map.core.models import GpsFix
from trench_map.gps.base import FanOutSource

log = logging.getLogger(__name__)


@dataclass
class HTTPClient:
    user_agent: str
    timeout_s: float = 5
    tries: int = 2
    backoff_s: float = 0.5

    def __post_init__(self) -> None:
        self.s = requests.Session()
        self.s.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})

    def get_json(self, url: str, timeout_s: Optional[float] = None) -> Dict[str, Any]:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        last_err: Optional[Exception] = None
        for attempt in range(self.tries):
            try:
                r = self.s.get(url, timeout=timeout)
                r.raise_for_status()
                return r.json()
            except (ReadTimeout, ConnectionError) as e:
                last_err = e
                time.sleep(self.backoff_s * (2**attempt))
        raise last_err if last_err else RuntimeError("HTTP get_json failed")


def parse_fix(payload: Dict[str, Any]) -> GpsFix:
    """
    Accepts ``{lat, lng, accuracy}``-style payloads, including the common
    ``lon``/``longitude``/``latitude`` spellings and a nested ``coords`` object
    (browser Geolocation API shape).
    """
    src = payload.get("coords", payload)
    lat = src.get("lat", src.get("latitude"))
    lng = src.get("lng", src.get("lon", src.get("longitude")))
    acc = src.get("accuracyMeters", src.get("accuracy", src.get("accuracy_m")))
    return GpsFix(lat=lat, lng=lng, accuracy_m=acc)


class HTTPGpsSource(FanOutSource):
    """Each ``poll()`` fetches one fix and fans it out to subscribers."""

    def __init__(self, url: str, client: Optional[HTTPClient] = None, timeout_s: float = 5):
        super().__init__()
        self.url = url
        self.client = client or HTTPClient(user_agent="trench-map (field annotation)", timeout_s=timeout_s)

    def poll(self) -> Optional[GpsFix]:
        try:
            payload = self.client.get_json(self.url)
            fix = parse_fix(payload)
        except (requests.RequestException, ValueError, ValidationError, AttributeError) as e:
            self._emit_error(f"{type(e).__name__}: {e}")
            return None
        self._emit_fix(fix)
        return fix
