from __future__ import annotations

from trench_map.core.models import GpsFix
from trench_map.gps.base import FanOutSource


class PushGpsSource(FanOutSource):
    """
    Fixes pushed in from outside, e.g. a browser's geolocation watch posting
    to the API. Late or out-of-order fixes are delivered as they arrive.
    """

    def push(self, fix: GpsFix) -> None:
        self._emit_fix(fix)

    def fail(self, message: str) -> None:
        self._emit_error(message)
