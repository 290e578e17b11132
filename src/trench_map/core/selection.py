"""Single-line selection and the endpoint drag state machine.

    none --hit--> selected(id) --press on endpoint--> dragging(id, endpoint)
      ^               |                                      |
      +--miss/mode/---+<------------- release ---------------+
         delete
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from trench_map.backends.base import MapBackend
from trench_map.contracts.screen_contract import DEFAULT_LINE, SELECTED_LINE, ScreenPoint
from trench_map.core.errors import NotFound
from trench_map.core.geomath import screen_distance
from trench_map.core.lines import LineStore
from trench_map.core.models import Endpoint, GeoPoint, Line

log = logging.getLogger(__name__)


class SelectionState(str, Enum):
    NONE = "none"
    SELECTED = "selected"
    DRAGGING = "dragging"


class SelectionController:
    def __init__(self, store: LineStore, backend: MapBackend):
        self.store = store
        self.backend = backend
        self.state = SelectionState.NONE
        self.line_id: Optional[str] = None
        self.endpoint: Optional[Endpoint] = None
        store.on_delete(self._line_deleted)

    @property
    def is_dragging(self) -> bool:
        return self.state == SelectionState.DRAGGING

    @property
    def selected(self) -> Optional[Line]:
        if self.line_id is None:
            return None
        try:
            return self.store.get(self.line_id)
        except NotFound:
            return None

    def _style(self, line_id: str, selected: bool) -> None:
        try:
            line = self.store.get(line_id)
        except NotFound:
            return
        if line.handles is not None:
            self.backend.style_line(line.handles.polyline, SELECTED_LINE if selected else DEFAULT_LINE)

    # ---- selection ---------------------------------------------------------

    def select(self, line_id: str) -> Line:
        line = self.store.get(line_id)
        if self.is_dragging:
            self.end_drag()
        if self.line_id is not None and self.line_id != line_id:
            self._style(self.line_id, False)
        self.state = SelectionState.SELECTED
        self.line_id = line_id
        self._style(line_id, True)
        log.debug("Selected %s", line_id)
        return line

    def clear(self) -> None:
        if self.is_dragging:
            self.end_drag()
        if self.line_id is not None:
            self._style(self.line_id, False)
        self.state = SelectionState.NONE
        self.line_id = None
        self.endpoint = None

    def _line_deleted(self, line_id: str) -> None:
        if line_id == self.line_id:
            self.clear()

    # ---- drag --------------------------------------------------------------

    def endpoint_at(self, model_point: ScreenPoint, radius_px: float) -> Optional[Endpoint]:
        """Endpoint handle of the selected line under ``model_point``, if any.

        The end marker is drawn last, so it wins when both overlap."""
        line = self.selected
        if line is None:
            return None
        for which in (Endpoint.END, Endpoint.START):
            if screen_distance(model_point, self.backend.project(line.point(which))) <= radius_px:
                return which
        return None

    def begin_drag(self, endpoint: Endpoint) -> None:
        if self.state != SelectionState.SELECTED or self.line_id is None:
            raise RuntimeError("begin_drag needs a selected line")
        self.state = SelectionState.DRAGGING
        self.endpoint = Endpoint(endpoint)
        self.backend.set_panning(False)
        log.debug("Dragging %s of %s", self.endpoint.value, self.line_id)

    def drag_to(self, point: GeoPoint) -> Optional[Line]:
        if not self.is_dragging or self.line_id is None or self.endpoint is None:
            return None
        return self.store.update_endpoint(self.line_id, self.endpoint, point)

    def end_drag(self) -> None:
        if not self.is_dragging:
            return
        # The point was written on every move; nothing left to commit
        self.state = SelectionState.SELECTED
        self.endpoint = None
        self.backend.set_panning(True)
        line = self.selected
        if line is not None:
            log.info("Moved %s, now %.2f m", line.id, line.distance)
