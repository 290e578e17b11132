"""Top-level dispatcher: pointer and GPS events in, line mutations out."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from trench_map.backends.base import MapBackend
from trench_map.contracts.screen_contract import GPS_MARKER, PENDING_MARKER, ScreenPoint
from trench_map.core.errors import InvalidInput, NotFound, PreconditionNotMet, SourceUnavailable
from trench_map.core.lines import LineStore
from trench_map.core.models import (
    BaseLayer,
    ExportRecord,
    GeoPoint,
    GpsFix,
    GpsStatus,
    Line,
    Mode,
    PendingOrigin,
    PendingStart,
    SessionState,
    ViewState,
)
from trench_map.core.selection import SelectionController
from trench_map.core.view import ViewTransform
from trench_map.export import records
from trench_map.gps.base import GpsSource

log = logging.getLogger(__name__)


class InteractionRouter:
    """
    Owns one operator session.

    Pointer positions handed in are *visual* screen points, as the pointer
    reports them on the rotated surface. They are rotated back into model
    space before the backend turns them into coordinates.
    """

    def __init__(
        self,
        backend: MapBackend,
        hit_tolerance_px: float = 10.0,
        handle_radius_px: float = 10.0,
        session: Optional[SessionState] = None,
    ):
        self.backend = backend
        self.hit_tolerance_px = hit_tolerance_px
        self.handle_radius_px = handle_radius_px
        self.session = session or SessionState(view=ViewState())

        self.view = ViewTransform(self.session.view)
        self.store = LineStore(backend)
        self.selection = SelectionController(self.store, backend)

        # Only the vector layer turns; the backend keeps markers/labels upright
        self.view.subscribe(backend.set_rotation)
        backend.set_rotation(self.view.rotation_degrees)
        backend.set_base_layer(self.session.view.base_layer.value)

        self._gps: Optional[GpsSource] = None
        self._gps_token: Optional[int] = None
        self._gps_marker: Optional[str] = None

    @classmethod
    def from_settings(cls, backend: MapBackend, settings) -> "InteractionRouter":
        router = cls(
            backend,
            hit_tolerance_px=settings.hit_tolerance_px,
            handle_radius_px=settings.handle_radius_px,
        )
        router.switch_layer(settings.default_base_layer)
        return router

    # ---- state -------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self.session.view.mode

    @property
    def pending(self) -> Optional[PendingStart]:
        return self.session.pending

    @property
    def gesture_active(self) -> bool:
        return self.view.is_rotating or self.selection.is_dragging

    def set_mode(self, mode: Any) -> Mode:
        try:
            new_mode = Mode(mode)
        except ValueError:
            raise InvalidInput(f"Unknown mode: {mode!r}") from None
        self._end_gestures()
        self._clear_pending()
        self.selection.clear()
        self.session.view.mode = new_mode
        log.info("Mode -> %s", new_mode.value)
        return new_mode

    def set_rotation(self, degrees: float) -> float:
        return self.view.set_rotation(degrees)

    def switch_layer(self, name: Any) -> BaseLayer:
        try:
            layer = BaseLayer(name)
        except ValueError:
            raise InvalidInput(f"Unknown base layer: {name!r}") from None
        self.session.view.base_layer = layer
        self.backend.set_base_layer(layer.value)
        return layer

    def set_work_order(self, work_order_no: str, work_type: str) -> None:
        self.session.work_order_no = work_order_no
        self.session.work_type = work_type

    # ---- pending start -----------------------------------------------------

    def _open_pending(self, point: GeoPoint, origin: PendingOrigin) -> PendingStart:
        self._clear_pending()
        marker = self.backend.add_marker(point, PENDING_MARKER)
        self.session.pending = PendingStart(point=point, origin=origin, marker=marker)
        return self.session.pending

    def _clear_pending(self) -> None:
        pending = self.session.pending
        if pending is None:
            return
        if pending.marker is not None:
            self.backend.remove(pending.marker)
        self.session.pending = None

    # ---- pointer -----------------------------------------------------------

    def to_geo(self, visual: ScreenPoint) -> GeoPoint:
        model = self.view.to_model_point(visual, self.backend.view_center())
        return self.backend.unproject(model)

    def click(self, visual: ScreenPoint) -> Optional[Line]:
        """Primary click. Returns the line created or selected, if any."""
        if self.gesture_active:
            return None
        if self.mode == Mode.DRAW:
            return self._draw_click(self.to_geo(visual))
        if self.mode == Mode.SELECT:
            return self._select_click(self.to_geo(visual))
        return None

    def _draw_click(self, point: GeoPoint) -> Optional[Line]:
        pending = self.session.pending
        if pending is None or pending.origin != PendingOrigin.DRAW:
            self._open_pending(point, PendingOrigin.DRAW)
            return None
        line = self.store.create(pending.point, point)
        self._clear_pending()
        return line

    def _select_click(self, point: GeoPoint) -> Optional[Line]:
        line = self.store.find_nearest(point, self.hit_tolerance_px)
        if line is None:
            self.selection.clear()
            return None
        return self.selection.select(line.id)

    def pointer_down(self, visual: ScreenPoint, modifier: bool = False) -> bool:
        """Press. Returns True when it started a rotate or drag gesture."""
        if self.gesture_active:
            return False
        center = self.backend.view_center()
        if self.mode == Mode.ROTATE:
            if not modifier:
                return False
            self.view.begin_gesture(visual, center)
            return True
        if self.mode == Mode.SELECT:
            model = self.view.to_model_point(visual, center)
            which = self.selection.endpoint_at(model, self.handle_radius_px)
            if which is None:
                return False
            self.selection.begin_drag(which)
            return True
        return False

    def pointer_move(self, visual: ScreenPoint) -> None:
        if self.view.is_rotating:
            self.view.update_gesture(visual)
        elif self.selection.is_dragging:
            self.selection.drag_to(self.to_geo(visual))

    def pointer_up(self) -> None:
        self._end_gestures()

    def pointer_leave(self) -> None:
        self._end_gestures()

    def _end_gestures(self) -> None:
        self.view.end_gesture()
        self.selection.end_drag()

    # ---- lines -------------------------------------------------------------

    def delete_line(self, line_id: str) -> bool:
        try:
            self.store.delete(line_id)
        except NotFound:
            log.info("Delete of unknown line %s ignored", line_id)
            return False
        return True

    def delete_selected(self) -> bool:
        if self.selection.line_id is None:
            return False
        return self.delete_line(self.selection.line_id)

    def update_attributes(self, line_id: str, **changes: Any) -> Line:
        return self.store.update_attributes(line_id, **changes)

    # ---- GPS ---------------------------------------------------------------

    def attach_gps(self, source: Optional[GpsSource]) -> GpsStatus:
        self.detach_gps()
        if source is None:
            self.session.gps_status = GpsStatus.UNSUPPORTED
            log.warning("No GPS source available")
            return self.session.gps_status
        self._gps = source
        self.session.gps_status = GpsStatus.ACTIVATING
        self._gps_token = source.subscribe(self._on_fix, self._on_gps_error)
        return self.session.gps_status

    def detach_gps(self) -> None:
        if self._gps is not None and self._gps_token is not None:
            self._gps.unsubscribe(self._gps_token)
        if self._gps_marker is not None:
            self.backend.remove(self._gps_marker)
        self._gps = None
        self._gps_token = None
        self._gps_marker = None
        self.session.gps_fix = None
        self.session.gps_error = None
        self.session.gps_status = GpsStatus.INACTIVE

    def _on_fix(self, fix: GpsFix) -> None:
        # Last write wins; a late fix simply becomes the current one
        self.session.gps_fix = fix
        self.session.gps_status = GpsStatus.ACTIVE
        self.session.gps_error = None
        if self._gps_marker is None:
            self._gps_marker = self.backend.add_marker(fix.point, GPS_MARKER)
        else:
            self.backend.move_marker(self._gps_marker, fix.point)

    def _on_gps_error(self, message: str) -> None:
        self.session.gps_status = GpsStatus.ERROR
        self.session.gps_error = message

    def _require_source(self) -> None:
        status = self.session.gps_status
        if status in (GpsStatus.INACTIVE, GpsStatus.UNSUPPORTED):
            raise SourceUnavailable("GPS is not available on this device")
        if status == GpsStatus.ERROR:
            raise SourceUnavailable(f"GPS error: {self.session.gps_error}")

    def _require_fix(self) -> GpsFix:
        self._require_source()
        fix = self.session.gps_fix
        if fix is None:
            raise PreconditionNotMet("GPS position not available. Please wait for GPS signal.")
        return fix

    def capture_start(self) -> PendingStart:
        fix = self._require_fix()
        return self._open_pending(fix.point, PendingOrigin.CAPTURE)

    def capture_end(self) -> Line:
        self._require_source()
        pending = self.session.pending
        if pending is None or pending.origin != PendingOrigin.CAPTURE:
            raise PreconditionNotMet("No captured start point. Capture the start first.")
        fix = self._require_fix()
        line = self.store.create(pending.point, fix.point)
        self._clear_pending()
        return line

    # ---- export / import ---------------------------------------------------

    def export_record(self) -> ExportRecord:
        return records.build_record(self.store, self.session.work_order_no, self.session.work_type)

    def import_record(self, data: Any) -> List[Line]:
        """
        Replace the drawing with ``data`` (decoded JSON or raw text).

        Everything is validated before anything is touched, so a bad file
        leaves lines and work-order fields exactly as they were.
        """
        if isinstance(data, (str, bytes)):
            data = records.decode(data)
        record = records.parse_export(data)

        self._end_gestures()
        self._clear_pending()
        self.selection.clear()
        lines = self.store.replace_all(record.lines)
        if not records.is_legacy(data):
            self.set_work_order(record.work_order_no, record.work_type)
        log.info("Imported %d lines", len(lines))
        return lines

    # ---- snapshot ----------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        s = self.session
        return {
            "mode": s.view.mode.value,
            "rotation_degrees": s.view.rotation_degrees,
            "is_rotating": s.view.is_rotating,
            "base_layer": s.view.base_layer.value,
            "selection": {
                "state": self.selection.state.value,
                "line_id": self.selection.line_id,
                "endpoint": self.selection.endpoint.value if self.selection.endpoint else None,
            },
            "pending": (
                {"point": s.pending.point.model_dump(), "origin": s.pending.origin.value}
                if s.pending is not None
                else None
            ),
            "gps": {
                "status": s.gps_status.value,
                "fix": s.gps_fix.model_dump(by_alias=True) if s.gps_fix is not None else None,
                "error": s.gps_error,
            },
            "workOrderNo": s.work_order_no,
            "workType": s.work_type,
            "next_id": self.store.next_id,
        }
