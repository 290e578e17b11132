"""View rotation: visual <-> model screen mapping and the rotate gesture.

The render surface is rotated by a display-level transform, not by
re-projecting geography. A pointer position therefore has to be rotated back
by ``-rotation_degrees`` before the backend can turn it into a coordinate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from math import atan2, degrees
from typing import Callable, List, Optional

from trench_map.contracts.screen_contract import ScreenPoint
from trench_map.core.geomath import rotate_point
from trench_map.core.models import ViewState

log = logging.getLogger(__name__)

RotationListener = Callable[[float], None]


def normalize_degrees(value: float) -> float:
    """Map any angle into [0, 360)."""
    out = value % 360.0
    # -1e-15 % 360.0 rounds up to 360.0
    if out >= 360.0:
        out = 0.0
    return out


def _pointer_angle(pointer: ScreenPoint, center: ScreenPoint) -> float:
    return atan2(pointer.y - center.y, pointer.x - center.x)


@dataclass(frozen=True)
class RotationGesture:
    center: ScreenPoint
    start_angle: float  # radians
    start_rotation: float  # degrees


class ViewTransform:
    """Owns the rotation angle of the render surface."""

    def __init__(self, state: Optional[ViewState] = None):
        self.state = state if state is not None else ViewState()
        self._listeners: List[RotationListener] = []
        self._gesture: Optional[RotationGesture] = None

    @property
    def rotation_degrees(self) -> float:
        return self.state.rotation_degrees

    @property
    def is_rotating(self) -> bool:
        return self.state.is_rotating

    def subscribe(self, listener: RotationListener) -> None:
        self._listeners.append(listener)

    def set_rotation(self, value: float) -> float:
        self.state.rotation_degrees = normalize_degrees(value)
        for listener in self._listeners:
            listener(self.state.rotation_degrees)
        return self.state.rotation_degrees

    # ---- mapping ----------------------------------------------------------

    def to_model_point(
        self, visual: ScreenPoint, center: ScreenPoint, rotation: Optional[float] = None
    ) -> ScreenPoint:
        """Undo the visual rotation: where the backend has this pixel."""
        theta = self.state.rotation_degrees if rotation is None else rotation
        return rotate_point(visual, center, -theta)

    def to_visual_point(
        self, model: ScreenPoint, center: ScreenPoint, rotation: Optional[float] = None
    ) -> ScreenPoint:
        """Apply the visual rotation: where the user sees this pixel."""
        theta = self.state.rotation_degrees if rotation is None else rotation
        return rotate_point(model, center, theta)

    # ---- gesture ----------------------------------------------------------

    def begin_gesture(self, pointer: ScreenPoint, center: ScreenPoint) -> None:
        self._gesture = RotationGesture(
            center=center,
            start_angle=_pointer_angle(pointer, center),
            start_rotation=self.state.rotation_degrees,
        )
        self.state.is_rotating = True
        log.debug("Rotation gesture started at %.1f deg", self.state.rotation_degrees)

    def update_gesture(self, pointer: ScreenPoint) -> Optional[float]:
        g = self._gesture
        if g is None:
            return None
        current = _pointer_angle(pointer, g.center)
        return self.set_rotation(g.start_rotation + degrees(current - g.start_angle))

    def end_gesture(self) -> None:
        if self._gesture is not None:
            log.debug("Rotation gesture ended at %.1f deg", self.state.rotation_degrees)
        self._gesture = None
        self.state.is_rotating = False
