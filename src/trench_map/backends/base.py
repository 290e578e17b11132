from __future__ import annotations

from abc import ABC, abstractmethod

from trench_map.contracts.screen_contract import LineStyle, MarkerStyle, ScreenPoint
from trench_map.core.models import GeoPoint


class MapBackend(ABC):
    """
    Rendering/projection capability the engine draws through.

    ``project``/``unproject`` work in model space (the unrotated projection).
    Line primitives belong to the rotated vector layer; markers and labels are
    placed on an overlay that is never rotated, so their glyphs stay upright.
    """

    @abstractmethod
    def project(self, point: GeoPoint) -> ScreenPoint:
        raise NotImplementedError

    @abstractmethod
    def unproject(self, point: ScreenPoint) -> GeoPoint:
        raise NotImplementedError

    @abstractmethod
    def view_center(self) -> ScreenPoint:
        """Pivot of the visual rotation, in screen pixels."""
        raise NotImplementedError

    # ---- primitives --------------------------------------------------------

    @abstractmethod
    def add_line(self, start: GeoPoint, end: GeoPoint, style: LineStyle) -> str:
        raise NotImplementedError

    @abstractmethod
    def update_line(self, handle: str, start: GeoPoint, end: GeoPoint) -> None:
        raise NotImplementedError

    @abstractmethod
    def style_line(self, handle: str, style: LineStyle) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_marker(self, point: GeoPoint, style: MarkerStyle) -> str:
        raise NotImplementedError

    @abstractmethod
    def move_marker(self, handle: str, point: GeoPoint) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_label(self, point: GeoPoint, text: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def update_label(self, handle: str, point: GeoPoint, text: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, handle: str) -> None:
        raise NotImplementedError

    # ---- view --------------------------------------------------------------

    @abstractmethod
    def set_rotation(self, degrees: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_panning(self, enabled: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_base_layer(self, name: str) -> None:
        raise NotImplementedError
