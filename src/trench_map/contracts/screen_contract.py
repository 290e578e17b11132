# path: trench-map/src/trench_map/contracts/screen_contract.py

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScreenPoint:
    x: float
    y: float  # grows downward


@dataclass(frozen=True)
class LineHandles:
    """Backend handles owned 1:1 by a Line."""
    polyline: str
    start_marker: str
    end_marker: str
    label: str

    def all(self) -> tuple[str, str, str, str]:
        return (self.polyline, self.start_marker, self.end_marker, self.label)


@dataclass(frozen=True)
class LineStyle:
    color: str
    weight: int
    opacity: float = 0.8


@dataclass(frozen=True)
class MarkerStyle:
    radius: int
    fill_color: str
    color: str
    weight: int = 2
    fill_opacity: float = 0.8
    css_class: Optional[str] = None


DEFAULT_LINE = LineStyle(color="#3b82f6", weight=3)
SELECTED_LINE = LineStyle(color="#f59e0b", weight=5, opacity=1.0)

START_MARKER = MarkerStyle(radius=6, fill_color="#3b82f6", color="#1e40af")
END_MARKER = MarkerStyle(radius=8, fill_color="#ef4444", color="#991b1b")
PENDING_MARKER = START_MARKER
GPS_MARKER = MarkerStyle(radius=10, fill_color="#22c55e", color="#15803d", css_class="gps-marker")
