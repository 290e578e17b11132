from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, ValidationInfo, computed_field, field_validator

from trench_map.contracts.screen_contract import LineHandles
from trench_map.core.geomath import distance as _distance


class Mode(str, Enum):
    DRAW = "draw"
    SELECT = "select"
    ROTATE = "rotate"


class BaseLayer(str, Enum):
    STREET = "street"
    SATELLITE = "satellite"


class ExcavationType(str, Enum):
    NORMAL = "العادي"
    EMERGENCY = "الطارئ"
    MULTIPLE = "المتعدد"
    BUILDING_CONNECTION = "توصيلة المباني"
    NEW_PLANS = "مخططات جديدة"


class RoadType(str, Enum):
    SOIL = "Soil"
    ASPHALT = "Asphalt"
    TILES_BLOCKS = "tiles/blocks"


class Endpoint(str, Enum):
    START = "start"
    END = "end"


class GpsStatus(str, Enum):
    INACTIVE = "inactive"
    ACTIVATING = "activating"
    ACTIVE = "active"
    ERROR = "error"
    UNSUPPORTED = "unsupported"


class PendingOrigin(str, Enum):
    DRAW = "draw"
    CAPTURE = "capture"


class GeoPoint(BaseModel):
    model_config = {"frozen": True}

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


def _numeric_text(value: Any) -> str:
    """Depth/width arrive from number inputs; keep them as text, but numeric."""
    if value is None:
        return ""
    if isinstance(value, bool):
        raise ValueError("expected a number or numeric string")
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).strip()
    if text:
        float(text)  # raises ValueError for non-numeric text
    return text


class LineAttributes(BaseModel):
    """Per-line editable fields with their default values."""
    model_config = {"populate_by_name": True, "validate_assignment": True}

    depth: str = ""
    width: str = ""
    excavation_type: ExcavationType = Field(default=ExcavationType.NORMAL, alias="excavationType")
    road_type: RoadType = Field(default=RoadType.SOIL, alias="roadType")

    @field_validator("depth", "width", mode="before")
    @classmethod
    def _check_numeric(cls, v: Any) -> str:
        return _numeric_text(v)


class AttributeUpdate(BaseModel):
    """Partial update of line attributes; unset fields are left alone."""
    model_config = {"populate_by_name": True, "extra": "forbid"}

    depth: Optional[str] = None
    width: Optional[str] = None
    excavation_type: Optional[ExcavationType] = Field(default=None, alias="excavationType")
    road_type: Optional[RoadType] = Field(default=None, alias="roadType")

    @field_validator("depth", "width", mode="before")
    @classmethod
    def _check_numeric(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return _numeric_text(v)


class Line(LineAttributes):
    id: str
    start: GeoPoint
    end: GeoPoint

    # Backend primitives owned by this line (set by LineStore)
    _handles: Optional[LineHandles] = PrivateAttr(default=None)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def distance(self) -> float:
        return _distance(self.start, self.end)

    @property
    def handles(self) -> Optional[LineHandles]:
        return self._handles

    def point(self, which: Endpoint) -> GeoPoint:
        return self.start if which == Endpoint.START else self.end

    def to_record(self) -> "LineRecord":
        return LineRecord(
            id=self.id,
            start=self.start,
            end=self.end,
            distance=self.distance,
            depth=self.depth,
            width=self.width,
            excavation_type=self.excavation_type,
            road_type=self.road_type,
        )


class LineRecord(LineAttributes):
    """A line as it appears in an export file.

    ``distance`` is written for readers of the file but never trusted on load.
    """
    model_config = {"populate_by_name": True, "extra": "ignore"}

    id: Optional[str] = None
    start: GeoPoint
    end: GeoPoint
    distance: Optional[float] = None

    @field_validator("excavation_type", "road_type", mode="before")
    @classmethod
    def _blank_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        # Older files wrote null/"" for untouched selects
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("distance", mode="before")
    @classmethod
    def _loose_distance(cls, v: Any) -> Optional[float]:
        # Recomputed on load, so an unreadable value is dropped rather than rejected
        if isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None


class ExportRecord(BaseModel):
    model_config = {"populate_by_name": True, "extra": "forbid"}

    work_order_no: str = Field(default="", alias="workOrderNo")
    work_type: str = Field(default="", alias="workType")
    lines: List[LineRecord]


class GpsFix(BaseModel):
    model_config = {"frozen": True, "populate_by_name": True}

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    accuracy_m: Optional[float] = Field(default=None, ge=0.0, alias="accuracyMeters")

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


@dataclass
class ViewState:
    rotation_degrees: float = 0.0
    is_rotating: bool = False
    mode: Mode = Mode.DRAW
    base_layer: BaseLayer = BaseLayer.STREET


@dataclass
class PendingStart:
    point: GeoPoint
    origin: PendingOrigin
    marker: Optional[str] = None


@dataclass
class SessionState:
    """Everything one operator session mutates.

    ViewTransform writes ``view.rotation_degrees``/``view.is_rotating``; the
    router writes every other field.
    """
    view: ViewState
    pending: Optional[PendingStart] = None
    gps_fix: Optional[GpsFix] = None
    gps_status: GpsStatus = GpsStatus.INACTIVE
    gps_error: Optional[str] = None
    work_order_no: str = ""
    work_type: str = ""
