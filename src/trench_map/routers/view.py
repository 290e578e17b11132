"""Mode, rotation, base layer and raw pointer events."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from trench_map.backends.viewport import ViewportBackend
from trench_map.contracts.screen_contract import ScreenPoint
from trench_map.core.errors import TrenchMapError
from trench_map.core.models import BaseLayer, Mode
from trench_map.session import http_error, locked_session

router = APIRouter(tags=["view"])


class ModeIn(BaseModel):
    mode: Mode


class RotationIn(BaseModel):
    degrees: float


class LayerIn(BaseModel):
    layer: BaseLayer


class PointerAction(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"
    CLICK = "click"


class PointerIn(BaseModel):
    x: float = 0.0
    y: float = 0.0
    modifier: bool = False


@router.get("/state")
def get_state() -> Dict[str, Any]:
    with locked_session() as s:
        return s.snapshot()


@router.get("/scene")
def get_scene() -> Dict[str, Any]:
    with locked_session() as s:
        if not isinstance(s.backend, ViewportBackend):
            raise HTTPException(status_code=501, detail="Backend does not keep a scene")
        return s.backend.scene()


@router.post("/mode")
def set_mode(body: ModeIn) -> Dict[str, Any]:
    with locked_session() as s:
        s.set_mode(body.mode)
        return s.snapshot()


@router.post("/rotation")
def set_rotation(body: RotationIn) -> Dict[str, Any]:
    with locked_session() as s:
        s.set_rotation(body.degrees)
        return s.snapshot()


@router.post("/layer")
def switch_layer(body: LayerIn) -> Dict[str, Any]:
    with locked_session() as s:
        s.switch_layer(body.layer)
        return s.snapshot()


@router.post("/pointer/{action}")
def pointer(action: PointerAction, body: PointerIn) -> Dict[str, Any]:
    point = ScreenPoint(body.x, body.y)
    result: Dict[str, Any] = {}
    with locked_session() as s:
        try:
            if action == PointerAction.DOWN:
                result["gesture"] = s.pointer_down(point, modifier=body.modifier)
            elif action == PointerAction.MOVE:
                s.pointer_move(point)
            elif action == PointerAction.UP:
                s.pointer_up()
            elif action == PointerAction.LEAVE:
                s.pointer_leave()
            else:
                line = s.click(point)
                result["line"] = line.to_record().model_dump(mode="json", by_alias=True) if line else None
        except TrenchMapError as e:
            raise http_error(e)
        result["state"] = s.snapshot()
        return result
