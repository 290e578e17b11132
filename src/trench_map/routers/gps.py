"""GPS fixes in, GPS capture actions out."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from trench_map.core.errors import TrenchMapError
from trench_map.core.models import GpsFix
from trench_map.gps.http import HTTPGpsSource
from trench_map.gps.push import PushGpsSource
from trench_map.session import get_gps_source, http_error, locked_session

router = APIRouter(tags=["gps"])


class GpsErrorIn(BaseModel):
    message: str = "Position unavailable"


@router.post("/gps/fix")
def push_fix(fix: GpsFix) -> Dict[str, Any]:
    with locked_session() as s:
        source = get_gps_source()
        if not isinstance(source, PushGpsSource):
            raise HTTPException(status_code=409, detail="GPS is polled by the server")
        source.push(fix)
        return s.snapshot()["gps"]


@router.post("/gps/error")
def push_error(body: GpsErrorIn) -> Dict[str, Any]:
    with locked_session() as s:
        source = get_gps_source()
        if not isinstance(source, PushGpsSource):
            raise HTTPException(status_code=409, detail="GPS is polled by the server")
        source.fail(body.message)
        return s.snapshot()["gps"]


@router.post("/gps/poll")
def poll_fix() -> Dict[str, Any]:
    with locked_session() as s:
        source = get_gps_source()
        if not isinstance(source, HTTPGpsSource):
            raise HTTPException(status_code=409, detail="No GPS poll URL configured")
        source.poll()
        return s.snapshot()["gps"]


@router.post("/capture/start")
def capture_start() -> Dict[str, Any]:
    with locked_session() as s:
        try:
            pending = s.capture_start()
        except TrenchMapError as e:
            raise http_error(e)
        return {"pending": pending.point.model_dump()}


@router.post("/capture/end")
def capture_end() -> Dict[str, Any]:
    with locked_session() as s:
        try:
            line = s.capture_end()
        except TrenchMapError as e:
            raise http_error(e)
        return {"line": line.to_record().model_dump(mode="json", by_alias=True)}
