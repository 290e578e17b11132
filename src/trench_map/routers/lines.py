"""Line listing, attribute edits and deletion."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from trench_map.core.errors import TrenchMapError
from trench_map.core.models import ExcavationType, LineRecord, RoadType
from trench_map.session import http_error, locked_session

router = APIRouter(prefix="/lines", tags=["lines"])


class LineUpdate(BaseModel):
    model_config = {"populate_by_name": True}

    depth: Optional[str] = None
    width: Optional[str] = None
    excavation_type: Optional[ExcavationType] = Field(default=None, alias="excavationType")
    road_type: Optional[RoadType] = Field(default=None, alias="roadType")


@router.get("", response_model=List[LineRecord])
def list_lines():
    with locked_session() as s:
        return [line.to_record() for line in s.store]


@router.get("/{line_id}", response_model=LineRecord)
def get_line(line_id: str):
    with locked_session() as s:
        try:
            return s.store.get(line_id).to_record()
        except TrenchMapError as e:
            raise http_error(e)


@router.patch("/{line_id}", response_model=LineRecord)
def update_line(line_id: str, body: LineUpdate):
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    with locked_session() as s:
        try:
            return s.update_attributes(line_id, **changes).to_record()
        except TrenchMapError as e:
            raise http_error(e)


@router.delete("/{line_id}", status_code=204)
def delete_line(line_id: str):
    with locked_session() as s:
        if not s.delete_line(line_id):
            raise HTTPException(status_code=404, detail=f"Line not found: {line_id}")
    return None
