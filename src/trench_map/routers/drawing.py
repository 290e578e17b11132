"""Save/load the whole drawing and the tabular exports."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Response
from pydantic import BaseModel, Field

from trench_map.core.errors import TrenchMapError
from trench_map.export import records, tabular
from trench_map.session import http_error, locked_session

router = APIRouter(tags=["drawing"])


class WorkOrderIn(BaseModel):
    model_config = {"populate_by_name": True}

    work_order_no: str = Field(default="", alias="workOrderNo")
    work_type: str = Field(default="", alias="workType")


def _attachment(name: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{name}"'}


@router.put("/work-order")
def set_work_order(body: WorkOrderIn) -> Dict[str, Any]:
    with locked_session() as s:
        s.set_work_order(body.work_order_no, body.work_type)
        return {"workOrderNo": s.session.work_order_no, "workType": s.session.work_type}


@router.get("/drawing")
def save_drawing() -> Response:
    with locked_session() as s:
        text = records.dumps(s.export_record())
    return Response(
        content=text,
        media_type="application/json",
        headers=_attachment(records.default_filename("json")),
    )


@router.post("/drawing")
def load_drawing(data: Any = Body(...)) -> Dict[str, Any]:
    with locked_session() as s:
        try:
            lines = s.import_record(data)
        except TrenchMapError as e:
            raise http_error(e)
        return {"loaded": len(lines), "next_id": s.store.next_id}


@router.get("/drawing.csv")
def export_csv() -> Response:
    with locked_session() as s:
        text = tabular.to_csv(s.export_record())
    return Response(
        content=text.encode("utf-8-sig"),
        media_type=tabular.CSV_MEDIA_TYPE,
        headers=_attachment(records.default_filename("csv")),
    )


@router.get("/drawing.xls")
def export_xls() -> Response:
    with locked_session() as s:
        html = tabular.to_spreadsheet_html(s.export_record())
    return Response(
        content=html.encode("utf-8"),
        media_type=tabular.XLS_MEDIA_TYPE,
        headers=_attachment(records.default_filename("xls")),
    )
