"""JSON save/load of a drawing.

Current files are ``{workOrderNo, workType, lines: [...]}``; older ones are a
bare list of line records. Either way distance in the file is ignored.
"""
from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from trench_map.core.errors import InvalidInput
from trench_map.core.models import ExportRecord, Line, LineRecord


def build_record(lines: Iterable[Line], work_order_no: str = "", work_type: str = "") -> ExportRecord:
    return ExportRecord(
        work_order_no=work_order_no,
        work_type=work_type,
        lines=[line.to_record() for line in lines],
    )


def to_json_data(record: ExportRecord) -> dict:
    return record.model_dump(mode="json", by_alias=True)


def dumps(record: ExportRecord) -> str:
    return json.dumps(to_json_data(record), indent=2, ensure_ascii=False)


def decode(text: Union[str, bytes]) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInput(f"Not a JSON document: {e}") from e


def is_legacy(data: Any) -> bool:
    return isinstance(data, list)


def parse_export(data: Any) -> ExportRecord:
    """Validate a decoded document (either shape) into an ExportRecord."""
    if isinstance(data, (str, bytes)):
        data = decode(data)
    try:
        if is_legacy(data):
            return ExportRecord(lines=[LineRecord.model_validate(item) for item in data])
        if isinstance(data, dict):
            return ExportRecord.model_validate(data)
    except ValidationError as e:
        raise InvalidInput(f"Malformed drawing: {e}") from e
    raise InvalidInput(f"Unsupported drawing document: {type(data).__name__}")


def default_filename(kind: str, today: Optional[date] = None) -> str:
    """``map-drawing-<date>.json`` for drawings, ``map-data-<date>.<kind>`` for tables."""
    stamp = (today or date.today()).isoformat()
    if kind == "json":
        return f"map-drawing-{stamp}.json"
    return f"map-data-{stamp}.{kind}"


def read_file(path: Path) -> ExportRecord:
    return parse_export(decode(path.read_bytes()))


def write_file(path: Path, record: ExportRecord) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(record), encoding="utf-8")
    return path
