"""Export a drawing as one row per line: CSV or an HTML table Excel opens.

Uses the stdlib csv module; the spreadsheet flavour is plain HTML markup
served as ``application/vnd.ms-excel``.
"""
from __future__ import annotations

import csv
import io
from html import escape
from pathlib import Path
from typing import List

from trench_map.core.geomath import haversine_m
from trench_map.core.models import ExportRecord, LineRecord

HEADERS = [
    "Work Order No",
    "Work Type",
    "Line",
    "Start Lat",
    "Start Lng",
    "End Lat",
    "End Lng",
    "Length (m)",
    "Depth",
    "Width",
    "Excavation Type",
    "Road Type",
]

CSV_MEDIA_TYPE = "text/csv"
XLS_MEDIA_TYPE = "application/vnd.ms-excel"


def _row(record: ExportRecord, line: LineRecord) -> List[str]:
    length = haversine_m(line.start.lat, line.start.lng, line.end.lat, line.end.lng)
    return [
        record.work_order_no,
        record.work_type,
        line.id or "",
        f"{line.start.lat:.6f}",
        f"{line.start.lng:.6f}",
        f"{line.end.lat:.6f}",
        f"{line.end.lng:.6f}",
        f"{length:.2f}",
        line.depth,
        line.width,
        line.excavation_type.value,
        line.road_type.value,
    ]


def rows(record: ExportRecord) -> List[List[str]]:
    return [_row(record, line) for line in record.lines]


def to_csv(record: ExportRecord) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADERS)
    writer.writerows(rows(record))
    return buf.getvalue()


def to_spreadsheet_html(record: ExportRecord) -> str:
    head = "".join(f"<th>{escape(h)}</th>" for h in HEADERS)
    body = "".join(
        "<tr>" + "".join(f"<td>{escape(cell)}</td>" for cell in row) + "</tr>"
        for row in rows(record)
    )
    return (
        '<html><head><meta charset="utf-8"></head><body>'
        f'<table border="1"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'
        "</body></html>"
    )


def write_csv(path: Path, record: ExportRecord) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # BOM so spreadsheet apps pick UTF-8 for the Arabic labels
    path.write_text(to_csv(record), encoding="utf-8-sig")
    return path


def write_spreadsheet(path: Path, record: ExportRecord) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_spreadsheet_html(record), encoding="utf-8")
    return path
