from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from trench_map.backends.viewport import ViewportBackend
from trench_map.config import settings
from trench_map.core.errors import InvalidInput
from trench_map.core.router import InteractionRouter
from trench_map.export import records, tabular
from trench_map.tools.make_map import write_map

log = logging.getLogger(__name__)


def _load(path: Path) -> InteractionRouter:
    """Load a drawing through the engine so distances are re-derived."""
    router = InteractionRouter(ViewportBackend())
    router.import_record(records.decode(path.read_bytes()))
    return router


def _table(router: InteractionRouter, title: str) -> Table:
    record = router.export_record()
    table = Table(title=title)
    for h in tabular.HEADERS[2:]:
        table.add_column(h, justify="right" if h in ("Length (m)", "Depth", "Width") else "left")
    for row in tabular.rows(record):
        table.add_row(*row[2:])
    return table


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="trench-map", description="Inspect and convert trench drawings")
    ap.add_argument("file", help="Drawing JSON (current or legacy list format)")
    ap.add_argument("--csv", type=Path, help="Write the line table as CSV")
    ap.add_argument("--xls", type=Path, help="Write the line table as spreadsheet markup")
    ap.add_argument("--json", type=Path, help="Re-save the drawing with recomputed distances")
    ap.add_argument("--map", type=Path, help="Write a Leaflet HTML preview")
    ap.add_argument(
        "--export-all",
        action="store_true",
        help="Write JSON, CSV and spreadsheet files with dated default names",
    )
    ap.add_argument("--out-dir", type=Path, default=Path(settings.export_dir))
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s [trench-map] %(levelname)s %(message)s",
    )

    console = Console()
    path = Path(args.file)
    try:
        router = _load(path)
    except (OSError, InvalidInput) as e:
        console.print(f"[red]Could not load {path}:[/red] {e}")
        return 1

    record = router.export_record()
    title = f"Work order {record.work_order_no or '-'} ({record.work_type or '-'})"
    console.print(_table(router, title))
    total = sum(line.distance for line in router.store)
    console.print(f"{len(router.store)} lines, {total:.2f} m total")

    if args.csv:
        console.print(f"Saved: {tabular.write_csv(args.csv, record).resolve()}")
    if args.xls:
        console.print(f"Saved: {tabular.write_spreadsheet(args.xls, record).resolve()}")
    if args.json:
        console.print(f"Saved: {records.write_file(args.json, record).resolve()}")
    if args.map:
        console.print(f"Saved: {write_map(args.map, record).resolve()}")
    if args.export_all:
        out = args.out_dir
        records.write_file(out / records.default_filename("json"), record)
        tabular.write_csv(out / records.default_filename("csv"), record)
        tabular.write_spreadsheet(out / records.default_filename("xls"), record)
        console.print(f"Saved drawing and tables to {out.resolve()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
