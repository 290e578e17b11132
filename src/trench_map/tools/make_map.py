from __future__ import annotations

import json
from html import escape
from pathlib import Path

from trench_map.config import settings
from trench_map.core.models import ExportRecord
from trench_map.export import records, tabular


ROAD_COLOR = {
    "Soil": "#a16207",
    "Asphalt": "#334155",
    "tiles/blocks": "#7c3aed",
}


def render_map(record: ExportRecord) -> str:
    segs = []
    for line, row in zip(record.lines, tabular.rows(record)):
        segs.append(
            {
                "id": line.id,
                "a": [line.start.lat, line.start.lng],
                "b": [line.end.lat, line.end.lng],
                "color": ROAD_COLOR.get(line.road_type.value, "#3b82f6"),
                "length": row[7],
                "depth": line.depth,
                "width": line.width,
                "excavation": line.excavation_type.value,
                "road": line.road_type.value,
            }
        )
    center = [settings.map_center_lat, settings.map_center_lng]
    title = record.work_order_no or "Trench Map"

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{escape(title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <style>
    body {{ margin: 0; font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; }}
    #map {{ height: 100vh; width: 100vw; }}
    .distance-label div {{ background: white; padding: 4px 8px; border-radius: 4px;
      border: 2px solid #3b82f6; font-weight: bold; font-size: 12px; white-space: nowrap; }}
  </style>
</head>
<body>
<div id="map"></div>
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<script>
  const segs = {json.dumps(segs, ensure_ascii=False)};

  const map = L.map('map').setView({json.dumps(center)}, {settings.map_zoom});

  L.tileLayer({json.dumps(settings.tile_urls["street"])}, {{
    maxZoom: 19,
    attribution: '&copy; OpenStreetMap contributors'
  }}).addTo(map);

  segs.forEach((seg) => {{
    const popup = `
      <b>${{seg.id}}</b> &mdash; ${{seg.length}} m<br/>
      <b>Depth:</b> ${{seg.depth}} <b>Width:</b> ${{seg.width}}<br/>
      <b>Excavation:</b> ${{seg.excavation}}<br/>
      <b>Road:</b> ${{seg.road}}
    `;
    L.polyline([seg.a, seg.b], {{ color: seg.color, weight: 4, opacity: 0.9 }}).addTo(map).bindPopup(popup);
    L.circleMarker(seg.a, {{ radius: 6, fillColor: '#3b82f6', color: '#1e40af', weight: 2, fillOpacity: 0.8 }}).addTo(map);
    L.circleMarker(seg.b, {{ radius: 8, fillColor: '#ef4444', color: '#991b1b', weight: 2, fillOpacity: 0.8 }}).addTo(map);
    const mid = [(seg.a[0] + seg.b[0]) / 2, (seg.a[1] + seg.b[1]) / 2];
    L.marker(mid, {{
      icon: L.divIcon({{ className: 'distance-label', html: `<div>${{seg.length}} m</div>`, iconSize: [60, 20] }})
    }}).addTo(map);
  }});

  if (segs.length) {{
    const bounds = L.latLngBounds(segs.flatMap(s => [s.a, s.b]));
    map.fitBounds(bounds.pad(0.2));
  }}
</script>
</body>
</html>
"""


def write_map(path: Path, record: ExportRecord) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_map(record), encoding="utf-8")
    return path


def main() -> None:
    import argparse

    ap = argparse.ArgumentParser(description="Leaflet preview of a drawing")
    ap.add_argument("file")
    ap.add_argument("--out", default=None)
    args = ap.parse_args()

    src = Path(args.file)
    out = Path(args.out) if args.out else src.with_suffix(".html")
    record = records.read_file(src)
    write_map(out, record)
    print(f"Wrote: {out.resolve()}")


if __name__ == "__main__":
    main()
