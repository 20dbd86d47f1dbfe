"""JSON and HTML compatibility reports."""

from __future__ import annotations

from datetime import datetime, timezone
from html import escape
import json
from pathlib import Path
from typing import Any

from .catalog import CATALOG_VERSION
from .constants import (
    AVAILABILITY_LABEL_MAP,
    AVAILABILITY_REPORT_ORDER,
    HTML_REPORT_NAME,
    JSON_REPORT_NAME,
)
from .model import Batch
from .util.text import join_limited

_STATUS_CLASS = {
    "widely": "success",
    "newly": "info",
    "limited": "warning",
    "unknown": "secondary",
}
_BROWSER_ICONS = {
    "chrome": "🟢",
    "edge": "🔵",
    "firefox": "🟠",
    "safari": "⚪",
}
_MAX_LISTED_FILES = 3

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Baseline compatibility report</title>
<style>
body {{ font-family: system-ui, sans-serif; margin: 2rem; color: #222; }}
table {{ border-collapse: collapse; width: 100%; }}
th, td {{ border-bottom: 1px solid #ddd; padding: .5rem; text-align: left; vertical-align: top; }}
.badge {{ border-radius: 4px; padding: .1rem .4rem; color: #fff; }}
.badge-success {{ background: #2e7d32; }}
.badge-info {{ background: #1565c0; }}
.badge-warning {{ background: #ef6c00; }}
.badge-secondary {{ background: #757575; }}
.summary span {{ margin-right: 1.5rem; }}
</style>
</head>
<body>
<h1>Baseline compatibility report</h1>
<p>Generated {generated_at} &middot; catalog {catalog_version}</p>
<p class="summary">
<span>Total: {total}</span>
<span>Widely: {widely}</span>
<span>Newly: {newly}</span>
<span>Limited: {limited}</span>
<span>Unknown: {unknown}</span>
</p>
<table>
<thead><tr><th>Feature</th><th>Availability</th><th>Browsers</th><th>Files</th><th>Suggestion</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
</body>
</html>
"""


def build_report(batch: Batch, *, generated_at: datetime | None = None) -> dict[str, Any]:
    """Serialize a batch into the JSON report structure."""
    timestamp = generated_at or datetime.now(timezone.utc)
    features = [
        {
            "name": record.feature_name,
            "availability": record.verdict.availability,
            "files": list(record.source_locations),
            "browsers": record.verdict.to_dict()["browser_support"],
            "suggestion": record.verdict.suggestion,
            "link": record.verdict.reference_link,
        }
        for record in batch.records.values()
    ]
    return {
        "features": features,
        "summary": batch.summary.to_dict(),
        "artifacts": len(batch.artifacts),
        "catalogVersion": CATALOG_VERSION,
        "generatedAt": timestamp.isoformat(),
    }


def _browser_icons(browsers: dict[str, dict[str, Any]]) -> str:
    if not browsers:
        return "-"
    parts = []
    for browser, support in browsers.items():
        icon = _BROWSER_ICONS.get(browser, "⚫")
        mark = "✓" if support.get("supported") else "✗"
        note = support.get("note") or "Unknown"
        parts.append(f'<span title="{escape(browser)}: {escape(note)}">{icon}{mark}</span>')
    return " ".join(parts)


def _feature_row(feature: dict[str, Any]) -> str:
    availability = feature["availability"]
    status_class = _STATUS_CLASS.get(availability, "secondary")
    label = AVAILABILITY_LABEL_MAP.get(availability, AVAILABILITY_LABEL_MAP["unknown"])
    suggestion = escape(feature["suggestion"]) if feature.get("suggestion") else "-"
    files = escape(join_limited(feature["files"], _MAX_LISTED_FILES))
    link = feature.get("link")
    if link:
        suggestion += f'<br><a href="{escape(link)}" target="_blank">Learn more &rarr;</a>'
    return (
        f'<tr class="{status_class}">'
        f"<td><strong>{escape(feature['name'])}</strong></td>"
        f'<td><span class="badge badge-{status_class}">{escape(label)}</span></td>'
        f'<td class="browser-support">{_browser_icons(feature["browsers"])}</td>'
        f'<td class="file-list">{files}</td>'
        f'<td class="suggestion">{suggestion}</td>'
        "</tr>"
    )


def render_html(report: dict[str, Any]) -> str:
    """Render the JSON report structure as a standalone HTML page."""
    features = sorted(
        report["features"],
        key=lambda item: (AVAILABILITY_REPORT_ORDER.get(item["availability"], 99), item["name"]),
    )
    summary = report["summary"]
    return _HTML_TEMPLATE.format(
        generated_at=escape(report["generatedAt"]),
        catalog_version=escape(report["catalogVersion"]),
        total=summary["total"],
        widely=summary["widely"],
        newly=summary["newly"],
        limited=summary["limited"],
        unknown=summary["unknown"],
        rows="\n".join(_feature_row(feature) for feature in features),
    )


def write_reports(
    batch: Batch,
    output_path: str | Path,
    *,
    generated_at: datetime | None = None,
) -> tuple[Path, Path]:
    """Write ``compat-report.json`` and ``compat-report.html`` into ``output_path``."""
    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    report = build_report(batch, generated_at=generated_at)

    json_path = output_dir / JSON_REPORT_NAME
    json_path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    html_path = output_dir / HTML_REPORT_NAME
    html_path.write_text(render_html(report), encoding="utf-8")
    return json_path, html_path
