"""Console renderers for batch summaries and single verdicts."""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .constants import AVAILABILITY_ICON_MAP, AVAILABILITY_LABEL_MAP
from .model import AvailabilityVerdict, Batch
from .util.text import join_limited

_MAX_LISTED_FILES = 3


def _counts_line(batch: Batch) -> str:
    summary = batch.summary
    return "  ".join(
        [
            f"{AVAILABILITY_ICON_MAP['widely']} {summary.widely} widely",
            f"{AVAILABILITY_ICON_MAP['newly']} {summary.newly} newly",
            f"{AVAILABILITY_ICON_MAP['limited']} {summary.limited} limited",
            f"{AVAILABILITY_ICON_MAP['unknown']} {summary.unknown} unknown",
        ]
    )


def render_summary(batch: Batch, *, include_newly: bool = True) -> Group:
    """Render a batch summary as a Rich renderable group."""
    lines: list[Text] = []

    if not batch.records:
        lines.append(Text("No web features detected", style="dim"))
        return Group(Panel(Group(*lines), border_style="blue", title="Baseguard"))

    lines.append(
        Text(
            f"{batch.summary.total} feature(s) in {len(batch.artifacts)} artifact(s)",
            style="bold",
        )
    )
    lines.append(Text(_counts_line(batch)))

    limited = batch.by_availability("limited")
    if limited:
        lines.append(Text(""))
        lines.append(Text("Limited availability", style="bold yellow"))
        for record in limited:
            files = join_limited(record.source_locations, _MAX_LISTED_FILES)
            lines.append(
                Text(
                    f"  {record.feature_name}: {len(record.source_locations)} file(s) ({files})",
                    style="yellow",
                )
            )
            if record.verdict.suggestion:
                lines.append(Text(f"    Suggestion: {record.verdict.suggestion}", style="dim"))

    newly = batch.by_availability("newly")
    if include_newly and newly:
        lines.append(Text(""))
        lines.append(Text("Newly available", style="bold cyan"))
        for record in newly:
            lines.append(Text(f"  {record.feature_name}: {len(record.source_locations)} file(s)"))

    border = "yellow" if limited else "blue"
    return Group(Panel(Group(*lines), border_style=border, title="Baseguard"))


def render_verdict(feature: str, verdict: AvailabilityVerdict) -> Group:
    """Render one classified feature."""
    icon = AVAILABILITY_ICON_MAP.get(verdict.availability, AVAILABILITY_ICON_MAP["unknown"])
    label = AVAILABILITY_LABEL_MAP.get(verdict.availability, AVAILABILITY_LABEL_MAP["unknown"])
    lines: list[Text] = [Text(feature, style="bold"), Text(f"{icon} {label}")]

    if verdict.browser_support:
        lines.append(Text(""))
        lines.append(Text("Browser Support", style="bold"))
        for browser, support in verdict.browser_support.items():
            mark = "✅" if support.supported else "❌"
            note = f" ({support.note})" if support.note else ""
            lines.append(Text(f"  {browser}: {mark}{note}"))

    if verdict.suggestion:
        lines.append(Text(""))
        lines.append(Text(f"Suggestion: {verdict.suggestion}"))
    if verdict.reference_link:
        lines.append(Text(f"Learn more: {verdict.reference_link}", style="dim"))

    return Group(Panel(Group(*lines), border_style="blue", title=feature))
