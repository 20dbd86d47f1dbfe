"""Source artifact discovery: content types, exclusions and inline blocks."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Final

from .aggregate import Aggregator
from .model import ContentType
from .util.markup import all_nodes, attr, parse_document, raw_text

LOGGER = logging.getLogger(__name__)

# Only suffixes the bundled JavaScript and CSS grammars parse cleanly.
CONTENT_TYPE_BY_SUFFIX: Final[dict[str, ContentType]] = {
    ".js": "script",
    ".jsx": "script",
    ".mjs": "script",
    ".cjs": "script",
    ".css": "style",
    ".html": "markup",
    ".htm": "markup",
}

_SCRIPT_TYPES: Final[frozenset[str]] = frozenset(
    {"", "module", "text/javascript", "application/javascript", "text/ecmascript"}
)


@dataclass(frozen=True)
class Artifact:
    artifact_id: str
    path: Path
    content_type: ContentType
    text: str


def content_type_for(path: str | Path) -> ContentType | None:
    return CONTENT_TYPE_BY_SUFFIX.get(Path(path).suffix.lower())


def is_excluded(path: str | Path, patterns: Sequence[re.Pattern[str]]) -> bool:
    posix = Path(path).as_posix()
    return any(pattern.search(posix) for pattern in patterns)


def _candidate_files(paths: Iterable[str | Path]) -> Iterator[tuple[Path, Path]]:
    for raw in paths:
        root = Path(raw)
        if root.is_dir():
            for path in sorted(item for item in root.rglob("*") if item.is_file()):
                yield root, path
        elif root.is_file():
            yield root.parent, root
        else:
            LOGGER.warning("Skipping missing path %s", root)


def _artifact_id(base: Path, path: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


def iter_artifacts(
    paths: Iterable[str | Path],
    *,
    exclude: Sequence[re.Pattern[str]] = (),
) -> Iterator[Artifact]:
    """Yield supported, non-excluded files under ``paths`` in a stable order."""
    seen: set[Path] = set()
    for base, path in _candidate_files(paths):
        resolved = path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        content_type = content_type_for(path)
        artifact_id = _artifact_id(base, path)
        if content_type is None or is_excluded(artifact_id, exclude):
            continue
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            LOGGER.warning("Could not read %s: %s", path, exc)
            continue
        yield Artifact(artifact_id, path, content_type, text)


def inline_units(markup: str) -> list[tuple[ContentType, str]]:
    """Return inline ``<script>`` and ``<style>`` bodies found in a markup document."""
    if "<script" not in markup.lower() and "<style" not in markup.lower():
        return []
    doc = parse_document(markup)
    units: list[tuple[ContentType, str]] = []
    for node in all_nodes(doc, "script"):
        script_type = (attr(node, "type") or "").strip().lower()
        if attr(node, "src") is not None or script_type not in _SCRIPT_TYPES:
            continue
        body = raw_text(node)
        if body.strip():
            units.append(("script", body))
    for node in all_nodes(doc, "style"):
        body = raw_text(node)
        if body.strip():
            units.append(("style", body))
    return units


def scan_artifact(aggregator: Aggregator, artifact: Artifact) -> set[str]:
    """Scan one artifact, including inline blocks of markup documents."""
    features = aggregator.scan(artifact.artifact_id, artifact.text, artifact.content_type)
    if artifact.content_type != "markup":
        return features
    try:
        units = inline_units(artifact.text)
    except Exception as exc:
        LOGGER.warning("Could not read inline blocks of %s: %s", artifact.artifact_id, exc)
        return features
    for content_type, body in units:
        features |= aggregator.scan(artifact.artifact_id, body, content_type)
    return features


def scan_paths(
    aggregator: Aggregator,
    paths: Iterable[str | Path],
    *,
    exclude: Sequence[re.Pattern[str]] = (),
) -> int:
    """Feed every artifact under ``paths`` to ``aggregator``; returns the artifact count."""
    count = 0
    for artifact in iter_artifacts(paths, exclude=exclude):
        features = scan_artifact(aggregator, artifact)
        LOGGER.debug("%s: %d feature(s)", artifact.artifact_id, len(features))
        count += 1
    return count
