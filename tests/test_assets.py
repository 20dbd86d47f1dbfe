from __future__ import annotations

from pathlib import Path
import re

import pytest

from baseguard import assets
from baseguard.aggregate import Aggregator
from baseguard.assets import (
    content_type_for,
    inline_units,
    is_excluded,
    iter_artifacts,
    scan_artifact,
    scan_paths,
)
from baseguard.classify import Classifier


def _tree(root: Path, files: dict[str, str]) -> Path:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("app.js", "script"),
        ("component.JSX", "script"),
        ("lib.mjs", "script"),
        ("site.css", "style"),
        ("theme.scss", None),
        ("types.ts", None),
        ("view.tsx", None),
        ("index.html", "markup"),
        ("page.htm", "markup"),
        ("README.md", None),
        ("Makefile", None),
    ],
)
def test_content_type_for(name: str, expected: str | None) -> None:
    assert content_type_for(name) == expected


def test_is_excluded_uses_posix_paths() -> None:
    patterns = (re.compile("node_modules"), re.compile(r"\.min\."))

    assert is_excluded(Path("node_modules") / "lib" / "x.js", patterns)
    assert is_excluded("dist/app.min.js", patterns)
    assert not is_excluded("src/app.js", patterns)
    assert not is_excluded("src/app.js", ())


def test_iter_artifacts_walks_in_sorted_order(tmp_path: Path) -> None:
    _tree(
        tmp_path,
        {
            "src/b.js": "b",
            "src/a.css": "a",
            "index.html": "<p>",
            "notes.md": "skip",
            "node_modules/pkg/index.js": "skip",
            "dist/app.min.js": "skip",
        },
    )
    exclude = (re.compile("node_modules"), re.compile(r"\.min\."))

    artifacts = list(iter_artifacts([tmp_path], exclude=exclude))

    assert [artifact.artifact_id for artifact in artifacts] == [
        "index.html",
        "src/a.css",
        "src/b.js",
    ]
    assert [artifact.content_type for artifact in artifacts] == ["markup", "style", "script"]


def test_iter_artifacts_accepts_files_and_dedupes(tmp_path: Path) -> None:
    _tree(tmp_path, {"app.js": "fetch('/x')"})

    artifacts = list(iter_artifacts([tmp_path / "app.js", tmp_path]))

    assert len(artifacts) == 1
    assert artifacts[0].artifact_id == "app.js"
    assert artifacts[0].text == "fetch('/x')"


def test_iter_artifacts_skips_missing_paths(tmp_path: Path) -> None:
    assert list(iter_artifacts([tmp_path / "missing"])) == []


def test_iter_artifacts_replaces_undecodable_bytes(tmp_path: Path) -> None:
    (tmp_path / "legacy.js").write_bytes(b"fetch('/x') // caf\xe9")

    artifacts = list(iter_artifacts([tmp_path]))

    assert artifacts[0].text.startswith("fetch('/x')")


def test_inline_units_collects_scripts_and_styles() -> None:
    markup = """
    <html><head>
    <style>.a { display: grid }</style>
    <script src="bundle.js"></script>
    <script type="application/ld+json">{"fetch": 1}</script>
    <script type="module">const r = await fetch('/api');</script>
    </head><body><video></video></body></html>
    """

    units = inline_units(markup)

    assert [content_type for content_type, _ in units] == ["script", "style"]
    assert "fetch('/api')" in units[0][1]
    assert "display: grid" in units[1][1]


def test_inline_units_without_blocks() -> None:
    assert inline_units("<p>hello</p>") == []


def test_scan_artifact_merges_inline_features(tmp_path: Path) -> None:
    _tree(
        tmp_path,
        {
            "index.html": (
                "<dialog></dialog>"
                "<style>.card { backdrop-filter: blur(2px) }</style>"
                "<script>navigator.serviceWorker.register('/sw.js')</script>"
            )
        },
    )
    aggregator = Aggregator(Classifier(offline=True))
    artifact = next(iter_artifacts([tmp_path]))

    features = scan_artifact(aggregator, artifact)

    assert features == {"Dialog Element", "CSS backdrop-filter", "Service Worker"}
    batch = aggregator.finish()
    assert batch.artifacts == ("index.html",)
    assert all(record.source_locations == ("index.html",) for record in batch.records.values())


def test_scan_artifact_survives_inline_parse_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _boom(markup: str) -> list[tuple[str, str]]:
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(assets, "inline_units", _boom)
    _tree(tmp_path, {"index.html": "<video></video><script>fetch('/x')</script>"})
    aggregator = Aggregator(Classifier(offline=True))

    features = scan_artifact(aggregator, next(iter_artifacts([tmp_path])))

    assert features == {"HTML5 Video"}


def test_scan_paths_counts_artifacts(tmp_path: Path) -> None:
    _tree(
        tmp_path,
        {
            "a.js": "fetch('/a')",
            "b.js": "fetch('/b')",
            "vendor/c.js": "new WebSocket(url)",
            "empty.css": "",
        },
    )
    aggregator = Aggregator(Classifier(offline=True))

    count = scan_paths(aggregator, [tmp_path], exclude=(re.compile("vendor"),))
    batch = aggregator.finish()

    assert count == 3
    assert list(batch.records) == ["fetch"]
    assert batch.records["fetch"].source_locations == ("a.js", "b.js")
    assert batch.artifacts == ("a.js", "b.js", "empty.css")
