from __future__ import annotations

import re

import pytest

from baseguard.catalog import (
    CATALOG,
    FEATURE_NAMES,
    Declaration,
    Matcher,
    Node,
    Pattern,
    Rule,
    Selector,
    Substring,
    build_catalog,
)
from baseguard.exceptions import CatalogError


def test_catalog_covers_every_content_type() -> None:
    assert set(CATALOG) == {"script", "style", "markup"}
    assert all(CATALOG[content_type] for content_type in CATALOG)


def test_catalog_features_are_in_vocabulary() -> None:
    for rules in CATALOG.values():
        for rule in rules:
            assert rule.feature in FEATURE_NAMES


def test_markup_rules_are_text_only() -> None:
    assert all(isinstance(rule.matcher, (Substring, Pattern)) for rule in CATALOG["markup"])


def test_build_catalog_rejects_unknown_content_type() -> None:
    with pytest.raises(CatalogError, match="content type"):
        build_catalog({"python": (Rule("fetch", Substring("fetch(")),)})


def test_build_catalog_rejects_unknown_feature() -> None:
    with pytest.raises(CatalogError, match="vocabulary"):
        build_catalog({"script": (Rule("Teleport API", Substring("teleport(")),)})


@pytest.mark.parametrize(
    ("content_type", "matcher"),
    [
        ("markup", Node("call_expression")),
        ("markup", Selector(re.compile(":has\\("))),
        ("script", Declaration(re.compile("display"))),
        ("style", Node("await_expression")),
    ],
)
def test_build_catalog_rejects_unsupported_matcher(content_type: str, matcher: Matcher) -> None:
    with pytest.raises(CatalogError, match="not supported"):
        build_catalog({content_type: (Rule("fetch", matcher),)})


def test_build_catalog_accepts_custom_vocabulary() -> None:
    catalog = build_catalog(
        {"markup": (Rule("Popover", Substring("popover")),)},
        vocabulary=frozenset({"Popover"}),
    )
    assert catalog == {"markup": (Rule("Popover", Substring("popover")),)}
