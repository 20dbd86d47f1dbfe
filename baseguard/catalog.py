"""Pattern tables mapping source patterns to canonical feature names.

Each content type owns an independent list of :class:`Rule` objects. Rules never
assume mutual exclusivity: several may fire on the same text and report the same
feature. The extractor only interprets matcher kinds, so extending detection is a
matter of adding rules here.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import re
from typing import Final, Union, cast

from .exceptions import CatalogError
from .model import CONTENT_TYPES, ContentType

CATALOG_VERSION: Final[str] = "2024.2"


@dataclass(frozen=True)
class Substring:
    """Case-sensitive substring test against the unit text."""

    text: str


@dataclass(frozen=True)
class Pattern:
    """Regular expression searched in the unit text."""

    regex: re.Pattern[str]


@dataclass(frozen=True)
class Node:
    """Structural predicate on a JavaScript syntax node.

    Fires for a node of ``node_type`` whose ``field`` child text (or its own text
    when ``field`` is None) is one of ``names``; any text matches when ``names``
    is None.
    """

    node_type: str
    field: str | None = None
    names: frozenset[str] | None = None


@dataclass(frozen=True)
class Selector:
    """Regular expression searched in a CSS selector list."""

    regex: re.Pattern[str]


@dataclass(frozen=True)
class Declaration:
    """CSS declaration test: ``prop`` full-matches the property, ``value`` is searched in the value."""

    prop: re.Pattern[str]
    value: re.Pattern[str] | None = None


Matcher = Union[Substring, Pattern, Node, Selector, Declaration]
TEXT_MATCHERS: Final[tuple[type, ...]] = (Substring, Pattern)


@dataclass(frozen=True)
class Rule:
    feature: str
    matcher: Matcher


def _re(pattern: str, flags: int = 0) -> re.Pattern[str]:
    return re.compile(pattern, flags)


def _new(feature: str, *constructors: str) -> Rule:
    return Rule(feature, Node("new_expression", "constructor", frozenset(constructors)))


def _decl(feature: str, prop: str, value: str | None = None) -> Rule:
    return Rule(feature, Declaration(_re(prop), _re(value) if value else None))


def _tag(feature: str, pattern: str) -> Rule:
    return Rule(feature, Pattern(_re(pattern, re.IGNORECASE)))


FEATURE_NAMES: Final[frozenset[str]] = frozenset(
    {
        # script
        "fetch",
        "IntersectionObserver",
        "ResizeObserver",
        "MutationObserver",
        "Promise",
        "async/await",
        "Service Worker",
        "WebSocket",
        "localStorage",
        "sessionStorage",
        "Geolocation",
        "Notification",
        "Web Workers",
        "IndexedDB",
        "Web Audio API",
        "WebRTC",
        "File API",
        "Clipboard API",
        "Broadcast Channel",
        "requestAnimationFrame",
        "matchMedia",
        "Custom Elements",
        "Optional Chaining",
        "Nullish Coalescing",
        "Dynamic Import",
        "Private Class Fields",
        "import.meta",
        # style
        "CSS Grid",
        "CSS Flexbox",
        "CSS Subgrid",
        "CSS clip-path",
        "CSS Masking",
        "CSS Filters",
        "CSS backdrop-filter",
        "CSS Blend Modes",
        "CSS object-fit",
        "CSS Scroll Snap",
        "CSS position: sticky",
        "CSS aspect-ratio",
        "CSS gap",
        "CSS place-items",
        "CSS Containment",
        "CSS @supports",
        "CSS Container Queries",
        "CSS Custom Properties",
        "CSS Color Level 4",
        "CSS :has() selector",
        "CSS :is()/:where()",
        "CSS :focus-visible",
        "prefers-color-scheme",
        "prefers-reduced-motion",
        # markup
        "HTML5 Video",
        "HTML5 Audio",
        "HTML5 Canvas",
        "SVG",
        "Picture Element",
        "Picture/Video Source",
        "HTML Template",
        "HTML Slots",
        "Dialog Element",
        "HTML Details/Summary",
        "Native Lazy Loading",
        "Image Decode API",
        "HTML5 Date Input",
        "HTML5 Color Input",
        "HTML5 Range Input",
        "HTML5 Form Validation",
        "HTML5 Pattern Validation",
    }
)

SCRIPT_RULES: Final[tuple[Rule, ...]] = (
    Rule("fetch", Pattern(_re(r"\bfetch\s*\("))),
    Rule("IntersectionObserver", Pattern(_re(r"\bnew\s+IntersectionObserver\b"))),
    Rule("ResizeObserver", Pattern(_re(r"\bnew\s+ResizeObserver\b"))),
    Rule("MutationObserver", Pattern(_re(r"\bnew\s+MutationObserver\b"))),
    Rule("Promise", Pattern(_re(r"\bnew\s+Promise\b"))),
    Rule("async/await", Pattern(_re(r"\basync\s+function\b"))),
    Rule("Service Worker", Substring("navigator.serviceWorker")),
    Rule("WebSocket", Pattern(_re(r"\bnew\s+WebSocket\b"))),
    Rule("localStorage", Pattern(_re(r"\blocalStorage\."))),
    Rule("sessionStorage", Pattern(_re(r"\bsessionStorage\."))),
    Rule("Geolocation", Substring("navigator.geolocation")),
    Rule("Notification", Pattern(_re(r"\bnew\s+Notification\b"))),
    Rule("Web Workers", Pattern(_re(r"\bnew\s+(?:Shared)?Worker\b"))),
    Rule("IndexedDB", Pattern(_re(r"\bindexedDB\."))),
    Rule("Web Audio API", Pattern(_re(r"\bnew\s+(?:webkit)?AudioContext\b"))),
    Rule("WebRTC", Pattern(_re(r"\bRTCPeerConnection\b"))),
    Rule("File API", Pattern(_re(r"\bnew\s+FileReader\b"))),
    Rule("Clipboard API", Substring("navigator.clipboard")),
    Rule("Broadcast Channel", Pattern(_re(r"\bnew\s+BroadcastChannel\b"))),
    Rule("requestAnimationFrame", Pattern(_re(r"\brequestAnimationFrame\s*\("))),
    Rule("matchMedia", Pattern(_re(r"\bwindow\.matchMedia\b"))),
    Rule("Custom Elements", Substring("customElements.define")),
    # Syntax-aware rules; only evaluated when the unit parses cleanly.
    Rule("fetch", Node("call_expression", "function", frozenset({"fetch", "window.fetch"}))),
    _new("IntersectionObserver", "IntersectionObserver"),
    _new("ResizeObserver", "ResizeObserver"),
    _new("WebSocket", "WebSocket"),
    _new("Web Workers", "Worker", "SharedWorker"),
    Rule("async/await", Node("await_expression")),
    Rule("Optional Chaining", Node("optional_chain")),
    Rule("Nullish Coalescing", Node("binary_expression", "operator", frozenset({"??"}))),
    Rule("Dynamic Import", Node("call_expression", "function", frozenset({"import"}))),
    Rule("Private Class Fields", Node("private_property_identifier")),
    Rule("import.meta", Node("meta_property", None, frozenset({"import.meta"}))),
)

STYLE_RULES: Final[tuple[Rule, ...]] = (
    _decl("CSS Grid", r"display", r"\b(?:inline-)?grid\b"),
    _decl("CSS Flexbox", r"display", r"\b(?:inline-)?flex\b"),
    _decl("CSS Subgrid", r"grid-template(?:-columns|-rows)?", r"\bsubgrid\b"),
    _decl("CSS clip-path", r"(?:-webkit-)?clip-path"),
    _decl("CSS Masking", r"(?:-webkit-)?mask(?:-[a-z-]+)?"),
    _decl("CSS Filters", r"filter"),
    _decl("CSS backdrop-filter", r"(?:-webkit-)?backdrop-filter"),
    _decl("CSS Blend Modes", r"mix-blend-mode|background-blend-mode"),
    _decl("CSS object-fit", r"object-fit"),
    _decl("CSS Scroll Snap", r"scroll-snap-[a-z-]+"),
    _decl("CSS position: sticky", r"position", r"\b(?:-webkit-)?sticky\b"),
    _decl("CSS aspect-ratio", r"aspect-ratio"),
    _decl("CSS gap", r"(?:row-|column-)?gap"),
    _decl("CSS place-items", r"place-items"),
    _decl("CSS Containment", r"contain"),
    _decl("CSS Container Queries", r"container(?:-type|-name)?"),
    _decl("CSS Custom Properties", r"--[\w-]+"),
    _decl("CSS Custom Properties", r"[\w-]+", r"\bvar\("),
    _decl("CSS Color Level 4", r"[\w-]+", r"\b(?:ok)?(?:lab|lch)\("),
    Rule("CSS :has() selector", Selector(_re(r":has\("))),
    Rule("CSS :is()/:where()", Selector(_re(r":(?:is|where)\("))),
    Rule("CSS :focus-visible", Selector(_re(r":focus-visible\b"))),
    Rule("CSS @supports", Substring("@supports")),
    Rule("CSS Container Queries", Substring("@container")),
    Rule("prefers-color-scheme", Pattern(_re(r"@media[^{]*prefers-color-scheme"))),
    Rule("prefers-reduced-motion", Pattern(_re(r"@media[^{]*prefers-reduced-motion"))),
)

MARKUP_RULES: Final[tuple[Rule, ...]] = (
    _tag("HTML5 Video", r"<video\b"),
    _tag("HTML5 Audio", r"<audio\b"),
    _tag("HTML5 Canvas", r"<canvas\b"),
    _tag("SVG", r"<svg\b"),
    _tag("Picture Element", r"<picture\b"),
    _tag("Picture/Video Source", r"<source\b"),
    _tag("HTML Template", r"<template\b"),
    _tag("HTML Slots", r"<slot\b"),
    _tag("Dialog Element", r"<dialog\b"),
    _tag("HTML Details/Summary", r"<details\b"),
    _tag("Native Lazy Loading", r"\bloading\s*=\s*[\"']?lazy\b"),
    _tag("Image Decode API", r"\bdecoding\s*=\s*[\"']?async\b"),
    _tag("HTML5 Date Input", r"\btype\s*=\s*[\"']?date[\"'\s/>]"),
    _tag("HTML5 Color Input", r"\btype\s*=\s*[\"']?color[\"'\s/>]"),
    _tag("HTML5 Range Input", r"\btype\s*=\s*[\"']?range[\"'\s/>]"),
    _tag("HTML5 Form Validation", r"<[a-z][^>]*\srequired(?:[\s=/>])"),
    _tag("HTML5 Pattern Validation", r"<input\b[^>]*\spattern\s*="),
)

_MATCHERS_BY_CONTENT_TYPE: Final[dict[ContentType, tuple[type, ...]]] = {
    "script": (*TEXT_MATCHERS, Node),
    "style": (*TEXT_MATCHERS, Selector, Declaration),
    "markup": TEXT_MATCHERS,
}


def build_catalog(
    tables: Mapping[str, Sequence[Rule]],
    vocabulary: frozenset[str] = FEATURE_NAMES,
) -> dict[str, tuple[Rule, ...]]:
    """Validate rule tables and key them by content type.

    Raises :class:`CatalogError` on an unknown content type, a feature outside the
    vocabulary, or a matcher kind that the content type cannot evaluate.
    """
    catalog: dict[str, tuple[Rule, ...]] = {}
    for content_type, rules in tables.items():
        if content_type not in CONTENT_TYPES:
            raise CatalogError(f"Unknown content type in pattern catalog: {content_type!r}")
        key = cast(ContentType, content_type)
        allowed = _MATCHERS_BY_CONTENT_TYPE[key]
        for rule in rules:
            if rule.feature not in vocabulary:
                raise CatalogError(f"Feature {rule.feature!r} is not in the feature vocabulary")
            if not isinstance(rule.matcher, allowed):
                raise CatalogError(
                    f"{type(rule.matcher).__name__} rules are not supported for {content_type}"
                )
        catalog[content_type] = tuple(rules)
    return catalog


CATALOG: Final[dict[str, tuple[Rule, ...]]] = build_catalog(
    {
        "script": SCRIPT_RULES,
        "style": STYLE_RULES,
        "markup": MARKUP_RULES,
    }
)
