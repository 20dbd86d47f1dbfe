"""Availability classification: cache, remote lookup, then offline heuristic."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import logging
from typing import Any, Final
from urllib.parse import quote

from .cache import AvailabilityCache
from .constants import (
    BASELINE_API_URL,
    BASELINE_DOC_URL_TEMPLATE,
    CANIUSE_SEARCH_URL_TEMPLATE,
    DEFAULT_TIMEOUT_SECONDS,
    GENERIC_SUGGESTION,
    NEWLY_NOTE,
    TRACKED_BROWSERS,
    UNRESOLVED_SUGGESTION,
    WIDELY_NOTE,
)
from .exceptions import BaseguardError, ContentError
from .http import feature_url, fetch_feature_status
from .model import Availability, AvailabilityVerdict, BrowserSupport, parse_browser_support

LOGGER = logging.getLogger(__name__)

Lookup = Callable[..., Mapping[str, Any]]
Adapter = Callable[[Mapping[str, Any], str], AvailabilityVerdict]

# Coarse exemplars for offline use only; not an authoritative source.
WIDELY_EXEMPLARS: Final[tuple[str, ...]] = (
    "fetch",
    "Promise",
    "CSS Flexbox",
    "CSS Grid",
    "localStorage",
    "sessionStorage",
    "HTML5 Video",
    "HTML5 Audio",
    "SVG",
    "Canvas",
)
NEWLY_EXEMPLARS: Final[tuple[str, ...]] = (
    "CSS Container Queries",
    "CSS Subgrid",
    "Dialog Element",
    "Lazy Loading",
    "ResizeObserver",
    "IntersectionObserver",
)
LIMITED_EXEMPLARS: Final[tuple[str, ...]] = (
    "CSS backdrop-filter",
    "WebRTC",
    "Web Audio API",
    "Service Worker",
    "Web Workers",
    "IndexedDB",
)

SUGGESTIONS: Final[tuple[tuple[str, str], ...]] = (
    ("CSS Subgrid", "Use CSS Grid with nested grids as fallback"),
    ("CSS Container Queries", "Use media queries or JavaScript-based solutions"),
    ("CSS backdrop-filter", "Use semi-transparent backgrounds as fallback"),
    ("Dialog Element", "Use modal libraries or custom implementations"),
    ("WebRTC", "Check for browser support and provide alternative communication methods"),
    (
        "Service Worker",
        "Check for support before registration, app works without offline features",
    ),
    ("Web Workers", "Provide fallback for heavy computations in main thread with throttling"),
    ("IndexedDB", "Use localStorage as fallback for smaller data storage"),
    ("Web Audio API", "Provide basic audio playback using HTML5 audio element"),
    ("IntersectionObserver", "Use an IntersectionObserver polyfill or scroll listeners"),
    ("ResizeObserver", "Use polyfill or fallback to window resize events"),
)

_STATUS_ALIASES: Final[dict[str, Availability]] = {
    "widely": "widely",
    "high": "widely",
    "newly": "newly",
    "low": "newly",
    "limited": "limited",
    "false": "limited",
    "unknown": "unknown",
}


def suggestion_for(feature: str) -> str:
    """Return the first remediation whose key is contained in ``feature``."""
    for key, suggestion in SUGGESTIONS:
        if key in feature:
            return suggestion
    return GENERIC_SUGGESTION


def baseline_link(feature: str) -> str:
    return BASELINE_DOC_URL_TEMPLATE.format(feature=quote(feature, safe=""))


def search_link(feature: str) -> str:
    return CANIUSE_SEARCH_URL_TEMPLATE.format(feature=quote(feature, safe=""))


def parse_remote_payload(payload: Mapping[str, Any], feature: str) -> AvailabilityVerdict:
    """Default adapter for ``{status, browser_support}`` responses.

    Raises :class:`ContentError` when ``status`` is missing or not a string.
    """
    status = payload.get("status")
    if isinstance(status, bool):
        status = str(status).lower()
    if not isinstance(status, str) or not status.strip():
        raise ContentError(feature_url(feature), detail="missing status")
    availability = _STATUS_ALIASES.get(status.strip().lower(), "unknown")

    raw_support = payload.get("browser_support")
    browser_support = parse_browser_support(raw_support) if isinstance(raw_support, Mapping) else {}

    return AvailabilityVerdict(
        availability=availability,
        browser_support=browser_support,
        suggestion=suggestion_for(feature) if availability == "limited" else None,
        reference_link=baseline_link(feature),
    )


def heuristic_availability(feature: str) -> Availability:
    """Classify by exemplar containment, priority widely > newly > limited."""
    folded = feature.casefold()
    tiers: tuple[tuple[Availability, tuple[str, ...]], ...] = (
        ("widely", WIDELY_EXEMPLARS),
        ("newly", NEWLY_EXEMPLARS),
        ("limited", LIMITED_EXEMPLARS),
    )
    for availability, exemplars in tiers:
        if any(exemplar.casefold() in folded for exemplar in exemplars):
            return availability
    return "unknown"


def heuristic_verdict(
    feature: str, browsers: Sequence[str] = TRACKED_BROWSERS
) -> AvailabilityVerdict:
    availability = heuristic_availability(feature)
    if availability == "widely":
        support = BrowserSupport(supported=True, note=WIDELY_NOTE)
    elif availability == "newly":
        support = BrowserSupport(supported=True, note=NEWLY_NOTE)
    else:
        support = BrowserSupport(supported=False)
    return AvailabilityVerdict(
        availability=availability,
        browser_support={browser: support for browser in browsers},
        suggestion=suggestion_for(feature) if availability == "limited" else None,
        reference_link=search_link(feature),
    )


def unresolved_verdict(feature: str) -> AvailabilityVerdict:
    return AvailabilityVerdict(
        availability="unknown",
        browser_support={},
        suggestion=UNRESOLVED_SUGGESTION,
        reference_link=search_link(feature),
    )


class Classifier:
    """Resolve feature names to availability verdicts.

    Strategies run in order and the first verdict wins: fresh cache entry,
    remote lookup, offline heuristic. Remote and heuristic verdicts are written
    back to the cache. ``classify`` never raises.
    """

    def __init__(
        self,
        cache: AvailabilityCache | None = None,
        *,
        base_url: str | None = BASELINE_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        offline: bool = False,
        browsers: Sequence[str] = TRACKED_BROWSERS,
        adapter: Adapter = parse_remote_payload,
        lookup: Lookup = fetch_feature_status,
    ) -> None:
        self.cache = cache if cache is not None else AvailabilityCache(None)
        self.base_url = base_url
        self.timeout = timeout
        self.offline = offline or not base_url
        self.browsers = tuple(browsers)
        self._adapter = adapter
        self._lookup = lookup
        self._strategies: tuple[Callable[[str], AvailabilityVerdict | None], ...] = (
            self._from_cache,
            self._from_remote,
            self._from_heuristic,
        )

    def classify(self, feature: str) -> AvailabilityVerdict:
        for strategy in self._strategies:
            try:
                verdict = strategy(feature)
            except Exception:
                LOGGER.warning(
                    "Classification step %s failed for %s", strategy.__name__, feature, exc_info=True
                )
                continue
            if verdict is not None:
                return verdict
        return unresolved_verdict(feature)

    def _from_cache(self, feature: str) -> AvailabilityVerdict | None:
        entry = self.cache.get(feature)
        return entry.verdict if entry is not None else None

    def _from_remote(self, feature: str) -> AvailabilityVerdict | None:
        if self.offline:
            return None
        try:
            payload = self._lookup(feature, base_url=self.base_url, timeout=self.timeout)
            verdict = self._adapter(payload, feature)
        except BaseguardError as exc:
            LOGGER.warning("Availability lookup failed for %s: %s", feature, exc)
            return None
        self.cache.put(feature, verdict)
        return verdict

    def _from_heuristic(self, feature: str) -> AvailabilityVerdict | None:
        verdict = heuristic_verdict(feature, self.browsers)
        self.cache.put(feature, verdict)
        return verdict
