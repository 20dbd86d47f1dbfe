"""Constants used across pybaseguard."""

from __future__ import annotations

from typing import Final

BASELINE_API_URL: Final[str] = "https://api.baseline.web.dev/v1/features"
BASELINE_DOC_URL_TEMPLATE: Final[str] = "https://web.dev/baseline/{feature}"
CANIUSE_SEARCH_URL_TEMPLATE: Final[str] = "https://caniuse.com/?search={feature}"

TRACKED_BROWSERS: Final[tuple[str, ...]] = (
    "chrome",
    "edge",
    "firefox",
    "safari",
)

AVAILABILITY_LEVELS: Final[tuple[str, ...]] = ("widely", "newly", "limited", "unknown")

# Report ordering: most actionable first.
AVAILABILITY_REPORT_ORDER: Final[dict[str, int]] = {
    "limited": 0,
    "newly": 1,
    "widely": 2,
    "unknown": 3,
}

AVAILABILITY_ICON_MAP: Final[dict[str, str]] = {
    "widely": "✅",
    "newly": "🆕",
    "limited": "⚠️",
    "unknown": "﹖",
}

AVAILABILITY_LABEL_MAP: Final[dict[str, str]] = {
    "widely": "Widely available",
    "newly": "Newly available",
    "limited": "Limited availability",
    "unknown": "Unknown",
}

WIDELY_NOTE: Final[str] = "supported long-term"
NEWLY_NOTE: Final[str] = "recently supported"

GENERIC_SUGGESTION: Final[str] = "Check browser compatibility and provide appropriate fallbacks"
UNRESOLVED_SUGGESTION: Final[str] = "check compatibility tables externally"

DEFAULT_TIMEOUT_SECONDS: Final[float] = 5.0
CACHE_MAX_AGE_SECONDS: Final[float] = 7 * 24 * 60 * 60
DEFAULT_MAX_WORKERS: Final[int] = 8

JSON_REPORT_NAME: Final[str] = "compat-report.json"
HTML_REPORT_NAME: Final[str] = "compat-report.html"
