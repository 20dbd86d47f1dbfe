"""Data models for extraction, classification and aggregation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, cast

ContentType = Literal["script", "style", "markup"]
Availability = Literal["widely", "newly", "limited", "unknown"]

CONTENT_TYPES: tuple[ContentType, ...] = ("script", "style", "markup")
_AVAILABILITIES: tuple[Availability, ...] = ("widely", "newly", "limited", "unknown")


def coerce_availability(value: object) -> Availability:
    """Return value when it is a known availability level, else ``unknown``."""
    if isinstance(value, str) and value in _AVAILABILITIES:
        return cast(Availability, value)
    return "unknown"


@dataclass(frozen=True)
class BrowserSupport:
    supported: bool
    note: str = ""


@dataclass(frozen=True)
class AvailabilityVerdict:
    availability: Availability
    browser_support: Mapping[str, BrowserSupport] = field(default_factory=dict)
    suggestion: str | None = None
    reference_link: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "availability", coerce_availability(self.availability))
        # Freeze the browser map so a verdict cannot change after creation.
        object.__setattr__(
            self, "browser_support", MappingProxyType(dict(self.browser_support))
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvailabilityVerdict):
            return NotImplemented
        return (
            self.availability == other.availability
            and dict(self.browser_support) == dict(other.browser_support)
            and self.suggestion == other.suggestion
            and self.reference_link == other.reference_link
        )

    def __hash__(self) -> int:
        return hash(
            (
                self.availability,
                tuple(sorted(self.browser_support.items())),
                self.suggestion,
                self.reference_link,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "availability": self.availability,
            "browser_support": {
                browser: {"supported": support.supported, "note": support.note}
                for browser, support in self.browser_support.items()
            },
            "suggestion": self.suggestion,
            "reference_link": self.reference_link,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AvailabilityVerdict:
        """Rebuild a verdict from its ``to_dict`` form.

        Raises ``ValueError`` when ``data`` is not a verdict mapping.
        """
        if not isinstance(data, Mapping) or "availability" not in data:
            raise ValueError("not a verdict mapping")
        raw_support = data.get("browser_support")
        support = (
            parse_browser_support(raw_support) if isinstance(raw_support, Mapping) else {}
        )
        suggestion = data.get("suggestion")
        link = data.get("reference_link")
        return cls(
            availability=coerce_availability(data.get("availability")),
            browser_support=support,
            suggestion=suggestion if isinstance(suggestion, str) and suggestion else None,
            reference_link=link if isinstance(link, str) and link else None,
        )


def parse_browser_support(raw: Mapping[Any, Any]) -> dict[str, BrowserSupport]:
    """Coerce a loosely shaped ``browser -> support`` mapping.

    Values may be booleans or mappings carrying ``supported`` plus an optional
    ``note`` (or ``version``) string. Anything else is dropped.
    """
    output: dict[str, BrowserSupport] = {}
    for browser, value in raw.items():
        if not isinstance(browser, str) or not browser.strip():
            continue
        key = browser.strip().lower()
        if isinstance(value, bool):
            output[key] = BrowserSupport(supported=value)
            continue
        if not isinstance(value, Mapping):
            continue
        supported = value.get("supported")
        note = value.get("note")
        if not isinstance(note, str):
            note = value.get("version")
        output[key] = BrowserSupport(
            supported=supported is True,
            note=note.strip() if isinstance(note, str) else "",
        )
    return output


@dataclass(frozen=True)
class CacheEntry:
    feature_name: str
    verdict: AvailabilityVerdict
    observed_at: int


@dataclass(frozen=True)
class FeatureRecord:
    feature_name: str
    verdict: AvailabilityVerdict
    source_locations: tuple[str, ...]


@dataclass(frozen=True)
class Summary:
    total: int = 0
    widely: int = 0
    newly: int = 0
    limited: int = 0
    unknown: int = 0

    @classmethod
    def from_records(cls, records: Mapping[str, FeatureRecord]) -> Summary:
        counts = dict.fromkeys(_AVAILABILITIES, 0)
        for record in records.values():
            counts[record.verdict.availability] += 1
        return cls(total=len(records), **counts)

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "widely": self.widely,
            "newly": self.newly,
            "limited": self.limited,
            "unknown": self.unknown,
        }


@dataclass(frozen=True)
class Batch:
    records: Mapping[str, FeatureRecord]
    artifacts: tuple[str, ...]
    summary: Summary

    def by_availability(self, availability: Availability) -> list[FeatureRecord]:
        return [
            record
            for record in self.records.values()
            if record.verdict.availability == availability
        ]
