from __future__ import annotations

import pytest

from baseguard.model import (
    AvailabilityVerdict,
    BrowserSupport,
    FeatureRecord,
    Summary,
    coerce_availability,
    parse_browser_support,
)


def test_verdict_browser_support_is_read_only() -> None:
    source = {"chrome": BrowserSupport(True)}
    verdict = AvailabilityVerdict(availability="widely", browser_support=source)
    source["firefox"] = BrowserSupport(False)

    assert list(verdict.browser_support) == ["chrome"]
    with pytest.raises(TypeError):
        verdict.browser_support["safari"] = BrowserSupport(True)  # type: ignore[index]


def test_verdict_dict_round_trip() -> None:
    verdict = AvailabilityVerdict(
        availability="limited",
        browser_support={"safari": BrowserSupport(False, "behind a flag")},
        suggestion="Use a polyfill",
        reference_link="https://web.dev/baseline/WebRTC",
    )

    assert AvailabilityVerdict.from_dict(verdict.to_dict()) == verdict


@pytest.mark.parametrize("data", [{}, {"suggestion": "x"}, ["availability"]])
def test_verdict_from_dict_rejects_non_verdicts(data: object) -> None:
    with pytest.raises(ValueError):
        AvailabilityVerdict.from_dict(data)  # type: ignore[arg-type]


def test_verdict_from_dict_coerces_unknown_values() -> None:
    verdict = AvailabilityVerdict.from_dict(
        {"availability": "sometimes", "browser_support": [], "suggestion": "", "reference_link": 3}
    )

    assert verdict == AvailabilityVerdict(availability="unknown")


def test_parse_browser_support_shapes() -> None:
    parsed = parse_browser_support(
        {
            "Chrome": True,
            "firefox": {"supported": True, "version": "121"},
            "safari": {"supported": "yes", "note": " partial "},
            "edge": "maybe",
            "": True,
            3: True,
        }
    )

    assert parsed == {
        "chrome": BrowserSupport(True),
        "firefox": BrowserSupport(True, "121"),
        "safari": BrowserSupport(False, "partial"),
    }


def test_coerce_availability() -> None:
    assert coerce_availability("newly") == "newly"
    assert coerce_availability("NEWLY") == "unknown"
    assert coerce_availability(None) == "unknown"


def test_verdict_coerces_non_canonical_availability() -> None:
    verdict = AvailabilityVerdict(availability="high")  # type: ignore[arg-type]

    assert verdict.availability == "unknown"
    assert verdict == AvailabilityVerdict(availability="unknown")


def test_summary_from_records() -> None:
    records = {
        name: FeatureRecord(name, AvailabilityVerdict(availability=availability), ("a.js",))
        for name, availability in (
            ("fetch", "widely"),
            ("CSS Grid", "widely"),
            ("WebRTC", "limited"),
            ("Popover", "unknown"),
        )
    }

    assert Summary.from_records(records) == Summary(total=4, widely=2, limited=1, unknown=1)
