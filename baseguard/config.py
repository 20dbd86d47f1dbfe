"""Configuration defaults, config file discovery and validation."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from pathlib import Path
import re
from typing import Any, Final

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    field_validator,
    model_validator,
)

from .constants import TRACKED_BROWSERS
from .exceptions import ConfigError

LOGGER = logging.getLogger(__name__)

CONFIG_FILE_NAMES: Final[tuple[str, ...]] = (
    "baseguard.config.json",
    "baseline.config.json",
    ".baseguardrc.json",
)


class Settings(BaseModel):
    """Scan settings read from a JSON config file and CLI flags.

    Config files may use the camelCase keys of JavaScript-flavoured configs.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # The snake_case name is listed first so CLI overrides win over camelCase file keys.
    output_path: str = Field(
        "dist/compat-report", validation_alias=AliasChoices("output_path", "outputPath")
    )
    fail_on_limited: StrictBool = Field(
        False, validation_alias=AliasChoices("fail_on_limited", "failOnLimited")
    )
    include_newly: StrictBool = Field(
        True, validation_alias=AliasChoices("include_newly", "includeNewly")
    )
    verbose: StrictBool = False
    cache_file: str = Field(
        "baseline-cache.json", validation_alias=AliasChoices("cache_file", "cacheFile")
    )
    cache_results: StrictBool = Field(
        True, validation_alias=AliasChoices("cache_results", "cacheResults")
    )
    exclude_patterns: tuple[str, ...] = Field(
        ("node_modules", r"\.min\.", "vendor"),
        validation_alias=AliasChoices("exclude_patterns", "excludePatterns"),
    )
    browsers: tuple[str, ...] = TRACKED_BROWSERS
    api_url: str | None = Field(
        None, validation_alias=AliasChoices("api_url", "apiUrl", "customBaselineUrl")
    )
    offline: StrictBool = False

    @model_validator(mode="before")
    @classmethod
    def _warn_unknown_keys(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            known = _accepted_keys()
            for key in data:
                if key not in known:
                    LOGGER.warning("Ignoring unknown config option %r", key)
        return data

    @field_validator("output_path", "cache_file")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("exclude_patterns")
    @classmethod
    def _check_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"Invalid exclude pattern {pattern!r}: {exc}") from exc
        return v

    @field_validator("browsers")
    @classmethod
    def _normalize_browsers(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        browsers = tuple(browser.lower() for browser in v)
        for browser in browsers:
            if browser not in TRACKED_BROWSERS:
                LOGGER.warning(
                    "Unknown browser %r. Valid options: %s", browser, ", ".join(TRACKED_BROWSERS)
                )
        return browsers

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def compiled_excludes(self) -> tuple[re.Pattern[str], ...]:
        return tuple(re.compile(pattern) for pattern in self.exclude_patterns)


def _accepted_keys() -> frozenset[str]:
    keys: set[str] = set()
    for name, info in Settings.model_fields.items():
        keys.add(name)
        if isinstance(info.validation_alias, AliasChoices):
            keys.update(
                choice for choice in info.validation_alias.choices if isinstance(choice, str)
            )
    return frozenset(keys)


def find_config_file(cwd: str | Path | None = None) -> Path | None:
    """Return the first known config file in ``cwd``, if any."""
    base = Path(cwd) if cwd is not None else Path.cwd()
    for name in CONFIG_FILE_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a JSON config file; unreadable or invalid files yield an empty mapping."""
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        LOGGER.warning("Error loading config from %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring config %s: expected a JSON object", config_path)
        return {}
    return data


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "config"
        problems.append(f"{location}: {error['msg']}")
    return "Invalid configuration: " + "; ".join(problems)


def validate(values: Mapping[str, Any]) -> Settings:
    """Build :class:`Settings` from merged values, raising ConfigError on bad input."""
    try:
        return Settings.model_validate(dict(values))
    except ValidationError as exc:
        raise ConfigError(_describe(exc)) from exc


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    config_path: str | Path | None = None,
    cwd: str | Path | None = None,
) -> Settings:
    """Merge defaults < config file < overrides and validate the result.

    Override keys whose value is None are ignored so unset CLI options keep the
    file or default value.
    """
    path = Path(config_path) if config_path is not None else find_config_file(cwd)
    merged: dict[str, Any] = {}
    if path is not None:
        LOGGER.debug("Loading config from %s", path)
        merged.update(load_config_file(path))
    if overrides:
        merged.update({key: value for key, value in overrides.items() if value is not None})
    return validate(merged)


def example_config() -> str:
    """Return the default settings as a JSON config file body."""
    return json.dumps(Settings().to_dict(), indent=2)
