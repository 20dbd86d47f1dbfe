from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError
import pytest

from baseguard.config import (
    Settings,
    example_config,
    find_config_file,
    load_config_file,
    load_settings,
    validate,
)
from baseguard.exceptions import ConfigError


def _write_config(directory: Path, name: str, data: object) -> Path:
    path = directory / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_config(tmp_path: Path) -> None:
    settings = load_settings(cwd=tmp_path)

    assert settings == Settings()
    assert settings.output_path == "dist/compat-report"
    assert settings.cache_results is True
    assert settings.browsers == ("chrome", "edge", "firefox", "safari")
    assert settings.api_url is None


def test_find_config_file_prefers_first_name(tmp_path: Path) -> None:
    _write_config(tmp_path, ".baseguardrc.json", {})
    assert find_config_file(tmp_path) == tmp_path / ".baseguardrc.json"

    _write_config(tmp_path, "baseguard.config.json", {})
    assert find_config_file(tmp_path) == tmp_path / "baseguard.config.json"


def test_find_config_file_none(tmp_path: Path) -> None:
    assert find_config_file(tmp_path) is None


def test_config_file_camel_case_keys(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "baseline.config.json",
        {
            "outputPath": "reports",
            "failOnLimited": True,
            "includeNewly": False,
            "excludePatterns": ["dist"],
            "customBaselineUrl": "https://baseline.example/api",
        },
    )

    settings = load_settings(cwd=tmp_path)

    assert settings.output_path == "reports"
    assert settings.fail_on_limited is True
    assert settings.include_newly is False
    assert settings.exclude_patterns == ("dist",)
    assert settings.api_url == "https://baseline.example/api"


def test_overrides_beat_config_file(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "custom.json", {"offline": False, "cache_file": "a.json"})

    settings = load_settings(
        {"offline": True, "cache_file": None, "output_path": "out"},
        config_path=path,
    )

    assert settings.offline is True
    assert settings.cache_file == "a.json"
    assert settings.output_path == "out"


def test_unknown_keys_are_ignored(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    _write_config(tmp_path, "baseguard.config.json", {"colour": "blue", "verbose": True})

    with caplog.at_level(logging.WARNING, logger="baseguard.config"):
        settings = load_settings(cwd=tmp_path)

    assert settings.verbose is True
    assert any("colour" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("content", ["{broken", "[]"])
def test_unreadable_config_falls_back_to_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture, content: str
) -> None:
    path = tmp_path / "baseguard.config.json"
    path.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="baseguard.config"):
        assert load_config_file(path) == {}
        assert load_settings(cwd=tmp_path) == Settings()
    assert caplog.records


@pytest.mark.parametrize(
    "values",
    [
        {"fail_on_limited": "yes"},
        {"cache_results": 1},
        {"output_path": ""},
        {"cache_file": 3},
        {"api_url": 42},
        {"exclude_patterns": "node_modules"},
        {"browsers": ["chrome", 3]},
        {"exclude_patterns": ["(unclosed"]},
    ],
)
def test_validate_rejects_bad_values(values: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        validate(values)


def test_validate_lowercases_and_warns_on_unknown_browsers(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="baseguard.config"):
        settings = validate({"browsers": ["Chrome", "Netscape"]})

    assert settings.browsers == ("chrome", "netscape")
    assert any("netscape" in record.getMessage() for record in caplog.records)


def test_compiled_excludes() -> None:
    patterns = Settings(exclude_patterns=(r"\.min\.", "vendor/")).compiled_excludes()

    assert [pattern.pattern for pattern in patterns] == [r"\.min\.", "vendor/"]
    assert patterns[0].search("app.min.js")


def test_example_config_matches_defaults() -> None:
    data = json.loads(example_config())

    assert data == Settings().to_dict()
    assert validate(data) == Settings()


def test_overrides_beat_camel_case_file_keys(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path, "custom.json", {"outputPath": "from-file", "apiUrl": "https://a"}
    )

    settings = load_settings({"output_path": "from-flag"}, config_path=path)

    assert settings.output_path == "from-flag"
    assert settings.api_url == "https://a"


def test_validate_error_names_the_offending_key() -> None:
    with pytest.raises(ConfigError) as excinfo:
        validate({"excludePatterns": ["ok", "(unclosed"], "cache_results": "yes"})

    message = str(excinfo.value)
    assert message.startswith("Invalid configuration: ")
    assert "excludePatterns: Value error, Invalid exclude pattern '(unclosed'" in message
    assert "cache_results: Input should be a valid boolean" in message


def test_settings_are_frozen() -> None:
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.verbose = True  # type: ignore[misc]
    assert hash(settings) == hash(Settings())
