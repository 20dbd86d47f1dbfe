"""Console script for baseguard."""

from __future__ import annotations

import logging
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__ as _version
from .aggregate import Aggregator
from .assets import scan_paths
from .cache import AvailabilityCache
from .classify import Classifier
from .config import Settings, example_config, load_settings
from .constants import BASELINE_API_URL
from .exceptions import ConfigError
from .http import use_shared_client
from .render_summary import render_summary, render_verdict
from .report import write_reports
from .util.markup import debug_enabled


def _configure_logging(verbose: bool) -> None:
    if debug_enabled():
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    package_logger = logging.getLogger("baseguard")
    package_logger.handlers = [handler]
    package_logger.setLevel(level)


def _load(overrides: dict[str, Any], config_path: str | None) -> Settings:
    try:
        return load_settings(overrides, config_path=config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _build_classifier(settings: Settings) -> Classifier:
    cache_path = settings.cache_file if settings.cache_results else None
    return Classifier(
        AvailabilityCache(cache_path),
        base_url=settings.api_url or BASELINE_API_URL,
        offline=settings.offline,
        browsers=settings.browsers,
    )


_shared_options = [
    click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file."),
    click.option("--cache-file", type=click.Path(dir_okay=False), help="Cache file location."),
    click.option("--no-cache", is_flag=True, default=False, help="Keep results in memory only."),
    click.option("--offline", is_flag=True, default=False, help="Skip the remote lookup."),
    click.option("--api-url", help="Availability service base URL."),
    click.option("--verbose", is_flag=True, default=False, help="Show progress logs."),
]


def _with_shared_options(func: Any) -> Any:
    for option in reversed(_shared_options):
        func = option(func)
    return func


def _overrides(
    cache_file: str | None,
    no_cache: bool,
    offline: bool,
    api_url: str | None,
    verbose: bool,
) -> dict[str, Any]:
    # Unset flags map to None so config file values still apply.
    return {
        "cache_file": cache_file,
        "cache_results": False if no_cache else None,
        "offline": True if offline else None,
        "api_url": api_url,
        "verbose": True if verbose else None,
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(_version, "-v", "--version")
def main() -> None:
    """
    Detect web-platform features in source files and check Baseline availability

    \b
    Example usages:
      baseguard scan dist/
      baseguard scan src/ --fail-on-limited --offline
      baseguard check "CSS Subgrid"
    """


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("-o", "--output", "output_path", type=click.Path(file_okay=False), help="Report dir.")
@click.option(
    "--fail-on-limited",
    is_flag=True,
    default=False,
    help="Exit non-zero when limited availability features are found.",
)
@click.option(
    "--exclude-newly",
    is_flag=True,
    default=False,
    help="Leave newly available features out of the summary.",
)
@_with_shared_options
def scan(
    paths: tuple[str, ...],
    output_path: str | None,
    fail_on_limited: bool,
    exclude_newly: bool,
    config_path: str | None,
    cache_file: str | None,
    no_cache: bool,
    offline: bool,
    api_url: str | None,
    verbose: bool,
) -> None:
    """Scan PATHS and write compatibility reports."""
    overrides = _overrides(cache_file, no_cache, offline, api_url, verbose)
    overrides.update(
        output_path=output_path,
        fail_on_limited=True if fail_on_limited else None,
        include_newly=False if exclude_newly else None,
    )
    settings = _load(overrides, config_path)
    _configure_logging(settings.verbose)
    console = Console()

    aggregator = Aggregator(_build_classifier(settings))
    with use_shared_client():
        scan_paths(aggregator, paths, exclude=settings.compiled_excludes())
        batch = aggregator.finish()

    json_path, html_path = write_reports(batch, settings.output_path)
    console.print(render_summary(batch, include_newly=settings.include_newly))
    console.print(f"Reports: {json_path}  {html_path}", style="dim")

    if settings.fail_on_limited and batch.summary.limited > 0:
        raise click.ClickException(
            f"{batch.summary.limited} limited availability feature(s) found"
        )


@main.command()
@click.argument("features", nargs=-1, required=True)
@_with_shared_options
def check(
    features: tuple[str, ...],
    config_path: str | None,
    cache_file: str | None,
    no_cache: bool,
    offline: bool,
    api_url: str | None,
    verbose: bool,
) -> None:
    """Classify FEATURES by name."""
    settings = _load(_overrides(cache_file, no_cache, offline, api_url, verbose), config_path)
    _configure_logging(settings.verbose)
    console = Console()

    classifier = _build_classifier(settings)
    with use_shared_client():
        for feature in features:
            console.print(render_verdict(feature, classifier.classify(feature)))


@main.command("example-config")
def example_config_command() -> None:
    """Print a config file with the default settings."""
    click.echo(example_config())
