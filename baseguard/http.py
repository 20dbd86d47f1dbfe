"""HTTP client layer for the remote availability service."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import json
from typing import Any
from urllib.parse import quote

import httpx

from ._version import __version__
from .constants import BASELINE_API_URL, DEFAULT_TIMEOUT_SECONDS
from .exceptions import ContentError, HttpStatusError, NetworkError, RequestTimeoutError

_SHARED_CLIENT: ContextVar[httpx.Client | None] = ContextVar(
    "pybaseguard_shared_client", default=None
)


def _build_headers() -> dict[str, str]:
    return {
        "User-Agent": f"pybaseguard/{__version__}",
        "Accept": "application/json",
    }


@contextmanager
def use_shared_client(
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Iterator[httpx.Client]:
    """Provide a reusable HTTP client for all lookups within a run."""
    with httpx.Client(timeout=timeout, follow_redirects=True, headers=_build_headers()) as client:
        token = _SHARED_CLIENT.set(client)
        try:
            yield client
        finally:
            _SHARED_CLIENT.reset(token)


def feature_url(feature: str, base_url: str = BASELINE_API_URL) -> str:
    """Build the lookup URL for a feature name."""
    return f"{base_url.rstrip('/')}/{quote(feature, safe='')}"


def fetch_json(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Any:
    """GET a JSON document; a single attempt, failures raised as BaseguardError."""
    shared_client = _SHARED_CLIENT.get()
    try:
        if shared_client is None or timeout != DEFAULT_TIMEOUT_SECONDS:
            with httpx.Client(
                timeout=timeout, follow_redirects=True, headers=_build_headers()
            ) as client:
                response = client.get(url)
        else:
            response = shared_client.get(url)
    except httpx.TimeoutException as exc:
        raise RequestTimeoutError(url) from exc
    except httpx.RequestError as exc:
        raise NetworkError(url, cause=exc.__class__.__name__) from exc

    if not 200 <= response.status_code < 300:
        raise HttpStatusError(response.status_code, str(response.url))

    body = response.text
    if not body.strip():
        raise ContentError(str(response.url), detail="empty body")
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ContentError(str(response.url), detail="invalid JSON") from exc


def fetch_feature_status(
    feature: str,
    *,
    base_url: str = BASELINE_API_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """Fetch the availability payload for one feature."""
    url = feature_url(feature, base_url)
    payload = fetch_json(url, timeout=timeout)
    if not isinstance(payload, dict):
        raise ContentError(url, detail="expected a JSON object")
    return payload
