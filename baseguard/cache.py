"""Persisted availability cache with passive expiry."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import json
import logging
from pathlib import Path
import threading
import time

from .constants import CACHE_MAX_AGE_SECONDS
from .model import AvailabilityVerdict, CacheEntry

LOGGER = logging.getLogger(__name__)


def _now_millis(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


class AvailabilityCache:
    """Feature name -> verdict store backed by a single JSON file.

    ``get`` treats entries older than ``max_age`` seconds as absent without
    removing them. Every write rewrites the whole file under a lock; inside
    :meth:`hold_writes` the rewrite is deferred to one flush on exit. When
    ``path`` is None, or after a failed write, the cache lives in memory only.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        clock: Callable[[], float] = time.time,
        max_age: float = CACHE_MAX_AGE_SECONDS,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self._clock = clock
        self._max_age_ms = int(max_age * 1000)
        self._lock = threading.RLock()
        self._entries: dict[str, CacheEntry] = {}
        self._holds = 0
        self._dirty = False
        self._persist = self.path is not None
        self._load()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, feature_name: object) -> bool:
        return feature_name in self._entries

    @property
    def persistent(self) -> bool:
        return self._persist

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.warning("Could not load cache from %s: %s", self.path, exc)
            return
        if not isinstance(raw, dict):
            LOGGER.warning("Ignoring cache file %s: expected a JSON object", self.path)
            return

        for feature_name, row in raw.items():
            if not isinstance(feature_name, str) or not isinstance(row, dict):
                continue
            timestamp = row.get("timestamp")
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                continue
            data = row.get("data")
            if not isinstance(data, dict):
                continue
            try:
                verdict = AvailabilityVerdict.from_dict(data)
            except ValueError:
                continue
            self._entries[feature_name] = CacheEntry(feature_name, verdict, int(timestamp))

    def entry(self, feature_name: str) -> CacheEntry | None:
        """Return the stored entry regardless of freshness."""
        with self._lock:
            return self._entries.get(feature_name)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return _now_millis(self._clock) - entry.observed_at < self._max_age_ms

    def get(self, feature_name: str) -> CacheEntry | None:
        """Return the entry for ``feature_name`` if it is still fresh."""
        entry = self.entry(feature_name)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry

    def put(self, feature_name: str, verdict: AvailabilityVerdict) -> CacheEntry:
        """Store ``verdict``, replacing any earlier entry for the feature."""
        entry = CacheEntry(feature_name, verdict, _now_millis(self._clock))
        with self._lock:
            self._entries[feature_name] = entry
            self._dirty = True
            if self._holds == 0:
                self._write()
        return entry

    @contextmanager
    def hold_writes(self) -> Iterator[AvailabilityCache]:
        """Defer persistence until the outermost block exits, then flush once."""
        with self._lock:
            self._holds += 1
        try:
            yield self
        finally:
            with self._lock:
                self._holds -= 1
                if self._holds == 0:
                    self._write()

    def save(self) -> bool:
        """Write pending changes; returns False when the write failed."""
        with self._lock:
            return self._write()

    def _write(self) -> bool:
        if not self._dirty or not self._persist or self.path is None:
            return True
        payload = {
            name: {"data": entry.verdict.to_dict(), "timestamp": entry.observed_at}
            for name, entry in self._entries.items()
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            LOGGER.warning(
                "Could not save cache to %s: %s; keeping results in memory", self.path, exc
            )
            self._persist = False
            return False
        self._dirty = False
        return True
