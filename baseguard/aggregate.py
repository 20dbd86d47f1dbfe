"""Batch aggregation: fold scan results, classify each feature once."""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
import logging

from .classify import Classifier
from .constants import DEFAULT_MAX_WORKERS
from .extract import extract
from .model import AvailabilityVerdict, Batch, FeatureRecord, Summary

LOGGER = logging.getLogger(__name__)


class Aggregator:
    """Accumulate one batch of scan results and classify its features.

    Source locations keep first-occurrence order. Features within one scan
    result are folded in sorted order, so record order never depends on set
    iteration order.
    """

    def __init__(self, classifier: Classifier, *, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self.classifier = classifier
        self.max_workers = max(1, max_workers)
        self._locations: dict[str, list[str]] = {}
        self._artifacts: dict[str, None] = {}

    def scan(self, artifact_id: str, source_text: str | bytes, content_type: str) -> set[str]:
        """Extract features from one unit and fold them in; never raises."""
        try:
            features = extract(source_text, content_type)
        except Exception as exc:
            LOGGER.warning("Could not scan %s (%s): %s", artifact_id, content_type, exc)
            features = set()
        self.add(artifact_id, features)
        return features

    def add(self, artifact_id: str, features: Iterable[str]) -> None:
        self._artifacts.setdefault(artifact_id, None)
        for feature in sorted(set(features)):
            locations = self._locations.setdefault(feature, [])
            if artifact_id not in locations:
                locations.append(artifact_id)

    def _classify_all(self, features: list[str]) -> list[AvailabilityVerdict]:
        if len(features) <= 1 or self.max_workers == 1:
            return [self.classifier.classify(feature) for feature in features]
        workers = min(self.max_workers, len(features))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="baseguard") as pool:
            # Each task runs in a copy of the caller's context so a shared HTTP
            # client published by the caller stays visible in worker threads.
            futures = [
                pool.submit(copy_context().run, self.classifier.classify, feature)
                for feature in features
            ]
            return [future.result() for future in futures]

    def finish(self) -> Batch:
        """Classify every distinct feature once and return the completed batch."""
        features = list(self._locations)
        with self.classifier.cache.hold_writes():
            verdicts = self._classify_all(features)

        records = {
            feature: FeatureRecord(
                feature_name=feature,
                verdict=verdict,
                source_locations=tuple(self._locations[feature]),
            )
            for feature, verdict in zip(features, verdicts)
        }
        batch = Batch(
            records=records,
            artifacts=tuple(self._artifacts),
            summary=Summary.from_records(records),
        )
        LOGGER.info(
            "Classified %d feature(s) across %d artifact(s)",
            batch.summary.total,
            len(batch.artifacts),
        )
        return batch


def aggregate(
    scan_results: Iterable[tuple[str, Iterable[str]]],
    classifier: Classifier,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Batch:
    """Build a batch from ``(artifact_id, features)`` pairs."""
    aggregator = Aggregator(classifier, max_workers=max_workers)
    for artifact_id, features in scan_results:
        aggregator.add(artifact_id, features)
    return aggregator.finish()
