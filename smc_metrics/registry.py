"""Idempotent registry of Prometheus collectors.

Converters and instrumentation code never instantiate prometheus_client
collectors directly: they ask the registry, which creates the collector on
first use and hands out the same instance to every later caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client.registry import Collector

from common.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

DEFAULT_BUCKETS: Tuple[float, ...] = Histogram.DEFAULT_BUCKETS


class CollectorKind(str, Enum):
    GAUGE = "gauge"
    GAUGE_VEC = "gauge_vec"
    COUNTER = "counter"
    COUNTER_VEC = "counter_vec"
    HISTOGRAM = "histogram"
    HISTOGRAM_VEC = "histogram_vec"


class MetricKindMismatch(Exception):
    """A name already registered as one kind was requested as another."""

    def __init__(self, name: str, existing: CollectorKind, requested: CollectorKind):
        self.name = name
        self.existing = existing
        self.requested = requested
        super().__init__(
            f"metric '{name}' is registered as {existing.value}, "
            f"requested as {requested.value}"
        )


@dataclass(frozen=True)
class _Entry:
    kind: CollectorKind
    labels: Tuple[str, ...]
    collector: Collector


class MetricRegistry:
    """Fetch-or-create store for namespaced collectors.

    One logical name maps to exactly one collector for the lifetime of the
    registry. The label schema is fixed by the first caller; later callers
    asking for a different schema get the existing collector and a warning.

    Lookups take the shared lock; only the create path takes the exclusive
    lock and re-checks before registering, so racing creators end up with
    the same instance.
    """

    def __init__(self, namespace: str = "", registry: Optional[CollectorRegistry] = None):
        self.namespace = namespace
        self.collector_registry = registry if registry is not None else CollectorRegistry()
        self._entries: Dict[str, _Entry] = {}
        self._lock = ReadWriteLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_or_create_gauge(self, name: str, help: str) -> Gauge:
        return self._get_or_create(
            CollectorKind.GAUGE, name, (),
            lambda: Gauge(name, help, namespace=self.namespace, registry=self.collector_registry),
        )

    def get_or_create_info(self, name: str, help: str) -> Gauge:
        """Gauge pinned at 1, used for static info series."""
        gauge = self.get_or_create_gauge(name, help)
        gauge.set(1)
        return gauge

    def get_or_create_gauge_vec(self, name: str, help: str, labels: Sequence[str]) -> Gauge:
        labels = tuple(labels)
        return self._get_or_create(
            CollectorKind.GAUGE_VEC, name, labels,
            lambda: Gauge(
                name, help, labelnames=labels,
                namespace=self.namespace, registry=self.collector_registry,
            ),
        )

    def get_or_create_counter(self, name: str, help: str) -> Counter:
        return self._get_or_create(
            CollectorKind.COUNTER, name, (),
            lambda: Counter(name, help, namespace=self.namespace, registry=self.collector_registry),
        )

    def get_or_create_counter_vec(self, name: str, help: str, labels: Sequence[str]) -> Counter:
        labels = tuple(labels)
        return self._get_or_create(
            CollectorKind.COUNTER_VEC, name, labels,
            lambda: Counter(
                name, help, labelnames=labels,
                namespace=self.namespace, registry=self.collector_registry,
            ),
        )

    def get_or_create_histogram(
        self,
        name: str,
        help: str,
        buckets: Sequence[float] = DEFAULT_BUCKETS,
    ) -> Histogram:
        buckets = tuple(buckets)
        return self._get_or_create(
            CollectorKind.HISTOGRAM, name, (),
            lambda: Histogram(
                name, help, buckets=buckets,
                namespace=self.namespace, registry=self.collector_registry,
            ),
        )

    def get_or_create_histogram_vec(
        self,
        name: str,
        help: str,
        buckets: Sequence[float],
        labels: Sequence[str],
    ) -> Histogram:
        buckets = tuple(buckets)
        labels = tuple(labels)
        return self._get_or_create(
            CollectorKind.HISTOGRAM_VEC, name, labels,
            lambda: Histogram(
                name, help, labelnames=labels, buckets=buckets,
                namespace=self.namespace, registry=self.collector_registry,
            ),
        )

    def collector_names(self) -> List[str]:
        with self._lock.read_locked():
            return sorted(self._entries)

    def exposition(self) -> bytes:
        """Prometheus text format for every collector created so far."""
        return generate_latest(self.collector_registry)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_create(
        self,
        kind: CollectorKind,
        name: str,
        labels: Tuple[str, ...],
        factory: Callable[[], Collector],
    ):
        with self._lock.read_locked():
            entry = self._entries.get(name)

        if entry is None:
            with self._lock.write_locked():
                entry = self._entries.get(name)
                if entry is None:
                    entry = _Entry(kind=kind, labels=labels, collector=factory())
                    self._entries[name] = entry
                    logger.debug(
                        "Registered collector name=%s kind=%s labels=%s",
                        name, kind.value, list(labels),
                    )
                    return entry.collector

        return self._check_existing(entry, kind, name, labels)

    @staticmethod
    def _check_existing(
        entry: _Entry,
        kind: CollectorKind,
        name: str,
        labels: Tuple[str, ...],
    ):
        if entry.kind is not kind:
            raise MetricKindMismatch(name, entry.kind, kind)
        if entry.labels != labels:
            logger.warning(
                "Label schema mismatch for metric name=%s registered=%s requested=%s; "
                "reusing registered collector",
                name, list(entry.labels), list(labels),
            )
        return entry.collector
