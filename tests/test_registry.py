"""Tests del MetricRegistry.

Ejecutar:
    pytest tests/test_registry.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from prometheus_client import CollectorRegistry

from common.rwlock import ReadWriteLock
from smc_metrics.registry import MetricKindMismatch, MetricRegistry


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def registry() -> MetricRegistry:
    return MetricRegistry("smartcitizen")


# =============================================================================
# REGISTRO IDEMPOTENTE
# =============================================================================

class TestIdempotentRegistration:
    """Un nombre lógico = una sola instancia de collector."""

    def test_same_name_returns_same_gauge(self, registry):
        g1 = registry.get_or_create_gauge("uptime", "help")
        g2 = registry.get_or_create_gauge("uptime", "other help")
        assert g1 is g2

    def test_concurrent_callers_get_one_collector(self, registry):
        """N threads pidiendo el mismo nombre no provocan registro duplicado."""
        barrier = threading.Barrier(16)

        def create():
            barrier.wait()
            return registry.get_or_create_gauge_vec("sensor_value", "help", ["id"])

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: create(), range(16)))

        assert all(r is results[0] for r in results)
        assert registry.collector_names() == ["sensor_value"]

    def test_concurrent_histogram_observations(self, registry):
        def observe(i):
            h = registry.get_or_create_histogram_vec(
                "api_request_duration_seconds", "help", [0.1, 1.0], ["endpoint"]
            )
            h.labels(endpoint="me").observe(0.05)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(observe, range(50)))

        count = registry.collector_registry.get_sample_value(
            "smartcitizen_api_request_duration_seconds_count", {"endpoint": "me"}
        )
        assert count == 50

    def test_label_schema_mismatch_reuses_first(self, registry, caplog):
        first = registry.get_or_create_gauge_vec("device_state", "help", ["uuid", "name"])
        second = registry.get_or_create_gauge_vec("device_state", "help", ["uuid"])

        assert second is first
        assert "Label schema mismatch" in caplog.text

    def test_kind_mismatch_raises(self, registry):
        registry.get_or_create_gauge("thing", "help")
        with pytest.raises(MetricKindMismatch):
            registry.get_or_create_counter("thing", "help")


# =============================================================================
# EXPOSICIÓN
# =============================================================================

class TestExposition:
    """Los collectors se exponen con namespace en el registry propio."""

    def test_namespace_prefix(self, registry):
        registry.get_or_create_counter("api_requests_total", "Total API requests").inc()
        text = registry.exposition().decode()
        assert "smartcitizen_api_requests_total 1.0" in text

    def test_info_gauge_is_one(self, registry):
        registry.get_or_create_info("build_info", "help")
        assert registry.collector_registry.get_sample_value("smartcitizen_build_info") == 1.0

    def test_separate_registries_do_not_collide(self):
        a = MetricRegistry("ns", CollectorRegistry())
        b = MetricRegistry("ns", CollectorRegistry())
        a.get_or_create_gauge("g", "help").set(1)
        b.get_or_create_gauge("g", "help").set(2)
        assert a.collector_registry.get_sample_value("ns_g") == 1.0
        assert b.collector_registry.get_sample_value("ns_g") == 2.0


# =============================================================================
# LOCK
# =============================================================================

class TestReadWriteLock:
    """Lectores concurrentes, escritor exclusivo."""

    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2)
        met = []

        def reader():
            with lock.read_locked():
                inside.wait()
                met.append(True)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)

        assert met == [True, True]

    def test_writer_waits_for_reader(self):
        lock = ReadWriteLock()
        events = []
        lock.acquire_read()

        def writer():
            with lock.write_locked():
                events.append("write")

        t = threading.Thread(target=writer)
        t.start()
        t.join(timeout=0.1)
        assert events == []

        lock.release_read()
        t.join(timeout=2)
        assert events == ["write"]
