"""
Unit tests for the runtime settings cache.
"""

import threading

from app.core.settings_cache import SettingsCache
from conftest import TestingSessionLocal


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSettingsCache:
    def test_defaults_when_row_missing(self, db_session):
        cache = SettingsCache(session_factory=TestingSessionLocal)

        current = cache.get()

        assert current.report_cooldown_minutes == 5
        assert current.max_report_distance_miles == 5.0
        assert current.alert_limit_count == 3
        assert current.data_retention_days == 30

    def test_fresh_value_is_not_reloaded(self, db_session):
        cache = SettingsCache(session_factory=TestingSessionLocal)

        cache.get()
        cache.get()

        assert cache.load_count == 1

    def test_reloads_after_ttl(self, db_session):
        clock = FakeClock()
        cache = SettingsCache(session_factory=TestingSessionLocal, ttl_seconds=60, clock=clock)

        cache.get()
        clock.now += 59
        cache.get()
        assert cache.load_count == 1

        clock.now += 2
        cache.get()
        assert cache.load_count == 2

    def test_invalidate_forces_reload(self, db_session):
        cache = SettingsCache(session_factory=TestingSessionLocal)

        cache.get()
        cache.invalidate()
        cache.get()

        assert cache.load_count == 2

    def test_update_writes_through_and_replaces_cache(self, db_session):
        cache = SettingsCache(session_factory=TestingSessionLocal)
        cache.get()

        updated = cache.update({"report_cooldown_minutes": 15})

        assert updated.report_cooldown_minutes == 15
        assert cache.get().report_cooldown_minutes == 15
        # No reload needed: update replaced the cached value
        assert cache.load_count == 1

        # A second cache sees the stored row
        other = SettingsCache(session_factory=TestingSessionLocal)
        assert other.get().report_cooldown_minutes == 15

    def test_update_notifies_listeners(self, db_session):
        cache = SettingsCache(session_factory=TestingSessionLocal)
        received = []

        def broken_listener(snapshot):
            raise RuntimeError("listener bug")

        cache.add_listener(broken_listener)
        cache.add_listener(received.append)

        cache.update({"alert_limit_count": 7})

        assert len(received) == 1
        assert received[0].alert_limit_count == 7

        cache.remove_listener(received.append)
        cache.update({"alert_limit_count": 8})
        assert len(received) == 1

    def test_concurrent_readers_load_once(self, db_session):
        cache = SettingsCache(session_factory=TestingSessionLocal)
        barrier = threading.Barrier(8)
        results = []

        def reader():
            barrier.wait()
            results.append(cache.get())

        threads = [threading.Thread(target=reader) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert cache.load_count == 1
