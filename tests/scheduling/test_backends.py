"""Tests for the scheduler timing backends."""

import time

import pytest

from chronicle.scheduling import ThreadSchedulerBackend, create_backend
from chronicle.scheduling.protocol import BackendHealth, SchedulerBackend


class TestThreadSchedulerBackend:
    """Test ThreadSchedulerBackend implementation."""

    def test_implements_protocol(self):
        """Backend implements SchedulerBackend protocol."""
        backend = ThreadSchedulerBackend()
        assert isinstance(backend, SchedulerBackend)
        assert backend.name == "thread"

    def test_start_and_stop(self):
        """Backend starts and stops cleanly."""
        backend = ThreadSchedulerBackend()
        ticks = []

        backend.start(lambda: ticks.append(1), interval_seconds=0.1)
        assert backend.is_running

        time.sleep(0.35)

        backend.stop()
        assert not backend.is_running
        assert len(ticks) >= 2

    def test_health_before_start(self):
        """Health returns unhealthy before start."""
        health = ThreadSchedulerBackend().health()

        assert health["healthy"] is False
        assert health["backend"] == "thread"
        assert health["tick_count"] == 0
        assert health["last_tick"] is None

    def test_health_after_start(self):
        """Health returns healthy after start."""
        backend = ThreadSchedulerBackend()
        backend.start(lambda: None, interval_seconds=0.1)
        time.sleep(0.15)

        health = backend.health()
        assert health["healthy"] is True
        assert health["tick_count"] >= 1
        assert health["last_tick"] is not None
        assert health["interval_seconds"] == 0.1

        backend.stop()

    def test_double_start_ignored(self):
        """Double start is ignored."""
        backend = ThreadSchedulerBackend()
        backend.start(lambda: None, interval_seconds=1.0)
        backend.start(lambda: None, interval_seconds=1.0)

        assert backend.is_running
        backend.stop()

    def test_tick_exception_does_not_stop_loop(self):
        """A failing tick is logged and the loop keeps going."""
        backend = ThreadSchedulerBackend()
        calls = []

        def tick():
            calls.append(1)
            raise RuntimeError("tick failed")

        backend.start(tick, interval_seconds=0.05)
        time.sleep(0.25)
        backend.stop()
        assert len(calls) >= 2

    def test_wait_returns_after_stop(self):
        backend = ThreadSchedulerBackend()
        backend.start(lambda: None, interval_seconds=1.0)
        assert backend.wait(0.01) is False
        backend.stop()
        assert backend.wait(0.01) is True

    def test_stop_when_not_started(self):
        ThreadSchedulerBackend().stop()


class TestCreateBackend:
    """Backend factory."""

    def test_thread(self):
        assert isinstance(create_backend("thread"), ThreadSchedulerBackend)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_backend("celery")

    def test_apscheduler(self):
        pytest.importorskip("apscheduler")
        backend = create_backend("apscheduler")
        assert backend.name == "apscheduler"
        assert backend.health()["healthy"] is False


def test_backend_health_to_dict():
    health = BackendHealth(healthy=True, backend="thread", tick_count=3, extra={"interval_seconds": 30.0})
    assert health.to_dict() == {
        "healthy": True,
        "backend": "thread",
        "tick_count": 3,
        "last_tick": None,
        "interval_seconds": 30.0,
    }
