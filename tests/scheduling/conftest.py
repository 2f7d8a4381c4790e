"""Pytest fixtures for scheduling tests."""

import pytest

from chronicle.scheduling import JobCreate, JobLedger, SchedulerService


@pytest.fixture
def ledger(conn):
    """JobLedger over the in-memory test database."""
    return JobLedger(conn)


@pytest.fixture
def nightly_spec():
    return JobCreate("night_compile", "night-compiler", "0 2 * * *", timezone="America/Los_Angeles")


@pytest.fixture
def scheduler_service(ledger, now):
    """SchedulerService without a backend, on a fixed clock."""
    return SchedulerService(ledger, clock=lambda: now, misfire_grace_seconds=300)
