"""
Job Ledger & Scheduler for Chronicle.

Manifesto:
    Recurring maintenance jobs must survive restarts, never overlap with
    themselves, and leave an operator-visible trail. All three come from
    one persisted ledger row per job:

    - **Persisted:** status, last/next run, last result or error
    - **Overlap-safe:** compare-and-swap on ``status`` before every run
    - **Zone-aware:** cron rules evaluated in one configured time zone
    - **No catch-up:** a missed window is skipped, not queued

Architecture:
    ::

        ┌──────────────┐ tick ┌──────────────────┐  CAS / result ┌───────────┐
        │ Thread / APS │ ───► │ SchedulerService │ ────────────► │ JobLedger │
        │   backend    │      │  handlers by type│               │  (table)  │
        └──────────────┘      └────────┬─────────┘               └───────────┘
                                       │ handler(job, now)
                                       ▼
                              daytime / nightly pipeline

Examples:
    >>> from chronicle.scheduling import create_scheduler, JobCreate
    >>> scheduler = create_scheduler(conn)
    >>> scheduler.register_handler("night_compile", handler)
    >>> scheduler.register(JobCreate("night_compile", "night-compiler", "0 2 * * *"))
    >>> scheduler.trigger("night-compiler")
"""

from __future__ import annotations

from .protocol import BackendHealth, SchedulerBackend, TickCallback
from .repository import INTERRUPTED_ERROR, JobCreate, JobLedger, compute_next_run
from .service import (
    JobHandler,
    JobRunOutcome,
    SchedulerHealth,
    SchedulerService,
    SchedulerStats,
)
from .thread_backend import ThreadSchedulerBackend

# APSchedulerBackend:  pip install chronicle[apscheduler]


def __getattr__(name: str):  # noqa: N807
    """Lazy import optional backends to avoid ImportError when extras are missing."""
    if name == "APSchedulerBackend":
        from .apscheduler_backend import APSchedulerBackend

        return APSchedulerBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def create_backend(name: str = "thread") -> SchedulerBackend:
    """Instantiate a timing backend by name (``thread`` or ``apscheduler``)."""
    if name == "thread":
        return ThreadSchedulerBackend()
    if name == "apscheduler":
        from .apscheduler_backend import APSchedulerBackend

        return APSchedulerBackend()
    raise ValueError(f"Unknown scheduler backend: {name}")


def create_scheduler(
    conn,
    *,
    backend: str = "thread",
    interval_seconds: float = 30.0,
    misfire_grace_seconds: int = 300,
    stale_run_seconds: int = 21600,
) -> SchedulerService:
    """Factory function to create a scheduler service wired to *conn*.

    Example:
        >>> scheduler = create_scheduler(conn)
        >>> scheduler.start()
    """
    return SchedulerService(
        JobLedger(conn),
        create_backend(backend),
        interval_seconds=interval_seconds,
        misfire_grace_seconds=misfire_grace_seconds,
        stale_run_seconds=stale_run_seconds,
    )


__all__ = [
    # Protocol
    "SchedulerBackend",
    "BackendHealth",
    "TickCallback",
    # Backends
    "ThreadSchedulerBackend",
    "APSchedulerBackend",
    "create_backend",
    # Ledger
    "JobLedger",
    "JobCreate",
    "compute_next_run",
    "INTERRUPTED_ERROR",
    # Service
    "JobHandler",
    "JobRunOutcome",
    "SchedulerService",
    "SchedulerStats",
    "SchedulerHealth",
    "create_scheduler",
]
