"""
Scheduler service — cron-driven firing of ledger jobs.

Manifesto:
    The scheduler owns three things and nothing else: deciding which
    ledger rows are due, winning the overlap guard, and recording the
    outcome. Pipelines are plain callables registered per ``job_type``;
    they never touch the ledger.

Architecture:
    ::

        backend tick ──► tick(now)
                           │
                           ├─ get_due_jobs(now)
                           │
                           └─ for each due job
                                ├─ past misfire grace? ─► reschedule (skip)
                                └─ trigger(job_name)
                                     ├─ try_mark_running ✗ ─► skipped (logged)
                                     └─ try_mark_running ✓
                                          ├─ handler(job, now)
                                          ├─ ok    ─► mark_completed(result)
                                          └─ raise ─► mark_failed(error)

    A missed window is skipped, never queued: there is no catch-up.
    A failed run is not retried; the next firing is purely cron-driven.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from chronicle.core.enums import JobStatus
from chronicle.core.errors import ScheduleError, describe_error
from chronicle.core.logging import LogContext
from chronicle.core.models import ScheduleJob
from chronicle.core.timestamps import from_iso8601, utc_now

from .protocol import SchedulerBackend
from .repository import JobCreate, JobLedger

logger = logging.getLogger(__name__)

JobHandler = Callable[[ScheduleJob, datetime], "dict[str, Any] | None"]


@dataclass
class JobRunOutcome:
    """What happened to one trigger of one job."""

    job_name: str
    status: JobStatus
    result: dict[str, Any] | None = None
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def duration_ms(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_name": self.job_name,
            "status": self.status.value,
            "result": self.result,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_ms": self.duration_ms,
        }


@dataclass
class SchedulerStats:
    """Statistics for scheduler service."""

    tick_count: int = 0
    jobs_completed: int = 0
    jobs_failed: int = 0
    jobs_skipped: int = 0
    jobs_missed: int = 0
    last_tick: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick_count": self.tick_count,
            "jobs_completed": self.jobs_completed,
            "jobs_failed": self.jobs_failed,
            "jobs_skipped": self.jobs_skipped,
            "jobs_missed": self.jobs_missed,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "last_error": self.last_error,
        }


@dataclass
class SchedulerHealth:
    """Health status for scheduler service."""

    healthy: bool
    backend: dict[str, Any]
    jobs_enabled: int = 0
    jobs_running: int = 0
    last_tick: datetime | None = None
    stats: SchedulerStats = field(default_factory=SchedulerStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "jobs_enabled": self.jobs_enabled,
            "jobs_running": self.jobs_running,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "stats": self.stats.to_dict(),
        }


class SchedulerService:
    """Cron firing, overlap guard and outcome recording over a :class:`JobLedger`.

    Example:
        >>> ledger = JobLedger(conn)
        >>> service = SchedulerService(ledger, ThreadSchedulerBackend())
        >>> service.register_handler("night_compile", nightly.run_job)
        >>> service.register(JobCreate("night_compile", "night-compiler", "0 2 * * *"))
        >>> service.start()
    """

    def __init__(
        self,
        ledger: JobLedger,
        backend: SchedulerBackend | None = None,
        *,
        interval_seconds: float = 30.0,
        misfire_grace_seconds: int = 300,
        stale_run_seconds: int = 21600,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize scheduler service.

        Args:
            ledger: Job Ledger repository
            backend: Timing backend (optional for manual/test use)
            interval_seconds: Tick interval
            misfire_grace_seconds: How late a firing may start before it is skipped
            stale_run_seconds: Age after which a ``running`` row is treated as interrupted on start
            clock: Source of "now" when callers do not pass one
        """
        self.ledger = ledger
        self.backend = backend
        self.interval = interval_seconds
        self.misfire_grace_seconds = misfire_grace_seconds
        self.stale_run_seconds = stale_run_seconds
        self._clock = clock
        self._handlers: dict[str, JobHandler] = {}
        self._stats = SchedulerStats()
        self._running = False

    # === Registration ===

    def register_handler(self, job_type: str, handler: JobHandler) -> None:
        """Bind the callable that runs jobs of *job_type*."""
        self._handlers[job_type] = handler
        logger.debug(f"Handler registered for job_type={job_type}")

    def register(self, spec: JobCreate, *, now: datetime | None = None) -> ScheduleJob:
        """Seed a ledger row (idempotent)."""
        return self.ledger.register(spec, now=now or self._clock())

    @property
    def job_types(self) -> list[str]:
        return sorted(self._handlers)

    # === Lifecycle ===

    def start(self) -> None:
        """Recover stale interrupted runs, then start the backend tick loop."""
        if self._running:
            logger.warning("SchedulerService already running")
            return
        if self.backend is None:
            raise ScheduleError("SchedulerService.start() requires a backend")

        self.ledger.recover_interrupted(self._clock(), stale_after=timedelta(seconds=self.stale_run_seconds))
        logger.info(
            f"Starting SchedulerService with {self.backend.name} backend "
            f"(interval={self.interval}s)"
        )
        self.backend.start(self._on_tick, self.interval)
        self._running = True

    def stop(self) -> None:
        """Stop the scheduler service gracefully."""
        if not self._running:
            return
        logger.info("Stopping SchedulerService...")
        if self.backend is not None:
            self.backend.stop()
        self._running = False
        logger.info("SchedulerService stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    # === Tick Processing ===

    def _on_tick(self) -> None:
        self.tick()

    def tick(self, now: datetime | None = None) -> list[JobRunOutcome]:
        """Single scheduler tick — fire every due job once.

        Jobs are processed sequentially; an error on one job is logged and
        does not stop the others.
        """
        now = now or self._clock()
        self._stats.tick_count += 1
        self._stats.last_tick = now

        try:
            due_jobs = self.ledger.get_due_jobs(now)
        except Exception as e:
            self._stats.last_error = describe_error(e)
            logger.exception(f"Tick failed: {e}")
            return []

        if not due_jobs:
            logger.debug("No jobs due")
            return []

        logger.info(f"Found {len(due_jobs)} due job(s)")
        outcomes: list[JobRunOutcome] = []
        for job in due_jobs:
            try:
                outcome = self._process_job(job, now)
            except Exception as e:
                self._stats.last_error = describe_error(e)
                logger.exception(f"Job {job.job_name} could not be processed: {e}")
                continue
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def _process_job(self, job: ScheduleJob, now: datetime) -> JobRunOutcome | None:
        if not self._within_grace_period(job, now):
            next_run = self.ledger.reschedule(job.job_name, now)
            self._stats.jobs_missed += 1
            logger.warning(
                f"Job {job.job_name} missed its window (due {job.next_run_at}), "
                f"next run {next_run.isoformat() if next_run else None}"
            )
            return None
        return self.trigger(job.job_name, now=now)

    def _within_grace_period(self, job: ScheduleJob, now: datetime) -> bool:
        scheduled = from_iso8601(job.next_run_at)
        if scheduled is None:
            return True
        grace = int(job.config.get("misfire_grace_seconds", self.misfire_grace_seconds))
        return now <= scheduled + timedelta(seconds=grace)

    # === Manual Operations ===

    def trigger(self, job_name: str, *, now: datetime | None = None) -> JobRunOutcome:
        """Run *job_name* now, unless it is already running.

        Raises:
            KeyError: If the job is not in the ledger
            ScheduleError: If no handler is registered for its job_type
        """
        job = self.ledger.get_by_name(job_name)
        if job is None:
            raise KeyError(f"Job not found: {job_name}")
        handler = self._handlers.get(job.job_type)
        if handler is None:
            raise ScheduleError(f"No handler registered for job_type {job.job_type!r}").with_context(
                job_name=job_name
            )

        started = now or self._clock()
        if not self.ledger.try_mark_running(job_name, started):
            self._stats.jobs_skipped += 1
            logger.info(f"Job {job_name} is already running, skipping this firing")
            return JobRunOutcome(job_name=job_name, status=JobStatus.SKIPPED, started_at=started)

        with LogContext(job_name=job_name, job_type=job.job_type):
            logger.info(f"Job {job_name} started")
            try:
                result = handler(job, started) or {}
                finished = now or self._clock()
                self.ledger.mark_completed(job_name, result, finished)
            except Exception as e:
                finished = now or self._clock()
                error = describe_error(e)
                logger.exception(f"Job {job_name} failed: {e}")
                self._record_failure(job_name, error, finished)
                return JobRunOutcome(
                    job_name=job_name,
                    status=JobStatus.FAILED,
                    error=error,
                    started_at=started,
                    finished_at=finished,
                )

            self._stats.jobs_completed += 1
            logger.info(f"Job {job_name} completed")
            return JobRunOutcome(
                job_name=job_name,
                status=JobStatus.COMPLETED,
                result=result,
                started_at=started,
                finished_at=finished,
            )

    def _record_failure(self, job_name: str, error: str, finished: datetime) -> None:
        # the row must leave ``running`` or every later firing loses the CAS
        self._stats.jobs_failed += 1
        self._stats.last_error = error
        self.ledger.rollback()
        self.ledger.mark_failed(job_name, error, finished)

    def pause(self, job_name: str) -> bool:
        """Disable cron firing for *job_name*; False if not found."""
        paused = self.ledger.set_enabled(job_name, False, now=self._clock())
        if paused:
            logger.info(f"Paused job: {job_name}")
        return paused

    def resume(self, job_name: str) -> bool:
        """Re-enable *job_name*; the next firing is computed from now."""
        resumed = self.ledger.set_enabled(job_name, True, now=self._clock())
        if resumed:
            logger.info(f"Resumed job: {job_name}")
        return resumed

    # === Health & Stats ===

    def health(self) -> SchedulerHealth:
        backend_health = self.backend.health() if self.backend else {"healthy": False, "backend": None}
        jobs = self.ledger.list_all()
        return SchedulerHealth(
            healthy=self._running and bool(backend_health.get("healthy", False)),
            backend=backend_health,
            jobs_enabled=sum(1 for j in jobs if j.enabled),
            jobs_running=sum(1 for j in jobs if j.status == JobStatus.RUNNING.value),
            last_tick=self._stats.last_tick,
            stats=self._stats,
        )

    def get_stats(self) -> SchedulerStats:
        return self._stats

    def reset_stats(self) -> None:
        self._stats = SchedulerStats()


__all__ = [
    "JobHandler",
    "JobRunOutcome",
    "SchedulerHealth",
    "SchedulerService",
    "SchedulerStats",
]
