"""Job Ledger — persisted recurring jobs and their last run.

One row per ``(job_type, job_name)``. The row is the sole authority for
"is this job running": :meth:`JobLedger.try_mark_running` is a single
conditional UPDATE, so two firings racing for the same job cannot both
win, whichever process they come from.

    idle ──┐
    completed ─┼─ try_mark_running ─► running ─┬─ mark_completed ─► completed
    failed ──┘                                 └─ mark_failed ────► failed

``skipped`` is never written here; a lost compare-and-swap leaves the row
exactly as it was.

Tags:
    chronicle, scheduling, ledger, cron, croniter
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from chronicle.core.enums import JobStatus
from chronicle.core.errors import ScheduleError
from chronicle.core.models import ScheduleJob
from chronicle.core.repository import BaseRepository, dump_json, row_to_model
from chronicle.core.timestamps import ensure_utc, to_iso8601, utc_now

logger = logging.getLogger(__name__)

INTERRUPTED_ERROR = "interrupted: process stopped while the job was running"


@dataclass
class JobCreate:
    """DTO for registering a recurring job."""

    job_type: str
    job_name: str
    cron_expression: str
    timezone: str = "UTC"
    enabled: bool = True
    config: dict[str, Any] = field(default_factory=dict)


def compute_next_run(cron_expression: str, after: datetime, timezone: str = "UTC") -> datetime:
    """Next firing of *cron_expression* strictly after *after*, in UTC.

    The rule is evaluated in *timezone* so ``0 2 * * *`` means 02:00 local
    time across DST changes.

    Raises:
        ScheduleError: invalid expression or unknown zone.
    """
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ScheduleError(f"Unknown time zone: {timezone}", cause=e) from e

    if not croniter.is_valid(cron_expression):
        raise ScheduleError(f"Invalid cron expression: {cron_expression!r}")

    after_local = ensure_utc(after).astimezone(tz)
    next_run = croniter(cron_expression, after_local).get_next(datetime)
    if next_run.tzinfo is None:
        next_run = next_run.replace(tzinfo=tz)
    return next_run.astimezone(UTC)


class JobLedger(BaseRepository):
    """Repository for ``chronicle_schedule_jobs``."""

    TABLE = "chronicle_schedule_jobs"

    # === Registration ===

    def register(self, spec: JobCreate, *, now: datetime | None = None) -> ScheduleJob:
        """Insert the job unless ``(job_type, job_name)`` already exists.

        Seeding is idempotent: an existing row (including its status and
        history) is returned unchanged.
        """
        now = now or utc_now()
        next_run = compute_next_run(spec.cron_expression, now, spec.timezone)
        stamp = to_iso8601(now)
        cursor = self.execute(
            f"""
            INSERT INTO {self.TABLE} (
                job_type, job_name, cron_expression, timezone, enabled, status,
                next_run_at, config, created_at, updated_at
            ) VALUES ({self.ph(10)})
            ON CONFLICT DO NOTHING
            """,
            (
                spec.job_type,
                spec.job_name,
                spec.cron_expression,
                spec.timezone,
                1 if spec.enabled else 0,
                JobStatus.IDLE.value,
                to_iso8601(next_run),
                dump_json(spec.config),
                stamp,
                stamp,
            ),
        )
        self.commit()
        if cursor.rowcount == 1:
            logger.info(f"Registered job {spec.job_name} ({spec.job_type}) cron={spec.cron_expression!r}")
        else:
            logger.debug(f"Job {spec.job_name} already registered")

        job = self.get_by_name(spec.job_name)
        if job is None or job.job_type != spec.job_type:
            raise ScheduleError(
                f"Job name {spec.job_name!r} is already registered for another job type"
            )
        return job

    # === Reads ===

    def get(self, job_id: int) -> ScheduleJob | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (job_id,))
        return self._row_to_job(row) if row else None

    def get_by_name(self, job_name: str) -> ScheduleJob | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE job_name = ?", (job_name,))
        return self._row_to_job(row) if row else None

    def list_all(self) -> list[ScheduleJob]:
        rows = self.query(f"SELECT * FROM {self.TABLE} ORDER BY job_type, job_name")
        return [self._row_to_job(r) for r in rows]

    def list_enabled(self) -> list[ScheduleJob]:
        rows = self.query(f"SELECT * FROM {self.TABLE} WHERE enabled = 1 ORDER BY job_name")
        return [self._row_to_job(r) for r in rows]

    def count_enabled(self) -> int:
        row = self.query_one(f"SELECT COUNT(*) AS cnt FROM {self.TABLE} WHERE enabled = 1")
        return int((row or {}).get("cnt", 0))

    def get_due_jobs(self, now: datetime) -> list[ScheduleJob]:
        """Enabled jobs whose ``next_run_at`` is at or before *now*."""
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE enabled = 1 AND next_run_at IS NOT NULL AND next_run_at <= ? "
            f"ORDER BY next_run_at, id",
            (to_iso8601(now),),
        )
        return [self._row_to_job(r) for r in rows]

    # === Run transitions ===

    def try_mark_running(self, job_name: str, now: datetime) -> bool:
        """Compare-and-swap into ``running``.

        Returns True only if this call changed the row; a job that is
        already running (or does not exist) is left untouched.
        """
        stamp = to_iso8601(now)
        cursor = self.execute(
            f"UPDATE {self.TABLE} SET status = ?, last_run_at = ?, updated_at = ? "
            f"WHERE job_name = ? AND status != ?",
            (JobStatus.RUNNING.value, stamp, stamp, job_name, JobStatus.RUNNING.value),
        )
        self.commit()
        return cursor.rowcount == 1

    def mark_completed(self, job_name: str, result: dict[str, Any] | None, now: datetime) -> None:
        self._finish(job_name, JobStatus.COMPLETED, now, result=result, error=None)

    def mark_failed(self, job_name: str, error: str, now: datetime) -> None:
        self._finish(job_name, JobStatus.FAILED, now, result=None, error=error)

    def _finish(
        self,
        job_name: str,
        status: JobStatus,
        now: datetime,
        *,
        result: dict[str, Any] | None,
        error: str | None,
    ) -> None:
        job = self.get_by_name(job_name)
        if job is None:
            raise KeyError(f"Job not found: {job_name}")
        next_run = compute_next_run(job.cron_expression, now, job.timezone)
        stamp = to_iso8601(now)
        self.execute(
            f"UPDATE {self.TABLE} SET status = ?, last_result = ?, last_error = ?, "
            f"next_run_at = ?, updated_at = ? WHERE job_name = ?",
            (status.value, dump_json(result), error, to_iso8601(next_run), stamp, job_name),
        )
        self.commit()

    def reschedule(self, job_name: str, now: datetime) -> datetime | None:
        """Advance ``next_run_at`` past *now* without running the job."""
        job = self.get_by_name(job_name)
        if job is None:
            return None
        next_run = compute_next_run(job.cron_expression, now, job.timezone)
        self.execute(
            f"UPDATE {self.TABLE} SET next_run_at = ?, updated_at = ? WHERE job_name = ?",
            (to_iso8601(next_run), to_iso8601(now), job_name),
        )
        self.commit()
        return next_run

    def recover_interrupted(
        self, now: datetime | None = None, *, stale_after: timedelta | None = None
    ) -> int:
        """Mark jobs left ``running`` by a dead process as ``failed``.

        With *stale_after*, only runs started at least that long before *now*
        are touched, so a live run held by another process keeps its guard.
        Without it every ``running`` row is recovered, which is only safe
        while no other process is running jobs against the store.
        """
        now = now or utc_now()
        sql = f"UPDATE {self.TABLE} SET status = ?, last_error = ?, updated_at = ? WHERE status = ?"
        params: tuple = (JobStatus.FAILED.value, INTERRUPTED_ERROR, to_iso8601(now), JobStatus.RUNNING.value)
        if stale_after is not None:
            sql += " AND last_run_at <= ?"
            params += (to_iso8601(now - stale_after),)
        cursor = self.execute(sql, params)
        self.commit()
        if cursor.rowcount:
            logger.warning(f"Recovered {cursor.rowcount} interrupted job(s)")
        return cursor.rowcount

    def set_enabled(self, job_name: str, enabled: bool, *, now: datetime | None = None) -> bool:
        """Pause or resume a job. Resuming recomputes ``next_run_at`` from *now*."""
        job = self.get_by_name(job_name)
        if job is None:
            return False
        now = now or utc_now()
        next_run = job.next_run_at
        if enabled:
            next_run = to_iso8601(compute_next_run(job.cron_expression, now, job.timezone))
        self.execute(
            f"UPDATE {self.TABLE} SET enabled = ?, next_run_at = ?, updated_at = ? WHERE job_name = ?",
            (1 if enabled else 0, next_run, to_iso8601(now), job_name),
        )
        self.commit()
        return True

    # === Helpers ===

    @staticmethod
    def _row_to_job(row: dict[str, Any]) -> ScheduleJob:
        return row_to_model(ScheduleJob, row, json_fields=("last_result", "config"))


__all__ = ["JobCreate", "JobLedger", "compute_next_run", "INTERRUPTED_ERROR"]
