"""APScheduler-based scheduler backend.

Alternative timing backend using APScheduler's ``BackgroundScheduler``.
Only the tick loop is delegated; cron evaluation and the overlap guard stay
in the Job Ledger.

Requires the ``[apscheduler]`` extra::

    pip install chronicle[apscheduler]
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from .protocol import TickCallback

logger = logging.getLogger(__name__)


def _require_apscheduler():
    """Validate that apscheduler is installed."""
    try:
        from apscheduler.schedulers.background import BackgroundScheduler
    except ImportError:
        raise ImportError(
            "APScheduler is required for APSchedulerBackend. "
            "Install it with: pip install chronicle[apscheduler]"
        ) from None
    return BackgroundScheduler


class APSchedulerBackend:
    """APScheduler-based scheduler backend.

    Registers a single interval job with ``max_instances=1`` and
    ``coalesce=True`` so late wake-ups collapse into one tick.
    """

    name: str = "apscheduler"

    def __init__(self) -> None:
        BackgroundScheduler = _require_apscheduler()  # noqa: N806
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._tick_count: int = 0
        self._last_tick: datetime | None = None

    def start(
        self,
        tick_callback: TickCallback,
        interval_seconds: float = 30.0,
    ) -> None:
        """Register the tick job and start the APScheduler loop."""

        def _tick_wrapper() -> None:
            self._tick_count += 1
            self._last_tick = datetime.now(UTC)
            try:
                tick_callback()
            except Exception:
                logger.exception("APScheduler tick failed")

        self._scheduler.add_job(
            _tick_wrapper,
            "interval",
            seconds=interval_seconds,
            id="chronicle_scheduler_tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("APSchedulerBackend started (interval=%.1fs)", interval_seconds)

    def stop(self) -> None:
        """Stop the APScheduler loop, waiting for the current tick."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            logger.info("APSchedulerBackend stopped")

    def health(self) -> dict[str, Any]:
        running = bool(getattr(self._scheduler, "running", False))
        return {
            "healthy": running,
            "backend": self.name,
            "tick_count": self._tick_count,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "scheduled_jobs": len(self._scheduler.get_jobs()) if running else 0,
        }
