"""Scheduler backend protocol: the timing half of the scheduler.

A backend only calls ``tick_callback`` every ``interval_seconds``. Deciding
which jobs are due, the overlap guard and ledger writes all live in
:class:`~chronicle.scheduling.service.SchedulerService`, so backends stay
interchangeable.

    ┌──────────────────┐  tick()   ┌───────────────────┐
    │ SchedulerBackend │ ────────► │ SchedulerService  │
    │ (thread / APS)   │           │  ledger + handlers│
    └──────────────────┘           └───────────────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

TickCallback = Callable[[], Any]


@runtime_checkable
class SchedulerBackend(Protocol):
    """Protocol for scheduler timing backends.

    Example:
        >>> class MyBackend:
        ...     name = "custom"
        ...
        ...     def start(self, tick_callback, interval_seconds=30.0):
        ...         my_timer.every(interval_seconds, tick_callback)
        ...
        ...     def stop(self):
        ...         my_timer.cancel()
        ...
        ...     def health(self) -> dict:
        ...         return {"healthy": True, "backend": "custom"}
    """

    name: str

    def start(
        self,
        tick_callback: TickCallback,
        interval_seconds: float = 30.0,
    ) -> None:
        """Start calling *tick_callback* every *interval_seconds*."""
        ...

    def stop(self) -> None:
        """Stop the loop; waits for the current tick to complete."""
        ...

    def health(self) -> dict[str, Any]:
        """Return at least ``healthy``, ``backend``, ``tick_count`` and ``last_tick``."""
        ...


@dataclass
class BackendHealth:
    """Structured backend health response."""

    healthy: bool
    backend: str
    tick_count: int = 0
    last_tick: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "tick_count": self.tick_count,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            **self.extra,
        }
