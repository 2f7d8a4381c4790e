"""Explicit per-item and per-stage outcomes.

Every stage reports what it did to each row instead of relying on
"the marker was not advanced" as an implicit retry signal:

- ``applied``  — the row was changed as intended
- ``skipped``  — the row was looked at and deliberately left (with a reason)
- ``retry``    — a failure left the row's markers untouched; the next
  firing selects it again
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ItemOutcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    RETRY = "retry"


@dataclass(frozen=True)
class ItemResult:
    item_id: int | str
    outcome: ItemOutcome
    reason: str | None = None

    @classmethod
    def applied(cls, item_id: int | str, reason: str | None = None) -> ItemResult:
        return cls(item_id, ItemOutcome.APPLIED, reason)

    @classmethod
    def skipped(cls, item_id: int | str, reason: str) -> ItemResult:
        return cls(item_id, ItemOutcome.SKIPPED, reason)

    @classmethod
    def retry(cls, item_id: int | str, reason: str) -> ItemResult:
        return cls(item_id, ItemOutcome.RETRY, reason)

    @property
    def retry_eligible(self) -> bool:
        return self.outcome is ItemOutcome.RETRY


@dataclass
class StageResult:
    """Outcome of one stage run (capture, reclassify, dedup, compile, ...)."""

    stage: str
    items: list[ItemResult] = field(default_factory=list)
    counters: dict[str, int] = field(default_factory=dict)

    def add(self, result: ItemResult) -> ItemResult:
        self.items.append(result)
        return result

    def bump(self, counter: str, by: int = 1) -> None:
        self.counters[counter] = self.counters.get(counter, 0) + by

    def count(self, outcome: ItemOutcome) -> int:
        return sum(1 for r in self.items if r.outcome is outcome)

    @property
    def applied(self) -> int:
        return self.count(ItemOutcome.APPLIED)

    @property
    def skipped(self) -> int:
        return self.count(ItemOutcome.SKIPPED)

    @property
    def retry(self) -> int:
        return self.count(ItemOutcome.RETRY)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "applied": self.applied,
            "skipped": self.skipped,
            "retry": self.retry,
        }
        data.update(self.counters)
        failures = [
            {"item_id": r.item_id, "reason": r.reason} for r in self.items if r.retry_eligible
        ]
        if failures:
            data["failures"] = failures[:20]
        return data


__all__ = ["ItemOutcome", "ItemResult", "StageResult"]
