"""Correction (review task) repository.

Tags:
    chronicle, repository, corrections
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from chronicle.core.enums import CorrectionStatus, CorrectionType
from chronicle.core.models import CorrectionRecord
from chronicle.core.repository import BaseRepository, dump_json, load_json, row_to_model
from chronicle.core.timestamps import to_iso8601, utc_now

from ._helpers import _build_where


class CorrectionRepository(BaseRepository):
    """CRUD for ``chronicle_corrections``."""

    TABLE = "chronicle_corrections"

    def create(
        self,
        item_type: str,
        item_id: int,
        correction_type: str,
        details: dict[str, Any] | None = None,
        *,
        created_by: str | None = None,
        now: datetime | None = None,
    ) -> CorrectionRecord:
        correction_id = self.insert(
            self.TABLE,
            {
                "item_type": item_type,
                "item_id": item_id,
                "correction_type": correction_type,
                "status": CorrectionStatus.PENDING.value,
                "details": dump_json(details or {}),
                "created_by": created_by,
                "created_at": to_iso8601(now or utc_now()),
            },
        )
        self.commit()
        return self._require(self.get(correction_id), correction_id)

    def get(self, correction_id: int) -> CorrectionRecord | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (correction_id,))
        return self._to_model(row) if row else None

    def list_corrections(
        self,
        *,
        status: str | None = None,
        item_type: str | None = None,
        correction_type: str | None = None,
        limit: int = 100,
    ) -> list[CorrectionRecord]:
        where, params = _build_where(
            {"status": status, "item_type": item_type, "correction_type": correction_type}
        )
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE {where} ORDER BY created_at DESC, id DESC LIMIT ?",
            (*params, limit),
        )
        return [self._to_model(r) for r in rows]

    def pending_merge_members(self, item_type: str) -> set[int]:
        """Ids already covered by a pending merge, as primary or as duplicate."""
        rows = self.query(
            f"SELECT item_id, details FROM {self.TABLE} "
            f"WHERE item_type = ? AND correction_type = ? AND status = ?",
            (item_type, CorrectionType.MERGE.value, CorrectionStatus.PENDING.value),
        )
        members: set[int] = set()
        for row in rows:
            members.add(int(row["item_id"]))
            details = load_json(row["details"]) or {}
            members.update(int(d["id"]) for d in details.get("duplicates", []) if "id" in d)
        return members

    def resolve(
        self,
        correction_id: int,
        status: str,
        *,
        applied_by: str | None = None,
        now: datetime | None = None,
    ) -> int:
        changed = self.update(
            self.TABLE,
            correction_id,
            {
                "status": status,
                "applied_by": applied_by,
                "applied_at": to_iso8601(now or utc_now()),
            },
        )
        self.commit()
        return changed

    def purge_resolved(self, before: str) -> int:
        """Delete applied/rejected corrections created before *before*."""
        cursor = self.execute(
            f"DELETE FROM {self.TABLE} WHERE status IN (?, ?) AND created_at < ?",
            (CorrectionStatus.APPLIED.value, CorrectionStatus.REJECTED.value, before),
        )
        self.commit()
        return cursor.rowcount

    @staticmethod
    def _to_model(row: dict[str, Any]) -> CorrectionRecord:
        return row_to_model(CorrectionRecord, row, json_fields=("details",))
