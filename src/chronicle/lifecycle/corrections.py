"""Apply, reject and purge review tasks."""

from __future__ import annotations

from datetime import datetime

from chronicle.core.enums import CorrectionStatus, CorrectionType, ItemType
from chronicle.core.errors import CorrectionError, RecordNotFoundError
from chronicle.core.logging import get_logger
from chronicle.core.models import CorrectionRecord
from chronicle.core.protocols import Connection
from chronicle.core.repositories import (
    CorrectionRepository,
    DocumentRepository,
    JournalRepository,
    KnowledgeRepository,
)
from chronicle.core.timestamps import iso_ago, utc_now

logger = get_logger(__name__)

# Applied by a human after reading the details; the applier only records that.
MANUAL_TYPES = frozenset({CorrectionType.REWORD.value, CorrectionType.MERGE.value})


class CorrectionApplier:
    """Resolve pending corrections against the rows they point at."""

    def __init__(self, conn: Connection, *, actor: str = "operator") -> None:
        self.conn = conn
        self.actor = actor
        self.corrections = CorrectionRepository(conn)
        self.knowledge = KnowledgeRepository(conn)
        self.journal = JournalRepository(conn)
        self.documents = DocumentRepository(conn)

    def _get(self, correction_id: int) -> CorrectionRecord:
        correction = self.corrections.get(correction_id)
        if correction is None:
            raise RecordNotFoundError(CorrectionRepository.TABLE, correction_id)
        return correction

    def _pending(self, correction_id: int) -> CorrectionRecord:
        correction = self._get(correction_id)
        if correction.status != CorrectionStatus.PENDING.value:
            raise CorrectionError(
                f"Correction {correction_id} is already {correction.status}",
                context={"correction_id": correction_id},
            )
        return correction

    def apply(self, correction_id: int, *, now: datetime | None = None) -> CorrectionRecord:
        """Apply a pending correction and return the resolved record.

        ``move`` and ``remove`` change the referenced row, ``note`` is simply
        acknowledged, ``reword`` and ``merge`` are marked ``reviewed``.

        Raises:
            RecordNotFoundError: unknown correction id
            CorrectionError: correction not pending, ``move`` without
                ``details.target_project``, or ``remove`` of a document that
                archived entries still point at
        """
        correction = self._pending(correction_id)
        kind = correction.correction_type

        if kind in MANUAL_TYPES:
            status = CorrectionStatus.REVIEWED
        else:
            if kind == CorrectionType.MOVE.value:
                self._move(correction)
            elif kind == CorrectionType.REMOVE.value:
                self._remove(correction)
            status = CorrectionStatus.APPLIED

        self.corrections.resolve(correction_id, status.value, applied_by=self.actor, now=now)
        logger.info(
            "correction_resolved",
            correction_id=correction_id,
            correction_type=kind,
            status=status.value,
            actor=self.actor,
        )
        return self._get(correction_id)

    def reject(self, correction_id: int, *, now: datetime | None = None) -> CorrectionRecord:
        self._pending(correction_id)
        self.corrections.resolve(
            correction_id, CorrectionStatus.REJECTED.value, applied_by=self.actor, now=now
        )
        logger.info("correction_rejected", correction_id=correction_id, actor=self.actor)
        return self._get(correction_id)

    def purge_resolved(self, retention_days: int = 30, *, now: datetime | None = None) -> int:
        """Delete applied and rejected corrections older than the retention window."""
        purged = self.corrections.purge_resolved(iso_ago(now or utc_now(), days=retention_days))
        if purged:
            logger.info("corrections_purged", count=purged, retention_days=retention_days)
        return purged

    # === Row changes ===

    def _move(self, correction: CorrectionRecord) -> None:
        target = correction.details.get("target_project")
        if not target:
            raise CorrectionError(
                f"Move correction {correction.id} has no target_project",
                context={"correction_id": correction.id},
            )
        if correction.item_type == ItemType.KNOWLEDGE.value:
            changed = self.knowledge.move(correction.item_id, target)
        elif correction.item_type == ItemType.JOURNAL.value:
            changed = self.journal.move(correction.item_id, target)
        else:
            raise CorrectionError(
                f"Cannot move a {correction.item_type} item",
                context={"correction_id": correction.id},
            )
        self._check_changed(correction, changed)
        self.conn.commit()

    def _remove(self, correction: CorrectionRecord) -> None:
        if correction.item_type == ItemType.KNOWLEDGE.value:
            changed = self.knowledge.remove(correction.item_id)
        elif correction.item_type == ItemType.DOC.value:
            # archived sources must keep a reachable back-reference
            references = self.documents.reference_count(correction.item_id)
            if references:
                raise CorrectionError(
                    f"Document {correction.item_id} is referenced by {references} archived entries",
                    context={"correction_id": correction.id, "references": references},
                )
            changed = self.documents.remove(correction.item_id)
        else:
            # Journal history is archived, never deleted.
            raise CorrectionError(
                "Journal entries cannot be removed",
                context={"correction_id": correction.id},
            )
        self._check_changed(correction, changed)
        self.conn.commit()

    @staticmethod
    def _check_changed(correction: CorrectionRecord, changed: int) -> None:
        if changed == 0:
            raise RecordNotFoundError(correction.item_type, correction.item_id)


__all__ = ["CorrectionApplier", "MANUAL_TYPES"]
