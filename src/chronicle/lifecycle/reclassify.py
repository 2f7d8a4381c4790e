"""
Reclassification Pass — re-validate knowledge categories.

Selects knowledge items this pass has not validated yet (cataloger unset or
a different identity), touched within the lookback window, oldest first, up
to a batch size. Each gets one classifier request. Whatever the verdict,
a successfully classified item is stamped with the pass identity so it is
never asked about again; a failed request leaves the item exactly as it
was, and it is selected again on the next firing.
"""

from __future__ import annotations

from datetime import datetime

from chronicle.core.enums import KNOWLEDGE_CATEGORIES
from chronicle.core.errors import CollaboratorError
from chronicle.core.logging import get_logger
from chronicle.core.models import KnowledgeItem
from chronicle.core.protocols import Connection
from chronicle.core.repositories import KnowledgeRepository
from chronicle.core.timestamps import iso_ago, utc_now
from chronicle.llm.collaborators import ClassificationRequest, Classifier, Verdict

from .results import ItemResult, StageResult

logger = get_logger(__name__)


class ReclassificationPass:
    """Reclassification stage of the daytime pipeline."""

    def __init__(
        self,
        conn: Connection,
        classifier: Classifier,
        *,
        identity: str,
        lookback_hours: int = 24,
        batch_size: int = 50,
        preview_chars: int = 300,
        vocabulary: tuple[str, ...] = KNOWLEDGE_CATEGORIES,
    ) -> None:
        self.conn = conn
        self.classifier = classifier
        self.identity = identity
        self.lookback_hours = lookback_hours
        self.batch_size = batch_size
        self.preview_chars = preview_chars
        self.vocabulary = vocabulary
        self.knowledge = KnowledgeRepository(conn)

    def build_request(self, item: KnowledgeItem) -> ClassificationRequest:
        preview = (item.summary or item.content or "")[: self.preview_chars]
        return ClassificationRequest(
            title=item.title,
            category=item.category,
            summary_preview=preview,
            vocabulary=self.vocabulary,
        )

    def run(self, now: datetime | None = None) -> StageResult:
        now = now or utc_now()
        since = iso_ago(now, hours=self.lookback_hours)
        result = StageResult("reclassify")

        items = self.knowledge.list_for_reclassification(self.identity, since, self.batch_size)
        for item in items:
            result.add(self._process(item, now, result))

        logger.info(
            "reclassify_finished",
            selected=len(items),
            recategorized=result.counters.get("recategorized", 0),
            confirmed=result.counters.get("confirmed", 0),
            retry=result.retry,
        )
        return result

    def _process(self, item: KnowledgeItem, now: datetime, result: StageResult) -> ItemResult:
        try:
            verdict = self.classifier.classify(self.build_request(item))
        except CollaboratorError as e:
            logger.warning("classify_failed", item_id=item.id, error=str(e))
            result.bump("classifier_errors")
            return ItemResult.retry(item.id, str(e))

        new_category, outcome = self._decide(item, verdict)
        try:
            self.knowledge.stamp_cataloger(
                item.id,
                self.identity,
                category=new_category,
                subcategory=verdict.subcategory if new_category else None,
                now=now,
            )
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            logger.warning("reclassify_write_failed", item_id=item.id, error=str(e))
            return ItemResult.retry(item.id, str(e))

        if new_category:
            result.bump("recategorized")
            logger.info(
                "item_recategorized",
                item_id=item.id,
                old=item.category,
                new=new_category,
                reason=verdict.reason,
            )
        else:
            result.bump("confirmed")
        return outcome

    def _decide(self, item: KnowledgeItem, verdict: Verdict) -> tuple[str | None, ItemResult]:
        """Return ``(category_to_write, outcome)``; ``None`` keeps the current one."""
        if not verdict.needs_change or verdict.category == item.category:
            return None, ItemResult.skipped(item.id, "category confirmed")
        if verdict.category not in self.vocabulary:
            return None, ItemResult.skipped(item.id, f"unknown category {verdict.category!r}")
        return verdict.category, ItemResult.applied(
            item.id, f"{item.category} -> {verdict.category}"
        )


__all__ = ["ReclassificationPass"]
