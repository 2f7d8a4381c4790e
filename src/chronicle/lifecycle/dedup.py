"""
Similarity Deduplicator — flag near-identical knowledge titles for review.

Similarity is the Jaccard index of lowercased, whitespace-split title
tokens. Within each category the newest N items are scanned newest first
in one greedy pass: the first unassigned item becomes a cluster primary,
every later unassigned item at or above the threshold joins that cluster
and drops out of further pairing. Clusters depend on scan order and are
not transitively closed; that is accepted.

Each non-trivial cluster becomes one pending ``merge`` correction against
its primary. The deduplicator never edits or deletes knowledge items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from chronicle.core.enums import CorrectionType, ItemType
from chronicle.core.logging import get_logger
from chronicle.core.models import KnowledgeItem
from chronicle.core.protocols import Connection
from chronicle.core.repositories import CorrectionRepository, KnowledgeRepository
from chronicle.core.timestamps import utc_now

from .results import ItemResult, StageResult

logger = get_logger(__name__)


def tokenize(text: str) -> set[str]:
    return set(text.lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    """``|A ∩ B| / |A ∪ B|`` over lowercased whitespace tokens.

    Two texts without any tokens score 0.0.

    >>> jaccard_similarity("Fix login bug", "Fix login bugs")
    0.5
    """
    tokens_a, tokens_b = tokenize(a), tokenize(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


@dataclass
class Cluster:
    primary: KnowledgeItem
    duplicates: list[tuple[KnowledgeItem, float]] = field(default_factory=list)

    def details(self) -> dict[str, Any]:
        return {
            "primary_title": self.primary.title,
            "category": self.primary.category,
            "duplicates": [
                {"id": item.id, "title": item.title, "similarity": round(score, 4)}
                for item, score in self.duplicates
            ],
            "auto_detected": True,
        }


def cluster_items(items: list[KnowledgeItem], threshold: float) -> list[Cluster]:
    """Greedy single-pass clustering in the given order.

    Only clusters with at least one duplicate are returned.
    """
    tokens = [tokenize(item.title) for item in items]
    assigned: set[int] = set()
    clusters: list[Cluster] = []

    for i, item in enumerate(items):
        if i in assigned:
            continue
        cluster = Cluster(primary=item)
        for j in range(i + 1, len(items)):
            if j in assigned:
                continue
            union = tokens[i] | tokens[j]
            score = len(tokens[i] & tokens[j]) / len(union) if union else 0.0
            if score >= threshold:
                cluster.duplicates.append((items[j], score))
                assigned.add(j)
        if cluster.duplicates:
            assigned.add(i)
            clusters.append(cluster)
    return clusters


class SimilarityDeduplicator:
    """Deduplication stage of the nightly pipeline."""

    def __init__(
        self,
        conn: Connection,
        *,
        identity: str,
        threshold: float = 0.85,
        window: int = 500,
    ) -> None:
        self.conn = conn
        self.identity = identity
        self.threshold = threshold
        self.window = window
        self.knowledge = KnowledgeRepository(conn)
        self.corrections = CorrectionRepository(conn)

    def run(self, now: datetime | None = None) -> StageResult:
        now = now or utc_now()
        result = StageResult("dedup")
        flagged = self.corrections.pending_merge_members(ItemType.KNOWLEDGE.value)

        for category in self.knowledge.list_categories():
            try:
                items = self.knowledge.newest_in_category(category, self.window)
                clusters = cluster_items(items, self.threshold)
            except Exception as e:
                logger.warning("dedup_category_failed", category=category, error=str(e))
                result.add(ItemResult.retry(f"category:{category}", str(e)))
                continue
            result.bump("scanned", len(items))
            for cluster in clusters:
                result.add(self._flag(cluster, flagged, now, result))

        logger.info(
            "dedup_finished",
            clusters=result.applied,
            duplicates=result.counters.get("duplicates", 0),
            already_flagged=result.skipped,
        )
        return result

    def _flag(self, cluster: Cluster, flagged: set[int], now: datetime, result: StageResult) -> ItemResult:
        primary_id = cluster.primary.id
        members = {primary_id, *(item.id for item, _ in cluster.duplicates)}
        if members & flagged:
            return ItemResult.skipped(primary_id, "merge already pending")
        try:
            correction = self.corrections.create(
                ItemType.KNOWLEDGE.value,
                primary_id,
                CorrectionType.MERGE.value,
                cluster.details(),
                created_by=self.identity,
                now=now,
            )
        except Exception as e:
            self.conn.rollback()
            logger.warning("dedup_flag_failed", item_id=primary_id, error=str(e))
            return ItemResult.retry(primary_id, str(e))

        flagged.update(members)
        result.bump("duplicates", len(cluster.duplicates))
        return ItemResult.applied(primary_id, f"correction {correction.id}")


__all__ = [
    "Cluster",
    "SimilarityDeduplicator",
    "cluster_items",
    "jaccard_similarity",
    "tokenize",
]
