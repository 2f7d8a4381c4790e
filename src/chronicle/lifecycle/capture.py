"""
Snippet Capture — turn fresh source rows into dated snippets, once.

Sources scanned each firing, within a trailing window (default 30 min):

    knowledge   captured_as_snippet = 0
    todos       status = completed, captured_at IS NULL
    bugs        status = fixed,     captured_at IS NULL

Per row the sequence is: same-day content check → insert (unless a
duplicate) → advance the source's capture marker → commit. If anything
before the marker write fails, the marker stays put and the next firing
picks the row up again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from chronicle.core.enums import SnippetType
from chronicle.core.logging import get_logger
from chronicle.core.models import Bug, KnowledgeItem, Snippet, Todo
from chronicle.core.protocols import Connection
from chronicle.core.repositories import (
    BugRepository,
    KnowledgeRepository,
    SnippetRepository,
    TodoRepository,
)
from chronicle.core.timestamps import iso_ago, local_date, to_iso8601, utc_now

from .results import ItemResult, StageResult

logger = get_logger(__name__)

# Knowledge category → snippet type; anything else is a conversation.
KNOWLEDGE_TYPE_MAP: dict[str, SnippetType] = {
    "bug-fix": SnippetType.BUG_FIX,
    "feature": SnippetType.FEATURE,
    "config": SnippetType.CONFIG,
    "architecture": SnippetType.DISCUSSION,
    "workflow": SnippetType.DISCUSSION,
    "documentation": SnippetType.DISCUSSION,
    "refactor": SnippetType.CODE_CHANGE,
    "idea": SnippetType.IDEA,
    "decision": SnippetType.DECISION,
}


def snippet_type_for_knowledge(category: str | None) -> SnippetType:
    return KNOWLEDGE_TYPE_MAP.get((category or "").strip().lower(), SnippetType.CONVERSATION)


def snippet_type_for_todo(category: str | None) -> SnippetType:
    return SnippetType.BUG_FIX if (category or "").strip().lower() == "bug" else SnippetType.FEATURE


@dataclass(frozen=True)
class CaptureDraft:
    """Snippet fields derived from one source row."""

    source_table: str
    source_id: int
    project_path: str
    snippet_type: SnippetType
    content: str
    context: str | None
    session_id: str | None


def draft_from_knowledge(item: KnowledgeItem, context_chars: int = 500) -> CaptureDraft:
    content = f"{item.title}: {item.summary}" if item.summary else item.title
    context = (item.content or "")[:context_chars] or None
    return CaptureDraft(
        source_table=KnowledgeRepository.TABLE,
        source_id=item.id,
        project_path=item.project_path,
        snippet_type=snippet_type_for_knowledge(item.category),
        content=content,
        context=context,
        session_id=item.source,
    )


def draft_from_todo(todo: Todo) -> CaptureDraft:
    return CaptureDraft(
        source_table=TodoRepository.TABLE,
        source_id=todo.id,
        project_path=todo.project_path,
        snippet_type=snippet_type_for_todo(todo.category),
        content=f"COMPLETED: {todo.title}",
        context=todo.description or None,
        session_id=None,
    )


def draft_from_bug(bug: Bug) -> CaptureDraft:
    parts = [bug.description or ""]
    if bug.resolution:
        parts.append(f"Resolution: {bug.resolution}")
    context = "\n".join(p for p in parts if p) or None
    return CaptureDraft(
        source_table=BugRepository.TABLE,
        source_id=bug.id,
        project_path=bug.project_path,
        snippet_type=SnippetType.BUG_FIX,
        content=f"BUG FIXED: {bug.title}",
        context=context,
        session_id=None,
    )


class SnippetCapture:
    """Capture stage of the daytime pipeline."""

    def __init__(
        self,
        conn: Connection,
        *,
        zone: ZoneInfo,
        window_minutes: int = 30,
        context_chars: int = 500,
    ) -> None:
        self.conn = conn
        self.zone = zone
        self.window_minutes = window_minutes
        self.context_chars = context_chars
        self.knowledge = KnowledgeRepository(conn)
        self.todos = TodoRepository(conn)
        self.bugs = BugRepository(conn)
        self.snippets = SnippetRepository(conn)

    def run(self, now: datetime | None = None) -> StageResult:
        now = now or utc_now()
        since = iso_ago(now, minutes=self.window_minutes)
        result = StageResult("capture")

        for item in self.knowledge.list_uncaptured(since):
            self._capture(
                result,
                draft_from_knowledge(item, self.context_chars),
                self.knowledge.mark_captured,
                now,
            )
        for todo in self.todos.list_uncaptured_completed(since):
            self._capture(result, draft_from_todo(todo), self.todos.mark_captured, now)
        for bug in self.bugs.list_uncaptured_fixed(since):
            self._capture(result, draft_from_bug(bug), self.bugs.mark_captured, now)

        logger.info(
            "capture_finished",
            created=result.counters.get("created", 0),
            duplicates=result.counters.get("duplicates", 0),
            retry=result.retry,
        )
        return result

    def _capture(
        self,
        result: StageResult,
        draft: CaptureDraft,
        mark_captured: Callable[[int, str], None],
        now: datetime,
    ) -> ItemResult:
        key = f"{draft.source_table}:{draft.source_id}"
        stamp = to_iso8601(now)
        snippet_date = local_date(now, self.zone).isoformat()
        try:
            if self.snippets.exists_for_day(draft.project_path, snippet_date, draft.content):
                outcome = ItemResult.skipped(key, "duplicate content for the day")
                result.bump("duplicates")
            else:
                snippet_id = self.snippets.create(
                    Snippet(
                        project_path=draft.project_path,
                        snippet_type=draft.snippet_type.value,
                        content=draft.content,
                        context=draft.context,
                        session_id=draft.session_id,
                        source_table=draft.source_table,
                        source_id=draft.source_id,
                        snippet_date=snippet_date,
                        created_at=stamp,
                    )
                )
                outcome = ItemResult.applied(key, f"snippet {snippet_id}")
                result.bump("created")
            mark_captured(draft.source_id, stamp)
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            logger.warning("capture_item_failed", source=key, error=str(e))
            return result.add(ItemResult.retry(key, str(e)))
        return result.add(outcome)


__all__ = [
    "KNOWLEDGE_TYPE_MAP",
    "CaptureDraft",
    "SnippetCapture",
    "draft_from_bug",
    "draft_from_knowledge",
    "draft_from_todo",
    "snippet_type_for_knowledge",
    "snippet_type_for_todo",
]
