"""
Compilation Engine — nightly synthesis of journal entries into documents.

For every project with live activity in the trailing window, categories are
compiled in a fixed order (work_log, decision, idea, lesson). Each non-empty
category becomes one :class:`GeneratedDocument` for the local calendar day.
Entries consumed by a document are archived in place, never deleted, with a
back-reference to the first document written for that project in the run.

Loop guard:
    Entries created by the compiler identity are never gathered, so
    compiled output can't be fed back into the next compilation.

Idempotence:
    At most one document exists per (project, category, day). When it
    already exists the category is skipped and its entries stay live.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from chronicle.core.enums import COMPILE_ORDER, EntryType, SnippetType
from chronicle.core.errors import CollaboratorError
from chronicle.core.logging import get_logger
from chronicle.core.models import GeneratedDocument, JournalEntry, Snippet
from chronicle.core.protocols import Connection
from chronicle.core.repositories import (
    DocumentRepository,
    JournalRepository,
    ProjectRepository,
    SnippetRepository,
)
from chronicle.core.timestamps import (
    from_iso8601,
    iso_ago,
    local_clock,
    local_date,
    to_iso8601,
    utc_now,
)
from chronicle.llm.collaborators import SynthesisRequest, Synthesizer

from .results import ItemResult, StageResult

logger = get_logger(__name__)

CATEGORY_TITLES: dict[EntryType, str] = {
    EntryType.WORK_LOG: "Work Log",
    EntryType.DECISION: "Decisions",
    EntryType.IDEA: "Ideas",
    EntryType.LESSON: "Lessons Learned",
}


def category_for_snippet(snippet_type: str) -> EntryType:
    if snippet_type == SnippetType.IDEA.value:
        return EntryType.IDEA
    if snippet_type == SnippetType.DECISION.value:
        return EntryType.DECISION
    return EntryType.WORK_LOG


@dataclass(frozen=True)
class CompileEntry:
    """A journal entry or snippet, normalized for rendering."""

    kind: str  # "journal" or "snippet"
    id: int
    title: str
    content: str
    created_at: str

    @property
    def ref(self) -> str:
        return f"{self.kind}:{self.id}"

    @classmethod
    def from_journal(cls, entry: JournalEntry) -> CompileEntry:
        return cls("journal", entry.id, entry.title, entry.content or "", entry.created_at)

    @classmethod
    def from_snippet(cls, snippet: Snippet) -> CompileEntry:
        title, _, rest = snippet.content.partition("\n")
        body = "\n".join(p for p in (rest.strip(), snippet.context or "") if p)
        return cls("snippet", snippet.id, title.strip(), body, snippet.created_at)


def render_entries(entries: list[CompileEntry], zone: ZoneInfo) -> str:
    """Render entries oldest first as ``### HH:MM - title`` blocks."""
    blocks = []
    for entry in sorted(entries, key=lambda e: (e.created_at, e.kind, e.id)):
        created = from_iso8601(entry.created_at)
        clock = local_clock(created, zone) if created else "--:--"
        blocks.append(f"### {clock} - {entry.title}\n{entry.content}\n")
    return "\n".join(blocks)


@dataclass
class ProjectBatch:
    """Live entries of one project, grouped by category."""

    project_path: str
    entries: dict[EntryType, list[CompileEntry]] = field(default_factory=dict)

    def add(self, category: EntryType, entry: CompileEntry) -> None:
        self.entries.setdefault(category, []).append(entry)

    def ordered(self) -> list[tuple[EntryType, list[CompileEntry]]]:
        return [(c, self.entries[c]) for c in COMPILE_ORDER if self.entries.get(c)]


class CompilationEngine:
    """Compilation stage of the nightly pipeline."""

    def __init__(
        self,
        conn: Connection,
        synthesizer: Synthesizer,
        *,
        zone: ZoneInfo,
        identity: str,
        window_hours: int = 24,
    ) -> None:
        self.conn = conn
        self.synthesizer = synthesizer
        self.zone = zone
        self.identity = identity
        self.window_hours = window_hours
        self.projects = ProjectRepository(conn)
        self.journal = JournalRepository(conn)
        self.snippets = SnippetRepository(conn)
        self.documents = DocumentRepository(conn)

    # === Selection ===

    def active_projects(self, since: str) -> list[str]:
        """Projects with live entries in the window, minus deactivated ones."""
        paths = set(self.journal.projects_with_activity(since, self.identity))
        paths.update(self.snippets.projects_with_uncompiled(since))
        active = []
        for path in sorted(paths):
            project = self.projects.get_by_path(path)
            if project is not None and not project.is_active:
                continue
            active.append(path)
        return active

    def gather(self, project_path: str, since: str) -> ProjectBatch:
        batch = ProjectBatch(project_path)
        for category in COMPILE_ORDER:
            for entry in self.journal.list_window(project_path, category.value, since, self.identity):
                batch.add(category, CompileEntry.from_journal(entry))
        for snippet in self.snippets.list_uncompiled(project_path, since):
            batch.add(category_for_snippet(snippet.snippet_type), CompileEntry.from_snippet(snippet))
        return batch

    # === Run ===

    def run(self, now: datetime | None = None) -> StageResult:
        now = now or utc_now()
        since = iso_ago(now, hours=self.window_hours)
        doc_date = local_date(now, self.zone).isoformat()
        result = StageResult("compile")

        for project_path in self.active_projects(since):
            try:
                self._compile_project(project_path, since, doc_date, now, result)
            except Exception as e:
                self.conn.rollback()
                logger.warning("compile_project_failed", project=project_path, error=str(e))
                result.add(ItemResult.retry(project_path, str(e)))

        logger.info(
            "compile_finished",
            documents=result.counters.get("documents", 0),
            archived=result.counters.get("archived", 0),
            snippets_compiled=result.counters.get("snippets_compiled", 0),
            synthesis_fallbacks=result.counters.get("synthesis_fallbacks", 0),
        )
        return result

    def _compile_project(
        self,
        project_path: str,
        since: str,
        doc_date: str,
        now: datetime,
        result: StageResult,
    ) -> None:
        batch = self.gather(project_path, since)
        stamp = to_iso8601(now)
        anchor: int | None = None

        for category, entries in batch.ordered():
            key = f"{project_path}:{category.value}"
            if self.documents.exists(project_path, category.value, doc_date):
                result.add(ItemResult.skipped(key, f"document exists for {doc_date}"))
                continue
            try:
                document_id = self._compile_category(
                    project_path, category, entries, doc_date, stamp, anchor, result
                )
            except Exception as e:
                self.conn.rollback()
                logger.warning(
                    "compile_category_failed", project=project_path, category=category.value, error=str(e)
                )
                result.add(ItemResult.retry(key, str(e)))
                continue
            if anchor is None:
                anchor = document_id
            result.add(ItemResult.applied(key, f"document {document_id}"))

        if anchor is not None:
            logger.info("project_compiled", project=project_path, anchor=anchor)

    def _compile_category(
        self,
        project_path: str,
        category: EntryType,
        entries: list[CompileEntry],
        doc_date: str,
        stamp: str,
        anchor: int | None,
        result: StageResult,
    ) -> int:
        """Write one document and archive its entries in the same transaction."""
        content = self._synthesize(project_path, category, doc_date, entries, result)
        document_id = self.documents.create(
            GeneratedDocument(
                project_path=project_path,
                doc_type=category.value,
                doc_date=doc_date,
                title=f"{CATEGORY_TITLES[category]} - {doc_date}",
                content=content,
                source_ids=[e.ref for e in entries],
                created_by=self.identity,
                generated_at=stamp,
            )
        )
        # every entry of the run points at the project's first document
        target = anchor if anchor is not None else document_id
        archived = self.journal.archive([e.id for e in entries if e.kind == "journal"], target, stamp)
        compiled = self.snippets.mark_compiled([e.id for e in entries if e.kind == "snippet"], target, stamp)
        self.conn.commit()
        result.bump("documents")
        result.bump("archived", archived)
        result.bump("snippets_compiled", compiled)
        return document_id

    def _synthesize(
        self,
        project_path: str,
        category: EntryType,
        doc_date: str,
        entries: list[CompileEntry],
        result: StageResult,
    ) -> str:
        rendered = render_entries(entries, self.zone)
        request = SynthesisRequest(
            project_path=project_path,
            category=category.value,
            doc_date=doc_date,
            rendered_entries=rendered,
            entry_count=len(entries),
        )
        try:
            return self.synthesizer.synthesize(request)
        except CollaboratorError as e:
            logger.warning(
                "synthesis_failed_using_raw",
                project=project_path,
                category=category.value,
                error=str(e),
            )
            result.bump("synthesis_fallbacks")
            return rendered


__all__ = [
    "CATEGORY_TITLES",
    "CompilationEngine",
    "CompileEntry",
    "ProjectBatch",
    "category_for_snippet",
    "render_entries",
]
