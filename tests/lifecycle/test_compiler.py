"""Tests for the nightly CompilationEngine."""

from datetime import timedelta

import pytest
from tests._support.fakes import FakeSynthesizer

from chronicle.core.models import Snippet
from chronicle.core.timestamps import to_iso8601
from chronicle.lifecycle import CompilationEngine, render_entries
from chronicle.lifecycle.compiler import CompileEntry, category_for_snippet

IDENTITY = "chronicle-night-compiler"


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def engine(conn, synthesizer, zone):
    return CompilationEngine(conn, synthesizer, zone=zone, identity=IDENTITY)


def add_snippet(conn, snippets, project, snippet_type, content, created_at, context=None):
    snippet_id = snippets.create(
        Snippet(
            project_path=project,
            snippet_type=snippet_type,
            content=content,
            context=context,
            snippet_date=created_at.date().isoformat(),
            created_at=to_iso8601(created_at),
        )
    )
    conn.commit()
    return snippet_id


class TestRendering:
    def test_entries_sorted_with_local_clock(self, zone, now):
        entries = [
            CompileEntry("journal", 2, "Later", "second", to_iso8601(now - timedelta(hours=1))),
            CompileEntry("journal", 1, "Earlier", "first", to_iso8601(now - timedelta(hours=2))),
        ]
        assert render_entries(entries, zone) == "### 09:00 - Earlier\nfirst\n\n### 10:00 - Later\nsecond\n"

    def test_snippet_entry(self):
        snippet = Snippet(id=7, content="Shipped export\nCSV and JSON", context="from chat")
        entry = CompileEntry.from_snippet(snippet)
        assert entry.ref == "snippet:7"
        assert entry.title == "Shipped export"
        assert entry.content == "CSV and JSON\nfrom chat"

    @pytest.mark.parametrize(
        "snippet_type,expected",
        [("idea", "idea"), ("decision", "decision"), ("bug_fix", "work_log"), ("conversation", "work_log")],
    )
    def test_category_for_snippet(self, snippet_type, expected):
        assert category_for_snippet(snippet_type).value == expected


class TestCompilationEngine:
    """One document per (project, category, day); entries archived in place."""

    def test_compiles_and_archives(self, engine, journal, documents, synthesizer, now):
        first = journal.create("/src/app", "work_log", "Fix login", "Patched session TTL", now=now - timedelta(hours=2))
        second = journal.create("/src/app", "work_log", "Add export", "CSV", now=now - timedelta(hours=1))
        decision = journal.create("/src/app", "decision", "Use Postgres", now=now - timedelta(hours=1))

        result = engine.run(now)

        assert result.counters["documents"] == 2
        assert result.counters["archived"] == 3
        docs = {d.doc_type: d for d in documents.list_documents()}
        assert set(docs) == {"work_log", "decision"}
        work_log = docs["work_log"]
        assert work_log.doc_date == "2026-03-10"
        assert work_log.title == "Work Log - 2026-03-10"
        assert work_log.source_ids == [f"journal:{first.id}", f"journal:{second.id}"]
        assert work_log.created_by == IDENTITY
        assert work_log.content == "# work_log for /src/app (2 entries)"
        assert docs["decision"].title == "Decisions - 2026-03-10"

        # work_log is compiled first and anchors every archived entry
        for entry_id in (first.id, second.id, decision.id):
            stored = journal.get(entry_id)
            assert stored.is_archived is True
            assert stored.archived_into == work_log.id
            assert stored.archived_at is not None
        assert len(journal.list_entries()) == 3

        [request, _] = synthesizer.requests
        assert request.rendered_entries.startswith("### 09:00 - Fix login\nPatched session TTL\n")

    def test_second_run_same_day_writes_nothing(self, engine, journal, documents, now):
        journal.create("/src/app", "work_log", "Fix login", now=now - timedelta(hours=2))
        engine.run(now)

        late = journal.create("/src/app", "work_log", "Late entry", now=now + timedelta(minutes=5))
        result = engine.run(now + timedelta(minutes=10))

        assert len(documents.list_documents()) == 1
        assert result.skipped == 1
        assert journal.get(late.id).is_archived is False

    def test_own_entries_are_not_gathered(self, engine, journal, documents, now):
        journal.create("/src/app", "work_log", "Compiled summary", created_by=IDENTITY, now=now - timedelta(hours=1))
        result = engine.run(now)
        assert result.items == []
        assert documents.list_documents() == []

    def test_entries_outside_window_ignored(self, engine, journal, documents, now):
        old = journal.create("/src/app", "work_log", "Last week", now=now - timedelta(days=3))
        engine.run(now)
        assert documents.list_documents() == []
        assert journal.get(old.id).is_archived is False

    def test_snippets_compiled(self, conn, engine, snippets, documents, now):
        idea_id = add_snippet(conn, snippets, "/src/app", "idea", "Dark mode", now - timedelta(hours=1))
        fix_id = add_snippet(conn, snippets, "/src/app", "bug_fix", "BUG FIXED: Crash", now - timedelta(hours=2))

        result = engine.run(now)

        assert result.counters["snippets_compiled"] == 2
        docs = {d.doc_type: d for d in documents.list_documents()}
        assert docs["idea"].source_ids == [f"snippet:{idea_id}"]
        assert docs["work_log"].source_ids == [f"snippet:{fix_id}"]
        anchor = docs["work_log"].id
        for snippet_id in (idea_id, fix_id):
            stored = snippets.get(snippet_id)
            assert stored.is_compiled is True
            assert stored.compiled_into == anchor

    def test_inactive_project_skipped(self, engine, journal, projects, documents, now):
        projects.register("/src/paused", is_active=False)
        journal.create("/src/paused", "idea", "Someday", now=now - timedelta(hours=1))
        journal.create("/src/app", "idea", "Now", now=now - timedelta(hours=1))

        engine.run(now)

        assert [d.project_path for d in documents.list_documents()] == ["/src/app"]

    def test_synthesis_failure_falls_back_to_raw(self, conn, journal, documents, zone, now):
        engine = CompilationEngine(conn, FakeSynthesizer(fail=True), zone=zone, identity=IDENTITY)
        entry = journal.create("/src/app", "lesson", "Pin versions", "Never float deps", now=now - timedelta(hours=2))

        result = engine.run(now)

        assert result.counters["synthesis_fallbacks"] == 1
        [doc] = documents.list_documents()
        assert doc.title == "Lessons Learned - 2026-03-10"
        assert doc.content == "### 09:00 - Pin versions\nNever float deps\n"
        assert journal.get(entry.id).is_archived is True

    def test_project_failure_isolated(self, conn, journal, documents, zone, now):
        class BrokenForOneProject(FakeSynthesizer):
            def synthesize(self, request):
                if request.project_path == "/src/bad":
                    raise RuntimeError("unexpected")
                return super().synthesize(request)

        engine = CompilationEngine(conn, BrokenForOneProject(), zone=zone, identity=IDENTITY)
        bad = journal.create("/src/bad", "work_log", "Breaks", now=now - timedelta(hours=1))
        journal.create("/src/good", "work_log", "Works", now=now - timedelta(hours=1))

        result = engine.run(now)

        assert result.retry == 1
        assert [d.project_path for d in documents.list_documents()] == ["/src/good"]
        assert journal.get(bad.id).is_archived is False

    def test_failed_category_keeps_earlier_archiving(self, conn, journal, documents, zone, now):
        """Entries of a written document are archived even when a later category fails."""

        class BrokenDecisions(FakeSynthesizer):
            def synthesize(self, request):
                if request.category == "decision":
                    raise RuntimeError("unexpected")
                return super().synthesize(request)

        engine = CompilationEngine(conn, BrokenDecisions(), zone=zone, identity=IDENTITY)
        work = journal.create("/src/app", "work_log", "Shipped", now=now - timedelta(hours=2))
        decision = journal.create("/src/app", "decision", "Use SQLite", now=now - timedelta(hours=1))

        result = engine.run(now)

        assert result.applied == 1
        assert result.retry == 1
        assert [i.item_id for i in result.items if i.retry_eligible] == ["/src/app:decision"]
        [doc] = documents.list_documents()
        assert doc.doc_type == "work_log"
        assert journal.get(work.id).is_archived is True
        assert journal.get(work.id).archived_into == doc.id
        assert journal.get(decision.id).is_archived is False
