"""Tests for schema creation, the base repository and the SQLAlchemy bridge."""

from datetime import timedelta

import pytest

from chronicle.core.errors import RecordNotFoundError
from chronicle.core.models import ScheduleJob
from chronicle.core.orm.session import (
    SAConnectionBridge,
    _rewrite_placeholders,
    chronicle_session_factory,
    create_chronicle_engine,
)
from chronicle.core.repositories import (
    CorrectionRepository,
    DocumentRepository,
    JournalRepository,
    KnowledgeRepository,
    ProjectRepository,
    SnippetRepository,
)
from chronicle.core.repository import BaseRepository, dump_json, load_json, row_to_model
from chronicle.core.schema import CORE_TABLES, create_tables, sqlite_ddl
from chronicle.core.sqlite_conn import SqliteConnection, path_from_url
from chronicle.core.models import GeneratedDocument, Snippet
from chronicle.core.timestamps import iso_ago, to_iso8601
from chronicle.scheduling import JobCreate, JobLedger


class TestSchema:
    """create_tables over both connection kinds."""

    def test_all_tables_created(self, conn):
        conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        names = {row[0] for row in conn.fetchall()}
        assert set(CORE_TABLES.values()) <= names

    def test_create_tables_is_idempotent(self, conn):
        assert create_tables(conn) == len(CORE_TABLES)

    def test_ddl_uses_if_not_exists(self):
        assert all("IF NOT EXISTS" in statement for statement in sqlite_ddl())

    def test_sqlite_url(self, tmp_path):
        db = SqliteConnection.from_url(f"sqlite:///{tmp_path / 'c.db'}")
        try:
            assert create_tables(db) == len(CORE_TABLES)
        finally:
            db.close()

    def test_from_url_rejects_other_schemes(self):
        with pytest.raises(ValueError):
            SqliteConnection.from_url("postgresql://localhost/db")

    @pytest.mark.parametrize(
        ("url", "path"),
        [
            ("sqlite://", ":memory:"),
            ("sqlite:///chronicle.db", "chronicle.db"),
            ("sqlite:////var/lib/chronicle.db", "/var/lib/chronicle.db"),
        ],
    )
    def test_path_from_url(self, url, path):
        assert path_from_url(url) == path


class TestHelpers:
    """JSON and row helpers."""

    def test_json_round_trip(self):
        assert load_json(dump_json({"b": 1, "a": [1, 2]})) == {"a": [1, 2], "b": 1}
        assert dump_json(None) is None
        assert load_json(None) is None
        assert load_json("") is None
        assert load_json({"already": "decoded"}) == {"already": "decoded"}

    def test_row_to_model_coerces_bool_and_json(self):
        job = row_to_model(
            ScheduleJob,
            {"id": 1, "job_name": "n", "enabled": 0, "config": None, "unknown": "x"},
            json_fields=("config",),
        )
        assert job.enabled is False
        assert job.config == {}

    def test_placeholders(self):
        assert BaseRepository.ph(3) == "?, ?, ?"

    def test_rewrite_placeholders(self):
        assert _rewrite_placeholders("a = ? AND b IN (?, ?)") == "a = :p0 AND b IN (:p1, :p2)"


class TestRepositories:
    """Round trips through the raw-SQL repositories."""

    def test_knowledge_require_missing(self, conn):
        repo = KnowledgeRepository(conn)
        with pytest.raises(RecordNotFoundError):
            repo._require(repo.get(999), 999)

    def test_project_register_is_idempotent(self, conn):
        repo = ProjectRepository(conn)
        first = repo.register("/src/app", "app")
        second = repo.register("/src/app", "renamed")
        assert first.id == second.id
        assert second.name == "app"
        assert [p.project_path for p in repo.list_active()] == ["/src/app"]
        repo.set_active("/src/app", False)
        assert repo.list_active() == []

    def test_snippet_same_day_lookup(self, conn, now):
        repo = SnippetRepository(conn)
        repo.create(
            Snippet(
                project_path="/p",
                content="COMPLETED: ship it",
                snippet_date="2026-03-10",
                created_at=to_iso8601(now),
            )
        )
        assert repo.exists_for_day("/p", "2026-03-10", "COMPLETED: ship it")
        assert not repo.exists_for_day("/p", "2026-03-11", "COMPLETED: ship it")
        assert not repo.exists_for_day("/other", "2026-03-10", "COMPLETED: ship it")

    def test_journal_window_excludes_creator_and_archived(self, conn, now):
        repo = JournalRepository(conn)
        kept = repo.create("/p", "work_log", "mine", "a", now=now)
        repo.create("/p", "work_log", "compiled", "b", created_by="compiler", now=now)
        old = repo.create("/p", "work_log", "old", "c", now=now - timedelta(days=3))
        archived = repo.create("/p", "work_log", "done", "d", now=now)
        repo.archive([archived.id], 99, to_iso8601(now))

        window = repo.list_window("/p", "work_log", iso_ago(now, hours=24), "compiler")
        assert [e.id for e in window] == [kept.id]
        assert old.id not in [e.id for e in window]
        assert repo.get(archived.id).archived_into == 99

    def test_document_source_ids_round_trip(self, conn, now):
        repo = DocumentRepository(conn)
        doc_id = repo.create(
            GeneratedDocument(
                project_path="/p",
                doc_type="work_log",
                doc_date="2026-03-10",
                title="Work Log - 2026-03-10",
                content="body",
                source_ids=["journal:1", "snippet:2"],
                generated_at=to_iso8601(now),
            )
        )
        doc = repo.get(doc_id)
        assert doc.source_ids == ["journal:1", "snippet:2"]
        assert doc.is_published is False
        assert repo.exists("/p", "work_log", "2026-03-10")

    def test_corrections_purge_only_resolved(self, conn, now):
        repo = CorrectionRepository(conn)
        old = now - timedelta(days=40)
        pending = repo.create("knowledge", 1, "note", now=old)
        applied = repo.create("knowledge", 2, "note", now=old)
        recent = repo.create("knowledge", 3, "note", now=now)
        repo.resolve(applied.id, "applied", applied_by="me", now=now)
        repo.resolve(recent.id, "rejected", applied_by="me", now=now)

        assert repo.purge_resolved(iso_ago(now, days=30)) == 1
        assert repo.get(applied.id) is None
        assert repo.get(pending.id) is not None
        assert repo.get(recent.id) is not None


class TestSAConnectionBridge:
    """The ledger works unchanged through a SQLAlchemy session."""

    @pytest.fixture
    def bridge(self):
        engine = create_chronicle_engine("sqlite://")
        session = chronicle_session_factory(engine)()
        bridge = SAConnectionBridge(session)
        create_tables(bridge)
        yield bridge
        bridge.close()
        engine.dispose()

    def test_register_and_cas(self, bridge, now):
        ledger = JobLedger(bridge)
        job = ledger.register(JobCreate("night_compile", "night", "0 2 * * *"), now=now)
        assert job.id > 0
        assert ledger.try_mark_running("night", now) is True
        assert ledger.try_mark_running("night", now) is False
        ledger.mark_completed("night", {"ok": True}, now)
        assert ledger.get_by_name("night").last_result == {"ok": True}

    def test_fetch_after_write_is_empty(self, bridge):
        bridge.execute("UPDATE chronicle_schedule_jobs SET enabled = 1 WHERE id = ?", (1,))
        assert bridge.fetchone() is None
        assert bridge.fetchall() == []
