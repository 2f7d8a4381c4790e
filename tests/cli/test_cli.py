"""Tests for the chronicle CLI."""

import json
import logging

import pytest
from typer.testing import CliRunner

from chronicle.cli import app
from chronicle.core.repositories import CorrectionRepository, KnowledgeRepository
from chronicle.core.settings import clear_settings_cache
from chronicle.core.sqlite_conn import SqliteConnection
from chronicle.core.timestamps import utc_now
from chronicle.scheduling import JobLedger

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    monkeypatch.setenv("CHRONICLE_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("CHRONICLE_LLM_PROVIDER", "chronicle.llm.mock:create_mock_provider")
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    # pin rich's terminal width so table cells don't wrap at the 80-column default
    monkeypatch.setenv("COLUMNS", "200")
    yield str(tmp_path / "chronicle.db")
    # drop the handler bound to the runner's captured stderr
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)


def invoke(*args):
    return runner.invoke(app, list(args))


def invoke_json(*args):
    result = invoke(*args, "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_version():
    result = invoke("--version")
    assert result.exit_code == 0
    assert result.output.startswith("chronicle ")


def test_no_args_shows_help():
    result = invoke()
    assert "jobs" in result.output


class TestDb:
    def test_init(self, db_path):
        data = invoke_json("db", "init", "-d", db_path)
        assert data["tables"] == 9
        assert "chronicle_schedule_jobs" in data["names"]
        assert data["database_url"].endswith("chronicle.db")


class TestJobs:
    def test_seed_is_idempotent(self, db_path):
        first = invoke_json("jobs", "seed", "-d", db_path)
        second = invoke_json("jobs", "seed", "-d", db_path)
        assert [j["job_name"] for j in first] == ["day-organizer", "night-compiler"]
        assert [j["id"] for j in first] == [j["id"] for j in second]
        assert all(j["next_run_at"] for j in first)

    def test_list_table(self, db_path):
        invoke("jobs", "seed", "-d", db_path)
        result = invoke("jobs", "list", "-d", db_path)
        assert result.exit_code == 0
        assert "night-compiler" in result.output

    def test_list_empty(self, db_path):
        result = invoke("jobs", "list", "-d", db_path)
        assert "No items." in result.output

    def test_show_missing(self, db_path):
        result = invoke("jobs", "show", "nope", "-d", db_path)
        assert result.exit_code == 1

    def test_pause_and_resume(self, db_path):
        invoke("jobs", "seed", "-d", db_path)
        assert invoke_json("jobs", "pause", "night-compiler", "-d", db_path)["enabled"] is False
        assert invoke_json("jobs", "resume", "night-compiler", "-d", db_path)["enabled"] is True

    def test_pause_missing(self, db_path):
        assert invoke("jobs", "pause", "nope", "-d", db_path).exit_code == 1

    def test_trigger(self, db_path):
        invoke("jobs", "seed", "-d", db_path)

        outcome = invoke_json("jobs", "trigger", "day-organizer", "-d", db_path)

        assert outcome["status"] == "completed"
        assert set(outcome["result"]) == {"capture", "reclassify"}
        job = invoke_json("jobs", "show", "day-organizer", "-d", db_path)
        assert job["status"] == "completed"
        assert job["last_run_at"] is not None

    def test_trigger_unknown_job(self, db_path):
        assert invoke("jobs", "trigger", "nope", "-d", db_path).exit_code == 1

    def test_trigger_without_provider(self, db_path, monkeypatch):
        invoke("jobs", "seed", "-d", db_path)
        monkeypatch.delenv("CHRONICLE_LLM_PROVIDER")
        clear_settings_cache()
        result = invoke("jobs", "trigger", "day-organizer", "-d", db_path)
        assert result.exit_code == 1


class TestCorrections:
    @pytest.fixture
    def correction_id(self, db_path):
        invoke("db", "init", "-d", db_path)
        conn = SqliteConnection(db_path)
        try:
            item = KnowledgeRepository(conn).create("/src/app", "Stale note")
            correction = CorrectionRepository(conn).create("knowledge", item.id, "remove")
        finally:
            conn.close()
        return correction.id

    def test_list_pending(self, db_path, correction_id):
        items = invoke_json("corrections", "list", "-d", db_path)
        assert [c["id"] for c in items] == [correction_id]
        assert invoke_json("corrections", "list", "--status", "applied", "-d", db_path) == []

    def test_apply(self, db_path, correction_id):
        record = invoke_json("corrections", "apply", str(correction_id), "--actor", "alice", "-d", db_path)
        assert record["status"] == "applied"
        assert record["applied_by"] == "alice"
        assert invoke_json("corrections", "list", "--all", "-d", db_path)[0]["status"] == "applied"

    def test_apply_twice_fails(self, db_path, correction_id):
        invoke("corrections", "apply", str(correction_id), "-d", db_path)
        assert invoke("corrections", "apply", str(correction_id), "-d", db_path).exit_code == 1

    def test_reject(self, db_path, correction_id):
        record = invoke_json("corrections", "reject", str(correction_id), "-d", db_path)
        assert record["status"] == "rejected"

    def test_unknown_correction(self, db_path, correction_id):
        assert invoke("corrections", "apply", "999", "-d", db_path).exit_code == 1


class TestScheduler:
    def test_run_once(self, db_path):
        outcomes = invoke_json("scheduler", "run", "--once", "-d", db_path)
        assert outcomes == []
        jobs = invoke_json("jobs", "list", "-d", db_path)
        assert {j["job_name"] for j in jobs} == {"day-organizer", "night-compiler"}

    def test_run_once_keeps_live_run_guarded(self, db_path):
        invoke("jobs", "seed", "-d", db_path)
        conn = SqliteConnection(db_path)
        try:
            JobLedger(conn).try_mark_running("night-compiler", utc_now())
        finally:
            conn.close()

        invoke_json("scheduler", "run", "--once", "-d", db_path)

        assert invoke_json("jobs", "show", "night-compiler", "-d", db_path)["status"] == "running"
