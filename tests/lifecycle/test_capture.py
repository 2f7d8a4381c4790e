"""Tests for SnippetCapture."""

from datetime import timedelta

import pytest

from chronicle.lifecycle import SnippetCapture
from chronicle.lifecycle.capture import snippet_type_for_knowledge, snippet_type_for_todo


@pytest.fixture
def capture(conn, zone):
    return SnippetCapture(conn, zone=zone)


class TestTypeMapping:
    @pytest.mark.parametrize(
        "category,expected",
        [
            ("bug-fix", "bug_fix"),
            ("Feature", "feature"),
            ("refactor", "code_change"),
            ("architecture", "discussion"),
            ("idea", "idea"),
            ("decision", "decision"),
            ("something-else", "conversation"),
            (None, "conversation"),
        ],
    )
    def test_knowledge(self, category, expected):
        assert snippet_type_for_knowledge(category).value == expected

    def test_todo(self):
        assert snippet_type_for_todo("bug").value == "bug_fix"
        assert snippet_type_for_todo("chore").value == "feature"
        assert snippet_type_for_todo(None).value == "feature"


class TestSnippetCapture:
    """Fresh rows become one snippet each, exactly once."""

    def test_knowledge_item_captured(self, capture, knowledge, snippets, now):
        item = knowledge.create(
            "/src/app",
            "Login timeout",
            summary="Raised session TTL",
            content="Long explanation",
            category="bug-fix",
            source="session-42",
            now=now - timedelta(minutes=5),
        )

        result = capture.run(now)

        assert result.applied == 1
        assert result.counters["created"] == 1
        [snippet] = snippets.list_snippets()
        assert snippet.content == "Login timeout: Raised session TTL"
        assert snippet.snippet_type == "bug_fix"
        assert snippet.context == "Long explanation"
        assert snippet.session_id == "session-42"
        assert snippet.source_table == "chronicle_knowledge"
        assert snippet.source_id == item.id
        assert snippet.snippet_date == "2026-03-10"
        assert snippet.is_compiled is False
        assert knowledge.get(item.id).captured_as_snippet is True

    def test_second_run_creates_nothing(self, capture, knowledge, snippets, now):
        knowledge.create("/src/app", "Cache warmup", now=now - timedelta(minutes=5))
        capture.run(now)

        result = capture.run(now + timedelta(minutes=1))

        assert result.items == []
        assert len(snippets.list_snippets()) == 1

    def test_same_day_duplicate_content(self, capture, knowledge, snippets, now):
        first = knowledge.create("/src/app", "Cache warmup", now=now - timedelta(minutes=6))
        second = knowledge.create("/src/app", "Cache warmup", now=now - timedelta(minutes=5))

        result = capture.run(now)

        assert result.applied == 1
        assert result.skipped == 1
        assert result.counters["duplicates"] == 1
        assert len(snippets.list_snippets()) == 1
        assert knowledge.get(first.id).captured_as_snippet is True
        assert knowledge.get(second.id).captured_as_snippet is True

    def test_completed_todo(self, capture, todos, snippets, now):
        todo = todos.create("/src/app", "Write migration", description="users table", category="bug")
        todos.complete(todo.id, now=now - timedelta(minutes=2))

        capture.run(now)

        [snippet] = snippets.list_snippets()
        assert snippet.content == "COMPLETED: Write migration"
        assert snippet.snippet_type == "bug_fix"
        assert snippet.context == "users table"
        assert todos.get(todo.id).captured_at is not None

    def test_pending_todo_ignored(self, capture, todos, snippets, now):
        todos.create("/src/app", "Not done yet", now=now - timedelta(minutes=2))
        capture.run(now)
        assert snippets.list_snippets() == []

    def test_fixed_bug(self, capture, bugs, snippets, now):
        bug = bugs.create("/src/app", "Crash on save", description="NPE in writer")
        bugs.mark_fixed(bug.id, "Guard null path", now=now - timedelta(minutes=1))

        capture.run(now)

        [snippet] = snippets.list_snippets()
        assert snippet.content == "BUG FIXED: Crash on save"
        assert snippet.snippet_type == "bug_fix"
        assert snippet.context == "NPE in writer\nResolution: Guard null path"

    def test_rows_outside_window_ignored(self, capture, knowledge, snippets, now):
        knowledge.create("/src/app", "Old note", now=now - timedelta(hours=2))
        assert capture.run(now).items == []
        assert snippets.list_snippets() == []

    def test_failed_insert_leaves_marker(self, capture, knowledge, snippets, now, monkeypatch):
        item = knowledge.create("/src/app", "Flaky", now=now - timedelta(minutes=5))

        def boom(snippet):
            raise RuntimeError("disk full")

        with monkeypatch.context() as m:
            m.setattr(capture.snippets, "create", boom)
            result = capture.run(now)

        assert result.retry == 1
        assert result.to_dict()["failures"] == [
            {"item_id": f"chronicle_knowledge:{item.id}", "reason": "disk full"}
        ]
        assert knowledge.get(item.id).captured_as_snippet is False

        # picked up again on the next firing
        assert capture.run(now + timedelta(minutes=1)).applied == 1
        assert len(snippets.list_snippets()) == 1
