"""Repository fixtures for lifecycle tests."""

from __future__ import annotations

import pytest

from chronicle.core.repositories import (
    BugRepository,
    CorrectionRepository,
    DocumentRepository,
    JournalRepository,
    KnowledgeRepository,
    ProjectRepository,
    SnippetRepository,
    TodoRepository,
)


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def knowledge(conn):
    return KnowledgeRepository(conn)


@pytest.fixture
def todos(conn):
    return TodoRepository(conn)


@pytest.fixture
def bugs(conn):
    return BugRepository(conn)


@pytest.fixture
def snippets(conn):
    return SnippetRepository(conn)


@pytest.fixture
def journal(conn):
    return JournalRepository(conn)


@pytest.fixture
def documents(conn):
    return DocumentRepository(conn)


@pytest.fixture
def corrections(conn):
    return CorrectionRepository(conn)


@pytest.fixture
def projects(conn):
    return ProjectRepository(conn)
