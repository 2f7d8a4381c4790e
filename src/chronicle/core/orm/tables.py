"""Table definitions — job ledger, capture sources, lifecycle outputs.

Tags:
    chronicle, orm, sqlalchemy, tables
"""

from __future__ import annotations

from sqlalchemy import JSON, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from chronicle.core.orm.base import ChronicleBase


class ScheduleJobTable(ChronicleBase):
    __tablename__ = "chronicle_schedule_jobs"
    __table_args__ = (UniqueConstraint("job_type", "job_name", name="uq_schedule_job"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_type: Mapped[str] = mapped_column(Text, nullable=False)
    job_name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    cron_expression: Mapped[str] = mapped_column(Text, nullable=False)
    timezone: Mapped[str] = mapped_column(Text, nullable=False, default="UTC")
    enabled: Mapped[bool] = mapped_column(Integer, nullable=False, default=1)
    # idle, running, completed, failed
    status: Mapped[str] = mapped_column(Text, nullable=False, default="idle")
    last_run_at: Mapped[str | None] = mapped_column(Text)
    next_run_at: Mapped[str | None] = mapped_column(Text)
    last_result: Mapped[dict | None] = mapped_column(JSON)
    last_error: Mapped[str | None] = mapped_column(Text)
    config: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)


class ProjectTable(ChronicleBase):
    __tablename__ = "chronicle_projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)


class KnowledgeTable(ChronicleBase):
    __tablename__ = "chronicle_knowledge"
    __table_args__ = (
        Index("ix_knowledge_capture", "captured_as_snippet", "updated_at"),
        Index("ix_knowledge_category", "category", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text)
    summary: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(Text)
    subcategory: Mapped[str | None] = mapped_column(Text)
    cataloger: Mapped[str | None] = mapped_column(Text)
    source: Mapped[str | None] = mapped_column(Text)
    captured_as_snippet: Mapped[bool] = mapped_column(Integer, nullable=False, default=0)
    captured_at: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)


class TodoTable(ChronicleBase):
    __tablename__ = "chronicle_todos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(Text)
    # pending, in_progress, completed
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    completed_at: Mapped[str | None] = mapped_column(Text)
    captured_at: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)


class BugTable(ChronicleBase):
    __tablename__ = "chronicle_bugs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    resolution: Mapped[str | None] = mapped_column(Text)
    # open, investigating, fixed, wont_fix, duplicate
    status: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    captured_at: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)


class SnippetTable(ChronicleBase):
    __tablename__ = "chronicle_snippets"
    __table_args__ = (
        Index("ix_snippets_day", "project_path", "snippet_date"),
        Index("ix_snippets_source", "source_table", "source_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, nullable=False)
    snippet_type: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[str | None] = mapped_column(Text)
    session_id: Mapped[str | None] = mapped_column(Text)
    source_table: Mapped[str | None] = mapped_column(Text)
    source_id: Mapped[int | None] = mapped_column(Integer)
    is_compiled: Mapped[bool] = mapped_column(Integer, nullable=False, default=0)
    compiled_into: Mapped[int | None] = mapped_column(Integer)
    compiled_at: Mapped[str | None] = mapped_column(Text)
    snippet_date: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)


class JournalEntryTable(ChronicleBase):
    __tablename__ = "chronicle_journal"
    __table_args__ = (Index("ix_journal_window", "project_path", "is_archived", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, nullable=False)
    # work_log, idea, decision, lesson
    entry_type: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(Text)
    is_archived: Mapped[bool] = mapped_column(Integer, nullable=False, default=0)
    archived_at: Mapped[str | None] = mapped_column(Text)
    archived_into: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)


class CorrectionTable(ChronicleBase):
    __tablename__ = "chronicle_corrections"
    __table_args__ = (Index("ix_corrections_status", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # knowledge, journal, doc
    item_type: Mapped[str] = mapped_column(Text, nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # move, remove, reword, note, merge
    correction_type: Mapped[str] = mapped_column(Text, nullable=False)
    # pending, applied, rejected, reviewed
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    details: Mapped[dict | None] = mapped_column(JSON)
    created_by: Mapped[str | None] = mapped_column(Text)
    applied_by: Mapped[str | None] = mapped_column(Text)
    applied_at: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)


class GeneratedDocumentTable(ChronicleBase):
    __tablename__ = "chronicle_documents"
    __table_args__ = (
        UniqueConstraint("project_path", "doc_type", "doc_date", name="uq_document_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_path: Mapped[str] = mapped_column(Text, nullable=False)
    doc_type: Mapped[str] = mapped_column(Text, nullable=False)
    doc_date: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    source_ids: Mapped[list | None] = mapped_column(JSON)
    created_by: Mapped[str | None] = mapped_column(Text)
    is_published: Mapped[bool] = mapped_column(Integer, nullable=False, default=0)
    generated_at: Mapped[str] = mapped_column(Text, nullable=False)


__all__ = [
    "ScheduleJobTable",
    "ProjectTable",
    "KnowledgeTable",
    "TodoTable",
    "BugTable",
    "SnippetTable",
    "JournalEntryTable",
    "CorrectionTable",
    "GeneratedDocumentTable",
]
