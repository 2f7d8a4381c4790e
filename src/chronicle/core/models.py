"""Row models for the Chronicle tables.

Plain dataclasses mirroring :mod:`chronicle.core.orm.tables`; repositories
build them from query rows. Timestamps stay ISO-8601 text, JSON columns are
decoded to Python objects.

Tags:
    chronicle, models, dataclasses, schema-mapping
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


def _as_dict(obj: Any) -> dict[str, Any]:
    return asdict(obj)


# ---------------------------------------------------------------------------
# chronicle_schedule_jobs
# ---------------------------------------------------------------------------


@dataclass
class ScheduleJob:
    """Job Ledger row (``chronicle_schedule_jobs``)."""

    id: int = 0
    job_type: str = ""
    job_name: str = ""
    cron_expression: str = ""
    timezone: str = "UTC"
    enabled: bool = True
    status: str = "idle"  # idle, running, completed, failed
    last_run_at: str | None = None
    next_run_at: str | None = None
    last_result: dict[str, Any] | None = None
    last_error: str | None = None
    config: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


# ---------------------------------------------------------------------------
# capture sources
# ---------------------------------------------------------------------------


@dataclass
class Project:
    """Project row (``chronicle_projects``)."""

    id: int = 0
    project_path: str = ""
    name: str | None = None
    is_active: bool = True
    created_at: str = ""


@dataclass
class KnowledgeItem:
    """Knowledge note row (``chronicle_knowledge``)."""

    id: int = 0
    project_path: str = ""
    title: str = ""
    content: str | None = None
    summary: str | None = None
    category: str | None = None
    subcategory: str | None = None
    cataloger: str | None = None
    source: str | None = None
    captured_as_snippet: bool = False
    captured_at: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


@dataclass
class Todo:
    """Todo row (``chronicle_todos``)."""

    id: int = 0
    project_path: str = ""
    title: str = ""
    description: str | None = None
    category: str | None = None
    status: str = "pending"  # pending, in_progress, completed
    completed_at: str | None = None
    captured_at: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Bug:
    """Bug row (``chronicle_bugs``)."""

    id: int = 0
    project_path: str = ""
    title: str = ""
    description: str | None = None
    resolution: str | None = None
    status: str = "open"  # open, investigating, fixed, wont_fix, duplicate
    captured_at: str | None = None
    created_at: str = ""
    updated_at: str = ""


# ---------------------------------------------------------------------------
# lifecycle outputs
# ---------------------------------------------------------------------------


@dataclass
class Snippet:
    """Captured snippet row (``chronicle_snippets``)."""

    id: int = 0
    project_path: str = ""
    snippet_type: str = "conversation"
    content: str = ""
    context: str | None = None
    session_id: str | None = None
    source_table: str | None = None
    source_id: int | None = None
    is_compiled: bool = False
    compiled_into: int | None = None
    compiled_at: str | None = None
    snippet_date: str = ""
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


@dataclass
class JournalEntry:
    """Journal entry row (``chronicle_journal``)."""

    id: int = 0
    project_path: str = ""
    entry_type: str = "work_log"  # work_log, idea, decision, lesson
    title: str = ""
    content: str | None = None
    created_by: str | None = None
    is_archived: bool = False
    archived_at: str | None = None
    archived_into: int | None = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


@dataclass
class CorrectionRecord:
    """Review task row (``chronicle_corrections``)."""

    id: int = 0
    item_type: str = "knowledge"  # knowledge, journal, doc
    item_id: int = 0
    correction_type: str = "note"  # move, remove, reword, note, merge
    status: str = "pending"  # pending, applied, rejected, reviewed
    details: dict[str, Any] = field(default_factory=dict)
    created_by: str | None = None
    applied_by: str | None = None
    applied_at: str | None = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


@dataclass
class GeneratedDocument:
    """Compiled document row (``chronicle_documents``)."""

    id: int = 0
    project_path: str = ""
    doc_type: str = ""
    doc_date: str = ""
    title: str = ""
    content: str = ""
    source_ids: list[str] = field(default_factory=list)  # "journal:<id>", "snippet:<id>"
    created_by: str | None = None
    is_published: bool = False
    generated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _as_dict(self)


__all__ = [
    "ScheduleJob",
    "Project",
    "KnowledgeItem",
    "Todo",
    "Bug",
    "Snippet",
    "JournalEntry",
    "CorrectionRecord",
    "GeneratedDocument",
]
