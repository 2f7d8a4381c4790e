"""SQLAlchemy declarative models: the single source of the Chronicle schema."""

from chronicle.core.orm.base import ChronicleBase
from chronicle.core.orm.session import (
    SAConnectionBridge,
    create_chronicle_engine,
    chronicle_session_factory,
)
from chronicle.core.orm.tables import (
    BugTable,
    CorrectionTable,
    GeneratedDocumentTable,
    JournalEntryTable,
    KnowledgeTable,
    ProjectTable,
    ScheduleJobTable,
    SnippetTable,
    TodoTable,
)

__all__ = [
    "ChronicleBase",
    "SAConnectionBridge",
    "create_chronicle_engine",
    "chronicle_session_factory",
    "BugTable",
    "CorrectionTable",
    "GeneratedDocumentTable",
    "JournalEntryTable",
    "KnowledgeTable",
    "ProjectTable",
    "ScheduleJobTable",
    "SnippetTable",
    "TodoTable",
]
