"""
Shared enumerations for Chronicle.

String enums so values round-trip through TEXT columns and JSON unchanged.
"""

from enum import Enum


class JobStatus(str, Enum):
    """Status of a Job Ledger row.

    ``SKIPPED`` is an outcome reported by a trigger that lost the overlap
    guard; it is never written to the ledger.
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SnippetType(str, Enum):
    CONVERSATION = "conversation"
    CODE_CHANGE = "code_change"
    BUG_FIX = "bug_fix"
    FEATURE = "feature"
    CONFIG = "config"
    DISCUSSION = "discussion"
    IDEA = "idea"
    DECISION = "decision"


class EntryType(str, Enum):
    """Journal entry categories, in compilation order."""

    WORK_LOG = "work_log"
    DECISION = "decision"
    IDEA = "idea"
    LESSON = "lesson"


# Stable processing order for the nightly compilation.
COMPILE_ORDER: tuple[EntryType, ...] = (
    EntryType.WORK_LOG,
    EntryType.DECISION,
    EntryType.IDEA,
    EntryType.LESSON,
)


class ItemType(str, Enum):
    """Kinds of rows a correction may point at."""

    KNOWLEDGE = "knowledge"
    JOURNAL = "journal"
    DOC = "doc"


class CorrectionType(str, Enum):
    MOVE = "move"
    REMOVE = "remove"
    REWORD = "reword"
    NOTE = "note"
    MERGE = "merge"


class CorrectionStatus(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"
    REVIEWED = "reviewed"


class TodoStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class BugStatus(str, Enum):
    OPEN = "open"
    INVESTIGATING = "investigating"
    FIXED = "fixed"
    WONT_FIX = "wont_fix"
    DUPLICATE = "duplicate"


# Category vocabulary offered to the classifier.
KNOWLEDGE_CATEGORIES: tuple[str, ...] = (
    "architecture",
    "bug-fix",
    "config",
    "workflow",
    "feature",
    "refactor",
    "documentation",
    "api",
    "database",
    "ui",
    "testing",
    "deployment",
    "security",
    "performance",
    "lesson",
    "idea",
)


__all__ = [
    "JobStatus",
    "SnippetType",
    "EntryType",
    "COMPILE_ORDER",
    "ItemType",
    "CorrectionType",
    "CorrectionStatus",
    "TodoStatus",
    "BugStatus",
    "KNOWLEDGE_CATEGORIES",
]
