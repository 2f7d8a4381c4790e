"""Domain repositories over the Chronicle tables."""

from .corrections import CorrectionRepository
from .documents import DocumentRepository
from .journal import JournalRepository
from .knowledge import KnowledgeRepository
from .snippets import SnippetRepository
from .sources import BugRepository, ProjectRepository, TodoRepository

__all__ = [
    "BugRepository",
    "CorrectionRepository",
    "DocumentRepository",
    "JournalRepository",
    "KnowledgeRepository",
    "ProjectRepository",
    "SnippetRepository",
    "TodoRepository",
]
