"""Snippet repository.

Tags:
    chronicle, repository, snippets
"""

from __future__ import annotations

from chronicle.core.models import Snippet
from chronicle.core.repository import BaseRepository, row_to_model


class SnippetRepository(BaseRepository):
    """CRUD for ``chronicle_snippets``."""

    TABLE = "chronicle_snippets"

    def create(self, snippet: Snippet) -> int:
        """Insert *snippet* (its ``id`` is ignored) and return the new id."""
        return self.insert(
            self.TABLE,
            {
                "project_path": snippet.project_path,
                "snippet_type": snippet.snippet_type,
                "content": snippet.content,
                "context": snippet.context,
                "session_id": snippet.session_id,
                "source_table": snippet.source_table,
                "source_id": snippet.source_id,
                "is_compiled": 0,
                "snippet_date": snippet.snippet_date,
                "created_at": snippet.created_at,
            },
        )

    def get(self, snippet_id: int) -> Snippet | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (snippet_id,))
        return row_to_model(Snippet, row) if row else None

    def exists_for_day(self, project_path: str, snippet_date: str, content: str) -> bool:
        """True when an identical snippet was already captured that day."""
        row = self.query_one(
            f"SELECT id FROM {self.TABLE} "
            f"WHERE project_path = ? AND snippet_date = ? AND content = ? LIMIT 1",
            (project_path, snippet_date, content),
        )
        return row is not None

    def list_snippets(
        self,
        *,
        project_path: str | None = None,
        snippet_date: str | None = None,
        limit: int = 100,
    ) -> list[Snippet]:
        clauses: list[str] = []
        params: list[object] = []
        if project_path is not None:
            clauses.append("project_path = ?")
            params.append(project_path)
        if snippet_date is not None:
            clauses.append("snippet_date = ?")
            params.append(snippet_date)
        where = " AND ".join(clauses) if clauses else "1=1"
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE {where} ORDER BY created_at DESC, id DESC LIMIT ?",
            (*params, limit),
        )
        return [row_to_model(Snippet, r) for r in rows]

    def list_uncompiled(self, project_path: str, since: str) -> list[Snippet]:
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE project_path = ? AND is_compiled = 0 AND created_at >= ? "
            f"ORDER BY created_at ASC, id ASC",
            (project_path, since),
        )
        return [row_to_model(Snippet, r) for r in rows]

    def projects_with_uncompiled(self, since: str) -> list[str]:
        rows = self.query(
            f"SELECT DISTINCT project_path FROM {self.TABLE} "
            f"WHERE is_compiled = 0 AND created_at >= ?",
            (since,),
        )
        return [r["project_path"] for r in rows]

    def mark_compiled(self, snippet_ids: list[int], document_id: int, compiled_at: str) -> int:
        if not snippet_ids:
            return 0
        cursor = self.execute(
            f"UPDATE {self.TABLE} SET is_compiled = 1, compiled_into = ?, compiled_at = ? "
            f"WHERE id IN ({self.ph(len(snippet_ids))})",
            (document_id, compiled_at, *snippet_ids),
        )
        return cursor.rowcount
