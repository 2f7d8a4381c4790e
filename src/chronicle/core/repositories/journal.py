"""Journal entry repository.

Tags:
    chronicle, repository, journal
"""

from __future__ import annotations

from datetime import datetime

from chronicle.core.models import JournalEntry
from chronicle.core.repository import BaseRepository, row_to_model
from chronicle.core.timestamps import to_iso8601, utc_now


class JournalRepository(BaseRepository):
    """CRUD for ``chronicle_journal``.

    There is no delete: compilation archives entries in place.
    """

    TABLE = "chronicle_journal"

    def create(
        self,
        project_path: str,
        entry_type: str,
        title: str,
        content: str | None = None,
        *,
        created_by: str | None = None,
        now: datetime | None = None,
    ) -> JournalEntry:
        entry_id = self.insert(
            self.TABLE,
            {
                "project_path": project_path,
                "entry_type": entry_type,
                "title": title,
                "content": content,
                "created_by": created_by,
                "is_archived": 0,
                "created_at": to_iso8601(now or utc_now()),
            },
        )
        self.commit()
        return self._require(self.get(entry_id), entry_id)

    def get(self, entry_id: int) -> JournalEntry | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (entry_id,))
        return row_to_model(JournalEntry, row) if row else None

    def list_entries(
        self,
        *,
        project_path: str | None = None,
        include_archived: bool = True,
    ) -> list[JournalEntry]:
        clauses: list[str] = []
        params: list[object] = []
        if project_path is not None:
            clauses.append("project_path = ?")
            params.append(project_path)
        if not include_archived:
            clauses.append("is_archived = 0")
        where = " AND ".join(clauses) if clauses else "1=1"
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE {where} ORDER BY created_at ASC, id ASC",
            tuple(params),
        )
        return [row_to_model(JournalEntry, r) for r in rows]

    def list_window(
        self,
        project_path: str,
        entry_type: str,
        since: str,
        exclude_creator: str,
    ) -> list[JournalEntry]:
        """Live entries of one category created at or after *since*.

        Entries written by *exclude_creator* are left out.
        """
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE project_path = ? AND entry_type = ? AND is_archived = 0 "
            f"AND created_at >= ? AND (created_by IS NULL OR created_by != ?) "
            f"ORDER BY created_at ASC, id ASC",
            (project_path, entry_type, since, exclude_creator),
        )
        return [row_to_model(JournalEntry, r) for r in rows]

    def projects_with_activity(self, since: str, exclude_creator: str) -> list[str]:
        rows = self.query(
            f"SELECT DISTINCT project_path FROM {self.TABLE} "
            f"WHERE is_archived = 0 AND created_at >= ? "
            f"AND (created_by IS NULL OR created_by != ?)",
            (since, exclude_creator),
        )
        return [r["project_path"] for r in rows]

    def archive(self, entry_ids: list[int], document_id: int, archived_at: str) -> int:
        """Mark entries historical with a back-reference to *document_id*."""
        if not entry_ids:
            return 0
        cursor = self.execute(
            f"UPDATE {self.TABLE} SET is_archived = 1, archived_at = ?, archived_into = ? "
            f"WHERE id IN ({self.ph(len(entry_ids))})",
            (archived_at, document_id, *entry_ids),
        )
        return cursor.rowcount

    def move(self, entry_id: int, project_path: str) -> int:
        return self.update(self.TABLE, entry_id, {"project_path": project_path})
