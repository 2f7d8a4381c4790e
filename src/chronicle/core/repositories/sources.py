"""Capture-source repositories: projects, todos, bugs.

Tags:
    chronicle, repository, todos, bugs, projects
"""

from __future__ import annotations

from datetime import datetime

from chronicle.core.enums import BugStatus, TodoStatus
from chronicle.core.models import Bug, Project, Todo
from chronicle.core.repository import BaseRepository, row_to_model
from chronicle.core.timestamps import to_iso8601, utc_now


class ProjectRepository(BaseRepository):
    """CRUD for ``chronicle_projects``."""

    TABLE = "chronicle_projects"

    def register(
        self,
        project_path: str,
        name: str | None = None,
        *,
        is_active: bool = True,
        now: datetime | None = None,
    ) -> Project:
        """Insert the project unless it exists; returns the stored row."""
        self.execute(
            f"INSERT INTO {self.TABLE} (project_path, name, is_active, created_at) "
            f"VALUES (?, ?, ?, ?) ON CONFLICT (project_path) DO NOTHING",
            (project_path, name, 1 if is_active else 0, to_iso8601(now or utc_now())),
        )
        self.commit()
        return self._require(self.get_by_path(project_path), project_path)

    def get_by_path(self, project_path: str) -> Project | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE project_path = ?", (project_path,))
        return row_to_model(Project, row) if row else None

    def list_active(self) -> list[Project]:
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE is_active = 1 ORDER BY project_path ASC"
        )
        return [row_to_model(Project, r) for r in rows]

    def set_active(self, project_path: str, is_active: bool) -> int:
        cursor = self.execute(
            f"UPDATE {self.TABLE} SET is_active = ? WHERE project_path = ?",
            (1 if is_active else 0, project_path),
        )
        self.commit()
        return cursor.rowcount


class TodoRepository(BaseRepository):
    """CRUD for ``chronicle_todos``."""

    TABLE = "chronicle_todos"

    def create(
        self,
        project_path: str,
        title: str,
        *,
        description: str | None = None,
        category: str | None = None,
        now: datetime | None = None,
    ) -> Todo:
        stamp = to_iso8601(now or utc_now())
        todo_id = self.insert(
            self.TABLE,
            {
                "project_path": project_path,
                "title": title,
                "description": description,
                "category": category,
                "status": TodoStatus.PENDING.value,
                "created_at": stamp,
                "updated_at": stamp,
            },
        )
        self.commit()
        return self._require(self.get(todo_id), todo_id)

    def get(self, todo_id: int) -> Todo | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (todo_id,))
        return row_to_model(Todo, row) if row else None

    def complete(self, todo_id: int, *, now: datetime | None = None) -> int:
        stamp = to_iso8601(now or utc_now())
        changed = self.update(
            self.TABLE,
            todo_id,
            {"status": TodoStatus.COMPLETED.value, "completed_at": stamp, "updated_at": stamp},
        )
        self.commit()
        return changed

    def list_uncaptured_completed(self, since: str) -> list[Todo]:
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE status = ? AND captured_at IS NULL AND updated_at >= ? "
            f"ORDER BY updated_at ASC, id ASC",
            (TodoStatus.COMPLETED.value, since),
        )
        return [row_to_model(Todo, r) for r in rows]

    def mark_captured(self, todo_id: int, captured_at: str) -> None:
        self.update(self.TABLE, todo_id, {"captured_at": captured_at})


class BugRepository(BaseRepository):
    """CRUD for ``chronicle_bugs``."""

    TABLE = "chronicle_bugs"

    def create(
        self,
        project_path: str,
        title: str,
        *,
        description: str | None = None,
        now: datetime | None = None,
    ) -> Bug:
        stamp = to_iso8601(now or utc_now())
        bug_id = self.insert(
            self.TABLE,
            {
                "project_path": project_path,
                "title": title,
                "description": description,
                "status": BugStatus.OPEN.value,
                "created_at": stamp,
                "updated_at": stamp,
            },
        )
        self.commit()
        return self._require(self.get(bug_id), bug_id)

    def get(self, bug_id: int) -> Bug | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (bug_id,))
        return row_to_model(Bug, row) if row else None

    def mark_fixed(self, bug_id: int, resolution: str | None = None, *, now: datetime | None = None) -> int:
        changed = self.update(
            self.TABLE,
            bug_id,
            {
                "status": BugStatus.FIXED.value,
                "resolution": resolution,
                "updated_at": to_iso8601(now or utc_now()),
            },
        )
        self.commit()
        return changed

    def list_uncaptured_fixed(self, since: str) -> list[Bug]:
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE status = ? AND captured_at IS NULL AND updated_at >= ? "
            f"ORDER BY updated_at ASC, id ASC",
            (BugStatus.FIXED.value, since),
        )
        return [row_to_model(Bug, r) for r in rows]

    def mark_captured(self, bug_id: int, captured_at: str) -> None:
        self.update(self.TABLE, bug_id, {"captured_at": captured_at})
