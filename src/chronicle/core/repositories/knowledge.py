"""Knowledge note repository.

Tags:
    chronicle, repository, knowledge
"""

from __future__ import annotations

from datetime import datetime

from chronicle.core.models import KnowledgeItem
from chronicle.core.repository import BaseRepository, row_to_model
from chronicle.core.timestamps import to_iso8601, utc_now


class KnowledgeRepository(BaseRepository):
    """CRUD and lifecycle queries for ``chronicle_knowledge``."""

    TABLE = "chronicle_knowledge"

    def create(
        self,
        project_path: str,
        title: str,
        *,
        content: str | None = None,
        summary: str | None = None,
        category: str | None = None,
        subcategory: str | None = None,
        source: str | None = None,
        cataloger: str | None = None,
        now: datetime | None = None,
    ) -> KnowledgeItem:
        stamp = to_iso8601(now or utc_now())
        item_id = self.insert(
            self.TABLE,
            {
                "project_path": project_path,
                "title": title,
                "content": content,
                "summary": summary,
                "category": category,
                "subcategory": subcategory,
                "source": source,
                "cataloger": cataloger,
                "captured_as_snippet": 0,
                "created_at": stamp,
                "updated_at": stamp,
            },
        )
        self.commit()
        return self._require(self.get(item_id), item_id)

    def get(self, item_id: int) -> KnowledgeItem | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (item_id,))
        return row_to_model(KnowledgeItem, row) if row else None

    # -- capture -----------------------------------------------------------

    def list_uncaptured(self, since: str) -> list[KnowledgeItem]:
        """Items not yet turned into a snippet, touched at or after *since*."""
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE captured_as_snippet = 0 AND updated_at >= ? "
            f"ORDER BY updated_at ASC, id ASC",
            (since,),
        )
        return [row_to_model(KnowledgeItem, r) for r in rows]

    def mark_captured(self, item_id: int, captured_at: str) -> None:
        self.update(self.TABLE, item_id, {"captured_as_snippet": 1, "captured_at": captured_at})

    # -- reclassification --------------------------------------------------

    def list_for_reclassification(self, identity: str, since: str, limit: int) -> list[KnowledgeItem]:
        """Items not yet validated by *identity*, oldest first."""
        rows = self.query(
            f"SELECT * FROM {self.TABLE} "
            f"WHERE (cataloger IS NULL OR cataloger != ?) AND updated_at >= ? "
            f"ORDER BY updated_at ASC, id ASC LIMIT ?",
            (identity, since, limit),
        )
        return [row_to_model(KnowledgeItem, r) for r in rows]

    def stamp_cataloger(
        self,
        item_id: int,
        identity: str,
        *,
        category: str | None = None,
        subcategory: str | None = None,
        now: datetime | None = None,
    ) -> int:
        """Record *identity* as cataloger, optionally changing the category."""
        data: dict[str, object] = {"cataloger": identity}
        if category is not None:
            data["category"] = category
            data["subcategory"] = subcategory
        data["updated_at"] = to_iso8601(now or utc_now())
        return self.update(self.TABLE, item_id, data)

    # -- deduplication -----------------------------------------------------

    def list_categories(self) -> list[str | None]:
        rows = self.query(f"SELECT DISTINCT category FROM {self.TABLE} ORDER BY category")
        return [r["category"] for r in rows]

    def newest_in_category(self, category: str | None, limit: int) -> list[KnowledgeItem]:
        """Newest *limit* items of *category* (``None`` = uncategorized)."""
        if category is None:
            where, params = "category IS NULL", ()
        else:
            where, params = "category = ?", (category,)
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE {where} "
            f"ORDER BY created_at DESC, id DESC LIMIT ?",
            (*params, limit),
        )
        return [row_to_model(KnowledgeItem, r) for r in rows]

    # -- corrections -------------------------------------------------------

    def move(self, item_id: int, project_path: str, *, now: datetime | None = None) -> int:
        return self.update(
            self.TABLE,
            item_id,
            {"project_path": project_path, "updated_at": to_iso8601(now or utc_now())},
        )

    def remove(self, item_id: int) -> int:
        return self.delete(self.TABLE, item_id)
