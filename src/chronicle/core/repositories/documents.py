"""Generated document repository.

Tags:
    chronicle, repository, documents
"""

from __future__ import annotations

from typing import Any

from chronicle.core.models import GeneratedDocument
from chronicle.core.repository import BaseRepository, dump_json, row_to_model


class DocumentRepository(BaseRepository):
    """CRUD for ``chronicle_documents``.

    Documents are immutable once written apart from ``is_published``.
    """

    TABLE = "chronicle_documents"

    def create(self, document: GeneratedDocument) -> int:
        return self.insert(
            self.TABLE,
            {
                "project_path": document.project_path,
                "doc_type": document.doc_type,
                "doc_date": document.doc_date,
                "title": document.title,
                "content": document.content,
                "source_ids": dump_json(document.source_ids),
                "created_by": document.created_by,
                "is_published": 1 if document.is_published else 0,
                "generated_at": document.generated_at,
            },
        )

    def get(self, document_id: int) -> GeneratedDocument | None:
        row = self.query_one(f"SELECT * FROM {self.TABLE} WHERE id = ?", (document_id,))
        return self._to_model(row) if row else None

    def exists(self, project_path: str, doc_type: str, doc_date: str) -> bool:
        row = self.query_one(
            f"SELECT id FROM {self.TABLE} WHERE project_path = ? AND doc_type = ? AND doc_date = ?",
            (project_path, doc_type, doc_date),
        )
        return row is not None

    def list_documents(
        self,
        *,
        project_path: str | None = None,
        doc_date: str | None = None,
        limit: int = 100,
    ) -> list[GeneratedDocument]:
        clauses: list[str] = []
        params: list[object] = []
        if project_path is not None:
            clauses.append("project_path = ?")
            params.append(project_path)
        if doc_date is not None:
            clauses.append("doc_date = ?")
            params.append(doc_date)
        where = " AND ".join(clauses) if clauses else "1=1"
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE {where} ORDER BY generated_at DESC, id DESC LIMIT ?",
            (*params, limit),
        )
        return [self._to_model(r) for r in rows]

    def set_published(self, document_id: int, published: bool = True) -> int:
        changed = self.update(self.TABLE, document_id, {"is_published": 1 if published else 0})
        self.commit()
        return changed

    def reference_count(self, document_id: int) -> int:
        """Journal entries and snippets archived or compiled into *document_id*."""
        row = self.query_one(
            "SELECT (SELECT COUNT(*) FROM chronicle_journal WHERE archived_into = ?)"
            " + (SELECT COUNT(*) FROM chronicle_snippets WHERE compiled_into = ?) AS cnt",
            (document_id, document_id),
        )
        return int((row or {}).get("cnt", 0))

    def remove(self, document_id: int) -> int:
        return self.delete(self.TABLE, document_id)

    @staticmethod
    def _to_model(row: dict[str, Any]) -> GeneratedDocument:
        return row_to_model(GeneratedDocument, row, json_fields=("source_ids",))
