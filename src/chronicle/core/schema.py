"""
Schema creation for the raw-SQL repositories.

The ORM models in :mod:`chronicle.core.orm.tables` are the only schema
definition. ``create_tables`` renders them for whatever connection it is
given: SQLAlchemy DDL compiled for SQLite on a :class:`SqliteConnection`,
``metadata.create_all`` on a session bridge.

Usage:
    from chronicle.core.schema import create_tables

    conn = SqliteConnection(":memory:")
    create_tables(conn)
"""

from __future__ import annotations

import logging

from sqlalchemy.dialects import sqlite
from sqlalchemy.schema import CreateIndex, CreateTable

from chronicle.core.orm import tables  # noqa: F401  (registers the models)
from chronicle.core.orm.base import ChronicleBase
from chronicle.core.orm.session import SAConnectionBridge
from chronicle.core.protocols import Connection

logger = logging.getLogger(__name__)

CORE_TABLES: dict[str, str] = {
    "schedule_jobs": "chronicle_schedule_jobs",
    "projects": "chronicle_projects",
    "knowledge": "chronicle_knowledge",
    "todos": "chronicle_todos",
    "bugs": "chronicle_bugs",
    "snippets": "chronicle_snippets",
    "journal": "chronicle_journal",
    "corrections": "chronicle_corrections",
    "documents": "chronicle_documents",
}


def sqlite_ddl() -> list[str]:
    """Render every table and index as SQLite ``CREATE … IF NOT EXISTS``."""
    dialect = sqlite.dialect()
    statements: list[str] = []
    for table in ChronicleBase.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)).strip())
        for index in sorted(table.indexes, key=lambda ix: ix.name or ""):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)).strip())
    return statements


def create_tables(conn: Connection) -> int:
    """Create all Chronicle tables on *conn*; existing tables are left alone.

    Returns the number of tables in the schema.
    """
    if isinstance(conn, SAConnectionBridge):
        bind = conn.session.get_bind()
        ChronicleBase.metadata.create_all(bind)
    else:
        for statement in sqlite_ddl():
            conn.execute(statement)
        conn.commit()
    logger.debug(f"Schema ready ({len(CORE_TABLES)} tables)")
    return len(CORE_TABLES)


__all__ = ["CORE_TABLES", "create_tables", "sqlite_ddl"]
