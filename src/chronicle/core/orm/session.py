"""SQLAlchemy engine factory, session factory, and Connection bridge.

This module provides:

* ``create_chronicle_engine``   -- Create a SA engine from a URL.
* ``ChronicleSession``          -- A pre-configured ``Session`` subclass.
* ``SAConnectionBridge``        -- Wraps a SA ``Session`` to satisfy the
  ``chronicle.core.protocols.Connection`` protocol, so the repositories run
  unchanged on any database SQLAlchemy can reach.

Tags:
    chronicle, orm, sqlalchemy, session, engine, bridge, connection
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def create_chronicle_engine(
    url: str = "sqlite:///chronicle.db",
    *,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL to stdout.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if not url.startswith("sqlite"):
        return _sa_create_engine(url, echo=echo, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = _sa_create_engine(url, echo=echo, **kwargs)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class ChronicleSession(Session):
    """Pre-configured session with ``expire_on_commit=False``."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def chronicle_session_factory(engine: Engine) -> sessionmaker[ChronicleSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``ChronicleSession`` instances."""
    return sessionmaker(bind=engine, class_=ChronicleSession)


def _rewrite_placeholders(sql: str) -> str:
    """Convert positional ``?`` markers to ``:p0, :p1, …`` for ``text()``."""
    rewritten: list[str] = []
    idx = 0
    for ch in sql:
        if ch == "?":
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    return "".join(rewritten)


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Session`` look like ``chronicle.core.protocols.Connection``.

    ``execute`` returns the bridge itself, which carries ``rowcount`` and the
    fetch methods of the last result. Rows are returned as plain dicts.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._last_result: Any = None
        self.rowcount: int = -1

    # --- execute / executemany ---

    def execute(self, sql: str, parameters: Sequence[Any] | None = None) -> SAConnectionBridge:
        if parameters:
            mapping = {f"p{i}": v for i, v in enumerate(parameters)}
            self._last_result = self._session.execute(text(_rewrite_placeholders(sql)), mapping)
        else:
            self._last_result = self._session.execute(text(sql))
        self.rowcount = self._last_result.rowcount if hasattr(self._last_result, "rowcount") else -1
        return self

    def executemany(self, sql: str, seq_of_parameters: Sequence[Sequence[Any]]) -> SAConnectionBridge:
        total = 0
        for params in seq_of_parameters:
            self.execute(sql, params)
            total += max(self.rowcount, 0)
        self.rowcount = total
        return self

    # --- fetch ---

    def fetchone(self) -> dict[str, Any] | None:
        if self._last_result is None or not self._last_result.returns_rows:
            return None
        row = self._last_result.fetchone()
        return dict(row._mapping) if row is not None else None

    def fetchall(self) -> list[dict[str, Any]]:
        if self._last_result is None or not self._last_result.returns_rows:
            return []
        return [dict(r._mapping) for r in self._last_result.fetchall()]

    # --- transaction ---

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def close(self) -> None:
        self._session.close()

    @property
    def session(self) -> Session:
        """Access the underlying SA session (e.g., for ORM queries)."""
        return self._session
