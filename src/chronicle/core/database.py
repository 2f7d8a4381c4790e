"""
Open a :class:`~chronicle.core.protocols.Connection` from a database URL.

``sqlite:`` URLs use the stdlib adapter directly; anything else goes
through a SQLAlchemy session and :class:`SAConnectionBridge`.
"""

from __future__ import annotations

from chronicle.core.orm.session import (
    SAConnectionBridge,
    chronicle_session_factory,
    create_chronicle_engine,
)
from chronicle.core.protocols import Connection
from chronicle.core.sqlite_conn import SqliteConnection


def open_connection(url: str, *, echo: bool = False) -> Connection:
    """Return a connection for *url* (``sqlite:///path`` or any SQLAlchemy URL)."""
    if url.startswith("sqlite:"):
        return SqliteConnection.from_url(url)
    engine = create_chronicle_engine(url, echo=echo)
    session = chronicle_session_factory(engine)()
    return SAConnectionBridge(session)


__all__ = ["open_connection"]
