"""Declarative base and type-map for all Chronicle ORM models.

Timestamps are declared as ``str``: every writer binds fixed-width ISO-8601
UTC text (see :mod:`chronicle.core.timestamps`), which keeps window
comparisons plain string comparisons on every backend.
"""

from __future__ import annotations

from sqlalchemy import JSON, Integer, Text
from sqlalchemy.orm import DeclarativeBase


class ChronicleBase(DeclarativeBase):
    """Shared declarative base for every Chronicle table.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``bool``  → ``Integer``  (0/1 on every backend)
    * ``dict``  → ``JSON``
    * ``list``  → ``JSON``
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Integer,
        dict: JSON,
        list: JSON,
    }
