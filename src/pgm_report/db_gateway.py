"""SQLAlchemy gateway helpers for the IGAL and NBITS databases.

Each :class:`DataSource` wraps one SQLAlchemy engine. Every query borrows a
connection for the duration of a single statement and hands it back to the
pool on exit, including when the statement raises.
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import logging
from contextlib import contextmanager  # For clean connection management
from typing import Any, Dict, Iterator, List

from sqlalchemy import Executable, create_engine
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class DataSource:
    """A named relational data source able to run SQLAlchemy statements."""

    def __init__(self, name: str, engine: Engine) -> None:
        self.name = name  # Used in log messages ("IGAL", "NBITS")
        self._engine = engine

    @classmethod
    def from_url(cls, name: str, url: str, *, echo: bool = False) -> "DataSource":
        """Create a data source from a SQLAlchemy database URL."""
        if not url:
            raise ValueError(f"{name} database URL is not configured")
        engine = create_engine(url, echo=echo, pool_pre_ping=True)
        return cls(name, engine)

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        """Yield a pooled connection that is always returned afterwards."""
        with self._engine.connect() as conn:
            yield conn

    def scalar(self, statement: Executable) -> Any:
        """Return the first column of the first row, or ``None`` without rows."""
        with self._connection() as conn:
            return conn.execute(statement).scalar()

    def column(self, statement: Executable) -> List[Any]:
        """Return the first column of every row in result order."""
        with self._connection() as conn:
            return list(conn.execute(statement).scalars())

    def rows(self, statement: Executable) -> List[Dict[str, Any]]:
        """Return every row as a dict keyed by column label."""
        with self._connection() as conn:
            result = conn.execute(statement)
            return [dict(row._mapping) for row in result]

    def dispose(self) -> None:
        """Close all pooled connections held by the engine."""
        logger.debug("Disposing %s engine", self.name)
        self._engine.dispose()

    def __repr__(self) -> str:
        return f"DataSource(name={self.name!r}, url={self._engine.url!r})"


__all__ = ["DataSource"]  # Public API
