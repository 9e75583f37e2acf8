# tmpldb — Jinja2 templates stored in a database
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Connection factories and backend detection.

The template store never opens connections on its own; these helpers are
for callers that want a ready-made one.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def connect_sqlite(path: str | Path, *, wal_mode: bool = True) -> sqlite3.Connection:
    """Open (or create) a SQLite database.

    Args:
        path: File path (``":memory:"`` for in-memory).
        wal_mode: Enable WAL journal mode for file databases.
    """
    path = str(Path(path).expanduser()) if path != ":memory:" else ":memory:"
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if wal_mode and path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")

    logger.debug("SQLite connection opened: %s", path)
    return conn


def connect_postgresql(
    dsn: str | None = None,
    *,
    host: str = "localhost",
    port: int = 5432,
    database: str = "tmpldb",
    user: str = "tmpldb",
    password: str = "",
) -> Any:
    """Open a PostgreSQL connection via psycopg2 with dict rows."""
    try:
        import psycopg2
        import psycopg2.extras
    except ImportError:
        raise ImportError(
            "psycopg2 not installed. Install with: pip install tmpldb[postgresql]"
        )

    if dsn:
        conn = psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor)
    else:
        conn = psycopg2.connect(
            host=host,
            port=port,
            database=database,
            user=user,
            password=password,
            cursor_factory=psycopg2.extras.RealDictCursor,
        )

    logger.debug("PostgreSQL connection opened: %s:%s/%s", host, port, database)
    return conn


def is_sqlite(conn: Any) -> bool:
    """Return True if *conn* is a ``sqlite3`` connection."""
    return "sqlite3" in type(conn).__module__


def placeholder(conn: Any) -> str:
    """Parameter placeholder for *conn*'s driver."""
    return "?" if is_sqlite(conn) else "%s"
