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

"""Cursor helpers over DB-API connections.

SQL is passed through untouched; use :func:`~tmpldb.db.placeholder` to
pick ``?`` or ``%s``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from tmpldb.db.connection import is_sqlite


def execute(conn: Any, sql: str, params: Sequence = ()) -> Any:
    """Execute one statement and return the cursor."""
    cur = conn.cursor()
    cur.execute(sql, params)
    return cur


def fetch_one(conn: Any, sql: str, params: Sequence = ()) -> Any:
    """Execute and return the first row, or ``None``."""
    return execute(conn, sql, params).fetchone()


def table_exists(conn: Any, name: str) -> bool:
    """Check whether a table exists (SQLite or PostgreSQL)."""
    if is_sqlite(conn):
        row = fetch_one(
            conn,
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
            (name,),
        )
    else:
        row = fetch_one(
            conn,
            "SELECT 1 FROM information_schema.tables WHERE table_name=%s",
            (name,),
        )
    return row is not None


def create_tables(conn: Any, schema_sql: str) -> None:
    """Execute a (possibly multi-statement) DDL string and commit."""
    if is_sqlite(conn):
        conn.executescript(schema_sql)
    else:
        cur = conn.cursor()
        cur.execute(schema_sql)
        conn.commit()
