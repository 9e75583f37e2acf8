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

"""Transaction context manager."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from tmpldb.db.connection import is_sqlite


@contextmanager
def transaction(conn: Any) -> Generator[Any, None, None]:
    """Commit on success, roll back on exception.

    SQLite gets an explicit ``BEGIN`` so the read-then-write inside a
    template insert is atomic; psycopg2 already runs without autocommit.
    """
    if is_sqlite(conn) and not conn.in_transaction:
        conn.execute("BEGIN")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
