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

"""DB-API plumbing for the SQL template store.

Supports SQLite (built-in) and PostgreSQL (optional, via psycopg2).

Usage::

    from tmpldb.db import connect_sqlite, execute, fetch_one, transaction

    conn = connect_sqlite("~/.myapp/templates.db")
    with transaction(conn):
        execute(conn, "INSERT INTO templates (name, data) VALUES (?, ?)", ("/a.html", "hi"))
    row = fetch_one(conn, "SELECT data FROM templates WHERE name = ?", ("/a.html",))
"""

from tmpldb.db.connection import connect_postgresql, connect_sqlite, is_sqlite, placeholder
from tmpldb.db.operations import create_tables, execute, fetch_one, table_exists
from tmpldb.db.transactions import transaction

__all__ = [
    "connect_sqlite",
    "connect_postgresql",
    "is_sqlite",
    "placeholder",
    "execute",
    "fetch_one",
    "table_exists",
    "create_tables",
    "transaction",
]
