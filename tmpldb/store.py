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

"""Document-store backends for template records.

A store exposes three operations over one table of records shaped like
``{"name": ..., "data": ..., "owner": ...}``:

* ``get(key)`` — point lookup by primary key
* ``insert(record, conflict)`` — write with a conflict policy, returning
  a :class:`~tmpldb.models.WriteResult`
* ``scan(where, fields)`` — equality filter plus projection

:class:`SQLTemplateStore` keeps records in a SQL table through a DB-API
connection; :class:`MemoryTemplateStore` keeps them in a dict.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from tmpldb.config import DEFAULT_TABLE_NAME, validate_table_name
from tmpldb.db import (
    create_tables,
    execute,
    fetch_one,
    is_sqlite,
    placeholder,
    table_exists,
    transaction,
)
from tmpldb.errors import StoreError
from tmpldb.models import ConflictPolicy, WriteResult

logger = logging.getLogger(__name__)

FIELDS = ("name", "data", "owner")


def _check_fields(fields: Sequence[str]) -> None:
    unknown = [f for f in fields if f not in FIELDS]
    if unknown:
        raise ValueError(f"Unknown template field(s): {unknown}. Available: {list(FIELDS)}")


def _duplicate(key: str) -> WriteResult:
    return WriteResult(errors=1, first_error=f"Duplicate primary key `name`: {key!r}")


class TemplateStore(ABC):
    """Abstract document store holding template records."""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the record stored under *key*, or ``None``."""

    @abstractmethod
    def insert(
        self,
        record: Mapping[str, Any],
        conflict: ConflictPolicy = ConflictPolicy.ERROR,
    ) -> WriteResult:
        """Write *record*, resolving an existing key with *conflict*.

        A duplicate key under :attr:`ConflictPolicy.ERROR` is reported in
        the result (``errors=1``), not raised.
        """

    @abstractmethod
    def scan(
        self,
        where: Mapping[str, Any] | None = None,
        fields: Sequence[str] | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield records matching *where*, projected to *fields*."""

    def ensure_table(self) -> None:
        """Create the backing table if the backend needs one."""


class SQLTemplateStore(TemplateStore):
    """Template records in a SQL table (SQLite or PostgreSQL).

    The connection is borrowed, never closed.  Absent owners are stored
    as ``NULL``.  Any driver exception surfaces as :class:`StoreError`.
    """

    def __init__(self, conn: Any, table_name: str = DEFAULT_TABLE_NAME) -> None:
        self.conn = conn
        self.table_name = validate_table_name(table_name)
        self._ph = placeholder(conn)

    def ensure_table(self) -> None:
        t = self.table_name
        try:
            if table_exists(self.conn, t):
                return
            create_tables(
                self.conn,
                f"CREATE TABLE IF NOT EXISTS {t} (\n"
                "    name   TEXT PRIMARY KEY,\n"
                "    data   TEXT NOT NULL,\n"
                "    owner  TEXT\n"
                ");\n"
                f"CREATE INDEX IF NOT EXISTS idx_{t}_owner ON {t} (owner);\n",
            )
        except Exception as exc:
            raise StoreError(f"Could not create table {t}: {exc}") from exc
        logger.info("Created template table %s", t)

    def _rollback_failed_read(self) -> None:
        """Clear an aborted psycopg2 transaction so the connection stays usable."""
        if is_sqlite(self.conn):
            return
        try:
            self.conn.rollback()
        except Exception as exc:
            logger.warning("Rollback on %s failed: %s", self.table_name, exc)

    @staticmethod
    def _row_to_record(row: Any, fields: Sequence[str]) -> dict[str, Any]:
        record = {}
        for field in fields:
            value = row[field]
            if value is not None:
                record[field] = value
        return record

    def get(self, key: str) -> dict[str, Any] | None:
        try:
            row = fetch_one(
                self.conn,
                f"SELECT name, data, owner FROM {self.table_name} WHERE name = {self._ph}",
                (key,),
            )
        except Exception as exc:
            self._rollback_failed_read()
            raise StoreError(f"Lookup of {key!r} failed: {exc}") from exc
        return None if row is None else self._row_to_record(row, FIELDS)

    def insert(
        self,
        record: Mapping[str, Any],
        conflict: ConflictPolicy = ConflictPolicy.ERROR,
    ) -> WriteResult:
        conflict = ConflictPolicy(conflict)
        key = record["name"]
        data = record.get("data", "")
        owner = record.get("owner") or None
        t, ph = self.table_name, self._ph
        try:
            with transaction(self.conn):
                existing = fetch_one(
                    self.conn, f"SELECT data, owner FROM {t} WHERE name = {ph}", (key,),
                )
                if existing is None:
                    execute(
                        self.conn,
                        f"INSERT INTO {t} (name, data, owner) VALUES ({ph}, {ph}, {ph})",
                        (key, data, owner),
                    )
                    return WriteResult(inserted=1)
                if conflict is ConflictPolicy.ERROR:
                    return _duplicate(key)
                if conflict is ConflictPolicy.IGNORE:
                    return WriteResult(unchanged=1)
                if existing["data"] == data and existing["owner"] == owner:
                    return WriteResult(unchanged=1)
                execute(
                    self.conn,
                    f"UPDATE {t} SET data = {ph}, owner = {ph} WHERE name = {ph}",
                    (data, owner, key),
                )
                return WriteResult(replaced=1)
        except Exception as exc:
            raise StoreError(f"Insert of {key!r} failed: {exc}") from exc

    def scan(
        self,
        where: Mapping[str, Any] | None = None,
        fields: Sequence[str] | None = None,
    ) -> Iterator[dict[str, Any]]:
        where = dict(where or {})
        fields = tuple(fields or FIELDS)
        _check_fields([*where, *fields])

        sql = f"SELECT {', '.join(fields)} FROM {self.table_name}"
        if where:
            sql += " WHERE " + " AND ".join(f"{f} = {self._ph}" for f in where)
        sql += " ORDER BY name"

        try:
            cur = execute(self.conn, sql, tuple(where.values()))
            for row in cur:
                yield self._row_to_record(row, fields)
        except Exception as exc:
            self._rollback_failed_read()
            raise StoreError(f"Scan of {self.table_name} failed: {exc}") from exc


class MemoryTemplateStore(TemplateStore):
    """Dict-backed store with the same semantics as :class:`SQLTemplateStore`."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._records)

    @staticmethod
    def _normalise(record: Mapping[str, Any]) -> dict[str, Any]:
        clean = {"name": record["name"], "data": record.get("data", "")}
        if record.get("owner"):
            clean["owner"] = record["owner"]
        return clean

    def get(self, key: str) -> dict[str, Any] | None:
        record = self._records.get(key)
        return dict(record) if record is not None else None

    def insert(
        self,
        record: Mapping[str, Any],
        conflict: ConflictPolicy = ConflictPolicy.ERROR,
    ) -> WriteResult:
        conflict = ConflictPolicy(conflict)
        new = self._normalise(record)
        key = new["name"]
        existing = self._records.get(key)
        if existing is None:
            self._records[key] = new
            return WriteResult(inserted=1)
        if conflict is ConflictPolicy.ERROR:
            return _duplicate(key)
        if conflict is ConflictPolicy.IGNORE or existing == new:
            return WriteResult(unchanged=1)
        self._records[key] = new
        return WriteResult(replaced=1)

    def scan(
        self,
        where: Mapping[str, Any] | None = None,
        fields: Sequence[str] | None = None,
    ) -> Iterator[dict[str, Any]]:
        where = dict(where or {})
        fields = tuple(fields or FIELDS)
        _check_fields([*where, *fields])

        for key in sorted(self._records):
            record = self._records[key]
            if all(record.get(f) == v for f, v in where.items()):
                yield {f: record[f] for f in fields if f in record}
