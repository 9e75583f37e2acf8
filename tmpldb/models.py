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

"""Data models for stored templates and write outcomes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConflictPolicy(str, Enum):
    """What an insert does when the key already exists."""

    ERROR = "error"
    REPLACE = "replace"
    IGNORE = "ignore"


@dataclass
class Template:
    """A stored template.

    Attributes:
        name: Fully-qualified storage key.
        data: Template source text.
        owner: Tenant identifier; empty means not tenant-scoped and is
            left out of the persisted record.
    """

    name: str
    data: str
    owner: str = ""

    @property
    def data_bytes(self) -> bytes:
        return self.data.encode("utf-8")

    def to_record(self) -> dict[str, str]:
        record = {"name": self.name, "data": self.data}
        if self.owner:
            record["owner"] = self.owner
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Template:
        return cls(
            name=record["name"],
            data=record.get("data") or "",
            owner=record.get("owner") or "",
        )


@dataclass
class WriteResult:
    """Counts reported by the store for a single write."""

    inserted: int = 0
    replaced: int = 0
    unchanged: int = 0
    errors: int = 0
    first_error: str | None = None

    @property
    def affected(self) -> int:
        """Records that were actually written."""
        return self.inserted + self.replaced
