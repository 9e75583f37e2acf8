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

"""Exception taxonomy for template storage.

Every error raised by :mod:`tmpldb` derives from
:class:`TemplateStoreError`.  Backend failures are wrapped in
:class:`StoreError` with the underlying exception chained as ``__cause__``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tmpldb.models import WriteResult


class TemplateStoreError(Exception):
    """Base class for all tmpldb errors."""


class StoreError(TemplateStoreError):
    """The document store reported a failure."""


class NotFoundError(StoreError):
    """No record exists under the requested storage key."""

    def __init__(self, key: str, path: str | None = None) -> None:
        super().__init__(f"Template not found: {key}")
        self.key = key
        self.path = path


class WriteError(StoreError):
    """An insert affected no records."""

    def __init__(self, key: str, result: WriteResult) -> None:
        detail = f": {result.first_error}" if result.first_error else ""
        super().__init__(
            f"Encountered weird state on template insert of {key!r} "
            f"({result}){detail}"
        )
        self.key = key
        self.result = result


class TraversalError(TemplateStoreError):
    """Walking a template directory failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot walk {path}: {reason}")
        self.path = path


class TemplateReadError(TemplateStoreError):
    """A template file is not valid UTF-8 text."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read template {path}: {reason}")
        self.path = path
