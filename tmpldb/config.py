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

"""Loader configuration.

Options are fixed for the lifetime of a loader.  Values can be given
explicitly or picked up from the environment::

    options = LoaderOptions.from_env(prefix="myapp")

Environment variables: ``TMPLDB_TABLE_NAME``, ``TMPLDB_PREFIX``,
``TMPLDB_OWNER``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

from tmpldb.keys import KeyScheme

DEFAULT_TABLE_NAME = "templates"

ENV_TABLE_NAME = "TMPLDB_TABLE_NAME"
ENV_PREFIX = "TMPLDB_PREFIX"
ENV_OWNER = "TMPLDB_OWNER"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_table_name(name: str) -> str:
    """Return *name* if it is a plain SQL identifier, else raise ``ValueError``."""
    if not _IDENTIFIER_RE.match(name or ""):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


@dataclass(frozen=True)
class LoaderOptions:
    """Configuration for a :class:`~tmpldb.loader.TemplateLoader`.

    Attributes:
        table_name: Table (collection) that holds the templates.
        prefix: Path segment prepended to every logical template path.
        owner: Optional tenant segment, prepended ahead of *prefix* and
            written to the ``owner`` field of loaded records.  Empty means
            not tenant-scoped.
    """

    table_name: str = DEFAULT_TABLE_NAME
    prefix: str = ""
    owner: str = ""

    def __post_init__(self) -> None:
        validate_table_name(self.table_name)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        table_name: str | None = None,
        prefix: str | None = None,
        owner: str | None = None,
    ) -> LoaderOptions:
        """Build options from environment variables.

        Explicit keyword arguments take precedence over the environment.
        """
        env = os.environ if environ is None else environ
        return cls(
            table_name=table_name or env.get(ENV_TABLE_NAME, DEFAULT_TABLE_NAME),
            prefix=prefix if prefix is not None else env.get(ENV_PREFIX, ""),
            owner=owner if owner is not None else env.get(ENV_OWNER, ""),
        )

    def key_scheme(self) -> KeyScheme:
        """Return the default key composition for these options."""
        return KeyScheme(owner=self.owner, prefix=self.prefix)
