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

"""Jinja2 templates stored in a database.

Keeps template source in a document table instead of on disk, with an
optional per-tenant owner and per-application prefix.

Usage::

    from tmpldb import LoaderOptions, TemplateEngine, TemplateLoader
    from tmpldb.db import connect_sqlite

    loader = TemplateLoader.for_connection(
        connect_sqlite("~/.myapp/templates.db"),
        LoaderOptions(prefix="myapp"),
    )
    loader.load_templates_from_dir("templates", "*.html")

    engine = TemplateEngine(loader)
    rendered = engine.render("templates/tiny.html", name="florian")
"""

from tmpldb.config import LoaderOptions
from tmpldb.engine import TemplateEngine
from tmpldb.errors import (
    NotFoundError,
    StoreError,
    TemplateReadError,
    TemplateStoreError,
    TraversalError,
    WriteError,
)
from tmpldb.finder import find_templates
from tmpldb.keys import KeyScheme, PrefixOnlyKeyScheme, build_key, resolve_relative, strip_key
from tmpldb.loader import JinjaTemplateLoader, TemplateLoader
from tmpldb.models import ConflictPolicy, Template, WriteResult
from tmpldb.store import MemoryTemplateStore, SQLTemplateStore, TemplateStore

__all__ = [
    "LoaderOptions",
    "TemplateEngine",
    "TemplateLoader",
    "JinjaTemplateLoader",
    "TemplateStore",
    "SQLTemplateStore",
    "MemoryTemplateStore",
    "Template",
    "WriteResult",
    "ConflictPolicy",
    "KeyScheme",
    "PrefixOnlyKeyScheme",
    "build_key",
    "strip_key",
    "resolve_relative",
    "find_templates",
    "TemplateStoreError",
    "TemplateReadError",
    "StoreError",
    "NotFoundError",
    "WriteError",
    "TraversalError",
]
