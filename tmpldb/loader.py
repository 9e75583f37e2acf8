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

"""Template loader backed by a document store.

:class:`TemplateLoader` fetches template source by logical path and
populates the store from files on disk::

    conn = connect_sqlite("~/.myapp/templates.db")
    loader = TemplateLoader.for_connection(
        conn, LoaderOptions(table_name="templates", prefix="randocustomer"),
    )
    loader.load_templates_from_dir("templates", "*.html")
    loader.get_template_string("templates/tiny.html")

:class:`JinjaTemplateLoader` plugs a ``TemplateLoader`` into a Jinja2
``Environment``.
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, Environment, TemplateNotFound

from tmpldb import keys
from tmpldb.config import LoaderOptions
from tmpldb.errors import NotFoundError, StoreError, TemplateReadError, WriteError
from tmpldb.finder import find_templates
from tmpldb.keys import KeyScheme
from tmpldb.models import ConflictPolicy, Template, WriteResult
from tmpldb.store import SQLTemplateStore, TemplateStore


class TemplateLoader:
    """Fetch and load templates through a :class:`TemplateStore`.

    Args:
        store: Backend holding the template records.
        options: Table, prefix and owner settings.
        key_scheme: Storage-key composition; defaults to
            ``options.key_scheme()``.  The same scheme is used for both
            loading and fetching.
        logger: Logger for this instance; defaults to the module logger.
    """

    def __init__(
        self,
        store: TemplateStore,
        options: LoaderOptions | None = None,
        *,
        key_scheme: KeyScheme | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.options = options or LoaderOptions()
        self.key_scheme = key_scheme or self.options.key_scheme()
        self.log = logger if logger is not None else logging.getLogger(__name__)

    @classmethod
    def for_connection(
        cls,
        conn: Any,
        options: LoaderOptions | None = None,
        *,
        key_scheme: KeyScheme | None = None,
        logger: logging.Logger | None = None,
        create_table: bool = True,
    ) -> TemplateLoader:
        """Build a loader over a SQL table reached through *conn*."""
        options = options or LoaderOptions()
        store = SQLTemplateStore(conn, options.table_name)
        if create_table:
            store.ensure_table()
        return cls(store, options, key_scheme=key_scheme, logger=logger)

    # --- Keys ---------------------------------------------------------------

    def key_for(self, path: str) -> str:
        """Storage key for a logical template path."""
        return self.key_scheme.build(path)

    def path_for(self, key: str) -> str:
        """Logical template path for a storage key."""
        return self.key_scheme.strip(key)

    def resolve_relative(self, base: str, name: str) -> str:
        """Resolve an include/extends *name* against the including template."""
        return keys.resolve_relative(base, name)

    # --- Reading ------------------------------------------------------------

    def fetch_template(self, path: str) -> Template:
        """Return the template stored for *path*.

        Raises :class:`NotFoundError` if there is none.
        """
        key = self.key_for(path)
        self.log.debug("fetching: %s", key)
        record = self.store.get(key)
        if record is None:
            self.log.debug("Template not found: %s", key)
            raise NotFoundError(key, path)
        return Template.from_record(record)

    def get_template(self, path: str) -> Template:
        return self.fetch_template(path)

    def get_template_bytes(self, path: str) -> bytes:
        return self.fetch_template(path).data_bytes

    def get_template_string(self, path: str) -> str:
        return self.fetch_template(path).data

    def get(self, path: str) -> io.BytesIO:
        """Template contents as a binary stream."""
        return io.BytesIO(self.get_template_bytes(path))

    # --- Writing ------------------------------------------------------------

    def _check_write(self, key: str, result: WriteResult, conflict: ConflictPolicy) -> None:
        ok = result.affected > 0
        if conflict is not ConflictPolicy.ERROR:
            ok = ok or result.unchanged > 0
        if not ok:
            raise WriteError(key, result)

    def load_template(
        self,
        template: Template,
        conflict: ConflictPolicy = ConflictPolicy.ERROR,
    ) -> WriteResult:
        """Insert *template* as-is; its name must already be a storage key.

        Raises :class:`WriteError` if the store wrote nothing (for
        example a duplicate key under :attr:`ConflictPolicy.ERROR`).
        """
        conflict = ConflictPolicy(conflict)
        result = self.store.insert(template.to_record(), conflict)
        self._check_write(template.name, result, conflict)
        return result

    def _template_from_file(self, path: str | Path) -> Template:
        path = os.fspath(path)
        raw = Path(path).read_bytes()
        try:
            data = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplateReadError(path, str(exc)) from exc
        return Template(name=self.key_for(path), data=data, owner=self.options.owner)

    def load_template_from_file(
        self,
        path: str | Path,
        conflict: ConflictPolicy = ConflictPolicy.ERROR,
    ) -> WriteResult:
        """Read *path* and store it under the key built from that path.

        Raises :class:`TemplateReadError` if the file is not UTF-8 text.
        """
        result = self.load_template(self._template_from_file(path), conflict)
        self.log.info("Loaded template %s", path)
        return result

    def load_templates_from_dir(
        self,
        path: str | Path,
        pattern: str,
        conflict: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> int:
        """Load every file under *path* matching the shell *pattern*.

        Files are written one at a time; the first read or write failure
        aborts the batch and earlier files stay stored.  A file that is
        not UTF-8 text raises :class:`TemplateReadError`.  With the default
        replace policy the batch can be re-run safely.

        Returns:
            Number of files loaded.
        """
        files = find_templates(path, pattern)
        for file in files:
            self.load_template(self._template_from_file(file), conflict)
        self.log.info("Loaded %d template(s) from %s", len(files), path)
        return len(files)

    # --- Listing ------------------------------------------------------------

    def iter_template_names(self) -> Iterator[str]:
        """Yield the logical path of every stored template.

        Scoped to the configured owner when one is set.  Raises
        :class:`StoreError` on backend failure.
        """
        where = {"owner": self.options.owner} if self.options.owner else None
        for record in self.store.scan(where, fields=("name",)):
            yield self.path_for(record["name"])

    def list_template_names(self) -> list[str]:
        return list(self.iter_template_names())

    def get_template_names(self) -> list[str]:
        """Like :meth:`list_template_names`, but never raises.

        For callers whose asset-listing hook has no error channel: a
        store failure is logged and the names gathered so far are
        returned.
        """
        names: list[str] = []
        try:
            for name in self.iter_template_names():
                names.append(name)
        except StoreError as exc:
            self.log.warning("Error trying to list template names: %s", exc)
        return names


class JinjaTemplateLoader(BaseLoader):
    """Jinja2 loader that reads template source from a :class:`TemplateLoader`."""

    def __init__(self, loader: TemplateLoader) -> None:
        self.loader = loader

    def get_source(
        self, environment: Environment, template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        try:
            source = self.loader.get_template_string(template)
        except NotFoundError:
            raise TemplateNotFound(template)

        def uptodate() -> bool:
            try:
                return self.loader.get_template_string(template) == source
            except NotFoundError:
                return False

        return source, self.loader.key_for(template), uptodate

    def list_templates(self) -> list[str]:
        return sorted(self.loader.list_template_names())
