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

"""Jinja2 engine rendering templates stored in a database.

Relative names in ``{% include %}`` and ``{% extends %}`` resolve
against the directory of the including template, as they would on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, TemplateNotFound

from tmpldb.loader import JinjaTemplateLoader, TemplateLoader
from tmpldb.models import ConflictPolicy

logger = logging.getLogger(__name__)


class _StoreEnvironment(Environment):
    """Environment whose ``join_path`` follows the loader's resolution rule."""

    def __init__(self, loader: TemplateLoader, **options: Any) -> None:
        super().__init__(loader=JinjaTemplateLoader(loader), **options)
        self.template_loader = loader

    def join_path(self, template: str, parent: str) -> str:
        return self.template_loader.resolve_relative(parent, template)


class TemplateEngine:
    """Load and render Jinja2 templates held in a template store.

    Args:
        loader: Store adapter the templates are read from.
    """

    def __init__(self, loader: TemplateLoader) -> None:
        self.loader = loader
        self._env = _StoreEnvironment(
            loader,
            keep_trailing_newline=True,
            autoescape=False,
        )

    @property
    def environment(self) -> Environment:
        return self._env

    def render(self, template_name: str, **variables: Any) -> str:
        """Render a stored template with the given variables.

        Raises ``jinja2.TemplateNotFound`` if no such template is stored.
        """
        tmpl = self._env.get_template(template_name)
        return tmpl.render(**variables)

    def has_template(self, template_name: str) -> bool:
        """Check whether a template is stored."""
        try:
            self._env.get_template(template_name)
            return True
        except TemplateNotFound:
            return False

    def install_templates(
        self,
        directory: str | Path,
        pattern: str = "*",
        conflict: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> int:
        """Copy matching template files from *directory* into the store.

        Existing records are replaced by default, so this can be re-run
        after editing the files.
        """
        count = self.loader.load_templates_from_dir(directory, pattern, conflict)
        logger.info("Installed %d template(s) from %s", count, directory)
        return count
