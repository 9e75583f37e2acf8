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

"""Recursive discovery of template files on disk."""

from __future__ import annotations

import logging
import os
from fnmatch import fnmatchcase
from pathlib import Path

from tmpldb.errors import TraversalError

logger = logging.getLogger(__name__)


def find_templates(path: str | Path, pattern: str) -> list[str]:
    """Return every file under *path* whose base name matches *pattern*.

    *pattern* uses shell-glob syntax (``*``, ``?``, ``[...]``) and is
    matched case-sensitively against the file name only.  A *path* that
    is itself a file is tested directly.  Returned paths are normalised
    (``./templates`` yields ``templates/...``).

    Raises :class:`TraversalError` if *path* does not exist or any
    subdirectory cannot be read; nothing is returned in that case.
    """
    root = os.path.normpath(os.fspath(path))
    if not os.path.exists(root):
        raise TraversalError(root, "no such file or directory")
    if not os.path.isdir(root):
        return [root] if fnmatchcase(os.path.basename(root), pattern) else []

    def _abort(err: OSError) -> None:
        raise TraversalError(err.filename or root, err.strerror or str(err)) from err

    matches: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_abort):
        dirnames.sort()
        for name in sorted(filenames):
            if fnmatchcase(name, pattern):
                matches.append(os.path.join(dirpath, name))

    logger.debug("Found %d template(s) matching %r under %s", len(matches), pattern, root)
    return matches
