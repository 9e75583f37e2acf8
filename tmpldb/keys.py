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

"""Storage-key composition and template path resolution.

A logical template path such as ``templates/tiny.html`` is stored under
the key ``<owner><prefix>/templates/tiny.html``.  No separator
normalisation is applied, so :func:`strip_key` is the exact inverse of
:func:`build_key`.

Loading and fetching both go through a single :class:`KeyScheme`, so
the composition rule can be swapped in one place.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass


def build_key(owner: str, prefix: str, path: str) -> str:
    """Return the storage key for a logical *path*."""
    return owner + prefix + "/" + path


def strip_key(owner: str, prefix: str, key: str) -> str:
    """Return the logical path for a storage *key*.

    Keys outside the ``owner + prefix + "/"`` namespace are returned
    unchanged.
    """
    return key.removeprefix(owner + prefix + "/")


def resolve_relative(base: str, name: str) -> str:
    """Resolve *name* relative to the template *base* that references it.

    Absolute names and an empty base return *name*; an empty name returns
    *base*; otherwise *name* is joined to the directory of *base*.
    Template paths always use ``/`` as separator.
    """
    if name.startswith("/") or not base:
        return name
    if not name:
        return base
    return posixpath.join(posixpath.dirname(base), name)


@dataclass(frozen=True)
class KeyScheme:
    """Owner/prefix composition used by every load and fetch path."""

    owner: str = ""
    prefix: str = ""

    @property
    def namespace(self) -> str:
        """Leading substring shared by all keys of this scheme."""
        return self.owner + self.prefix + "/"

    def build(self, path: str) -> str:
        return self.namespace + path

    def strip(self, key: str) -> str:
        return key.removeprefix(self.namespace)


@dataclass(frozen=True)
class PrefixOnlyKeyScheme(KeyScheme):
    """Keys without the owner segment (``<prefix>/<path>``).

    Records still carry the owner field; only the key omits it.
    """

    @property
    def namespace(self) -> str:
        return self.prefix + "/"
