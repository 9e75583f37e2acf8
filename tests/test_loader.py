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

"""Tests for tmpldb.loader — the template store adapter."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from jinja2 import Environment, TemplateNotFound

from tmpldb.config import LoaderOptions
from tmpldb.db import connect_sqlite
from tmpldb.errors import (
    NotFoundError,
    StoreError,
    TemplateReadError,
    TraversalError,
    WriteError,
)
from tmpldb.keys import PrefixOnlyKeyScheme
from tmpldb.loader import JinjaTemplateLoader, TemplateLoader
from tmpldb.models import ConflictPolicy, Template
from tmpldb.store import MemoryTemplateStore, SQLTemplateStore


def _loader(prefix="myapp", owner="", store=None, **kwargs):
    return TemplateLoader(
        store if store is not None else MemoryTemplateStore(),
        LoaderOptions(prefix=prefix, owner=owner),
        **kwargs,
    )


def _template_dir(root):
    d = root / "templates"
    d.mkdir()
    (d / "tiny.tmpl").write_text("Hello {{ name }}!")
    (d / "other.txt").write_text("skip me")
    (d / "partials").mkdir()
    (d / "partials" / "nav.tmpl").write_text("<nav/>")
    return d


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    """Run with *tmp_path* as working directory so file paths stay relative."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestFetch:
    def test_fetch_by_logical_path(self):
        loader = _loader()
        loader.store.insert({"name": "myapp/templates/tiny.tmpl", "data": "hi"})
        template = loader.fetch_template("templates/tiny.tmpl")
        assert template == Template(name="myapp/templates/tiny.tmpl", data="hi")

    def test_owner_in_key(self):
        loader = _loader(owner="acme")
        loader.store.insert({"name": "acmemyapp/a", "data": "x", "owner": "acme"})
        assert loader.get_template("a").owner == "acme"

    def test_missing_raises_not_found(self):
        loader = _loader()
        with pytest.raises(NotFoundError) as exc_info:
            loader.fetch_template("nope.tmpl")
        assert exc_info.value.key == "myapp/nope.tmpl"
        assert exc_info.value.path == "nope.tmpl"

    def test_bytes_string_and_stream(self):
        loader = _loader()
        loader.store.insert({"name": "myapp/a", "data": "ünïcode"})
        assert loader.get_template_string("a") == "ünïcode"
        assert loader.get_template_bytes("a") == "ünïcode".encode("utf-8")
        assert loader.get("a").read() == "ünïcode".encode("utf-8")

    def test_get_missing_raises(self):
        with pytest.raises(NotFoundError):
            _loader().get("nope")

    def test_backend_failure_is_store_error(self):
        store = MagicMock()
        store.get.side_effect = StoreError("down")
        with pytest.raises(StoreError):
            _loader(store=store).fetch_template("a")


class TestLoadTemplate:
    def test_insert(self):
        loader = _loader()
        result = loader.load_template(Template(name="myapp/a", data="x"))
        assert result.inserted == 1
        assert loader.get_template_string("a") == "x"

    def test_duplicate_raises_write_error(self):
        loader = _loader()
        loader.load_template(Template(name="myapp/a", data="x"))
        with pytest.raises(WriteError) as exc_info:
            loader.load_template(Template(name="myapp/a", data="y"))
        assert exc_info.value.result.errors == 1

    def test_replace_policy(self):
        loader = _loader()
        loader.load_template(Template(name="myapp/a", data="x"))
        loader.load_template(Template(name="myapp/a", data="y"), ConflictPolicy.REPLACE)
        assert loader.get_template_string("a") == "y"

    def test_unchanged_accepted_outside_error_policy(self):
        loader = _loader()
        loader.load_template(Template(name="myapp/a", data="x"))
        result = loader.load_template(Template(name="myapp/a", data="x"), ConflictPolicy.REPLACE)
        assert result.unchanged == 1

    def test_silent_noop_raises(self):
        store = MagicMock()
        store.insert.return_value.affected = 0
        store.insert.return_value.unchanged = 0
        store.insert.return_value.first_error = None
        with pytest.raises(WriteError):
            _loader(store=store).load_template(Template(name="k", data="v"))


class TestLoadFromFile:
    def test_key_built_from_file_path(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader(owner="acme")
        loader.load_template_from_file("templates/tiny.tmpl")
        record = loader.store.get("acmemyapp/templates/tiny.tmpl")
        assert record == {
            "name": "acmemyapp/templates/tiny.tmpl",
            "data": "Hello {{ name }}!",
            "owner": "acme",
        }

    def test_insert_or_fail(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader()
        loader.load_template_from_file("templates/tiny.tmpl")
        with pytest.raises(WriteError):
            loader.load_template_from_file("templates/tiny.tmpl")

    def test_missing_file(self, in_tmp):
        with pytest.raises(FileNotFoundError):
            _loader().load_template_from_file("templates/none.tmpl")


class TestLoadFromDir:
    def test_loads_matching_files(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader()
        count = loader.load_templates_from_dir("templates", "*.tmpl")
        assert count == 2
        assert loader.get_template_string("templates/tiny.tmpl") == "Hello {{ name }}!"
        assert loader.get_template_string("templates/partials/nav.tmpl") == "<nav/>"
        with pytest.raises(NotFoundError):
            loader.fetch_template("templates/other.txt")

    def test_rerun_is_idempotent(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader()
        loader.load_templates_from_dir("templates", "*.tmpl")
        first = sorted(loader.list_template_names())
        loader.load_templates_from_dir("templates", "*.tmpl")
        assert sorted(loader.list_template_names()) == first
        assert loader.get_template_string("templates/tiny.tmpl") == "Hello {{ name }}!"

    def test_rerun_picks_up_edits(self, in_tmp):
        d = _template_dir(in_tmp)
        loader = _loader()
        loader.load_templates_from_dir("templates", "*.tmpl")
        (d / "tiny.tmpl").write_text("edited")
        loader.load_templates_from_dir("templates", "*.tmpl")
        assert loader.get_template_string("templates/tiny.tmpl") == "edited"

    def test_error_policy_aborts_on_existing(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader()
        loader.load_templates_from_dir("templates", "*.tmpl")
        with pytest.raises(WriteError):
            loader.load_templates_from_dir("templates", "*.tmpl", ConflictPolicy.ERROR)

    def test_missing_dir(self, in_tmp):
        with pytest.raises(TraversalError):
            _loader().load_templates_from_dir("nowhere", "*.tmpl")

    def test_abort_keeps_earlier_writes(self, in_tmp):
        _template_dir(in_tmp)
        store = MemoryTemplateStore()
        calls = []
        real_insert = store.insert

        def flaky_insert(record, conflict=ConflictPolicy.ERROR):
            calls.append(record["name"])
            if len(calls) == 2:
                raise StoreError("write failed")
            return real_insert(record, conflict)

        store.insert = flaky_insert
        loader = _loader(store=store)
        with pytest.raises(StoreError):
            loader.load_templates_from_dir("templates", "*.tmpl")
        assert len(store) == 1

    def test_sqlite_backend(self, in_tmp):
        _template_dir(in_tmp)
        loader = TemplateLoader.for_connection(
            connect_sqlite(":memory:"), LoaderOptions(prefix="myapp"),
        )
        assert isinstance(loader.store, SQLTemplateStore)
        loader.load_templates_from_dir("templates", "*.tmpl")
        loader.load_templates_from_dir("templates", "*.tmpl")
        assert loader.get_template_string("templates/partials/nav.tmpl") == "<nav/>"

    def test_dot_prefixed_root_fetches_by_clean_path(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader()
        loader.load_templates_from_dir("./templates", "*.tmpl")
        assert loader.get_template_string("templates/tiny.tmpl") == "Hello {{ name }}!"
        assert sorted(loader.list_template_names()) == [
            "templates/partials/nav.tmpl", "templates/tiny.tmpl",
        ]

    def test_non_utf8_file_raises_read_error(self, in_tmp):
        d = _template_dir(in_tmp)
        (d / "latin1.tmpl").write_bytes(b"caf\xe9")
        loader = _loader()
        with pytest.raises(TemplateReadError) as exc_info:
            loader.load_templates_from_dir("templates", "*.tmpl")
        assert exc_info.value.path.endswith("latin1.tmpl")
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_non_utf8_single_file(self, in_tmp):
        (in_tmp / "bad.tmpl").write_bytes(b"\xff\xfe")
        with pytest.raises(TemplateReadError):
            _loader().load_template_from_file("bad.tmpl")


class TestTemplateNames:
    def _populate(self, store):
        store.insert({"name": "myapp/a.tmpl", "data": ""})
        store.insert({"name": "acmemyapp/b.tmpl", "data": "", "owner": "acme"})
        store.insert({"name": "othermyapp/c.tmpl", "data": "", "owner": "other"})

    def test_names_are_logical_paths(self):
        loader = _loader()
        loader.store.insert({"name": "myapp/templates/a.tmpl", "data": ""})
        assert loader.list_template_names() == ["templates/a.tmpl"]

    def test_owner_scoped(self):
        loader = _loader(owner="acme")
        self._populate(loader.store)
        assert loader.list_template_names() == ["b.tmpl"]

    def test_unscoped_lists_everything(self):
        loader = _loader()
        self._populate(loader.store)
        assert sorted(loader.list_template_names()) == [
            "a.tmpl", "acmemyapp/b.tmpl", "othermyapp/c.tmpl",
        ]

    def test_list_raises_on_failure(self):
        store = MagicMock()
        store.scan.side_effect = StoreError("down")
        with pytest.raises(StoreError):
            _loader(store=store).list_template_names()

    def test_shim_logs_and_returns_partial(self):
        def broken_scan(where=None, fields=None):
            yield {"name": "myapp/a.tmpl"}
            raise StoreError("cursor died")

        store = MagicMock()
        store.scan.side_effect = broken_scan
        log = MagicMock(spec=logging.Logger)
        loader = _loader(store=store, logger=log)

        assert loader.get_template_names() == ["a.tmpl"]
        log.warning.assert_called_once()

    def test_shim_uses_module_logger_by_default(self, caplog):
        store = MagicMock()
        store.scan.side_effect = StoreError("down")
        with caplog.at_level(logging.WARNING, logger="tmpldb.loader"):
            assert _loader(store=store).get_template_names() == []
        assert "Error trying to list template names" in caplog.text


class TestKeySchemeOverride:
    def test_load_and_fetch_share_scheme(self, in_tmp):
        _template_dir(in_tmp)
        loader = _loader(
            owner="acme",
            key_scheme=PrefixOnlyKeyScheme(owner="acme", prefix="myapp"),
        )
        loader.load_template_from_file("templates/tiny.tmpl")
        assert loader.store.get("myapp/templates/tiny.tmpl")["owner"] == "acme"
        assert loader.get_template_string("templates/tiny.tmpl") == "Hello {{ name }}!"
        assert loader.list_template_names() == ["templates/tiny.tmpl"]


class TestResolveRelative:
    def test_delegates_to_key_rules(self):
        loader = _loader()
        assert loader.resolve_relative("", "x") == "x"
        assert loader.resolve_relative("a/b", "") == "a/b"
        assert loader.resolve_relative("a/b", "/c") == "/c"
        assert loader.resolve_relative("a/b", "c") == "a/c"


class TestJinjaTemplateLoader:
    def test_get_source(self):
        loader = _loader()
        loader.store.insert({"name": "myapp/a.txt", "data": "src"})
        source, filename, uptodate = JinjaTemplateLoader(loader).get_source(Environment(), "a.txt")
        assert source == "src"
        assert filename == "myapp/a.txt"
        assert uptodate()

    def test_uptodate_detects_change(self):
        loader = _loader()
        loader.store.insert({"name": "myapp/a.txt", "data": "v1"})
        _, _, uptodate = JinjaTemplateLoader(loader).get_source(Environment(), "a.txt")
        loader.store.insert({"name": "myapp/a.txt", "data": "v2"}, ConflictPolicy.REPLACE)
        assert not uptodate()

    def test_missing_is_template_not_found(self):
        with pytest.raises(TemplateNotFound):
            JinjaTemplateLoader(_loader()).get_source(Environment(), "nope")

    def test_list_templates(self):
        loader = _loader()
        loader.store.insert({"name": "myapp/b", "data": ""})
        loader.store.insert({"name": "myapp/a", "data": ""})
        assert JinjaTemplateLoader(loader).list_templates() == ["a", "b"]
