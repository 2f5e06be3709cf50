"""Tests for docmigrate.cli: command smoke tests via CliRunner.

Migrations live in a module written to ``tmp_path`` and the store is a
SQLite file in the same directory, so every test starts from scratch.
"""

from __future__ import annotations

import sys
import textwrap

import pytest
from typer.testing import CliRunner

from docmigrate.cli.app import app
from docmigrate.stores.sql import SqlDocumentStore

runner = CliRunner()

MODULE = "cli_sample_migrations"

SAMPLE = textwrap.dedent(
    """
    from docmigrate import Migration, MigrationRegistry

    registry = MigrationRegistry("sample")
    broken = MigrationRegistry("broken")


    @registry.migration(1)
    class Seed_Users(Migration):
        def up(self):
            self.session.store({"id": "users/1", "name": "Ada"})

        def down(self):
            self.session.delete("users/1")


    @registry.migration(2, profiles={"prod"})
    class Prod_Only(Migration):
        def up(self):
            pass


    @registry.migration(3)
    class Add_Index(Migration):
        def up(self):
            pass


    @broken.migration(1)
    class Explodes(Migration):
        def up(self):
            raise RuntimeError("kaboom")


    needy = MigrationRegistry("needy")


    @needy.migration(1)
    class Needs_Client(Migration):
        def __init__(self, client):
            super().__init__()
            self.client = client

        def up(self):
            pass
    """
)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    (tmp_path / f"{MODULE}.py").write_text(SAMPLE)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, MODULE, raising=False)
    return tmp_path


@pytest.fixture
def database(workspace):
    return f"sqlite:///{workspace / 'docs.db'}"


def _invoke(*args: str):
    return runner.invoke(app, ["--log-level", "ERROR", *args])


def _markers(database: str) -> list[str]:
    from docmigrate.framework.runner import Runner

    store = SqlDocumentStore(database)
    try:
        return [m.id for m in Runner.markers(store)]
    finally:
        store.dispose()


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "docmigrate" in result.output


class TestUpDown:
    def test_up_applies_eligible_migrations(self, database):
        result = _invoke("up", MODULE, "--database", database)

        assert result.exit_code == 0, result.output
        assert "Seed_Users" in result.output
        assert _markers(database) == [
            "migrationdocuments/add/index",
            "migrationdocuments/seed/users",
        ]

    def test_profile_option(self, database):
        result = _invoke("up", MODULE, "--database", database, "--profile", "prod")

        assert result.exit_code == 0, result.output
        assert "migrationdocuments/prod/only" in _markers(database)

    def test_to_version_option(self, database):
        result = _invoke("up", MODULE, "-d", database, "--to-version", "1")

        assert result.exit_code == 0, result.output
        assert _markers(database) == ["migrationdocuments/seed/users"]

    def test_second_up_skips(self, database):
        _invoke("up", MODULE, "-d", database)
        result = _invoke("up", MODULE, "-d", database, "--json")

        assert result.exit_code == 0, result.output
        assert '"skipped"' in result.output
        assert "Add_Index" in result.output

    def test_down_reverts(self, database):
        _invoke("up", MODULE, "-d", database)
        result = _invoke("down", MODULE, "-d", database)

        assert result.exit_code == 0, result.output
        assert _markers(database) == []

    def test_settings_supply_database(self, database, monkeypatch):
        monkeypatch.setenv("DOCMIGRATE_DATABASE_URL", database)
        result = _invoke("up", MODULE)

        assert result.exit_code == 0, result.output
        assert len(_markers(database)) == 2


class TestErrors:
    def test_failing_migration_exits_nonzero(self, database):
        result = _invoke("up", f"{MODULE}:broken", "-d", database)

        assert result.exit_code == 1
        assert "kaboom" in result.output
        assert _markers(database) == []

    def test_unknown_source(self, database):
        result = _invoke("up", "no_such_docmigrate_module", "-d", database)

        assert result.exit_code == 1
        assert "DISCOVERY" in result.output

    def test_status_with_unbuildable_migration(self, database):
        result = _invoke("status", f"{MODULE}:needy", "-d", database)

        assert result.exit_code == 1
        assert "MIGRATION" in result.output
        assert "Needs_Client" in result.output


class TestInspection:
    def test_status(self, database):
        _invoke("up", MODULE, "-d", database, "--to-version", "1")
        result = _invoke("status", MODULE, "-d", database, "--json")

        assert result.exit_code == 0, result.output
        assert "migrationdocuments/seed/users" in result.output
        assert '"applied": true' in result.output

    def test_list(self, workspace):
        result = _invoke("list", MODULE)

        assert result.exit_code == 0, result.output
        for name in ("Seed_Users", "Prod_Only", "Add_Index"):
            assert name in result.output
