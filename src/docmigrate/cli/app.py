"""
Root Typer application for the docmigrate CLI.

Commands
--------
``docmigrate up SOURCE...``      apply pending migrations
``docmigrate down SOURCE...``    revert migrations, newest first
``docmigrate status SOURCE...``  show eligibility and applied state
``docmigrate list SOURCE...``    show discovered migrations

SOURCE is an importable module (``app.migrations``) or ``module:attribute``.
Defaults come from ``DOCMIGRATE_*`` settings.
"""

from __future__ import annotations

import typer
from typer import Typer

from docmigrate.cli.utils import ensure_import_path, fail, open_store, output_dict, output_rows
from docmigrate.core.enums import Direction
from docmigrate.core.errors import MigrationError
from docmigrate.core.logging import StructlogLogger, configure_logging
from docmigrate.core.settings import get_settings
from docmigrate.framework.options import RunOptions
from docmigrate.framework.registry import discover
from docmigrate.framework.runner import Runner

app = Typer(
    name="docmigrate",
    help="docmigrate: versioned, idempotent migrations for document stores.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_SOURCES = typer.Argument(..., help="Migration sources: module or module:attribute.")
_DATABASE = typer.Option(None, "--database", "-d", help="SQLAlchemy database URL.")
_PROFILE = typer.Option(None, "--profile", "-p", help="Run profile (repeatable).")
_TO_VERSION = typer.Option(None, "--to-version", help="Stop after this version.")
_JSON = typer.Option(False, "--json", help="JSON output")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("docmigrate")
        except PackageNotFoundError:
            from docmigrate import __version__ as v
        typer.echo(f"docmigrate {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override DOCMIGRATE_LOG_LEVEL."),
) -> None:
    """Apply, revert and inspect document store migrations."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs,
        service="docmigrate",
    )


# ── Commands ─────────────────────────────────────────────────────────────


def _run(
    direction: Direction,
    sources: list[str],
    database: str | None,
    profile: list[str] | None,
    to_version: int | None,
    json_out: bool,
) -> None:
    ensure_import_path()
    settings = get_settings()
    store = None
    try:
        store = open_store(database, settings)
        overrides = {"direction": direction}
        if profile:
            overrides["profiles"] = profile
        if to_version is not None:
            overrides["to_version"] = to_version
        options = RunOptions.from_settings(
            settings,
            sources=sources,
            logger=StructlogLogger(),
            **overrides,
        )
        result = Runner.run(store, options)
    except MigrationError as e:
        fail(e.message, code=e.category.value)
    finally:
        if store is not None:
            store.dispose()
    output_dict(result.to_dict(), as_json=json_out, title=f"Migrate {direction.value}")


@app.command()
def up(
    sources: list[str] = _SOURCES,
    database: str | None = _DATABASE,
    profile: list[str] | None = _PROFILE,
    to_version: int | None = _TO_VERSION,
    json_out: bool = _JSON,
) -> None:
    """Apply pending migrations in ascending version order."""
    _run(Direction.UP, sources, database, profile, to_version, json_out)


@app.command()
def down(
    sources: list[str] = _SOURCES,
    database: str | None = _DATABASE,
    profile: list[str] | None = _PROFILE,
    to_version: int | None = _TO_VERSION,
    json_out: bool = _JSON,
) -> None:
    """Revert migrations in descending version order."""
    _run(Direction.DOWN, sources, database, profile, to_version, json_out)


@app.command()
def status(
    sources: list[str] = _SOURCES,
    database: str | None = _DATABASE,
    profile: list[str] | None = _PROFILE,
    json_out: bool = _JSON,
) -> None:
    """Show each migration's eligibility and whether it is applied."""
    ensure_import_path()
    settings = get_settings()
    store = None
    try:
        store = open_store(database, settings)
        options = RunOptions.from_settings(
            settings,
            sources=sources,
            **({"profiles": profile} if profile else {}),
        )
        statuses = Runner.status(store, options)
    except MigrationError as e:
        fail(e.message, code=e.category.value)
    finally:
        if store is not None:
            store.dispose()
    output_rows([s.to_dict() for s in statuses], as_json=json_out, title="Migration Status")


@app.command("list")
def list_migrations(
    sources: list[str] = _SOURCES,
    json_out: bool = _JSON,
) -> None:
    """List discovered migrations in version order."""
    ensure_import_path()
    try:
        descriptors = discover(sources)
    except MigrationError as e:
        fail(e.message, code=e.category.value)
    rows = [
        {
            "version": d.version,
            "name": d.name,
            "profiles": sorted(d.profiles),
            "source": d.source,
        }
        for d in sorted(descriptors, key=lambda d: d.version)
    ]
    output_rows(rows, as_json=json_out, title="Migrations")


if __name__ == "__main__":
    app()
