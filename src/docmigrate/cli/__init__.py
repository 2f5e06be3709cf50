"""docmigrate command line (Typer)."""

from docmigrate.cli.app import app

__all__ = ["app"]
