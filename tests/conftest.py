"""
Shared pytest fixtures and configuration for docmigrate tests.

This module provides:
- Settings cache and structlog isolation
- In-memory and SQL document stores
- A recording run logger
- A factory for registries of migrations that record their calls

Usage:
    def test_something(store, recording_logger, make_registry):
        registry, calls = make_registry([(1, ()), (2, ("prod",))])
"""

import sys
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure docmigrate package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docmigrate.core.logging import clear_context, format_message
from docmigrate.core.settings import clear_settings_cache
from docmigrate.framework.migration import Migration
from docmigrate.framework.registry import MigrationRegistry
from docmigrate.stores.memory import InMemoryDocumentStore
from docmigrate.stores.sql import SqlDocumentStore


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark SQL store tests as integration, everything else as unit."""
    for item in items:
        if "sql" in item.nodeid.lower():
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    """Drop cached settings and DOCMIGRATE_* env vars around each test."""
    import os

    for key in list(os.environ):
        if key.startswith("DOCMIGRATE_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo configure_logging() calls made by CLI tests."""
    structlog.reset_defaults()
    clear_context()
    yield
    structlog.reset_defaults()


# =============================================================================
# Stores and Loggers
# =============================================================================


class RecordingLogger:
    """Run log sink that keeps (level, message) tuples."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def write_information(self, fmt: str, *args: Any) -> None:
        self.records.append(("info", format_message(fmt, args)))

    def write_error(self, fmt: str, *args: Any) -> None:
        self.records.append(("error", format_message(fmt, args)))

    def write_warning(self, fmt: str, *args: Any) -> None:
        self.records.append(("warning", format_message(fmt, args)))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for lvl, m in self.records if level is None or lvl == level]


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def sql_store():
    s = SqlDocumentStore("sqlite://")
    yield s
    s.dispose()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


# =============================================================================
# Migration Factories
# =============================================================================


@pytest.fixture
def make_registry():
    """Build a registry of migrations that append ``(name, step)`` to a shared list.

    Each spec is ``(version, profiles)`` or ``(version, profiles, name)``.
    Migration classes are named ``Migration_v<version>`` unless given a name.
    """

    def _make(specs, *, failing: dict[str, str] | None = None):
        failing = failing or {}
        registry = MigrationRegistry("test")
        calls: list[tuple[str, str]] = []

        for spec in specs:
            version, profiles = spec[0], spec[1]
            name = spec[2] if len(spec) > 2 else f"Migration_v{version}"

            def up(self):
                calls.append((type(self).__name__, "up"))
                if failing.get(type(self).__name__) == "up":
                    raise RuntimeError(f"{type(self).__name__} up exploded")
                self.session.store({"id": f"effects/{type(self).__name__.lower()}", "step": "up"})

            def down(self):
                calls.append((type(self).__name__, "down"))
                if failing.get(type(self).__name__) == "down":
                    raise RuntimeError(f"{type(self).__name__} down exploded")

            cls = type(name, (Migration,), {"up": up, "down": down})
            registry.add(cls, version, profiles=profiles)

        return registry, calls

    return _make
