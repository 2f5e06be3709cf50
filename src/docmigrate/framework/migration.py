"""Base class for migration units.

Manifesto:
    A migration is a small object with a forward step (``up``), an optional
    reverse step (``down``) and a stable identity. The runner wires it to
    the store and the run log before calling either step, and exposes the
    active scope as ``self.session`` so documents written there commit
    together with the migration's marker.

Example::

    from docmigrate import Migration, MigrationRegistry

    registry = MigrationRegistry()

    @registry.migration(3, profiles={"prod"})
    class Add_Display_Names(Migration):
        def up(self):
            for user in self.session.query("users/"):
                user["display_name"] = user["name"].title()
                self.session.store(user)

        def down(self):
            for user in self.session.query("users/"):
                user.pop("display_name", None)
                self.session.store(user)

Tags:
    docmigrate, framework, migration, up, down, identity

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docmigrate.core.documents import migration_id_from_name
from docmigrate.core.logging import NullLogger
from docmigrate.core.protocols import DocumentStore, MigrationLogger, Scope


class Migration(ABC):
    """
    Base class for a migration unit.

    Subclasses implement ``up``; ``down`` defaults to doing nothing.
    The marker id comes from the class name, so renaming a migration class
    makes the runner treat it as a new, unapplied migration.
    """

    def __init__(self) -> None:
        self.store: DocumentStore | None = None
        self.logger: MigrationLogger = NullLogger()
        self.session: Scope | None = None

    def setup(self, store: DocumentStore, logger: MigrationLogger) -> None:
        """Wire the migration to its store and run log. No migration logic runs here."""
        self.store = store
        self.logger = logger

    @abstractmethod
    def up(self) -> None:
        """Apply the migration."""

    def down(self) -> None:
        """Revert the migration."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def identity(self, separator: str = "/") -> str:
        """Marker id for this migration under ``separator``."""
        return migration_id_from_name(self.name, separator)

    def __repr__(self) -> str:
        return f"{self.name}()"


def bind_session(migration: Any, scope: Scope | None) -> None:
    """Expose ``scope`` to ``migration`` while its step runs."""
    if isinstance(migration, Migration):
        migration.session = scope


__all__ = ["Migration", "bind_session"]
