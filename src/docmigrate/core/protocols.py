"""
Canonical protocol definitions for docmigrate.

The runner depends on the SHAPE of its collaborators, never on concrete
classes. Every module that needs a store, scope, logger, resolver or
migration source imports the contract from here.

Manifesto:
    Protocols define contracts without inheritance. They enable:
    - **Decoupling:** The runner works with any document store
    - **Testability:** Any object matching the protocol works
    - **Portability:** Same migrations on the in-memory and SQL stores

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Scope                one unit of work against the store
        ├── DocumentStore        opens scopes, names the id separator
        ├── MigrationLogger      format-string run log sink
        ├── Resolver             builds a migration from its factory
        ├── MigrationProtocol    setup / up / down / identity
        └── MigrationSource      yields migration descriptors

    Implementations:
        stores/memory.py   InMemoryDocumentStore, InMemoryScope
        stores/sql.py      SqlDocumentStore, SqlScope
        core/logging.py    NullLogger, StructlogLogger
        framework/         DefaultResolver, FactoryResolver, Migration,
                           MigrationRegistry, ModuleSource

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations go in stores/

Tags:
    protocol, store, scope, logger, resolver, docmigrate, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Store Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Scope(Protocol):
    """
    One transactional unit of work against a document store.

    Writes are staged and become durable only on ``commit()``. Leaving the
    scope (as a context manager) without committing discards them.

    Architecture:
        ::

            Scope Protocol:
            ┌────────────────────────────────────────────────────────┐
            │ load(id)        → document or None                     │
            │ store(document) → stage insert / replace               │
            │ delete(doc|id)  → stage removal                        │
            │ query(prefix)   → documents whose id starts with prefix│
            │ commit()        → apply staged changes atomically      │
            └────────────────────────────────────────────────────────┘
    """

    def load(self, document_id: str) -> Any:
        """Return the document with ``document_id`` or None."""
        ...

    def store(self, document: Any) -> None:
        """Stage ``document`` for insert or replace."""
        ...

    def delete(self, document: Any) -> None:
        """Stage removal of ``document`` (or of a document id)."""
        ...

    def query(self, prefix: str = "") -> list[Any]:
        """Return documents whose id starts with ``prefix``."""
        ...

    def commit(self) -> None:
        """Apply staged changes atomically."""
        ...

    def __enter__(self) -> Scope: ...

    def __exit__(self, *exc_info: Any) -> None: ...


@runtime_checkable
class DocumentStore(Protocol):
    """
    Contract for a document store the runner can record markers in.

    Tags:
        protocol, store, document, unit-of-work
    """

    identity_separator: str

    def open_scope(self) -> Scope:
        """Open a new, independent unit of work."""
        ...


# ---------------------------------------------------------------------------
# Component Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class MigrationLogger(Protocol):
    """
    Format-string log sink handed to migrations and used by the runner.

    Messages use ``str.format`` placeholders: ``"{0}: Up migration started"``.
    """

    def write_information(self, fmt: str, *args: Any) -> None: ...

    def write_error(self, fmt: str, *args: Any) -> None: ...

    def write_warning(self, fmt: str, *args: Any) -> None: ...


class Resolver(Protocol):
    """
    Builds a runnable migration from a descriptor's factory.

    The default strategy calls the factory with no arguments. Dependency
    injection plugs in here without the runner knowing any container.
    """

    def resolve(self, factory: Any) -> MigrationProtocol:
        """Return a fresh migration instance for ``factory``."""
        ...


@runtime_checkable
class MigrationProtocol(Protocol):
    """Capability every migration unit exposes to the runner."""

    def setup(self, store: DocumentStore, logger: MigrationLogger) -> None: ...

    def up(self) -> None: ...

    def down(self) -> None: ...

    def identity(self, separator: str) -> str: ...


class MigrationSource(Protocol):
    """
    A provider of migration descriptors.

    Registries, module sources and plain callables all reduce to this.
    """

    def descriptors(self) -> Iterable[Any]:
        """Yield the candidates this source contributes."""
        ...


__all__ = [
    "Scope",
    "DocumentStore",
    "MigrationLogger",
    "Resolver",
    "MigrationProtocol",
    "MigrationSource",
]
