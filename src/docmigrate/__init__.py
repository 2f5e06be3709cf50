"""
docmigrate - Versioned, idempotent data migrations for document stores.

Register migrations with a version (and optionally profiles), point the
runner at a store, and re-run safely: every applied migration leaves a
marker document, so a second run is a no-op.

Example::

    from docmigrate import InMemoryDocumentStore, Migration, MigrationRegistry, RunOptions, Runner

    registry = MigrationRegistry()

    @registry.migration(1)
    class Seed_Admin(Migration):
        def up(self):
            self.session.store({"id": "users/admin", "name": "admin"})

    Runner.run(InMemoryDocumentStore(), RunOptions(sources=[registry]))
"""

__version__ = "0.4.0"

from docmigrate.core import (  # noqa: E402
    CommitError,
    ConfigError,
    Direction,
    DiscoveryError,
    DuplicateVersionError,
    MarkerRecord,
    MigrationError,
    MigrationLogicError,
    NullLogger,
    StoreError,
    StructlogLogger,
    migration_id_from_name,
)
from docmigrate.framework import (  # noqa: E402
    DefaultResolver,
    FactoryResolver,
    Migration,
    MigrationDescriptor,
    MigrationRegistry,
    ModuleSource,
    RunOptions,
    Runner,
    RunResult,
    StaticSource,
    run_migrations,
)
from docmigrate.stores import InMemoryDocumentStore, SqlDocumentStore  # noqa: E402

__all__ = [
    "CommitError",
    "ConfigError",
    "DefaultResolver",
    "Direction",
    "DiscoveryError",
    "DuplicateVersionError",
    "FactoryResolver",
    "InMemoryDocumentStore",
    "MarkerRecord",
    "Migration",
    "MigrationDescriptor",
    "MigrationError",
    "MigrationLogicError",
    "MigrationRegistry",
    "ModuleSource",
    "NullLogger",
    "RunOptions",
    "RunResult",
    "Runner",
    "SqlDocumentStore",
    "StaticSource",
    "StoreError",
    "StructlogLogger",
    "migration_id_from_name",
    "run_migrations",
]
