"""docmigrate core -- errors, enums, protocols, marker documents, logging, settings.

Manifesto:
    Everything the runner needs that is not the runner itself: the typed
    error hierarchy, the collaborator contracts, the marker document and
    its deterministic id, and the ambient logging/settings layers.

Architecture::

    errors.py      Structured error hierarchy (MigrationError, DiscoveryError, ...)
    enums.py       Direction
    protocols.py   Scope, DocumentStore, MigrationLogger, Resolver, MigrationSource
    documents.py   MarkerRecord + migration_id_from_name
    logging.py     structlog configuration + run log sinks
    settings.py    DocMigrateSettings (pydantic-settings)

Tags:
    docmigrate, core, primitives

Doc-Types:
    package-overview
"""

from docmigrate.core.documents import MarkerRecord, migration_id_from_name
from docmigrate.core.enums import Direction
from docmigrate.core.errors import (
    CommitError,
    ConfigError,
    DiscoveryError,
    DuplicateVersionError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MigrationError,
    MigrationLogicError,
    StoreError,
)
from docmigrate.core.logging import NullLogger, StructlogLogger

__all__ = [
    "CommitError",
    "ConfigError",
    "Direction",
    "DiscoveryError",
    "DuplicateVersionError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "MarkerRecord",
    "MigrationError",
    "MigrationLogicError",
    "NullLogger",
    "StoreError",
    "StructlogLogger",
    "migration_id_from_name",
]
