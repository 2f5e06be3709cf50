"""
Structured error types for docmigrate.

Every failure a migration run can produce is a subclass of
``MigrationError``. Instead of generic exceptions that lose context, each
error carries:

- **Category:** What kind of failure (discovery, migration, store, config)
- **Context:** Migration name, version, direction and source
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** One type per failure stage of a run
    - **Nothing Retried Automatically:** The runner surfaces every failure
    - **Rich Context:** Errors carry the migration they happened in
    - **Error Chaining:** Preserve the original exception as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      MigrationError                           │
        │         (category, context, cause)                            │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  DiscoveryError        MigrationLogicError     CommitError    │
        │  (DISCOVERY)           (MIGRATION)             (STORE)        │
        │       │                                                       │
        │  DuplicateVersionError                                        │
        │                                                               │
        │  StoreError            ConfigError                            │
        │  (STORE)               (CONFIG)                               │
        │                             │                                 │
        │                        InvalidConfigError                     │
        └──────────────────────────────────────────────────────────────┘

Examples:
    Wrapping a failure from ``up()``:

    >>> try:
    ...     raise KeyError("users/1")
    ... except KeyError as e:
    ...     error = MigrationLogicError("Up failed", cause=e)
    >>> error.category
    <ErrorCategory.MIGRATION: 'MIGRATION'>

    Adding context:

    >>> error = CommitError("Commit failed").with_context(migration="Add_Index", version=3)
    >>> error.context.version
    3

Guardrails:
    ❌ DON'T: Raise plain Exception from runner code
    ✅ DO: Use the MigrationError subclass for the stage that failed

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, docmigrate

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Categories map onto the stage of a run where the failure happened:

    - **DISCOVERY:** enumerating migration sources
    - **MIGRATION:** user ``up()`` / ``down()`` logic
    - **STORE:** loading, staging or committing documents
    - **CONFIG:** invalid options or settings
    - **INTERNAL:** bugs, unexpected state
    """

    DISCOVERY = "DISCOVERY"
    MIGRATION = "MIGRATION"
    STORE = "STORE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields are serialized by ``to_dict()``. Anything not
    covered by a typed field goes into ``metadata``.

    Attributes:
        migration: Name of the migration being processed
        version: Declared version of that migration
        direction: ``up`` or ``down``
        source: Migration source the descriptor came from
        marker_id: Marker document id for the migration
        metadata: Additional key-value pairs
    """

    migration: str | None = None
    version: int | None = None
    direction: str | None = None
    source: str | None = None
    marker_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["migration", "version", "direction", "source", "marker_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MigrationError(Exception):
    """
    Base exception for all docmigrate errors.

    Subclasses set ``default_category`` so callers can route failures
    without inspecting messages. Nothing is retried automatically, so
    errors carry no retry hint.

    Examples:
        >>> error = MigrationError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'MigrationError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MigrationError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CommitError("Commit failed").with_context(
                migration="Add_Index",
                version=3,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DISCOVERY ERRORS
# =============================================================================


class DiscoveryError(MigrationError):
    """
    A migration source could not be enumerated.

    Raised before any migration executes. A single malformed candidate never
    raises this; only a source that fails as a whole does.
    """

    default_category = ErrorCategory.DISCOVERY


class DuplicateVersionError(DiscoveryError):
    """Two discovered migrations declare the same version (strict mode only)."""

    def __init__(self, version: int, names: list[str], message: str | None = None):
        self.version = version
        self.names = names
        super().__init__(
            message or f"Duplicate migration version {version}: {', '.join(names)}"
        )


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class MigrationLogicError(MigrationError):
    """
    A migration's ``up()`` or ``down()`` raised.

    The migration's scope is discarded and the run stops. Migrations
    committed earlier in the same run stay committed.
    """

    default_category = ErrorCategory.MIGRATION


class StoreError(MigrationError):
    """Document store failure (load, stage, flush)."""

    default_category = ErrorCategory.STORE


class CommitError(StoreError):
    """
    Committing a migration's scope failed.

    Handled exactly like ``MigrationLogicError``: neither the migration's
    effects nor its marker change are durable, and the run stops.
    """

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(MigrationError):
    """Invalid options or settings."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MigrationError",
    "DiscoveryError",
    "DuplicateVersionError",
    "MigrationLogicError",
    "StoreError",
    "CommitError",
    "ConfigError",
    "InvalidConfigError",
]
