"""Resolvers: turn a descriptor's factory into a migration instance.

``DefaultResolver`` calls the factory with no arguments. ``FactoryResolver``
passes named dependencies to factories whose constructors ask for them,
which covers dependency injection without tying the runner to a
container. Any plain callable ``factory -> migration`` also works; see
``as_resolver``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from docmigrate.core.errors import ConfigError
from docmigrate.core.protocols import MigrationProtocol, Resolver

_REQUIRED_METHODS = ("setup", "up", "down", "identity")


class DefaultResolver:
    """Construct migrations with no arguments."""

    def resolve(self, factory: Any) -> MigrationProtocol:
        return factory()

    def __repr__(self) -> str:
        return "DefaultResolver()"


class FactoryResolver:
    """Construct migrations, injecting dependencies by parameter name.

    Example::

        resolver = FactoryResolver(search_client=client, batch_size=500)

        class Reindex_Users(Migration):
            def __init__(self, search_client, batch_size=100):
                super().__init__()
                ...
    """

    def __init__(self, **dependencies: Any) -> None:
        self.dependencies = dependencies

    def resolve(self, factory: Any) -> MigrationProtocol:
        try:
            signature = inspect.signature(factory)
        except (TypeError, ValueError):
            return factory()

        params = signature.parameters.values()
        if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params):
            return factory(**self.dependencies)

        kwargs = {
            p.name: self.dependencies[p.name]
            for p in params
            if p.name in self.dependencies
            and p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
        }
        return factory(**kwargs)

    def __repr__(self) -> str:
        return f"FactoryResolver({', '.join(sorted(self.dependencies))})"


class CallableResolver:
    """Adapts a plain ``factory -> migration`` function to the Resolver protocol."""

    def __init__(self, func: Callable[[Any], MigrationProtocol]) -> None:
        self.func = func

    def resolve(self, factory: Any) -> MigrationProtocol:
        return self.func(factory)


def as_resolver(obj: Resolver | Callable[[Any], MigrationProtocol] | None) -> Resolver:
    """Normalize ``None``, a resolver object or a callable into a resolver."""
    if obj is None:
        return DefaultResolver()
    if hasattr(obj, "resolve") and callable(obj.resolve):
        return obj
    if callable(obj):
        return CallableResolver(obj)
    raise ConfigError(f"Not a resolver: {obj!r}")


def check_migration(instance: Any, factory: Any) -> MigrationProtocol:
    """Raise ConfigError unless ``instance`` has the migration capability."""
    missing = [m for m in _REQUIRED_METHODS if not callable(getattr(instance, m, None))]
    if missing:
        raise ConfigError(
            f"Resolver returned {type(instance).__name__} for {getattr(factory, '__name__', factory)!r}, "
            f"which is missing: {', '.join(missing)}"
        )
    return instance


__all__ = [
    "CallableResolver",
    "DefaultResolver",
    "FactoryResolver",
    "as_resolver",
    "check_migration",
]
