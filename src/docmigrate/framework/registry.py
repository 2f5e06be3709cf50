"""Migration registry and discovery.

Manifesto:
    Migrations are registered explicitly, with their version and profiles
    attached at registration time. Discovery only walks the sources it is
    given; it never scans for subclasses.

Sources
-------
A migration source is anything ``as_source`` understands:

* ``MigrationRegistry``  -- populated with ``@registry.migration(version)``
* ``"pkg.module"`` / ``"pkg.module:attr"`` -- a ``ModuleSource``
* a callable returning candidates
* an iterable of ``MigrationDescriptor``

Candidates with invalid metadata are dropped with a debug log. A source
that cannot be enumerated at all raises ``DiscoveryError``.

Tags:
    docmigrate, framework, registry, discovery, descriptors

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from docmigrate.core.errors import DiscoveryError, DuplicateVersionError
from docmigrate.core.logging import NullLogger, get_logger
from docmigrate.core.protocols import MigrationLogger, MigrationSource

logger = get_logger(__name__)

# Attribute names ModuleSource looks for when none is given
DEFAULT_SOURCE_ATTRIBUTES = ("registry", "migrations", "get_migrations")


@dataclass(frozen=True)
class MigrationDescriptor:
    """A discovered migration: version, profiles and how to build it."""

    version: int
    factory: Any
    profiles: frozenset[str] = field(default_factory=frozenset)
    name: str = ""
    source: str = ""

    def __post_init__(self) -> None:
        profiles = (self.profiles,) if isinstance(self.profiles, str) else self.profiles
        object.__setattr__(self, "profiles", frozenset(profiles))
        if not self.name:
            object.__setattr__(self, "name", _factory_name(self.factory))

    def __repr__(self) -> str:
        profiles = ",".join(sorted(self.profiles)) or "*"
        return f"MigrationDescriptor(v{self.version} {self.name} [{profiles}])"


def _factory_name(factory: Any) -> str:
    return getattr(factory, "__name__", None) or type(factory).__name__


class MigrationRegistry:
    """Explicit registry of migration descriptors.

    Example::

        registry = MigrationRegistry("billing")

        @registry.migration(1)
        class Seed_Plans(Migration):
            def up(self): ...
    """

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._descriptors: list[MigrationDescriptor] = []

    def migration(
        self,
        version: int,
        *,
        profiles: Iterable[str] = (),
        name: str | None = None,
    ) -> Callable[[Any], Any]:
        """Decorator registering a migration class (or factory) at ``version``."""

        def decorator(factory: Any) -> Any:
            self.add(factory, version, profiles=profiles, name=name)
            return factory

        return decorator

    def add(
        self,
        factory: Any,
        version: int,
        *,
        profiles: Iterable[str] = (),
        name: str | None = None,
    ) -> MigrationDescriptor:
        """Register ``factory`` at ``version`` and return its descriptor.

        Registering the same name at the same version again replaces the
        earlier entry in place, so reloading a migrations module does not
        produce duplicates.

        Raises:
            ValueError: ``factory`` is already registered under another
                name or version.
        """
        if isinstance(profiles, str):
            profiles = (profiles,)
        descriptor = MigrationDescriptor(
            version=version,
            factory=factory,
            profiles=frozenset(profiles),
            name=name or _factory_name(factory),
            source=self.name,
        )

        for i, existing in enumerate(self._descriptors):
            if (existing.name, existing.version) == (descriptor.name, descriptor.version):
                self._descriptors[i] = descriptor
                logger.debug(
                    "migration_reregistered",
                    registry=self.name,
                    name=descriptor.name,
                    version=version,
                )
                return descriptor
            if existing.factory is factory:
                raise ValueError(f"Migration '{descriptor.name}' is already registered")

        self._descriptors.append(descriptor)
        logger.debug(
            "migration_registered",
            registry=self.name,
            name=descriptor.name,
            version=version,
        )
        return descriptor

    def descriptors(self) -> list[MigrationDescriptor]:
        return list(self._descriptors)

    def clear(self) -> None:
        """Clear registry (for testing)."""
        self._descriptors.clear()

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[MigrationDescriptor]:
        return iter(list(self._descriptors))

    def __repr__(self) -> str:
        return f"MigrationRegistry({self.name!r}, {len(self)} migrations)"


class ModuleSource:
    """Import a module and read its migration source attribute.

    ``ModuleSource("app.migrations")`` looks for ``registry``, then
    ``migrations``, then ``get_migrations``. ``"app.migrations:billing"``
    names the attribute explicitly.
    """

    def __init__(self, path: str, attribute: str | None = None) -> None:
        module, sep, attr = path.partition(":")
        self.module = module
        self.attribute = attribute or (attr if sep else None)

    @property
    def name(self) -> str:
        return f"{self.module}:{self.attribute}" if self.attribute else self.module

    def descriptors(self) -> list[Any]:
        module = importlib.import_module(self.module)
        names = (self.attribute,) if self.attribute else DEFAULT_SOURCE_ATTRIBUTES
        for attr in names:
            if hasattr(module, attr):
                return list(as_source(getattr(module, attr), name=self.name).descriptors())
        raise AttributeError(
            f"Module '{self.module}' has none of the attributes: {', '.join(names)}"
        )

    def __repr__(self) -> str:
        return f"ModuleSource({self.name!r})"


class CallableSource:
    """Source backed by a function returning candidates."""

    def __init__(self, provider: Callable[[], Iterable[Any]], name: str | None = None) -> None:
        self.provider = provider
        self.name = name or _factory_name(provider)

    def descriptors(self) -> list[Any]:
        return list(self.provider())


class StaticSource:
    """Source backed by a fixed collection of candidates."""

    def __init__(self, candidates: Iterable[Any], name: str = "static") -> None:
        self._candidates = list(candidates)
        self.name = name

    def descriptors(self) -> list[Any]:
        return list(self._candidates)


def as_source(obj: Any, name: str | None = None) -> MigrationSource:
    """Normalize a registry, module path, callable or iterable into a source."""
    if isinstance(obj, str):
        return ModuleSource(obj)
    if hasattr(obj, "descriptors") and callable(obj.descriptors):
        return obj
    if callable(obj):
        return CallableSource(obj, name=name)
    if isinstance(obj, Iterable) and not isinstance(obj, Mapping):
        return StaticSource(obj, name=name or "static")
    raise TypeError(f"Not a migration source: {obj!r}")


def source_name(source: Any) -> str:
    name = getattr(source, "name", None)
    return name if isinstance(name, str) else repr(source)


def _coerce_candidate(candidate: Any, source: str) -> MigrationDescriptor | None:
    """Return a valid descriptor for ``candidate`` or None when its metadata is invalid."""
    if isinstance(candidate, MigrationDescriptor):
        version, profiles, factory = candidate.version, candidate.profiles, candidate.factory
        name = candidate.name
        origin = candidate.source or source
    elif isinstance(candidate, Mapping):
        version = candidate.get("version")
        profiles = candidate.get("profiles", ())
        factory = candidate.get("factory")
        name = candidate.get("name") or ""
        origin = source
    else:
        return None

    if isinstance(version, bool) or not isinstance(version, int):
        return None
    if factory is None or not callable(factory):
        return None
    if isinstance(profiles, str):
        profiles = (profiles,)
    try:
        profiles = frozenset(profiles)
    except TypeError:
        return None
    if not all(isinstance(p, str) and p for p in profiles):
        return None

    return MigrationDescriptor(
        version=version,
        factory=factory,
        profiles=profiles,
        name=name,
        source=origin,
    )


def _check_duplicates(
    descriptors: list[MigrationDescriptor],
    run_log: MigrationLogger,
    reject: bool,
) -> None:
    by_version: dict[int, list[str]] = defaultdict(list)
    for descriptor in descriptors:
        by_version[descriptor.version].append(descriptor.name)

    for version, names in by_version.items():
        if len(names) < 2:
            continue
        if reject:
            raise DuplicateVersionError(version, names).with_context(version=version)
        run_log.write_warning(
            "Duplicate migration version {0}: {1} (running in discovery order)",
            version,
            ", ".join(names),
        )
        logger.warning("discovery.duplicate_version", version=version, migrations=names)


def discover(
    sources: Iterable[Any],
    *,
    run_log: MigrationLogger | None = None,
    reject_duplicate_versions: bool = False,
) -> list[MigrationDescriptor]:
    """Collect descriptors from every source, in discovery order.

    Raises:
        DiscoveryError: A source could not be enumerated.
        DuplicateVersionError: Duplicate versions with ``reject_duplicate_versions``.
    """
    run_log = run_log or NullLogger()
    found: list[MigrationDescriptor] = []

    for raw in sources:
        try:
            source = as_source(raw)
        except TypeError as e:
            raise DiscoveryError(str(e), cause=e) from e
        name = source_name(source)

        try:
            candidates = list(source.descriptors())
        except DiscoveryError:
            raise
        except Exception as e:
            raise DiscoveryError(
                f"Failed to enumerate migration source {name}: {e}", cause=e
            ).with_context(source=name) from e

        for candidate in candidates:
            descriptor = _coerce_candidate(candidate, name)
            if descriptor is None:
                logger.debug("discovery.candidate_skipped", source=name, candidate=repr(candidate))
                continue
            found.append(descriptor)

        logger.debug("discovery.source_scanned", source=name, candidates=len(candidates))

    _check_duplicates(found, run_log, reject_duplicate_versions)
    logger.debug("discovery.completed", discovered=len(found))
    return found


__all__ = [
    "CallableSource",
    "MigrationDescriptor",
    "MigrationRegistry",
    "ModuleSource",
    "StaticSource",
    "as_source",
    "discover",
]
