"""Run options: the whole configuration surface of one migration run.

``RunOptions`` is frozen; build a new one (``dataclasses.replace``) rather
than mutating it during a run.

Example::

    options = RunOptions(
        sources=[registry],
        direction="down",
        profiles={"prod"},
        to_version=3,
        logger=StructlogLogger(),
    )
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from docmigrate.core.enums import Direction
from docmigrate.core.errors import InvalidConfigError
from docmigrate.core.logging import NullLogger
from docmigrate.core.protocols import MigrationLogger, Resolver
from docmigrate.core.settings import DocMigrateSettings, get_settings
from docmigrate.framework.resolver import DefaultResolver, as_resolver


@dataclass(frozen=True)
class RunOptions:
    """Options for a single run.

    Attributes:
        sources: Migration sources; empty means the calling module.
        direction: Up (default) or Down.
        profiles: Run profiles; empty runs only unrestricted migrations.
        to_version: Stop after this version is applied or reverted (skips do not stop); None runs to completion.
        resolver: Builds migration instances from descriptors.
        logger: Run log sink; discards everything by default.
        reject_duplicate_versions: Fail discovery on duplicate versions instead of warning.
    """

    sources: tuple[Any, ...] = ()
    direction: Direction = Direction.UP
    profiles: frozenset[str] = field(default_factory=frozenset)
    to_version: int | None = None
    resolver: Resolver = field(default_factory=DefaultResolver)
    logger: MigrationLogger = field(default_factory=NullLogger)
    reject_duplicate_versions: bool = False

    def __post_init__(self) -> None:
        sources = self.sources
        if isinstance(sources, str) or not isinstance(sources, Iterable) or hasattr(sources, "descriptors"):
            sources = (sources,)
        object.__setattr__(self, "sources", tuple(sources))

        try:
            object.__setattr__(self, "direction", Direction.parse(self.direction))
        except ValueError as e:
            raise InvalidConfigError("direction", self.direction) from e

        profiles = self.profiles
        if isinstance(profiles, str):
            profiles = (profiles,)
        object.__setattr__(self, "profiles", frozenset(profiles))

        if self.to_version is not None and (
            isinstance(self.to_version, bool) or not isinstance(self.to_version, int)
        ):
            raise InvalidConfigError("to_version", self.to_version)

        object.__setattr__(self, "resolver", as_resolver(self.resolver))
        if self.logger is None:
            object.__setattr__(self, "logger", NullLogger())

    @classmethod
    def from_settings(
        cls,
        settings: DocMigrateSettings | None = None,
        *,
        sources: Iterable[Any] = (),
        resolver: Any = None,
        logger: MigrationLogger | None = None,
        **overrides: Any,
    ) -> RunOptions:
        """Build options from ``DocMigrateSettings``; keyword overrides win."""
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "direction": settings.direction,
            "profiles": settings.profiles,
            "to_version": settings.to_version,
            "reject_duplicate_versions": settings.reject_duplicate_versions,
        }
        values.update(overrides)
        return cls(
            sources=tuple(sources),
            resolver=resolver,
            logger=logger or NullLogger(),
            **values,
        )


__all__ = ["RunOptions"]
