"""Migration runner: discovery → filter → order → execute.

Manifesto:
    Re-running migrations must be a no-op. The runner records a marker
    document for every applied migration, checks it before applying, and
    commits the marker in the same scope as the migration's own writes,
    so a migration and its marker are durable together or not at all.

Per-migration state machine::

    Resolved → SetupDone → MarkerChecked ─┬─ Skipped            (up, marker present)
                                          └─ Applying/Reverting
                                               → MarkerUpdated → Committed

Failures stop the run: the failing migration's scope is discarded,
migrations committed earlier in the run stay committed, and the error
(``MigrationLogicError`` or ``CommitError``) reaches the caller. Nothing
is retried.

Concurrency:
    One migration at a time, one scope per migration. Two runners against
    the same store can both see an absent marker and both apply ``up``;
    callers needing multi-runner safety must serialize runs themselves.

Tags:
    docmigrate, framework, runner, idempotent, markers, lifecycle

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
import uuid
from dataclasses import dataclass, field, replace
from typing import Any

from docmigrate.core.documents import MarkerRecord, marker_prefix
from docmigrate.core.enums import Direction
from docmigrate.core.errors import CommitError, MigrationError, MigrationLogicError
from docmigrate.core.logging import LogContext, get_logger
from docmigrate.core.protocols import DocumentStore, MigrationProtocol, Scope
from docmigrate.framework.filtering import filter_eligible, is_eligible
from docmigrate.framework.migration import bind_session
from docmigrate.framework.options import RunOptions
from docmigrate.framework.ordering import order_descriptors
from docmigrate.framework.registry import MigrationDescriptor, ModuleSource, discover
from docmigrate.framework.resolver import check_migration

log = get_logger(__name__)


@dataclass
class RunResult:
    """Outcome of a run: which migrations were applied, reverted or skipped."""

    direction: Direction
    run_id: str = ""
    applied: list[str] = field(default_factory=list)
    reverted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    stopped_at: int | None = None

    @property
    def processed(self) -> int:
        return len(self.applied) + len(self.reverted)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "direction": self.direction.value,
            "applied": list(self.applied),
            "reverted": list(self.reverted),
            "skipped": list(self.skipped),
            "stopped_at": self.stopped_at,
        }


@dataclass
class MigrationStatus:
    """Whether one discovered migration is eligible and applied."""

    version: int
    name: str
    profiles: list[str]
    source: str
    eligible: bool
    applied: bool
    marker_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "name": self.name,
            "profiles": self.profiles,
            "source": self.source,
            "eligible": self.eligible,
            "applied": self.applied,
            "marker_id": self.marker_id,
        }


class Runner:
    """
    Runs migrations against a document store.

    Example::

        store = SqlDocumentStore("sqlite:///app.db")
        result = Runner.run(store, RunOptions(sources=[registry], profiles={"prod"}))
        print(result.applied)
    """

    @classmethod
    def run(cls, store: DocumentStore, options: RunOptions | None = None) -> RunResult:
        """
        Apply (or revert) every eligible migration in order.

        Args:
            store: Document store the markers live in
            options: Run options; sources default to the calling module

        Returns:
            RunResult listing applied, reverted and skipped migrations

        Raises:
            DiscoveryError: A source could not be enumerated (nothing ran)
            MigrationLogicError: A migration's up()/down() raised
            CommitError: A migration's scope failed to commit
        """
        options = options or RunOptions()
        if not options.sources:
            options = replace(options, sources=(_calling_module(),))

        descriptors = discover(
            options.sources,
            run_log=options.logger,
            reject_duplicate_versions=options.reject_duplicate_versions,
        )
        ordered = order_descriptors(
            filter_eligible(descriptors, options.profiles),
            options.direction,
        )

        result = RunResult(direction=options.direction, run_id=uuid.uuid4().hex[:12])
        with LogContext(run_id=result.run_id, direction=options.direction.value):
            log.info(
                "runner.started",
                discovered=len(descriptors),
                eligible=len(ordered),
                to_version=options.to_version,
            )

            for descriptor in ordered:
                committed = cls._execute(store, descriptor, options, result)

                # a skipped migration never stops the run
                if committed and descriptor.version == options.to_version:
                    result.stopped_at = descriptor.version
                    log.info("runner.stopped", version=descriptor.version)
                    break

            log.info(
                "runner.completed",
                applied=len(result.applied),
                reverted=len(result.reverted),
                skipped=len(result.skipped),
            )

        return result

    @classmethod
    def status(cls, store: DocumentStore, options: RunOptions | None = None) -> list[MigrationStatus]:
        """
        Report every discovered migration with its eligibility and marker state.

        Migrations are resolved to compute their identity but neither
        ``setup``, ``up`` nor ``down`` is called, and nothing is written.
        Ineligible migrations are resolved too, since a marker written
        under another profile still counts as applied.

        Raises:
            DiscoveryError: A source could not be enumerated
            MigrationLogicError: The resolver failed to build a migration
        """
        options = options or RunOptions()
        if not options.sources:
            options = replace(options, sources=(_calling_module(),))

        descriptors = order_descriptors(
            discover(
                options.sources,
                run_log=options.logger,
                reject_duplicate_versions=options.reject_duplicate_versions,
            ),
            Direction.UP,
        )

        statuses = []
        with store.open_scope() as scope:
            for descriptor in descriptors:
                migration = cls._resolve(descriptor, options)
                marker_id = migration.identity(store.identity_separator)
                statuses.append(
                    MigrationStatus(
                        version=descriptor.version,
                        name=descriptor.name,
                        profiles=sorted(descriptor.profiles),
                        source=descriptor.source,
                        eligible=is_eligible(descriptor, options.profiles),
                        applied=scope.load(marker_id) is not None,
                        marker_id=marker_id,
                    )
                )
        return statuses

    @staticmethod
    def markers(store: DocumentStore) -> list[MarkerRecord]:
        """Every marker currently committed in ``store``."""
        with store.open_scope() as scope:
            return [
                doc
                for doc in scope.query(marker_prefix(store.identity_separator))
                if isinstance(doc, MarkerRecord)
            ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @classmethod
    def _execute(
        cls,
        store: DocumentStore,
        descriptor: MigrationDescriptor,
        options: RunOptions,
        result: RunResult,
    ) -> bool:
        """Process one migration; False when it was skipped as already applied."""
        run_log = options.logger
        name = descriptor.name

        migration = cls._resolve(descriptor, options)
        migration.setup(store, run_log)
        marker_id = migration.identity(store.identity_separator)

        with store.open_scope() as scope:
            marker = scope.load(marker_id)

            if options.direction is Direction.DOWN:
                run_log.write_information("{0}: Down migration started", name)
                cls._invoke(migration, "down", scope, descriptor, marker_id, options)
                if marker is None:
                    run_log.write_warning(
                        "{0}: no migration marker {1} to delete; was it applied?", name, marker_id
                    )
                else:
                    scope.delete(marker)
                cls._commit(scope, descriptor, marker_id, options)
                run_log.write_information("{0}: Down migration completed", name)
                result.reverted.append(name)
                log.info("runner.migration_reverted", migration=name, version=descriptor.version)
                return True

            # we already ran it
            if marker is not None:
                result.skipped.append(name)
                log.debug("runner.migration_skipped", migration=name, version=descriptor.version)
                return False

            run_log.write_information("{0}: Up migration started", name)
            cls._invoke(migration, "up", scope, descriptor, marker_id, options)
            scope.store(MarkerRecord(id=marker_id, version=descriptor.version))
            cls._commit(scope, descriptor, marker_id, options)
            run_log.write_information("{0}: Up migration completed", name)
            result.applied.append(name)
            log.info("runner.migration_applied", migration=name, version=descriptor.version)
            return True

    @staticmethod
    def _resolve(descriptor: MigrationDescriptor, options: RunOptions) -> MigrationProtocol:
        try:
            instance = options.resolver.resolve(descriptor.factory)
        except MigrationError:
            raise
        except Exception as e:
            options.logger.write_error("{0}: could not be resolved: {1}", descriptor.name, e)
            raise MigrationLogicError(
                f"Failed to resolve migration {descriptor.name}: {e}", cause=e
            ).with_context(
                migration=descriptor.name,
                version=descriptor.version,
                source=descriptor.source,
            ) from e
        return check_migration(instance, descriptor.factory)

    @staticmethod
    def _invoke(
        migration: MigrationProtocol,
        step: str,
        scope: Scope,
        descriptor: MigrationDescriptor,
        marker_id: str,
        options: RunOptions,
    ) -> None:
        bind_session(migration, scope)
        try:
            getattr(migration, step)()
        except Exception as e:
            options.logger.write_error(
                "{0}: {1} migration failed: {2}", descriptor.name, step.capitalize(), e
            )
            log.error(
                "runner.migration_failed",
                migration=descriptor.name,
                version=descriptor.version,
                step=step,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise MigrationLogicError(
                f"{step.capitalize()} migration {descriptor.name} failed: {e}", cause=e
            ).with_context(
                migration=descriptor.name,
                version=descriptor.version,
                direction=options.direction.value,
                source=descriptor.source,
                marker_id=marker_id,
            ) from e
        finally:
            bind_session(migration, None)

    @staticmethod
    def _commit(
        scope: Scope,
        descriptor: MigrationDescriptor,
        marker_id: str,
        options: RunOptions,
    ) -> None:
        try:
            scope.commit()
        except Exception as e:
            options.logger.write_error("{0}: commit failed: {1}", descriptor.name, e)
            log.error(
                "runner.commit_failed",
                migration=descriptor.name,
                version=descriptor.version,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CommitError(
                f"Commit of migration {descriptor.name} failed: {e}", cause=e
            ).with_context(
                migration=descriptor.name,
                version=descriptor.version,
                direction=options.direction.value,
                source=descriptor.source,
                marker_id=marker_id,
            ) from e


def run_migrations(store: DocumentStore, options: RunOptions | None = None, **kwargs: Any) -> RunResult:
    """Shorthand for ``Runner.run`` building ``RunOptions`` from keywords.

    Sources default to the calling module.
    """
    if options is None:
        options = RunOptions(**kwargs)
    elif kwargs:
        options = replace(options, **kwargs)
    if not options.sources:
        options = replace(options, sources=(_calling_module(),))
    return Runner.run(store, options)


def _calling_module() -> ModuleSource:
    """ModuleSource for the first frame outside docmigrate.framework."""
    frame = inspect.currentframe()
    try:
        while frame is not None:
            module = frame.f_globals.get("__name__", "")
            if not module.startswith("docmigrate.framework"):
                return ModuleSource(module)
            frame = frame.f_back
    finally:
        del frame
    return ModuleSource("__main__")


__all__ = ["MigrationStatus", "RunResult", "Runner", "run_migrations"]
