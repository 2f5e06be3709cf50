"""docmigrate framework -- the discovery → filter → order → execute pipeline.

Modules
-------
migration   Migration base class
registry    MigrationRegistry, MigrationDescriptor, sources, discover()
filtering   Profile filter (is_eligible, filter_eligible)
ordering    Direction-dependent ordering (order_descriptors)
resolver    DefaultResolver, FactoryResolver
options     RunOptions
runner      Runner.run / Runner.status, RunResult
"""

from docmigrate.framework.filtering import filter_eligible, is_eligible
from docmigrate.framework.migration import Migration
from docmigrate.framework.options import RunOptions
from docmigrate.framework.ordering import order_descriptors
from docmigrate.framework.registry import (
    CallableSource,
    MigrationDescriptor,
    MigrationRegistry,
    ModuleSource,
    StaticSource,
    discover,
)
from docmigrate.framework.resolver import DefaultResolver, FactoryResolver
from docmigrate.framework.runner import MigrationStatus, Runner, RunResult, run_migrations

__all__ = [
    "CallableSource",
    "DefaultResolver",
    "FactoryResolver",
    "Migration",
    "MigrationDescriptor",
    "MigrationRegistry",
    "MigrationStatus",
    "ModuleSource",
    "RunOptions",
    "RunResult",
    "Runner",
    "StaticSource",
    "discover",
    "filter_eligible",
    "is_eligible",
    "order_descriptors",
    "run_migrations",
]
