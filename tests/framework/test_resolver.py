"""Tests for migration resolvers and the Migration base class."""

import pytest

from docmigrate.core.errors import ConfigError
from docmigrate.core.logging import NullLogger
from docmigrate.framework.migration import Migration, bind_session
from docmigrate.framework.resolver import (
    CallableResolver,
    DefaultResolver,
    FactoryResolver,
    as_resolver,
    check_migration,
)


class Plain(Migration):
    def up(self):
        pass


class WithClient(Migration):
    def __init__(self, client, batch_size=100):
        super().__init__()
        self.client = client
        self.batch_size = batch_size

    def up(self):
        pass


class TestMigration:
    def test_identity_from_class_name(self):
        class Add__Display_Names_(Migration):
            def up(self):
                pass

        assert Add__Display_Names_().identity("/") == "migrationdocuments/add/display/names"

    def test_setup_wires_store_and_logger(self, store):
        migration = Plain()
        logger = NullLogger()
        migration.setup(store, logger)
        assert migration.store is store
        assert migration.logger is logger
        assert migration.session is None

    def test_down_defaults_to_no_op(self):
        Plain().down()

    def test_up_is_abstract(self):
        with pytest.raises(TypeError):
            Migration()

    def test_bind_session_ignores_foreign_objects(self):
        bind_session(object(), None)


class TestResolvers:
    def test_default(self):
        assert isinstance(DefaultResolver().resolve(Plain), Plain)

    def test_factory_injects_by_name(self):
        resolver = FactoryResolver(client="es", batch_size=5, unused=True)
        migration = resolver.resolve(WithClient)
        assert migration.client == "es"
        assert migration.batch_size == 5

    def test_factory_without_dependencies(self):
        assert isinstance(FactoryResolver(client="es").resolve(Plain), Plain)

    def test_factory_with_var_keyword(self):
        def factory(**deps):
            migration = Plain()
            migration.deps = deps
            return migration

        assert FactoryResolver(a=1).resolve(factory).deps == {"a": 1}

    def test_callable_resolver(self):
        resolver = as_resolver(lambda factory: factory())
        assert isinstance(resolver, CallableResolver)
        assert isinstance(resolver.resolve(Plain), Plain)

    def test_as_resolver(self):
        assert isinstance(as_resolver(None), DefaultResolver)
        resolver = FactoryResolver()
        assert as_resolver(resolver) is resolver
        with pytest.raises(ConfigError):
            as_resolver(42)


class TestCheckMigration:
    def test_accepts_migration(self):
        migration = Plain()
        assert check_migration(migration, Plain) is migration

    def test_accepts_duck_typed_migration(self):
        class Duck:
            def setup(self, store, logger): ...
            def up(self): ...
            def down(self): ...
            def identity(self, separator="/"): ...

        duck = Duck()
        assert check_migration(duck, Duck) is duck

    def test_rejects_missing_methods(self):
        with pytest.raises(ConfigError, match="setup, up, down, identity"):
            check_migration(object(), Plain)
