"""Tests for the in-memory document store and the unit-of-work scope."""

import pytest

from docmigrate.core.documents import MarkerRecord
from docmigrate.core.errors import StoreError
from docmigrate.core.protocols import DocumentStore, Scope
from docmigrate.stores.memory import InMemoryDocumentStore


class TestProtocols:
    def test_conforms(self, store):
        assert isinstance(store, DocumentStore)
        with store.open_scope() as scope:
            assert isinstance(scope, Scope)


class TestScope:
    """Scopes stage writes until commit."""

    def test_load_missing_returns_none(self, store):
        with store.open_scope() as scope:
            assert scope.load("users/1") is None

    def test_staged_write_visible_in_scope_only(self, store):
        with store.open_scope() as scope:
            scope.store({"id": "users/1", "name": "Ada"})
            assert scope.load("users/1") == {"id": "users/1", "name": "Ada"}
            assert "users/1" not in store

    def test_commit_makes_writes_durable(self, store):
        with store.open_scope() as scope:
            scope.store({"id": "users/1", "name": "Ada"})
            scope.commit()
        assert store.get("users/1") == {"id": "users/1", "name": "Ada"}
        assert store.commit_count == 1

    def test_close_without_commit_discards(self, store):
        with store.open_scope() as scope:
            scope.store({"id": "users/1"})
            assert scope.has_changes
        assert len(store) == 0

    def test_delete_is_staged(self):
        store = InMemoryDocumentStore(documents={"users/1": {"id": "users/1"}})
        with store.open_scope() as scope:
            scope.delete(scope.load("users/1"))
            assert scope.load("users/1") is None
            assert "users/1" in store
            scope.commit()
        assert "users/1" not in store

    def test_delete_none_is_no_op(self, store):
        with store.open_scope() as scope:
            scope.delete(None)
            assert not scope.has_changes

    def test_markers_are_hydrated(self, store):
        with store.open_scope() as scope:
            scope.store(MarkerRecord(id="migrationdocuments/first", version=1))
            scope.commit()
        with store.open_scope() as scope:
            marker = scope.load("migrationdocuments/first")
        assert isinstance(marker, MarkerRecord)
        assert marker.version == 1

    def test_query_merges_staged_writes(self):
        store = InMemoryDocumentStore(
            documents={
                "users/1": {"id": "users/1"},
                "users/2": {"id": "users/2"},
                "orders/1": {"id": "orders/1"},
            }
        )
        with store.open_scope() as scope:
            scope.store({"id": "users/3"})
            scope.delete("users/1")
            ids = [doc["id"] for doc in scope.query("users/")]
        assert ids == ["users/2", "users/3"]

    def test_loaded_documents_are_copies(self):
        store = InMemoryDocumentStore(documents={"users/1": {"id": "users/1", "tags": []}})
        with store.open_scope() as scope:
            scope.load("users/1")["tags"].append("x")
        assert store.get("users/1")["tags"] == []

    def test_closed_scope_rejects_use(self, store):
        scope = store.open_scope()
        scope.close()
        with pytest.raises(StoreError):
            scope.load("users/1")


class TestCommitFailure:
    def test_failed_commit_applies_nothing(self, store):
        store.fail_next_commit()
        with store.open_scope() as scope:
            scope.store({"id": "users/1"})
            with pytest.raises(StoreError):
                scope.commit()
        assert len(store) == 0
        assert store.commit_count == 0

    def test_failure_is_one_shot(self, store):
        store.fail_next_commit(OSError("disk"))
        with store.open_scope() as scope:
            scope.store({"id": "users/1"})
            with pytest.raises(OSError):
                scope.commit()
            scope.commit()
        assert "users/1" in store


class TestStoreConstruction:
    def test_separator_required(self):
        with pytest.raises(ValueError):
            InMemoryDocumentStore(identity_separator="")

    def test_seed_documents_are_copied(self):
        seed = {"users/1": {"id": "users/1"}}
        store = InMemoryDocumentStore(documents=seed)
        seed["users/1"]["id"] = "changed"
        assert store.get("users/1") == {"id": "users/1"}
        assert store.ids == ["users/1"]
