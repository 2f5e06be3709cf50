"""Tests for the SQLAlchemy-backed document store."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from docmigrate.core.documents import MarkerRecord
from docmigrate.stores.sql import DocumentRow, SqlDocumentStore, create_document_engine


class TestSqlScope:
    def test_commit_and_reload(self, sql_store):
        with sql_store.open_scope() as scope:
            scope.store({"id": "users/1", "name": "Ada"})
            scope.commit()

        with sql_store.open_scope() as scope:
            assert scope.load("users/1") == {"id": "users/1", "name": "Ada"}

    def test_uncommitted_writes_discarded(self, sql_store):
        with sql_store.open_scope() as scope:
            scope.store({"id": "users/1"})

        with sql_store.open_scope() as scope:
            assert scope.load("users/1") is None

    def test_update_existing_document(self, sql_store):
        with sql_store.open_scope() as scope:
            scope.store({"id": "users/1", "name": "Ada"})
            scope.commit()
        with sql_store.open_scope() as scope:
            doc = scope.load("users/1")
            doc["name"] = "Grace"
            scope.store(doc)
            scope.commit()

        with sql_store.open_scope() as scope:
            assert scope.load("users/1")["name"] == "Grace"

    def test_delete(self, sql_store):
        with sql_store.open_scope() as scope:
            scope.store({"id": "users/1"})
            scope.commit()
        with sql_store.open_scope() as scope:
            scope.delete("users/1")
            scope.commit()

        with sql_store.open_scope() as scope:
            assert scope.load("users/1") is None

    def test_query_by_prefix(self, sql_store):
        with sql_store.open_scope() as scope:
            for doc_id in ("users/2", "users/1", "orders/1", "users_x/1"):
                scope.store({"id": doc_id})
            scope.commit()

        with sql_store.open_scope() as scope:
            assert [d["id"] for d in scope.query("users/")] == ["users/1", "users/2"]

    def test_markers_round_trip(self, sql_store):
        with sql_store.open_scope() as scope:
            scope.store(MarkerRecord(id="migrationdocuments/first", version=1))
            scope.commit()

        with sql_store.open_scope() as scope:
            marker = scope.load("migrationdocuments/first")
        assert isinstance(marker, MarkerRecord)
        assert marker.version == 1

    def test_collection_column(self, sql_store):
        with sql_store.open_scope() as scope:
            scope.store({"id": "users/1"})
            scope.store({"id": "loose"})
            scope.commit()

        with Session(sql_store.engine) as session:
            rows = {r.id: r.collection for r in session.scalars(select(DocumentRow))}
        assert rows == {"users/1": "users", "loose": ""}


class TestSqlDocumentStore:
    def test_file_database_persists(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'docs.db'}"
        first = SqlDocumentStore(url)
        with first.open_scope() as scope:
            scope.store({"id": "users/1"})
            scope.commit()
        first.dispose()

        second = SqlDocumentStore(url)
        try:
            with second.open_scope() as scope:
                assert scope.load("users/1") == {"id": "users/1"}
        finally:
            second.dispose()

    def test_accepts_engine(self):
        engine = create_engine("sqlite://")
        store = SqlDocumentStore(engine, identity_separator="-")
        assert store.engine is engine
        assert store.identity_separator == "-"
        store.dispose()

    def test_separator_required(self):
        with pytest.raises(ValueError):
            SqlDocumentStore("sqlite://", identity_separator="")

    def test_memory_engine_shares_connection(self):
        engine = create_document_engine("sqlite://")
        assert engine.pool.__class__.__name__ == "StaticPool"
        engine.dispose()
