"""SQLAlchemy-backed document store.

Documents are rows of a single ``documents`` table holding the id, a
collection name (the id segment before the first separator) and the JSON
body. Each scope wraps one ORM ``Session``; committing the scope commits
the session, so a migration's documents and its marker land together.

This module provides:

* ``create_document_engine`` -- Create a SA engine from a URL with SQLite tweaks.
* ``DocumentRow``            -- ORM model for the ``documents`` table.
* ``SqlDocumentStore``       -- Store opening one session per scope.

Tags:
    docmigrate, store, sqlalchemy, session, json, documents

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from docmigrate.core.errors import StoreError
from docmigrate.core.logging import get_logger
from docmigrate.stores.base import UnitOfWorkScope

logger = get_logger(__name__)


class DocumentBase(DeclarativeBase):
    """Declarative base for docmigrate tables."""


class DocumentRow(DocumentBase):
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    collection: Mapped[str] = mapped_column(Text, index=True)
    body: Mapped[dict] = mapped_column(JSON, nullable=False)


def create_document_engine(url: str = "sqlite:///docmigrate.db", *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    In-memory SQLite URLs get a ``StaticPool`` so every session of the
    store sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs.setdefault("poolclass", StaticPool)

        engine = create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(url, echo=echo, **kwargs)


class SqlScope(UnitOfWorkScope):
    def __init__(self, session: Session, separator: str) -> None:
        super().__init__()
        self._session = session
        self._separator = separator

    def _fetch(self, document_id: str) -> dict[str, Any] | None:
        try:
            row = self._session.get(DocumentRow, document_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load document {document_id}", cause=e) from e
        return dict(row.body) if row is not None else None

    def _fetch_prefix(self, prefix: str) -> list[dict[str, Any]]:
        stmt = select(DocumentRow).order_by(DocumentRow.id)
        if prefix:
            stmt = stmt.where(DocumentRow.id.startswith(prefix, autoescape=True))
        try:
            rows = self._session.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query documents with prefix {prefix!r}", cause=e) from e
        return [dict(row.body) for row in rows]

    def _flush(self, stores: dict[str, dict[str, Any]], deletes: set[str]) -> None:
        try:
            for doc_id in deletes:
                row = self._session.get(DocumentRow, doc_id)
                if row is not None:
                    self._session.delete(row)
            for doc_id, data in stores.items():
                row = self._session.get(DocumentRow, doc_id)
                if row is None:
                    self._session.add(
                        DocumentRow(id=doc_id, collection=self._collection(doc_id), body=data)
                    )
                else:
                    row.body = data
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StoreError("Failed to commit documents", cause=e) from e

    def _release(self) -> None:
        self._session.close()

    def _collection(self, doc_id: str) -> str:
        head, sep, _ = doc_id.partition(self._separator)
        return head if sep else ""


class SqlDocumentStore:
    """Document store over any SQLAlchemy-supported database.

    Example::

        store = SqlDocumentStore("sqlite:///migrations.db")
        Runner.run(store, RunOptions(sources=[registry]))
    """

    def __init__(
        self,
        url_or_engine: str | Engine = "sqlite:///docmigrate.db",
        *,
        identity_separator: str = "/",
        echo: bool = False,
    ) -> None:
        if not identity_separator:
            raise ValueError("identity_separator must be a non-empty string")
        self.identity_separator = identity_separator
        if isinstance(url_or_engine, Engine):
            self.engine = url_or_engine
        else:
            self.engine = create_document_engine(url_or_engine, echo=echo)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        try:
            DocumentBase.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialise document table at {self.engine.url}", cause=e) from e
        logger.debug("sql_store.ready", url=str(self.engine.url))

    def open_scope(self) -> SqlScope:
        return SqlScope(self._session_factory(), self.identity_separator)

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
