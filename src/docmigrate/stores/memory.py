"""In-memory document store.

Documents live in a dict keyed by id. Each scope stages its writes and
swaps them in on commit, so a failed commit leaves the store unchanged.
Used by tests and for dry runs against a copy of real data.

Example::

    from docmigrate.stores import InMemoryDocumentStore

    store = InMemoryDocumentStore()
    with store.open_scope() as scope:
        scope.store({"id": "users/1", "name": "Ada"})
        scope.commit()
    store.get("users/1")
"""

from __future__ import annotations

import copy
from typing import Any

from docmigrate.core.errors import StoreError
from docmigrate.core.logging import get_logger
from docmigrate.stores.base import UnitOfWorkScope

logger = get_logger(__name__)


class InMemoryScope(UnitOfWorkScope):
    def __init__(self, store: InMemoryDocumentStore) -> None:
        super().__init__()
        self._store = store

    def _fetch(self, document_id: str) -> dict[str, Any] | None:
        doc = self._store._documents.get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    def _fetch_prefix(self, prefix: str) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(doc)
            for doc_id, doc in self._store._documents.items()
            if doc_id.startswith(prefix)
        ]

    def _flush(self, stores: dict[str, dict[str, Any]], deletes: set[str]) -> None:
        self._store._apply(stores, deletes)


class InMemoryDocumentStore:
    """Dict-backed document store with unit-of-work scopes."""

    def __init__(
        self,
        identity_separator: str = "/",
        documents: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        if not identity_separator:
            raise ValueError("identity_separator must be a non-empty string")
        self.identity_separator = identity_separator
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})
        self._commit_failure: Exception | None = None
        self.commit_count = 0

    def open_scope(self) -> InMemoryScope:
        return InMemoryScope(self)

    def fail_next_commit(self, error: Exception | None = None) -> None:
        """Make the next commit raise ``error`` without applying anything."""
        self._commit_failure = error or StoreError("Simulated commit failure")

    def get(self, document_id: str) -> dict[str, Any] | None:
        """Committed document by id (a copy), bypassing scopes."""
        doc = self._documents.get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    @property
    def ids(self) -> list[str]:
        return sorted(self._documents)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def _apply(self, stores: dict[str, dict[str, Any]], deletes: set[str]) -> None:
        if self._commit_failure is not None:
            error, self._commit_failure = self._commit_failure, None
            raise error

        documents = dict(self._documents)
        for doc_id in deletes:
            documents.pop(doc_id, None)
        for doc_id, data in stores.items():
            documents[doc_id] = copy.deepcopy(data)
        self._documents = documents
        self.commit_count += 1
        logger.debug("memory_store.committed", stored=len(stores), deleted=len(deletes))
