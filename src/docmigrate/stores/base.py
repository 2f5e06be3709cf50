"""Unit-of-work scope shared by the document stores.

A scope keeps its own staged writes. ``load`` sees those staged writes,
nothing reaches the backing store until ``commit()``, and closing a scope
that was never committed discards them. Concrete stores only implement
fetching and flushing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docmigrate.core.documents import document_id, hydrate, to_document
from docmigrate.core.errors import StoreError

# Sentinel for a staged deletion
_DELETED = None


class UnitOfWorkScope(ABC):
    """Base class for scopes that stage writes and apply them on commit."""

    def __init__(self) -> None:
        self._staged: dict[str, dict[str, Any] | None] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, document_id: str) -> Any:
        """Return the document stored under ``document_id`` or None."""
        self._check_open()
        if document_id in self._staged:
            staged = self._staged[document_id]
            return hydrate(dict(staged)) if staged is not None else None
        return hydrate(self._fetch(document_id))

    def store(self, document: Any) -> None:
        """Stage ``document`` (a dict with ``id`` or a ``MarkerRecord``)."""
        self._check_open()
        data = to_document(document)
        self._staged[data["id"]] = data

    def delete(self, document: Any) -> None:
        """Stage removal of ``document``; deleting None is a no-op."""
        self._check_open()
        if document is None:
            return
        self._staged[document_id(document)] = _DELETED

    def query(self, prefix: str = "") -> list[Any]:
        """Documents whose id starts with ``prefix``, staged writes included, sorted by id."""
        self._check_open()
        found = {doc["id"]: doc for doc in self._fetch_prefix(prefix)}
        for doc_id, staged in self._staged.items():
            if not doc_id.startswith(prefix):
                continue
            if staged is _DELETED:
                found.pop(doc_id, None)
            else:
                found[doc_id] = staged
        return [hydrate(dict(found[doc_id])) for doc_id in sorted(found)]

    def commit(self) -> None:
        """Apply every staged write atomically."""
        self._check_open()
        stores = {k: v for k, v in self._staged.items() if v is not _DELETED}
        deletes = {k for k, v in self._staged.items() if v is _DELETED}
        self._flush(stores, deletes)
        self._staged.clear()

    @property
    def has_changes(self) -> bool:
        return bool(self._staged)

    def close(self) -> None:
        """Discard uncommitted writes and release resources."""
        if self._closed:
            return
        self._staged.clear()
        self._closed = True
        self._release()

    def __enter__(self) -> UnitOfWorkScope:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _fetch(self, document_id: str) -> dict[str, Any] | None:
        """Read one committed document."""

    @abstractmethod
    def _fetch_prefix(self, prefix: str) -> list[dict[str, Any]]:
        """Read committed documents whose id starts with ``prefix``."""

    @abstractmethod
    def _flush(self, stores: dict[str, dict[str, Any]], deletes: set[str]) -> None:
        """Durably apply ``stores`` and ``deletes`` as one change."""

    def _release(self) -> None:
        pass

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError("Scope is closed")
