"""
Marker documents and deterministic marker ids.

A ``MarkerRecord`` stored under a migration's id is the only evidence the
runner uses to decide whether that migration is applied. The id is derived
from the migration name and the store's separator, so computing it twice
yields the same string.

Examples:
    >>> migration_id_from_name("Add__User_Index_", "/")
    'migrationdocuments/add/user/index'
    >>> MarkerRecord.from_dict({"id": "migrationdocuments/first"}).id
    'migrationdocuments/first'

Tags:
    marker, document, identity, deterministic, docmigrate

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

MARKER_PREFIX = "migrationdocuments"

_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def migration_id_from_name(name: str, separator: str = "/") -> str:
    """Build the marker id for a migration called ``name``.

    Runs of underscores collapse to one, leading and trailing underscores
    are stripped, the rest become ``separator`` and the result is lowercased
    and prefixed with ``migrationdocuments``.
    """
    if not separator:
        raise ValueError("separator must be a non-empty string")
    cleaned = _REPEATED_UNDERSCORES.sub("_", name).strip("_")
    return separator.join([MARKER_PREFIX, cleaned.replace("_", separator).lower()])


def marker_prefix(separator: str = "/") -> str:
    """Id prefix shared by every marker in a store."""
    return f"{MARKER_PREFIX}{separator}"


def document_id(document: Any) -> str:
    """Return the id of a marker, a dict document or a plain id string."""
    if isinstance(document, str):
        return document
    if isinstance(document, dict):
        doc_id = document.get("id")
    else:
        doc_id = getattr(document, "id", None)
    if not isinstance(doc_id, str) or not doc_id:
        raise ValueError(f"Document has no string id: {document!r}")
    return doc_id


def to_document(document: Any) -> dict[str, Any]:
    """Serialize a marker or dict document into a plain dict."""
    if isinstance(document, dict):
        document_id(document)
        return dict(document)
    if hasattr(document, "to_dict"):
        return document.to_dict()
    raise TypeError(f"Cannot store {type(document).__name__}; expected dict or MarkerRecord")


@dataclass
class MarkerRecord:
    """Persisted evidence that a migration's ``up`` ran and was not reverted."""

    id: str
    version: int | None = None
    applied_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    # Discriminator stored with the document body
    kind = "migration_marker"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "version": self.version,
            "applied_at": self.applied_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarkerRecord:
        applied_at = data.get("applied_at")
        if isinstance(applied_at, str):
            applied_at = datetime.fromisoformat(applied_at)
        return cls(
            id=data["id"],
            version=data.get("version"),
            applied_at=applied_at or datetime.now(UTC),
        )

    @classmethod
    def is_marker(cls, data: Any) -> bool:
        return isinstance(data, dict) and data.get("kind") == cls.kind


def hydrate(data: dict[str, Any] | None) -> Any:
    """Turn a stored dict back into a ``MarkerRecord`` when it is one."""
    if data is None:
        return None
    if MarkerRecord.is_marker(data):
        return MarkerRecord.from_dict(data)
    return dict(data)


__all__ = [
    "MARKER_PREFIX",
    "MarkerRecord",
    "document_id",
    "hydrate",
    "marker_prefix",
    "migration_id_from_name",
    "to_document",
]
