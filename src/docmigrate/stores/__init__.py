"""Document stores the runner records markers in.

Modules
-------
base      UnitOfWorkScope (staged writes, atomic commit)
memory    InMemoryDocumentStore
sql       SqlDocumentStore (SQLAlchemy ORM, one session per scope)
"""

from docmigrate.stores.base import UnitOfWorkScope
from docmigrate.stores.memory import InMemoryDocumentStore, InMemoryScope
from docmigrate.stores.sql import SqlDocumentStore, SqlScope, create_document_engine

__all__ = [
    "InMemoryDocumentStore",
    "InMemoryScope",
    "SqlDocumentStore",
    "SqlScope",
    "UnitOfWorkScope",
    "create_document_engine",
]
