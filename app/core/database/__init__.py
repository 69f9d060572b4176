"""Document store access for trigger handlers.

Exposes the handler-facing `DocumentStore` protocol and the Firestore adapter used
in production; tests substitute an in-memory store with the same surface.
"""

from .firestore import FirestoreDocumentStore
from .store import DocumentSnapshot, DocumentStore, WriteBatch

__all__ = [
    "DocumentSnapshot",
    "DocumentStore",
    "FirestoreDocumentStore",
    "WriteBatch",
]
