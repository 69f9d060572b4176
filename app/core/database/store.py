"""Narrow document-store interface consumed by the trigger handlers.

Handlers never touch the Firestore SDK directly; they read and write through a
`DocumentStore`, which keeps them testable against an in-memory fake and keeps
SDK quirks (snapshot objects, filter syntax) inside the adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

SUPPORTED_OPERATORS = frozenset(
    {"==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains", "array-contains-any"}
)


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time view of one document. `data` is empty when the document is missing."""

    id: str
    path: str
    exists: bool
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def reference(self) -> str:
        return self.path

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Optional[Dict[str, Any]]:
        """Mirror the SDK: missing documents have no data at all."""
        return dict(self.data) if self.exists else None


@runtime_checkable
class WriteBatch(Protocol):
    """Opaque handle collecting updates until `DocumentStore.commit` is called."""


@runtime_checkable
class DocumentStore(Protocol):
    """Operations the trigger handlers need from the document store."""

    def get_document(self, collection: str, document_id: str) -> DocumentSnapshot:
        ...

    def query(
        self, collection: str, field_path: str, op: str, value: Any
    ) -> List[DocumentSnapshot]:
        ...

    def start_batch(self) -> WriteBatch:
        ...

    def batch_update(
        self, batch: WriteBatch, reference: str, fields: Dict[str, Any]
    ) -> None:
        ...

    def commit(self, batch: WriteBatch) -> None:
        """Apply every update added to `batch` atomically, or none of them."""
        ...


__all__ = [
    "SUPPORTED_OPERATORS",
    "DocumentSnapshot",
    "DocumentStore",
    "WriteBatch",
]
