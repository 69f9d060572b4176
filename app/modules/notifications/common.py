"""Shared helpers for the notifications domain."""

from __future__ import annotations

import logging
from typing import Optional, Type, TypeVar

from app.core.database import DocumentStore
from app.core.exceptions import raise_lookup_failure

from .schemas import StoreDocument

logger = logging.getLogger("app.notifications")

D = TypeVar("D", bound=StoreDocument)


def load_document(
    store: DocumentStore, collection: str, document_id: Optional[str], model: Type[D]
) -> Optional[D]:
    """Fetch and parse a document; returns None when the id is blank or the document is missing."""
    if not document_id:
        return None
    snapshot = store.get_document(collection, document_id)
    if not snapshot.exists:
        return None
    return model.from_fields(snapshot.data)


def require_document(
    store: DocumentStore, collection: str, document_id: Optional[str], model: Type[D]
) -> D:
    """Like `load_document` but raises LookupFailureException when nothing is found."""
    document = load_document(store, collection, document_id, model)
    if document is None:
        raise_lookup_failure(collection, document_id)
    return document


__all__ = ["logger", "load_document", "require_document"]
