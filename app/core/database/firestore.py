"""Firestore-backed implementation of the `DocumentStore` interface."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from google.cloud.firestore_v1.base_query import FieldFilter

from .store import SUPPORTED_OPERATORS, DocumentSnapshot

logger = logging.getLogger(__name__)


def _to_snapshot(snapshot) -> DocumentSnapshot:
    data = snapshot.to_dict() if snapshot.exists else None
    return DocumentSnapshot(
        id=snapshot.id,
        path=snapshot.reference.path,
        exists=bool(snapshot.exists),
        data=data or {},
    )


class FirestoreDocumentStore:
    """Adapt a `google.cloud.firestore.Client` to the handler-facing store API.

    Collections may be nested (`conversations/c1/messages`); the client accepts
    slash-joined collection paths directly.
    """

    def __init__(self, client):
        self.client = client

    def get_document(self, collection: str, document_id: str) -> DocumentSnapshot:
        snapshot = self.client.collection(collection).document(document_id).get()
        return _to_snapshot(snapshot)

    def query(
        self, collection: str, field_path: str, op: str, value: Any
    ) -> List[DocumentSnapshot]:
        if op not in SUPPORTED_OPERATORS:
            raise ValueError(f"Unsupported query operator: {op}")
        stream = (
            self.client.collection(collection)
            .where(filter=FieldFilter(field_path, op, value))
            .stream()
        )
        return [_to_snapshot(snapshot) for snapshot in stream]

    def start_batch(self):
        return self.client.batch()

    def batch_update(self, batch, reference: str, fields: Dict[str, Any]) -> None:
        batch.update(self.client.document(reference), fields)

    def commit(self, batch) -> None:
        results = batch.commit()
        logger.debug("Committed batch with %d write result(s)", len(results or []))


__all__ = ["FirestoreDocumentStore"]
