import os
from typing import Any, Dict, List, Optional

import pytest

# Set testing environment flags before importing settings
os.environ["APP_ENV"] = "test"
os.environ.pop("FIREBASE_CREDENTIALS_PATH", None)

from app.core.config.environment import TestSettings  # noqa: E402
from app.core.database.store import SUPPORTED_OPERATORS, DocumentSnapshot  # noqa: E402
from app.core.exceptions import DeliveryFailureException  # noqa: E402
from app.modules.notifications.composer import NotificationComposer  # noqa: E402
from app.modules.notifications.tokens import TokenResolver  # noqa: E402


class InMemoryBatch:
    """Pending updates collected until commit."""

    def __init__(self):
        self.updates: List[tuple] = []


class InMemoryDocumentStore:
    """Dict-backed DocumentStore with all-or-nothing batch commits."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.documents: Dict[str, Dict[str, Any]] = {
            path: dict(fields) for path, fields in (documents or {}).items()
        }
        self.reads: List[str] = []
        self.queries: List[tuple] = []
        self.commits: List[InMemoryBatch] = []
        self.fail_commit: Optional[Exception] = None

    def set(self, path: str, fields: Dict[str, Any]) -> None:
        self.documents[path] = dict(fields)

    def fields(self, path: str) -> Optional[Dict[str, Any]]:
        return self.documents.get(path)

    def get_document(self, collection: str, document_id: str) -> DocumentSnapshot:
        path = f"{collection}/{document_id}"
        self.reads.append(path)
        data = self.documents.get(path)
        return DocumentSnapshot(
            id=document_id, path=path, exists=data is not None, data=dict(data or {})
        )

    def query(self, collection: str, field_path: str, op: str, value: Any) -> List[DocumentSnapshot]:
        assert op in SUPPORTED_OPERATORS
        assert op == "==", "only equality queries are used by the triggers"
        self.queries.append((collection, field_path, op, value))
        prefix = collection.strip("/") + "/"
        results = []
        for path, data in self.documents.items():
            if not path.startswith(prefix):
                continue
            document_id = path[len(prefix):]
            if "/" in document_id:
                # nested subcollection document, not part of this collection
                continue
            if field_path in data and data[field_path] == value:
                results.append(
                    DocumentSnapshot(id=document_id, path=path, exists=True, data=dict(data))
                )
        return results

    def start_batch(self) -> InMemoryBatch:
        return InMemoryBatch()

    def batch_update(self, batch: InMemoryBatch, reference: str, fields: Dict[str, Any]) -> None:
        batch.updates.append((reference, dict(fields)))

    def commit(self, batch: InMemoryBatch) -> None:
        if self.fail_commit is not None:
            raise self.fail_commit
        for reference, _ in batch.updates:
            if reference not in self.documents:
                raise KeyError(f"No document to update: {reference}")
        for reference, fields in batch.updates:
            self.documents[reference].update(fields)
        self.commits.append(batch)


class RecordingSender:
    """PushSender double that records payloads and can fail for chosen tokens."""

    def __init__(self, failing_tokens=(), error: Optional[Exception] = None):
        self.sent = []
        self.failing_tokens = set(failing_tokens)
        self.error = error

    def send(self, payload):
        if payload.target in self.failing_tokens:
            raise self.error or DeliveryFailureException(recipient=payload.target)
        self.sent.append(payload)
        return f"projects/test/messages/{len(self.sent)}"

    def targets(self) -> List[str]:
        return [payload.target for payload in self.sent]


@pytest.fixture
def test_settings():
    return TestSettings()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def composer():
    return NotificationComposer()


@pytest.fixture
def tokens(store):
    return TokenResolver(store)


@pytest.fixture
def seeded_store(store):
    """Users u1/u2/u3 (u3 without a token), request r1 and conversation c1."""
    store.set("users/u1", {"name": "Alice", "fcmToken": "tok1"})
    store.set("users/u2", {"name": "Bob", "fcmToken": "tok2"})
    store.set("users/u3", {"name": "Carol"})
    store.set(
        "requests/r1",
        {"status": "requested", "userId": "u1", "diningHall": "West End"},
    )
    store.set(
        "conversations/c1",
        {"participants": ["u1", "u2"], "requestId": "r1", "requestStatus": "requested"},
    )
    return store


@pytest.fixture
def make_event():
    """Build ChangeEvents with path params the way the router would."""
    from app.core.events import ChangeEvent

    def _make(before=None, after=None, **params):
        return ChangeEvent(before=before, after=after, params=params)

    return _make


@pytest.fixture
def sender_factory():
    return RecordingSender


@pytest.fixture
def store_factory():
    return InMemoryDocumentStore
