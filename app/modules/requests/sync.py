"""Mirror a request's status onto every conversation that references it."""

from __future__ import annotations

import asyncio
import logging

from app.core.database import DocumentStore
from app.core.events import ChangeEvent
from app.core.exceptions import SyncCommitFailureException

logger = logging.getLogger(__name__)

MIRROR_FIELD = "requestStatus"


class StatusSyncPropagator:
    """Rewrite `requestStatus` on all linked conversations in one atomic batch.

    Runs on every request write, including writes that leave the status unchanged;
    the rewrite is idempotent, so a redelivered event converges on the same state.
    Commit failures are raised so the hosting platform can redeliver the event.
    """

    def __init__(self, store: DocumentStore, conversations_collection: str = "conversations"):
        self.store = store
        self.conversations_collection = conversations_collection

    async def handle(self, event: ChangeEvent) -> int:
        """Returns the number of conversations updated."""
        request_id = event.param("requestId")
        after = event.after
        if not after:
            logger.info("No data after change for request %s", request_id)
            return 0
        new_status = after.get("status")
        if not new_status:
            logger.info("No status found in request %s", request_id)
            return 0
        if not request_id:
            logger.warning("Request change delivered without a requestId path parameter")
            return 0
        return await asyncio.to_thread(self.propagate, request_id, new_status)

    def propagate(self, request_id: str, new_status: str) -> int:
        conversations = self.store.query(
            self.conversations_collection, "requestId", "==", request_id
        )
        if not conversations:
            logger.info("No conversations found for requestId: %s", request_id)
            return 0

        batch = self.store.start_batch()
        for conversation in conversations:
            logger.debug("Updating conversation %s with status %s", conversation.id, new_status)
            self.store.batch_update(batch, conversation.reference, {MIRROR_FIELD: new_status})

        try:
            self.store.commit(batch)
        except Exception as exc:
            raise SyncCommitFailureException(
                request_id,
                len(conversations),
                message=f"Failed to sync requestStatus for request {request_id}: {exc}",
            ) from exc

        logger.info(
            "requestStatus %s synced to %d conversation(s) for request %s",
            new_status,
            len(conversations),
            request_id,
        )
        return len(conversations)


__all__ = ["MIRROR_FIELD", "StatusSyncPropagator"]
