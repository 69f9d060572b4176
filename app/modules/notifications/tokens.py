"""Device push token lookup."""

from __future__ import annotations

from typing import Optional

from app.core.database import DocumentStore

from .common import load_document, logger
from .schemas import UserDocument


class TokenResolver:
    """Map a user id to the user's current device push token.

    A missing user, a missing token, or a blank token all resolve to None; that
    is an expected outcome and callers skip the recipient. Nothing is cached:
    tokens rotate and each invocation re-reads the user document.
    """

    def __init__(self, store: DocumentStore, users_collection: str = "users"):
        self.store = store
        self.users_collection = users_collection

    def resolve_profile(self, user_id: Optional[str]) -> Optional[UserDocument]:
        return load_document(self.store, self.users_collection, user_id, UserDocument)

    def resolve(self, user_id: Optional[str]) -> Optional[str]:
        profile = self.resolve_profile(user_id)
        token = profile.fcm_token if profile else None
        if not token or not token.strip():
            logger.info("No FCM token found for user: %s", user_id)
            return None
        return token


__all__ = ["TokenResolver"]
