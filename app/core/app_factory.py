"""Application factory: build collaborators once and register each trigger exactly once."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.core.config import Settings, settings as default_settings
from app.core.database import DocumentStore, FirestoreDocumentStore
from app.core.events import ChangeEvent, ChangeEventRouter, DispatchResult, EventKind
from app.core.logging_config import setup_logging
from app.modules.notifications import (
    FirebasePushSender,
    MessageFanoutNotifier,
    NotificationComposer,
    PushSender,
    StatusTransitionNotifier,
    TokenResolver,
)
from app.modules.requests import StatusSyncPropagator

logger = logging.getLogger(__name__)

NOTIFY_REQUEST_STATUS = "notifyRequestStatus"
SYNC_REQUEST_STATUS = "syncRequestStatusToConversations"
NOTIFY_NEW_MESSAGE = "notifyNewMessage"


@dataclass
class TriggerApp:
    """Process-wide container for the wired components and their router."""

    settings: Settings
    store: DocumentStore
    sender: PushSender
    router: ChangeEventRouter
    status_notifier: StatusTransitionNotifier
    message_notifier: MessageFanoutNotifier
    status_sync: StatusSyncPropagator

    async def dispatch(
        self,
        path: str,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        event_id: Optional[str] = None,
    ) -> List[DispatchResult]:
        return await self.router.dispatch(path, before=before, after=after, event_id=event_id)

    async def invoke(self, name: str, event: ChangeEvent, path: Optional[str] = None) -> Any:
        return await self.router.invoke(name, event, path=path)


def _build_firebase_collaborators(settings: Settings, store, sender):
    # Imported lazily so injected test doubles never touch the Admin SDK.
    from app.firebase_config import get_firestore_client, initialize_firebase

    firebase_app = initialize_firebase(settings)
    if store is None:
        store = FirestoreDocumentStore(get_firestore_client(firebase_app))
    if sender is None:
        sender = FirebasePushSender(app=firebase_app, dry_run=settings.fcm_dry_run)
    return store, sender


def register_triggers(app: TriggerApp) -> None:
    """Attach the three document triggers; a second call raises DuplicateTriggerException."""
    settings = app.settings
    app.router.register(
        NOTIFY_REQUEST_STATUS,
        settings.requests_path_pattern,
        EventKind.UPDATED,
        app.status_notifier.handle,
    )
    app.router.register(
        SYNC_REQUEST_STATUS,
        settings.requests_path_pattern,
        EventKind.UPDATED,
        app.status_sync.handle,
    )
    app.router.register(
        NOTIFY_NEW_MESSAGE,
        settings.messages_path_pattern,
        EventKind.CREATED,
        app.message_notifier.handle,
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[DocumentStore] = None,
    sender: Optional[PushSender] = None,
    configure_logging: bool = True,
) -> TriggerApp:
    """Build a fully wired TriggerApp.

    Firebase is initialised only for collaborators that were not injected.
    """
    settings = settings or default_settings
    if configure_logging:
        setup_logging(
            log_level=settings.log_level,
            log_dir=settings.log_dir,
            app_name=settings.app_name,
            use_json=settings.use_json_logs,
            use_colors=settings.use_colored_logs,
        )

    if store is None or sender is None:
        store, sender = _build_firebase_collaborators(settings, store, sender)

    tokens = TokenResolver(store, users_collection=settings.users_collection)
    composer = NotificationComposer.from_settings(settings)
    app = TriggerApp(
        settings=settings,
        store=store,
        sender=sender,
        router=ChangeEventRouter(),
        status_notifier=StatusTransitionNotifier(store, sender, tokens, composer),
        message_notifier=MessageFanoutNotifier(
            store,
            sender,
            tokens,
            composer,
            conversations_collection=settings.conversations_collection,
            requests_collection=settings.requests_collection,
        ),
        status_sync=StatusSyncPropagator(
            store, conversations_collection=settings.conversations_collection
        ),
    )
    register_triggers(app)
    logger.info(
        "Trigger app ready (%s): %s",
        settings.environment,
        ", ".join(route.name for route in app.router.routes),
    )
    return app


__all__ = [
    "NOTIFY_NEW_MESSAGE",
    "NOTIFY_REQUEST_STATUS",
    "SYNC_REQUEST_STATUS",
    "TriggerApp",
    "create_app",
    "register_triggers",
]
