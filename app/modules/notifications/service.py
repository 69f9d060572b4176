"""Trigger handlers that turn document changes into push notifications.

Responsibilities:
- Detect request status edges worth announcing (accepted, picked up) and notify the requester.
- Fan a new chat message out to every conversation participant except its sender.
- Isolate delivery failures: a rejected push is logged and never fails the triggering write,
  and one recipient's failure never blocks the others.

Handlers hold no state between invocations; every token, name and participant list is
re-read from the store per event. Redelivery of an event may resend a notification;
there is no dedup ledger.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import ValidationError

from app.core.database import DocumentStore
from app.core.events import ChangeEvent
from app.core.exceptions import DeliveryFailureException, MissingDataException, raise_missing

from .common import load_document, logger, require_document
from .composer import NotificationComposer, location_suffix
from .models import DEFAULT_SENDER_NAME, RequestStatus
from .schemas import (
    ConversationDocument,
    MessageDocument,
    PushPayload,
    RequestDocument,
)
from .sender import PushSender
from .tokens import TokenResolver

TRACKED_TRANSITIONS = (RequestStatus.ACCEPTED, RequestStatus.PICKED_UP)


def entered_statuses(before: Optional[str], after: Optional[str]) -> List[RequestStatus]:
    """Tracked statuses that `after` moved into. Same-status re-saves fire nothing."""
    return [
        target
        for target in TRACKED_TRANSITIONS
        if before != target.value and after == target.value
    ]


def fanout_recipients(participants: Optional[List[str]], sender_id: Optional[str]) -> List[str]:
    """Participants minus the sender, de-duplicated, in first-seen order."""
    return [
        uid
        for uid in dict.fromkeys(participants or [])
        if uid and uid != sender_id
    ]


class _PushNotifier:
    """Shared delivery path: resolve, compose, send, and contain failures."""

    def __init__(
        self,
        store: DocumentStore,
        sender: PushSender,
        tokens: TokenResolver,
        composer: NotificationComposer,
    ):
        self.store = store
        self.sender = sender
        self.tokens = tokens
        self.composer = composer

    def _deliver(self, payload: PushPayload, recipient_id: Optional[str]) -> bool:
        """Send one payload; returns False instead of raising when delivery fails."""
        try:
            response = self.sender.send(payload)
        except DeliveryFailureException as exc:
            logger.error(
                "Error sending %s notification to %s: %s",
                payload.data.get("type"),
                recipient_id,
                exc.to_dict(),
                extra={"recipient_id": recipient_id},
            )
            return False
        except Exception as exc:
            logger.error(
                "Unexpected error sending %s notification to %s: %s",
                payload.data.get("type"),
                recipient_id,
                exc,
                exc_info=True,
                extra={"recipient_id": recipient_id},
            )
            return False
        logger.info(
            "Notification sent to %s: %s",
            recipient_id,
            response,
            extra={"recipient_id": recipient_id},
        )
        return True


class StatusTransitionNotifier(_PushNotifier):
    """Notify a requester when their request is accepted or picked up."""

    async def handle(self, event: ChangeEvent) -> int:
        """Returns the number of sends attempted (0 when no tracked edge fired)."""
        try:
            after = RequestDocument.from_fields(event.after)
            before = RequestDocument.from_fields(event.before)
        except ValidationError as exc:
            logger.warning(
                "Skipping status notification for request %s, malformed document: %s",
                event.param("requestId"),
                exc,
            )
            return 0
        if after is None:
            logger.info("Request %s has no data after change", event.param("requestId"))
            return 0
        fired = entered_statuses(before.status if before else None, after.status)
        if not fired:
            return 0
        return await asyncio.to_thread(self._notify, event.param("requestId") or "", after, fired)

    def _notify(self, request_id: str, request: RequestDocument, fired: List[RequestStatus]) -> int:
        attempted = 0
        for status in fired:
            token = self.tokens.resolve(request.user_id)
            if token is None:
                continue
            payload = self._compose(status, token, request_id, request)
            attempted += 1
            self._deliver(payload, request.user_id)
        return attempted

    def _compose(
        self, status: RequestStatus, token: str, request_id: str, request: RequestDocument
    ) -> PushPayload:
        if status is RequestStatus.PICKED_UP:
            return self.composer.request_picked_up(token, request_id, request.dining_hall)
        return self.composer.request_accepted(token, request_id)


@dataclass
class FanoutResult:
    recipients: List[str] = field(default_factory=list)
    sent: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.sent) + len(self.failed)


@dataclass
class _FanoutContext:
    conversation_id: str
    message_id: str
    sender_id: str
    sender_name: str
    text: Optional[str]
    location: str
    recipients: List[str]


class MessageFanoutNotifier(_PushNotifier):
    """Notify every participant of a conversation, except the sender, about a new message."""

    def __init__(
        self,
        store: DocumentStore,
        sender: PushSender,
        tokens: TokenResolver,
        composer: NotificationComposer,
        conversations_collection: str = "conversations",
        requests_collection: str = "requests",
    ):
        super().__init__(store, sender, tokens, composer)
        self.conversations_collection = conversations_collection
        self.requests_collection = requests_collection

    async def handle(self, event: ChangeEvent) -> FanoutResult:
        try:
            context = await asyncio.to_thread(self._load_context, event)
        except MissingDataException as exc:
            logger.info("Skipping message notification: %s", exc.message)
            return FanoutResult()
        except ValidationError as exc:
            logger.warning("Skipping message notification, malformed document: %s", exc)
            return FanoutResult()

        result = FanoutResult(recipients=list(context.recipients))
        if not context.recipients:
            logger.info("Conversation %s has no recipients besides the sender", context.conversation_id)
            return result

        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self._notify_recipient, context, uid) for uid in context.recipients),
            return_exceptions=True,
        )
        for uid, outcome in zip(context.recipients, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Error notifying %s: %s", uid, outcome, extra={"recipient_id": uid})
                result.failed.append(uid)
            elif outcome is None:
                result.skipped.append(uid)
            elif outcome:
                result.sent.append(uid)
            else:
                result.failed.append(uid)
        logger.info(
            "Message %s fan-out: %d sent, %d skipped, %d failed",
            context.message_id,
            len(result.sent),
            len(result.skipped),
            len(result.failed),
        )
        return result

    def _load_context(self, event: ChangeEvent) -> _FanoutContext:
        message = MessageDocument.from_fields(event.after)
        if message is None:
            raise_missing("message")
        conversation_id = event.param("conversationId")
        conversation = require_document(
            self.store, self.conversations_collection, conversation_id, ConversationDocument
        )
        if not conversation.participants:
            raise_missing("conversation", "participants")

        location = ""
        if conversation.request_id:
            request = load_document(
                self.store, self.requests_collection, conversation.request_id, RequestDocument
            )
            location = location_suffix(request is not None, request.dining_hall if request else None)

        profile = self.tokens.resolve_profile(message.sender_id)
        sender_name = (profile.name if profile else None) or DEFAULT_SENDER_NAME

        return _FanoutContext(
            conversation_id=conversation_id,
            message_id=event.param("messageId") or "",
            sender_id=message.sender_id or "",
            sender_name=sender_name,
            text=message.text,
            location=location,
            recipients=fanout_recipients(conversation.participants, message.sender_id),
        )

    def _notify_recipient(self, context: _FanoutContext, recipient_id: str) -> Optional[bool]:
        """None when the recipient has no token, otherwise whether the send succeeded."""
        token = self.tokens.resolve(recipient_id)
        if token is None:
            return None
        payload = self.composer.new_message(
            token,
            conversation_id=context.conversation_id,
            message_id=context.message_id,
            sender_id=context.sender_id,
            sender_name=context.sender_name,
            text=context.text,
            location=context.location,
        )
        return self._deliver(payload, recipient_id)


__all__ = [
    "TRACKED_TRANSITIONS",
    "FanoutResult",
    "MessageFanoutNotifier",
    "StatusTransitionNotifier",
    "entered_statuses",
    "fanout_recipients",
]
