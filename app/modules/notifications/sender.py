"""Push delivery through Firebase Cloud Messaging."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from app.core.exceptions import DeliveryFailureException

from .common import logger
from .models import ANALYTICS_LABELS, APNS_CATEGORIES, NotificationCategory
from .schemas import PushPayload


@runtime_checkable
class PushSender(Protocol):
    def send(self, payload: PushPayload) -> str:
        """Deliver one payload; returns the transport's message id."""
        ...


def build_message(payload: PushPayload) -> messaging.Message:
    """Translate a `PushPayload` into an FCM message with Android and APNs envelopes."""
    hints = payload.display_hints
    android = messaging.AndroidConfig(
        priority=payload.priority.value,
        notification=messaging.AndroidNotification(
            channel_id=hints.channel,
            click_action=hints.click_action,
            tag=hints.group_key,
            color=hints.color,
        ),
    )
    apns = messaging.APNSConfig(
        headers={"apns-priority": "10"},
        payload=messaging.APNSPayload(
            aps=messaging.Aps(
                category=APNS_CATEGORIES.get(payload.category),
                sound="default",
                badge=1 if payload.category == NotificationCategory.CHAT_MESSAGE else None,
                content_available=True,
                mutable_content=True,
                thread_id=hints.group_key,
            )
        ),
        fcm_options=messaging.APNSFCMOptions(
            analytics_label=ANALYTICS_LABELS.get(payload.category)
        ),
    )
    return messaging.Message(
        token=payload.target,
        notification=messaging.Notification(title=payload.title, body=payload.body),
        data=dict(payload.data),
        android=android,
        apns=apns,
    )


class FirebasePushSender:
    """Send payloads with the Admin SDK; SDK errors surface as DeliveryFailureException."""

    def __init__(self, app=None, dry_run: bool = False):
        self.app = app
        self.dry_run = dry_run

    def send(self, payload: PushPayload) -> str:
        message = build_message(payload)
        try:
            response = messaging.send(message, dry_run=self.dry_run, app=self.app)
        except firebase_exceptions.FirebaseError as exc:
            raise DeliveryFailureException(
                recipient=_mask_token(payload.target),
                message=f"FCM rejected message: {exc}",
            ) from exc
        except ValueError as exc:
            raise DeliveryFailureException(
                recipient=_mask_token(payload.target),
                message=f"Invalid FCM message: {exc}",
            ) from exc
        logger.info("Successfully sent message: %s", response)
        return response


def _mask_token(token: Optional[str]) -> str:
    if not token:
        return ""
    return f"{token[:6]}…" if len(token) > 6 else token


__all__ = ["PushSender", "FirebasePushSender", "build_message"]
