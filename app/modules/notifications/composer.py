"""Build recipient-ready push payloads from domain fields.

The composer owns every user-visible string and every routing hint: titles and
bodies, the Android channel per category, click-through metadata, and the
message preview truncation rule (bodies never exceed the preview limit; longer
text keeps its prefix and ends in "...").
"""

from __future__ import annotations

from typing import Optional

from .models import (
    DEFAULT_MESSAGE_TEXT,
    DEFAULT_PICKUP_LABEL,
    ELLIPSIS,
    UNKNOWN_LOCATION,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)
from .schemas import DisplayHints, PushPayload

DEFAULT_PREVIEW_LIMIT = 100


def truncate_preview(text: Optional[str], limit: int = DEFAULT_PREVIEW_LIMIT) -> str:
    """Return `text` unchanged when it fits, otherwise its prefix plus an ellipsis.

    Empty or missing text becomes the generic placeholder.
    """
    if not text:
        return DEFAULT_MESSAGE_TEXT
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def location_suffix(request_found: bool, dining_hall: Optional[str]) -> str:
    """Title suffix naming the pickup location of the conversation's request.

    A conversation whose request cannot be found gets no suffix at all; only a found
    request without a dining hall falls back to the generic pickup label.
    """
    if not request_found:
        return ""
    return f" ({dining_hall or DEFAULT_PICKUP_LABEL})"


class NotificationComposer:
    """Map domain data onto `PushPayload`s. Stateless apart from presentation settings."""

    def __init__(
        self,
        request_updates_channel: str = "request_updates",
        chat_messages_channel: str = "chat_messages",
        click_action: str = "FLUTTER_NOTIFICATION_CLICK",
        chat_accent_color: Optional[str] = "#7D2F00",
        preview_limit: int = DEFAULT_PREVIEW_LIMIT,
    ):
        self.request_updates_channel = request_updates_channel
        self.chat_messages_channel = chat_messages_channel
        self.click_action = click_action
        self.chat_accent_color = chat_accent_color
        self.preview_limit = preview_limit

    @classmethod
    def from_settings(cls, settings) -> "NotificationComposer":
        return cls(
            request_updates_channel=settings.request_updates_channel,
            chat_messages_channel=settings.chat_messages_channel,
            click_action=settings.notification_click_action,
            chat_accent_color=settings.chat_accent_color,
            preview_limit=settings.message_preview_limit,
        )

    def _status_update(
        self,
        token: str,
        request_id: str,
        notification_type: NotificationType,
        title: str,
        body: str,
    ) -> PushPayload:
        return PushPayload(
            target=token,
            title=title,
            body=body,
            data={
                "requestId": request_id,
                "type": notification_type.value,
                "click_action": self.click_action,
            },
            category=NotificationCategory.STATUS_UPDATE,
            priority=NotificationPriority.HIGH,
            display_hints=DisplayHints(
                channel=self.request_updates_channel,
                click_action=self.click_action,
            ),
        )

    def request_accepted(self, token: str, request_id: str) -> PushPayload:
        return self._status_update(
            token,
            request_id,
            NotificationType.REQUEST_ACCEPTED,
            title="Request Accepted 🎉",
            body="A delivery person has accepted your request!",
        )

    def request_picked_up(
        self, token: str, request_id: str, dining_hall: Optional[str]
    ) -> PushPayload:
        return self._status_update(
            token,
            request_id,
            NotificationType.REQUEST_PICKED_UP,
            title="Food Picked Up 🍔",
            body=f"Your food has been picked up from {dining_hall or UNKNOWN_LOCATION}!",
        )

    def new_message(
        self,
        token: str,
        *,
        conversation_id: str,
        message_id: str,
        sender_id: str,
        sender_name: str,
        text: Optional[str],
        location: str = "",
    ) -> PushPayload:
        return PushPayload(
            target=token,
            title=f"Message from {sender_name}{location}",
            body=truncate_preview(text, self.preview_limit),
            data={
                "conversationId": conversation_id,
                "messageId": message_id,
                "senderId": sender_id,
                # the client opens the chat with this user when tapped
                "otherUserId": sender_id,
                "type": NotificationType.NEW_MESSAGE.value,
                "click_action": self.click_action,
            },
            category=NotificationCategory.CHAT_MESSAGE,
            priority=NotificationPriority.HIGH,
            display_hints=DisplayHints(
                channel=self.chat_messages_channel,
                group_key=f"chat_{conversation_id}",
                color=self.chat_accent_color,
                click_action=self.click_action,
            ),
        )


__all__ = ["NotificationComposer", "truncate_preview", "location_suffix"]
